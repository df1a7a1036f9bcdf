"""
user_service tests

Covers the backend logic of the user account service:

- Credential hashing and session credentials (`auth.py`)
- Verification codes, password reset and account lifecycle (`services/`)
- Notification and profile-change dispatch (`notifications.py`)
- FastAPI endpoints (`main.py`, `routes/`)
"""
