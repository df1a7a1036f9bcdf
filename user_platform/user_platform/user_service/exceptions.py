"""
Domain errors raised by the credential lifecycle.

Each error carries the HTTP status and title the API layer renders it with,
so services never import FastAPI.
"""


class UserServiceError(Exception):
    status_code = 500
    title = "Internal Server Error"

    def __init__(self, message: str = None):
        super().__init__(message or self.title)
        self.message = message or self.title


# Accounts

class AccountNotFound(UserServiceError):
    status_code = 404
    title = "User Not Found"


class AccountAlreadyExists(UserServiceError):
    status_code = 409
    title = "User Already Exists"


class UnderRequiredAge(UserServiceError):
    status_code = 400
    title = "Age Requirement Not Met"


class AccountDisabled(UserServiceError):
    status_code = 403
    title = "Account Disabled"


class WrongPassword(UserServiceError):
    status_code = 401
    title = "Invalid Credentials"


# Verification codes

class AlreadyVerified(UserServiceError):
    status_code = 409
    title = "Already Verified"


class WrongVerificationCode(UserServiceError):
    status_code = 400
    title = "Invalid Verification Code"


class ExpiredVerificationCode(UserServiceError):
    status_code = 410
    title = "Verification Code Expired"


# Password reset tokens

class TokenNotFound(UserServiceError):
    status_code = 404
    title = "Token Not Found"


class ExpiredToken(UserServiceError):
    status_code = 410
    title = "Token Expired"


class InvalidToken(UserServiceError):
    status_code = 400
    title = "Invalid Token"


class UsedToken(UserServiceError):
    status_code = 409
    title = "Token Already Used"


# Session credentials

class InvalidCredential(UserServiceError):
    status_code = 401
    title = "Invalid Credential"


class PermissionDenied(UserServiceError):
    status_code = 403
    title = "Forbidden"


class NotificationDispatchFailure(Exception):
    """Raised by transports; the dispatchers log it and never propagate it."""
