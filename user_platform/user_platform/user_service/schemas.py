from pydantic import BaseModel, EmailStr, Field, field_validator

from datetime import date, datetime
from typing import List, Optional
import re

from .models import Role

PASSWORD_PATTERN = re.compile(r"^(?=.*[0-9])(?=.*[a-z])(?=.*[A-Z])(?=.*[@#$%^&+=!]).{8,20}$")
PASSWORD_RULES = (
    "Password must be 8-20 characters long, include at least one uppercase letter, "
    "one lowercase letter, one number, and one special character"
)


def _check_password(value: str) -> str:
    if not PASSWORD_PATTERN.match(value):
        raise ValueError(PASSWORD_RULES)
    return value


class RegisterRequest(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: EmailStr
    password: str
    birthday: date
    phone_number: str = Field(pattern=r"^\d{10,15}$")
    role: Optional[Role] = None

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        return _check_password(value)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_in: int


class VerifyRequest(BaseModel):
    email: EmailStr
    verification_code: str


class EmailRequest(BaseModel):
    email: EmailStr


class MessageResponse(BaseModel):
    message: str


class ValidResponse(BaseModel):
    valid: bool = True


# Password reset
class ResetTokenRequest(BaseModel):
    token: str


class ResetPasswordRequest(BaseModel):
    token: str
    password: str

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        return _check_password(value)


class ResetCodeRequest(BaseModel):
    email: EmailStr
    code: str


class ResetPasswordWithCodeRequest(BaseModel):
    email: EmailStr
    code: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        return _check_password(value)


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        return _check_password(value)


# Profile
class UpdateAccountRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    wallet_address: Optional[str] = None
    birthday: Optional[date] = None


class AccountResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    profile_picture: Optional[str] = None
    birthday: date
    phone_number: str
    wallet_address: Optional[str] = None
    roles: List[str]
    score: int
    rating: Optional[float] = None
    enabled: bool
    created_at: datetime

    class Config:
        from_attributes = True



class PublicProfileResponse(BaseModel):
    first_name: str
    last_name: str
    profile_picture: Optional[str] = None
    phone_number: str

    class Config:
        from_attributes = True


class AccountStatsResponse(BaseModel):
    id: int
    rating: Optional[float] = None
    score: int
    created_at: datetime
    is_verified: bool


class AdminAccountResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    profile_picture: Optional[str] = None
    birthday: date
    phone_number: str
    wallet_address: Optional[str] = None
    roles: List[str]
    enabled: bool
    score: int
    rating: Optional[float] = None
