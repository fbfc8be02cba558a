"""
Pydantic schemas for API request/response validation.
These define the structure of data sent to and from the API.
Account responses never include the password hash.
"""
from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from constants import PASSWORD_MIN_LENGTH


# ============================================
# Account Schemas
# ============================================

class TeacherResponse(BaseModel):
    """Public teacher fields"""
    role: Literal["teacher"] = "teacher"
    id: str
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    bio: Optional[str] = None
    specializations: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ParentResponse(BaseModel):
    """Public parent fields"""
    role: Literal["parent"] = "parent"
    id: str
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    email_verified: bool = False
    google_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


AccountResponse = Annotated[Union[TeacherResponse, ParentResponse], Field(discriminator="role")]


class TeacherCreate(BaseModel):
    """Admin request body for provisioning a teacher"""
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=128)
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    bio: Optional[str] = None
    specializations: Optional[str] = None


class ParentRegister(BaseModel):
    """Parent self-registration body"""
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=128)
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)


# ============================================
# Auth Schemas
# ============================================

class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=128)


class AdminLoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=255)


class AuthResponse(BaseModel):
    """Returned by login, registration and email verification"""
    user: AccountResponse
    access_token: str


class AccessTokenResponse(BaseModel):
    access_token: str


class CurrentAccountResponse(BaseModel):
    email_verified: bool
    user: AccountResponse


class MessageResponse(BaseModel):
    message: str
