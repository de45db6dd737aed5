"""
Pydantic schemas for authentication endpoints

Field names follow the wire format of the public routes.
"""

from typing import Optional
from pydantic import BaseModel, EmailStr, Field, validator


# Request schemas

class RegisterRequest(BaseModel):
    """User registration request"""
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class LoginRequest(BaseModel):
    """User login request"""
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class TwoFactorSetupRequest(BaseModel):
    """2FA setup request - any valid step token"""
    tempToken: str = Field(..., min_length=1)


class TwoFactorVerifyRequest(BaseModel):
    """2FA verification request"""
    tempToken: str = Field(..., min_length=1)
    token: str = Field(..., min_length=6, max_length=8, description="TOTP code from authenticator app")

    @validator('token')
    def code_must_be_numeric(cls, v):
        v = v.strip()
        if not v.isdigit():
            raise ValueError('Code must be numeric')
        return v


# Response schemas

class UserSummaryResponse(BaseModel):
    """User identity returned after registration"""
    id: int
    email: str


class RegisterResponse(BaseModel):
    """Registration response"""
    message: str = "User registered"
    user: UserSummaryResponse


class LoginResponse(BaseModel):
    """
    Login response

    tempToken is set when a second factor is required, accessToken otherwise.
    """
    tempToken: Optional[str] = None
    accessToken: Optional[str] = None
    twofa_enabled: bool
    message: str
    expires_in: int


class TwoFactorSetupResponse(BaseModel):
    """2FA enrollment response"""
    message: str = "Scan this code with Google Authenticator"
    qr: str = Field(..., description="QR code as PNG data URI")
    otpauth_url: str
    secret: str = Field(..., description="Base32 secret for manual entry")


class TwoFactorVerifyResponse(BaseModel):
    """2FA verification response"""
    message: str = "Access granted"
    accessToken: str
    expires_in: int


class ErrorResponse(BaseModel):
    """Error body"""
    error: str
