"""
Authentication schemas.

Password strength and email format are checked in the routes rather than
here, so their failures carry the WEAK_PASSWORD / INVALID_EMAIL codes.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import EmailStr, Field

from luna.kernel.models.user import SubscriptionPlan, SubscriptionStatus
from luna.schemas.common import CamelModel


class RegisterRequest(CamelModel):
    """User registration request."""

    email: str = Field(..., max_length=255)
    password: str = Field(..., max_length=128)
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)


class LoginRequest(CamelModel):
    """User login request."""

    email: str
    password: str
    remember_me: bool = False


class RefreshTokenRequest(CamelModel):
    """Token refresh request."""

    refresh_token: str


class ChangePasswordRequest(CamelModel):
    """Password change request."""

    current_password: str
    new_password: str = Field(..., max_length=128)


class PreferencesUpdate(CamelModel):
    notifications: Optional[bool] = None
    share_insights: Optional[bool] = None
    public_profile: Optional[bool] = None


class UpdateProfileRequest(CamelModel):
    """Profile update request; omitted fields are left untouched."""

    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    profile_picture: Optional[str] = None
    date_of_birth: Optional[date] = None
    timezone: Optional[str] = None
    dream_goals: Optional[List[str]] = None
    preferences: Optional[PreferencesUpdate] = None


class PreferencesResponse(CamelModel):
    notifications: bool
    share_insights: bool
    public_profile: bool


class SubscriptionResponse(CamelModel):
    plan: SubscriptionPlan
    status: SubscriptionStatus
    expires_at: Optional[datetime] = None


class StatsResponse(CamelModel):
    total_dreams: int
    streak_days: int
    joined_at: datetime
    last_login_at: Optional[datetime] = None


class UserResponse(CamelModel):
    """User profile response. Never includes the password hash."""

    id: str
    email: str
    first_name: str
    last_name: str
    is_email_verified: bool
    profile_picture: Optional[str] = None
    date_of_birth: Optional[date] = None
    timezone: Optional[str] = None
    dream_goals: Optional[List[str]] = None
    preferences: PreferencesResponse
    subscription: SubscriptionResponse
    stats: StatsResponse
    created_at: datetime
    updated_at: datetime


class TokenData(CamelModel):
    token: str
    refresh_token: str
    expires_in: int


class AuthData(TokenData):
    user: UserResponse


class AuthResponse(CamelModel):
    """Register/login response."""

    success: bool = True
    message: str
    data: AuthData


class TokenRefreshResponse(CamelModel):
    success: bool = True
    message: str
    data: TokenData


class UserData(CamelModel):
    user: UserResponse


class UserEnvelope(CamelModel):
    success: bool = True
    message: Optional[str] = None
    data: UserData
