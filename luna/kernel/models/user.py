"""
User model for identity management.
"""

import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_id() -> str:
    return str(uuid.uuid4())


class SubscriptionPlan(str, Enum):
    FREE = "free"
    PREMIUM = "premium"
    PRO = "pro"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    CANCELLED = "cancelled"


class UserPreferences(BaseModel):
    notifications: bool = True
    share_insights: bool = False
    public_profile: bool = False


class Subscription(BaseModel):
    plan: SubscriptionPlan = SubscriptionPlan.FREE
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    expires_at: Optional[datetime] = None


class UserStats(BaseModel):
    total_dreams: int = 0
    streak_days: int = 0
    joined_at: datetime = Field(default_factory=utcnow)
    last_login_at: Optional[datetime] = None


class User(BaseModel):
    """
    User account record.

    `email` is always stored lowercased; `password_hash` is a bcrypt credential.
    """

    id: str = Field(default_factory=generate_id)
    email: str
    password_hash: str
    first_name: str
    last_name: str
    is_email_verified: bool = False
    profile_picture: Optional[str] = None
    date_of_birth: Optional[date] = None
    timezone: Optional[str] = None
    dream_goals: Optional[List[str]] = None
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    subscription: Subscription = Field(default_factory=Subscription)
    stats: UserStats = Field(default_factory=UserStats)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class UserRegistration(BaseModel):
    """Data needed to create a user."""

    email: str
    password: str
    first_name: str
    last_name: str
