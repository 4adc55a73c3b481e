"""
Domain records kept in the key/value store.
"""

from luna.kernel.models.user import (
    Subscription,
    SubscriptionPlan,
    SubscriptionStatus,
    User,
    UserPreferences,
    UserRegistration,
    UserStats,
)
from luna.kernel.models.dream import Dream, Sentiment

__all__ = [
    # User & Identity
    "User",
    "UserRegistration",
    "UserPreferences",
    "UserStats",
    "Subscription",
    "SubscriptionPlan",
    "SubscriptionStatus",
    # Dreams
    "Dream",
    "Sentiment",
]
