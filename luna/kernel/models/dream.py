"""
Dream record.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from luna.kernel.models.user import generate_id, utcnow


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class Dream(BaseModel):
    """A dream description and its interpretation, owned by one user."""

    id: str = Field(default_factory=generate_id)
    user_id: str
    dream_text: str
    interpretation: str
    tags: List[str] = Field(default_factory=list)
    sentiment: Sentiment = Sentiment.NEUTRAL
    themes: List[str] = Field(default_factory=list)
    symbols: List[str] = Field(default_factory=list)
    mood: Optional[str] = None
    clarity: Optional[int] = Field(default=None, ge=1, le=10)
    timestamp: datetime = Field(default_factory=utcnow)
