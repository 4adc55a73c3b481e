"""
Dream schemas.
"""

from datetime import datetime
from typing import List, Optional, Union

from pydantic import Field

from luna.kernel.models.dream import Sentiment
from luna.schemas.common import CamelModel

MIN_DREAM_LENGTH = 10
MAX_DREAM_LENGTH = 1000


class InterpretRequest(CamelModel):
    """
    Dream interpretation request.

    The optional annotations feed the insights endpoint once the dream is saved.
    """

    dream_text: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    sentiment: Sentiment = Sentiment.NEUTRAL
    themes: List[str] = Field(default_factory=list)
    symbols: List[str] = Field(default_factory=list)
    mood: Optional[str] = None
    clarity: Optional[int] = Field(None, ge=1, le=10)


class InterpretData(CamelModel):
    interpretation: str
    dream_id: Optional[str] = None


class InterpretResponse(CamelModel):
    success: bool = True
    data: InterpretData


class DreamResponse(CamelModel):
    id: str
    user_id: str
    dream_text: str
    interpretation: str
    tags: List[str]
    sentiment: Sentiment
    themes: List[str]
    symbols: List[str]
    mood: Optional[str] = None
    clarity: Optional[int] = None
    timestamp: datetime


class DreamListResponse(CamelModel):
    success: bool = True
    data: List[DreamResponse]


class DreamDetailResponse(CamelModel):
    success: bool = True
    data: DreamResponse


class CountEntryResponse(CamelModel):
    value: str
    count: int


class SentimentResponse(CamelModel):
    positive: int
    negative: int
    neutral: int


class RecentActivityResponse(CamelModel):
    last_7_days: int
    last_30_days: int


class DreamPatternsResponse(CamelModel):
    most_active_day: str
    average_dream_length: float
    longest_dream: int
    shortest_dream: int


class InsightsData(CamelModel):
    total_dreams: int
    sentiment_analysis: SentimentResponse
    common_tags: List[CountEntryResponse]
    common_themes: List[CountEntryResponse]
    common_symbols: List[CountEntryResponse]
    mood_distribution: List[CountEntryResponse]
    average_clarity: Optional[float] = None
    recent_activity: RecentActivityResponse
    dream_patterns: DreamPatternsResponse


class EmptyInsightsData(CamelModel):
    total_dreams: int = 0
    message: str = "No dreams found for analysis. Start by interpreting your first dream!"


class InsightsResponse(CamelModel):
    success: bool = True
    data: Union[InsightsData, EmptyInsightsData]
    dreams: List[DreamResponse] = Field(default_factory=list)
