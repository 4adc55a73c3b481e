"""
Frequency statistics over a user's dream history.
"""

from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from pydantic import BaseModel

from luna.kernel.models.dream import Dream, Sentiment

TOP_N = 10


class CountEntry(BaseModel):
    value: str
    count: int


class SentimentCounts(BaseModel):
    positive: int = 0
    negative: int = 0
    neutral: int = 0


class RecentActivity(BaseModel):
    last_7_days: int
    last_30_days: int


class DreamPatterns(BaseModel):
    most_active_day: str
    average_dream_length: float
    longest_dream: int
    shortest_dream: int


class DreamInsights(BaseModel):
    total_dreams: int
    sentiment_analysis: SentimentCounts
    common_tags: List[CountEntry]
    common_themes: List[CountEntry]
    common_symbols: List[CountEntry]
    mood_distribution: List[CountEntry]
    average_clarity: Optional[float]
    recent_activity: RecentActivity
    dream_patterns: DreamPatterns


def top_counts(items: Iterable[str], limit: int = TOP_N) -> List[CountEntry]:
    """Most frequent items first; ties keep first-seen order."""
    return [CountEntry(value=v, count=c) for v, c in Counter(items).most_common(limit)]


def count_recent(dreams: List[Dream], days: int, now: datetime) -> int:
    cutoff = now - timedelta(days=days)
    return sum(1 for d in dreams if d.timestamp >= cutoff)


def most_active_day(dreams: List[Dream]) -> str:
    if not dreams:
        return "Unknown"
    days = Counter(d.timestamp.strftime("%A") for d in dreams)
    return days.most_common(1)[0][0]


def compute_insights(dreams: List[Dream], now: Optional[datetime] = None) -> DreamInsights:
    """
    Aggregate a non-empty dream history.

    Average clarity only counts dreams that were rated; None if none were.
    """
    if not dreams:
        raise ValueError("compute_insights needs at least one dream")

    now = now or datetime.now(timezone.utc)
    sentiments = Counter(d.sentiment for d in dreams)
    rated = [d.clarity for d in dreams if d.clarity is not None]
    lengths = [len(d.dream_text) for d in dreams]

    return DreamInsights(
        total_dreams=len(dreams),
        sentiment_analysis=SentimentCounts(
            positive=sentiments[Sentiment.POSITIVE],
            negative=sentiments[Sentiment.NEGATIVE],
            neutral=sentiments[Sentiment.NEUTRAL],
        ),
        common_tags=top_counts(t for d in dreams for t in d.tags),
        common_themes=top_counts(t for d in dreams for t in d.themes),
        common_symbols=top_counts(s for d in dreams for s in d.symbols),
        mood_distribution=top_counts(d.mood for d in dreams if d.mood),
        average_clarity=sum(rated) / len(rated) if rated else None,
        recent_activity=RecentActivity(
            last_7_days=count_recent(dreams, 7, now),
            last_30_days=count_recent(dreams, 30, now),
        ),
        dream_patterns=DreamPatterns(
            most_active_day=most_active_day(dreams),
            average_dream_length=sum(lengths) / len(lengths),
            longest_dream=max(lengths),
            shortest_dream=min(lengths),
        ),
    )
