"""
Dream storage and analytics.
"""

from luna.dreams.store import DreamStore
from luna.dreams.insights import DreamInsights, compute_insights

__all__ = [
    "DreamStore",
    "DreamInsights",
    "compute_insights",
]
