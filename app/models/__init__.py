from .daily_summary import DailySummary
from .period_reflection import PeriodReflection
from .mood_entry import MoodEntry

__all__ = [
    "DailySummary",
    "PeriodReflection",
    "MoodEntry",
]
