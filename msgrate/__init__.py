from .config import DaysFrequency, MonthlyFrequency, RateStatsConfig, parse_report_frequency
from .errors import UsageError
from .registry import RateTrackerRegistry
from .tracker import RateTracker

__all__ = [
    "DaysFrequency",
    "MonthlyFrequency",
    "RateStatsConfig",
    "RateTracker",
    "RateTrackerRegistry",
    "UsageError",
    "parse_report_frequency",
]
