"""Monthly insights and recurring-pattern detection over the journal index."""

from .models import DataStats, MonthlyInsights, PatternReport, RecurringTheme, ThemeFrequency
from .monthly import build_monthly_insights, build_multi_month_insights, calculate_theme_trends, previous_month
from .patterns import detect_recurring_themes, generate_pattern_report
from .stats import collect_data_stats

__all__ = [
    "DataStats",
    "MonthlyInsights",
    "PatternReport",
    "RecurringTheme",
    "ThemeFrequency",
    "build_monthly_insights",
    "build_multi_month_insights",
    "calculate_theme_trends",
    "collect_data_stats",
    "detect_recurring_themes",
    "generate_pattern_report",
    "previous_month",
]
