"""Weekday and period labels shared by schedules, attendance and conflict messages."""
from datetime import date

# day_of_week is stored 0 = Sunday .. 6 = Saturday
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

MORNING_PERIOD = 0
NIGHT_PERIOD = 7


def day_of_week(d: date) -> int:
    return (d.weekday() + 1) % 7


def period_label(period: int) -> str:
    if period == MORNING_PERIOD:
        return "Morning"
    if period == NIGHT_PERIOD:
        return "Night"
    return f"Period {period}"
