from datetime import date

from app.services.periods import DAY_NAMES, day_of_week, period_label


def test_sunday_is_day_zero():
    assert day_of_week(date(2025, 3, 2)) == 0  # Sunday
    assert day_of_week(date(2025, 3, 3)) == 1  # Monday
    assert day_of_week(date(2025, 3, 8)) == 6  # Saturday
    assert DAY_NAMES[day_of_week(date(2025, 3, 5))] == "Wednesday"


def test_period_labels():
    assert period_label(0) == "Morning"
    assert period_label(3) == "Period 3"
    assert period_label(7) == "Night"
