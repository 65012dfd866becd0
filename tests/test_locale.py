from datetime import datetime, timezone

from planboard.locale_config import get_locale, format_display_date


def test_unsupported_language_falls_back_to_hebrew():
    assert get_locale("ru").format_value("untitled-task") == "משימה ללא שם"


def test_english_messages():
    assert get_locale("en").format_value("untitled-project") == "project"


def test_display_date_uses_local_calendar_day():
    # 22:30 UTC is already the next day in Jerusalem
    assert format_display_date(datetime(2026, 10, 18, 22, 30, tzinfo=timezone.utc)) == "19.10.2026"
    assert format_display_date(datetime(2026, 1, 5, 8, 0), "UTC") == "5.1.2026"
