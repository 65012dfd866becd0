import logging
import pathlib
from datetime import datetime
from typing import Dict

import pytz
from fluent.runtime import FluentLocalization, FluentResourceLoader

from planboard.load_env import NOTIFICATION_LOCALE, DISPLAY_TIMEZONE

logger = logging.getLogger(__name__)

LOCALE_DIR = pathlib.Path(__file__).resolve().parent / "locale_files"

loader = FluentResourceLoader(str(LOCALE_DIR / "{locale}"))

# Доступные языки, первый используется как запасной
AVAILABLE_LANGUAGES = ["he", "en"]

# Кеш локализаций по коду языка
_locales: Dict[str, FluentLocalization] = {}


def get_locale(language: str = None) -> FluentLocalization:
    """
    Получить локализацию для указанного языка

    Args:
        language: Код языка (he/en), по умолчанию NOTIFICATION_LOCALE

    Returns:
        FluentLocalization, который при отсутствии сообщения откатывается на остальные языки
    """
    language = language or NOTIFICATION_LOCALE
    if language not in AVAILABLE_LANGUAGES:
        logger.warning(f"Unsupported locale {language}, falling back to {AVAILABLE_LANGUAGES[0]}")
        language = AVAILABLE_LANGUAGES[0]

    if language not in _locales:
        fallbacks = [language] + [lang for lang in AVAILABLE_LANGUAGES if lang != language]
        _locales[language] = FluentLocalization(fallbacks, ["main.ftl"], loader)
        logger.debug(f"Loaded localization {fallbacks}")
    return _locales[language]


def format_display_date(value: datetime, tz_name: str = None) -> str:
    """Дата в виде d.m.yyyy в часовом поясе отображения"""
    tz = pytz.timezone(tz_name or DISPLAY_TIMEZONE)
    if value.tzinfo is None:
        value = pytz.utc.localize(value)
    local = value.astimezone(tz)
    return f"{local.day}.{local.month}.{local.year}"
