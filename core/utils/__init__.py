"""
유틸리티 패키지

날짜/시간 처리 등 공통 유틸리티
"""

from core.utils.timezone import (
    day_before,
    days_between,
    now_utc,
    parse_iso_date,
    parse_iso_datetime,
    to_iso_date,
    today,
)

__all__ = [
    "day_before",
    "days_between",
    "now_utc",
    "parse_iso_date",
    "parse_iso_datetime",
    "to_iso_date",
    "today",
]
