"""
날짜/시간 유틸리티

내부 저장: UTC 타임스탬프 + ISO 날짜 문자열 원칙 준수를 위한 헬퍼 함수
"""

from datetime import date, datetime, timedelta, timezone


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)

    Returns:
        현재 UTC 시간 (tzinfo=timezone.utc)
    """
    return datetime.now(timezone.utc)


def today() -> date:
    """오늘 날짜 (로컬 기준)

    회수 목록의 경과 일수 계산 기준.
    """
    return date.today()


def to_iso_date(value: date) -> str:
    """date를 DB 저장용 'YYYY-MM-DD' 문자열로 변환

    datetime이 전달되면 날짜 부분만 사용.

    Example:
        >>> to_iso_date(date(2024, 1, 3))
        '2024-01-03'
    """
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def parse_iso_date(value: str) -> date:
    """'YYYY-MM-DD' (또는 ISO datetime) 문자열을 date로 변환"""
    return date.fromisoformat(value[:10])


def parse_iso_datetime(value: str | None) -> datetime | None:
    """ISO datetime 문자열을 UTC datetime으로 변환

    naive 값은 UTC로 간주.
    """
    if not value:
        return None
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def day_before(value: date) -> date:
    """전일"""
    return value - timedelta(days=1)


def days_between(earlier: date, later: date) -> int:
    """두 날짜 사이의 일수 (later - earlier)"""
    return (later - earlier).days
