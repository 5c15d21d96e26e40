"""
날짜/시간 유틸.

DB에는 naive UTC datetime으로 저장한다 (PyMongo 기본 동작).
"오늘"의 경계는 설정된 TIMEZONE 기준 자정 ~ 다음 자정.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Tuple
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    # Mongo는 밀리초 단위까지만 저장하므로 미리 잘라둔다
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def _to_naive_utc(local: datetime) -> datetime:
    return local.astimezone(timezone.utc).replace(tzinfo=None)


def date_bounds(day: date, tz_name: str = "UTC") -> Tuple[datetime, datetime]:
    """calendar day -> (자정, 다음날 자정) naive UTC"""
    tz = ZoneInfo(tz_name)
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return _to_naive_utc(start), _to_naive_utc(end)


def local_date(moment: datetime, tz_name: str = "UTC") -> date:
    return moment.replace(tzinfo=timezone.utc).astimezone(ZoneInfo(tz_name)).date()


def day_bounds(moment: datetime, tz_name: str = "UTC") -> Tuple[datetime, datetime]:
    """moment(naive UTC)가 속한 하루의 경계"""
    return date_bounds(local_date(moment, tz_name), tz_name)


def round_hours(delta: timedelta) -> float:
    return round(delta.total_seconds() / 3600, 2)
