# src/task_companion/parsing/time_context.py

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..core.errors import InvalidInputError


@dataclass(frozen=True, slots=True)
class TimeContext:
    """
    One "now" snapshot shared by every stage of a single parse.

    Relative phrases ("tomorrow", "next Friday") are resolved against it,
    and past dates are pushed forward relative to it.
    """

    now: datetime
    tz_label: str
    utc_offset_minutes: int

    @property
    def today(self) -> date:
        return self.now.date()

    @property
    def tomorrow(self) -> date:
        return self.today + timedelta(days=1)


def _resolve_zone(tz_name: str | None) -> tzinfo | None:
    if not tz_name:
        return None
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidInputError(f"Unknown time zone: {tz_name!r}") from e


def current_context(
    *,
    tz_name: str | None = None,
    clock: Callable[[], datetime] | None = None,
) -> TimeContext:
    """
    Capture the current date/time/timezone.

    tz_name is an IANA zone name; without it the system local zone is used.
    clock lets tests pin "now"; a naive result is taken as wall time in the zone.
    """
    zone = _resolve_zone(tz_name)

    if clock is None:
        now = datetime.now(zone) if zone is not None else datetime.now().astimezone()
    else:
        now = clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=zone) if zone is not None else now.astimezone()
        elif zone is not None:
            now = now.astimezone(zone)

    offset = now.utcoffset()
    offset_minutes = int(offset.total_seconds() // 60) if offset is not None else 0

    if tz_name:
        label = tz_name
    else:
        label = now.tzname() or "Local"

    return TimeContext(now=now.replace(microsecond=0), tz_label=label, utc_offset_minutes=offset_minutes)
