"""Reset scheduling: calendar boundaries and the reset-due check.

Boundaries fall at local midnight (or the top of an hour) in the configured
reset timezone. Weeks start on Monday; quarters start in January, April,
July, and October.
"""

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional

from usagekit.domains.usage.types import ResetDecision
from usagekit.schemas.feature import ResetCadence


def _as_aware(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _local_midnight(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time(0), tzinfo=tz)


def next_boundary(
    reference_time: datetime,
    cadence: Optional[ResetCadence],
    tz: tzinfo = timezone.utc,
) -> datetime:
    """Return the first boundary of *cadence* strictly after *reference_time*.

    Boundaries are computed in *tz* and returned in UTC. ``never`` (or no
    cadence) returns *reference_time* unchanged; callers are expected to
    special-case it.
    """
    if cadence is None or cadence == ResetCadence.NEVER:
        return reference_time
    return _local_boundary(reference_time, cadence, tz).astimezone(timezone.utc)


def _local_boundary(reference_time: datetime, cadence: ResetCadence, tz: tzinfo) -> datetime:
    local = _as_aware(reference_time).astimezone(tz)
    today = local.date()

    if cadence == ResetCadence.HOURLY:
        top = local.replace(minute=0, second=0, microsecond=0)
        # absolute +1h so DST transitions can't produce a wall-clock hour at or before local
        return top.astimezone(timezone.utc) + timedelta(hours=1)

    if cadence == ResetCadence.SIX_HOURLY:
        next_block = (local.hour // 6) * 6 + 6
        if next_block >= 24:
            return _local_midnight(today + timedelta(days=1), tz)
        return datetime.combine(today, time(next_block), tzinfo=tz)

    if cadence == ResetCadence.DAILY:
        return _local_midnight(today + timedelta(days=1), tz)

    if cadence == ResetCadence.WEEKLY:
        # Monday rolls a full week forward
        return _local_midnight(today + timedelta(days=7 - today.weekday()), tz)

    if cadence == ResetCadence.MONTHLY:
        if today.month == 12:
            return _local_midnight(date(today.year + 1, 1, 1), tz)
        return _local_midnight(date(today.year, today.month + 1, 1), tz)

    if cadence == ResetCadence.QUARTERLY:
        next_quarter_month = ((today.month - 1) // 3) * 3 + 4
        if next_quarter_month > 12:
            return _local_midnight(date(today.year + 1, 1, 1), tz)
        return _local_midnight(date(today.year, next_quarter_month, 1), tz)

    if cadence == ResetCadence.YEARLY:
        return _local_midnight(date(today.year + 1, 1, 1), tz)

    raise ValueError(f"Unsupported reset cadence: {cadence}")


def is_due(
    last_boundary: Optional[datetime],
    cadence: Optional[ResetCadence],
    now: datetime,
    tz: tzinfo = timezone.utc,
) -> ResetDecision:
    """Decide whether a reset is due for a stream.

    The stream's last recorded boundary is compared against the *upcoming*
    boundary relative to *now*. The ledger records that upcoming boundary on
    the reset row, so a reset comes due once per period.

    The marker belongs to whichever cadence was in effect when it was
    written. After a cadence change (say a customer override moving a stream
    from yearly to monthly) nothing is due until *now*'s upcoming boundary
    passes the stored marker, so the new cadence takes effect at the old
    cadence's next boundary. Markers never move backwards.
    """
    if cadence is None or cadence == ResetCadence.NEVER:
        return ResetDecision(due=False)

    now = _as_aware(now)
    upcoming = next_boundary(now, cadence, tz)
    while upcoming <= now:
        upcoming = next_boundary(upcoming, cadence, tz)

    due = last_boundary is None or _as_aware(last_boundary) < upcoming
    return ResetDecision(due=due, upcoming_boundary=upcoming)
