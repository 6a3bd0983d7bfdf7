"""Upcoming-appointment and overview projections for the dashboards.

Appointment dates are calendar days persisted as instants. Every read of the
day goes through UTC components so a server running in a negative offset
never shows the appointment one day early.
"""

import re
from datetime import date, datetime, time, timezone
from typing import Iterable, List, Mapping, Optional

from ..exceptions import ViewerNotAuthorized
from ..models.app import RoleType, ViewerContext

NO_DATE_MARKER = "Fecha no disp."
DEFAULT_OVERVIEW_LIMIT = 10
# zero-padded 24h clock, as the front desk form writes it
START_TIME_RE = re.compile(r"\d{2}:\d{2}")


def calendar_date(value) -> Optional[date]:
    """Return the UTC calendar day of `value`, or None when it has no usable date.

    Naive datetimes are read as UTC. Strings must be ISO-8601.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            return calendar_date(datetime.fromisoformat(raw))
        except ValueError:
            return None
    return None


def parse_start_time(value) -> Optional[time]:
    if isinstance(value, time):
        return value
    if not isinstance(value, str):
        return None
    value = value.strip()
    # strptime alone would take "9:5"
    if not START_TIME_RE.fullmatch(value):
        return None
    try:
        return datetime.strptime(value, "%H:%M").time()
    except ValueError:
        return None


def effective_instant(record: Mapping, tz=timezone.utc) -> Optional[datetime]:
    """Point in time an appointment starts, used for filtering and ordering.

    The calendar day is combined with `start_time` read in `tz`. A missing or
    malformed start time falls back to midnight UTC of that day. Returns None
    when the record has no date at all.
    """
    day = calendar_date(record.get("date"))
    if day is None:
        return None
    start = parse_start_time(record.get("start_time"))
    if start is None:
        return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
    return datetime.combine(day, start.replace(tzinfo=None), tzinfo=tz)


def format_display_date(value) -> Optional[str]:
    day = calendar_date(value)
    if day is None:
        return None
    return f"{day.day:02d}-{day.month:02d}-{day.year:04d}"


def scope_records(records: Iterable[Mapping], viewer: ViewerContext) -> List[Mapping]:
    """Keep the records owned by `viewer`; administrators see everything.

    Ids are compared as strings so an int primary key matches a string id
    coming from a session or token.
    """
    if viewer is None:
        raise ViewerNotAuthorized()

    if viewer.role == RoleType.ADMIN:
        return list(records)

    if viewer.role == RoleType.DOCTOR:
        key, owner = "doctor_id", viewer.doctor_id
    elif viewer.role == RoleType.PATIENT:
        key, owner = "patient_id", viewer.patient_id
    else:
        raise ViewerNotAuthorized()

    if owner is None or str(owner) == "":
        raise ViewerNotAuthorized()

    owner = str(owner)
    return [r for r in records if r.get(key) is not None and str(r.get(key)) == owner]


def project_upcoming(
    records: Iterable[Mapping],
    viewer: ViewerContext,
    now: Optional[datetime] = None,
    tz=timezone.utc,
) -> List[dict]:
    """Appointments of `viewer` that have not started yet, soonest first.

    Each result is a new dict carrying a `display_date` (DD-MM-YYYY); the
    input records are left untouched. Ties keep their input order.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    upcoming = []
    for record in scope_records(records, viewer):
        instant = effective_instant(record, tz)
        if instant is None or instant < now:
            continue
        upcoming.append((instant, record))

    # sorted() is stable, so equal instants keep input order
    upcoming = sorted(upcoming, key=lambda pair: pair[0])
    return [
        {**record, "display_date": format_display_date(record.get("date"))}
        for _, record in upcoming
    ]


def latest(items, limit: int = DEFAULT_OVERVIEW_LIMIT) -> list:
    """Last `limit` items by storage order, most recent first."""
    items = list(items)
    if limit <= 0:
        return []
    return items[-limit:][::-1]


def project_overview(records: Iterable[Mapping], limit: int = DEFAULT_OVERVIEW_LIMIT) -> List[dict]:
    """Most recently stored appointments for the admin dashboard.

    Selection is by position, not by date. Records without a date are kept
    and shown with a placeholder.
    """
    return [
        {**record, "display_date": format_display_date(record.get("date")) or NO_DATE_MARKER}
        for record in latest(records, limit)
    ]
