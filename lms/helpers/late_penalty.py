from datetime import datetime, timezone
from typing import Optional


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_late(submitted_at: datetime, deadline: Optional[datetime]) -> bool:
    if deadline is None or submitted_at is None:
        return False
    return _as_utc(submitted_at) > _as_utc(deadline)


def apply_late_penalty(
    raw_grade: float,
    submitted_at: datetime,
    deadline: Optional[datetime],
    late_penalty_percentage: float,
) -> float:
    """
    Final grade for an assignment submission.

    Late submissions lose `late_penalty_percentage` percent of the raw grade.
    The result never drops below 0 and never exceeds the raw grade.
    """
    if not late_penalty_percentage or not is_late(submitted_at, deadline):
        return raw_grade

    penalty = raw_grade * late_penalty_percentage / 100
    return max(0, raw_grade - penalty)
