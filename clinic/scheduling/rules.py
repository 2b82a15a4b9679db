import datetime as dt

from clinic.domain.models import RejectionReason
from clinic.scheduling.timezones import to_clinic_local

OPEN_TIME = dt.time(8, 0)
CLOSE_TIME = dt.time(17, 0)
MIN_DURATION_MINUTES = 1
MAX_DURATION_MINUTES = 12 * 60

_SATURDAY = 5


def validate_window(
    starts_at: dt.datetime,
    duration_minutes: int,
    is_utc: bool = False,
) -> tuple[bool, RejectionReason | None]:
    """Check a proposed slot against the clinic's business window.

    Args:
        starts_at: Proposed start time.
        duration_minutes: Proposed length, 1-720 minutes.
        is_utc: Whether ``starts_at`` is UTC. When False a naive ``starts_at``
            is taken as clinic wall-clock time as-is.

    Returns:
        ``(True, None)`` when the slot is bookable, otherwise
        ``(False, reason)``.
    """
    if (
        isinstance(duration_minutes, bool)
        or not isinstance(duration_minutes, int)
        or not MIN_DURATION_MINUTES <= duration_minutes <= MAX_DURATION_MINUTES
    ):
        return False, RejectionReason.DURATION_OUT_OF_BOUNDS

    local_start = to_clinic_local(starts_at, is_utc=is_utc)
    local_end = local_start + dt.timedelta(minutes=duration_minutes)

    if local_start.weekday() >= _SATURDAY:
        return False, RejectionReason.CLOSED_ON_WEEKENDS

    if local_end.date() != local_start.date():
        return False, RejectionReason.OUTSIDE_CLINIC_HOURS

    if local_start.time() < OPEN_TIME or local_end.time() > CLOSE_TIME:
        return False, RejectionReason.OUTSIDE_CLINIC_HOURS

    return True, None
