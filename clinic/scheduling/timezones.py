import datetime as dt
from functools import cache
from zoneinfo import ZoneInfo

CLINIC_TIMEZONE = "America/Los_Angeles"


@cache
def clinic_zone() -> ZoneInfo:
    """The clinic's fixed timezone, DST rules included."""
    return ZoneInfo(CLINIC_TIMEZONE)


def to_clinic_local(value: dt.datetime, *, is_utc: bool = False) -> dt.datetime:
    """Return ``value`` as naive clinic wall-clock time.

    With ``is_utc`` a naive ``value`` is read as UTC and converted. Without it
    a naive ``value`` is already clinic-local and is returned unchanged. An
    aware ``value`` carries its own offset and is always converted.
    """
    if is_utc and value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    if value.tzinfo is None:
        return value
    return value.astimezone(clinic_zone()).replace(tzinfo=None)
