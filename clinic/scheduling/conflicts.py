import datetime as dt
from collections.abc import Iterable

from clinic.domain.models import Appointment, TimeWindow
from clinic.scheduling.timezones import to_clinic_local


def find_conflict(
    staff_user_id: str,
    candidate_start: dt.datetime,
    candidate_end: dt.datetime,
    existing: Iterable[Appointment],
    exclude_id: str | None = None,
) -> Appointment | None:
    """Return the first appointment of ``staff_user_id`` overlapping the candidate.

    Appointments of other staff members are ignored, as is the appointment
    whose id equals ``exclude_id`` (the one being updated).
    """
    candidate = TimeWindow(
        start=to_clinic_local(candidate_start),
        end=to_clinic_local(candidate_end),
    )
    for appointment in existing:
        if appointment.staff_user_id != staff_user_id:
            continue
        if exclude_id is not None and appointment.appointment_id == exclude_id:
            continue
        booked = TimeWindow.from_duration(
            to_clinic_local(appointment.starts_at), appointment.duration_minutes
        )
        if candidate.overlaps(booked):
            return appointment
    return None


def has_conflict(
    staff_user_id: str,
    candidate_start: dt.datetime,
    candidate_end: dt.datetime,
    existing: Iterable[Appointment],
    exclude_id: str | None = None,
) -> bool:
    return (
        find_conflict(staff_user_id, candidate_start, candidate_end, existing, exclude_id)
        is not None
    )
