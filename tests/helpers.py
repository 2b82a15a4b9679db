import datetime as dt
from collections.abc import Iterable

from clinic.domain.models import Patient, StaffRole, StaffUser
from clinic.records.adapters.memory import InMemoryClinicStore

# Monday; the week of 2026-10-19 is on Pacific Daylight Time.
MONDAY = dt.date(2026, 10, 19)
TUESDAY = dt.date(2026, 10, 20)
SATURDAY = dt.date(2026, 10, 24)
SUNDAY = dt.date(2026, 10, 25)
FIXED_NOW = dt.datetime(2026, 10, 19, 18, 0, tzinfo=dt.timezone.utc)


def at(day: dt.date, hour: int, minute: int = 0) -> dt.datetime:
    """Naive clinic wall-clock datetime."""
    return dt.datetime.combine(day, dt.time(hour, minute))


def seed_records(
    store: InMemoryClinicStore,
    *,
    patient_ids: Iterable[str] = (),
    staff_ids: Iterable[str] = (),
) -> None:
    """Put patients and staff users with the given IDs straight into the store."""
    for patient_id in patient_ids:
        store.patients[patient_id] = Patient(
            patient_id=patient_id,
            first_name="Pat",
            last_name=patient_id,
            date_of_birth=dt.date(1985, 6, 1),
        )
    for user_id in staff_ids:
        store.staff_users[user_id] = StaffUser(
            user_id=user_id,
            full_name=f"Staff {user_id}",
            email=f"{user_id}@clinic.test",
            username=user_id,
            role=StaffRole.DOCTOR,
        )
