from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol

from clinic.domain.models import (
    Appointment,
    AppointmentRequest,
    Patient,
    PatientNote,
    SchedulingDecision,
    StaffUser,
)


class AbstractSchedulingService(ABC):
    """Abstract base class for appointment scheduling."""

    @abstractmethod
    async def create_appointment(
        self, request: AppointmentRequest, *, is_utc: bool = False
    ) -> SchedulingDecision:
        """Schedule a new appointment.

        Args:
            request: The proposed appointment.
            is_utc: Whether ``request.starts_at`` is UTC rather than clinic
                wall-clock time.

        Returns:
            An accepted decision carrying the persisted appointment, or a
            rejected decision carrying the reason.

        Raises:
            RecordNotFoundError: If the patient or staff user does not exist.
            RecordStoreUnavailableError: If the record store is unreachable.
        """

    @abstractmethod
    async def update_appointment(
        self, appointment_id: str, request: AppointmentRequest, *, is_utc: bool = False
    ) -> SchedulingDecision:
        """Replace an existing appointment with new values, re-validating in full.

        Args:
            appointment_id: The appointment's unique ID.
            request: The new values, possibly assigning a different staff member.
            is_utc: Whether ``request.starts_at`` is UTC.

        Returns:
            An accepted or rejected decision, as for ``create_appointment``.

        Raises:
            RecordNotFoundError: If the appointment, patient or staff user does
                not exist.
            RecordStoreUnavailableError: If the record store is unreachable.
        """

    @abstractmethod
    async def get_appointment(self, appointment_id: str) -> Appointment:
        """Fetch one appointment.

        Raises:
            RecordNotFoundError: If the appointment does not exist.
            RecordStoreUnavailableError: If the record store is unreachable.
        """

    @abstractmethod
    async def list_staff_appointments(self, staff_user_id: str) -> list[Appointment]:
        """Return a staff member's appointments ordered by start time."""


class ClinicStoreProtocol(Protocol):
    """Record store the clinic services read from and write to."""

    async def fetch_appointments_for_staff(self, staff_user_id: str) -> list[Appointment]:
        """All appointments assigned to a staff member."""
        ...

    async def fetch_appointments_for_patient(self, patient_id: str) -> list[Appointment]:
        """All appointments booked for a patient."""
        ...

    async def get_appointment(self, appointment_id: str) -> Appointment | None:
        """One appointment, or None if missing."""
        ...

    async def persist_appointment(self, appointment: Appointment) -> Appointment:
        """Insert (assigning an ID) or replace an appointment."""
        ...

    def staff_lock(self, staff_user_id: str) -> AbstractAsyncContextManager[Any]:
        """Serialize check-then-write sequences on one staff member's calendar."""
        ...

    async def list_patients(self) -> list[Patient]:
        ...

    async def get_patient(self, patient_id: str) -> Patient | None:
        ...

    async def persist_patient(self, patient: Patient) -> Patient:
        ...

    async def delete_patient(self, patient_id: str) -> None:
        """Delete a patient together with their notes."""
        ...

    async def list_notes_for_patient(self, patient_id: str) -> list[PatientNote]:
        ...

    async def persist_note(self, note: PatientNote) -> PatientNote:
        ...

    async def list_staff_users(self) -> list[StaffUser]:
        ...

    async def get_staff_user(self, user_id: str) -> StaffUser | None:
        ...

    async def persist_staff_user(self, user: StaffUser) -> StaffUser:
        ...

    async def health_check(self) -> bool:
        """Check if the record store is reachable."""
        ...

    async def close(self) -> None:
        """Release resources."""
        ...
