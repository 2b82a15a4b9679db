from loguru import logger

from clinic.domain.exceptions import RecordNotFoundError, RecordStoreUnavailableError
from clinic.domain.models import (
    Appointment,
    AppointmentRequest,
    AppointmentStatus,
    RejectionReason,
    SchedulingDecision,
)
from clinic.records.ports import AbstractSchedulingService, ClinicStoreProtocol
from clinic.scheduling.conflicts import find_conflict
from clinic.scheduling.rules import validate_window
from clinic.scheduling.timezones import to_clinic_local


class SchedulingService(AbstractSchedulingService):
    """Runs the business-window and conflict rules before handing off to the store."""

    def __init__(self, store: ClinicStoreProtocol) -> None:
        self._store = store

    async def create_appointment(
        self, request: AppointmentRequest, *, is_utc: bool = False
    ) -> SchedulingDecision:
        logger.info(
            "Scheduling request: staff={}, starts_at={}, duration={}, utc={}",
            request.staff_user_id,
            request.starts_at,
            request.duration_minutes,
            is_utc,
        )
        rejection = _check_window(request, is_utc)
        if rejection is not None:
            return rejection

        await self._ensure_references(request)
        candidate = _canonical(request, is_utc, default_status=AppointmentStatus.SCHEDULED)
        return await self._book(candidate, exclude_id=None)

    async def update_appointment(
        self, appointment_id: str, request: AppointmentRequest, *, is_utc: bool = False
    ) -> SchedulingDecision:
        logger.info(
            "Rescheduling appointment {}: staff={}, starts_at={}, duration={}, utc={}",
            appointment_id,
            request.staff_user_id,
            request.starts_at,
            request.duration_minutes,
            is_utc,
        )
        rejection = _check_window(request, is_utc)
        if rejection is not None:
            return rejection

        current = await self.get_appointment(appointment_id)
        await self._ensure_references(request)
        candidate = _canonical(request, is_utc, default_status=current.status).model_copy(
            update={"appointment_id": appointment_id}
        )
        return await self._book(candidate, exclude_id=appointment_id)

    async def get_appointment(self, appointment_id: str) -> Appointment:
        try:
            appointment = await self._store.get_appointment(appointment_id)
        except RecordStoreUnavailableError:
            raise
        except Exception as exc:
            raise RecordStoreUnavailableError(f"Appointment lookup failed: {exc}") from exc

        if appointment is None:
            raise RecordNotFoundError("Appointment", appointment_id)
        return appointment

    async def list_staff_appointments(self, staff_user_id: str) -> list[Appointment]:
        appointments = await self._fetch_for_staff(staff_user_id)
        return sorted(appointments, key=lambda a: to_clinic_local(a.starts_at))

    async def _ensure_references(self, request: AppointmentRequest) -> None:
        """Raise RecordNotFoundError unless the patient and staff user both exist."""
        try:
            patient = await self._store.get_patient(request.patient_id)
            staff_user = await self._store.get_staff_user(request.staff_user_id)
        except RecordStoreUnavailableError:
            raise
        except Exception as exc:
            raise RecordStoreUnavailableError(f"Reference lookup failed: {exc}") from exc

        if patient is None:
            raise RecordNotFoundError("Patient", request.patient_id)
        if staff_user is None:
            raise RecordNotFoundError("Staff user", request.staff_user_id)

    async def _book(self, candidate: Appointment, *, exclude_id: str | None) -> SchedulingDecision:
        """Conflict-check against the assignee's calendar and persist, under the staff lock."""
        async with self._store.staff_lock(candidate.staff_user_id):
            existing = await self._fetch_for_staff(candidate.staff_user_id)
            clash = find_conflict(
                candidate.staff_user_id,
                candidate.starts_at,
                candidate.ends_at,
                existing,
                exclude_id=exclude_id,
            )
            if clash is not None:
                logger.info(
                    "Scheduling request rejected: overlaps appointment {} for staff {}",
                    clash.appointment_id,
                    candidate.staff_user_id,
                )
                return SchedulingDecision.reject(RejectionReason.STAFF_CONFLICT)

            saved = await self._persist(candidate)

        logger.info("Appointment scheduled: id={}", saved.appointment_id)
        return SchedulingDecision.accept(saved)

    async def _fetch_for_staff(self, staff_user_id: str) -> list[Appointment]:
        try:
            return await self._store.fetch_appointments_for_staff(staff_user_id)
        except RecordStoreUnavailableError:
            raise
        except Exception as exc:
            raise RecordStoreUnavailableError(f"Staff calendar fetch failed: {exc}") from exc

    async def _persist(self, appointment: Appointment) -> Appointment:
        try:
            return await self._store.persist_appointment(appointment)
        except RecordStoreUnavailableError:
            raise
        except Exception as exc:
            raise RecordStoreUnavailableError(f"Appointment write failed: {exc}") from exc


def _check_window(request: AppointmentRequest, is_utc: bool) -> SchedulingDecision | None:
    ok, reason = validate_window(request.starts_at, request.duration_minutes, is_utc)
    if ok or reason is None:
        return None
    logger.info("Scheduling request rejected: {}", reason.value)
    return SchedulingDecision.reject(reason)


def _canonical(
    request: AppointmentRequest, is_utc: bool, *, default_status: AppointmentStatus
) -> Appointment:
    """Build the record to persist: clinic wall-clock start, status defaulted."""
    return Appointment(
        patient_id=request.patient_id,
        staff_user_id=request.staff_user_id,
        starts_at=to_clinic_local(request.starts_at, is_utc=is_utc),
        duration_minutes=request.duration_minutes,
        reason=request.reason,
        status=request.status or default_status,
    )
