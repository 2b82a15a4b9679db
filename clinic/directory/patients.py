import datetime as dt
from typing import Callable

from loguru import logger

from clinic.domain.exceptions import (
    PatientInUseError,
    RecordNotFoundError,
    RecordStoreUnavailableError,
)
from clinic.domain.models import (
    NoteRequest,
    Patient,
    PatientNote,
    PatientRequest,
    PatientSummary,
)
from clinic.records.ports import ClinicStoreProtocol
from clinic.scheduling.timezones import to_clinic_local


def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class PatientService:
    """Patient records and the notes attached to them."""

    def __init__(
        self,
        store: ClinicStoreProtocol,
        clock: Callable[[], dt.datetime] = _utc_now,
    ) -> None:
        self._store = store
        self._clock = clock

    async def list_patients(self) -> list[Patient]:
        try:
            return await self._store.list_patients()
        except RecordStoreUnavailableError:
            raise
        except Exception as exc:
            raise RecordStoreUnavailableError(f"Patient listing failed: {exc}") from exc

    async def get_patient(self, patient_id: str) -> Patient:
        try:
            patient = await self._store.get_patient(patient_id)
        except RecordStoreUnavailableError:
            raise
        except Exception as exc:
            raise RecordStoreUnavailableError(f"Patient lookup failed: {exc}") from exc

        if patient is None:
            raise RecordNotFoundError("Patient", patient_id)
        return patient

    async def create_patient(self, request: PatientRequest) -> Patient:
        logger.info("Registering patient")
        try:
            patient = await self._store.persist_patient(Patient(**request.model_dump()))
        except RecordStoreUnavailableError:
            raise
        except Exception as exc:
            raise RecordStoreUnavailableError(f"Patient write failed: {exc}") from exc

        logger.info("Patient registered: id={}", patient.patient_id)
        return patient

    async def delete_patient(self, patient_id: str) -> None:
        """Delete a patient and their notes. Refused while appointments reference them."""
        await self.get_patient(patient_id)
        try:
            appointments = await self._store.fetch_appointments_for_patient(patient_id)
            if appointments:
                raise PatientInUseError(patient_id, len(appointments))
            await self._store.delete_patient(patient_id)
        except (PatientInUseError, RecordStoreUnavailableError):
            raise
        except Exception as exc:
            raise RecordStoreUnavailableError(f"Patient delete failed: {exc}") from exc

        logger.info("Patient deleted: id={}", patient_id)

    async def add_note(self, patient_id: str, request: NoteRequest) -> PatientNote:
        """Attach a note written by an existing staff user to an existing patient."""
        await self.get_patient(patient_id)
        try:
            author = await self._store.get_staff_user(request.author_user_id)
        except RecordStoreUnavailableError:
            raise
        except Exception as exc:
            raise RecordStoreUnavailableError(f"Staff lookup failed: {exc}") from exc
        if author is None:
            raise RecordNotFoundError("Staff user", request.author_user_id)

        note = PatientNote(
            patient_id=patient_id,
            author_user_id=request.author_user_id,
            appointment_id=request.appointment_id,
            text=request.text,
            created_at=self._clock(),
        )
        try:
            saved = await self._store.persist_note(note)
        except RecordStoreUnavailableError:
            raise
        except Exception as exc:
            raise RecordStoreUnavailableError(f"Note write failed: {exc}") from exc

        logger.info("Note {} added for patient {}", saved.note_id, patient_id)
        return saved

    async def get_patient_summary(self, patient_id: str) -> PatientSummary:
        """A patient with appointments oldest-first and notes newest-first."""
        patient = await self.get_patient(patient_id)
        try:
            appointments = await self._store.fetch_appointments_for_patient(patient_id)
            notes = await self._store.list_notes_for_patient(patient_id)
        except RecordStoreUnavailableError:
            raise
        except Exception as exc:
            raise RecordStoreUnavailableError(f"Patient summary failed: {exc}") from exc

        return PatientSummary(
            patient=patient,
            appointments=sorted(appointments, key=lambda a: to_clinic_local(a.starts_at)),
            notes=sorted(notes, key=lambda n: n.created_at, reverse=True),
        )
