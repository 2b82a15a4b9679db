import asyncio
import weakref
from collections import defaultdict
from itertools import count

from loguru import logger

from clinic.domain.models import Appointment, Patient, PatientNote, StaffUser


class InMemoryClinicStore:
    """Dict-backed implementation of the ClinicStoreProtocol protocol.

    IDs are assigned from per-kind counters as decimal strings. Records are
    immutable models, so handing them out needs no copying.

    Set ``fetch_error`` to make appointment calendar reads raise, or
    ``persist_error`` to make every write raise; after calls, ``persisted``
    lists every appointment written, in order.
    """

    def __init__(self) -> None:
        self.appointments: dict[str, Appointment] = {}
        self.patients: dict[str, Patient] = {}
        self.notes: dict[str, PatientNote] = {}
        self.staff_users: dict[str, StaffUser] = {}
        self.persisted: list[Appointment] = []
        self.closed: bool = False

        self.fetch_error: Exception | None = None
        self.persist_error: Exception | None = None

        self._ids: defaultdict[str, count[int]] = defaultdict(lambda: count(1))
        # Entries vanish once no caller holds or waits on the lock.
        self._staff_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _next_id(self, kind: str) -> str:
        return str(next(self._ids[kind]))

    def _check_write(self) -> None:
        if self.persist_error:
            raise self.persist_error

    async def fetch_appointments_for_staff(self, staff_user_id: str) -> list[Appointment]:
        if self.fetch_error:
            raise self.fetch_error
        return [a for a in self.appointments.values() if a.staff_user_id == staff_user_id]

    async def fetch_appointments_for_patient(self, patient_id: str) -> list[Appointment]:
        return [a for a in self.appointments.values() if a.patient_id == patient_id]

    async def get_appointment(self, appointment_id: str) -> Appointment | None:
        return self.appointments.get(appointment_id)

    async def persist_appointment(self, appointment: Appointment) -> Appointment:
        self._check_write()
        appointment_id = appointment.appointment_id
        if appointment_id is None:
            appointment_id = self._next_id("appointment")
            appointment = appointment.model_copy(update={"appointment_id": appointment_id})
        self.appointments[appointment_id] = appointment
        self.persisted.append(appointment)
        return appointment

    def staff_lock(self, staff_user_id: str) -> asyncio.Lock:
        lock = self._staff_locks.get(staff_user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._staff_locks[staff_user_id] = lock
        return lock

    async def list_patients(self) -> list[Patient]:
        return list(self.patients.values())

    async def get_patient(self, patient_id: str) -> Patient | None:
        return self.patients.get(patient_id)

    async def persist_patient(self, patient: Patient) -> Patient:
        self._check_write()
        patient_id = patient.patient_id
        if patient_id is None:
            patient_id = self._next_id("patient")
            patient = patient.model_copy(update={"patient_id": patient_id})
        self.patients[patient_id] = patient
        return patient

    async def delete_patient(self, patient_id: str) -> None:
        self._check_write()
        self.patients.pop(patient_id, None)
        self.notes = {k: n for k, n in self.notes.items() if n.patient_id != patient_id}

    async def list_notes_for_patient(self, patient_id: str) -> list[PatientNote]:
        return [n for n in self.notes.values() if n.patient_id == patient_id]

    async def persist_note(self, note: PatientNote) -> PatientNote:
        self._check_write()
        note_id = note.note_id
        if note_id is None:
            note_id = self._next_id("note")
            note = note.model_copy(update={"note_id": note_id})
        self.notes[note_id] = note
        return note

    async def list_staff_users(self) -> list[StaffUser]:
        return list(self.staff_users.values())

    async def get_staff_user(self, user_id: str) -> StaffUser | None:
        return self.staff_users.get(user_id)

    async def persist_staff_user(self, user: StaffUser) -> StaffUser:
        self._check_write()
        user_id = user.user_id
        if user_id is None:
            user_id = self._next_id("user")
            user = user.model_copy(update={"user_id": user_id})
        self.staff_users[user_id] = user
        return user

    async def health_check(self) -> bool:
        return not self.closed

    async def close(self) -> None:
        self.closed = True
        logger.info("In-memory record store closed")
