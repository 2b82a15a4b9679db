import datetime as dt

import pytest

from clinic.directory.patients import PatientService
from clinic.domain.exceptions import (
    PatientInUseError,
    RecordNotFoundError,
    RecordStoreUnavailableError,
)
from clinic.domain.models import Appointment, NoteRequest, Patient, PatientRequest
from clinic.records.adapters.memory import InMemoryClinicStore
from tests.helpers import FIXED_NOW, MONDAY, TUESDAY, at, seed_records

# Fixtures (store, patients) provided by tests/conftest.py


@pytest.fixture
def jane() -> PatientRequest:
    return PatientRequest(
        first_name="Jane",
        last_name="Doe",
        date_of_birth=dt.date(1990, 1, 5),
        email="jane@example.test",
    )


@pytest.fixture(autouse=True)
def _note_author(store: InMemoryClinicStore) -> None:
    seed_records(store, staff_ids=["u1"])


async def _book(store: InMemoryClinicStore, patient_id: str, starts_at: dt.datetime) -> None:
    await store.persist_appointment(
        Appointment(
            patient_id=patient_id,
            staff_user_id="s1",
            starts_at=starts_at,
            duration_minutes=30,
        )
    )


class TestCreateAndFetch:
    @pytest.mark.asyncio
    async def test_create_assigns_id(self, patients: PatientService, jane: PatientRequest) -> None:
        patient = await patients.create_patient(jane)

        assert patient.patient_id == "1"
        assert patient.full_name == "Jane Doe"
        assert await patients.get_patient("1") == patient
        assert await patients.list_patients() == [patient]

    @pytest.mark.asyncio
    async def test_unknown_patient_raises(self, patients: PatientService) -> None:
        with pytest.raises(RecordNotFoundError, match="Patient 9 not found"):
            await patients.get_patient("9")


class TestDeletePatient:
    @pytest.mark.asyncio
    async def test_removes_patient_and_notes(
        self, patients: PatientService, store: InMemoryClinicStore, jane: PatientRequest
    ) -> None:
        patient = await patients.create_patient(jane)
        assert patient.patient_id is not None
        await patients.add_note(patient.patient_id, NoteRequest(author_user_id="u1", text="Hi"))

        await patients.delete_patient(patient.patient_id)

        assert store.patients == {}
        assert store.notes == {}

    @pytest.mark.asyncio
    async def test_refused_while_appointments_exist(
        self, patients: PatientService, store: InMemoryClinicStore, jane: PatientRequest
    ) -> None:
        patient = await patients.create_patient(jane)
        assert patient.patient_id is not None
        await _book(store, patient.patient_id, at(MONDAY, 10))

        with pytest.raises(PatientInUseError, match="1 appointment"):
            await patients.delete_patient(patient.patient_id)

        assert patient.patient_id in store.patients


class TestNotes:
    @pytest.mark.asyncio
    async def test_note_is_stamped_by_clock(
        self, patients: PatientService, jane: PatientRequest
    ) -> None:
        patient = await patients.create_patient(jane)
        assert patient.patient_id is not None

        note = await patients.add_note(
            patient.patient_id,
            NoteRequest(author_user_id="u1", text="Follow up in two weeks", appointment_id="4"),
        )

        assert note.note_id == "1"
        assert note.created_at == FIXED_NOW
        assert note.appointment_id == "4"

    @pytest.mark.asyncio
    async def test_note_for_unknown_patient_raises(self, patients: PatientService) -> None:
        with pytest.raises(RecordNotFoundError):
            await patients.add_note("9", NoteRequest(author_user_id="u1", text="Hi"))

    @pytest.mark.asyncio
    async def test_note_by_unknown_author_raises(
        self, patients: PatientService, store: InMemoryClinicStore, jane: PatientRequest
    ) -> None:
        patient = await patients.create_patient(jane)
        assert patient.patient_id is not None

        with pytest.raises(RecordNotFoundError, match="Staff user ghost not found"):
            await patients.add_note(
                patient.patient_id, NoteRequest(author_user_id="ghost", text="Hi")
            )

        assert store.notes == {}


class TestPatientSummary:
    @pytest.mark.asyncio
    async def test_orders_appointments_and_notes(
        self, store: InMemoryClinicStore, jane: PatientRequest
    ) -> None:
        times = iter(
            [
                dt.datetime(2026, 10, 1, tzinfo=dt.timezone.utc),
                dt.datetime(2026, 10, 2, tzinfo=dt.timezone.utc),
            ]
        )
        patients = PatientService(store, clock=lambda: next(times))
        patient = await patients.create_patient(jane)
        assert patient.patient_id is not None
        await _book(store, patient.patient_id, at(TUESDAY, 9))
        await _book(store, patient.patient_id, at(MONDAY, 9))
        await _book(store, "someone-else", at(MONDAY, 11))
        await patients.add_note(patient.patient_id, NoteRequest(author_user_id="u1", text="old"))
        await patients.add_note(patient.patient_id, NoteRequest(author_user_id="u1", text="new"))

        summary = await patients.get_patient_summary(patient.patient_id)

        assert summary.patient == patient
        assert [a.starts_at for a in summary.appointments] == [at(MONDAY, 9), at(TUESDAY, 9)]
        assert [n.text for n in summary.notes] == ["new", "old"]


class TestStoreErrors:
    @pytest.mark.asyncio
    async def test_create_wraps_unexpected_error(
        self, patients: PatientService, store: InMemoryClinicStore, jane: PatientRequest
    ) -> None:
        store.persist_error = RuntimeError("disk full")

        with pytest.raises(RecordStoreUnavailableError, match="disk full"):
            await patients.create_patient(jane)

    @pytest.mark.asyncio
    async def test_delete_wraps_unexpected_error(
        self, patients: PatientService, store: InMemoryClinicStore, jane: PatientRequest
    ) -> None:
        patient = await patients.create_patient(jane)
        assert patient.patient_id is not None
        store.persist_error = RuntimeError("disk full")

        with pytest.raises(RecordStoreUnavailableError, match="Patient delete failed"):
            await patients.delete_patient(patient.patient_id)

    @pytest.mark.asyncio
    async def test_add_note_propagates_store_unavailable(
        self, patients: PatientService, store: InMemoryClinicStore, jane: PatientRequest
    ) -> None:
        patient = await patients.create_patient(jane)
        assert patient.patient_id is not None
        store.persist_error = RecordStoreUnavailableError("records API down")

        with pytest.raises(RecordStoreUnavailableError, match="records API down"):
            await patients.add_note(patient.patient_id, NoteRequest(author_user_id="u1", text="Hi"))


class TestPatientModels:
    def test_patient_model_requires_names(self) -> None:
        with pytest.raises(ValueError):
            PatientRequest(first_name="", last_name="Doe", date_of_birth=dt.date(1990, 1, 5))

        assert Patient(
            patient_id=5, first_name="A", last_name="B", date_of_birth=dt.date(2000, 1, 1)
        ).patient_id == "5"
