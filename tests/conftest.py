import pytest

from clinic.directory.patients import PatientService
from clinic.directory.staff import StaffDirectory
from clinic.records.adapters.memory import InMemoryClinicStore
from clinic.scheduling.service import SchedulingService
from tests.helpers import FIXED_NOW


@pytest.fixture
def store() -> InMemoryClinicStore:
    return InMemoryClinicStore()


@pytest.fixture
def scheduling(store: InMemoryClinicStore) -> SchedulingService:
    return SchedulingService(store)


@pytest.fixture
def patients(store: InMemoryClinicStore) -> PatientService:
    return PatientService(store, clock=lambda: FIXED_NOW)


@pytest.fixture
def staff(store: InMemoryClinicStore) -> StaffDirectory:
    return StaffDirectory(store)
