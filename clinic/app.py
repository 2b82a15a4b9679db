from loguru import logger

from clinic.api.handlers import AppointmentHandlers
from clinic.config import AppConfig
from clinic.directory.patients import PatientService
from clinic.directory.staff import StaffDirectory
from clinic.records.factory import build_store
from clinic.records.ports import ClinicStoreProtocol
from clinic.scheduling.service import SchedulingService


class Clinic:
    """The clinic services wired around one record store."""

    def __init__(self, store: ClinicStoreProtocol) -> None:
        self.store = store
        self.scheduling = SchedulingService(store)
        self.patients = PatientService(store)
        self.staff = StaffDirectory(store)
        self.appointments = AppointmentHandlers(self.scheduling)

    async def health_check(self) -> bool:
        return await self.store.health_check()

    async def close(self) -> None:
        await self.store.close()


def build_clinic(config: AppConfig | None = None) -> Clinic:
    """Build the clinic services from config (environment and ``.env`` by default)."""
    config = config or AppConfig()
    clinic = Clinic(build_store(config))
    logger.info("Clinic services ready")
    return clinic
