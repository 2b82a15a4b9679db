class ClinicError(Exception):
    """Base exception for all clinic backend errors."""


class RecordStoreUnavailableError(ClinicError):
    """Raised when the record store is unreachable or not responding."""


class RecordNotFoundError(ClinicError):
    """Raised when a referenced record does not exist."""

    def __init__(self, kind: str, record_id: str) -> None:
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} {record_id} not found")


class DuplicateStaffUserError(ClinicError):
    """Raised when a staff username or email is already taken."""

    def __init__(self, field: str, value: str) -> None:
        self.field = field
        self.value = value
        super().__init__(f"{field.capitalize()} already exists: {value}")


class PatientInUseError(ClinicError):
    """Raised when deleting a patient that still has appointments."""

    def __init__(self, patient_id: str, appointment_count: int) -> None:
        self.patient_id = patient_id
        self.appointment_count = appointment_count
        super().__init__(
            f"Patient {patient_id} still has {appointment_count} appointment(s)"
        )
