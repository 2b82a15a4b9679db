import datetime as dt
from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class AppointmentStatus(str, Enum):
    """Possible states of an appointment."""

    SCHEDULED = "Scheduled"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    NO_SHOW = "NoShow"


class StaffRole(str, Enum):
    ADMIN = "Admin"
    DOCTOR = "Doctor"
    NURSE = "Nurse"
    RECEPTIONIST = "Receptionist"


class RejectionReason(str, Enum):
    """Client-visible reasons a scheduling request is turned down."""

    DURATION_OUT_OF_BOUNDS = "duration out of bounds"
    CLOSED_ON_WEEKENDS = "closed on weekends"
    OUTSIDE_CLINIC_HOURS = "outside clinic hours"
    STAFF_CONFLICT = "time conflict for this staff member"


class TimeWindow(BaseModel):
    """A half-open interval ``[start, end)``."""

    model_config = ConfigDict(frozen=True)

    start: dt.datetime
    end: dt.datetime

    @classmethod
    def from_duration(cls, start: dt.datetime, duration_minutes: int) -> "TimeWindow":
        return cls(start=start, end=start + dt.timedelta(minutes=duration_minutes))

    def overlaps(self, other: "TimeWindow") -> bool:
        """Touching windows (``self.end == other.start``) do not overlap."""
        return self.start < other.end and other.start < self.end


class AppointmentRequest(BaseModel):
    """A proposed appointment, as submitted for creation or update.

    ``duration_minutes`` is not range-checked here; out-of-range values are
    a scheduling rejection, not a malformed request.
    """

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    patient_id: str = Field(validation_alias=AliasChoices("patient_id", "patientId"))
    staff_user_id: str = Field(validation_alias=AliasChoices("staff_user_id", "staffUserId"))
    starts_at: dt.datetime = Field(validation_alias=AliasChoices("starts_at", "startsAt"))
    duration_minutes: int = Field(
        validation_alias=AliasChoices("duration_minutes", "durationMinutes")
    )
    reason: str | None = None
    status: AppointmentStatus | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _blank_status_is_unset(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class Appointment(BaseModel):
    """A canonical appointment record.

    ``starts_at`` holds clinic wall-clock time. ``appointment_id`` is None
    until the record store assigns one.
    """

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    appointment_id: str | None = None
    patient_id: str
    staff_user_id: str
    starts_at: dt.datetime
    duration_minutes: int
    reason: str | None = None
    status: AppointmentStatus = AppointmentStatus.SCHEDULED

    @property
    def ends_at(self) -> dt.datetime:
        return self.starts_at + dt.timedelta(minutes=self.duration_minutes)


class SchedulingDecision(BaseModel):
    """Outcome of a create or update request: an appointment or a reason."""

    model_config = ConfigDict(frozen=True)

    appointment: Appointment | None = None
    reason: RejectionReason | None = None

    @property
    def accepted(self) -> bool:
        return self.appointment is not None

    @classmethod
    def accept(cls, appointment: Appointment) -> "SchedulingDecision":
        return cls(appointment=appointment)

    @classmethod
    def reject(cls, reason: RejectionReason) -> "SchedulingDecision":
        return cls(reason=reason)


class PatientRequest(BaseModel):
    """Details for registering a patient."""

    model_config = ConfigDict(frozen=True)

    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    date_of_birth: dt.date
    phone: str | None = None
    email: str | None = None
    address: str | None = None


class Patient(BaseModel):
    """A patient record."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    patient_id: str | None = None
    first_name: str
    last_name: str
    date_of_birth: dt.date
    phone: str | None = None
    email: str | None = None
    address: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class NoteRequest(BaseModel):
    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    author_user_id: str
    text: str = Field(min_length=1)
    appointment_id: str | None = None


class PatientNote(BaseModel):
    """A free-text note attached to a patient, optionally tied to an appointment."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    note_id: str | None = None
    patient_id: str
    author_user_id: str
    appointment_id: str | None = None
    text: str
    created_at: dt.datetime


class PatientSummary(BaseModel):
    """A patient together with their appointments and notes."""

    model_config = ConfigDict(frozen=True)

    patient: Patient
    appointments: list[Appointment] = Field(default_factory=list)
    notes: list[PatientNote] = Field(default_factory=list)


class StaffUserRequest(BaseModel):
    """Details for creating or updating a staff user."""

    model_config = ConfigDict(frozen=True)

    full_name: str = Field(min_length=1)
    email: str = Field(min_length=1)
    username: str = Field(min_length=1)
    role: StaffRole
    is_active: bool = True


class StaffUser(BaseModel):
    """A clinic user who can be assigned appointments."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    user_id: str | None = None
    full_name: str
    email: str
    username: str
    role: StaffRole
    is_active: bool = True
