import asyncio
import weakref
from typing import Any, TypeVar

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError

from clinic.domain.exceptions import RecordStoreUnavailableError
from clinic.domain.models import Appointment, Patient, PatientNote, StaffUser

M = TypeVar("M", bound=BaseModel)


class RestClinicStore:
    """Record store backed by the clinic records REST API.

    Records travel as the models' JSON form. The API assigns IDs on ``POST``
    and replaces records on ``PUT``; unknown IDs answer 404.

    ``staff_lock`` only serializes writers inside this process; the records
    API itself must reject overlapping writes from other processes.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str = "",
        timeout: float = 30,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(base_url=self._base_url, headers=headers, timeout=timeout)
        self._staff_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
        allow_missing: bool = False,
    ) -> Any:
        """Send a request and return the decoded JSON body (None if empty or missing)."""
        try:
            resp = await self._client.request(method, path, params=params, json=json)
        except httpx.HTTPError as exc:
            raise RecordStoreUnavailableError(f"Records API request failed: {exc}") from exc

        if allow_missing and resp.status_code == 404:
            return None
        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise RecordStoreUnavailableError(
                f"Records API {method} {path} failed with status {resp.status_code}"
            ) from exc

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise RecordStoreUnavailableError(
                f"Records API returned invalid JSON for {method} {path}"
            ) from exc

    async def _get_many(
        self, model: type[M], path: str, params: dict[str, str] | None = None
    ) -> list[M]:
        data = await self._request("GET", path, params=params)
        return [_parse(model, item) for item in data or []]

    async def _get_one(self, model: type[M], path: str) -> M | None:
        data = await self._request("GET", path, allow_missing=True)
        return None if data is None else _parse(model, data)

    async def _save(
        self, model: type[M], record: M, collection: str, record_id: str | None, id_field: str
    ) -> M:
        body = record.model_dump(mode="json", exclude={id_field})
        if record_id is None:
            data = await self._request("POST", collection, json=body)
        else:
            data = await self._request("PUT", f"{collection}/{record_id}", json=body)
        if data is None:
            raise RecordStoreUnavailableError(f"Records API returned no body for {collection}")
        return _parse(model, data)

    async def fetch_appointments_for_staff(self, staff_user_id: str) -> list[Appointment]:
        return await self._get_many(
            Appointment, "/appointments", {"staff_user_id": staff_user_id}
        )

    async def fetch_appointments_for_patient(self, patient_id: str) -> list[Appointment]:
        return await self._get_many(Appointment, "/appointments", {"patient_id": patient_id})

    async def get_appointment(self, appointment_id: str) -> Appointment | None:
        return await self._get_one(Appointment, f"/appointments/{appointment_id}")

    async def persist_appointment(self, appointment: Appointment) -> Appointment:
        return await self._save(
            Appointment, appointment, "/appointments", appointment.appointment_id, "appointment_id"
        )

    def staff_lock(self, staff_user_id: str) -> asyncio.Lock:
        """Per-staff lock, dropped once no caller holds or waits on it."""
        lock = self._staff_locks.get(staff_user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._staff_locks[staff_user_id] = lock
        return lock

    async def list_patients(self) -> list[Patient]:
        return await self._get_many(Patient, "/patients")

    async def get_patient(self, patient_id: str) -> Patient | None:
        return await self._get_one(Patient, f"/patients/{patient_id}")

    async def persist_patient(self, patient: Patient) -> Patient:
        return await self._save(Patient, patient, "/patients", patient.patient_id, "patient_id")

    async def delete_patient(self, patient_id: str) -> None:
        await self._request("DELETE", f"/patients/{patient_id}", allow_missing=True)

    async def list_notes_for_patient(self, patient_id: str) -> list[PatientNote]:
        return await self._get_many(PatientNote, f"/patients/{patient_id}/notes")

    async def persist_note(self, note: PatientNote) -> PatientNote:
        return await self._save(
            PatientNote, note, f"/patients/{note.patient_id}/notes", note.note_id, "note_id"
        )

    async def list_staff_users(self) -> list[StaffUser]:
        return await self._get_many(StaffUser, "/users")

    async def get_staff_user(self, user_id: str) -> StaffUser | None:
        return await self._get_one(StaffUser, f"/users/{user_id}")

    async def persist_staff_user(self, user: StaffUser) -> StaffUser:
        return await self._save(StaffUser, user, "/users", user.user_id, "user_id")

    async def health_check(self) -> bool:
        try:
            await self._request("GET", "/health")
            return True
        except Exception as exc:
            logger.warning("Records API health check failed: {}", exc)
            return False

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("Records API client closed")


def _parse(model: type[M], data: Any) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise RecordStoreUnavailableError(
            f"Records API returned a malformed {model.__name__}: {exc}"
        ) from exc
