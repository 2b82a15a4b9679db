from typing import Any

from loguru import logger
from pydantic import ValidationError

from clinic.domain.exceptions import ClinicError, RecordNotFoundError
from clinic.domain.models import AppointmentRequest, SchedulingDecision
from clinic.records.ports import AbstractSchedulingService

_UTC_FLAG_KEYS = ("isUtc", "is_utc")


def _parse_utc_flag(payload: dict[str, Any]) -> tuple[bool | None, str | None]:
    """Read the UTC flag. Returns ``(flag, None)`` or ``(None, error_msg)``."""
    value: object = False
    for key in _UTC_FLAG_KEYS:
        if key in payload:
            value = payload[key]
            break
    if not isinstance(value, bool):
        return None, "Invalid value for 'isUtc': must be true or false."
    return value, None


def _parse_request(payload: dict[str, Any]) -> tuple[AppointmentRequest | None, str | None]:
    """Parse an appointment payload. Returns ``(request, None)`` or ``(None, error_msg)``."""
    try:
        return AppointmentRequest.model_validate(payload), None
    except ValidationError as exc:
        fields = ", ".join(
            ".".join(str(part) for part in err["loc"]) or "payload" for err in exc.errors()
        )
        return None, f"Invalid appointment fields: {fields}."


def _decision_result(decision: SchedulingDecision) -> dict[str, Any]:
    if decision.appointment is not None:
        return {
            "success": True,
            "appointment": decision.appointment.model_dump(mode="json"),
        }
    reason = decision.reason.value if decision.reason else "rejected"
    return {
        "success": False,
        "error": True,
        "reason": reason,
        "message": reason,
    }


class AppointmentHandlers:
    """Turns raw appointment payloads into scheduling calls and result dicts.

    Every handler returns a dict with ``success``; failures add ``error`` and
    a ``message`` fit to show to the caller. Scheduling rejections also carry
    the fixed ``reason`` string.
    """

    def __init__(self, scheduling: AbstractSchedulingService) -> None:
        self._scheduling = scheduling

    async def handle_create_appointment(self, payload: dict[str, Any]) -> dict[str, Any]:
        request, is_utc, err = self._parse(payload)
        if err or request is None or is_utc is None:
            return {"success": False, "error": True, "message": err or "Invalid request."}

        logger.debug("Handler call: create_appointment")

        try:
            decision = await self._scheduling.create_appointment(request, is_utc=is_utc)
        except RecordNotFoundError as exc:
            return {"success": False, "error": True, "not_found": True, "message": str(exc)}
        except ClinicError as exc:
            return {"success": False, "error": True, "message": str(exc)}
        except Exception:
            logger.exception("Unexpected error in create_appointment")
            return {
                "success": False,
                "error": True,
                "message": "An unexpected error occurred while creating the appointment.",
            }
        return _decision_result(decision)

    async def handle_update_appointment(
        self, appointment_id: str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        if not appointment_id:
            return {"success": False, "error": True, "message": "'appointment_id' is required."}

        request, is_utc, err = self._parse(payload)
        if err or request is None or is_utc is None:
            return {"success": False, "error": True, "message": err or "Invalid request."}

        logger.debug("Handler call: update_appointment")

        try:
            decision = await self._scheduling.update_appointment(
                appointment_id, request, is_utc=is_utc
            )
        except RecordNotFoundError as exc:
            return {"success": False, "error": True, "not_found": True, "message": str(exc)}
        except ClinicError as exc:
            return {"success": False, "error": True, "message": str(exc)}
        except Exception:
            logger.exception("Unexpected error in update_appointment")
            return {
                "success": False,
                "error": True,
                "message": "An unexpected error occurred while updating the appointment.",
            }
        return _decision_result(decision)

    async def handle_get_appointment(self, appointment_id: str) -> dict[str, Any]:
        try:
            appointment = await self._scheduling.get_appointment(appointment_id)
        except RecordNotFoundError as exc:
            return {"success": False, "error": True, "not_found": True, "message": str(exc)}
        except ClinicError as exc:
            return {"success": False, "error": True, "message": str(exc)}
        return {"success": True, "appointment": appointment.model_dump(mode="json")}

    def _parse(
        self, payload: object
    ) -> tuple[AppointmentRequest | None, bool | None, str | None]:
        if not isinstance(payload, dict):
            return None, None, "Appointment payload must be a JSON object."
        request, err = _parse_request(payload)
        if err or request is None:
            return None, None, err
        is_utc, err = _parse_utc_flag(payload)
        return request, is_utc, err
