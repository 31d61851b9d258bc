"""Client for the clinic's webhook backend.

The backend is the system of record for users, working hours and
appointments. Its JSON is loosely shaped: ids arrive as integers or strings,
keys as snake_case or camelCase, times with seconds, dates as full ISO
timestamps, and list endpoints sometimes wrap rows in ``{"data": [...]}``.
All of that is normalised here so the rest of the service only sees the
canonical models.
"""

import logging
from collections import defaultdict
from datetime import date
from typing import Any

import httpx

from clinic_scheduler.core.clock import time_to_minutes
from clinic_scheduler.core.config import settings
from clinic_scheduler.core.errors import BackendError, InvalidArgument
from clinic_scheduler.models.appointment import Appointment, AppointmentCreate
from clinic_scheduler.models.provider import Provider
from clinic_scheduler.models.user import SessionUser, UserRole
from clinic_scheduler.models.working_hours import AppointmentType, WorkingHours

logger = logging.getLogger(__name__)


def _pick(raw: dict, *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return default


def _as_id(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _normalise_time(value: Any) -> str:
    """'09:00:00' -> '09:00'; raises InvalidArgument if what remains is not HH:MM."""
    text = str(value or "")[:5]
    time_to_minutes(text)
    return text


def _normalise_date(value: Any) -> str:
    """'2024-06-03T00:00:00.000Z' -> '2024-06-03'; anything that is not an ISO date is rejected."""
    text = str(value or "").split("T")[0]
    try:
        return date.fromisoformat(text).isoformat()
    except ValueError as e:
        raise InvalidArgument(f"Malformed date {value!r}") from e


# Older rows were written with "scheduled" before the pending/confirmed split
_STATUS_ALIASES = {"scheduled": "pending"}


def _normalise_status(value: Any) -> str:
    status = str(value).strip().lower()
    return _STATUS_ALIASES.get(status, status)


def _rows(payload: Any) -> list[dict]:
    if isinstance(payload, dict):
        payload = payload.get("data", [])
    if not isinstance(payload, list):
        return []
    return [row for row in payload if isinstance(row, dict)]


def working_hours_from_wire(raw: dict) -> WorkingHours:
    return WorkingHours(
        day_of_week=int(_pick(raw, "day_of_week", "dayOfWeek")),
        start_time=_normalise_time(_pick(raw, "start_time", "startTime")),
        end_time=_normalise_time(_pick(raw, "end_time", "endTime")),
        appointment_type=_pick(
            raw, "appointment_type", "appointmentType", default=AppointmentType.PRESENTIAL
        ),
    )


def appointment_from_wire(raw: dict) -> Appointment:
    return Appointment(
        id=_as_id(_pick(raw, "id")),
        psychologist_id=_as_id(_pick(raw, "psychologist_id", "psychologistId")),
        date=_normalise_date(_pick(raw, "date")),
        start_time=_normalise_time(_pick(raw, "start_time", "startTime")),
        end_time=_normalise_time(_pick(raw, "end_time", "endTime")),
        status=_normalise_status(_pick(raw, "status", default="pending")),
        patient_id=_as_id(_pick(raw, "patient_id", "patientId")),
        patient_name=_pick(raw, "patient_name", "patientName"),
        psychologist_name=_pick(raw, "psychologist_name", "psychologistName"),
        room_id=_as_id(_pick(raw, "room_id", "roomId")),
        appointment_type=_pick(
            raw, "appointment_type", "appointmentType", default=AppointmentType.PRESENTIAL
        ),
    )


def user_from_wire(raw: dict) -> SessionUser:
    return SessionUser(
        id=_as_id(_pick(raw, "id", "user_id", "userId")),
        name=_pick(raw, "name", "full_name"),
        email=_pick(raw, "email"),
        role=str(_pick(raw, "role", default="")).strip().lower(),
    )


def appointment_to_wire(data: AppointmentCreate) -> dict:
    """Shape expected by the schedule-appointment webhook (numeric ids where numeric)."""

    def _num(value: str | None) -> int | str | None:
        if value is None:
            return None
        return int(value) if value.isdigit() else value

    return {
        "patient_id": _num(data.patient_id),
        "psychologist_id": _num(data.psychologist_id),
        "room_id": None if data.appointment_type == AppointmentType.ONLINE else _num(data.room_id),
        "date": data.date,
        "start_time": data.start_time,
        "end_time": data.end_time,
        "status": data.status.value,
        "appointment_type": data.appointment_type.value,
        "value": data.value,
        "payment_method": data.payment_method,
        "insurance_type": data.insurance_type,
        "is_recurring": False,
    }


def _parse_rows(rows: list[dict], parser, kind: str) -> list:
    parsed = []
    for row in rows:
        try:
            parsed.append(parser(row))
        except (InvalidArgument, ValueError, TypeError) as e:
            logger.warning("Skipping malformed %s row %s: %s", kind, row.get("id"), e)
    return parsed


class ClinicBackendClient:
    """Thin async wrapper over the webhook routes. No retries: failures surface immediately."""

    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    @classmethod
    def from_settings(cls, transport: httpx.AsyncBaseTransport | None = None) -> "ClinicBackendClient":
        http = httpx.AsyncClient(
            base_url=settings.backend_url,
            timeout=settings.backend_timeout_seconds,
            transport=transport,
        )
        return cls(http)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = await self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("Backend %s %s failed: %s", method, path, e)
            raise BackendError(f"Backend unreachable: {type(e).__name__}") from e
        if resp.status_code >= 400:
            logger.warning(
                "Backend %s %s returned status=%s body=%s",
                method,
                path,
                resp.status_code,
                resp.text[:500],
            )
            raise BackendError(
                f"Backend {method} {path} returned {resp.status_code}",
                status_code=resp.status_code,
            )
        return resp

    async def _get_rows(self, path: str) -> list[dict]:
        resp = await self._request("GET", path)
        try:
            return _rows(resp.json())
        except ValueError as e:
            raise BackendError(f"Backend GET {path} returned invalid JSON") from e

    async def list_users(self) -> list[SessionUser]:
        rows = await self._get_rows(settings.users_path)
        return _parse_rows(rows, user_from_wire, "user")

    async def list_working_hours(self, user_id: str | None = None) -> dict[str, list[WorkingHours]]:
        """Working hours keyed by user id."""
        rows = await self._get_rows(settings.working_hours_path)
        by_user: dict[str, list[WorkingHours]] = defaultdict(list)
        for row in rows:
            owner = _as_id(_pick(row, "user_id", "userId", "psychologist_id"))
            if owner is None or (user_id is not None and owner != user_id):
                continue
            try:
                by_user[owner].append(working_hours_from_wire(row))
            except (InvalidArgument, ValueError, TypeError) as e:
                logger.warning("Skipping malformed working hours for user %s: %s", owner, e)
        return dict(by_user)

    async def list_psychologists(self) -> list[Provider]:
        users = await self.list_users()
        hours = await self.list_working_hours()
        return [
            Provider(id=u.id, name=u.name or u.id, working_hours=hours.get(u.id, []))
            for u in users
            if u.role == UserRole.PSYCHOLOGIST
        ]

    async def get_psychologist(self, psychologist_id: str) -> Provider | None:
        for provider in await self.list_psychologists():
            if provider.id == psychologist_id:
                return provider
        return None

    async def list_appointments(self) -> list[Appointment]:
        rows = await self._get_rows(settings.appointments_path)
        return _parse_rows(rows, appointment_from_wire, "appointment")

    async def schedule_appointment(self, data: AppointmentCreate) -> dict:
        resp = await self._request("POST", settings.schedule_path, json=appointment_to_wire(data))
        try:
            body = resp.json()
        except ValueError:
            body = {}
        return body if isinstance(body, dict) else {"data": body}

    async def authenticate(self, email: str, password: str) -> SessionUser | None:
        try:
            resp = await self._request(
                "POST", settings.login_path, json={"email": email, "password": password}
            )
        except BackendError as e:
            if e.status_code in (401, 403, 404):
                return None
            raise
        try:
            body = resp.json()
        except ValueError:
            logger.warning("Backend login answered without JSON")
            return None
        rows = _rows(body)
        if not rows and isinstance(body, dict):
            user = body.get("user", body)
            rows = [user] if isinstance(user, dict) else []
        users = _parse_rows(rows, user_from_wire, "user")
        return users[0] if users else None
