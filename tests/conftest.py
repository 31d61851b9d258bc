"""Shared test fixtures."""
import json
import os
from datetime import date

os.environ.setdefault("BACKEND_BASE_URL", "http://backend.test/webhook")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENV", "test")

import httpx
import pytest
from fastapi.testclient import TestClient

from clinic_scheduler.api.deps import get_backend_client, get_today
from clinic_scheduler.core.security import create_access_token
from clinic_scheduler.models.appointment import Appointment
from clinic_scheduler.models.provider import Provider
from clinic_scheduler.models.user import SessionUser, UserRole
from clinic_scheduler.models.working_hours import WorkingHours
from clinic_scheduler.services.backend_client import ClinicBackendClient

# Monday
TODAY = date(2024, 6, 3)


class FakeBackend:
    """In-memory stand-in for the clinic webhook routes, speaking its loose wire format."""

    def __init__(self) -> None:
        self.users = [
            {"id": 1, "name": "Ana Souza", "email": "ana@clinicapsi.com.br", "role": "psychologist"},
            {"id": 2, "name": "Bruno Lima", "email": "bruno@clinicapsi.com.br", "role": "Psychologist"},
            {"id": 10, "name": "Rita", "email": "rita@clinicapsi.com.br", "role": "receptionist"},
        ]
        self.working_hours = [
            {"user_id": 1, "day_of_week": 1, "start_time": "09:00:00", "end_time": "12:00:00"},
            {
                "userId": 1,
                "dayOfWeek": 3,
                "startTime": "14:00",
                "endTime": "16:00",
                "appointmentType": "online",
            },
            {"user_id": 2, "day_of_week": 1, "start_time": "08:00:00", "end_time": "10:00:00"},
        ]
        self.appointments = [
            {
                "id": 100,
                "psychologist_id": 1,
                "patient_id": 50,
                "date": "2024-06-03T00:00:00.000Z",
                "start_time": "10:00:00",
                "end_time": "11:00:00",
                "status": "confirmed",
            },
            {
                "id": 101,
                "psychologistId": 1,
                "date": "2024-06-04",
                "startTime": "15:00",
                "endTime": "16:00",
                "status": "scheduled",
            },
            {
                "id": 102,
                "psychologist_id": 2,
                "date": "2024-06-03",
                "start_time": "08:00",
                "end_time": "09:00",
                "status": "cancelled",
            },
        ]
        self.scheduled: list[dict] = []
        self.fail_schedule_on: set[str] = set()
        self.fail_all = False
        self.wrap_rows = False
        self.passwords = {"ana@clinicapsi.com.br": "secret", "rita@clinicapsi.com.br": "secret"}

    def _rows(self, rows: list[dict]) -> httpx.Response:
        return httpx.Response(200, json={"data": rows} if self.wrap_rows else rows)

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.fail_all:
            return httpx.Response(500, text="boom")
        path = request.url.path.rsplit("/", 1)[-1]
        if request.method == "GET" and path == "users":
            return self._rows(self.users)
        if request.method == "GET" and path == "working_hours":
            return self._rows(self.working_hours)
        if request.method == "GET" and path == "appointmens":
            return self._rows(self.appointments)
        if request.method == "POST" and path == "schedule-appointment":
            payload = json.loads(request.content)
            if payload["date"] in self.fail_schedule_on:
                return httpx.Response(503, text="unavailable")
            self.scheduled.append(payload)
            return httpx.Response(200, json={"id": 900 + len(self.scheduled)})
        if request.method == "POST" and path == "login":
            payload = json.loads(request.content)
            if self.passwords.get(payload["email"]) != payload["password"]:
                return httpx.Response(401, json={"message": "invalid"})
            user = next(u for u in self.users if u["email"] == payload["email"])
            return httpx.Response(200, json={"user": user})
        return httpx.Response(404)


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
async def backend_client(fake_backend):
    client = ClinicBackendClient.from_settings(transport=httpx.MockTransport(fake_backend.handler))
    yield client
    await client.aclose()


@pytest.fixture
def api(fake_backend):
    """FastAPI test client wired to the fake backend with the calendar pinned to TODAY."""
    from clinic_scheduler.main import app

    async def _client():
        client = ClinicBackendClient.from_settings(
            transport=httpx.MockTransport(fake_backend.handler)
        )
        try:
            yield client
        finally:
            await client.aclose()

    app.dependency_overrides[get_backend_client] = _client
    app.dependency_overrides[get_today] = lambda: TODAY
    yield TestClient(app)
    app.dependency_overrides.clear()


def _auth(user: SessionUser) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def staff_headers() -> dict[str, str]:
    return _auth(SessionUser(id="10", name="Rita", role=UserRole.RECEPTIONIST))


@pytest.fixture
def psychologist_headers() -> dict[str, str]:
    return _auth(SessionUser(id="1", name="Ana Souza", role=UserRole.PSYCHOLOGIST))


@pytest.fixture
def other_psychologist_headers() -> dict[str, str]:
    return _auth(SessionUser(id="2", name="Bruno Lima", role=UserRole.PSYCHOLOGIST))


@pytest.fixture
def make_appointment():
    """Build a canonical appointment with sensible defaults."""
    counter = iter(range(1, 10_000))

    def _create(
        start: str,
        end: str,
        day: str = "2024-06-03",
        provider_id: str = "p1",
        status: str = "confirmed",
        appointment_id: str | None = None,
    ) -> Appointment:
        return Appointment(
            id=appointment_id or f"a{next(counter)}",
            psychologist_id=provider_id,
            date=day,
            start_time=start,
            end_time=end,
            status=status,
        )

    return _create


@pytest.fixture
def monday_provider() -> Provider:
    return Provider(
        id="p1",
        name="Ana",
        working_hours=[WorkingHours(day_of_week=1, start_time="09:00", end_time="12:00")],
    )
