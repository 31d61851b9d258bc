"""Booking workflow, conflict checks and the daily summary."""
from datetime import date

import httpx
import pytest

from clinic_scheduler.core.errors import InvalidArgument
from clinic_scheduler.models.appointment import AppointmentCreate, AppointmentStatus
from clinic_scheduler.models.user import SessionUser, UserRole
from clinic_scheduler.services.appointment_service import (
    appointments_for_user,
    book_appointments,
    check_conflict,
    daily_summary,
    next_business_day,
)
from clinic_scheduler.services.backend_client import ClinicBackendClient


@pytest.mark.parametrize(
    "today, expected",
    [
        (date(2024, 6, 3), date(2024, 6, 4)),  # Monday
        (date(2024, 6, 7), date(2024, 6, 8)),  # Friday
        (date(2024, 6, 8), date(2024, 6, 10)),  # Saturday
        (date(2024, 6, 9), date(2024, 6, 10)),  # Sunday
    ],
)
def test_next_business_day(today, expected):
    assert next_business_day(today) == expected


def test_daily_summary_splits_by_status(make_appointment):
    appointments = [
        make_appointment("11:00", "12:00", status="pending"),
        make_appointment("09:00", "10:00", status="pending"),
        make_appointment("10:00", "11:00", status="confirmed"),
        make_appointment("10:00", "11:00", status="cancelled"),
        make_appointment("09:00", "10:00", day="2024-06-04", status="confirmed"),
    ]
    staff = SessionUser(id="10", role=UserRole.ADMIN)
    summary = daily_summary(appointments, date(2024, 6, 3), staff)
    assert [a.start_time for a in summary.today.pending] == ["09:00", "11:00"]
    assert len(summary.today.confirmed) == 1
    assert summary.next_business_day.date == "2024-06-04"
    assert len(summary.next_business_day.confirmed) == 1


def test_psychologists_only_see_their_own(make_appointment):
    appointments = [
        make_appointment("09:00", "10:00", provider_id="p1"),
        make_appointment("09:00", "10:00", provider_id="p2"),
    ]
    own = appointments_for_user(appointments, SessionUser(id="p2", role=UserRole.PSYCHOLOGIST))
    assert [a.psychologist_id for a in own] == ["p2"]
    everyone = appointments_for_user(appointments, SessionUser(id="r", role=UserRole.RECEPTIONIST))
    assert len(everyone) == 2


def test_check_conflict(make_appointment):
    existing = [make_appointment("10:00", "11:00", appointment_id="a1")]
    assert [a.id for a in check_conflict("p1", "2024-06-03", "10:30", "11:30", existing)] == ["a1"]
    assert check_conflict("p1", "2024-06-03", "11:00", "12:00", existing) == []
    assert (
        check_conflict(
            "p1", "2024-06-03", "10:30", "11:30", existing, exclude_appointment_id="a1"
        )
        == []
    )


def test_check_conflict_rejects_reversed_times():
    with pytest.raises(InvalidArgument):
        check_conflict("p1", "2024-06-03", "11:00", "10:00", [])


def _draft(**overrides) -> AppointmentCreate:
    data = {
        "patient_id": "50",
        "psychologist_id": "p1",
        "date": "2024-06-03",
        "start_time": "09:00",
        "end_time": "10:00",
    }
    data.update(overrides)
    return AppointmentCreate(**data)


async def test_book_appointments_reports_each_date(
    backend_client, fake_backend, monday_provider, make_appointment
):
    fake_backend.fail_schedule_on = {"2024-06-17"}
    existing = [make_appointment("09:30", "10:30", day="2024-06-10", appointment_id="busy")]
    outcomes = await book_appointments(
        backend_client,
        _draft(),
        [date(2024, 6, 17), date(2024, 6, 3), date(2024, 6, 10), date(2024, 6, 4), date(2024, 6, 3)],
        existing,
        monday_provider,
    )
    assert [(o.date, o.status) for o in outcomes] == [
        ("2024-06-03", "scheduled"),
        ("2024-06-04", "unavailable"),
        ("2024-06-10", "conflict"),
        ("2024-06-17", "error"),
    ]
    assert outcomes[2].conflicting_ids == ["busy"]
    assert [p["date"] for p in fake_backend.scheduled] == ["2024-06-03"]


async def test_book_appointments_without_provider_skips_weekday_check(backend_client, fake_backend):
    outcomes = await book_appointments(backend_client, _draft(), [date(2024, 6, 4)], [])
    assert outcomes[0].status == "scheduled"
    assert fake_backend.scheduled[0]["date"] == "2024-06-04"


async def test_book_appointments_rejects_reversed_times(backend_client, fake_backend):
    with pytest.raises(InvalidArgument):
        await book_appointments(
            backend_client, _draft(start_time="10:00", end_time="09:00"), [date(2024, 6, 3)], []
        )
    assert fake_backend.scheduled == []


async def test_book_appointments_when_backend_is_down(monday_provider):
    client = ClinicBackendClient.from_settings(
        transport=httpx.MockTransport(lambda request: httpx.Response(502))
    )
    outcomes = await book_appointments(
        client, _draft(), [date(2024, 6, 3), date(2024, 6, 10)], [], monday_provider
    )
    await client.aclose()
    assert [o.status for o in outcomes] == ["error", "error"]


async def test_book_appointments_refuses_times_outside_working_hours(
    backend_client, fake_backend, monday_provider
):
    outcomes = await book_appointments(
        backend_client,
        _draft(start_time="20:00", end_time="21:00"),
        [date(2024, 6, 3)],
        [],
        monday_provider,
    )
    assert outcomes[0].status == "unavailable"
    assert fake_backend.scheduled == []


async def test_book_appointments_always_creates_pending(backend_client, fake_backend, monday_provider):
    await book_appointments(
        backend_client,
        _draft(status=AppointmentStatus.CANCELLED),
        [date(2024, 6, 3)],
        [],
        monday_provider,
    )
    assert fake_backend.scheduled[0]["status"] == "pending"
