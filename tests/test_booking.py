import httpx
import pytest
import respx
from cerbo_scheduler import booking, client
from cerbo_scheduler.booking import BookingFailed, book_time_slot, format_local, reminder_task
from cerbo_scheduler.catalog import DEFAULT_CATALOG
from cerbo_scheduler.models import CreatedAppointment, ProposedBooking, TimeSlotResult
from conftest import ACUPUNCTURE, ADMIN, utc


def slot_with_buffer():
    primary = ProposedBooking(appointment_type_id=151, start=utc(28, 17, 30), duration_minutes=60)
    buffer = ProposedBooking(appointment_type_id=135, start=primary.end, duration_minutes=30, is_buffer=True)
    return TimeSlotResult(start=primary.start, end=primary.end, primary=primary, buffer=buffer)


class FakeCerbo:
    def __init__(self, fail_primary=False, fail_buffer=False, fail_task=False):
        self.fail_primary = fail_primary
        self.fail_buffer = fail_buffer
        self.fail_task = fail_task
        self.calls = []

    async def create_appointment(self, booking_, patient_name, email, type_name, provider_id=61):
        self.calls.append(("appointment", type_name, booking_.start, patient_name))
        if booking_.is_buffer and self.fail_buffer:
            raise httpx.ConnectError("down")
        if not booking_.is_buffer and self.fail_primary:
            raise client.CerboAPIError("slot taken")
        return CreatedAppointment(id="A1" if not booking_.is_buffer else "B1")

    async def create_task(self, task):
        self.calls.append(("task", task.subject, task.notes))
        if self.fail_task:
            raise httpx.HTTPStatusError("500", request=httpx.Request("POST", "http://x"), response=httpx.Response(500))
        return "T1"


@pytest.fixture
def fake(monkeypatch):
    def install(**kwargs):
        cerbo = FakeCerbo(**kwargs)
        monkeypatch.setattr(client, "create_appointment", cerbo.create_appointment)
        monkeypatch.setattr(client, "create_task", cerbo.create_task)
        return cerbo
    return install


def test_format_local():
    assert format_local(utc(28, 17, 30), "America/Toronto") == ("Friday, March 28, 2025", "1:30 PM")
    assert format_local(utc(29, 4, 5), "UTC") == ("Saturday, March 29, 2025", "4:05 AM")
    assert format_local(utc(29, 12), "UTC")[1] == "12:00 PM"


def test_reminder_task_text():
    task = reminder_task(DEFAULT_CATALOG.get(151), utc(28, 17, 30), "Jane Roe", "jane@example.com", 61, "America/Toronto")
    assert task.subject == "Acupuncture Appointment"
    assert task.notes == "New Acupuncture appointment for Jane Roe (jane@example.com) on Friday, March 28, 2025 at 1:30 PM"
    assert task.due_date == "2025-03-28T17:30:00Z"
    assert task.priority == "low"
    assert task.remind_minutes_before == 60


@pytest.mark.asyncio
async def test_books_primary_then_buffer_then_task(fake):
    cerbo = fake()
    outcome = await book_time_slot(slot_with_buffer(), "Jane Roe", "jane@example.com")

    assert outcome.success
    assert outcome.primary.id == "A1"
    assert outcome.buffer_booked and outcome.task_created
    assert outcome.warnings == []
    assert [c[0] for c in cerbo.calls] == ["appointment", "appointment", "task"]
    assert cerbo.calls[0][1] == ACUPUNCTURE
    assert cerbo.calls[1][1:] == (ADMIN, utc(28, 18, 30), booking.BUFFER_PATIENT_NAME)


@pytest.mark.asyncio
async def test_primary_failure_stops_everything(fake):
    cerbo = fake(fail_primary=True)
    with pytest.raises(BookingFailed):
        await book_time_slot(slot_with_buffer(), "Jane Roe", "jane@example.com")
    assert len(cerbo.calls) == 1


@pytest.mark.asyncio
async def test_buffer_and_task_failures_are_warnings(fake):
    cerbo = fake(fail_buffer=True, fail_task=True)
    outcome = await book_time_slot(slot_with_buffer(), "Jane Roe", "jane@example.com")

    assert outcome.success
    assert not outcome.buffer_booked
    assert not outcome.task_created
    assert len(outcome.warnings) == 2
    assert len(cerbo.calls) == 3


@pytest.mark.asyncio
async def test_no_buffer_requested(fake):
    cerbo = fake()
    primary = ProposedBooking(appointment_type_id=144, start=utc(29, 12), duration_minutes=30)
    slot = TimeSlotResult(start=primary.start, end=primary.end, primary=primary)

    outcome = await book_time_slot(slot, "Jane Roe", "jane@example.com")

    assert not outcome.buffer_booked
    assert outcome.task_created
    assert [c[0] for c in cerbo.calls] == ["appointment", "task"]


@pytest.mark.asyncio
async def test_unreadable_buffer_and_task_bodies_are_warnings(monkeypatch):
    base = "https://cerbo.test/api/v1"
    monkeypatch.setattr(client, "_BASE_URL", base)
    with respx.mock(base_url=base) as m:
        m.post("/appointments").mock(side_effect=[
            httpx.Response(200, json={"id": 1}),
            httpx.Response(200, text="<html>gateway</html>"),
        ])
        tasks = m.post("/tasks").respond(204)

        outcome = await book_time_slot(slot_with_buffer(), "Jane Roe", "jane@example.com")

        assert tasks.called
    assert outcome.success
    assert outcome.primary.id == "1"
    assert not outcome.buffer_booked
    assert not outcome.task_created
    assert len(outcome.warnings) == 2
