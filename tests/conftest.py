import json
import pathlib
from datetime import datetime, timezone
import pytest
from cerbo_scheduler.client import parse_appointments, parse_availability
from cerbo_scheduler.models import AppointmentTypeSpec, AvailabilityWindow, ScheduledAppointment

FIX = pathlib.Path(__file__).parent / "fixtures"

ACUPUNCTURE = "Acupuncture.Follow-up, self-schd (50 min)"
VAGUS = "Vagus Nerve Stem Therapy- Initial"
ADMIN = "ADMIN-Flexible"


def utc(day: int, hour: int, minute: int = 0, month: int = 3) -> datetime:
    return datetime(2025, month, day, hour, minute, tzinfo=timezone.utc)


def window(start: datetime, end: datetime, type_id: int = 151) -> AvailabilityWindow:
    return AvailabilityWindow(start=start, end=end, appointment_type_id=type_id)


def appt(start: datetime, end: datetime, name: str = ACUPUNCTURE, status: str = "confirmed") -> ScheduledAppointment:
    return ScheduledAppointment(start=start, end=end, internal_type_name=name, status=status)


@pytest.fixture
def availability_json() -> dict:
    return json.loads((FIX / "availability_response.json").read_text())


@pytest.fixture
def appointments_json() -> dict:
    return json.loads((FIX / "appointments_response.json").read_text())


@pytest.fixture
def sample_windows(availability_json):
    return parse_availability(availability_json, provider_id=61)


@pytest.fixture
def sample_appointments(appointments_json):
    return parse_appointments(appointments_json)


@pytest.fixture
def acupuncture_50() -> AppointmentTypeSpec:
    return AppointmentTypeSpec(
        id=151, display_name="Acupuncture", internal_name=ACUPUNCTURE, duration_minutes=50
    )


@pytest.fixture
def vagus() -> AppointmentTypeSpec:
    return AppointmentTypeSpec(
        id=144, display_name="Vagus Nerve Stem Therapy", internal_name=VAGUS,
        duration_minutes=30, dual_bookable=True,
    )
