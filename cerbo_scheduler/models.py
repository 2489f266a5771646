from __future__ import annotations
from datetime import datetime, timedelta
from pydantic import AwareDatetime, BaseModel, EmailStr, Field

_FROZEN = {"frozen": True}


class AppointmentTypeSpec(BaseModel):
    model_config = _FROZEN

    id: int
    display_name: str
    internal_name: str
    duration_minutes: int = Field(gt=0)
    dual_bookable: bool = False


class AvailabilityWindow(BaseModel):
    """A period during which the provider can see patients for one appointment type."""
    model_config = _FROZEN

    start: AwareDatetime
    end: AwareDatetime
    appointment_type_id: int


class ScheduledAppointment(BaseModel):
    """An existing booking on the provider's calendar."""
    model_config = _FROZEN

    start: AwareDatetime
    end: AwareDatetime
    internal_type_name: str | None = None
    status: str | None = None
    id: str | None = None
    title: str | None = None


class CandidateSlot(BaseModel):
    model_config = _FROZEN

    start: AwareDatetime
    end: AwareDatetime
    dual_booking_already_present: bool = False


class ProposedBooking(BaseModel):
    model_config = _FROZEN

    appointment_type_id: int
    start: AwareDatetime
    duration_minutes: int
    is_buffer: bool = False

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=self.duration_minutes)


class TimeSlotResult(BaseModel):
    """A bookable slot: the primary booking plus the buffer it needs, if any."""
    model_config = _FROZEN

    start: AwareDatetime
    end: AwareDatetime
    has_dual_booking: bool = False
    primary: ProposedBooking
    buffer: ProposedBooking | None = None


# Upstream (Cerbo) write models -------------------------------------------

class CreatedAppointment(BaseModel):
    id: str | None = None
    title: str | None = None
    status: str | None = None
    start: str | None = None  # ISO-8601 dateTime
    end: str | None = None
    appointment_type_internal_name: str | None = None
    provider_id: int | None = None


class TaskRequest(BaseModel):
    dr_id: int
    subject: str
    priority: str = "low"
    notes: str
    due_date: str  # ISO-8601 dateTime
    remind_minutes_before: int = 60


# HTTP API models -----------------------------------------------------------

class AppointmentTypeOut(BaseModel):
    id: int
    display_name: str


class SlotOut(BaseModel):
    """A slot offered to the caller; book it again by slot_id."""
    slot_id: str
    start: datetime
    end: datetime
    appointment_type_id: int
    has_dual_booking: bool
    buffer_start: datetime | None = None


class AvailabilityResponse(BaseModel):
    appointment_type_id: int
    slots: list[SlotOut]


class BookRequest(BaseModel):
    patient_name: str = Field(min_length=1)
    email: EmailStr
    slot_id: str


class BookResponse(BaseModel):
    success: bool
    appointment_id: str | None = None
    appointment_type_id: int
    start: datetime
    end: datetime
    buffer_booked: bool = False
    task_created: bool = False
    warnings: list[str] = []
