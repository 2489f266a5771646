"""Turn a chosen slot into Cerbo bookings.

The primary appointment must succeed. The buffer and the provider's reminder
task are best effort: failures are logged and reported as warnings, never
rolled back into a failed booking.
"""
from __future__ import annotations
import logging
from datetime import datetime, timezone
from zoneinfo import ZoneInfo
import httpx
from pydantic import BaseModel
from . import client, config
from .catalog import DEFAULT_CATALOG, AppointmentTypeCatalog
from .models import AppointmentTypeSpec, CreatedAppointment, TaskRequest, TimeSlotResult

logger = logging.getLogger(__name__)

BUFFER_PATIENT_NAME = "BUFFER"
BUFFER_EMAIL = "buffer@example.com"


class BookingFailed(RuntimeError):
    pass


class BookingOutcome(BaseModel):
    success: bool = True
    primary: CreatedAppointment
    buffer_booked: bool = False
    task_created: bool = False
    warnings: list[str] = []


def format_local(moment: datetime, tz_name: str = config.PROVIDER_TIMEZONE) -> tuple[str, str]:
    """('Friday, March 28, 2025', '1:30 PM') in the provider's timezone."""
    local = moment.astimezone(ZoneInfo(tz_name))
    day = f"{local:%A}, {local:%B} {local.day}, {local.year}"
    hour = local.hour % 12 or 12
    clock = f"{hour}:{local.minute:02d} {'AM' if local.hour < 12 else 'PM'}"
    return day, clock


def reminder_task(
    appointment_type: AppointmentTypeSpec,
    start: datetime,
    patient_name: str,
    email: str,
    provider_id: int = config.PROVIDER_ID,
    tz_name: str = config.PROVIDER_TIMEZONE,
) -> TaskRequest:
    day, clock = format_local(start, tz_name)
    return TaskRequest(
        dr_id=provider_id,
        subject=f"{appointment_type.display_name} Appointment",
        notes=f"New {appointment_type.display_name} appointment for {patient_name} ({email}) on {day} at {clock}",
        due_date=start.astimezone(timezone.utc).isoformat().replace("+00:00", "Z"),
    )


async def book_time_slot(
    slot: TimeSlotResult,
    patient_name: str,
    email: str,
    catalog: AppointmentTypeCatalog = DEFAULT_CATALOG,
    provider_id: int = config.PROVIDER_ID,
    tz_name: str = config.PROVIDER_TIMEZONE,
) -> BookingOutcome:
    appointment_type = catalog.get(slot.primary.appointment_type_id)

    try:
        primary = await client.create_appointment(
            slot.primary, patient_name, email, appointment_type.internal_name, provider_id
        )
    except (httpx.HTTPError, client.CerboAPIError) as exc:
        logger.error("Primary booking failed for %s at %s: %s",
                     appointment_type.internal_name, slot.start.isoformat(), exc)
        raise BookingFailed("Failed to book appointment") from exc

    outcome = BookingOutcome(primary=primary)

    if slot.buffer is not None:
        buffer_type = catalog.get(slot.buffer.appointment_type_id)
        try:
            await client.create_appointment(
                slot.buffer, BUFFER_PATIENT_NAME, BUFFER_EMAIL, buffer_type.internal_name, provider_id
            )
            outcome.buffer_booked = True
        except (httpx.HTTPError, client.CerboAPIError):
            logger.exception("Buffer booking failed after %s", slot.end.isoformat())
            outcome.warnings.append("Buffer appointment could not be booked")

    task = reminder_task(appointment_type, slot.start, patient_name, email, provider_id, tz_name)
    try:
        await client.create_task(task)
        outcome.task_created = True
        logger.info("Created task: %s", task.notes)
    except (httpx.HTTPError, client.CerboAPIError):
        logger.exception("Task creation failed for appointment %s", primary.id)
        outcome.warnings.append("Reminder task could not be created")

    return outcome
