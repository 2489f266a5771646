"""Async Cerbo EMR API client: provider availability, appointments, bookings and tasks.
Auth is a static Authorization header issued by Cerbo.
"""
from __future__ import annotations
import logging
from datetime import date, datetime, timezone
import httpx
from . import config
from .models import AvailabilityWindow, CreatedAppointment, ProposedBooking, ScheduledAppointment, TaskRequest

logger = logging.getLogger(__name__)

_BASE_URL = config.CERBO_BASE_URL
_AUTH_HEADER = config.CERBO_AUTH_HEADER
_TIMEOUT = config.HTTP_TIMEOUT


class CerboAPIError(RuntimeError):
    """Cerbo answered 2xx but the body reported an error or could not be read."""


def _headers() -> dict[str, str]:
    return {"Authorization": _AUTH_HEADER, "Accept": "application/json"}


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(http2=True, timeout=_TIMEOUT)


def _raise_for_status(resp: httpx.Response) -> None:
    if resp.is_error:
        logger.error("Cerbo API error (%s %s): %s", resp.status_code, resp.reason_phrase, resp.text)
    resp.raise_for_status()


def _json(resp: httpx.Response):
    """Decode a 2xx body; empty or non-JSON bodies (gateway pages, 204s) become CerboAPIError."""
    try:
        return resp.json()
    except ValueError as exc:
        logger.error("Cerbo returned a non-JSON body (%s): %r", resp.status_code, resp.text[:200])
        raise CerboAPIError(f"unreadable response from Cerbo ({resp.status_code})") from exc


def _json_object(resp: httpx.Response) -> dict:
    payload = _json(resp)
    if not isinstance(payload, dict):
        raise CerboAPIError(f"unexpected response from Cerbo: {type(payload).__name__}")
    return payload


def format_date(value: date | datetime | str) -> str:
    """YYYY-MM-DD as Cerbo expects for date-range parameters."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value.split("T", 1)[0]


def _parse_local(value: str, offset: str) -> datetime:
    """Availability windows are local wall-clock strings plus a separate GMT offset."""
    text = value.strip().replace(" ", "T")
    parsed = datetime.fromisoformat(f"{text}{offset}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_utc(value: str) -> datetime:
    """Appointment times are UTC, with or without the trailing Z."""
    text = value.strip().replace(" ", "T")
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_availability(payload: dict, provider_id: int | None = None) -> list[AvailabilityWindow]:
    offset = payload.get("gmt_timezone_offset") or ""
    # Cerbo spells the key "user_availabilies"
    providers = payload.get("user_availabilies") or payload.get("user_availabilities") or []

    windows = []
    for provider in providers:
        if provider_id is not None and provider.get("provider_id") is not None:
            if int(provider["provider_id"]) != provider_id:
                continue
        for by_type in provider.get("availability_by_type") or []:
            type_id = int(by_type["appointment_type_id"])
            for window in by_type.get("available_windows") or []:
                windows.append(AvailabilityWindow(
                    start=_parse_local(window["window_start"], offset),
                    end=_parse_local(window["window_end"], offset),
                    appointment_type_id=type_id,
                ))
    return windows


def parse_appointments(payload: dict) -> list[ScheduledAppointment]:
    appointments = []
    for item in payload.get("data") or []:
        if not item.get("start_date_time") or not item.get("end_date_time"):
            continue
        appointments.append(ScheduledAppointment(
            id=str(item["id"]) if item.get("id") is not None else None,
            title=item.get("title"),
            start=_parse_utc(item["start_date_time"]),
            end=_parse_utc(item["end_date_time"]),
            internal_type_name=item.get("appointment_type"),
            status=item.get("appointment_status"),
        ))
    return appointments


async def fetch_availability(
    provider_id: int, start_date: date | datetime | str, end_date: date | datetime | str
) -> list[AvailabilityWindow]:
    """Return the provider's open windows for every appointment type in the date range."""
    params = [
        ("provider_ids[]", str(provider_id)),
        ("start_date", format_date(start_date)),
        ("end_date", format_date(end_date)),
    ]
    url = f"{_BASE_URL}/appointments/availability"
    logger.info("GET %s %s", url, params)
    async with _client() as client:
        resp = await client.get(url, headers=_headers(), params=params)
        _raise_for_status(resp)
        payload = _json(resp)
    try:
        return parse_availability(payload, provider_id)
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise CerboAPIError(f"malformed availability response: {exc}") from exc


async def fetch_appointments(
    provider_id: int, start_date: date | datetime | str, end_date: date | datetime | str
) -> list[ScheduledAppointment]:
    """Return every appointment on the provider's calendar in the date range."""
    params = {
        "provider_id": str(provider_id),
        "start_date": format_date(start_date),
        "end_date": format_date(end_date),
    }
    url = f"{_BASE_URL}/appointments"
    logger.info("GET %s %s", url, params)
    async with _client() as client:
        resp = await client.get(url, headers=_headers(), params=params)
        _raise_for_status(resp)
        payload = _json(resp)
    try:
        return parse_appointments(payload)
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise CerboAPIError(f"malformed appointments response: {exc}") from exc


def appointment_body(
    booking: ProposedBooking, patient_name: str, email: str, type_internal_name: str, provider_id: int
) -> dict:
    title = f"{patient_name} ({email})"
    return {
        "start_date_time": booking.start.astimezone(timezone.utc).isoformat().replace("+00:00", "Z"),
        "end_date_time": booking.end.astimezone(timezone.utc).isoformat().replace("+00:00", "Z"),
        "provider_ids": [provider_id],
        "appointment_type": type_internal_name,
        "title": title,
        "appointment_note": title,
        "status": "scheduled",
        "telemedicine": False,
    }


async def create_appointment(
    booking: ProposedBooking,
    patient_name: str,
    email: str,
    type_internal_name: str,
    provider_id: int = config.PROVIDER_ID,
) -> CreatedAppointment:
    """Book one appointment (a patient visit or a buffer) on the provider's calendar."""
    body = appointment_body(booking, patient_name, email, type_internal_name, provider_id)
    url = f"{_BASE_URL}/appointments"
    logger.info("POST %s type=%r start=%s", url, type_internal_name, body["start_date_time"])
    async with _client() as client:
        resp = await client.post(url, headers=_headers(), json=body)
        _raise_for_status(resp)
        payload = _json_object(resp)

    if not payload or payload.get("error"):
        raise CerboAPIError(f"appointment not created: {payload.get('error') if payload else 'empty response'}")

    providers = payload.get("associated_providers") or [{}]
    try:
        return CreatedAppointment(
            id=str(payload["id"]) if payload.get("id") is not None else None,
            title=payload.get("title"),
            status=payload.get("appointment_status"),
            start=payload.get("start_date_time"),
            end=payload.get("end_date_time"),
            appointment_type_internal_name=payload.get("appointment_type"),
            provider_id=providers[0].get("id"),
        )
    except (KeyError, TypeError, ValueError, AttributeError, IndexError) as exc:
        raise CerboAPIError(f"malformed appointment response: {exc}") from exc


async def create_task(task: TaskRequest) -> str | None:
    """Create a provider task; returns the new task id."""
    url = f"{_BASE_URL}/tasks"
    logger.info("POST %s subject=%r", url, task.subject)
    async with _client() as client:
        resp = await client.post(url, headers=_headers(), json=task.model_dump())
        _raise_for_status(resp)
        payload = _json_object(resp)
    task_id = payload.get("id")
    return str(task_id) if task_id is not None else None
