import logging
import secrets
from datetime import date, datetime, timezone
from typing import Optional
import httpx
import uvicorn
from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from . import client, config
from .booking import BookingFailed, book_time_slot
from .cache import SlotCache
from .catalog import DEFAULT_CATALOG, AppointmentTypeCatalog, UnknownAppointmentType
from .engine import compute_time_slots
from .models import AppointmentTypeOut, AvailabilityResponse, BookRequest, BookResponse, SlotOut

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

API_KEY = config.API_KEY
PROVIDER_ID = config.PROVIDER_ID
SESSION_HEADER = "X-Session-Id"

auth_scheme = HTTPBearer(auto_error=False)

app = FastAPI(title="Cerbo Scheduling Service")
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", SESSION_HEADER],
    expose_headers=[SESSION_HEADER],
)
app.state.slot_cache = SlotCache(config.SLOT_CACHE_TTL_SECONDS)
app.state.catalog = DEFAULT_CATALOG


def verify_api_key(credentials: HTTPAuthorizationCredentials = Depends(auth_scheme)):
    """Validate Bearer token when an API key is configured"""
    if not API_KEY:
        return
    if credentials is None or credentials.scheme.lower() != "bearer" or credentials.credentials != API_KEY:
        raise HTTPException(status_code=401, detail="Invalid API key")


def get_slot_cache(request: Request) -> SlotCache:
    return request.app.state.slot_cache


def get_catalog(request: Request) -> AppointmentTypeCatalog:
    return request.app.state.catalog


def _utc(value: datetime) -> datetime:
    # windows carry the provider offset, appointments are UTC; clients see one zone
    return value.astimezone(timezone.utc)


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.get("/api/appointment-types", dependencies=[Depends(verify_api_key)], response_model=list[AppointmentTypeOut])
async def appointment_types(catalog: AppointmentTypeCatalog = Depends(get_catalog)):
    """Appointment types a patient can book (the buffer type is hidden)."""
    return [AppointmentTypeOut(id=spec.id, display_name=spec.display_name) for spec in catalog.bookable()]


@app.get("/api/availability", dependencies=[Depends(verify_api_key)], response_model=AvailabilityResponse)
async def list_availability(
    response: Response,
    appointment_type_id: int = Query(...),
    start_date: date = Query(...),
    end_date: date = Query(...),
    session_id: Optional[str] = Header(None, alias=SESSION_HEADER),
    cache: SlotCache = Depends(get_slot_cache),
    catalog: AppointmentTypeCatalog = Depends(get_catalog),
):
    """Bookable slots for one appointment type, remembered for this session."""
    if end_date < start_date:
        raise HTTPException(status_code=422, detail="end_date must not be before start_date")
    try:
        appointment_type = catalog.get(appointment_type_id)
    except UnknownAppointmentType as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    if appointment_type.id == catalog.buffer_type_id:
        raise HTTPException(status_code=404, detail=f"Appointment type {appointment_type_id} is not bookable")

    try:
        windows = await client.fetch_availability(PROVIDER_ID, start_date, end_date)
        appointments = await client.fetch_appointments(PROVIDER_ID, start_date, end_date)
    except (httpx.HTTPError, client.CerboAPIError):
        logger.exception("Fetching schedule from Cerbo failed")
        raise HTTPException(status_code=502, detail="Failed to retrieve availability")

    results = compute_time_slots(windows, appointments, appointment_type, catalog)

    session_id = session_id or secrets.token_urlsafe(16)
    slot_ids = cache.store(session_id, results)
    response.headers[SESSION_HEADER] = session_id

    return AvailabilityResponse(
        appointment_type_id=appointment_type.id,
        slots=[
            SlotOut(
                slot_id=slot_id,
                start=_utc(result.start),
                end=_utc(result.end),
                appointment_type_id=result.primary.appointment_type_id,
                has_dual_booking=result.has_dual_booking,
                buffer_start=_utc(result.buffer.start) if result.buffer else None,
            )
            for slot_id, result in zip(slot_ids, results)
        ],
    )


@app.post("/api/book-appointment", dependencies=[Depends(verify_api_key)], response_model=BookResponse)
async def book_appointment(
    req: BookRequest,
    session_id: Optional[str] = Header(None, alias=SESSION_HEADER),
    cache: SlotCache = Depends(get_slot_cache),
    catalog: AppointmentTypeCatalog = Depends(get_catalog),
):
    """Book a slot previously listed in this session."""
    slot = cache.get(session_id, req.slot_id) if session_id else None
    if slot is None:
        raise HTTPException(status_code=404, detail="Time slot not found or expired, list availability again")

    try:
        outcome = await book_time_slot(slot, req.patient_name, str(req.email), catalog, PROVIDER_ID)
    except BookingFailed as exc:
        raise HTTPException(status_code=502, detail=str(exc))

    cache.discard(session_id, req.slot_id)
    return BookResponse(
        success=outcome.success,
        appointment_id=outcome.primary.id,
        appointment_type_id=slot.primary.appointment_type_id,
        start=_utc(slot.start),
        end=_utc(slot.end),
        buffer_booked=outcome.buffer_booked,
        task_created=outcome.task_created,
        warnings=outcome.warnings,
    )


def main():
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)


if __name__ == "__main__":
    main()
