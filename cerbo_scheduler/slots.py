"""Candidate slot generation from provider availability windows."""
from __future__ import annotations
import logging
from datetime import datetime, timedelta
from typing import Iterable
from .catalog import AppointmentTypeCatalog
from .config import DEFAULT_POLICY, SchedulingPolicy
from .intervals import duration_minutes
from .models import AppointmentTypeSpec, AvailabilityWindow, CandidateSlot, ScheduledAppointment

logger = logging.getLogger(__name__)


def align_to_step(moment: datetime, step_minutes: int = 30) -> datetime:
    """Round up to the next :00/:30 boundary (unchanged if already on one)."""
    floored = moment.replace(
        minute=(moment.minute // step_minutes) * step_minutes, second=0, microsecond=0
    )
    if floored == moment:
        return moment
    return floored + timedelta(minutes=step_minutes)


def window_candidates(
    window: AvailabilityWindow, duration: int, step_minutes: int = 30
) -> list[CandidateSlot]:
    """All step-aligned slots of ``duration`` minutes that fit inside the window."""
    out: list[CandidateSlot] = []
    length = timedelta(minutes=duration)
    step = timedelta(minutes=step_minutes)
    current = align_to_step(window.start, step_minutes)
    while current < window.end:
        end = current + length
        if end <= window.end:
            out.append(CandidateSlot(start=current, end=end))
        current += step
    return out


def dual_booking_candidates(
    appointment_type: AppointmentTypeSpec,
    appointments: Iterable[ScheduledAppointment],
    catalog: AppointmentTypeCatalog,
) -> list[CandidateSlot]:
    """Mirror existing dual-bookable appointments of the same length as extra candidates.

    These are not bound to an availability window: the second patient joins an
    appointment the provider already accepted.
    """
    if not appointment_type.dual_bookable:
        return []
    out = []
    for appt in appointments:
        if not catalog.is_dual_bookable_name(appt.internal_type_name):
            continue
        if duration_minutes(appt) != appointment_type.duration_minutes:
            continue
        out.append(CandidateSlot(start=appt.start, end=appt.end, dual_booking_already_present=True))
    return out


def generate_candidates(
    windows: Iterable[AvailabilityWindow],
    appointment_type: AppointmentTypeSpec,
    appointments: Iterable[ScheduledAppointment],
    catalog: AppointmentTypeCatalog,
    policy: SchedulingPolicy = DEFAULT_POLICY,
) -> list[CandidateSlot]:
    """Regular candidates in window order, followed by dual-booking mirrors."""
    candidates: list[CandidateSlot] = []
    for window in windows:
        if window.appointment_type_id != appointment_type.id:
            continue
        candidates.extend(
            window_candidates(window, appointment_type.duration_minutes, policy.slot_step_minutes)
        )
    mirrored = dual_booking_candidates(appointment_type, appointments, catalog)
    logger.debug(
        "type %s: %d window candidates, %d dual-booking candidates",
        appointment_type.id, len(candidates), len(mirrored),
    )
    return candidates + mirrored
