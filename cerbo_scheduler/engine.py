"""Bookable time slots for one provider and one appointment type.

Pipeline: generate candidates -> drop conflicts -> work-block policy ->
buffer placement -> sorted results. Pure and synchronous; all I/O happens in
the caller.
"""
from __future__ import annotations
import logging
from typing import Iterable
from .buffers import place_buffer
from .catalog import AppointmentTypeCatalog
from .config import DEFAULT_POLICY, SchedulingPolicy
from .conflicts import filter_conflicts
from .models import (
    AppointmentTypeSpec,
    AvailabilityWindow,
    CandidateSlot,
    ProposedBooking,
    ScheduledAppointment,
    TimeSlotResult,
)
from .slots import generate_candidates
from .work_blocks import WorkDecision, assess, work_appointments

logger = logging.getLogger(__name__)


def _result(candidate: CandidateSlot, appointment_type: AppointmentTypeSpec,
            buffer: ProposedBooking | None) -> TimeSlotResult:
    primary = ProposedBooking(
        appointment_type_id=appointment_type.id,
        start=candidate.start,
        duration_minutes=appointment_type.duration_minutes,
    )
    return TimeSlotResult(
        start=candidate.start,
        end=candidate.end,
        has_dual_booking=candidate.dual_booking_already_present,
        primary=primary,
        buffer=buffer,
    )


def evaluate_candidates(
    windows: Iterable[AvailabilityWindow],
    appointments: Iterable[ScheduledAppointment],
    appointment_type: AppointmentTypeSpec,
    catalog: AppointmentTypeCatalog,
    policy: SchedulingPolicy = DEFAULT_POLICY,
) -> list[TimeSlotResult]:
    """Surviving slots in generation order (window slots, then dual-booking mirrors)."""
    appointments = list(appointments)
    work = work_appointments(appointments, catalog, policy)

    candidates = generate_candidates(windows, appointment_type, appointments, catalog, policy)
    candidates = filter_conflicts(candidates, work, appointment_type.dual_bookable, catalog)

    results = []
    for candidate in candidates:
        decision = assess(candidate, work, policy)
        if decision is WorkDecision.TOO_LONG:
            continue
        buffer = None
        if decision is WorkDecision.NEEDS_BUFFER:
            buffer = place_buffer(candidate, appointments, policy)
            if buffer is None:
                logger.debug("dropping %s: no room for a buffer", candidate.start.isoformat())
                continue
        results.append(_result(candidate, appointment_type, buffer))
    return results


def assemble_results(results: Iterable[TimeSlotResult]) -> list[TimeSlotResult]:
    return sorted(results, key=lambda r: r.start)


def compute_time_slots(
    windows: Iterable[AvailabilityWindow],
    appointments: Iterable[ScheduledAppointment],
    appointment_type: AppointmentTypeSpec,
    catalog: AppointmentTypeCatalog,
    policy: SchedulingPolicy = DEFAULT_POLICY,
) -> list[TimeSlotResult]:
    results = assemble_results(
        evaluate_candidates(windows, appointments, appointment_type, catalog, policy)
    )
    logger.info("type %s: %d bookable slots (%d with buffer)", appointment_type.id,
                len(results), sum(1 for r in results if r.buffer is not None))
    return results
