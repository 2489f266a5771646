"""Reject candidates that collide with the provider's existing appointments."""
from __future__ import annotations
from typing import Iterable, Sequence
from .catalog import AppointmentTypeCatalog
from .intervals import overlaps, same_interval
from .models import CandidateSlot, ScheduledAppointment


def dual_booking_status(
    candidate: CandidateSlot,
    appointments: Iterable[ScheduledAppointment],
    catalog: AppointmentTypeCatalog,
) -> bool | None:
    """For a dual-bookable candidate: None if rejected, else whether it joins an existing booking.

    The only overlap tolerated is a single dual-bookable appointment with exactly
    the candidate's interval.
    """
    exact_matches = 0
    for appt in appointments:
        if not overlaps(candidate, appt):
            continue
        if not catalog.is_dual_bookable_name(appt.internal_type_name):
            return None
        if not same_interval(candidate, appt):
            return None
        exact_matches += 1
        if exact_matches > 1:
            return None
    return exact_matches == 1


def filter_conflicts(
    candidates: Iterable[CandidateSlot],
    appointments: Sequence[ScheduledAppointment],
    dual_bookable: bool,
    catalog: AppointmentTypeCatalog,
) -> list[CandidateSlot]:
    """Keep candidates that can be booked alongside ``appointments``.

    ``appointments`` should already exclude ignorable types. Survivors carry
    ``dual_booking_already_present`` set to whether they share their interval
    with an existing dual booking.
    """
    survivors = []
    for candidate in candidates:
        if not dual_bookable:
            if any(overlaps(candidate, appt) for appt in appointments):
                continue
            survivors.append(candidate)
            continue

        has_dual = dual_booking_status(candidate, appointments, catalog)
        if has_dual is None:
            continue
        if has_dual != candidate.dual_booking_already_present:
            candidate = candidate.model_copy(update={"dual_booking_already_present": has_dual})
        survivors.append(candidate)
    return survivors
