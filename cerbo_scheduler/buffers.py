"""Break ("buffer") bookings placed straight after a long stretch of work."""
from __future__ import annotations
from typing import Iterable
from .config import DEFAULT_POLICY, SchedulingPolicy
from .intervals import Interval, overlaps
from .models import ProposedBooking, ScheduledAppointment


def buffer_for(candidate: Interval, policy: SchedulingPolicy = DEFAULT_POLICY) -> ProposedBooking:
    return ProposedBooking(
        appointment_type_id=policy.buffer_type_id,
        start=candidate.end,
        duration_minutes=policy.buffer_minutes,
        is_buffer=True,
    )


def place_buffer(
    candidate: Interval,
    appointments: Iterable[ScheduledAppointment],
    policy: SchedulingPolicy = DEFAULT_POLICY,
) -> ProposedBooking | None:
    """The buffer booking after ``candidate``, or None if a confirmed or
    checked-in appointment already sits in that time.
    """
    buffer = buffer_for(candidate, policy)
    for appt in appointments:
        if policy.blocks_buffer(appt.status) and overlaps(buffer, appt):
            return None
    return buffer
