"""Continuous-work analysis.

Appointments that start within the adjacency tolerance of the running block's
end are merged into one work block. The block that would contain a candidate
decides whether the candidate is fine as is, needs a break booked after it,
or would keep the provider working too long.
"""
from __future__ import annotations
import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Sequence
from .catalog import AppointmentTypeCatalog
from .config import DEFAULT_POLICY, SchedulingPolicy
from .intervals import Interval, contains, duration_minutes, is_adjacent
from .models import ScheduledAppointment

logger = logging.getLogger(__name__)


class WorkDecision(enum.Enum):
    OK = "ok"
    NEEDS_BUFFER = "needs_buffer"
    TOO_LONG = "too_long"


@dataclass(frozen=True)
class WorkBlock:
    start: datetime
    end: datetime

    @property
    def minutes(self) -> float:
        return duration_minutes(self)


def work_appointments(
    appointments: Iterable[ScheduledAppointment],
    catalog: AppointmentTypeCatalog,
    policy: SchedulingPolicy = DEFAULT_POLICY,
) -> list[ScheduledAppointment]:
    """Drop appointments whose type never counts as work (the buffer type)."""
    kept = []
    for appt in appointments:
        type_id = catalog.type_id_for_name(appt.internal_type_name)
        if type_id is not None and type_id in policy.ignorable_type_ids:
            continue
        kept.append(appt)
    return kept


def merge_work_blocks(intervals: Iterable[Interval], tolerance_minutes: float = 1) -> list[WorkBlock]:
    ordered = sorted(intervals, key=lambda i: (i.start, i.end))
    blocks: list[WorkBlock] = []
    start = end = None
    for item in ordered:
        if start is None:
            start, end = item.start, item.end
        elif is_adjacent(end, item.start, tolerance_minutes):
            end = max(end, item.end)
        else:
            blocks.append(WorkBlock(start, end))
            start, end = item.start, item.end
    if start is not None:
        blocks.append(WorkBlock(start, end))
    return blocks


def block_containing(
    candidate: Interval,
    work: Sequence[ScheduledAppointment],
    tolerance_minutes: float = 1,
) -> WorkBlock:
    """The work block the candidate would belong to if it were booked."""
    if candidate.end < candidate.start:
        raise ValueError(f"candidate ends before it starts: {candidate.start.isoformat()}")
    blocks = merge_work_blocks([*work, candidate], tolerance_minutes)
    for block in blocks:
        if contains(block, candidate):
            return block
    raise RuntimeError(f"no work block contains candidate at {candidate.start.isoformat()}")


def assess(
    candidate: Interval,
    work: Sequence[ScheduledAppointment],
    policy: SchedulingPolicy = DEFAULT_POLICY,
) -> WorkDecision:
    """Classify a candidate against already-filtered work appointments."""
    block = block_containing(candidate, work, policy.adjacency_tolerance_minutes)
    minutes = block.minutes
    if minutes > policy.hard_cap_minutes:
        decision = WorkDecision.TOO_LONG
    elif minutes >= policy.soft_threshold_minutes:
        decision = WorkDecision.NEEDS_BUFFER
    else:
        decision = WorkDecision.OK
    logger.debug("candidate %s: block %s-%s (%.0f min) -> %s",
                 candidate.start.isoformat(), block.start.isoformat(), block.end.isoformat(),
                 minutes, decision.value)
    return decision
