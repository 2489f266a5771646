"""Per-session snapshot of listed slots, so booking reuses exactly what was shown.

Sessions idle longer than the TTL are forgotten. Concurrent bookings against
overlapping snapshots are not serialized; Cerbo is the source of truth.
"""
from __future__ import annotations
import secrets
import time
from typing import Callable
from .models import TimeSlotResult


class SlotCache:
    def __init__(self, ttl_seconds: float = 3600, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: dict[str, dict] = {}

    def store(self, session_id: str, results: list[TimeSlotResult]) -> list[str]:
        """Replace the session's snapshot; returns one opaque id per result, in order."""
        self.purge_expired()
        ids = [secrets.token_urlsafe(12) for _ in results]
        self._sessions[session_id] = {
            "slots": dict(zip(ids, results)),
            "exp": self._clock() + self.ttl_seconds,
        }
        return ids

    def get(self, session_id: str, slot_id: str) -> TimeSlotResult | None:
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        now = self._clock()
        if now >= entry["exp"]:
            del self._sessions[session_id]
            return None
        entry["exp"] = now + self.ttl_seconds
        return entry["slots"].get(slot_id)

    def discard(self, session_id: str, slot_id: str) -> None:
        entry = self._sessions.get(session_id)
        if entry is not None:
            entry["slots"].pop(slot_id, None)

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [sid for sid, entry in self._sessions.items() if now >= entry["exp"]]
        for sid in expired:
            del self._sessions[sid]
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)
