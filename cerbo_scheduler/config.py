"""Runtime configuration read from the environment (and a local .env file)."""
from __future__ import annotations
import os
from dataclasses import dataclass, field
from dotenv import load_dotenv

load_dotenv()

CERBO_BASE_URL = os.getenv("CERBO_API_BASE_URL", "https://api.example.com")
CERBO_AUTH_HEADER = os.getenv("CERBO_API_AUTH_HEADER", "")
HTTP_TIMEOUT = float(os.getenv("CERBO_HTTP_TIMEOUT", "15"))

# Single provider per deployment
PROVIDER_ID = int(os.getenv("CERBO_PROVIDER_ID", "61"))
PROVIDER_TIMEZONE = os.getenv("PROVIDER_TIMEZONE", "America/Toronto")

API_KEY = os.getenv("API_KEY", "")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGIN", "*").split(",") if o.strip()]
SLOT_CACHE_TTL_SECONDS = int(os.getenv("SLOT_CACHE_TTL_SECONDS", "3600"))
PORT = int(os.getenv("PORT", "3001"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

BUFFER_TYPE_ID = 135


def normalize_status(status: str | None) -> str:
    """'Checked In', 'checked-in' and 'CHECKED_IN' all become 'checked_in'."""
    if not status:
        return ""
    return status.strip().lower().replace("-", "_").replace(" ", "_")


@dataclass(frozen=True)
class SchedulingPolicy:
    """Business rules for slot generation and provider breaks."""
    slot_step_minutes: int = 30
    soft_threshold_minutes: int = 60
    hard_cap_minutes: int = 90
    adjacency_tolerance_minutes: int = 1
    buffer_minutes: int = 30
    buffer_type_id: int = BUFFER_TYPE_ID
    ignorable_type_ids: frozenset[int] = field(default_factory=lambda: frozenset({BUFFER_TYPE_ID}))
    buffer_blocking_statuses: frozenset[str] = frozenset({"confirmed", "checked_in"})

    def blocks_buffer(self, status: str | None) -> bool:
        return normalize_status(status) in self.buffer_blocking_statuses


DEFAULT_POLICY = SchedulingPolicy()
