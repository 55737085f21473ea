"""
Data models for storage layer.

Defines the usage ledger entity shared by every ledger store.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

LEDGER_TABLE = "recipe_generation_logs"
DEFAULT_PROVIDER = "openai"


class GenerationStatus(Enum):
    """Terminal outcome of one generation attempt."""
    SUCCESS = "success"
    ERROR = "error"
    RATE_LIMITED = "rate_limited"


@dataclass(frozen=True)
class UsageLogEntry:
    """Immutable record of one recipe generation attempt.

    Append-only rows that form both the rate-limit window and the audit
    trail. Once written, these records must never be modified.
    ``requested_at`` is assigned by the store when the row is inserted.
    """
    user_id: str
    status: GenerationStatus
    ingredient_count: int
    provider: str = DEFAULT_PROVIDER
    error_code: Optional[str] = None
    latency_ms: Optional[int] = None
    requested_at: Optional[datetime] = None

    def to_row(self) -> Dict[str, Any]:
        """Column mapping used by the insert endpoints (timestamp excluded)."""
        return {
            "user_id": self.user_id,
            "status": self.status.value,
            "provider": self.provider,
            "ingredient_count": self.ingredient_count,
            "error_code": self.error_code,
            "latency_ms": self.latency_ms,
        }
