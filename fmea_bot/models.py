"""
Value types passed between the broker, the lookup cascade and the dispatcher.
"""
from dataclasses import dataclass
from typing import Any, Mapping, Optional

# Record attribute -> field name in the MongoDB collection
FIELD_MAP = {
    "process_block": "blok_proses",
    "part_name": "part_mesin",
    "function": "function",
    "failure_mode": "possible_failure_modes",
    "effect": "possible_effect",
    "cause": "possible_cause",
    "recommendation": "recommendation_actions",
}

SEARCH_FIELDS = list(FIELD_MAP.values())


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


@dataclass(frozen=True)
class Record:
    """One FMEA row as stored in the knowledge base."""

    process_block: Optional[str]
    part_name: Optional[str]
    function: Optional[str]
    failure_mode: Optional[str]
    effect: Optional[str]
    cause: Optional[str]
    recommendation: Optional[str]

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Record":
        return cls(**{attr: _as_text(doc.get(field)) for attr, field in FIELD_MAP.items()})


@dataclass(frozen=True)
class ResolutionResult:
    records: tuple = ()
    strategy: Optional[str] = None

    def __bool__(self) -> bool:
        return bool(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.records)


@dataclass(frozen=True)
class ResourceHandle:
    """Channel client and store handle; either may be missing."""

    channel: Any = None
    store: Any = None

    @property
    def channel_ready(self) -> bool:
        return self.channel is not None

    @property
    def store_ready(self) -> bool:
        return self.store is not None


@dataclass(frozen=True)
class DispatchOutcome:
    index: int
    delivered: bool
    error: Optional[str] = None
