"""
Structured per-phase outcome of a provider import.

Each phase reports what happened to every unit of work instead of raising,
so a caller can show partial success.
"""
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional


@dataclass
class RecordFailure:
    external_id: str
    reason: str


@dataclass
class PhaseResult:
    phase: str
    provider_platform_id: str
    received: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    unmapped: int = 0
    cancelled: bool = False
    failures: List[RecordFailure] = field(default_factory=list)

    def record_failure(self, external_id: Optional[str], reason: str) -> None:
        self.failed += 1
        self.failures.append(RecordFailure(external_id=external_id or "", reason=reason))

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SyncReport:
    """Full ordered sync: phases that ran, and the error that stopped it, if any."""
    provider_platform_id: str
    phases: List[PhaseResult] = field(default_factory=list)
    failed_phase: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def cancelled(self) -> bool:
        return any(p.cancelled for p in self.phases)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "provider_platform_id": self.provider_platform_id,
            "phases": [p.as_dict() for p in self.phases],
            "failed_phase": self.failed_phase,
            "error": self.error,
            "cancelled": self.cancelled,
        }
