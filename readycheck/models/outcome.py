from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from readycheck.models.resource import ResourceKind, ResourceSpec
from readycheck.models.result import FailureReason


class Status(str, Enum):
    REACHABLE   = "Reachable"
    UNREACHABLE = "Unreachable"


class Visibility(str, Enum):
    PUBLIC  = "Public"
    PRIVATE = "Private"


@dataclass(frozen=True)
class ProbeOutcome:
    spec: ResourceSpec
    resource_name: str
    status: Status
    detail: str = ""
    visibility: Optional[Visibility] = None   # bucket outcomes only
    reason: Optional[FailureReason] = None

    @property
    def reachable(self) -> bool:
        return self.status == Status.REACHABLE

    def to_dict(self) -> dict:
        return {
            "kind": self.spec.kind.value,
            "resource": self.resource_name,
            "status": self.status.value,
            "detail": self.detail,
            "visibility": self.visibility.value if self.visibility else None,
            "reason": self.reason.value if self.reason else None,
        }


@dataclass
class Report:
    outcomes: List[ProbeOutcome] = field(default_factory=list)
    backend_url: str = ""
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def success(self) -> bool:
        """Advisory only; nothing exits non-zero on this."""
        return all(o.reachable for o in self.outcomes)

    def by_kind(self, kind: ResourceKind) -> List[ProbeOutcome]:
        return [o for o in self.outcomes if o.spec.kind == kind]

    def counts(self) -> Dict[str, Dict[str, int]]:
        """Reachable/total tallies keyed by resource kind."""
        counts: Dict[str, Dict[str, int]] = {}
        for kind in ResourceKind:
            outcomes = self.by_kind(kind)
            counts[kind.value] = {
                "reachable": sum(1 for o in outcomes if o.reachable),
                "total": len(outcomes),
            }
        return counts
