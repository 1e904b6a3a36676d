from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class FailureReason(str, Enum):
    ERROR   = "error"     # backend answered with a failure body
    FAULT   = "fault"     # the call itself raised
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class BucketInfo:
    name: str
    is_public: bool = False
    error: str = ""   # set when the listing entry could not be read


@dataclass(frozen=True)
class ProbeResult:
    """
    Outcome of a single backend call.

    Structured error bodies and raised exceptions both end up here, so callers
    only ever branch on ``ok``.
    """
    ok: bool
    payload: Any = None
    reason: Optional[FailureReason] = None
    message: str = ""

    @classmethod
    def success(cls, payload: Any = None) -> "ProbeResult":
        return cls(ok=True, payload=payload)

    @classmethod
    def failure(cls, reason: FailureReason, message: str) -> "ProbeResult":
        return cls(ok=False, reason=reason, message=message)
