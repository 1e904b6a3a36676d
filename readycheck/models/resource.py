from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional


class ResourceKind(str, Enum):
    TABLE    = "table"
    BUCKET   = "bucket"
    FUNCTION = "function"
    AUTH     = "auth"


@dataclass(frozen=True)
class ResourceSpec:
    kind: ResourceKind
    name: Optional[str] = None   # None on a bucket spec means "every bucket"
    description: str = ""
    args: Optional[Mapping[str, Any]] = field(default=None, hash=False)   # rpc arguments

    @property
    def is_bucket_category(self) -> bool:
        return self.kind == ResourceKind.BUCKET and not self.name

    @property
    def label(self) -> str:
        if self.kind == ResourceKind.AUTH:
            return "auth"
        if self.is_bucket_category:
            return "storage buckets"
        return self.name or ""
