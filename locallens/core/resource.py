"""
Three-state result holder for values refreshed asynchronously.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


class ResourceStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class Resource(Generic[T]):
    status: ResourceStatus
    value: Optional[T] = None
    reason: Optional[str] = None

    @classmethod
    def pending(cls) -> "Resource[T]":
        return cls(status=ResourceStatus.PENDING)

    @classmethod
    def succeeded(cls, value: T) -> "Resource[T]":
        return cls(status=ResourceStatus.SUCCEEDED, value=value)

    @classmethod
    def failed(cls, reason: str) -> "Resource[T]":
        return cls(status=ResourceStatus.FAILED, reason=reason)

    @property
    def is_pending(self) -> bool:
        return self.status == ResourceStatus.PENDING

    @property
    def is_succeeded(self) -> bool:
        return self.status == ResourceStatus.SUCCEEDED

    def to_dict(self) -> Dict[str, Any]:
        value = self.value
        if hasattr(value, "model_dump"):
            value = value.model_dump()
        elif isinstance(value, list):
            value = [v.model_dump() if hasattr(v, "model_dump") else v for v in value]
        return {"status": self.status.value, "value": value, "reason": self.reason}
