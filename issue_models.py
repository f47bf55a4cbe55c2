from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


class LoadPhase(str, Enum):
    LOADING = "Loading"
    READY = "Ready"
    FAILED = "Failed"


class LoadErrorKind(str, Enum):
    ACCESS_DENIED = "AccessDenied"
    LOAD_FAILURE = "LoadFailure"


ACCESS_DENIED_MESSAGE = "❌ Access denied: Admins only."
LOAD_FAILURE_MESSAGE = "❌ Failed to load issues."


@dataclass(frozen=True)
class IssueRecord:
    """One admin-manageable issue as returned by the backend."""

    id: str
    status: Optional[str] = None
    category: Optional[str] = None
    fields: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "IssueRecord":
        if not isinstance(payload, Mapping):
            raise ValueError(f"Issue payload must be an object, got {type(payload).__name__}")

        raw_id = payload.get("_id", payload.get("id"))
        if raw_id is None or raw_id == "":
            raise ValueError("Issue payload has no id")

        return cls(
            id=str(raw_id),
            status=payload.get("status"),
            category=payload.get("category"),
            fields=dict(payload),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload = dict(self.fields)
        payload["_id"] = self.id
        payload["status"] = self.status
        payload["category"] = self.category
        return payload

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)

    def with_status(self, status: str) -> "IssueRecord":
        return replace(self, status=status, fields={**self.fields, "status": status})


@dataclass(frozen=True)
class LoadError:
    kind: LoadErrorKind
    message: str
    status_code: Optional[int] = None

    @classmethod
    def access_denied(cls, status_code: Optional[int] = 403) -> "LoadError":
        return cls(LoadErrorKind.ACCESS_DENIED, ACCESS_DENIED_MESSAGE, status_code)

    @classmethod
    def load_failure(cls, status_code: Optional[int] = None) -> "LoadError":
        return cls(LoadErrorKind.LOAD_FAILURE, LOAD_FAILURE_MESSAGE, status_code)


@dataclass(frozen=True)
class LoadResult:
    """Outcome of the initial issue load: either issues or an error, never both."""

    issues: List[IssueRecord] = field(default_factory=list)
    error: Optional[LoadError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, issues: List[IssueRecord]) -> "LoadResult":
        return cls(issues=list(issues))

    @classmethod
    def failure(cls, error: LoadError) -> "LoadResult":
        return cls(error=error)
