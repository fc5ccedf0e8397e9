"""Tagged outcomes returned by workflow operations.

Every public workflow operation returns a :class:`Result` that carries either
a success value or a non-empty tuple of :class:`Issue` objects, never both.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class IssueKind(str, Enum):
    """Failure taxonomy shared by services and the HTTP layer."""

    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    INTERNAL = "internal"
    EXTERNAL = "external"


@dataclass(frozen=True, slots=True)
class Issue:
    kind: IssueKind
    message: str
    field: str | None = None
    meta: dict[str, Any] = dataclasses.field(default_factory=dict)

    @classmethod
    def not_found(cls, resource: str, identifier: Any = None) -> Issue:
        suffix = f" with id {identifier}" if identifier is not None else ""
        return cls(IssueKind.NOT_FOUND, f"{resource}{suffix} not found")

    @classmethod
    def validation(cls, message: str, field: str | None = None) -> Issue:
        return cls(IssueKind.VALIDATION, message, field=field)

    @classmethod
    def internal(cls, message: str = "Internal server error") -> Issue:
        return cls(IssueKind.INTERNAL, message)

    @classmethod
    def external(cls, service: str, message: str) -> Issue:
        return cls(IssueKind.EXTERNAL, f"{service}: {message}", meta={"service": service})

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"kind": self.kind.value, "message": self.message}
        if self.field is not None:
            payload["field"] = self.field
        if self.meta:
            payload["meta"] = dict(self.meta)
        return payload


@dataclass(frozen=True, slots=True)
class Result(Generic[T]):
    value: T | None = None
    issues: tuple[Issue, ...] = ()

    def __post_init__(self) -> None:
        if self.issues and self.value is not None:
            raise ValueError("Result cannot carry both a value and issues")

    @property
    def ok(self) -> bool:
        return not self.issues

    @classmethod
    def success(cls, value: T) -> Result[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, *issues: Issue) -> Result[T]:
        if not issues:
            raise ValueError("A failed Result requires at least one issue")
        return cls(issues=tuple(issues))

    def unwrap(self) -> T:
        """Return the value or raise when the result failed."""
        if self.issues:
            messages = "; ".join(issue.message for issue in self.issues)
            raise RuntimeError(f"Unwrap failed: {messages}")
        return self.value  # type: ignore[return-value]
