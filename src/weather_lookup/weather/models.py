"""Result values returned by upstream provider calls."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from ..exceptions import ApiError, UpstreamRejectedError, UpstreamUnreachableError

FailureKind = Literal["rejected", "unreachable"]

GENERIC_UPSTREAM_ERROR = "Weather service error"
UNREACHABLE_UPSTREAM_ERROR = "Unable to reach weather service"


@dataclass(frozen=True, slots=True)
class UpstreamFailure:
    """Why an upstream call produced no usable payload."""

    kind: FailureKind
    message: str

    def to_error(self) -> ApiError:
        """Translate into the HTTP-facing error for this failure kind."""
        if self.kind == "unreachable":
            return UpstreamUnreachableError(self.message)
        return UpstreamRejectedError(self.message)


@dataclass(frozen=True, slots=True)
class UpstreamResult:
    """Either a decoded provider payload or a tagged failure, never both."""

    data: dict[str, Any] | None = None
    failure: UpstreamFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def error_message(self) -> str | None:
        return self.failure.message if self.failure else None

    @classmethod
    def success(cls, data: dict[str, Any]) -> UpstreamResult:
        return cls(data=data)

    @classmethod
    def rejected(cls, message: str | None = None) -> UpstreamResult:
        return cls(failure=UpstreamFailure("rejected", message or GENERIC_UPSTREAM_ERROR))

    @classmethod
    def unreachable(cls) -> UpstreamResult:
        return cls(failure=UpstreamFailure("unreachable", UNREACHABLE_UPSTREAM_ERROR))
