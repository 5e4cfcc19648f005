"""Error definitions for the prdkit codec layer."""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

E_TRUNCATED = "E_TRUNCATED"
E_FORMAT = "E_FORMAT"
E_PARAMS = "E_PARAMS"
E_MISSING_CONTAINER = "E_MISSING_CONTAINER"


@dataclass
class PrdError(Exception):
    code: str
    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context or {},
        }


class TruncatedInput(PrdError):
    pass


class InvalidFormat(PrdError):
    pass


class InvalidParameters(PrdError):
    pass


class MissingContainer(PrdError):
    pass


class ErrorScope(Enum):
    """Granularity a failure aborts: one directory file or one asset."""

    DIRECTORY = "directory"
    ASSET = "asset"


@dataclass(slots=True)
class Failure:
    scope: ErrorScope
    source: str
    error: PrdError

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scope": self.scope.value,
            "source": self.source,
            **self.error.to_dict(),
        }


def truncated(
    message: str, context: Optional[Dict[str, Any]] = None
) -> TruncatedInput:
    return TruncatedInput(code=E_TRUNCATED, message=message, context=context)


def invalid_format(
    message: str, context: Optional[Dict[str, Any]] = None
) -> InvalidFormat:
    return InvalidFormat(code=E_FORMAT, message=message, context=context)


def invalid_parameters(
    message: str, context: Optional[Dict[str, Any]] = None
) -> InvalidParameters:
    return InvalidParameters(code=E_PARAMS, message=message, context=context)


def missing_container(
    message: str, context: Optional[Dict[str, Any]] = None
) -> MissingContainer:
    return MissingContainer(
        code=E_MISSING_CONTAINER, message=message, context=context
    )


__all__ = [
    "PrdError",
    "TruncatedInput",
    "InvalidFormat",
    "InvalidParameters",
    "MissingContainer",
    "ErrorScope",
    "Failure",
    "truncated",
    "invalid_format",
    "invalid_parameters",
    "missing_container",
    "E_TRUNCATED",
    "E_FORMAT",
    "E_PARAMS",
    "E_MISSING_CONTAINER",
]
