"""Typed failures raised by the progression engine.

Every engine operation reports failure through one of the four kinds below.
The HTTP layer turns them into ``HTTPException`` using ``status_code`` and
``code``; services never translate or swallow them.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, eq=False)
class EngineError(Exception):
    """Base class carrying a machine readable ``code`` and an HTTP status."""

    code: str
    status_code: int = 400

    def __str__(self) -> str:  # pragma: no cover - human readable message
        return self.code


@dataclass(eq=False)
class NotFoundError(EngineError):
    """A referenced user, item, concept or row does not exist."""

    code: str = "not_found"
    status_code: int = 404


@dataclass(eq=False)
class InvalidInputError(EngineError):
    """Quality out of range, malformed identifier, unknown level..."""

    code: str = "invalid_input"
    status_code: int = 400


@dataclass(eq=False)
class ForbiddenError(EngineError):
    """The caller lacks the privilege required by the operation."""

    code: str = "forbidden"
    status_code: int = 403


@dataclass(eq=False)
class ConflictError(EngineError):
    """Concurrent modification detected and not resolved by retrying."""

    code: str = "concurrent_update"
    status_code: int = 409


__all__ = [
    "ConflictError",
    "EngineError",
    "ForbiddenError",
    "InvalidInputError",
    "NotFoundError",
]
