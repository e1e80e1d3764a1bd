"""
Core error taxonomy.

Components never raise these; they return them inside their output objects
so the tag survives all the way to the API boundary, which maps each kind
to a stable transport status.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    UNAUTHENTICATED = "unauthenticated"  # missing/invalid/expired token, bad credentials
    FORBIDDEN = "forbidden"  # authenticated but not permitted
    CONFLICT = "conflict"  # duplicate email, duplicate RSVP
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    PARTIAL_FAILURE = "partial_failure"  # multi-step write left inconsistent


@dataclass(frozen=True)
class CoreError:
    """A typed failure returned by a component."""

    kind: ErrorKind
    message: str
    field: str | None = None

    @classmethod
    def unauthenticated(cls, message: str) -> CoreError:
        return cls(ErrorKind.UNAUTHENTICATED, message)

    @classmethod
    def forbidden(cls, message: str = "Access denied") -> CoreError:
        return cls(ErrorKind.FORBIDDEN, message)

    @classmethod
    def conflict(cls, message: str, field: str | None = None) -> CoreError:
        return cls(ErrorKind.CONFLICT, message, field)

    @classmethod
    def not_found(cls, message: str) -> CoreError:
        return cls(ErrorKind.NOT_FOUND, message)

    @classmethod
    def validation(cls, message: str, field: str | None = None) -> CoreError:
        return cls(ErrorKind.VALIDATION, message, field)

    @classmethod
    def partial_failure(cls, message: str) -> CoreError:
        return cls(ErrorKind.PARTIAL_FAILURE, message)
