"""
Ledger error taxonomy.

Every error is an ``HTTPException`` so that services can raise it directly
and FastAPI renders it without a custom handler.  The response body is::

    {"detail": {"error": "<Kind>", "message": "...", "field": "<camelCase>|null"}}

Callers inside Python code branch on ``exc.kind`` (or the subclass) rather
than on the HTTP status.
"""

from __future__ import annotations

from fastapi import HTTPException, status


class LedgerError(HTTPException):
    """Base class for every ledger failure surfaced to a caller."""

    kind: str = "LedgerError"
    status_code_default: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, field: str | None = None) -> None:
        self.message = message
        self.field = field
        super().__init__(
            status_code=self.status_code_default,
            detail={"error": self.kind, "message": message, "field": field},
        )

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


class ValidationError(LedgerError):
    kind = "ValidationError"
    status_code_default = 422


class DuplicateAllocation(LedgerError):
    kind = "DuplicateAllocation"
    status_code_default = status.HTTP_409_CONFLICT


class AllocationNotFound(LedgerError):
    kind = "AllocationNotFound"
    status_code_default = status.HTTP_404_NOT_FOUND


class NotFound(LedgerError):
    """A release, adjustment or budget entry id that does not exist."""

    kind = "NotFound"
    status_code_default = status.HTTP_404_NOT_FOUND


class AlreadyReleased(LedgerError):
    kind = "AlreadyReleased"
    status_code_default = status.HTTP_409_CONFLICT


class NothingToRelease(LedgerError):
    kind = "NothingToRelease"
    status_code_default = 422


class InsufficientAvailableBudget(LedgerError):
    kind = "InsufficientAvailableBudget"
    status_code_default = 422


class HasDependents(LedgerError):
    kind = "HasDependents"
    status_code_default = status.HTTP_409_CONFLICT


class StorageError(LedgerError):
    """Transaction or connection failure; nothing was committed, retry is safe."""

    kind = "StorageError"
    status_code_default = status.HTTP_503_SERVICE_UNAVAILABLE
