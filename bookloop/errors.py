from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar


class CirculationError(Exception):
    """Base class for every business-rule rejection raised by the core."""

    code = "CirculationError"
    default_message = "Request rejected."

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class NotAuthenticated(CirculationError):
    code = "NotAuthenticated"
    default_message = "Please log in."


class BookNotFound(CirculationError):
    code = "BookNotFound"
    default_message = "Book not found."


class AlreadyBorrowed(CirculationError):
    code = "AlreadyBorrowed"
    default_message = "You already borrowed this book."


class ReservedByOther(CirculationError):
    code = "ReservedByOther"
    default_message = "Reserved by another member."


class NoCopiesAvailable(CirculationError):
    code = "NoCopiesAvailable"
    default_message = "No copies available. Consider reserving."


class InvalidLoan(CirculationError):
    code = "InvalidLoan"
    default_message = "Invalid loan."


class RenewalLimitReached(CirculationError):
    code = "RenewalLimitReached"
    default_message = "Renewal limit reached."


class AlreadyReserved(CirculationError):
    code = "AlreadyReserved"
    default_message = "Already reserved this book."


class EmailAlreadyRegistered(CirculationError):
    code = "EmailAlreadyRegistered"
    default_message = "Email already registered."


class AccountNotFound(CirculationError):
    code = "AccountNotFound"
    default_message = "No account found for this email."


class InvalidInput(CirculationError):
    code = "InvalidInput"
    default_message = "Invalid input."


class InventoryError(CirculationError):
    """availableCopies would leave the range 0..totalCopies."""

    code = "InventoryError"
    default_message = "Copy count out of range."


class SnapshotIntegrityError(CirculationError):
    code = "SnapshotIntegrityError"
    default_message = "Snapshot failed validation."


T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of a facade command: either a value or a typed failure."""

    ok: bool
    value: Optional[T] = None
    error: Optional[CirculationError] = None

    @classmethod
    def success(cls, value: Any = None) -> "Outcome":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: CirculationError) -> "Outcome":
        return cls(ok=False, error=error)

    @property
    def code(self) -> Optional[str]:
        return self.error.code if self.error else None

    @property
    def message(self) -> Optional[str]:
        return self.error.message if self.error else None

    def __bool__(self) -> bool:
        return self.ok
