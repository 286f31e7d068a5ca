"""Immutable exports of the circulation state.

A snapshot is what rendering and persistence code is allowed to see. It holds
copies of every entity, so mutating a snapshot never reaches the live
ledgers, and importing one is only accepted after the copy-count conservation
rule and the cross references have been re-checked.
"""

from __future__ import annotations
import copy
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Set, Tuple

from .config import CirculationPolicy
from .domain import Book, Category, FineRecord, Loan, ReservationQueue, User
from .errors import SnapshotIntegrityError


@dataclass(frozen=True)
class Snapshot:
    books: Tuple[Book, ...] = ()
    users: Tuple[User, ...] = ()
    loans: Tuple[Loan, ...] = ()
    reservations: Tuple[ReservationQueue, ...] = ()
    fines: Tuple[FineRecord, ...] = ()
    current_user_id: Optional[str] = None

    @classmethod
    def capture(cls, books, users, loans, reservations, fines, current_user_id=None) -> "Snapshot":
        return cls(
            books=tuple(copy.deepcopy(b) for b in books),
            users=tuple(copy.deepcopy(u) for u in users),
            loans=tuple(copy.deepcopy(l) for l in loans),
            reservations=tuple(copy.deepcopy(q) for q in reservations),
            fines=tuple(fines),
            current_user_id=current_user_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "books": [_book_to_dict(b) for b in self.books],
            "users": [asdict(u) for u in self.users],
            "loans": [_loan_to_dict(l) for l in self.loans],
            "reservations": [asdict(q) for q in self.reservations],
            "fines": [_fine_to_dict(f) for f in self.fines],
            "current_user_id": self.current_user_id,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Snapshot":
        try:
            return cls(
                books=tuple(_book_from_dict(b) for b in raw.get("books", [])),
                users=tuple(User(**u) for u in raw.get("users", [])),
                loans=tuple(_loan_from_dict(l) for l in raw.get("loans", [])),
                reservations=tuple(
                    ReservationQueue(book_id=q["book_id"], user_ids=list(q.get("user_ids", [])))
                    for q in raw.get("reservations", [])
                ),
                fines=tuple(_fine_from_dict(f) for f in raw.get("fines", [])),
                current_user_id=raw.get("current_user_id"),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise SnapshotIntegrityError(f"Malformed snapshot: {exc}") from exc


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value is not None else None


def _book_to_dict(book: Book) -> Dict[str, Any]:
    raw = asdict(book)
    raw["categories"] = [c.value for c in book.categories]
    return raw


def _book_from_dict(raw: Dict[str, Any]) -> Book:
    raw = dict(raw)
    raw["categories"] = [Category(c) for c in raw.get("categories", [])]
    return Book(**raw)


def _loan_to_dict(loan: Loan) -> Dict[str, Any]:
    raw = asdict(loan)
    raw["borrowed_at"] = _iso(loan.borrowed_at)
    raw["due_at"] = _iso(loan.due_at)
    raw["returned_at"] = _iso(loan.returned_at)
    return raw


def _loan_from_dict(raw: Dict[str, Any]) -> Loan:
    raw = dict(raw)
    for key in ("borrowed_at", "due_at", "returned_at"):
        raw[key] = _parse(raw.get(key))
    return Loan(**raw)


def _fine_to_dict(fine: FineRecord) -> Dict[str, Any]:
    raw = asdict(fine)
    raw["calculated_at"] = _iso(fine.calculated_at)
    return raw


def _fine_from_dict(raw: Dict[str, Any]) -> FineRecord:
    raw = dict(raw)
    raw["calculated_at"] = _parse(raw["calculated_at"])
    return FineRecord(**raw)


def _check_int(value: Any, what: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise SnapshotIntegrityError(f"{what} must be an integer, got {value!r}.")


def _check_time(value: Any, what: str) -> None:
    if not isinstance(value, datetime):
        raise SnapshotIntegrityError(f"{what} must be a timestamp, got {value!r}.")


def validate(snapshot: Snapshot, policy: Optional[CirculationPolicy] = None) -> None:
    """Raise ``SnapshotIntegrityError`` unless the snapshot is self-consistent."""
    policy = policy or CirculationPolicy()
    books = {b.book_id: b for b in snapshot.books}
    if len(books) != len(snapshot.books):
        raise SnapshotIntegrityError("Duplicate book ids.")
    user_ids = {u.user_id for u in snapshot.users}
    if len(user_ids) != len(snapshot.users):
        raise SnapshotIntegrityError("Duplicate user ids.")
    if len({u.email for u in snapshot.users}) != len(snapshot.users):
        raise SnapshotIntegrityError("Duplicate user emails.")
    if snapshot.current_user_id is not None and snapshot.current_user_id not in user_ids:
        raise SnapshotIntegrityError("Current user is not registered.")

    open_counts: Dict[str, int] = {}
    open_pairs: Set[Tuple[str, str]] = set()
    loans: Dict[str, Loan] = {}
    for loan in snapshot.loans:
        if loan.loan_id in loans:
            raise SnapshotIntegrityError(f"Duplicate loan id {loan.loan_id}.")
        loans[loan.loan_id] = loan
        if loan.book_id not in books or loan.user_id not in user_ids:
            raise SnapshotIntegrityError(f"Loan {loan.loan_id} references unknown entities.")
        _check_time(loan.borrowed_at, f"Loan {loan.loan_id} borrowed_at")
        _check_time(loan.due_at, f"Loan {loan.loan_id} due_at")
        if loan.returned_at is not None:
            _check_time(loan.returned_at, f"Loan {loan.loan_id} returned_at")
        _check_int(loan.renew_count, f"Loan {loan.loan_id} renew_count")
        if not 0 <= loan.renew_count <= policy.max_renews:
            raise SnapshotIntegrityError(f"Loan {loan.loan_id} renew count out of range.")
        if loan.is_open:
            pair = (loan.user_id, loan.book_id)
            if pair in open_pairs:
                raise SnapshotIntegrityError(f"Two open loans for user {loan.user_id} on {loan.book_id}.")
            open_pairs.add(pair)
            open_counts[loan.book_id] = open_counts.get(loan.book_id, 0) + 1

    for book in books.values():
        _check_int(book.total_copies, f"Book {book.book_id} total_copies")
        _check_int(book.available_copies, f"Book {book.book_id} available_copies")
        if not 0 <= book.available_copies <= book.total_copies:
            raise SnapshotIntegrityError(f"Book {book.book_id} copy counts out of range.")
        if book.available_copies + open_counts.get(book.book_id, 0) != book.total_copies:
            raise SnapshotIntegrityError(f"Book {book.book_id} violates copy conservation.")

    queued_books: Set[str] = set()
    for queue in snapshot.reservations:
        if queue.book_id not in books or queue.book_id in queued_books:
            raise SnapshotIntegrityError(f"Bad reservation queue for {queue.book_id}.")
        queued_books.add(queue.book_id)
        if len(set(queue.user_ids)) != len(queue.user_ids):
            raise SnapshotIntegrityError(f"Duplicate members queued for {queue.book_id}.")
        if not set(queue.user_ids) <= user_ids:
            raise SnapshotIntegrityError(f"Unknown member queued for {queue.book_id}.")

    for fine in snapshot.fines:
        loan = loans.get(fine.loan_id)
        if loan is None or fine.user_id not in user_ids:
            raise SnapshotIntegrityError(f"Fine {fine.fine_id} references unknown entities.")
        if fine.user_id != loan.user_id:
            raise SnapshotIntegrityError(f"Fine {fine.fine_id} is charged to someone other than the borrower.")
        if loan.is_open:
            raise SnapshotIntegrityError(f"Fine {fine.fine_id} belongs to a loan that is still open.")
        _check_int(fine.amount, f"Fine {fine.fine_id} amount")
        _check_int(fine.days_overdue, f"Fine {fine.fine_id} days_overdue")
        _check_time(fine.calculated_at, f"Fine {fine.fine_id} calculated_at")
