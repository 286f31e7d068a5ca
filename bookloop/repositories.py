from __future__ import annotations
from datetime import datetime
from typing import Callable, Dict, List, Optional

from .config import CirculationPolicy
from .domain import Book, FineRecord, Loan, ReservationQueue, User
from .errors import AlreadyReserved, BookNotFound, InvalidLoan, InventoryError, RenewalLimitReached

IdFactory = Callable[[str], str]


class UserRepo:
    def __init__(self) -> None:
        self._users: Dict[str, User] = {}

    def add(self, user: User) -> None:
        self._users[user.user_id] = user

    def get(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    def find_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self._users.values() if u.email == email), None)

    def list_all(self) -> List[User]:
        return list(self._users.values())

    def clear(self) -> None:
        self._users.clear()


class Catalog:
    """Book descriptors plus the only writer of ``available_copies``."""

    def __init__(self) -> None:
        self._books: Dict[str, Book] = {}

    def add_book(self, book: Book) -> None:
        self._books[book.book_id] = book

    def find_book(self, book_id: str) -> Optional[Book]:
        return self._books.get(book_id)

    def list_books(self) -> List[Book]:
        return list(self._books.values())

    def is_empty(self) -> bool:
        return not self._books

    def clear(self) -> None:
        self._books.clear()

    def _require(self, book_id: str) -> Book:
        book = self._books.get(book_id)
        if book is None:
            raise BookNotFound()
        return book

    def can_decrement(self, book_id: str) -> bool:
        book = self._books.get(book_id)
        return book is not None and book.available_copies > 0

    def can_increment(self, book_id: str) -> bool:
        book = self._books.get(book_id)
        return book is not None and book.available_copies < book.total_copies

    def decrement_availability(self, book_id: str) -> None:
        book = self._require(book_id)
        if book.available_copies <= 0:
            raise InventoryError(f"No copy of {book_id} left to lend.")
        book.available_copies -= 1

    def increment_availability(self, book_id: str) -> None:
        book = self._require(book_id)
        if book.available_copies >= book.total_copies:
            raise InventoryError(f"All copies of {book_id} are already on the shelf.")
        book.available_copies += 1


class ReservationLedger:
    """Per-book FIFO waiting lists. Only ``enqueue`` creates a queue."""

    def __init__(self) -> None:
        self._queues: Dict[str, ReservationQueue] = {}

    def queue_for(self, book_id: str) -> List[str]:
        queue = self._queues.get(book_id)
        return list(queue.user_ids) if queue else []

    def head_of(self, book_id: str) -> Optional[str]:
        queue = self._queues.get(book_id)
        return queue.head if queue else None

    def enqueue(self, book_id: str, user_id: str) -> int:
        queue = self._queues.get(book_id)
        if queue is not None and user_id in queue.user_ids:
            raise AlreadyReserved()
        if queue is None:
            queue = ReservationQueue(book_id=book_id)
            self._queues[book_id] = queue
        queue.user_ids.append(user_id)
        return len(queue.user_ids)

    def dequeue_head(self, book_id: str) -> Optional[str]:
        queue = self._queues.get(book_id)
        if not queue or not queue.user_ids:
            return None
        return queue.user_ids.pop(0)

    def remove(self, book_id: str, user_id: str) -> bool:
        queue = self._queues.get(book_id)
        if not queue or user_id not in queue.user_ids:
            return False
        queue.user_ids.remove(user_id)
        return True

    def position_of(self, book_id: str, user_id: str) -> Optional[int]:
        queue = self._queues.get(book_id)
        if not queue or user_id not in queue.user_ids:
            return None
        return queue.user_ids.index(user_id) + 1

    def list_queues(self) -> List[ReservationQueue]:
        return list(self._queues.values())

    def add_queue(self, queue: ReservationQueue) -> None:
        self._queues[queue.book_id] = queue

    def clear(self) -> None:
        self._queues.clear()


class LoanLedger:
    def __init__(self, policy: CirculationPolicy, new_id: IdFactory) -> None:
        self.policy = policy
        self._new_id = new_id
        self._loans: Dict[str, Loan] = {}

    def add(self, loan: Loan) -> None:
        self._loans[loan.loan_id] = loan

    def get(self, loan_id: str) -> Optional[Loan]:
        return self._loans.get(loan_id)

    def list_all(self) -> List[Loan]:
        return list(self._loans.values())

    def clear(self) -> None:
        self._loans.clear()

    def open_loan_of(self, user_id: str, book_id: str) -> Optional[Loan]:
        return next(
            (
                l
                for l in self._loans.values()
                if l.user_id == user_id and l.book_id == book_id and l.is_open
            ),
            None,
        )

    def loans_of(self, user_id: str) -> List[Loan]:
        return [l for l in self._loans.values() if l.user_id == user_id and l.is_open]

    def open_count_for_book(self, book_id: str) -> int:
        return sum(1 for l in self._loans.values() if l.book_id == book_id and l.is_open)

    def require_open(self, loan_id: str) -> Loan:
        loan = self._loans.get(loan_id)
        if loan is None or not loan.is_open:
            raise InvalidLoan()
        return loan

    def check_renewable(self, loan_id: str) -> Loan:
        loan = self.require_open(loan_id)
        if loan.renew_count >= self.policy.max_renews:
            raise RenewalLimitReached()
        return loan

    def create(self, user_id: str, book_id: str, now: datetime) -> Loan:
        loan = Loan(
            loan_id=self._new_id("loan"),
            user_id=user_id,
            book_id=book_id,
            borrowed_at=now,
            due_at=now + self.policy.loan_period,
        )
        self.add(loan)
        return loan

    def close(self, loan_id: str, now: datetime) -> Loan:
        loan = self.require_open(loan_id)
        loan.mark_returned(now)
        return loan

    def extend(self, loan_id: str, now: datetime) -> Loan:
        # compounds from the current due date; ``now`` is not used
        loan = self.check_renewable(loan_id)
        loan.due_at = loan.due_at + self.policy.loan_period
        loan.renew_count += 1
        return loan


class FineRepo:
    def __init__(self) -> None:
        self._fines: List[FineRecord] = []

    def add(self, fine: FineRecord) -> None:
        self._fines.append(fine)

    def list_by_user(self, user_id: str) -> List[FineRecord]:
        return [f for f in self._fines if f.user_id == user_id]

    def list_all(self) -> List[FineRecord]:
        return list(self._fines)

    def total_by_user(self, user_id: str) -> int:
        return sum(f.amount for f in self.list_by_user(user_id))

    def clear(self) -> None:
        self._fines.clear()
