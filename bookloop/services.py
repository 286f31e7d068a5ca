from __future__ import annotations
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple
import logging
import uuid

from .config import CirculationPolicy
from .domain import Book, FineQuote, FineRecord, Loan, User
from .errors import (
    AccountNotFound,
    AlreadyBorrowed,
    BookNotFound,
    EmailAlreadyRegistered,
    InvalidInput,
    InventoryError,
    NoCopiesAvailable,
    NotAuthenticated,
    ReservedByOther,
)
from .repositories import Catalog, FineRepo, LoanLedger, ReservationLedger, UserRepo

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}"


def compute_fine(loan: Loan, now: datetime, fine_per_day: int = 1) -> FineQuote:
    """
    Overdue days and amount for ``loan`` as of ``now``.

    Closed loans always quote zero: fines are settled once, at return time.
    Only whole days count, so a loan returned 23 hours late owes nothing.
    """
    if not loan.is_open:
        return FineQuote(days_overdue=0, amount=0)
    days_overdue = max(0, (now - loan.due_at) // ONE_DAY)
    return FineQuote(days_overdue=days_overdue, amount=days_overdue * fine_per_day)


class FineService:
    def __init__(
        self,
        fines: FineRepo,
        policy: CirculationPolicy,
        new_id: Callable[[str], str] = new_id,
    ) -> None:
        self.fines = fines
        self.policy = policy
        self._new_id = new_id

    def quote(self, loan: Loan, now: datetime) -> FineQuote:
        return compute_fine(loan, now, self.policy.fine_per_day)

    def record(self, loan: Loan, quote: FineQuote, now: datetime) -> Optional[FineRecord]:
        if quote.days_overdue <= 0:
            return None
        fine = FineRecord(
            fine_id=self._new_id("fine"),
            user_id=loan.user_id,
            loan_id=loan.loan_id,
            amount=quote.amount,
            days_overdue=quote.days_overdue,
            calculated_at=now,
        )
        self.fines.add(fine)
        logger.info(
            "fine recorded | user=%s loan=%s days=%d amount=%d",
            loan.user_id, loan.loan_id, quote.days_overdue, quote.amount,
        )
        return fine

    def fines_of(self, user_id: str) -> List[FineRecord]:
        return self.fines.list_by_user(user_id)


class UserService:
    """Registration and the single-session identity lookup."""

    def __init__(self, users: UserRepo, new_id: Callable[[str], str] = new_id) -> None:
        self.users = users
        self._new_id = new_id
        self.current_user: Optional[User] = None

    def register(self, name: str, email: str) -> User:
        name, email = name.strip(), email.strip()
        if not name or not email:
            raise InvalidInput("Name and email are required.")
        if self.users.find_by_email(email) is not None:
            raise EmailAlreadyRegistered()
        user = User(user_id=self._new_id("usr"), name=name, email=email)
        self.users.add(user)
        self.current_user = user
        logger.info("user registered | user=%s email=%s", user.user_id, email)
        return user

    def login(self, email: str) -> User:
        user = self.users.find_by_email(email.strip())
        if user is None:
            raise AccountNotFound()
        self.current_user = user
        logger.info("login | user=%s", user.user_id)
        return user

    def logout(self) -> None:
        if self.current_user is not None:
            logger.info("logout | user=%s", self.current_user.user_id)
        self.current_user = None


class CirculationService:
    """
    The circulation state machine.

    Every command checks all of its preconditions before touching any ledger,
    so a rejected command leaves state exactly as it found it.
    """

    def __init__(
        self,
        users: UserRepo,
        catalog: Catalog,
        loans: LoanLedger,
        reservations: ReservationLedger,
        fines: FineService,
    ) -> None:
        self.users = users
        self.catalog = catalog
        self.loans = loans
        self.reservations = reservations
        self.fines = fines

    def _require_user(self, user_id: Optional[str]) -> User:
        user = self.users.get(user_id) if user_id else None
        if user is None:
            raise NotAuthenticated()
        return user

    def _require_book(self, book_id: str) -> Book:
        book = self.catalog.find_book(book_id)
        if book is None:
            raise BookNotFound()
        return book

    def _head_is_other(self, book_id: str, user_id: str) -> bool:
        head = self.reservations.head_of(book_id)
        return head is not None and head != user_id

    # ---- commands
    def borrow(self, user_id: Optional[str], book_id: str, now: datetime) -> Loan:
        user = self._require_user(user_id)
        book = self._require_book(book_id)
        if self.loans.open_loan_of(user.user_id, book_id) is not None:
            raise AlreadyBorrowed()
        if self._head_is_other(book_id, user.user_id):
            raise ReservedByOther()
        if book.available_copies <= 0:
            raise NoCopiesAvailable()

        self.catalog.decrement_availability(book_id)
        loan = self.loans.create(user.user_id, book_id, now)
        if self.reservations.head_of(book_id) == user.user_id:
            self.reservations.dequeue_head(book_id)

        logger.info(
            "borrow ok | user=%s book=%s loan=%s due=%s",
            user.user_id, book_id, loan.loan_id, loan.due_at.isoformat(),
        )
        return loan

    def return_loan(self, loan_id: str, now: datetime) -> Tuple[Loan, Optional[FineRecord]]:
        loan = self.loans.require_open(loan_id)
        if self.catalog.find_book(loan.book_id) is None:
            raise BookNotFound()
        if not self.catalog.can_increment(loan.book_id):
            raise InventoryError(f"Return would overfill book {loan.book_id}.")

        # quote against the loan as it was before closing
        quote = self.fines.quote(loan, now)
        self.loans.close(loan_id, now)
        self.catalog.increment_availability(loan.book_id)
        fine = self.fines.record(loan, quote, now)

        logger.info(
            "return ok | user=%s book=%s loan=%s overdue_days=%d",
            loan.user_id, loan.book_id, loan_id, quote.days_overdue,
        )
        return loan, fine

    def renew(self, user_id: Optional[str], loan_id: str, now: datetime) -> Loan:
        self._require_user(user_id)
        loan = self.loans.check_renewable(loan_id)
        if self._head_is_other(loan.book_id, loan.user_id):
            raise ReservedByOther("Renewal blocked: reserved by another member.")

        self.loans.extend(loan_id, now)
        logger.info(
            "renew ok | loan=%s renew_count=%d due=%s",
            loan_id, loan.renew_count, loan.due_at.isoformat(),
        )
        return loan

    def reserve(self, user_id: Optional[str], book_id: str, now: datetime) -> int:
        user = self._require_user(user_id)
        self._require_book(book_id)
        position = self.reservations.enqueue(book_id, user.user_id)
        logger.info(
            "reserve ok | user=%s book=%s position=%d at=%s",
            user.user_id, book_id, position, now.isoformat(),
        )
        return position

    def cancel_reservation(self, user_id: Optional[str], book_id: str) -> bool:
        user = self._require_user(user_id)
        removed = self.reservations.remove(book_id, user.user_id)
        logger.info("cancel reservation | user=%s book=%s removed=%s", user.user_id, book_id, removed)
        return removed

    # ---- queries
    def open_loans_of(self, user_id: str) -> List[Loan]:
        loans = self.loans.loans_of(user_id)
        logger.debug("open loans | user=%s count=%d", user_id, len(loans))
        return loans

    def reservation_position_of(self, book_id: str, user_id: str) -> Optional[int]:
        position = self.reservations.position_of(book_id, user_id)
        logger.debug("reservation position | user=%s book=%s position=%s", user_id, book_id, position)
        return position

    def reservations_of(self, user_id: str) -> List[Tuple[str, int]]:
        result: List[Tuple[str, int]] = []
        for queue in self.reservations.list_queues():
            position = self.reservations.position_of(queue.book_id, user_id)
            if position is not None:
                result.append((queue.book_id, position))
        logger.debug("reservations | user=%s count=%d", user_id, len(result))
        return result

    def fine_of(self, loan: Loan, now: datetime) -> FineQuote:
        quote = self.fines.quote(loan, now)
        logger.debug("fine quote | loan=%s days=%d amount=%d", loan.loan_id, quote.days_overdue, quote.amount)
        return quote
