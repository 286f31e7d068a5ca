from __future__ import annotations
import copy
import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, Tuple

from .config import CirculationPolicy
from .domain import Book, FineQuote, FineRecord, Loan, User
from .errors import CirculationError, InvalidInput, Outcome
from .repositories import Catalog, FineRepo, LoanLedger, ReservationLedger, UserRepo
from .services import CirculationService, FineService, UserService, new_id
from .snapshot import Snapshot, validate

logger = logging.getLogger(__name__)

Subscriber = Callable[[Snapshot], None]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LibrarySystem:
    """
    Facade that wires ledgers + services and offers the command/query surface.

    Commands return an ``Outcome``; rule violations never escape as exceptions.
    After each successful command every subscriber receives a fresh snapshot.
    """

    def __init__(
        self,
        policy: Optional[CirculationPolicy] = None,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[str], str] = new_id,
        books: Optional[Iterable[Book]] = None,
    ) -> None:
        self.policy = policy or CirculationPolicy()
        self.clock = clock

        # ledgers
        self.users = UserRepo()
        self.catalog = Catalog()
        self.loans = LoanLedger(self.policy, id_factory)
        self.reservations = ReservationLedger()
        self.fines = FineRepo()

        # services
        self.user_service = UserService(self.users, id_factory)
        self.fine_service = FineService(self.fines, self.policy, id_factory)
        self.circulation = CirculationService(
            self.users, self.catalog, self.loans, self.reservations, self.fine_service
        )

        self._subscribers: List[Subscriber] = []

        if books is not None:
            self._load_books(books)

    # ---- plumbing
    def _run(self, action: str, fn: Callable[[], object]) -> Outcome:
        try:
            value = fn()
        except CirculationError as err:
            logger.warning("%s rejected | code=%s message=%s", action, err.code, err.message)
            return Outcome.failure(err)
        self._publish()
        return Outcome.success(value)

    def _publish(self) -> None:
        if not self._subscribers:
            return
        snapshot = self.export_snapshot()
        for callback in list(self._subscribers):
            # the command has already been applied at this point
            try:
                callback(snapshot)
            except Exception:
                logger.exception("subscriber failed | callback=%r", callback)

    def _current_user_id(self) -> Optional[str]:
        user = self.user_service.current_user
        return user.user_id if user else None

    def _load_books(self, books: Iterable[Book]) -> List[Book]:
        staged = [copy.deepcopy(b) for b in books]
        seen = set()
        for book in staged:
            if book.book_id in seen or self.catalog.find_book(book.book_id) is not None:
                raise InvalidInput(f"Duplicate book id {book.book_id}.")
            if book.total_copies < 0 or book.available_copies != book.total_copies:
                raise InvalidInput(f"Seed book {book.book_id} must have all copies on the shelf.")
            seen.add(book.book_id)
        for book in staged:
            self.catalog.add_book(book)
        logger.info("catalog seeded | books=%d", len(staged))
        return staged

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # ---- catalog
    def seed_if_empty(self, books: Iterable[Book]) -> Outcome:
        def seed() -> int:
            if not self.catalog.is_empty():
                return 0
            return len(self._load_books(books))

        return self._run("seed", seed)

    def book_by_id(self, book_id: str) -> Optional[Book]:
        return self.catalog.find_book(book_id)

    def books(self) -> List[Book]:
        return self.catalog.list_books()

    # ---- session
    @property
    def current_user(self) -> Optional[User]:
        return self.user_service.current_user

    def register(self, name: str, email: str) -> Outcome:
        return self._run("register", lambda: self.user_service.register(name, email))

    def login(self, email: str) -> Outcome:
        return self._run("login", lambda: self.user_service.login(email))

    def logout(self) -> Outcome:
        return self._run("logout", self.user_service.logout)

    # ---- circulation commands
    def borrow(self, book_id: str) -> Outcome:
        return self._run(
            "borrow",
            lambda: self.circulation.borrow(self._current_user_id(), book_id, self.clock()),
        )

    def return_loan(self, loan_id: str) -> Outcome:
        return self._run("return", lambda: self.circulation.return_loan(loan_id, self.clock()))

    def renew(self, loan_id: str) -> Outcome:
        return self._run(
            "renew",
            lambda: self.circulation.renew(self._current_user_id(), loan_id, self.clock()),
        )

    def reserve(self, book_id: str) -> Outcome:
        return self._run(
            "reserve",
            lambda: self.circulation.reserve(self._current_user_id(), book_id, self.clock()),
        )

    def cancel_reservation(self, book_id: str) -> Outcome:
        return self._run(
            "cancel_reservation",
            lambda: self.circulation.cancel_reservation(self._current_user_id(), book_id),
        )

    # ---- queries
    def loans_of(self, user_id: str) -> List[Loan]:
        return self.circulation.open_loans_of(user_id)

    def loan_by_id(self, loan_id: str) -> Optional[Loan]:
        return self.loans.get(loan_id)

    def reservation_position_of(self, book_id: str, user_id: str) -> Optional[int]:
        return self.circulation.reservation_position_of(book_id, user_id)

    def reservations_of(self, user_id: str) -> List[Tuple[str, int]]:
        return self.circulation.reservations_of(user_id)

    def queue_for(self, book_id: str) -> List[str]:
        return self.reservations.queue_for(book_id)

    def fine_of(self, loan: Loan) -> FineQuote:
        return self.circulation.fine_of(loan, self.clock())

    def fines_of(self, user_id: str) -> List[FineRecord]:
        return self.fine_service.fines_of(user_id)

    # ---- snapshots
    def export_snapshot(self) -> Snapshot:
        return Snapshot.capture(
            books=self.catalog.list_books(),
            users=self.users.list_all(),
            loans=self.loans.list_all(),
            reservations=self.reservations.list_queues(),
            fines=self.fines.list_all(),
            current_user_id=self._current_user_id(),
        )

    def import_snapshot(self, snapshot: Snapshot) -> Outcome:
        def load() -> Snapshot:
            validate(snapshot, self.policy)
            fresh = copy.deepcopy(snapshot)
            for repo in (self.catalog, self.users, self.loans, self.reservations, self.fines):
                repo.clear()
            for book in fresh.books:
                self.catalog.add_book(book)
            for user in fresh.users:
                self.users.add(user)
            for loan in fresh.loans:
                self.loans.add(loan)
            for queue in fresh.reservations:
                self.reservations.add_queue(queue)
            for fine in fresh.fines:
                self.fines.add(fine)
            self.user_service.current_user = (
                self.users.get(fresh.current_user_id) if fresh.current_user_id else None
            )
            logger.info(
                "snapshot imported | books=%d loans=%d fines=%d",
                len(fresh.books), len(fresh.loans), len(fresh.fines),
            )
            return snapshot

        return self._run("import_snapshot", load)
