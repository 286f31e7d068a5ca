"""
BookLoop circulation core.

Exports key modules for convenient imports.
"""

from .domain import (
    Category,
    User,
    Book,
    Loan,
    ReservationQueue,
    FineRecord,
    FineQuote,
)

from .errors import (
    CirculationError,
    NotAuthenticated,
    BookNotFound,
    AlreadyBorrowed,
    ReservedByOther,
    NoCopiesAvailable,
    InvalidLoan,
    RenewalLimitReached,
    AlreadyReserved,
    EmailAlreadyRegistered,
    AccountNotFound,
    InvalidInput,
    InventoryError,
    SnapshotIntegrityError,
    Outcome,
)

from .config import CirculationPolicy

from .repositories import (
    UserRepo,
    Catalog,
    LoanLedger,
    ReservationLedger,
    FineRepo,
)

from .services import (
    compute_fine,
    UserService,
    FineService,
    CirculationService,
)

from .snapshot import Snapshot
from .api import LibrarySystem
from .log import configure_logging
from .seed import seed_books, seed_demo_data

__all__ = [
    # domain
    "Category",
    "User",
    "Book",
    "Loan",
    "ReservationQueue",
    "FineRecord",
    "FineQuote",
    # errors
    "CirculationError",
    "NotAuthenticated",
    "BookNotFound",
    "AlreadyBorrowed",
    "ReservedByOther",
    "NoCopiesAvailable",
    "InvalidLoan",
    "RenewalLimitReached",
    "AlreadyReserved",
    "EmailAlreadyRegistered",
    "AccountNotFound",
    "InvalidInput",
    "InventoryError",
    "SnapshotIntegrityError",
    "Outcome",
    # config
    "CirculationPolicy",
    # ledgers
    "UserRepo",
    "Catalog",
    "LoanLedger",
    "ReservationLedger",
    "FineRepo",
    # services
    "compute_fine",
    "UserService",
    "FineService",
    "CirculationService",
    # api
    "Snapshot",
    "LibrarySystem",
    "configure_logging",
    # seed
    "seed_books",
    "seed_demo_data",
]
