from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class Category(Enum):
    FICTION = "Fiction"
    NON_FICTION = "Non-Fiction"
    SCIENCE = "Science"
    TECHNOLOGY = "Technology"
    HISTORY = "History"
    COMICS = "Comics"
    PHILOSOPHY = "Philosophy"
    OTHER = "Other"


@dataclass
class User:
    user_id: str
    name: str
    email: str


@dataclass
class Book:
    book_id: str
    title: str
    author: str
    total_copies: int
    available_copies: int
    description: str = ""
    categories: List[Category] = field(default_factory=list)
    cover_url: str = ""
    is_free: bool = True
    pdf_url: Optional[str] = None


@dataclass
class Loan:
    loan_id: str
    user_id: str
    book_id: str
    borrowed_at: datetime
    due_at: datetime
    returned_at: Optional[datetime] = None
    renew_count: int = 0

    @property
    def is_open(self) -> bool:
        return self.returned_at is None

    def mark_returned(self, when: datetime) -> None:
        self.returned_at = when


@dataclass
class ReservationQueue:
    """Waiting list for one book; index 0 is the queue head."""

    book_id: str
    user_ids: List[str] = field(default_factory=list)

    @property
    def head(self) -> Optional[str]:
        return self.user_ids[0] if self.user_ids else None


@dataclass(frozen=True)
class FineRecord:
    fine_id: str
    user_id: str
    loan_id: str
    amount: int
    days_overdue: int
    calculated_at: datetime


@dataclass(frozen=True)
class FineQuote:
    days_overdue: int
    amount: int
