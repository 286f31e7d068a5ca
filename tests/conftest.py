import itertools
from datetime import datetime, timedelta

import pytest

from bookloop import Book, CirculationPolicy, LibrarySystem

T0 = datetime(2025, 1, 1, 9, 0, 0)


class FakeClock:
    def __init__(self, start=T0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


def make_book(book_id, copies=1, title=None):
    return Book(
        book_id=book_id,
        title=title or f"Title {book_id}",
        author="Someone",
        total_copies=copies,
        available_copies=copies,
    )


@pytest.fixture
def id_factory():
    counter = itertools.count(1)
    return lambda prefix: f"{prefix}_{next(counter)}"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def lib(clock, id_factory):
    """Library with two books (1 and 2 copies) and three registered members."""
    l = LibrarySystem(
        policy=CirculationPolicy(),
        clock=clock,
        id_factory=id_factory,
        books=[make_book("B1", copies=1), make_book("B2", copies=2)],
    )
    l.register("Alice", "alice@example.com")
    l.register("Carol", "carol@example.com")
    l.register("Dan", "dan@example.com")
    l.logout()
    return l


def user_id(lib, email):
    return lib.users.find_by_email(email).user_id


def as_user(lib, email):
    assert lib.login(email).ok
    return user_id(lib, email)


def assert_conserved(lib):
    for book in lib.books():
        assert book.available_copies + lib.loans.open_count_for_book(book.book_id) == book.total_copies
