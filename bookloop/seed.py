from __future__ import annotations
from datetime import timedelta
from typing import List

from .api import LibrarySystem
from .domain import Book, Category


def _book(book_id, title, author, copies, categories, description="", is_free=True, pdf_url=None) -> Book:
    return Book(
        book_id=book_id,
        title=title,
        author=author,
        total_copies=copies,
        available_copies=copies,
        description=description,
        categories=list(categories),
        cover_url=f"/covers/{book_id}.jpg",
        is_free=is_free,
        pdf_url=pdf_url,
    )


def seed_books() -> List[Book]:
    return [
        _book(
            "bk_dune",
            "Dune",
            "Frank Herbert",
            2,
            [Category.FICTION],
            "Desert planet politics and spice.",
            is_free=False,
        ),
        _book(
            "bk_origin",
            "On the Origin of Species",
            "Charles Darwin",
            1,
            [Category.SCIENCE, Category.HISTORY],
            "Natural selection, first edition text.",
            pdf_url="/pdfs/origin.pdf",
        ),
        _book(
            "bk_clean",
            "Clean Code",
            "Robert C. Martin",
            3,
            [Category.TECHNOLOGY],
            is_free=False,
        ),
        _book(
            "bk_meditations",
            "Meditations",
            "Marcus Aurelius",
            1,
            [Category.PHILOSOPHY],
            pdf_url="/pdfs/meditations.pdf",
        ),
        _book("bk_watchmen", "Watchmen", "Alan Moore", 1, [Category.COMICS], is_free=False),
    ]


def seed_demo_data(lib: LibrarySystem) -> None:
    lib.seed_if_empty(seed_books())

    # members; register logs each one in, so the last one ends up current
    lib.register("Ava Admin", "ava@example.com")
    lib.register("Bob Reader", "bob@example.com")
    lib.register("Alice Reader", "alice@example.com")

    # Alice holds the only copy of Meditations and one Dune
    lib.borrow("bk_meditations")
    dune = lib.borrow("bk_dune")

    # Bob queues behind her for Meditations
    lib.login("bob@example.com")
    lib.reserve("bk_meditations")

    # Simulate an overdue loan (manually pull the due date back)
    if dune.ok:
        dune.value.due_at = lib.clock() - timedelta(days=3)

    lib.logout()
