from datetime import datetime, timedelta

import pytest

from bookloop import (
    AlreadyReserved,
    BookNotFound,
    Catalog,
    CirculationPolicy,
    InvalidLoan,
    InventoryError,
    LoanLedger,
    RenewalLimitReached,
    ReservationLedger,
)
from conftest import make_book

T0 = datetime(2025, 1, 1)


@pytest.fixture
def catalog():
    c = Catalog()
    c.add_book(make_book("B1", copies=2))
    return c


@pytest.fixture
def ledger(id_factory):
    return LoanLedger(CirculationPolicy(loan_days=14, max_renews=2), id_factory)


def test_catalog_find_book(catalog):
    assert catalog.find_book("B1").title == "Title B1"
    assert catalog.find_book("nope") is None


def test_catalog_decrement_stops_at_zero(catalog):
    catalog.decrement_availability("B1")
    catalog.decrement_availability("B1")
    with pytest.raises(InventoryError):
        catalog.decrement_availability("B1")
    assert catalog.find_book("B1").available_copies == 0


def test_catalog_increment_stops_at_total(catalog):
    with pytest.raises(InventoryError):
        catalog.increment_availability("B1")
    assert catalog.find_book("B1").available_copies == 2


def test_catalog_unknown_book_raises(catalog):
    with pytest.raises(BookNotFound):
        catalog.decrement_availability("nope")


def test_reservation_queue_is_fifo():
    r = ReservationLedger()
    assert r.enqueue("B1", "u1") == 1
    assert r.enqueue("B1", "u2") == 2
    r.enqueue("B1", "u3")
    assert r.queue_for("B1") == ["u1", "u2", "u3"]
    assert r.position_of("B1", "u3") == 3
    assert r.dequeue_head("B1") == "u1"
    assert r.queue_for("B1") == ["u2", "u3"]


def test_reservation_duplicate_rejected():
    r = ReservationLedger()
    r.enqueue("B1", "u1")
    with pytest.raises(AlreadyReserved):
        r.enqueue("B1", "u1")
    assert r.queue_for("B1") == ["u1"]


def test_reservation_missing_queue_is_empty_and_not_created():
    r = ReservationLedger()
    assert r.queue_for("B1") == []
    assert r.dequeue_head("B1") is None
    assert r.remove("B1", "u1") is False
    assert r.position_of("B1", "u1") is None
    assert r.list_queues() == []


def test_reservation_remove_from_middle():
    r = ReservationLedger()
    for u in ("u1", "u2", "u3"):
        r.enqueue("B1", u)
    assert r.remove("B1", "u2") is True
    assert r.queue_for("B1") == ["u1", "u3"]
    assert r.position_of("B1", "u3") == 2


def test_loan_create_sets_due_date(ledger):
    loan = ledger.create("u1", "B1", T0)
    assert loan.due_at == T0 + timedelta(days=14)
    assert loan.renew_count == 0
    assert ledger.open_loan_of("u1", "B1") is loan


def test_loan_close_and_history_kept(ledger):
    loan = ledger.create("u1", "B1", T0)
    ledger.close(loan.loan_id, T0 + timedelta(days=1))
    assert ledger.loans_of("u1") == []
    assert ledger.get(loan.loan_id).returned_at == T0 + timedelta(days=1)
    with pytest.raises(InvalidLoan):
        ledger.close(loan.loan_id, T0)


def test_loan_close_unknown(ledger):
    with pytest.raises(InvalidLoan):
        ledger.close("missing", T0)


def test_loan_extend_compounds_from_due_date(ledger):
    loan = ledger.create("u1", "B1", T0)
    ledger.extend(loan.loan_id, T0 + timedelta(days=30))
    assert loan.due_at == T0 + timedelta(days=28)
    ledger.extend(loan.loan_id, T0)
    assert loan.due_at == T0 + timedelta(days=42)
    assert loan.renew_count == 2
    with pytest.raises(RenewalLimitReached):
        ledger.extend(loan.loan_id, T0)
    assert loan.renew_count == 2
