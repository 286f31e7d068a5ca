from datetime import datetime, timedelta

import pytest

from bookloop import CirculationPolicy, FineQuote, Loan, compute_fine

DUE = datetime(2025, 1, 15, 12, 0, 0)


def open_loan():
    return Loan(
        loan_id="L1",
        user_id="u1",
        book_id="B1",
        borrowed_at=DUE - timedelta(days=14),
        due_at=DUE,
    )


def test_no_fine_on_due_date():
    assert compute_fine(open_loan(), DUE) == FineQuote(0, 0)


def test_no_fine_before_due_date():
    assert compute_fine(open_loan(), DUE - timedelta(days=3)) == FineQuote(0, 0)


def test_partial_days_never_round_up():
    assert compute_fine(open_loan(), DUE + timedelta(hours=23, minutes=59)).days_overdue == 0
    assert compute_fine(open_loan(), DUE + timedelta(days=2, hours=20)).days_overdue == 2


def test_amount_uses_rate():
    quote = compute_fine(open_loan(), DUE + timedelta(days=10), fine_per_day=3)
    assert quote == FineQuote(days_overdue=10, amount=30)


def test_closed_loan_quotes_zero():
    loan = open_loan()
    loan.returned_at = DUE + timedelta(days=5)
    assert compute_fine(loan, DUE + timedelta(days=20)) == FineQuote(0, 0)


def test_fine_is_non_decreasing_in_time():
    loan = open_loan()
    amounts = [compute_fine(loan, DUE + timedelta(hours=h)).amount for h in range(-48, 24 * 10, 7)]
    assert amounts == sorted(amounts)


@pytest.mark.parametrize(
    "values, expected",
    [
        ({}, CirculationPolicy(14, 2, 1)),
        ({"LOAN_DAYS": "7", "MAX_RENEWS": 0, "FINE_PER_DAY": 5}, CirculationPolicy(7, 0, 5)),
    ],
)
def test_policy_from_mapping(values, expected):
    assert CirculationPolicy.from_mapping(values) == expected


def test_policy_rejects_bad_values():
    with pytest.raises(ValueError):
        CirculationPolicy(loan_days=0)
    with pytest.raises(ValueError):
        CirculationPolicy(max_renews=-1)
