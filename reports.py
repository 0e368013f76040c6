"""Aggregation and derived values for transactions, budgets and goals.

Everything here is stateless. Functions accept any objects exposing the
attributes they read (``date``, ``amount``, ``category``,
``transaction_type``), so both the Flask-SQLAlchemy models and the
in-memory records share this code.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, Optional

from validation import check_running_total

ZERO = Decimal('0.00')
CENT = Decimal('0.01')


def today() -> date:
    return date.today()


####
# Derived values
####
def percentage(part, whole) -> float:
    """Return ``part / whole * 100`` rounded to two places.

    A zero (or missing) denominator yields ``0.0`` instead of raising.
    """
    if not whole:
        return 0.0
    ratio = Decimal(part or 0) / Decimal(whole) * 100
    return float(ratio.quantize(CENT, rounding=ROUND_HALF_UP))


def remaining(limit, spent) -> Decimal:
    return Decimal(limit or 0) - Decimal(spent or 0)


def days_until(deadline: Optional[date], on: Optional[date] = None) -> Optional[int]:
    """Whole days from ``on`` (default today) until ``deadline``; negative when overdue."""
    if deadline is None:
        return None
    return (deadline - (on or today())).days


####
# Aggregation over transactions
####
def in_range(tx, start: Optional[date] = None, end: Optional[date] = None) -> bool:
    if start is not None and tx.date < start:
        return False
    if end is not None and tx.date > end:
        return False
    return True


def _of_kind(transactions, kind, start, end):
    return (
        t for t in transactions
        if t.transaction_type == kind and in_range(t, start, end)
    )


def total_income(transactions: Iterable, start=None, end=None) -> Decimal:
    return sum((Decimal(t.amount) for t in _of_kind(transactions, 'income', start, end)), ZERO)


def total_expenses(transactions: Iterable, start=None, end=None) -> Decimal:
    return sum((Decimal(t.amount) for t in _of_kind(transactions, 'expense', start, end)), ZERO)


def expenses_by_category(transactions: Iterable, start=None, end=None) -> Dict[str, Decimal]:
    """Sum expenses per category, in order of first appearance."""
    totals: Dict[str, Decimal] = {}
    for t in _of_kind(transactions, 'expense', start, end):
        totals[t.category] = totals.get(t.category, ZERO) + Decimal(t.amount)
    return totals


def summary(transactions: Iterable, start=None, end=None) -> dict:
    transactions = list(transactions)
    income = total_income(transactions, start, end)
    expenses = total_expenses(transactions, start, end)
    return {
        'start': start,
        'end': end,
        'total_income': income,
        'total_expenses': expenses,
        'net': income - expenses,
        'expenses_by_category': expenses_by_category(transactions, start, end),
    }


def apply_expense(budget, tx) -> bool:
    """Add an expense to ``budget.spent`` when the categories match exactly.

    Returns True when the budget was changed. A total that would not fit
    the money column raises ``ValidationError`` and leaves ``spent`` alone.
    """
    if budget is None or tx.transaction_type != 'expense':
        return False
    if budget.category != tx.category:
        return False
    budget.spent = check_running_total(Decimal(budget.spent or 0) + Decimal(tx.amount), 'amount')
    return True
