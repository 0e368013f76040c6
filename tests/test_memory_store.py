import threading
from datetime import date
from decimal import Decimal

import pytest

import cli
import reports
from errors import NotFoundError, ValidationError
from memory_store import MemoryStore


@pytest.fixture
def store():
    return MemoryStore()


def test_round_trip_transaction(store):
    tx = store.add_transaction({
        'date': '2024-01-05', 'amount': '42.10', 'category': 'Books',
        'description': 'Novel', 'type': 'expense',
    })
    assert store.transactions() == [tx]
    assert tx.to_dict()['amount'] == '42.10'
    assert tx.to_dict()['type'] == 'expense'


def test_budget_tracks_matching_expenses(store):
    store.add_budget({'category': 'Food', 'amount': '1000'})
    store.add_transaction({'amount': '150', 'category': 'Food', 'type': 'expense'})
    store.add_transaction({'amount': '150', 'category': 'Food', 'type': 'income'})
    store.add_transaction({'amount': '150', 'category': 'Fun', 'type': 'expense'})

    budget = store.budget('Food')
    assert budget.spent == Decimal('150.00')
    assert budget.remaining == Decimal('850.00')
    assert budget.percentage_used == 15.0


def test_duplicate_budget_rejected(store):
    store.add_budget({'category': 'Food', 'amount': '1000'})
    with pytest.raises(ValidationError) as exc:
        store.add_budget({'category': 'Food', 'amount': '5'})
    assert exc.value.errors == {'category': ['has already been taken']}
    assert [b.amount for b in store.budgets()] == [Decimal('1000.00')]


def test_concurrent_budget_creation_allows_one(store):
    results = []

    def create():
        try:
            store.add_budget({'category': 'Rent', 'amount': '900'})
            results.append('ok')
        except ValidationError:
            results.append('dup')

    threads = [threading.Thread(target=create) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count('ok') == 1
    assert len(store.budgets()) == 1


def test_invalid_transaction_not_stored(store):
    store.add_budget({'category': 'Food', 'amount': '100'})
    with pytest.raises(ValidationError):
        store.add_transaction({'amount': '10', 'category': 'Food', 'type': 'loan'})
    assert store.transactions() == []
    assert store.budget('Food').spent == Decimal('0.00')


def test_goal_progress(store):
    goal = store.add_goal({'name': 'Laptop', 'target_amount': '5000'})
    assert goal.progress_percentage == 0.0
    goal = store.add_goal_progress(goal.id, {'amount': '500'})
    assert goal.progress_percentage == 10.0
    assert store.goals()[0].current_amount == Decimal('500.00')

    with pytest.raises(NotFoundError):
        store.add_goal_progress(42, {'amount': '1'})


def test_reads_are_snapshots(store):
    store.add_budget({'category': 'Food', 'amount': '100'})
    snapshot = store.budgets()[0]
    store.add_transaction({'amount': '30', 'category': 'Food', 'type': 'expense'})
    assert snapshot.spent == Decimal('0.00')
    assert store.budget('Food').spent == Decimal('30.00')


def test_report_with_bounds(store):
    for day in ('2024-01-01', '2024-02-01', '2024-03-01'):
        store.add_transaction({'date': day, 'amount': '10', 'category': day[:7], 'type': 'expense'})
    report = store.report(date(2024, 1, 15), date(2024, 2, 15))
    assert report['total_expenses'] == Decimal('10.00')
    assert list(report['expenses_by_category']) == ['2024-02']


def test_missing_date_uses_reports_today(store, monkeypatch):
    monkeypatch.setattr(reports, 'today', lambda: date(2024, 6, 1))
    tx = store.add_transaction({'amount': '5', 'category': 'Food', 'type': 'expense'})
    assert tx.date == date(2024, 6, 1)


def test_description_kept_verbatim(store):
    tx = store.add_transaction({
        'amount': '900', 'category': 'Rent', 'type': 'expense',
        'description': '  rent for\tJune  ',
    })
    assert store.transactions()[0].description == '  rent for\tJune  '
    assert tx.to_dict()['description'] == '  rent for\tJune  '


def test_overflowing_expense_not_stored(store):
    store.add_budget({'category': 'Big', 'amount': '99999999.99'})
    store.add_transaction({'amount': '99999999.00', 'category': 'Big', 'type': 'expense'})
    with pytest.raises(ValidationError) as exc:
        store.add_transaction({'amount': '1', 'category': 'Big', 'type': 'expense'})
    assert 'amount' in exc.value.errors
    assert len(store.transactions()) == 1
    assert store.budget('Big').spent == Decimal('99999999.00')


def test_goal_progress_overflow_rejected(store):
    goal = store.add_goal({'name': 'Moon', 'target_amount': '99999999.99'})
    store.add_goal_progress(goal.id, {'amount': '99999999.99'})
    with pytest.raises(ValidationError):
        store.add_goal_progress(goal.id, {'amount': '0.01'})
    assert store.goals()[0].current_amount == Decimal('99999999.99')


def test_demo_runs(capsys):
    store = cli.run_demo()
    out = capsys.readouterr().out
    assert 'Duplicate budget rejected' in out
    assert store.budget('Groceries').spent == Decimal('235.40')
    assert store.budget('Rent').percentage_used == 100.0
    assert store.goals()[0].progress_percentage == 10.0


def test_cli_main_demo(capsys):
    assert cli.main(['--demo']) == 0
    assert 'Report from' in capsys.readouterr().out


def test_menu_adds_transaction(monkeypatch, capsys):
    answers = iter(['1', '2024-04-01', '12', 'Food', 'expense', 'Snacks', '5', '0'])
    monkeypatch.setattr('builtins.input', lambda prompt='': next(answers))
    store = cli.menu()
    assert len(store.transactions()) == 1
    assert 'Added transaction 1.' in capsys.readouterr().out


def test_menu_reports_validation_errors(monkeypatch, capsys):
    answers = iter(['2', '', 'abc', '0'])
    monkeypatch.setattr('builtins.input', lambda prompt='': next(answers))
    cli.menu()
    out = capsys.readouterr().out
    assert 'Invalid input: category is required; amount is not a number' in out
