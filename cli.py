"""Command-line finance tracker backed by an in-memory store.

Runs the same validation, ingestion and reporting logic as the web API
without a database. Nothing is saved between runs.

    python cli.py            # interactive menu
    python cli.py --demo     # scripted, non-interactive showcase
"""

import argparse
import logging
import sys
from datetime import date

from errors import FinanceError, ValidationError
from memory_store import MemoryStore
from validation import validate_date

DEMO_TRANSACTIONS = [
    {'date': '2024-01-01', 'amount': '3200', 'category': 'Salary', 'type': 'income', 'description': 'January pay'},
    {'date': '2024-01-03', 'amount': '1100', 'category': 'Rent', 'type': 'expense', 'description': 'Apartment'},
    {'date': '2024-01-12', 'amount': '150', 'category': 'Groceries', 'type': 'expense', 'description': 'Weekly shop'},
    {'date': '2024-02-01', 'amount': '3200', 'category': 'Salary', 'type': 'income', 'description': 'February pay'},
    {'date': '2024-02-09', 'amount': '85.40', 'category': 'Groceries', 'type': 'expense'},
    {'date': '2024-02-20', 'amount': '60', 'category': 'Transport', 'type': 'expense', 'description': 'Bus pass'},
]


####
# Output helpers
####
def format_errors(error: ValidationError) -> str:
    return '; '.join(
        f"{field} {message}"
        for field, messages in error.errors.items()
        for message in messages
    )


def print_transactions(transactions):
    if not transactions:
        print("No transactions.")
        return
    print(f"{'ID':>3}  {'Date':<10}  {'Type':<7}  {'Category':<15}  {'Amount':>10}  Description")
    for t in transactions:
        print(f"{t.id:>3}  {t.date.isoformat():<10}  {t.transaction_type:<7}  "
              f"{t.category:<15}  {t.amount:>10}  {t.description}")


def print_budgets(budgets):
    if not budgets:
        print("No budgets.")
        return
    for b in budgets:
        print(f"{b.category:<15} {b.spent:>10} / {b.amount:<10} "
              f"{b.percentage_used:6.2f}%  remaining {b.remaining}")


def print_goals(goals):
    if not goals:
        print("No goals.")
        return
    for g in goals:
        days = g.days_remaining
        due = f"{days} days left" if days is not None else "no deadline"
        print(f"{g.name:<20} {g.current_amount:>10} / {g.target_amount:<10} "
              f"{g.progress_percentage:6.2f}%  {due}")


def print_report(report):
    start = report['start'].isoformat() if report['start'] else 'beginning'
    end = report['end'].isoformat() if report['end'] else 'today'
    print(f"Report from {start} to {end}")
    print(f"  Income:   {report['total_income']}")
    print(f"  Expenses: {report['total_expenses']}")
    print(f"  Net:      {report['net']}")
    for category, total in report['expenses_by_category'].items():
        print(f"    {category:<15} {total:>10}")


####
# Demo
####
def run_demo(store=None) -> MemoryStore:
    store = store or MemoryStore()
    print("[demo] Running finance tracker demo...")

    store.add_budget({'category': 'Groceries', 'amount': '400'})
    store.add_budget({'category': 'Rent', 'amount': '1100'})
    for payload in DEMO_TRANSACTIONS:
        store.add_transaction(payload)

    goal = store.add_goal({'name': 'Emergency fund', 'target_amount': '5000', 'deadline': '2030-12-31'})
    store.add_goal_progress(goal.id, {'amount': '500'})

    try:
        store.add_budget({'category': 'Groceries', 'amount': '250'})
    except ValidationError as e:
        print(f"[demo] Duplicate budget rejected: {format_errors(e)}")

    print("\nTransactions:")
    print_transactions(store.transactions())
    print("\nBudgets:")
    print_budgets(store.budgets())
    print("\nGoals:")
    print_goals(store.goals())
    print()
    print_report(store.report())
    print()
    print_report(store.report(date(2024, 1, 15), date(2024, 2, 15)))
    return store


####
# Interactive menu
####
def _ask_date(prompt):
    raw = input(prompt).strip()
    if not raw:
        return None
    value, error = validate_date(raw)
    if error:
        print(f"Date {error}; ignoring bound.")
    return value


def menu(store=None):
    store = store or MemoryStore()
    options = {
        '1': 'Add transaction',
        '2': 'Add budget',
        '3': 'Add goal',
        '4': 'Add progress to goal',
        '5': 'List transactions',
        '6': 'List budgets',
        '7': 'List goals',
        '8': 'Report',
        '0': 'Quit',
    }
    while True:
        print("\n=== Finance Tracker ===")
        for key, label in options.items():
            print(f"{key}. {label}")
        choice = input('Choose an option: ').strip()

        try:
            if choice == '1':
                tx = store.add_transaction({
                    'date': input('Date (YYYY-MM-DD, blank for today): '),
                    'amount': input('Amount: '),
                    'category': input('Category: '),
                    'type': input('Type (income/expense): '),
                    'description': input('Description: '),
                })
                print(f"Added transaction {tx.id}.")
            elif choice == '2':
                budget = store.add_budget({
                    'category': input('Category: '),
                    'amount': input('Limit: '),
                })
                print(f"Added budget for {budget.category}.")
            elif choice == '3':
                goal = store.add_goal({
                    'name': input('Name: '),
                    'target_amount': input('Target amount: '),
                    'deadline': input('Deadline (YYYY-MM-DD): '),
                })
                print(f"Added goal {goal.id}.")
            elif choice == '4':
                goal_id = input('Goal ID: ').strip()
                if not goal_id.isdigit():
                    print("Goal ID must be a number.")
                    continue
                goal = store.add_goal_progress(int(goal_id), {'amount': input('Amount: ')})
                print(f"{goal.name} is now at {goal.progress_percentage:.2f}%.")
            elif choice == '5':
                print_transactions(store.transactions())
            elif choice == '6':
                print_budgets(store.budgets())
            elif choice == '7':
                print_goals(store.goals())
            elif choice == '8':
                start = _ask_date('Start date (YYYY-MM-DD) or blank: ')
                end = _ask_date('End date (YYYY-MM-DD) or blank: ')
                print_report(store.report(start, end))
            elif choice == '0':
                print('Goodbye.')
                return store
            else:
                print('Unknown choice, try again.')
        except ValidationError as e:
            print(f"Invalid input: {format_errors(e)}")
        except FinanceError as e:
            print(f"Error: {e}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Personal finance tracker (in-memory)')
    parser.add_argument('--demo', action='store_true', help='Run a non-interactive demo and exit')
    parser.add_argument('-v', '--verbose', action='store_true', help='Log store activity to stderr')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    try:
        if args.demo or not sys.stdin.isatty():
            run_demo()
        else:
            menu()
    except (KeyboardInterrupt, EOFError):
        print('\nInterrupted, exiting.')
    return 0


if __name__ == '__main__':
    sys.exit(main())
