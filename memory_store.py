"""In-memory store backing the command-line tracker.

Holds records in insertion-ordered dicts keyed by id. A single re-entrant
lock serializes writes; reads return snapshot copies taken under the lock.
"""

import copy
import logging
import threading
from typing import Dict, List, Optional

import reports
from errors import NotFoundError
from records import Budget, Goal, Transaction
from validation import (
    clean_budget,
    clean_goal,
    clean_progress,
    clean_transaction,
    duplicate_category_error,
)

logger = logging.getLogger(__name__)


class MemoryStore:
    def __init__(self):
        self._lock = threading.RLock()
        self._transactions: Dict[int, Transaction] = {}
        self._budgets: Dict[int, Budget] = {}
        self._goals: Dict[int, Goal] = {}

    ####
    # Writes
    ####
    def add_transaction(self, data, today=None) -> Transaction:
        """Validate and store a transaction, then update any matching budget.

        Both steps happen under one lock acquisition, and nothing is stored
        when the budget update is rejected.
        """
        fields = clean_transaction(data, today=today or reports.today())
        with self._lock:
            tx = Transaction(id=len(self._transactions) + 1, **fields)
            budget = self._budget_for(tx.category)
            if reports.apply_expense(budget, tx):
                logger.debug("Budget %r spent is now %s", budget.category, budget.spent)
            self._transactions[tx.id] = tx
        logger.info("Recorded %s of %s in %r", tx.transaction_type, tx.amount, tx.category)
        return tx

    def add_budget(self, data) -> Budget:
        fields = clean_budget(data)
        with self._lock:
            if self._budget_for(fields['category']) is not None:
                raise duplicate_category_error()
            budget = Budget(id=len(self._budgets) + 1, **fields)
            self._budgets[budget.id] = budget
        logger.info("Created budget %r with limit %s", budget.category, budget.amount)
        return copy.copy(budget)

    def add_goal(self, data) -> Goal:
        fields = clean_goal(data)
        with self._lock:
            goal = Goal(id=len(self._goals) + 1, **fields)
            self._goals[goal.id] = goal
        logger.info("Created goal %r targeting %s", goal.name, goal.target_amount)
        return copy.copy(goal)

    def add_goal_progress(self, goal_id, data) -> Goal:
        amount = clean_progress(data)
        with self._lock:
            goal = self._goals.get(goal_id)
            if goal is None:
                raise NotFoundError(f"Goal {goal_id} not found")
            goal.add_progress(amount)
            return copy.copy(goal)

    ####
    # Reads
    ####
    def transactions(self) -> List[Transaction]:
        with self._lock:
            return list(self._transactions.values())

    def budgets(self) -> List[Budget]:
        with self._lock:
            return [copy.copy(b) for b in self._budgets.values()]

    def goals(self) -> List[Goal]:
        with self._lock:
            return [copy.copy(g) for g in self._goals.values()]

    def budget(self, category) -> Optional[Budget]:
        with self._lock:
            budget = self._budget_for(category)
            return copy.copy(budget) if budget else None

    def report(self, start=None, end=None) -> dict:
        return reports.summary(self.transactions(), start, end)

    def _budget_for(self, category) -> Optional[Budget]:
        for budget in self._budgets.values():
            if budget.category == category:
                return budget
        return None
