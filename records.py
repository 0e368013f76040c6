from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import reports
from validation import check_running_total


def _now():
    return datetime.now()


@dataclass(frozen=True)
class Transaction:
    id: int
    date: date
    amount: Decimal
    category: str
    transaction_type: str  # 'income' or 'expense'
    description: str = ""
    created_at: datetime = field(default_factory=_now)

    def to_dict(self):
        return {
            'id': self.id,
            'date': self.date.isoformat(),
            'amount': str(self.amount),
            'category': self.category,
            'description': self.description,
            'type': self.transaction_type,
            'created_at': self.created_at.isoformat(),
        }


@dataclass
class Budget:
    id: int
    category: str
    amount: Decimal
    spent: Decimal = Decimal('0.00')
    created_at: datetime = field(default_factory=_now)

    @property
    def remaining(self):
        return reports.remaining(self.amount, self.spent)

    @property
    def percentage_used(self):
        return reports.percentage(self.spent, self.amount)

    def to_dict(self):
        return {
            'id': self.id,
            'category': self.category,
            'amount': str(self.amount),
            'spent': str(self.spent),
            'remaining': str(self.remaining),
            'percentage_used': self.percentage_used,
            'created_at': self.created_at.isoformat(),
        }


@dataclass
class Goal:
    id: int
    name: str
    target_amount: Decimal
    deadline: Optional[date] = None
    current_amount: Decimal = Decimal('0.00')
    created_at: datetime = field(default_factory=_now)

    @property
    def progress_percentage(self):
        return reports.percentage(self.current_amount, self.target_amount)

    @property
    def days_remaining(self):
        return reports.days_until(self.deadline)

    def add_progress(self, amount):
        self.current_amount = check_running_total(self.current_amount + amount, 'amount')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'target_amount': str(self.target_amount),
            'current_amount': str(self.current_amount),
            'deadline': self.deadline.isoformat() if self.deadline else None,
            'progress_percentage': self.progress_percentage,
            'days_remaining': self.days_remaining,
            'created_at': self.created_at.isoformat(),
        }
