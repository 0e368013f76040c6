from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Dict, List

from errors import ValidationError

TRANSACTION_KINDS = ('income', 'expense')

CENT = Decimal('0.01')
MAX_AMOUNT = Decimal('100000000')

# Column sizes in app.py
CATEGORY_MAX_LENGTH = 100
NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 200


####
# Field helpers
####
def validate_amount(amount):
    """Validate that amount is a non-negative decimal"""
    if amount is None or (isinstance(amount, str) and not amount.strip()):
        return None, "is required"
    if isinstance(amount, bool):
        return None, "is not a number"
    try:
        amt = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        return None, "is not a number"
    if not amt.is_finite():
        return None, "is not a number"
    if amt < 0:
        return None, "cannot be negative"
    # NUMERIC(10, 2) column
    if amt >= MAX_AMOUNT:
        return None, "is too large"
    if amt != amt.quantize(CENT):
        return None, "cannot have more than 2 decimal places"
    return amt.quantize(CENT), None


def validate_date(value):
    """Parse an ISO ``YYYY-MM-DD`` date; ``date`` objects pass through."""
    if isinstance(value, datetime):
        return value.date(), None
    if isinstance(value, date):
        return value, None
    try:
        return datetime.strptime(str(value).strip(), '%Y-%m-%d').date(), None
    except ValueError:
        return None, "is not a valid date (expected YYYY-MM-DD)"


def validate_kind(kind):
    if not _present(kind):
        return None, "is required"
    kind = str(kind).strip().lower()
    if kind not in TRANSACTION_KINDS:
        return None, f"must be one of: {', '.join(TRANSACTION_KINDS)}"
    return kind, None


def _present(value) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _text(data, field):
    value = data.get(field)
    return str(value).strip() if value is not None else ''


def _raw_text(data, field):
    value = data.get(field)
    return str(value) if value is not None else ''


class _Errors:
    """Collects messages per field, raising once at the end."""

    def __init__(self):
        self.errors: Dict[str, List[str]] = {}

    def add(self, field, message):
        self.errors.setdefault(field, []).append(message)

    def check(self, field, pair):
        value, error = pair
        if error:
            self.add(field, error)
        return value

    def check_length(self, field, value, limit):
        if len(value) > limit:
            self.add(field, f"is too long (maximum is {limit} characters)")

    def raise_if_any(self):
        if self.errors:
            raise ValidationError(self.errors)


def _require_mapping(data):
    if not isinstance(data, dict):
        raise ValidationError({'body': ['must be a JSON object']})


####
# Record cleaners
####
def clean_transaction(data, today=None):
    """Return the validated fields of a transaction payload.

    The wire name of the kind is ``type``; the cleaned dict calls it
    ``transaction_type``. A missing date defaults to ``today``.
    """
    _require_mapping(data)
    errs = _Errors()

    amount = errs.check('amount', validate_amount(data.get('amount')))
    category = _text(data, 'category')
    if not category:
        errs.add('category', "is required")
    errs.check_length('category', category, CATEGORY_MAX_LENGTH)
    tx_type = errs.check('type', validate_kind(data.get('type')))
    description = _raw_text(data, 'description')
    errs.check_length('description', description, DESCRIPTION_MAX_LENGTH)

    tx_date = today or date.today()
    if _present(data.get('date')):
        tx_date = errs.check('date', validate_date(data['date']))

    errs.raise_if_any()
    return {
        'date': tx_date,
        'amount': amount,
        'category': category,
        'description': description,
        'transaction_type': tx_type,
    }


def clean_budget(data):
    """Validate a budget payload. Category uniqueness is the store's job."""
    _require_mapping(data)
    errs = _Errors()

    category = _text(data, 'category')
    if not category:
        errs.add('category', "is required")
    errs.check_length('category', category, CATEGORY_MAX_LENGTH)
    amount = errs.check('amount', validate_amount(data.get('amount')))

    errs.raise_if_any()
    return {'category': category, 'amount': amount}


def clean_goal(data):
    _require_mapping(data)
    errs = _Errors()

    name = _text(data, 'name')
    if not name:
        errs.add('name', "is required")
    errs.check_length('name', name, NAME_MAX_LENGTH)
    target = errs.check('target_amount', validate_amount(data.get('target_amount')))

    deadline = None
    if _present(data.get('deadline')):
        deadline = errs.check('deadline', validate_date(data['deadline']))

    errs.raise_if_any()
    return {'name': name, 'target_amount': target, 'deadline': deadline}


def clean_progress(data):
    _require_mapping(data)
    errs = _Errors()
    amount = errs.check('amount', validate_amount(data.get('amount')))
    errs.raise_if_any()
    return amount


def check_running_total(total, field):
    """Reject a sum that would overflow its NUMERIC(10, 2) column."""
    if total >= MAX_AMOUNT:
        raise ValidationError({field: ["would push the running total past the maximum"]})
    return total


def duplicate_category_error():
    return ValidationError({'category': ["has already been taken"]})
