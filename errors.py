from typing import Dict, List


class FinanceError(Exception):
    """Base class for errors raised by the finance tracker."""


class ValidationError(FinanceError):
    """One or more fields failed validation.

    ``errors`` maps a field name to the list of messages for that field,
    e.g. ``{'amount': ['is required']}``.
    """

    def __init__(self, errors: Dict[str, List[str]]):
        self.errors = errors
        fields = ', '.join(sorted(errors))
        super().__init__(f"Validation failed for: {fields}")


class NotFoundError(FinanceError):
    pass


class PersistenceError(FinanceError):
    """The storage layer failed; fatal for the current request."""
