import pandas as pd

from errors import FinanceError

REQUIRED_COLUMNS = ('date', 'amount', 'category')

# Possible header names for each payload field
HEADER_ALIASES = {
    'date': ['date', 'transaction date', 'posted date'],
    'amount': ['amount', 'transaction amount'],
    'category': ['category'],
    'description': ['description', 'details', 'memo'],
    'type': ['type', 'transaction type', 'kind'],
}


class ImportFormatError(FinanceError):
    """The uploaded file cannot be read as a transaction CSV."""


def _normalize(s) -> str:
    return str(s).strip().lower() if s is not None else ""


def _detect_headers(columns):
    """Return a mapping of payload field names to CSV headers."""
    normalized = {_normalize(c): c for c in columns}
    mapping = {}
    for field, aliases in HEADER_ALIASES.items():
        for name in aliases:
            if name in normalized:
                mapping[field] = normalized[name]
                break
    return mapping


def _cell(value) -> str:
    # short rows come back as NaN even with keep_default_na=False
    if pd.isna(value):
        return ""
    return str(value).strip()


def _signed_row(amount: str):
    """Split a signed amount into (absolute amount, type) for files without a type column."""
    text = amount.replace('$', '').replace(',', '').strip()
    if text.startswith('-'):
        return text[1:], 'expense'
    return text, 'income'


def parse_csv(file_obj):
    """Parse a transaction CSV into payloads for ``POST /transactions``.

    Returns a list of ``(row_number, payload)`` tuples; row numbers count the
    header as row 1. When the file has no type column, the sign of the amount
    decides: negative rows are expenses, the rest income.
    """
    try:
        df = pd.read_csv(file_obj, dtype=str, keep_default_na=False, skip_blank_lines=True)
    except pd.errors.EmptyDataError as e:
        raise ImportFormatError("File is empty") from e
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise ImportFormatError(f"Could not parse CSV: {e}") from e

    headers = _detect_headers(df.columns)
    missing = [c for c in REQUIRED_COLUMNS if c not in headers]
    if missing:
        raise ImportFormatError(f"Missing required columns: {', '.join(missing)}")

    rows = []
    for index, row in df.iterrows():
        payload = {field: _cell(row[header]) for field, header in headers.items()}
        if not any(payload.values()):
            continue
        if 'type' not in headers:
            payload['amount'], payload['type'] = _signed_row(payload['amount'])
        rows.append((index + 2, payload))
    return rows
