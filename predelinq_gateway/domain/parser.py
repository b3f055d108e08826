"""
CSV statement parser and validator.

Structural problems (missing required column, more than one customer, an
unparseable date/amount/type) stop parsing at the first occurrence and return
no transactions, so a partial batch can never reach scoring. Recoverable gaps
(missing optional columns, a row without customer id) become warnings.
"""

import csv
import io
import re
from datetime import date, datetime, timezone
from typing import Dict, List, Optional, Tuple

from predelinq_gateway.domain.exceptions import TransactionParseError
from predelinq_gateway.domain.models import (
    Channel,
    Direction,
    ParseResult,
    Transaction,
    generate_id,
)

REQUIRED_COLUMNS = [
    ("customer_id", "Missing required column: customer_id"),
    ("date", "Missing required column: date (format: yyyy-mm-dd)"),
    ("amount", "Missing required column: amount"),
    ("type", "Missing required column: type (credit/debit)"),
]

OPTIONAL_COLUMN_WARNINGS = {
    "balance": "Column 'balance' missing - will compute running balance from transactions.",
    "category": "Column 'category' missing - will default to 'other'.",
    "merchant": "Column 'merchant' missing - will default to 'Unknown Merchant'.",
    "channel": "Column 'channel' missing - will default to 'UPI'.",
}

DEFAULT_CATEGORY = "other"
DEFAULT_MERCHANT = "Unknown Merchant"
DEFAULT_CHANNEL = Channel.UPI

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DAY_FIRST_DATE = re.compile(r"^(\d{2})[/-](\d{2})[/-](\d{4})$")
_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_WHITESPACE = re.compile(r"\s+")

_UTC_SUFFIX = re.compile(r"[Zz]$")

# Tried in order after the ISO, day-first and timestamp forms fail
_FALLBACK_DATE_FORMATS = [
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%m-%d-%Y",
    "%d %b %Y",
    "%d %B %Y",
    "%d-%b-%Y",
    "%b %d %Y",
    "%B %d %Y",
    "%b %d, %Y",
    "%B %d, %Y",
]

_CHANNELS_BY_VALUE = {channel.value: channel for channel in Channel}


def normalize_header(header: str) -> str:
    return _WHITESPACE.sub("_", header.strip().lower())


def parse_date(raw: str) -> Optional[date]:
    """
    Parse yyyy-mm-dd, dd/mm/yyyy or dd-mm-yyyy, falling back to ISO timestamps
    and generic formats.

    Two-digit day/month pairs are read day first. Unpadded slash dates fall
    through to the month-first formats ("5/1/2024" is 1 May). Timestamps with
    an offset are converted to their UTC date.
    """
    value = (raw or "").strip()
    if not value:
        return None

    if _ISO_DATE.match(value):
        try:
            return date.fromisoformat(value)
        except ValueError:
            return None

    match = _DAY_FIRST_DATE.match(value)
    if match:
        day, month, year = (int(part) for part in match.groups())
        try:
            return date(year, month, day)
        except ValueError:
            return None

    try:
        parsed = datetime.fromisoformat(_UTC_SUFFIX.sub("+00:00", value))
    except ValueError:
        pass
    else:
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc)
        return parsed.date()

    for fmt in _FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def parse_number(raw: Optional[str]) -> Optional[float]:
    """Strip currency symbols and separators, keep digits, '.' and '-'"""
    cleaned = _NON_NUMERIC.sub("", raw or "")
    if not cleaned:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def _cell(row: Dict[str, Optional[str]], column: str) -> str:
    return (row.get(column) or "").strip()


def _read_rows(csv_text: str) -> Tuple[List[Dict[str, Optional[str]]], List[str]]:
    reader = csv.reader(io.StringIO(csv_text.lstrip("\ufeff")))
    header: Optional[List[str]] = None
    rows: List[Dict[str, Optional[str]]] = []
    for record in reader:
        if not record:
            continue
        if header is None:
            header = [normalize_header(h) for h in record]
            continue
        rows.append({name: (record[i] if i < len(record) else None) for i, name in enumerate(header)})
    return rows, header or []


def parse_transactions(csv_text: str) -> ParseResult:
    """
    Parse a single-customer CSV statement into validated transactions.

    Returns:
        ParseResult with transactions sorted by date, fatal errors and warnings.
        When `errors` is non-empty, `transactions` is always empty.
    """
    result = ParseResult()
    rows, headers = _read_rows(csv_text)
    result.raw_rows = len(rows)

    if not rows:
        result.errors.append("CSV file is empty.")
        return result

    for column, message in REQUIRED_COLUMNS:
        if column not in headers:
            result.errors.append(message)
            return result

    customer_ids: List[str] = []
    for row in rows:
        customer_id = _cell(row, "customer_id")
        if customer_id and customer_id not in customer_ids:
            customer_ids.append(customer_id)
    if len(customer_ids) > 1:
        result.errors.append(
            "Upload must contain only one customer_id per file. "
            f"Found: {', '.join(customer_ids)}"
        )
        return result
    if not customer_ids:
        result.errors.append("No valid customer_id found in file.")
        return result

    for column, message in OPTIONAL_COLUMN_WARNINGS.items():
        if column not in headers:
            result.warnings.append(message)

    if "customer_name" in headers:
        result.customer_name = next(
            (_cell(row, "customer_name") for row in rows if _cell(row, "customer_name")), None
        )

    transactions: List[Transaction] = []
    running_balance = 0.0

    for index, row in enumerate(rows):
        row_num = index + 2  # header is row 1

        customer_id = _cell(row, "customer_id")
        if not customer_id:
            result.warnings.append(f"Row {row_num}: Empty customer_id, skipping.")
            continue

        date_raw = _cell(row, "date")
        txn_date = parse_date(date_raw)
        if txn_date is None:
            result.errors.append(
                f'Row {row_num}: Invalid date "{date_raw}". Expected format: yyyy-mm-dd'
            )
            return result

        amount_raw = _cell(row, "amount")
        amount = parse_number(amount_raw)
        if amount is None:
            result.errors.append(f'Row {row_num}: Invalid amount "{amount_raw}"')
            return result
        if amount <= 0:
            result.errors.append(f'Row {row_num}: Invalid amount "{amount_raw}". Must be a positive number')
            return result

        type_raw = _cell(row, "type")
        if type_raw.lower() not in (Direction.CREDIT.value, Direction.DEBIT.value):
            result.errors.append(
                f'Row {row_num}: Invalid type "{row.get("type") or ""}". Must be "credit" or "debit"'
            )
            return result
        direction = Direction(type_raw.lower())

        balance = parse_number(_cell(row, "balance")) if "balance" in headers else None
        if balance is None:
            balance = running_balance + (amount if direction == Direction.CREDIT else -amount)
        running_balance = balance

        transactions.append(
            Transaction(
                transaction_id=_cell(row, "transaction_id") or generate_id("TXN"),
                customer_id=customer_id,
                date=txn_date,
                amount=amount,
                type=direction,
                category=_cell(row, "category").lower() or DEFAULT_CATEGORY,
                balance=balance,
                merchant=_cell(row, "merchant") or DEFAULT_MERCHANT,
                channel=_CHANNELS_BY_VALUE.get(_cell(row, "channel"), DEFAULT_CHANNEL),
            )
        )

    # Stable sort keeps upload order for same-day rows
    result.transactions = sorted(transactions, key=lambda t: t.date)
    return result


def require_transactions(result: ParseResult) -> List[Transaction]:
    """Unwrap a parse result, raising when any fatal error was recorded"""
    if result.errors:
        raise TransactionParseError(result.errors, result.warnings)
    return result.transactions
