"""
Field-level helpers for bank statement rows.

Every helper returns ``None`` for input it cannot read so that a single bad
row never aborts a statement.
"""

import math
import re
from collections.abc import Mapping, Sequence
from datetime import date

from statement_categorizer.domain.vocabulary import (
    ASSET_PURCHASE_KEYWORDS,
    ASSET_SALE_KEYWORDS,
    INCOME_KEYWORDS,
)
from statement_categorizer.models import TransactionType

DEBIT_MARKER = "DEBIT:"
CREDIT_MARKER = "CREDIT:"

_MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

_DAY_MONTH_NAME_YEAR = re.compile(r"^(\d{1,2})[\s\-/]+([A-Za-z]{3})[A-Za-z]*[\s\-/]+(\d{4})$")
_DAY_MONTH_SHORT_YEAR = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2})$")
_NUMERIC_DATE = re.compile(r"^(\d{1,4})[/\-.](\d{1,2})[/\-.](\d{1,4})$")
_DR_CR_SUFFIX = re.compile(r"(dr|cr)\.?$", re.IGNORECASE)

_MERCHANT_PREFIXES = (
    "UPI-", "IMPS-", "NEFT-", "RTGS-", "POS ", "ATM ", "NET BANKING",
    "MOBILE BANKING", "PHONE BANKING", "INTERNET BANKING",
    "BY TRANSFER-", "TO TRANSFER-", "FT ", "BIL/",
)

_DEBIT_WORDS = {"dr", "debit", "withdrawal", "d"}
_CREDIT_WORDS = {"cr", "credit", "deposit", "c"}


def _safe_date(year: int, month: int, day: int) -> date | None:
    if not (1 <= month <= 12 and 1 <= day <= 31):
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date(raw: str | None) -> date | None:
    """
    Parse a statement date.

    Accepts ``19 Oct 2015`` first, then ``DD/MM/YY`` (years below 50 are
    20xx), then numeric dates tried as DD/MM/YYYY, MM/DD/YYYY and YYYY/MM/DD.
    A trailing time component is ignored.
    """
    if not raw:
        return None
    cleaned = raw.strip().replace(",", "")
    if not cleaned:
        return None

    candidates = [cleaned]
    head = re.split(r"[\sT]", cleaned, maxsplit=1)[0]
    if head != cleaned:
        candidates.append(head)

    for candidate in candidates:
        parsed = _parse_date_candidate(candidate)
        if parsed:
            return parsed
    return None


def _parse_date_candidate(value: str) -> date | None:
    match = _DAY_MONTH_NAME_YEAR.match(value)
    if match:
        day, month_name, year = match.groups()
        month = _MONTHS.get(month_name.lower())
        if month:
            return _safe_date(int(year), month, int(day))

    match = _DAY_MONTH_SHORT_YEAR.match(value)
    if match:
        day, month, year = (int(part) for part in match.groups())
        full_year = 2000 + year if year < 50 else 1900 + year
        return _safe_date(full_year, month, day)

    match = _NUMERIC_DATE.match(value)
    if match:
        p1, p2, p3 = match.groups()
        attempts = []
        if len(p3) == 4:
            attempts.append((int(p3), int(p2), int(p1)))  # DD/MM/YYYY
            attempts.append((int(p3), int(p1), int(p2)))  # MM/DD/YYYY
        if len(p1) == 4:
            attempts.append((int(p1), int(p2), int(p3)))  # YYYY/MM/DD
        for year, month, day in attempts:
            parsed = _safe_date(year, month, day)
            if parsed:
                return parsed
    return None


def _to_float(value: str) -> float | None:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def clean_number(raw: str | None) -> float | None:
    """Read a plain magnitude such as ``"1,500.00"`` from a debit/credit cell."""
    if raw is None:
        return None
    cleaned = re.sub(r"[,\s\"'₹]", "", raw)
    cleaned = re.sub(r"(Rs\.?|INR)", "", cleaned, flags=re.IGNORECASE)
    if not cleaned:
        return None
    return _to_float(cleaned)


def parse_amount(raw: str | None) -> float | None:
    """
    Parse a signed amount.

    Understands the ``DEBIT:``/``CREDIT:`` markers produced by debit/credit
    column resolution, currency markers, thousands separators, accounting
    parentheses and trailing Dr/Cr suffixes.
    """
    if raw is None:
        return None
    value = str(raw).strip()
    if not value:
        return None

    if value.startswith(DEBIT_MARKER):
        number = _to_float(value[len(DEBIT_MARKER):])
        return -abs(number) if number is not None else None
    if value.startswith(CREDIT_MARKER):
        number = _to_float(value[len(CREDIT_MARKER):])
        return abs(number) if number is not None else None

    cleaned = re.sub(r"[\"']", "", value)
    cleaned = re.sub(r"[₹$\s]", "", cleaned)
    cleaned = re.sub(r"Rs\.?", "", cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r"INR", "", cleaned, flags=re.IGNORECASE)
    # Indian grouping (1,23,456.00) and western grouping both drop the commas.
    cleaned = cleaned.replace(",", "")

    if cleaned.startswith("(") and cleaned.endswith(")"):
        number = _to_float(cleaned[1:-1])
        return -abs(number) if number is not None else None

    suffix = _DR_CR_SUFFIX.search(cleaned)
    if suffix:
        number = _to_float(cleaned[:suffix.start()])
        if number is None:
            return None
        return -abs(number) if suffix.group(1).lower() == "dr" else abs(number)

    return _to_float(cleaned)


def _non_empty(value: object) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def find_column_value(row: Mapping[str, object], candidates: Sequence[str]) -> str | None:
    """
    Return the first non-empty value for any candidate column.

    Each candidate is tried as an exact header, case-insensitively, with
    surrounding whitespace trimmed, and finally as a substring of a header.
    """
    keys = [key for key in row if isinstance(key, str)]
    for name in candidates:
        value = _non_empty(row.get(name))
        if value:
            return value
        if not name:
            continue

        lowered = name.lower()
        trimmed = lowered.strip()
        passes = (
            lambda key: key.lower() == lowered,
            lambda key: key.strip().lower() == trimmed,
            lambda key: trimmed in key.lower(),
        )
        for matches in passes:
            for key in keys:
                if matches(key):
                    value = _non_empty(row[key])
                    if value:
                        return value
    return None


def resolve_debit_credit(
    row: Mapping[str, object],
    debit_columns: Sequence[str],
    credit_columns: Sequence[str],
) -> str | None:
    """Collapse separate debit/credit columns into a marked amount string."""
    debit = clean_number(find_column_value(row, debit_columns)) if debit_columns else None
    if debit is not None and debit > 0:
        return f"{DEBIT_MARKER}{debit}"

    credit = clean_number(find_column_value(row, credit_columns)) if credit_columns else None
    if credit is not None and credit > 0:
        return f"{CREDIT_MARKER}{credit}"
    return None


def apply_direction(amount: float, direction: str | None) -> float:
    """Apply an explicit Dr/Cr indicator column to an unsigned amount."""
    if not direction:
        return amount
    word = direction.strip().lower().rstrip(".")
    if word in _DEBIT_WORDS:
        return -abs(amount)
    if word in _CREDIT_WORDS:
        return abs(amount)
    return amount


def explicit_type(value: str | None) -> TransactionType | None:
    if not value:
        return None
    try:
        return TransactionType(value.strip().lower())
    except ValueError:
        return None


def extract_merchant(description: str) -> str | None:
    cleaned = description
    upper = cleaned.upper()
    for prefix in _MERCHANT_PREFIXES:
        if upper.startswith(prefix):
            cleaned = cleaned[len(prefix):]
            break

    # Reference numbers and account numbers.
    cleaned = re.sub(r"-\d+", "", cleaned)
    cleaned = re.sub(r"\d{10,}", "", cleaned)

    words = [word for word in cleaned.split() if len(word) > 2 and not word.isdigit()]
    if not words:
        return None
    return " ".join(words[:3])


def determine_transaction_type(description: str, amount: float) -> TransactionType:
    desc = description.lower()
    if any(keyword in desc for keyword in ASSET_PURCHASE_KEYWORDS):
        return TransactionType.ASSET
    if any(keyword in desc for keyword in ASSET_SALE_KEYWORDS):
        return TransactionType.ASSET
    if any(keyword in desc for keyword in INCOME_KEYWORDS):
        return TransactionType.INCOME
    return TransactionType.INCOME if amount >= 0 else TransactionType.EXPENSE
