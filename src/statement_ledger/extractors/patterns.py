"""
Date and money patterns shared by all extraction strategies.

Supported formats:
- Dates: DD/MM/YYYY, DD-MM-YYYY, DD MMM YYYY, DD Month YYYY
- Amounts: 1,234.56 with optional £/$/€ prefix; (12.00), -12.00 or 12.00DR for negatives, 12.00CR for credits

Only DD/MM/YYYY is normalized to ISO; any other date format passes through
unchanged (no general date-format inference).
"""

import re
from decimal import Decimal

# Any recognizable date token (UK day-first)
DATE_TOKEN_RE = re.compile(
    r"(\d{1,2}[/-]\d{1,2}[/-]\d{4}|\d{1,2}\s+[A-Za-z]{3,9}\s+\d{4})"
)

# Already-normalized dates (CSV exports)
ISO_DATE_RE = re.compile(r"\b(\d{4}-\d{2}-\d{2})\b")

# The canonical wire format, normalized to YYYY-MM-DD
DDMMYYYY_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")

# Money amount anywhere in a line, optional currency prefix
MONEY_RE = re.compile(
    r"(?<![\d.,/])((?:[£$€]\s?)?\(?-?(?:\d{1,3}(?:,\d{3})+|\d+)\.\d{2}\)?)(?![\d/])"
)

# Money amount that carries an explicit currency symbol
CURRENCY_MONEY_RE = re.compile(r"([£$€])\s?((?:\d{1,3}(?:,\d{3})+|\d+)\.\d{2})(?!\d)")

# A column holding only an amount (used to find non-numeric description columns)
NUMERIC_COLUMN_RE = re.compile(r"^[£$€]?\s?\(?-?[\d,]*\.?\d+\)?\s*(?:CR|DR)?$", re.IGNORECASE)

CURRENCY_SYMBOLS = {
    "£": "GBP",
    "$": "USD",
    "€": "EUR",
}

_STRIP_RE = re.compile(r"[£$€,\s]")

# What remains of an amount once symbols, separators and sign markers are gone
PLAIN_NUMBER_RE = re.compile(r"^-?\d+(?:\.\d+)?$")

# Trailing credit/debit marker, as printed by banks that use a single amount column
CREDIT_DEBIT_SUFFIX_RE = re.compile(r"(CR|DR)$", re.IGNORECASE)


def parse_amount(amount_str: str | None) -> Decimal:
    """
    Parse a statement amount into a signed Decimal.

    Currency symbols, thousands separators and whitespace are stripped.
    Parentheses, a leading minus or a trailing "DR" denote a negative value;
    a trailing "CR" marks a credit and keeps the value positive. Anything that
    is not a plain decimal number after cleaning (exponents included) yields
    ``Decimal("0")``: "no amount found", not an error.

    Examples:
        >>> parse_amount("£1,234.56")
        Decimal('1234.56')
        >>> parse_amount("(12.00)")
        Decimal('-12.00')
        >>> parse_amount("45.20DR")
        Decimal('-45.20')
        >>> parse_amount("1E5")
        Decimal('0')
    """
    if not amount_str or not amount_str.strip():
        return Decimal("0")

    cleaned = _STRIP_RE.sub("", amount_str)
    is_negative = "(" in cleaned and ")" in cleaned
    cleaned = cleaned.replace("(", "").replace(")", "")

    suffix = CREDIT_DEBIT_SUFFIX_RE.search(cleaned)
    if suffix:
        cleaned = cleaned[: suffix.start()]
        if suffix.group(1).upper() == "DR":
            is_negative = True

    if not PLAIN_NUMBER_RE.match(cleaned):
        return Decimal("0")

    amount = Decimal(cleaned)
    return -abs(amount) if is_negative else amount


def normalize_date(date_str: str) -> str:
    """
    Normalize a statement date for persistence.

    DD/MM/YYYY (day and month may be single digits) becomes YYYY-MM-DD;
    every other format is returned unchanged.

    Examples:
        >>> normalize_date("1/3/2024")
        '2024-03-01'
        >>> normalize_date("01 Mar 2024")
        '01 Mar 2024'
    """
    match = DDMMYYYY_RE.match(date_str.strip())
    if not match:
        return date_str

    day, month, year = match.groups()
    return f"{year}-{month.zfill(2)}-{day.zfill(2)}"


def find_date(line: str) -> re.Match | None:
    """First date token in a line."""
    return DATE_TOKEN_RE.search(line)


def is_numeric_column(column: str) -> bool:
    return bool(NUMERIC_COLUMN_RE.match(column.strip()))


def detect_currency(text: str, default: str = "GBP") -> str:
    """Currency of the first symbol found in the text."""
    for symbol, code in CURRENCY_SYMBOLS.items():
        if symbol in text:
            return code
    return default
