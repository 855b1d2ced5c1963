"""
Best-effort statement metadata.

Simple keyword and regex lookups over the raw text. Account numbers and sort
codes are never returned in full.
"""

import re

from ..schemas.statement import AccountInfo
from .patterns import detect_currency

KNOWN_BANKS = (
    "Starling Bank",
    "Monzo",
    "Barclays",
    "HSBC",
    "Lloyds",
    "NatWest",
    "Santander",
    "Nationwide",
    "Halifax",
    "TSB",
    "Royal Bank of Scotland",
    "Metro Bank",
    "First Direct",
    "Revolut",
    "Co-operative Bank",
)

ACCOUNT_NUMBER_RE = re.compile(r"account\s*(?:number|no\.?)[:\s]*(\d{6,10})", re.IGNORECASE)
SORT_CODE_RE = re.compile(r"\b\d{2}-\d{2}-(\d{2})\b")
PERIOD_DATE = r"\d{1,2}(?:/\d{1,2}/|\s+[A-Za-z]{3,9}\s+)\d{4}"
STATEMENT_PERIOD_RE = re.compile(
    rf"({PERIOD_DATE})\s*(?:-|to)\s*({PERIOD_DATE})",
    re.IGNORECASE,
)


def extract_account_info(text: str, default_currency: str = "GBP") -> AccountInfo:
    info = AccountInfo(currency=default_currency)
    if not text:
        return info

    lower = text.lower()
    for bank in KNOWN_BANKS:
        if bank.lower() in lower:
            info.bank_name = bank
            break

    if "personal account" in lower:
        info.account_type = "Personal"
    elif "business account" in lower:
        info.account_type = "Business"

    match = ACCOUNT_NUMBER_RE.search(text)
    if match:
        info.account_number = f"****{match.group(1)[-4:]}"

    match = SORT_CODE_RE.search(text)
    if match:
        info.sort_code = f"**-**-{match.group(1)}"

    match = STATEMENT_PERIOD_RE.search(text)
    if match:
        info.statement_period = f"{match.group(1)} to {match.group(2)}"

    info.currency = detect_currency(text, default_currency)
    return info
