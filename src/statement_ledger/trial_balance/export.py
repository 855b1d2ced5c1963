"""
Trial balance CSV export.

Flattens a structured trial balance into rows:

    Account Code,Account Name,Category,Debits,Credits,Balance
    <blank>
    P&L,,,,,
    ,Turnover,,,,
    4000,Sales,,2500.00,0.00,-2500.00
    ,Turnover Total,,2500.00,0.00,-2500.00
    ...

Both functions are pure; nothing is read from or written to disk.
"""

import csv
import io
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

CSV_HEADERS = ["Account Code", "Account Name", "Category", "Debits", "Credits", "Balance"]


def _money(value: Any) -> str:
    return f"{Decimal(value):.2f}"


def export_to_csv(trial_balance_result: dict[str, Any], today: Optional[date] = None) -> dict[str, Any]:
    """
    Render a ``get_trial_balance`` result as CSV.

    Returns:
        ``{"success", "format", "data", "filename"}``
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)

    for section, categories in trial_balance_result["trial_balance"].items():
        writer.writerow([])
        writer.writerow([section, "", "", "", "", ""])

        for category, group in categories.items():
            writer.writerow(["", category, "", "", "", ""])

            for account in group["accounts"]:
                writer.writerow(
                    [
                        account["code"],
                        account["name"],
                        account["subcategory"] or "",
                        _money(account["debit_amount"]),
                        _money(account["credit_amount"]),
                        _money(account["trial_balance_amount"]),
                    ]
                )

            totals = group["totals"]
            writer.writerow(
                [
                    "",
                    f"{category} Total",
                    "",
                    _money(totals["debits"]),
                    _money(totals["credits"]),
                    _money(totals["balance"]),
                ]
            )

    today = today or date.today()
    return {
        "success": True,
        "format": "csv",
        "data": buffer.getvalue(),
        "filename": f"trial-balance-{today.isoformat()}.csv",
    }


def parse_trial_balance_csv(data: str) -> dict[str, dict[str, Decimal]]:
    """
    Read per-account totals back from exported CSV.

    Section, category and category-total rows carry no account code and are
    skipped.

    Returns:
        ``{code: {"debits", "credits", "balance"}}``
    """
    accounts: dict[str, dict[str, Decimal]] = {}
    reader = csv.reader(io.StringIO(data))

    for row in reader:
        if len(row) < len(CSV_HEADERS) or row == CSV_HEADERS:
            continue

        code = row[0].strip()
        if not code:
            continue

        try:
            debits, credits, balance = (Decimal(cell) for cell in row[3:6])
        except InvalidOperation:
            # Section heading rows have no figures
            continue

        accounts[code] = {"debits": debits, "credits": credits, "balance": balance}

    return accounts
