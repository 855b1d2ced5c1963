"""
Sample statements for tests.

Statement texts mimic layout-preserving PDF text extraction: table columns
start at fixed character offsets and are separated by runs of spaces.
"""

from decimal import Decimal
from pathlib import Path

from statement_ledger.schemas.statement import Direction, Transaction

FIXTURES_DIR = Path(__file__).parent


def make_transaction(transaction_id, date, description, amount, income=False, account_code=None, **kwargs):
    """Build a pipeline Transaction for store and trial balance tests."""
    return Transaction(
        transaction_id=transaction_id,
        date=date,
        description=description,
        amount=Decimal(amount),
        direction=Direction.INCOME if income else Direction.EXPENSE,
        currency=kwargs.pop("currency", "GBP"),
        category=kwargs.pop("category", "Uncategorized"),
        account_code=account_code,
        coding_confidence=kwargs.pop("coding_confidence", 0.9 if account_code else 0.0),
        **kwargs,
    )


def statement_row(date, description, money_in="", money_out="", balance=""):
    """One row of a layout-preserved statement table (columns at fixed offsets)."""
    return f"{date:<12}{description:<29}{money_in:<13}{money_out:<13}{balance}".rstrip()


def table_row(date, details, inflow="", outflow=""):
    return f"{date:<12}{details:<22}{inflow:<10}{outflow}".rstrip()


def type_column_row(date, kind, description, paid_out="", paid_in="", balance=""):
    """Row of a statement with a "Transaction type" column before the description."""
    return f"{date:<12}{kind:<19}{description:<25}{paid_out:<12}{paid_in:<11}{balance}".rstrip()


# Statement with a proper column header (structured-column strategy)
SAMPLE_COLUMN_STATEMENT = "\n".join(
    [
        "Starling Bank",
        "Business Account",
        "Account Number: 12345678    Sort Code: 60-83-71",
        "Statement period: 01/03/2024 to 31/03/2024",
        "",
        statement_row("Date", "Description", "Money In", "Money Out", "Balance"),
        statement_row("01/03/2024", "TESCO STORES 2034", "", "45.20", "954.80"),
        statement_row("02/03/2024", "SALARY ACME LTD", "2,500.00", "", "3,454.80"),
        statement_row("05/03/2024", "BRITISH GAS", "", "80.00", "3,374.80"),
        "Page 1 of 2",
        statement_row("01/03/2024", "TESCO STORES 2034", "", "45.20", "954.80"),
        statement_row("06/03/2024", "BARCLAYS BANK FEE", "", "5.00", "3,369.80"),
        "",
        "Closing balance                                                    3,369.80",
    ]
)

# No column header; a section heading followed by dated lines
SAMPLE_SECTION_STATEMENT = "\n".join(
    [
        "Monzo",
        "Personal Account",
        "Statement period: 01/03/2024 to 31/03/2024",
        "",
        "Your transactions",
        "01/03/2024  TESCO STORES 2034  45.20  CARD PAYMENT REF 00412 LONDON GB",
        "02/03/2024  SALARY ACME LTD  2,500.00",
        "03/03/2024  PRET A MANGER  6.85  CARD PAYMENT REF 00977 LONDON GB",
        "",
        "Closing balance on 31/03/2024  2,448.35",
    ]
)

# Header only recognizable by the stricter table vocabulary (Inflow/Outflow)
SAMPLE_TABLE_STATEMENT = "\n".join(
    [
        "Account summary",
        table_row("Date", "Details", "Inflow", "Outflow"),
        table_row("04/03/2024", "CLIENT INVOICE 1042", "1,200.00", ""),
        table_row("05/03/2024", "AMAZON MARKETPLACE", "", "19.99"),
        table_row("06/03/2024", "OFFICE SUPPLIES LTD", "", "32.40"),
        table_row("Total", "", "1,200.00", "52.39"),
        table_row("07/03/2024", "AFTER THE TOTALS", "", "9.99"),
    ]
)

# Nothing but dated lines with currency-prefixed amounts
SAMPLE_MONEY_PATTERN_TEXT = "\n".join(
    [
        "Payment confirmations",
        "01/03/2024 Card payment to COFFEE HOUSE £3.50 approved at card terminal 0042, London GB",
        "02/03/2024 Refund received from SUPPLIER LTD                        £120.00",
    ]
)

SAMPLE_CSV_STATEMENT = """Date,Description,Paid In,Paid Out,Balance
01/03/2024,TESCO STORES 2034,,45.20,954.80
02/03/2024,SALARY ACME LTD,"2,500.00",,"3,454.80"
03/03/2024,OPENING CREDIT ADJUSTMENT,,,"3,454.80"
"""

SAMPLE_SIGNED_CSV_STATEMENT = """Date,Counter Party,Reference,Amount (GBP),Balance (GBP)
2024-03-01,TESCO STORES,Card 1234,-45.20,954.80
2024-03-02,ACME LTD,SALARY MARCH,2500.00,3454.80
"""

# "Transaction Type" precedes "Transaction Description"; same-day, same-amount card payments
SAMPLE_TYPE_COLUMN_CSV_STATEMENT = """Transaction Date,Transaction Type,Sort Code,Account Number,Transaction Description,Debit Amount,Credit Amount,Balance
01/03/2024,DEB,'30-00-00,12345678,TESCO STORES 2034,45.20,,954.80
01/03/2024,DEB,'30-00-00,12345678,SHELL PETROL STATION,45.20,,909.60
02/03/2024,BGC,'30-00-00,12345678,ACME LTD SALARY,,2500.00,3409.60
"""

# Signed amount with the payee text in a Memo column
SAMPLE_MEMO_CSV_STATEMENT = """Number,Date,Account,Amount,Subcategory,Memo
,01/03/2024,20-32-06 13152170,-45.20,PAYMENT,TESCO STORES 2034 ON 01 MAR BCC
,01/03/2024,20-32-06 13152170,-45.20,PAYMENT,SHELL PETROL STATION ON 01 MAR BCC
"""

SAMPLE_TYPE_COLUMN_STATEMENT = "\n".join(
    [
        "Nationwide",
        "FlexAccount",
        "",
        type_column_row("Date", "Transaction type", "Description", "Paid out", "Paid in", "Balance"),
        type_column_row("01/03/2024", "Visa purchase", "TESCO STORES 2034", "45.20", "", "954.80"),
        type_column_row("01/03/2024", "Visa purchase", "SHELL PETROL STATION", "45.20", "", "909.60"),
        type_column_row("02/03/2024", "Transfer from", "ACME LTD SALARY", "", "2,500.00", "3,409.60"),
    ]
)
