"""
Bank statement → Transaction extraction → Account coding → Trial balance

A deterministic, testable pipeline that turns bank statement text (PDF or CSV)
into coded ledger transactions and a validated UK-style trial balance.
"""

__version__ = "0.1.0"
