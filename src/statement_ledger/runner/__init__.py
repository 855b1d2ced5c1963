"""
CLI runner module.

Provides commands:
- parse: Print the transactions of a statement
- ingest: Store a statement and its coded transactions
- accounts: List the chart of accounts
- auto-code: Code stored transactions
- trial-balance / validate / export: Trial balance views
- status: Uploads and coding progress
"""

from .main import create_cli, main
from .pipeline import ProcessingTimeoutError, StatementPipeline

__all__ = [
    "create_cli",
    "main",
    "ProcessingTimeoutError",
    "StatementPipeline",
]
