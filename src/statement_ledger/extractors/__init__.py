"""
Statement transaction extractors.

Provides:
- Segmentation and header detection
- ExtractorRouter: the priority-ordered strategy fallback chain
- Column, section, table and money-pattern strategies (plus opt-in date pattern)
- CSV extraction, account info lookup, and document text extraction

Strategies are pluggable and testable.
"""

from .account_info import extract_account_info
from .base import ExtractionStrategy
from .categorize import categorize_transaction
from .column_extractor import ColumnExtractor
from .csv_extractor import CSVExtractor
from .date_pattern_extractor import DatePatternExtractor
from .money_pattern_extractor import MoneyPatternExtractor
from .patterns import normalize_date, parse_amount
from .router import ChainResult, ExtractorRouter
from .section_extractor import SectionExtractor
from .segment import detect_header, detect_table_header, segment_lines, split_columns
from .table_extractor import TableExtractor
from .text_extraction import UnsupportedMediaTypeError, extract_text

__all__ = [
    "ExtractorRouter",
    "ChainResult",
    "ExtractionStrategy",
    "ColumnExtractor",
    "SectionExtractor",
    "TableExtractor",
    "MoneyPatternExtractor",
    "DatePatternExtractor",
    "CSVExtractor",
    "categorize_transaction",
    "extract_account_info",
    "extract_text",
    "UnsupportedMediaTypeError",
    "normalize_date",
    "parse_amount",
    "segment_lines",
    "split_columns",
    "detect_header",
    "detect_table_header",
]
