"""
Statement text segmentation and header detection.

Text produced by layout-preserving extraction keeps table columns apart with
runs of two or more spaces. Segmentation turns the text into trimmed,
non-empty lines; header detection finds the first line that looks like the
column header of the transaction table and maps its columns.
"""

import logging
import re

from ..schemas.statement import HeaderInfo, RawLine
from .patterns import find_date

logger = logging.getLogger(__name__)

COLUMN_SPLIT_RE = re.compile(r"\s{2,}")

# Vocabulary that marks a date column
DATE_TERMS = ("date", "day")

# Money-direction vocabulary; whole words only for the header candidate test
MONEY_TERMS_RE = re.compile(
    r"\b(money in|money out|paid in|paid out|in|out|credits?|debits?|deposits?|withdrawals?)\b"
)

# Columns that name the description outright
DESCRIPTION_TERMS = ("description", "details", "narrative", "particulars", "memo")

# Columns that hold a description only when nothing better is present
# ("Transaction Type", "Reference")
WEAK_DESCRIPTION_TERMS = ("transaction", "reference")

# Column-level mapping terms (checked against a single lower-cased header column)
MONEY_IN_TERMS = ("paid in", "money in", "credit", "deposit", "inflow")
MONEY_OUT_TERMS = ("paid out", "money out", "debit", "withdrawal", "outflow")


def segment_lines(text: str) -> list[RawLine]:
    """
    Split raw statement text into trimmed, non-empty lines.

    The source line index is kept so that gaps (blank lines) remain visible
    to strategies that scope on them.
    """
    lines = []
    for index, raw in enumerate((text or "").splitlines()):
        stripped = raw.strip()
        if stripped:
            lines.append(RawLine(index=index, text=stripped))
    return lines


def split_columns(line: str) -> list[str]:
    """Split a line into columns on runs of two or more whitespace characters."""
    return [col.strip() for col in COLUMN_SPLIT_RE.split(line.strip()) if col.strip()]


def column_spans(line: str) -> list[tuple[int, int, str]]:
    """Columns of a line with their (start, end) character offsets."""
    spans = []
    position = 0
    for col in split_columns(line):
        start = line.find(col, position)
        end = start + len(col)
        spans.append((start, end, col))
        position = end
    return spans


def _is_money_in(col: str) -> bool:
    return col == "in" or col.startswith("in ") or any(term in col for term in MONEY_IN_TERMS)


def _is_money_out(col: str) -> bool:
    return col == "out" or col.startswith("out ") or any(term in col for term in MONEY_OUT_TERMS)


def map_header_columns(line: RawLine, columns: list[str]) -> HeaderInfo:
    """
    Map header columns to their roles by keyword matching.

    The first column matching a role claims it, except for the description:
    an explicit description column ("Description", "Details", "Memo")
    replaces an earlier weak match such as "Transaction Type".
    """
    info = HeaderInfo(found=False, line_index=line.index, text=line.text, columns=columns)
    weak_description = False

    for index, col in enumerate(columns):
        col_lower = col.lower()

        if info.date_index == -1 and any(term in col_lower for term in DATE_TERMS):
            info.date_index = index
        elif (info.description_index == -1 or weak_description) and any(
            term in col_lower for term in DESCRIPTION_TERMS
        ):
            info.description_index = index
            weak_description = False
        elif info.description_index == -1 and any(term in col_lower for term in WEAK_DESCRIPTION_TERMS):
            info.description_index = index
            weak_description = True
        elif info.money_in_index == -1 and _is_money_in(col_lower):
            info.money_in_index = index
        elif info.money_out_index == -1 and _is_money_out(col_lower):
            info.money_out_index = index
        elif info.balance_index == -1 and "balance" in col_lower:
            info.balance_index = index

    return info


def _accept(line: RawLine, min_columns: int) -> HeaderInfo | None:
    columns = split_columns(line.text)
    logger.debug(f"Header candidate at line {line.index}: {columns}")
    if len(columns) < min_columns:
        return None

    info = map_header_columns(line, columns)
    if info.date_index != -1 and info.has_money_column:
        info.found = True
        return info
    return None


def is_header_candidate(text: str) -> bool:
    """Date vocabulary co-occurring with money-direction vocabulary."""
    lower = text.lower()
    if find_date(text):
        return False
    return any(term in lower for term in DATE_TERMS) and bool(MONEY_TERMS_RE.search(lower))


def detect_header(
    lines: list[RawLine],
    min_length: int = 10,
    min_columns: int = 3,
) -> HeaderInfo:
    """
    Find the first line that is an acceptable table header.

    A candidate must contain date vocabulary together with money-direction
    vocabulary, split into at least ``min_columns`` columns, and map a date
    column plus one money-in or money-out column. Scanning stops at the first
    accepted line. Returns ``HeaderInfo(found=False)`` when none qualifies.
    """
    for line in lines:
        if len(line.text) < min_length:
            continue
        if not is_header_candidate(line.text):
            continue

        info = _accept(line, min_columns)
        if info:
            logger.info(f"Found transaction header at line {line.index}: {info.columns}")
            return info

    return HeaderInfo(found=False)


def is_table_header_candidate(text: str) -> bool:
    """
    Stricter header test used for table reconstruction.

    Requires date + description vocabulary and a paired money vocabulary
    (in & out, credit & debit, or paid in & paid out). Substring matching,
    so "Inflow"/"Outflow" columns qualify.
    """
    if find_date(text):
        return False
    lower = text.lower()
    has_date = any(term in lower for term in DATE_TERMS)
    has_description = any(term in lower for term in ("description", "details", "reference"))
    has_pair = (
        ("in" in lower and "out" in lower)
        or ("credit" in lower and "debit" in lower)
        or ("paid in" in lower and "paid out" in lower)
    )
    return has_date and has_description and has_pair


def detect_table_header(
    lines: list[RawLine],
    min_length: int = 10,
    min_columns: int = 3,
) -> HeaderInfo:
    """Header detection with the stricter table-reconstruction vocabulary."""
    for line in lines:
        if len(line.text) < min_length:
            continue
        if not is_table_header_candidate(line.text):
            continue

        info = _accept(line, min_columns)
        if info:
            logger.info(f"Found transaction table header at line {line.index}: {info.columns}")
            return info

    return HeaderInfo(found=False)


def align_row(header: HeaderInfo, line: str) -> dict[int, str]:
    """
    Assign the columns of a data row to header column indexes.

    Rows with the same column count as the header map one-to-one. Otherwise
    (typically an empty money column collapsed by whitespace splitting) each
    row column goes to the header column whose centre is nearest.
    """
    columns = split_columns(line)
    if len(columns) == len(header.columns):
        return dict(enumerate(columns))

    header_centres = [(start + end) / 2 for start, end, _ in column_spans(header.text)]
    if not header_centres:
        return {}

    aligned: dict[int, str] = {}
    for start, end, col in column_spans(line):
        centre = (start + end) / 2
        index = min(range(len(header_centres)), key=lambda i: abs(header_centres[i] - centre))
        aligned[index] = f"{aligned[index]} {col}" if index in aligned else col
    return aligned
