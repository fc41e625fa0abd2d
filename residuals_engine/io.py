"""
Delimited-text loading and header row detection.
"""
from abc import ABC, abstractmethod
from typing import List
import csv
import logging
import pandas as pd

from .errors import FormatError
from .mappings import MERCHANT_ID_HEADER_TOKENS, TRANSACTIONS_HEADER_TOKEN

logger = logging.getLogger(__name__)


def split_lines(text: str) -> List[str]:
    return text.splitlines()


def is_processor_header(line: str) -> bool:
    """
    True if a line looks like the column header of a processor extract.

    The line must mention a merchant identifier ("Merchant ID", "Merchant_ID",
    "MerchantID" or a bare "MID" cell) and a transaction count.
    """
    lowered = line.lower().strip()
    if TRANSACTIONS_HEADER_TOKEN not in lowered:
        return False

    cells = [cell.strip().strip('"').strip() for cell in lowered.split(",")]
    for token in MERCHANT_ID_HEADER_TOKENS:
        # short tokens such as "mid" must match a whole cell
        if len(token) > 3:
            if token in lowered:
                return True
        elif token in cells:
            return True
    return False


def locate_header_row(text: str) -> int:
    """
    Find the index of the true header line in a processor extract.

    Processor reports often carry preamble lines ("Report Generated: ...",
    "Processor: ...", "Total Merchants: ...") before the column header.

    Raises:
        FormatError: If no line contains both a merchant-identifier token and
            a transactions token
    """
    for index, line in enumerate(split_lines(text)):
        if is_processor_header(line):
            return index

    raise FormatError(
        "Could not find header row with expected columns in CSV file "
        "(need a merchant identifier column and a transactions column)"
    )


def tokenize_line(line: str, line_number: int = 0) -> List[str]:
    """
    Split one line into stripped cells.

    Quoted cells may contain commas. A line with an unbalanced quote is split
    on every comma with its quote characters kept, so a stray quote never
    swallows the lines after it.
    """
    if line.count('"') % 2 == 0:
        try:
            return [cell.strip() for cell in next(csv.reader([line], skipinitialspace=True), [])]
        except csv.Error as e:
            logger.warning(f"[PARSER] Line {line_number}: {e}; splitting on commas")
    else:
        logger.warning(f"[PARSER] Line {line_number}: unbalanced quote; splitting on commas")
    return [cell.strip() for cell in line.split(",")]


def _unique_columns(header: List[str]) -> List[str]:
    """Suffix repeated header names (".1", ".2") so every column is addressable."""
    seen = {}
    columns = []
    for name in header:
        count = seen.get(name, 0)
        columns.append(name if count == 0 else f"{name}.{count}")
        seen[name] = count + 1
    return columns


def read_delimited(text: str) -> pd.DataFrame:
    """
    Parse delimited text whose first non-blank line is the header.

    Each line is tokenized on its own, so a malformed row only affects
    itself. All cells are stripped strings. Rows with too many cells are
    truncated to the header width, rows with too few are padded with empty
    strings. Blank lines are skipped.
    """
    lines = [(number, line) for number, line in enumerate(split_lines(text), start=1) if line.strip()]
    if not lines:
        return pd.DataFrame()

    header_number, header_line = lines[0]
    columns = _unique_columns(tokenize_line(header_line, header_number))
    width = len(columns)

    rows = []
    for number, line in lines[1:]:
        cells = tokenize_line(line, number)[:width]
        rows.append(cells + [""] * (width - len(cells)))

    return pd.DataFrame(rows, columns=columns, dtype=str)


class DataSourceLoader(ABC):
    """Abstract base for delimited-text loaders."""

    @abstractmethod
    def load(self, text: str) -> pd.DataFrame:
        """Load raw text and return a DataFrame of string cells."""
        pass


class LeadSheetLoader(DataSourceLoader):
    """Lead sheets always carry their header on line 1."""

    def load(self, text: str) -> pd.DataFrame:
        return read_delimited(text)


class ProcessorExtractLoader(DataSourceLoader):
    """Processor extracts may start with metadata lines before the header."""

    def load(self, text: str) -> pd.DataFrame:
        lines = split_lines(text)
        header_index = locate_header_row(text)
        if header_index > 0:
            logger.info(f"[PARSER] Skipped {header_index} preamble line(s) before header")

        body = [line for line in lines[header_index:] if line.strip()]
        return read_delimited("\n".join(body))
