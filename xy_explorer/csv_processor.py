#!/usr/bin/env python3
"""
CSV-like text parser.

Turns raw text (an uploaded file or one of the built-in samples) into a RawTable:
a metadata preamble, one header line and rows of string cells. Parsing never raises;
text without an identifiable header yields None so callers can fall back to their
placeholder state. File access is the only place exceptions are raised.
"""

import argparse
import csv
import logging
import re
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple, Union

import pandas as pd

logger = logging.getLogger(__name__)

# Lines starting with one of these markers are metadata wherever they appear.
COMMENT_MARKERS: Tuple[str, ...] = ("#", "%", "//")

# Decimal floating-point literal: optional sign, digits with optional point, optional exponent.
_DECIMAL_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class CSVProcessingError(Exception):
    """Base exception for CSV processing errors."""

    pass


class FileAccessError(CSVProcessingError):
    """Raised when file cannot be accessed or read."""

    pass


class Delimiter(Enum):
    """Cell separator inferred from the header line."""

    COMMA = ","
    WHITESPACE = None  # str.split() semantics: runs of spaces/tabs

    @classmethod
    def detect(cls, line: str) -> "Delimiter":
        return cls.COMMA if "," in line else cls.WHITESPACE


@dataclass(frozen=True)
class RawTable:
    """
    Parsed tabular representation of the input text.

    Attributes:
        metadata: Preamble and comment lines, in input order.
        header: Column header strings.
        rows: Data rows; every row has exactly len(header) cells.
        delimiter: Delimiter detected from the header line.
        skipped_lines: Number of data lines dropped because their cell count
            did not match the header.
    """

    metadata: Tuple[str, ...]
    header: Tuple[str, ...]
    rows: Tuple[Tuple[str, ...], ...]
    delimiter: Delimiter = Delimiter.COMMA
    skipped_lines: int = 0

    @property
    def column_count(self) -> int:
        return len(self.header)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_frame(self) -> pd.DataFrame:
        """Return the rows as a string-typed DataFrame (header as column names)."""
        # Duplicate header names would collapse in a DataFrame; make them unique for display.
        columns: List[str] = []
        seen: dict[str, int] = {}
        for name in self.header:
            label = name or "column"
            if label in seen:
                seen[label] += 1
                label = f"{label}.{seen[label]}"
            else:
                seen[label] = 0
            columns.append(label)
        return pd.DataFrame(list(self.rows), columns=columns, dtype="string")


def parse_decimal(cell: str) -> Optional[float]:
    """
    Parse a cell as a decimal floating-point literal ('.' separator, locale independent).

    Returns None for anything else (blank, 'nan', 'inf', '1_000', '1,5', hex, ...) and for
    literals whose magnitude overflows to infinity.
    """
    s = cell.strip()
    if not _DECIMAL_RE.fullmatch(s):
        return None
    value = float(s)
    if value in (float("inf"), float("-inf")):
        return None
    return value


def _is_comment(line: str) -> bool:
    return line.lstrip().startswith(COMMENT_MARKERS)


def split_line(line: str, delimiter: Delimiter) -> Tuple[str, ...]:
    """
    Tokenize one line with the given delimiter.

    Double-quoted cells may contain the delimiter; quotes are removed and cells trimmed.
    Whitespace mode treats runs of spaces and tabs as one separator.
    """
    if delimiter is Delimiter.COMMA:
        reader = csv.reader([line], skipinitialspace=True)
    else:
        reader = csv.reader(
            [line.strip().replace("\t", " ")], delimiter=" ", skipinitialspace=True
        )
    try:
        cells = next(reader, [])
    except csv.Error as e:
        # e.g. NUL bytes; the line then never matches a multi-column shape
        logger.debug(f"split_line: unreadable line {line!r}: {e}")
        return (line.strip(),)
    return tuple(cell.strip() for cell in cells)


def _line_shape(line: str) -> Tuple[Delimiter, int]:
    delimiter = Delimiter.detect(line)
    return delimiter, len(split_line(line, delimiter))


def _find_header(lines: List[str]) -> Optional[int]:
    """
    Return the index of the header among non-blank lines, or None.

    The data shape is the most common (delimiter, cell count) pair among non-comment
    lines holding at least one numeric cell (earliest wins ties). The header is the
    first non-comment line with that shape. Without numeric lines the first
    non-comment line is the header.
    """
    candidates = [i for i, ln in enumerate(lines) if not _is_comment(ln)]
    if not candidates:
        return None

    shape_counts: dict[Tuple[Delimiter, int], int] = {}
    for idx in candidates:
        delimiter, count = _line_shape(lines[idx])
        cells = split_line(lines[idx], delimiter)
        if any(parse_decimal(c) is not None for c in cells):
            shape_counts[(delimiter, count)] = shape_counts.get((delimiter, count), 0) + 1
    if not shape_counts:
        return candidates[0]

    # dicts keep insertion order, so max() returns the earliest shape among equals
    data_shape = max(shape_counts, key=lambda s: shape_counts[s])
    for idx in candidates:
        if _line_shape(lines[idx]) == data_shape:
            return idx
    return candidates[0]


def parse_raw_table(text: str) -> Optional[RawTable]:
    """
    Parse CSV-like text into a RawTable.

    - Blank lines are ignored; comment lines ('#', '%', '//') are metadata.
    - Lines before the header form the metadata preamble.
    - The header's delimiter (comma, else whitespace) is applied to every data line.
    - Data lines whose cell count differs from the header's are skipped.

    Returns None only when no header line can be identified.
    """
    if not text:
        return None
    lines = [ln.rstrip() for ln in text.splitlines()]
    lines = [ln for ln in lines if ln.strip()]

    header_idx = _find_header(lines)
    if header_idx is None:
        logger.debug("parse_raw_table: no header line found")
        return None

    delimiter = Delimiter.detect(lines[header_idx])
    header = split_line(lines[header_idx], delimiter)
    metadata: List[str] = list(lines[:header_idx])
    rows: List[Tuple[str, ...]] = []
    skipped = 0
    for ln in lines[header_idx + 1 :]:
        if _is_comment(ln):
            metadata.append(ln)
            continue
        cells = split_line(ln, delimiter)
        if len(cells) != len(header):
            skipped += 1
            continue
        rows.append(cells)

    logger.debug(
        f"parse_raw_table: header={header} delimiter={delimiter.name} "
        f"rows={len(rows)} metadata={len(metadata)} skipped={skipped}"
    )
    return RawTable(
        metadata=tuple(metadata),
        header=header,
        rows=tuple(rows),
        delimiter=delimiter,
        skipped_lines=skipped,
    )


def read_text_file(file_path: Union[str, Path]) -> str:
    """
    Read a CSV-like file as UTF-8 text (a leading BOM is dropped).

    Raises:
        FileNotFoundError: If the specified file does not exist
        FileAccessError: If the path is not a file, or cannot be read or decoded
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"CSV file not found: {path}")
    if not path.is_file():
        raise FileAccessError(f"Path is not a file: {path}")
    try:
        return path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as e:
        raise FileAccessError(f"File is not valid UTF-8: {path} ({e})") from e
    except OSError as e:
        raise FileAccessError(f"Error reading file {path}: {e}") from e


def describe_table(table: Optional[RawTable]) -> str:
    """One-line summary of a parsed table, with placeholders when absent."""
    if table is None:
        return "No header | Rows: -"
    return (
        f"Columns: {', '.join(table.header)} | Rows: {table.row_count}"
        f" | Metadata lines: {len(table.metadata)} | Skipped lines: {table.skipped_lines}"
    )


def main() -> None:
    """Command-line interface: parse a file and print what the parser found."""
    parser = argparse.ArgumentParser(
        description="Parse a CSV-like file and show its header, preamble and rows",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m xy_explorer.csv_processor data.csv
  python -m xy_explorer.csv_processor sea_level.txt --rows 20
        """,
    )
    parser.add_argument("csv_file", help="Path to the CSV-like file")
    parser.add_argument(
        "-n", "--rows", type=int, default=10, help="Number of rows to print"
    )
    args = parser.parse_args()

    try:
        table = parse_raw_table(read_text_file(args.csv_file))
    except (FileNotFoundError, FileAccessError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(describe_table(table))
    if table is None:
        return
    for line in table.metadata:
        print(f"  meta: {line}")
    if table.row_count:
        print(table.to_frame().head(args.rows).to_string(index=False))


if __name__ == "__main__":
    main()
