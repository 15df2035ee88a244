from __future__ import annotations

from typing import Any, Dict, List, Sequence


TAB = "\t"
COMMA = ","


def detect_delimiter(line: str) -> str:
    """Tab if the line contains one, otherwise comma."""
    return TAB if TAB in line else COMMA


def split_lines(text: str) -> List[str]:
    if not text:
        return []
    lines = (line.strip() for line in text.split("\n"))
    return [line for line in lines if line]


def parse_delimited_text(text: str, headers: Sequence[str]) -> List[Dict[str, Any]]:
    """Parse pasted TSV/CSV text into rows keyed by ``headers``.

    The delimiter is picked once from the first non-empty line. Values are
    matched to headers by position; empty values and missing trailing values
    are left unset (absent from the row) and extra values are dropped.

    Quoting is not supported: a value that contains the delimiter shifts every
    following column of that row.
    """
    if not text or not text.strip():
        return []

    lines = split_lines(text)
    if not lines:
        return []

    separator = detect_delimiter(lines[0])

    rows: List[Dict[str, Any]] = []
    for line in lines:
        values = line.split(separator)
        row: Dict[str, Any] = {}
        for header, raw in zip(headers, values):
            value = raw.strip()
            if value:
                row[header] = value
        rows.append(row)
    return rows
