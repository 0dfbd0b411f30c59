"""Lenient CSV reader for published spreadsheet exports.

Sheets exported by hand are not always well-formed, so nothing in here
raises: an unterminated quote simply runs to the end of the line.
"""

from __future__ import annotations

import re

_LINE_SPLIT = re.compile(r"\r?\n")
# Whitespace plus the BOM, which str.strip() leaves alone.
_EDGES = re.compile(r"^[\s\ufeff]+|[\s\ufeff]+$")


def _trim(value: str) -> str:
    return _EDGES.sub("", value)


def tokenize_line(line: str) -> list[str]:
    """Split one CSV line into trimmed fields, honouring double quotes."""
    fields: list[str] = []
    buf: list[str] = []
    in_quotes = False
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if ch == '"':
            if in_quotes and i + 1 < n and line[i + 1] == '"':
                buf.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            fields.append(_trim("".join(buf)))
            buf = []
        else:
            buf.append(ch)
        i += 1
    fields.append(_trim("".join(buf)))
    return fields


def parse_csv(text: str) -> list[dict[str, str]]:
    """Parse CSV text into one dict per data line, keyed by lowercase header.

    Empty lines are skipped. Cells missing at the end of a short line map
    to "". A repeated header name keeps the value of its last column.
    """
    lines = [line for line in _LINE_SPLIT.split(text) if line]
    if not lines:
        return []

    headers = [h.lower() for h in tokenize_line(lines[0])]
    records: list[dict[str, str]] = []
    for line in lines[1:]:
        cols = tokenize_line(line)
        record: dict[str, str] = {}
        for i, header in enumerate(headers):
            record[header] = cols[i] if i < len(cols) else ""
        records.append(record)
    return records
