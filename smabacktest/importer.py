"""Import of OHLCV candles from CSV files."""

from __future__ import annotations

import math
import re
import sys
from pathlib import Path
from typing import Iterable, Optional, Union

from .timeutils import parse_date_time_utc, parse_timestamp_utc
from .types import Candle, DateFormat, ImportIssue, ImportResult

_WHITESPACE = " \t\n\v\f\r"

_DECIMAL = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_HEX = re.compile(r"[+-]?0[xX](?:[0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)(?:[pP][+-]?\d+)?")
_INFINITY = re.compile(r"([+-]?)inf(?:inity)?", re.IGNORECASE)
_NAN = re.compile(r"([+-]?)nan(?:\([0-9A-Za-z_]*\))?", re.IGNORECASE)

REQUIRED_COLUMNS_MESSAGE = (
    "Missing required columns. Required: Date/Timestamp OR DTYYYYMMDD+TIME, Open, High, Low, "
    "Close, Volume/VOL"
)


class CsvImportError(Exception):
    """Raised when a CSV file yields no usable candles; ``issues`` lists why."""

    def __init__(self, issues: Iterable[ImportIssue]) -> None:
        self.issues: list[ImportIssue] = list(issues)
        text = "; ".join(
            issue.message if issue.line == 0 else f"line {issue.line}: {issue.message}"
            for issue in self.issues
        )
        super().__init__(text or "CSV import failed")


def _trim(text: str) -> str:
    return text.strip(_WHITESPACE)


def _normalize_header(text: str) -> str:
    text = _trim(text)
    if text.startswith("<") and text.endswith(">"):
        text = text[1:-1]
    return _trim(text).lower()


def parse_csv_line(line: str) -> list[str]:
    """Split one CSV line into trimmed fields, honouring double quotes."""
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    chars = iter(enumerate(line))
    for i, ch in chars:
        if ch == '"':
            if in_quotes and i + 1 < len(line) and line[i + 1] == '"':
                current.append('"')
                next(chars)
            else:
                in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            fields.append(_trim("".join(current)))
            current = []
        else:
            current.append(ch)
    fields.append(_trim("".join(current)))
    return fields


def _parse_float_strict(text: str) -> Optional[float]:
    """A whole-field number, or None when the field is empty, malformed or out of range."""
    t = _trim(text)
    if not t:
        return None
    special = _INFINITY.fullmatch(t)
    if special:
        return -math.inf if special.group(1) == "-" else math.inf
    special = _NAN.fullmatch(t)
    if special:
        return -math.nan if special.group(1) == "-" else math.nan
    if _DECIMAL.fullmatch(t):
        value = float(t)
        mantissa = re.split(r"[eE]", t)[0]
    elif _HEX.fullmatch(t):
        value = float.fromhex(t)
        mantissa = re.split(r"[pP]", t)[0][2:].lstrip("xX")
    else:
        return None
    if math.isinf(value):
        return None
    if value == 0.0 and any(ch not in "0.+-xX" for ch in mantissa):
        return None
    if value != 0.0 and abs(value) < sys.float_info.min:
        return None
    return value


def _find_header(index: dict[str, int], *names: str) -> Optional[int]:
    for name in names:
        if name in index:
            return index[name]
    return None


def import_ohlcv_csv(
    csv_path: Union[str, Path], date_format: DateFormat = DateFormat.ISO
) -> ImportResult:
    """Read, validate, sort and de-duplicate candles from ``csv_path``.

    Invalid rows are dropped and reported as warnings; raises CsvImportError
    when the file cannot be read, lacks required columns or keeps no rows.
    """
    try:
        with open(csv_path, encoding="latin-1", newline="") as handle:
            text = handle.read()
    except OSError as exc:
        raise CsvImportError([ImportIssue(0, f"Unable to open CSV file: {csv_path}")]) from exc

    if not text:
        raise CsvImportError([ImportIssue(1, "CSV is empty")])

    lines = text.split("\n")
    header_index = {_normalize_header(name): i for i, name in enumerate(parse_csv_line(lines[0]))}

    timestamp_col = _find_header(header_index, "timestamp", "date")
    dt_col = _find_header(header_index, "dtyyyymmdd")
    tm_col = _find_header(header_index, "time")
    o_col = _find_header(header_index, "open")
    h_col = _find_header(header_index, "high")
    l_col = _find_header(header_index, "low")
    c_col = _find_header(header_index, "close")
    v_col = _find_header(header_index, "volume", "vol")

    has_single_timestamp = timestamp_col is not None
    has_split_datetime = dt_col is not None and tm_col is not None
    price_cols = (o_col, h_col, l_col, c_col, v_col)
    if (not has_single_timestamp and not has_split_datetime) or any(col is None for col in price_cols):
        raise CsvImportError([ImportIssue(1, REQUIRED_COLUMNS_MESSAGE)])

    if has_split_datetime:
        max_index = max(dt_col, tm_col, *price_cols)
    else:
        max_index = max(timestamp_col, *price_cols)

    result = ImportResult()
    row_issues: list[ImportIssue] = []
    valid_rows: list[Candle] = []

    def drop(line_number: int, message: str) -> None:
        result.dropped_rows += 1
        row_issues.append(ImportIssue(line_number, f"Dropped row: {message}"))

    for line_number, line in enumerate(lines[1:], start=2):
        if not _trim(line):
            continue

        fields = parse_csv_line(line)
        if len(fields) <= max_index:
            drop(line_number, "missing one or more required field values")
            continue

        if has_split_datetime:
            ts = parse_date_time_utc(fields[dt_col], fields[tm_col])
        else:
            ts = parse_timestamp_utc(fields[timestamp_col], date_format)
        if ts is None:
            drop(line_number, "invalid timestamp format")
            continue

        values = [_parse_float_strict(fields[col]) for col in price_cols]
        if any(value is None for value in values):
            drop(line_number, "invalid numeric value")
            continue
        o, h, l, c, v = values

        if o <= 0.0 or h <= 0.0 or l <= 0.0 or c <= 0.0:
            drop(line_number, "prices must be > 0")
            continue
        if v < 0.0:
            drop(line_number, "volume must be >= 0")
            continue

        valid_rows.append(Candle(ts, o, h, l, c, v))

    if not valid_rows:
        raise CsvImportError(
            [ImportIssue(0, "Import failed: zero valid rows remain after filtering"), *row_issues]
        )

    if any(later.ts < earlier.ts for earlier, later in zip(valid_rows, valid_rows[1:])):
        result.warnings.append(ImportIssue(0, "Timestamps were unsorted. Data was sorted ascending."))

    valid_rows.sort(key=lambda candle: candle.ts)

    deduped: list[Candle] = []
    duplicate_count = 0
    for candle in valid_rows:
        if deduped and deduped[-1].ts == candle.ts:
            deduped[-1] = candle
            duplicate_count += 1
        else:
            deduped.append(candle)
    if duplicate_count > 0:
        result.warnings.append(
            ImportIssue(
                0,
                f"Duplicate timestamps detected. Kept last occurrence for {duplicate_count} row(s).",
            )
        )

    result.candles = deduped
    result.success = True
    result.partial_success = result.dropped_rows > 0
    if result.partial_success:
        result.warnings.extend(row_issues)
    return result