"""Parsing and formatting of UTC timestamps."""

from __future__ import annotations

import re
from typing import Optional

from .types import DateFormat

_WHITESPACE = " \t\n\v\f\r"
_DIGITS = "0123456789"
_DIRECTIVE = re.compile(r"%(\d*)d|(\s+)|(.)", re.DOTALL)


def _compile(fmt: str) -> list[tuple[str, object]]:
    steps: list[tuple[str, object]] = []
    for match in _DIRECTIVE.finditer(fmt):
        width, space, literal = match.groups()
        if width is not None:
            steps.append(("int", int(width) if width else None))
        elif space is not None:
            steps.append(("ws", None))
        else:
            steps.append(("lit", literal))
    return steps


def _skip_space(text: str, pos: int) -> int:
    while pos < len(text) and text[pos] in _WHITESPACE:
        pos += 1
    return pos


def _scan(text: str, steps: list[tuple[str, object]]) -> list[int]:
    """Read integers as a scanf-style pattern would, stopping at the first mismatch."""
    values: list[int] = []
    pos = 0
    for kind, arg in steps:
        if kind == "ws":
            pos = _skip_space(text, pos)
        elif kind == "lit":
            if pos < len(text) and text[pos] == arg:
                pos += 1
            else:
                break
        else:
            pos = _skip_space(text, pos)
            limit = len(text) if arg is None else min(len(text), pos + arg)
            end = pos
            if end < limit and text[end] in "+-":
                end += 1
            digits_start = end
            while end < limit and text[end] in _DIGITS:
                end += 1
            if end == digits_start:
                break
            values.append(int(text[pos:end]))
            pos = end
    return values


_ISO_SPACE = _compile("%d-%d-%d %d:%d:%d")
_ISO_T = _compile("%d-%d-%dT%d:%d:%d")
_SLASH = _compile("%d/%d/%d %d:%d:%d")
_COMPACT_DATE = _compile("%4d%2d%2d")
_TIME_HMS = _compile("%2d:%2d:%2d")
_TIME_HM = _compile("%2d:%2d")
_TIME_INT = _compile("%d")


def _c_divmod(a: int, b: int) -> tuple[int, int]:
    """Quotient and remainder truncated toward zero."""
    quotient = abs(a) // b
    if a < 0:
        quotient = -quotient
    return quotient, a - quotient * b


def _days_from_civil(year: int, month: int, day: int) -> int:
    year -= month <= 2
    era = year // 400
    yoe = year - era * 400
    doy = (153 * (month + (-3 if month > 2 else 9)) + 2) // 5 + day - 1
    doe = yoe * 365 + yoe // 4 - yoe // 100 + doy
    return era * 146097 + doe - 719468


def _civil_from_days(days: int) -> tuple[int, int, int]:
    days += 719468
    era = days // 146097
    doe = days - era * 146097
    yoe = (doe - doe // 1460 + doe // 36524 - doe // 146096) // 365
    doy = doe - (365 * yoe + yoe // 4 - yoe // 100)
    mp = (5 * doy + 2) // 153
    day = doy - (153 * mp + 2) // 5 + 1
    month = mp + 3 if mp < 10 else mp - 9
    year = yoe + era * 400 + (month <= 2)
    return year, month, day


def _to_epoch(year: int, month: int, day: int, hour: int, minute: int, second: int) -> Optional[int]:
    in_range = (
        1 <= month <= 12
        and 1 <= day <= 31
        and 0 <= hour <= 23
        and 0 <= minute <= 59
        and 0 <= second <= 60
    )
    if not in_range:
        return None
    # Days past the end of the month roll over into the next one.
    days = _days_from_civil(year, month, 1) + day - 1
    ts = days * 86400 + hour * 3600 + minute * 60 + second
    if ts == -1:
        return None
    return ts


def _time_of_day(values: list[int]) -> tuple[int, int, int]:
    if len(values) >= 6:
        return values[3], values[4], values[5]
    return 0, 0, 0


def parse_timestamp_utc(text: str, fmt: DateFormat) -> Optional[int]:
    """Parse a date with optional ``H:M:S`` into epoch seconds, or None if invalid."""
    if fmt is DateFormat.ISO:
        values = _scan(text, _ISO_SPACE)
        if len(values) < 3:
            values = _scan(text, _ISO_T)
        if len(values) < 3:
            return None
        year, month, day = values[:3]
    else:
        values = _scan(text, _SLASH)
        if len(values) < 3:
            return None
        first, second, year = values[:3]
        month, day = (first, second) if fmt is DateFormat.MDY else (second, first)
    return _to_epoch(year, month, day, *_time_of_day(values))


def _parse_time_text(time_text: str) -> Optional[tuple[int, int, int]]:
    if not time_text:
        return 0, 0, 0
    values = _scan(time_text, _TIME_HMS)
    if len(values) == 3:
        return values[0], values[1], values[2]
    values = _scan(time_text, _TIME_HM)
    if len(values) == 2:
        return values[0], values[1], 0
    values = _scan(time_text, _TIME_INT)
    if len(values) != 1:
        return None
    compact = values[0]
    if len(time_text) <= 4:
        hour, minute = _c_divmod(compact, 100)
        return hour, minute, 0
    if len(time_text) <= 6:
        hour = _c_divmod(compact, 10000)[0]
        minute = _c_divmod(_c_divmod(compact, 100)[0], 100)[1]
        second = _c_divmod(compact, 100)[1]
        return hour, minute, second
    return None


def parse_date_time_utc(date_text: str, time_text: str) -> Optional[int]:
    """Parse a ``YYYYMMDD`` date and an ``HHMMSS``/``HH:MM[:SS]`` time, or None if invalid."""
    date_values = _scan(date_text, _COMPACT_DATE)
    if len(date_values) != 3:
        return None
    time_values = _parse_time_text(time_text)
    if time_values is None:
        return None
    return _to_epoch(*date_values, *time_values)


def format_timestamp_utc_iso8601(ts: int) -> str:
    """Format epoch seconds as ``YYYY-MM-DDTHH:MM:SSZ``."""
    days, seconds = divmod(int(ts), 86400)
    year, month, day = _civil_from_days(days)
    hour, rest = divmod(seconds, 3600)
    minute, second = divmod(rest, 60)
    return f"{year:04d}-{month:02d}-{day:02d}T{hour:02d}:{minute:02d}:{second:02d}Z"