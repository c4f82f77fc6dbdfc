from pathlib import Path

import pytest

from smabacktest.importer import CsvImportError, import_ohlcv_csv, parse_csv_line
from smabacktest.timeutils import format_timestamp_utc_iso8601, parse_timestamp_utc
from smabacktest.types import DateFormat

MIXED_INVALID = """Date,Open,High,Low,Close,Volume
2024-01-03,10,11,9,10.5,100
2024-01-01,10,11,9,10,100
not-a-date,10,11,9,10,100
2024-01-02,10,11,9,10,100
2024-01-02,12,13,11,12,200
2024-01-04,abc,11,9,10,100
2024-01-05,10,11,9,10.2,100
"""

USDCAD = """<TICKER>,<DTYYYYMMDD>,<TIME>,<OPEN>,<HIGH>,<LOW>,<CLOSE>,<VOL>
USDCAD,20240102,000000,1.3240,1.3260,1.3230,1.3250,0
USDCAD,20240102,010000,1.3250,1.3270,1.3240,1.3260,0
USDCAD,20240102,020000,1.3260,1.3280,1.3250,1.3270,0
"""


def _write(tmp_path: Path, text: str, name: str = "data.csv") -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="latin-1")
    return path


def _iso(text: str) -> int:
    return parse_timestamp_utc(text, DateFormat.ISO)


def test_import_filtering_sort_and_duplicates(tmp_path):
    result = import_ohlcv_csv(_write(tmp_path, MIXED_INVALID), DateFormat.ISO)
    assert result.success
    assert result.partial_success
    assert result.dropped_rows == 2
    assert len(result.candles) == 4
    assert result.candles[0].ts <= result.candles[-1].ts
    messages = [w.message for w in result.warnings]
    assert any("unsorted" in m for m in messages)
    assert any("Duplicate timestamps" in m for m in messages)


def test_import_sorted_and_keeps_last_duplicate(tmp_path):
    result = import_ohlcv_csv(_write(tmp_path, MIXED_INVALID))
    stamps = [c.ts for c in result.candles]
    assert stamps == sorted(stamps)
    assert stamps == [_iso("2024-01-01"), _iso("2024-01-02"), _iso("2024-01-03"), _iso("2024-01-05")]
    assert result.candles[1].c == 12.0
    assert result.candles[1].v == 200.0


def test_import_warning_order_and_row_issues(tmp_path):
    result = import_ohlcv_csv(_write(tmp_path, MIXED_INVALID))
    assert result.warnings[0].message == "Timestamps were unsorted. Data was sorted ascending."
    assert result.warnings[1].message == (
        "Duplicate timestamps detected. Kept last occurrence for 1 row(s)."
    )
    row_warnings = [(w.line, w.message) for w in result.warnings[2:]]
    assert row_warnings == [
        (4, "Dropped row: invalid timestamp format"),
        (7, "Dropped row: invalid numeric value"),
    ]
    assert result.errors == []


def test_usdcad_split_datetime_headers(tmp_path):
    result = import_ohlcv_csv(_write(tmp_path, USDCAD), DateFormat.ISO)
    assert result.success
    assert not result.partial_success
    assert len(result.candles) == 3
    assert format_timestamp_utc_iso8601(result.candles[0].ts) == "2024-01-02T00:00:00Z"
    assert format_timestamp_utc_iso8601(result.candles[1].ts) == "2024-01-02T01:00:00Z"


def test_mdy_date_format(tmp_path):
    text = "Date,Open,High,Low,Close,Volume\n01/05/2024,1,1,1,1,1\n"
    result = import_ohlcv_csv(_write(tmp_path, text), DateFormat.MDY)
    assert format_timestamp_utc_iso8601(result.candles[0].ts) == "2024-01-05T00:00:00Z"


def test_dmy_date_format(tmp_path):
    text = "Timestamp,Open,High,Low,Close,Volume\n05/01/2024,1,1,1,1,1\n"
    result = import_ohlcv_csv(_write(tmp_path, text), DateFormat.DMY)
    assert format_timestamp_utc_iso8601(result.candles[0].ts) == "2024-01-05T00:00:00Z"


def test_crlf_and_blank_lines(tmp_path):
    text = "Date,Open,High,Low,Close,Volume\r\n\r\n2024-01-01,1,2,0.5,1.5,10\r\n"
    result = import_ohlcv_csv(_write(tmp_path, text))
    assert len(result.candles) == 1
    assert result.candles[0].c == 1.5
    assert not result.partial_success


def test_missing_file_raises(tmp_path):
    missing = tmp_path / "nope.csv"
    with pytest.raises(CsvImportError) as info:
        import_ohlcv_csv(missing)
    assert info.value.issues[0].line == 0
    assert info.value.issues[0].message.startswith("Unable to open CSV file:")


def test_empty_file_raises(tmp_path):
    with pytest.raises(CsvImportError) as info:
        import_ohlcv_csv(_write(tmp_path, ""))
    assert [(i.line, i.message) for i in info.value.issues] == [(1, "CSV is empty")]


def test_missing_columns_raises(tmp_path):
    with pytest.raises(CsvImportError) as info:
        import_ohlcv_csv(_write(tmp_path, "Date,Open,High,Low,Close\n2024-01-01,1,1,1,1\n"))
    assert info.value.issues[0].line == 1
    assert info.value.issues[0].message.startswith("Missing required columns.")


def test_zero_valid_rows_raises(tmp_path):
    text = "Date,Open,High,Low,Close,Volume\n2024-01-01,0,1,1,1,1\n2024-01-02,1,1,1,1,-5\n2024-01-03,1,1\n"
    with pytest.raises(CsvImportError) as info:
        import_ohlcv_csv(_write(tmp_path, text))
    issues = [(i.line, i.message) for i in info.value.issues]
    assert issues == [
        (0, "Import failed: zero valid rows remain after filtering"),
        (2, "Dropped row: prices must be > 0"),
        (3, "Dropped row: volume must be >= 0"),
        (4, "Dropped row: missing one or more required field values"),
    ]


def test_overflowing_number_is_dropped(tmp_path):
    text = "Date,Open,High,Low,Close,Volume\n2024-01-01,1e400,1,1,1,1\n2024-01-02,1,1,1,1,1\n"
    result = import_ohlcv_csv(_write(tmp_path, text))
    assert result.dropped_rows == 1
    assert result.warnings[0].message == "Dropped row: invalid numeric value"


def test_quoted_fields_are_read(tmp_path):
    text = 'Date,Open,High,Low,Close,Volume\n"2024-01-01"," 2.5 ",3,2,2.75,"1000"\n'
    result = import_ohlcv_csv(_write(tmp_path, text))
    candle = result.candles[0]
    assert (candle.o, candle.h, candle.l, candle.c, candle.v) == (2.5, 3.0, 2.0, 2.75, 1000.0)


def test_parse_csv_line_quotes_and_trim():
    assert parse_csv_line(' a , "b,c" ,"x""y",') == ["a", "b,c", 'x"y', ""]


def test_parse_csv_line_single_field():
    assert parse_csv_line("") == [""]