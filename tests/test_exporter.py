import json

import pytest

from smabacktest.backtester import run_sma_backtest
from smabacktest.exporter import (
    DISCLAIMER,
    ExportError,
    export_equity_csv,
    export_metrics_json,
    export_trades_csv,
)
from smabacktest.importer import import_ohlcv_csv
from smabacktest.timeutils import format_timestamp_utc_iso8601
from smabacktest.types import (
    BacktestResult,
    BacktestSettings,
    Candle,
    DatasetMetadata,
    DateFormat,
    Metrics,
    SmaParams,
    Trade,
)

SAMPLE = """Date,Open,High,Low,Close,Volume
2024-02-01,10,10,10,10,1
2024-02-02,10,10,9,9,1
2024-02-03,9,9,8,8,1
2024-02-04,8,9,8,9,1
2024-02-05,9,10,9,10,1
2024-02-06,10,11,10,11,1
2024-02-07,12,12,12,12,1
2024-02-08,10,10,10,10,1
"""


@pytest.fixture
def pipeline(tmp_path):
    csv_path = tmp_path / "sample.csv"
    csv_path.write_text(SAMPLE)
    imported = import_ohlcv_csv(csv_path, DateFormat.ISO)
    params = SmaParams(fast_window=2, slow_window=3)
    settings = BacktestSettings()
    result = run_sma_backtest(imported.candles, params, settings)
    return imported.candles, params, settings, result


def test_equity_csv_lines_match_result(tmp_path, pipeline):
    candles, _, _, result = pipeline
    out = tmp_path / "equity.csv"
    export_equity_csv(out, candles, result)
    lines = out.read_text().splitlines()
    assert lines[0] == "timestamp,equity"
    assert len(lines) == len(candles) + 1
    for line, candle, equity in zip(lines[1:], candles, result.equity):
        ts_text, value_text = line.split(",")
        assert ts_text == format_timestamp_utc_iso8601(candle.ts)
        assert float(value_text) == pytest.approx(equity, abs=1e-9)
        assert len(value_text.split(".")[1]) == 10


def test_equity_csv_first_row_pinned(tmp_path):
    candles = [Candle(ts=0, o=1, h=1, l=1, c=1, v=1)]
    result = BacktestResult(equity=[10000.0])
    out = tmp_path / "equity.csv"
    export_equity_csv(out, candles, result)
    assert out.read_text() == "timestamp,equity\n1970-01-01T00:00:00Z,10000.0000000000\n"


def test_equity_csv_truncates_to_shorter_input(tmp_path):
    candles = [Candle(ts=i * 86400, o=1, h=1, l=1, c=1, v=1) for i in range(3)]
    result = BacktestResult(equity=[1.0, 2.0])
    out = tmp_path / "equity.csv"
    export_equity_csv(out, candles, result)
    assert len(out.read_text().splitlines()) == 3


def test_trades_csv_round_trip(tmp_path, pipeline):
    _, _, _, result = pipeline
    assert result.trades
    out = tmp_path / "trades.csv"
    export_trades_csv(out, result)
    lines = out.read_text().splitlines()
    assert lines[0] == "entry_time,entry_price,exit_time,exit_price,qty,pnl,return_pct"
    assert len(lines) == len(result.trades) + 1
    for line, trade in zip(lines[1:], result.trades):
        fields = line.split(",")
        assert fields[0] == format_timestamp_utc_iso8601(trade.entry_time)
        assert float(fields[1]) == pytest.approx(trade.entry_price)
        assert fields[2] == format_timestamp_utc_iso8601(trade.exit_time)
        assert float(fields[3]) == pytest.approx(trade.exit_price)
        assert int(fields[4]) == trade.qty
        assert float(fields[5]) == pytest.approx(trade.pnl, abs=1e-9)
        assert float(fields[6]) == pytest.approx(trade.return_pct, abs=1e-9)


def test_trades_csv_single_trade_format(tmp_path):
    result = BacktestResult(trades=[Trade(0, 1.5, 86400, 2.0, 7, 3.25, 0.5)])
    out = tmp_path / "trades.csv"
    export_trades_csv(out, result)
    row = out.read_text().splitlines()[1]
    assert row == (
        "1970-01-01T00:00:00Z,1.5000000000,1970-01-02T00:00:00Z,2.0000000000,7,3.2500000000,0.5000000000"
    )


def test_metrics_json_is_valid_and_consistent(tmp_path, pipeline):
    candles, params, settings, result = pipeline
    dataset = DatasetMetadata(rows=len(candles), start_ts=candles[0].ts, end_ts=candles[-1].ts)
    out = tmp_path / "metrics.json"
    export_metrics_json(out, dataset, params, settings, result.metrics)
    data = json.loads(out.read_text())
    assert data["schema_version"] == 2
    assert data["dataset"] == {
        "rows": len(candles),
        "start": "2024-02-01T00:00:00Z",
        "end": "2024-02-08T00:00:00Z",
    }
    assert data["strategy"] == {"name": "SMA_CROSS", "fast": 2, "slow": 3}
    assert data["settings"]["starting_cash"] == pytest.approx(10000.0)
    assert data["settings"]["commission_pct"] == pytest.approx(0.001)
    assert data["results"]["trades"] == len(result.trades)
    assert data["results"]["total_pnl"] == pytest.approx(result.metrics.total_pnl, abs=1e-9)
    assert data["disclaimer"] == DISCLAIMER


def test_metrics_json_layout(tmp_path):
    out = tmp_path / "metrics.json"
    export_metrics_json(
        out, DatasetMetadata(), SmaParams(2, 3), BacktestSettings(), Metrics(trades=4)
    )
    lines = out.read_text().splitlines()
    assert lines[0] == "{"
    assert lines[1] == '  "schema_version": 2,'
    assert lines[3] == '  "strategy": {"name": "SMA_CROSS", "fast": 2, "slow": 3},'
    assert '    "trades": 4,' in lines
    assert lines[-1] == "}"


@pytest.mark.parametrize(
    "writer, kind",
    [
        (lambda p: export_equity_csv(p, [], BacktestResult()), "equity"),
        (lambda p: export_trades_csv(p, BacktestResult()), "trades"),
        (
            lambda p: export_metrics_json(
                p, DatasetMetadata(), SmaParams(), BacktestSettings(), Metrics()
            ),
            "metrics",
        ),
    ],
)
def test_unwritable_path_raises(tmp_path, writer, kind):
    target = tmp_path / "missing" / "out.txt"
    with pytest.raises(ExportError, match=f"Failed to open {kind} output path"):
        writer(target)