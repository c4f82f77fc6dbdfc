"""Writers for equity curves, trade lists and run metrics."""

from __future__ import annotations

from pathlib import Path
from typing import IO, Sequence, Union

from .timeutils import format_timestamp_utc_iso8601
from .types import (
    BacktestResult,
    BacktestSettings,
    Candle,
    DatasetMetadata,
    Metrics,
    SmaParams,
)

DISCLAIMER = "Educational tool. Not investment advice. No live trading."

PathLike = Union[str, Path]


class ExportError(Exception):
    """Raised when an output file cannot be written."""


def _open_output(output_path: PathLike, kind: str) -> IO[str]:
    try:
        return open(output_path, "w", encoding="utf-8", newline="")
    except OSError as exc:
        raise ExportError(f"Failed to open {kind} output path: {output_path}") from exc


def _num(value: float) -> str:
    return f"{value:.10f}"


def export_equity_csv(output_path: PathLike, candles: Sequence[Candle], result: BacktestResult) -> None:
    """Write ``timestamp,equity`` rows for every bar that has an equity value."""
    with _open_output(output_path, "equity") as out:
        out.write("timestamp,equity\n")
        for candle, equity in zip(candles, result.equity):
            out.write(f"{format_timestamp_utc_iso8601(candle.ts)},{_num(equity)}\n")


def export_trades_csv(output_path: PathLike, result: BacktestResult) -> None:
    """Write one row per closed trade."""
    with _open_output(output_path, "trades") as out:
        out.write("entry_time,entry_price,exit_time,exit_price,qty,pnl,return_pct\n")
        for trade in result.trades:
            out.write(
                ",".join(
                    (
                        format_timestamp_utc_iso8601(trade.entry_time),
                        _num(trade.entry_price),
                        format_timestamp_utc_iso8601(trade.exit_time),
                        _num(trade.exit_price),
                        str(trade.qty),
                        _num(trade.pnl),
                        _num(trade.return_pct),
                    )
                )
                + "\n"
            )


def export_metrics_json(
    output_path: PathLike,
    dataset: DatasetMetadata,
    params: SmaParams,
    settings: BacktestSettings,
    metrics: Metrics,
) -> None:
    """Write the dataset, strategy, settings and results of a run as JSON."""
    start = format_timestamp_utc_iso8601(dataset.start_ts)
    end = format_timestamp_utc_iso8601(dataset.end_ts)
    lines = [
        "{",
        '  "schema_version": 2,',
        f'  "dataset": {{"rows": {dataset.rows}, "start": "{start}", "end": "{end}"}},',
        f'  "strategy": {{"name": "SMA_CROSS", "fast": {params.fast_window}, '
        f'"slow": {params.slow_window}}},',
        f'  "settings": {{"starting_cash": {_num(settings.starting_cash)}, '
        f'"commission_pct": {_num(settings.commission_pct)}, '
        f'"position_size_pct": {_num(settings.position_size_pct)}, '
        f'"stop_loss_pct": {_num(settings.stop_loss_pct)}, '
        f'"take_profit_pct": {_num(settings.take_profit_pct)}}},',
        '  "results": {',
        f'    "total_return_pct": {_num(metrics.total_return_pct)},',
        f'    "total_pnl": {_num(metrics.total_pnl)},',
        f'    "max_drawdown_pct": {_num(metrics.max_drawdown_pct)},',
        f'    "trades": {metrics.trades},',
        f'    "win_rate_pct": {_num(metrics.win_rate_pct)},',
        f'    "avg_trade_return_pct": {_num(metrics.avg_trade_return_pct)}',
        "  },",
        f'  "disclaimer": "{DISCLAIMER}"',
        "}",
    ]
    with _open_output(output_path, "metrics") as out:
        out.write("\n".join(lines) + "\n")