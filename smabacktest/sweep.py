"""Grid search of SMA windows with a train/test split."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Union

from .backtester import run_sma_backtest
from .importer import CsvImportError, import_ohlcv_csv
from .types import BacktestSettings, Candle, DateFormat, Metrics, SmaParams

REPORT_HEADER = (
    "fast,slow,train_return_pct,train_max_drawdown_pct,train_trades,"
    "test_return_pct,test_max_drawdown_pct,test_trades"
)

_LEADING_FLOAT = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_LEADING_UINT = re.compile(r"\s*\+?(\d+)")


@dataclass
class SweepRow:
    """Results of one parameter combination on the train and test slices."""

    fast: int = 0
    slow: int = 0
    train: Metrics = field(default_factory=Metrics)
    test: Metrics = field(default_factory=Metrics)


def parse_date_format(value: str) -> DateFormat:
    """Map ``mdy`` and ``dmy`` to their formats; anything else means ISO."""
    if value == "mdy":
        return DateFormat.MDY
    if value == "dmy":
        return DateFormat.DMY
    return DateFormat.ISO


def sweep(
    train: Sequence[Candle],
    test: Sequence[Candle],
    fast_min: int,
    fast_max: int,
    slow_min: int,
    slow_max: int,
    step: int,
    settings: BacktestSettings,
) -> list[SweepRow]:
    """Backtest every valid window pair on both slices, best train return first."""
    if step <= 0:
        raise ValueError("step must be > 0")
    rows: list[SweepRow] = []
    for fast in range(fast_min, fast_max + 1, step):
        for slow in range(slow_min, slow_max + 1, step):
            params = SmaParams(fast_window=fast, slow_window=slow)
            if not params.is_valid():
                continue
            if len(train) < slow or len(test) < slow:
                continue
            train_result = run_sma_backtest(train, params, settings)
            test_result = run_sma_backtest(test, params, settings)
            rows.append(SweepRow(fast, slow, train_result.metrics, test_result.metrics))
    rows.sort(key=lambda row: (row.train.total_return_pct, row.train.max_drawdown_pct), reverse=True)
    return rows


def write_report(out_csv: Union[str, Path], rows: Sequence[SweepRow]) -> None:
    """Write the sweep rows as CSV."""
    with open(out_csv, "w", encoding="utf-8", newline="") as out:
        out.write(REPORT_HEADER + "\n")
        for row in rows:
            out.write(
                f"{row.fast},{row.slow},"
                f"{row.train.total_return_pct:.6f},{row.train.max_drawdown_pct:.6f},{row.train.trades},"
                f"{row.test.total_return_pct:.6f},{row.test.max_drawdown_pct:.6f},{row.test.trades}\n"
            )


def _atof(text: str) -> float:
    match = _LEADING_FLOAT.match(text)
    return float(match.group(0)) if match else 0.0


def _atou(text: str) -> int:
    match = _LEADING_UINT.match(text)
    return int(match.group(1)) if match else 0


def _usage() -> str:
    return (
        "Usage: sweep <csv_path> <out_csv> [date_format=iso] [train_ratio=0.7]"
        " [fast_min=5] [fast_max=80] [slow_min=20] [slow_max=300] [step=5]"
        " [position_size_pct=1.0] [stop_loss_pct=0.0] [take_profit_pct=0.0]"
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the sweep from command-line arguments; returns the exit status."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) < 2:
        print(_usage(), file=sys.stderr)
        return 1

    def arg(index: int, default: str) -> str:
        return args[index] if len(args) > index else default

    csv_path = args[0]
    out_csv = args[1]
    date_format = parse_date_format(arg(2, "iso"))
    train_ratio = _atof(arg(3, "0.7"))
    fast_min = _atou(arg(4, "5"))
    fast_max = _atou(arg(5, "80"))
    slow_min = _atou(arg(6, "20"))
    slow_max = _atou(arg(7, "300"))
    step = _atou(arg(8, "5"))
    position_size_pct = _atof(arg(9, "1.0"))
    stop_loss_pct = _atof(arg(10, "0.0"))
    take_profit_pct = _atof(arg(11, "0.0"))

    if not 0.0 < train_ratio < 1.0:
        print("train_ratio must be in (0,1)", file=sys.stderr)
        return 1
    if step == 0:
        print("step must be > 0", file=sys.stderr)
        return 1

    try:
        imported = import_ohlcv_csv(csv_path, date_format)
    except CsvImportError as exc:
        print(f"Import failed for: {csv_path}", file=sys.stderr)
        for issue in exc.issues:
            print(f"line {issue.line}: {issue.message}", file=sys.stderr)
        return 1

    candles = imported.candles
    n = len(candles)
    split_idx = int(n * train_ratio)
    if split_idx < 2 or split_idx >= n - 1:
        print("Dataset too short for requested split ratio", file=sys.stderr)
        return 1

    train = candles[:split_idx]
    test = candles[split_idx:]
    settings = BacktestSettings(
        starting_cash=10000.0,
        commission_pct=0.001,
        position_size_pct=position_size_pct,
        stop_loss_pct=stop_loss_pct,
        take_profit_pct=take_profit_pct,
    )

    rows = sweep(train, test, fast_min, fast_max, slow_min, slow_max, step, settings)
    if not rows:
        print("No valid parameter combinations produced results", file=sys.stderr)
        return 1

    try:
        write_report(out_csv, rows)
    except OSError:
        print(f"Failed to open output report path: {out_csv}", file=sys.stderr)
        return 1

    best = rows[0]
    print(f"Rows imported: {n}")
    print(f"Train rows: {len(train)}, Test rows: {len(test)}")
    print(f"Best (by train return): fast={best.fast} slow={best.slow}")
    print(
        f"Train return={best.train.total_return_pct:g}% maxDD={best.train.max_drawdown_pct:g}"
        f"% trades={best.train.trades}"
    )
    print(
        f"Test return={best.test.total_return_pct:g}% maxDD={best.test.max_drawdown_pct:g}"
        f"% trades={best.test.trades}"
    )
    print(f"Report written: {out_csv}")
    return 0


if __name__ == "__main__":
    sys.exit(main())