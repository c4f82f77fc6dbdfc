"""Timing of import and backtest on a synthetic dataset."""

from __future__ import annotations

import argparse
import sys
import tempfile
import time
from pathlib import Path
from typing import Optional, Sequence, Union

from .backtester import run_sma_backtest
from .importer import CsvImportError, import_ohlcv_csv
from .types import BacktestSettings, DateFormat, SmaParams

DEFAULT_ROWS = 200000
BENCHMARK_FILE_NAME = "stockbt_benchmark_ohlcv.csv"


def write_synthetic_csv(out_path: Union[str, Path], rows: int) -> Path:
    """Write ``rows`` deterministic daily OHLCV bars (28-day months) and return the path."""
    out_path = Path(out_path)
    price = 100.0
    year, month, day = 2020, 1, 1
    with open(out_path, "w", encoding="utf-8", newline="") as out:
        out.write("Date,Open,High,Low,Close,Volume\n")
        for i in range(rows):
            drift = (i % 29 - 14) * 0.02
            open_ = price
            close = max(1.0, open_ + drift)
            high = max(open_, close) + 0.3
            low = min(open_, close) - 0.3
            out.write(
                f"{year:04d}-{month:02d}-{day:02d},"
                f"{open_:.6f},{high:.6f},{low:.6f},{close:.6f},1000\n"
            )
            price = close
            day += 1
            if day > 28:
                day = 1
                month += 1
                if month > 12:
                    month = 1
                    year += 1
    return out_path


def _row_count(text: str) -> int:
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError("rows must not be negative")
    return value


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Generate data, time the import and an SMA(20, 50) backtest, and print the results."""
    parser = argparse.ArgumentParser(description="Benchmark CSV import and SMA backtest.")
    parser.add_argument("rows", nargs="?", type=_row_count, default=DEFAULT_ROWS)
    args = parser.parse_args(argv)

    csv_path = Path(tempfile.gettempdir()) / BENCHMARK_FILE_NAME
    write_synthetic_csv(csv_path, args.rows)
    try:
        import_start = time.perf_counter()
        try:
            imported = import_ohlcv_csv(csv_path, DateFormat.ISO)
        except CsvImportError:
            print("Import failed in benchmark", file=sys.stderr)
            return 1
        import_end = time.perf_counter()

        params = SmaParams(fast_window=20, slow_window=50)
        settings = BacktestSettings(starting_cash=10000.0, commission_pct=0.001)

        backtest_start = time.perf_counter()
        result = run_sma_backtest(imported.candles, params, settings)
        backtest_end = time.perf_counter()

        print(f"Rows: {len(imported.candles)}")
        print(f"Import ms: {int((import_end - import_start) * 1000)}")
        print(f"Backtest ms: {int((backtest_end - backtest_start) * 1000)}")
        print(f"Trades: {result.metrics.trades}")
        print(f"Total return (%): {result.metrics.total_return_pct:g}")
        return 0
    finally:
        csv_path.unlink(missing_ok=True)


if __name__ == "__main__":
    sys.exit(main())