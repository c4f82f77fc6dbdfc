"""Regeneration of the reference outputs for the bundled sample dataset."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, Sequence, Union

from .backtester import run_sma_backtest
from .exporter import ExportError, export_equity_csv, export_metrics_json, export_trades_csv
from .importer import CsvImportError, import_ohlcv_csv
from .types import BacktestSettings, DatasetMetadata, DateFormat, SmaParams


def regenerate_goldens(root: Union[str, Path]) -> tuple[Path, Path, Path]:
    """Backtest ``data/sample.csv`` under ``root`` and rewrite ``tests/golden``.

    Returns the equity, trades and metrics paths. Raises CsvImportError or
    ExportError on failure.
    """
    root = Path(root)
    sample = root / "data" / "sample.csv"
    golden_dir = root / "tests" / "golden"
    equity_path = golden_dir / "equity.csv"
    trades_path = golden_dir / "trades.csv"
    metrics_path = golden_dir / "metrics.json"

    imported = import_ohlcv_csv(sample, DateFormat.ISO)
    params = SmaParams(fast_window=2, slow_window=3)
    settings = BacktestSettings(starting_cash=10000.0, commission_pct=0.001)
    result = run_sma_backtest(imported.candles, params, settings)

    export_equity_csv(equity_path, imported.candles, result)
    export_trades_csv(trades_path, result)
    dataset = DatasetMetadata(
        rows=len(imported.candles),
        start_ts=imported.candles[0].ts,
        end_ts=imported.candles[-1].ts,
    )
    export_metrics_json(metrics_path, dataset, params, settings, result.metrics)
    return equity_path, trades_path, metrics_path


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Regenerate the reference outputs under the given root or the working directory."""
    args = list(sys.argv[1:] if argv is None else argv)
    root = Path(args[0]) if args else Path.cwd()
    try:
        regenerate_goldens(root)
    except CsvImportError as exc:
        print("Import failed for sample.csv", file=sys.stderr)
        for issue in exc.issues:
            print(f"line {issue.line}: {issue.message}", file=sys.stderr)
        return 1
    except ExportError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    print("Regenerated tests/golden/equity.csv, tests/golden/trades.csv, and tests/golden/metrics.json")
    return 0


if __name__ == "__main__":
    sys.exit(main())