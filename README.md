# smabacktest

A small, deterministic backtester for a simple moving-average (SMA)
crossover strategy on daily or intraday OHLCV data.

It is an educational tool. Not investment advice. No live trading.

## What it does

- **Imports OHLCV CSV files.** A file needs either a `Date`/`Timestamp`
  column or split `DTYYYYMMDD` + `TIME` columns. It also needs `Open`,
  `High`, `Low`, `Close` and `Volume`/`VOL` columns. Header names are
  case-insensitive and may be wrapped in angle brackets (`<CLOSE>`).
- **Reads several date formats.** A single date column may hold ISO dates
  (`2024-01-05`, `2024-01-05 09:30:00`, `2024-01-05T09:30:00`),
  month/day/year or day/month/year. Split columns take a `YYYYMMDD` date
  and a time written as `HHMM`, `HHMMSS`, `HH:MM` or `HH:MM:SS`. All times
  are treated as UTC.
- **Cleans the data.** Rows with missing fields, bad timestamps, bad
  numbers, non-positive prices or negative volume are dropped and reported
  as warnings. Unsorted rows are sorted. Where timestamps repeat, the last
  row wins.
- **Runs an SMA crossover backtest.** It is long-only. It buys when the
  fast SMA crosses above the slow SMA and sells when it crosses below, and
  every order fills at the next bar's open. You can set the commission,
  the position size as a fraction of cash, and an optional stop-loss and
  take-profit. A position still open at the end is closed at the last
  close.
- **Reports results.** You get the equity curve, the drawdown curve (as
  fractions), the list of trades and summary metrics: total return, total
  PnL, maximum drawdown, trade count, win rate and average trade return.
- **Exports results.** Writes `equity.csv`, `trades.csv` and
  `metrics.json`.
- **Downsamples long series for plotting.** Uses min/max buckets.

## Installation

```
pip install .
```

The package has no dependencies outside the standard library.

## Using the library

```python
from smabacktest.importer import import_ohlcv_csv, CsvImportError
from smabacktest.backtester import run_sma_backtest
from smabacktest.exporter import (
    export_equity_csv,
    export_trades_csv,
    export_metrics_json,
    ExportError,
)
from smabacktest.types import (
    BacktestSettings,
    DatasetMetadata,
    DateFormat,
    SmaParams,
)

imported = import_ohlcv_csv("prices.csv", DateFormat.ISO)
candles = imported.candles
for issue in imported.warnings:
    print(issue.line, issue.message)

params = SmaParams(fast_window=20, slow_window=50)
settings = BacktestSettings(starting_cash=10000.0, commission_pct=0.001)
result = run_sma_backtest(candles, params, settings)

print(result.metrics.total_return_pct, result.metrics.max_drawdown_pct)

export_equity_csv("equity.csv", candles, result)
export_trades_csv("trades.csv", result)
dataset = DatasetMetadata(
    rows=len(candles), start_ts=candles[0].ts, end_ts=candles[-1].ts
)
export_metrics_json("metrics.json", dataset, params, settings, result.metrics)
```

`smabacktest.sweep.parse_date_format` maps the strings `iso`, `mdy` and
`dmy` to a `DateFormat`. Any other string gives `DateFormat.ISO`.

### Error handling

- The importer raises `CsvImportError` in three cases: the file cannot be
  read, a required column is missing, or no valid rows remain after
  filtering. The exception's `issues` attribute lists the reasons as
  `ImportIssue` objects.
- If an output path cannot be opened, the export functions raise
  `ExportError`.
- If the data set is empty or the SMA parameters are invalid, the
  backtest is skipped and a warning is added to `result.warnings`.

### Other helpers

- `smabacktest.timeutils` parses and formats timestamps, with
  `parse_timestamp_utc`, `parse_date_time_utc` and
  `format_timestamp_utc_iso8601`.
- `smabacktest.downsampling.downsample_bucket_min_max` reduces a long list
  of `SeriesPoint`s to at most one min/max `BucketMinMax` per pixel
  column.
- `smabacktest.sweep.sweep` and `smabacktest.sweep.write_report` run a
  grid search over window pairs and write its report.

## Command-line tools

### Parameter sweep

This tool splits a data set into a training part and a test part. It then
backtests every fast/slow window pair on both parts, ranks the pairs by
training return and writes a CSV report:

```
smabacktest-sweep prices.csv report.csv [date_format=iso] [train_ratio=0.7] \
    [fast_min=5] [fast_max=80] [slow_min=20] [slow_max=300] [step=5] \
    [position_size_pct=1.0] [stop_loss_pct=0.0] [take_profit_pct=0.0]
```

`date_format` is one of `iso`, `mdy` or `dmy`.

### Benchmark

This tool writes a synthetic OHLCV file to the temporary directory. It
then times the import and a 20/50 SMA backtest on that file, and deletes
the file afterwards:

```
smabacktest-benchmark [rows]
```

`rows` defaults to 200000.

### Regenerating golden files

This tool reads `data/sample.csv` under the given root directory (by
default, the current directory) and runs a 2/3 SMA backtest. It writes the
results to:

- `tests/golden/equity.csv`
- `tests/golden/trades.csv`
- `tests/golden/metrics.json`

```
smabacktest-goldens [root]
```

## What it does not do

The package has no graphical interface and draws no charts. The
downsampling helper prepares data for plotting, but you do the plotting
with a tool of your own choice. It only backtests; it does not place
orders or connect to any broker or data feed.

## Running the tests

```
pip install .[test]
pytest
```