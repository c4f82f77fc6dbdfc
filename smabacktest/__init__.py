"""SMA crossover backtesting on OHLCV CSV data: import, backtest, export and sweep."""

__version__ = "0.1.0"