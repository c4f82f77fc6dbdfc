"""Core data types shared by the importer, the backtester and the exporters."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class DateFormat(Enum):
    """Layout of the date in a single timestamp column."""

    ISO = "iso"
    MDY = "mdy"
    DMY = "dmy"


@dataclass(frozen=True)
class Candle:
    """One OHLCV bar; ``ts`` is seconds since the Unix epoch (UTC)."""

    ts: int = 0
    o: float = 0.0
    h: float = 0.0
    l: float = 0.0  # noqa: E741
    c: float = 0.0
    v: float = 0.0


@dataclass(frozen=True)
class Trade:
    """A closed round-trip position."""

    entry_time: int = 0
    entry_price: float = 0.0
    exit_time: int = 0
    exit_price: float = 0.0
    qty: int = 0
    pnl: float = 0.0
    return_pct: float = 0.0


@dataclass
class Metrics:
    """Summary statistics of a backtest run."""

    total_return_pct: float = 0.0
    total_pnl: float = 0.0
    trades: int = 0
    win_rate_pct: float = 0.0
    avg_trade_return_pct: float = 0.0
    max_drawdown_pct: float = 0.0


@dataclass
class BacktestSettings:
    """Account and risk settings.

    ``position_size_pct`` is the fraction of cash used per entry (0..1);
    ``stop_loss_pct`` and ``take_profit_pct`` are fractions of the entry
    price, and 0 disables them.
    """

    starting_cash: float = 10000.0
    commission_pct: float = 0.001
    position_size_pct: float = 1.0
    stop_loss_pct: float = 0.0
    take_profit_pct: float = 0.0


@dataclass
class SmaParams:
    """Window lengths of the fast and slow simple moving averages."""

    fast_window: int = 20
    slow_window: int = 50

    def is_valid(self) -> bool:
        """Both windows positive and the fast one strictly shorter."""
        return 0 < self.fast_window < self.slow_window


@dataclass(frozen=True)
class ImportIssue:
    """A problem found while importing; ``line`` is 0 when not tied to a row."""

    line: int = 0
    message: str = ""


@dataclass
class ImportResult:
    """Outcome of importing an OHLCV file."""

    success: bool = False
    partial_success: bool = False
    dropped_rows: int = 0
    candles: list[Candle] = field(default_factory=list)
    warnings: list[ImportIssue] = field(default_factory=list)
    errors: list[ImportIssue] = field(default_factory=list)


@dataclass
class BacktestResult:
    """Per-bar equity and drawdown, the trades taken and summary metrics."""

    equity: list[float] = field(default_factory=list)
    drawdown: list[float] = field(default_factory=list)
    trades: list[Trade] = field(default_factory=list)
    metrics: Metrics = field(default_factory=Metrics)
    warnings: list[str] = field(default_factory=list)


@dataclass
class DatasetMetadata:
    """Size and time span of the dataset a backtest ran on."""

    rows: int = 0
    start_ts: int = 0
    end_ts: int = 0