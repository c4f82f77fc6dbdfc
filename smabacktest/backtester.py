"""Long-only simple moving average crossover backtest."""

from __future__ import annotations

import math
from enum import Enum, auto
from typing import Optional, Sequence

from .types import BacktestResult, BacktestSettings, Candle, SmaParams, Trade

_LAST_BAR_SIGNAL = "Last bar signal discarded (no next bar for execution)."


class _Pending(Enum):
    NONE = auto()
    BUY = auto()
    SELL = auto()


def _clamp01(value: float) -> float:
    return min(max(value, 0.0), 1.0)


def _closed_trade(
    entry_time: int, entry_price: float, exit_time: int, exit_price: float, qty: int, commission_pct: float
) -> Trade:
    pnl = (
        (exit_price - entry_price) * qty
        - entry_price * qty * commission_pct
        - exit_price * qty * commission_pct
    )
    return_pct = (exit_price - entry_price) / entry_price if entry_price > 0.0 else 0.0
    return Trade(entry_time, entry_price, exit_time, exit_price, qty, pnl, return_pct)


def run_sma_backtest(
    candles: Sequence[Candle],
    params: SmaParams,
    settings: Optional[BacktestSettings] = None,
) -> BacktestResult:
    """Trade SMA crossovers, filling orders at the next bar's open.

    Open positions are closed at the final close. Problems that stop or limit
    the run are reported in ``warnings``.
    """
    settings = settings if settings is not None else BacktestSettings()
    result = BacktestResult()
    if not candles:
        result.warnings.append("Backtest skipped: empty dataset.")
        return result
    if not params.is_valid():
        result.warnings.append(
            "Backtest skipped: invalid SMA parameters (require fast < slow and > 0)."
        )
        return result

    n = len(candles)
    fast_window = params.fast_window
    slow_window = params.slow_window
    commission_pct = settings.commission_pct
    result.equity = [settings.starting_cash] * n
    result.drawdown = [0.0] * n

    if n < slow_window:
        result.warnings.append("Dataset length is below slow_window. No signals/trades generated.")

    cash = settings.starting_cash
    qty = 0
    position_size_pct = _clamp01(settings.position_size_pct)
    stop_loss_enabled = settings.stop_loss_pct > 0.0
    take_profit_enabled = settings.take_profit_pct > 0.0

    open_entry_time = 0
    open_entry_price = 0.0
    pending = _Pending.NONE

    fast_sum = 0.0
    slow_sum = 0.0
    prev_fast = 0.0
    prev_slow = 0.0
    prev_valid = False

    for i, bar in enumerate(candles):
        has_next = i + 1 < n

        if pending is _Pending.BUY:
            entry_price = bar.o
            denom = entry_price * (1.0 + commission_pct)
            budget = cash * position_size_pct
            buy_qty = int(math.floor(budget / denom)) if denom > 0.0 else 0
            if buy_qty > 0:
                cost = buy_qty * entry_price
                cash -= cost + cost * commission_pct
                qty = buy_qty
                open_entry_time = bar.ts
                open_entry_price = entry_price
            pending = _Pending.NONE
        elif pending is _Pending.SELL:
            if qty > 0:
                exit_price = bar.o
                proceeds = qty * exit_price
                cash += proceeds - proceeds * commission_pct
                result.trades.append(
                    _closed_trade(open_entry_time, open_entry_price, bar.ts, exit_price, qty, commission_pct)
                )
                qty = 0
                open_entry_time = 0
                open_entry_price = 0.0
            pending = _Pending.NONE

        fast_sum += bar.c
        slow_sum += bar.c
        if i >= fast_window:
            fast_sum -= candles[i - fast_window].c
        if i >= slow_window:
            slow_sum -= candles[i - slow_window].c

        if i + 1 >= fast_window and i + 1 >= slow_window:
            fast = fast_sum / fast_window
            slow = slow_sum / slow_window

            if prev_valid:
                cross_up = prev_fast <= prev_slow and fast > slow
                cross_down = prev_fast >= prev_slow and fast < slow

                if cross_up and qty == 0 and pending is _Pending.NONE:
                    if has_next:
                        pending = _Pending.BUY
                    else:
                        result.warnings.append(_LAST_BAR_SIGNAL)
                elif cross_down and qty > 0 and pending is _Pending.NONE:
                    if has_next:
                        pending = _Pending.SELL
                    else:
                        result.warnings.append(_LAST_BAR_SIGNAL)

            prev_fast = fast
            prev_slow = slow
            prev_valid = True

        if qty > 0 and pending is _Pending.NONE:
            bar_return = (bar.c - open_entry_price) / open_entry_price if open_entry_price > 0.0 else 0.0
            if stop_loss_enabled and bar_return <= -settings.stop_loss_pct:
                if has_next:
                    pending = _Pending.SELL
                    result.warnings.append("Stop-loss triggered; exit scheduled on next bar open.")
                else:
                    result.warnings.append("Stop-loss triggered on last bar; exiting at final close.")
            elif take_profit_enabled and bar_return >= settings.take_profit_pct:
                if has_next:
                    pending = _Pending.SELL
                    result.warnings.append("Take-profit triggered; exit scheduled on next bar open.")
                else:
                    result.warnings.append("Take-profit triggered on last bar; exiting at final close.")

        result.equity[i] = cash + qty * bar.c

    if qty > 0:
        last = candles[-1]
        exit_price = last.c
        proceeds = qty * exit_price
        cash += proceeds - proceeds * commission_pct
        result.trades.append(
            _closed_trade(open_entry_time, open_entry_price, last.ts, exit_price, qty, commission_pct)
        )
        qty = 0
        result.equity[-1] = cash
        result.warnings.append("Open position force-closed at last bar close.")

    peak = -math.inf
    min_dd = 0.0
    for i, value in enumerate(result.equity):
        peak = max(peak, value)
        dd = (value - peak) / peak if peak > 0.0 else 0.0
        result.drawdown[i] = dd
        min_dd = min(min_dd, dd)

    metrics = result.metrics
    final_equity = result.equity[-1] if result.equity else settings.starting_cash
    metrics.total_pnl = final_equity - settings.starting_cash
    metrics.total_return_pct = (
        metrics.total_pnl / settings.starting_cash * 100.0 if settings.starting_cash != 0.0 else 0.0
    )
    metrics.trades = len(result.trades)

    if result.trades:
        wins = sum(1 for trade in result.trades if trade.pnl > 0.0)
        sum_returns = sum(trade.return_pct for trade in result.trades)
        metrics.win_rate_pct = wins / len(result.trades) * 100.0
        metrics.avg_trade_return_pct = sum_returns / len(result.trades) * 100.0
    else:
        metrics.win_rate_pct = 0.0
        metrics.avg_trade_return_pct = 0.0
    metrics.max_drawdown_pct = min_dd * 100.0

    return result