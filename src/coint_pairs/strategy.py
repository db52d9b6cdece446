"""
Pairs Trading Strategy: Z-Score Signal State Machine
====================================================

Maps a standardized spread into a position sequence in {-1, 0, +1}.

    FLAT  -> LONG:   z <= long_threshold      (spread is "cheap")
    FLAT  -> SHORT:  z >= short_threshold     (spread is "rich")
    LONG  -> FLAT:   z >= 0                   (spread has reverted)
    SHORT -> FLAT:   z <= 0                   (spread has reverted)

Rules are evaluated in that order and the first match wins. The first
observation is treated as if the previous state were FLAT. The output at
t is the state entered at t; there is no lookahead.

A stop-loss exit exists only as an opt-in extension (``stop_loss``);
with the default ``None`` the machine above is reproduced exactly.

References:
    Gatev et al. (2006), Vidyamurthy (2004)
"""

import logging
from enum import IntEnum
from typing import Dict, Optional, Tuple

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


class Position(IntEnum):
    SHORT = -1
    FLAT = 0
    LONG = 1


def transition(state: Position, z: float,
               long_threshold: float = -1.6,
               short_threshold: float = 1.6,
               stop_loss: Optional[float] = None) -> Tuple[Position, str]:
    """
    One step of the signal machine.

    Returns
    -------
    (Position, str)
        The state entered at this step and the event label.
    """
    if state == Position.FLAT:
        if z <= long_threshold:
            return Position.LONG, "long_entry"
        if z >= short_threshold:
            return Position.SHORT, "short_entry"
        return Position.FLAT, "flat"

    if state == Position.LONG:
        if z >= 0:
            return Position.FLAT, "long_exit_revert"
        if stop_loss is not None and z <= -stop_loss:
            return Position.FLAT, "long_exit_stop"
        return Position.LONG, "hold"

    if z <= 0:
        return Position.FLAT, "short_exit_revert"
    if stop_loss is not None and z >= stop_loss:
        return Position.FLAT, "short_exit_stop"
    return Position.SHORT, "hold"


class PairsTradingStrategy:
    """
    Threshold strategy on the spread z-score.

    Parameters
    ----------
    long_threshold : float
        Enter long spread at or below this z-score (default -1.6).
    short_threshold : float
        Enter short spread at or above this z-score (default +1.6).
    stop_loss : float or None
        Opt-in stop-loss magnitude. When set, a long exits at
        z <= -stop_loss and a short at z >= +stop_loss. Must exceed both
        entry magnitudes. Disabled by default.
    """

    def __init__(self, long_threshold: float = -1.6,
                 short_threshold: float = 1.6,
                 stop_loss: Optional[float] = None):
        if not long_threshold < short_threshold:
            raise ValueError(
                f"long_threshold ({long_threshold}) must be below "
                f"short_threshold ({short_threshold})"
            )
        if stop_loss is not None and stop_loss <= max(abs(long_threshold),
                                                      abs(short_threshold)):
            raise ValueError(
                f"stop_loss ({stop_loss}) must exceed both entry thresholds"
            )
        self.long_threshold = long_threshold
        self.short_threshold = short_threshold
        self.stop_loss = stop_loss
        self.signals = None

    def generate_signals(self, zscore: pd.Series) -> pd.Series:
        """
        Run the state machine over a z-score series.

        Parameters
        ----------
        zscore : pd.Series
            Standardized spread.

        Returns
        -------
        pd.Series
            Integer signal in {-1, 0, +1}, same index as `zscore`.
            The per-step event labels are kept in ``self.signals``.
        """
        values = np.asarray(zscore, dtype=float)
        if not np.all(np.isfinite(values)):
            raise ValueError("z-score series contains non-finite values")

        positions = np.zeros(len(values), dtype=int)
        events = []
        state = Position.FLAT
        for t, z_t in enumerate(values):
            state, event = transition(state, z_t, self.long_threshold,
                                      self.short_threshold, self.stop_loss)
            positions[t] = int(state)
            events.append(event)

        index = zscore.index if isinstance(zscore, pd.Series) else None
        signal = pd.Series(positions, index=index, name="signal")
        self.signals = pd.DataFrame({
            "zscore": values,
            "signal": positions,
            "event": events,
        }, index=signal.index)

        n_entries = sum(e.endswith("entry") for e in events)
        logger.info("Generated %d signals, %d entries", len(values), n_entries)
        return signal

    def trade_statistics(self, strategy_returns: Optional[pd.Series] = None) -> Dict:
        """
        Trade-level statistics of the last generated signal sequence.

        A trade is a maximal run of identical non-zero positions. When
        `strategy_returns` is given (per-period returns of the backtest),
        a trade held over periods [i, j] earns returns i+1 .. j+1.

        Returns
        -------
        dict
            n_trades, n_long, n_short, avg_holding_periods, n_stop_losses,
            stop_loss_pct, and with returns: win_rate, avg_win, avg_loss,
            profit_factor.
        """
        if self.signals is None:
            return {}

        pos = self.signals["signal"].to_numpy()
        events = self.signals["event"]
        trades = _trade_runs(pos)

        n_trades = len(trades)
        n_stops = int(events.str.endswith("stop").sum())
        stats = {
            "n_trades": n_trades,
            "n_long": sum(1 for i, _ in trades if pos[i] == Position.LONG),
            "n_short": sum(1 for i, _ in trades if pos[i] == Position.SHORT),
            "avg_holding_periods": float(np.mean([j - i + 1 for i, j in trades]))
            if trades else 0.0,
            "n_stop_losses": n_stops,
            "stop_loss_pct": n_stops / max(n_trades, 1) * 100,
        }

        if strategy_returns is not None:
            r = np.asarray(strategy_returns, dtype=float)
            trade_rets = [float(r[i + 1:j + 2].sum()) for i, j in trades]
            wins = [x for x in trade_rets if x > 0]
            losses = [x for x in trade_rets if x <= 0]
            gross_losses = abs(sum(losses))
            stats.update({
                "win_rate": len(wins) / len(trade_rets) if trade_rets else 0.0,
                "avg_win": float(np.mean(wins)) if wins else 0.0,
                "avg_loss": float(np.mean(losses)) if losses else 0.0,
                "profit_factor": sum(wins) / gross_losses if gross_losses > 0 else np.inf,
            })
        return stats


def _trade_runs(positions: np.ndarray):
    """(start, end) positional bounds of each run of equal non-zero positions."""
    runs = []
    start = None
    for t, p in enumerate(positions):
        if start is not None and p != positions[start]:
            runs.append((start, t - 1))
            start = None
        if start is None and p != 0:
            start = t
    if start is not None:
        runs.append((start, len(positions) - 1))
    return runs
