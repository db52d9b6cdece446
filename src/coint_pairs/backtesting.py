"""
Spread Backtest Engine
======================

Turns a position sequence on the spread into per-period strategy
returns and two cumulative P&L curves.

    r_t    = e_t - e_{t-1}                   spread change, t >= 1
    r^s_t  = r_t * signal_{t-1}              position held over [t-1, t]
    r^s_0  = 0
    eps_t  = 1 + sum_{k<=t} r^s_k            additive curve
    kap_t  = prod_{k<=t} (1 + r^s_k)         compounding curve

No transaction costs, slippage or position sizing are modeled. The
compounding curve is not floored: a value <= 0 means the strategy is
ruined from that period on, and is reported through ``ruin_date``.
"""

import logging
from dataclasses import dataclass
from typing import Dict

import numpy as np
import pandas as pd

from coint_pairs.exceptions import InsufficientData

logger = logging.getLogger(__name__)

PERIODS_PER_YEAR = 252


@dataclass(frozen=True)
class PnLCurve:
    """Per-period returns and cumulative P&L of one backtest run."""

    spread_return: pd.Series
    strategy_return: pd.Series
    additive: pd.Series
    compounding: pd.Series
    position: pd.Series

    def __len__(self) -> int:
        return len(self.additive)

    @property
    def ruin_date(self):
        """First period with a non-positive compounding value, or None."""
        ruined = self.compounding[self.compounding <= 0]
        return ruined.index[0] if len(ruined) > 0 else None

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            "spread_return": self.spread_return,
            "strategy_return": self.strategy_return,
            "additive": self.additive,
            "compounding": self.compounding,
        })

    def performance_summary(self, periods_per_year: int = PERIODS_PER_YEAR) -> Dict:
        """
        Compute headline performance metrics.

        Returns
        -------
        dict
            Total P&L, Final Wealth, Ann. Return, Ann. Volatility,
            Sharpe Ratio, Max Drawdown, Periods In Market, Ruined.
        """
        r = self.strategy_return.iloc[1:]
        ann_ret = r.mean() * periods_per_year if len(r) else 0.0
        ann_vol = r.std() * np.sqrt(periods_per_year) if len(r) > 1 else 0.0
        sharpe = ann_ret / ann_vol if ann_vol > 0 else 0.0

        # Drawdown in P&L units on the additive curve
        eq = self.additive
        max_dd = float((eq - eq.cummax()).min())

        return {
            "Total P&L": float(self.additive.iloc[-1] - 1.0),
            "Final Wealth": float(self.compounding.iloc[-1]),
            "Ann. Return": float(ann_ret),
            "Ann. Volatility": float(ann_vol),
            "Sharpe Ratio": float(sharpe),
            "Max Drawdown": max_dd,
            "Periods In Market": int((self.position != 0).sum()),
            "Ruined": self.ruin_date is not None,
        }


class PairsBacktester:
    """Vectorised single-pair backtest of a signal on its spread."""

    def __init__(self):
        self.pnl = None

    def run(self, residuals: pd.Series, signals: pd.Series) -> PnLCurve:
        """
        Execute the backtest.

        Parameters
        ----------
        residuals : pd.Series
            Spread (regression residual) series e_t.
        signals : pd.Series
            Positions in {-1, 0, +1} on the same index.

        Returns
        -------
        PnLCurve
        """
        if len(residuals) != len(signals) or not residuals.index.equals(signals.index):
            raise ValueError("Residual and signal series must share an identical index.")
        if len(residuals) < 2:
            raise InsufficientData(f"Backtest needs at least 2 periods, got {len(residuals)}")
        if not signals.isin([-1, 0, 1]).all():
            bad = sorted(set(signals[~signals.isin([-1, 0, 1])].tolist()))
            raise ValueError(f"Signals must be in {{-1, 0, 1}}, got {bad}")

        e = residuals.astype(float)
        spread_ret = e.diff()
        spread_ret.iloc[0] = 0.0

        held = signals.shift(1).fillna(0).astype(int)
        strat_ret = spread_ret * held.astype(float)
        strat_ret.iloc[0] = 0.0

        curve = PnLCurve(
            spread_return=spread_ret.rename("spread_return"),
            strategy_return=strat_ret.rename("strategy_return"),
            additive=(1.0 + strat_ret.cumsum()).rename("additive"),
            compounding=(1.0 + strat_ret).cumprod().rename("compounding"),
            position=held.rename("position"),
        )
        if curve.ruin_date is not None:
            logger.warning("Compounding P&L hit zero or below at %s", curve.ruin_date)

        self.pnl = curve
        return curve
