"""
Unit-Root Testing
=================

Thin wrapper around the augmented Dickey-Fuller test from statsmodels.
The rest of the package treats it as a black box that returns a test
statistic, its critical values and a rejection verdict.

    H0: the residual series has a unit root (no cointegration)
    H1: the residual series is stationary

References:
    Dickey & Fuller (1979), Said & Dickey (1984), MacKinnon (2010)
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Union

import numpy as np
import pandas as pd
from statsmodels.tsa.stattools import adfuller

from coint_pairs.exceptions import InsufficientData, StationarityTestError

logger = logging.getLogger(__name__)

LagSelection = Union[str, int]

AUTOLAG_CRITERIA = ("AIC", "BIC", "t-stat")
_LEVEL_KEYS = {0.01: "1%", 0.05: "5%", 0.10: "10%"}


@dataclass(frozen=True)
class StationarityResult:
    """Outcome of a single unit-root test."""

    statistic: float
    pvalue: float
    used_lag: int
    nobs: int
    critical_values: Dict[str, float] = field(default_factory=dict)

    def reject_null_at(self, level: Union[str, float] = "5%") -> bool:
        """True when the statistic lies below the critical value at `level`."""
        if not isinstance(level, str):
            key = _LEVEL_KEYS.get(round(float(level), 4))
            if key is None:
                raise ValueError(f"Unsupported significance level: {level}")
            level = key
        if level not in self.critical_values:
            raise ValueError(
                f"Unsupported significance level: {level!r}, "
                f"expected one of {sorted(self.critical_values)}"
            )
        return self.statistic < self.critical_values[level]


class StationarityTester:
    """
    Augmented Dickey-Fuller test with a constant in the test regression.

    Parameters
    ----------
    lag_selection : str or int
        'BIC' (default), 'AIC' or 't-stat' for automatic lag selection,
        or a fixed number of lagged differences.
    max_lags : int or None
        Upper bound for automatic lag search (statsmodels default if None).
    """

    def __init__(self, lag_selection: LagSelection = "BIC",
                 max_lags: Optional[int] = None):
        lag_selection = _normalize_lag_selection(lag_selection)
        _check_lag_selection(lag_selection)
        self.lag_selection = lag_selection
        self.max_lags = max_lags

    def test(self, residuals: pd.Series,
             lag_selection: Optional[LagSelection] = None) -> StationarityResult:
        """
        Run the ADF test on a residual (spread) series.

        Parameters
        ----------
        residuals : pd.Series or np.ndarray
            Candidate stationary series.
        lag_selection : str or int, optional
            Overrides the instance-level lag selection for this call.

        Returns
        -------
        StationarityResult
        """
        lags = self.lag_selection if lag_selection is None else _normalize_lag_selection(lag_selection)
        _check_lag_selection(lags)

        x = np.asarray(residuals, dtype=float)
        if x.ndim != 1 or len(x) < 3:
            raise InsufficientData(f"ADF test needs at least 3 observations, got {x.size}")

        if isinstance(lags, str):
            kwargs = {"maxlag": self.max_lags, "autolag": lags}
        else:
            kwargs = {"maxlag": int(lags), "autolag": None}

        try:
            out = adfuller(x, regression="c", **kwargs)
        except (ValueError, np.linalg.LinAlgError) as e:
            raise StationarityTestError(f"ADF test failed: {e}") from e

        stat, pvalue, used_lag, nobs, crit = out[0], out[1], out[2], out[3], out[4]
        if not np.isfinite(stat):
            raise StationarityTestError(f"ADF test produced a non-finite statistic ({stat})")

        result = StationarityResult(
            statistic=float(stat),
            pvalue=float(pvalue),
            used_lag=int(used_lag),
            nobs=int(nobs),
            critical_values={k: float(v) for k, v in crit.items()},
        )
        logger.debug("ADF stat=%.4f p=%.4f lags=%d (%s)",
                     result.statistic, result.pvalue, result.used_lag, lags)
        return result


def _normalize_lag_selection(lags: LagSelection) -> LagSelection:
    if not isinstance(lags, str):
        return lags
    return lags.lower() if lags.lower() == "t-stat" else lags.upper()


def _check_lag_selection(lags: LagSelection) -> None:
    if isinstance(lags, bool):
        raise ValueError("lag_selection must be a criterion name or an int")
    if isinstance(lags, str):
        if lags not in AUTOLAG_CRITERIA:
            raise ValueError(f"Unknown lag criterion {lags!r}, use one of {AUTOLAG_CRITERIA}")
    elif not isinstance(lags, (int, np.integer)) or lags < 0:
        raise ValueError(f"Fixed lag order must be a non-negative int, got {lags!r}")
