"""
Residual Diagnostics
====================

Descriptive checks on the spread that accompany the cointegration
verdict: normality of residuals and speed of mean reversion.

Half-life comes from the discrete OU / AR(1) regression

    e_t - e_{t-1} = c + lambda * e_{t-1} + u_t,   half-life = -ln(2) / lambda

which is only defined for lambda < 0 (a mean-reverting spread).
"""

from typing import Dict

import numpy as np
import pandas as pd
import statsmodels.api as sm
from scipy import stats as sp_stats

from coint_pairs.exceptions import InsufficientData


def half_life(residuals: pd.Series) -> Dict:
    """
    Mean-reversion half-life of a spread in periods.

    Returns
    -------
    dict
        lambda, ar1_coef (1 + lambda), half_life (np.inf when not
        mean-reverting).
    """
    e = np.asarray(residuals, dtype=float)
    if len(e) < 3:
        raise InsufficientData(f"Half-life needs at least 3 points, got {len(e)}")
    lagged = e[:-1]
    delta = np.diff(e)
    ols = sm.OLS(delta, sm.add_constant(lagged)).fit()
    lam = float(ols.params[1])
    hl = -np.log(2) / lam if lam < 0 else np.inf
    return {"lambda": lam, "ar1_coef": 1.0 + lam, "half_life": float(hl)}


def residual_diagnostics(residuals: pd.Series) -> Dict:
    """
    Normality and mean-reversion diagnostics for a residual series.

    Returns
    -------
    dict
        jb_stat, jb_pvalue, normal_at_5pct, skewness, excess_kurtosis,
        ar1_coef, half_life.
    """
    e = np.asarray(residuals, dtype=float)
    jb = sp_stats.jarque_bera(e)
    hl = half_life(residuals)
    return {
        "jb_stat": float(jb[0]),
        "jb_pvalue": float(jb[1]),
        "normal_at_5pct": bool(jb[1] >= 0.05),
        "skewness": float(sp_stats.skew(e)),
        "excess_kurtosis": float(sp_stats.kurtosis(e)),
        "ar1_coef": hl["ar1_coef"],
        "half_life": hl["half_life"],
    }
