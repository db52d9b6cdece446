"""
Engle-Granger Cointegration Estimation
======================================

Two-step residual-based procedure for a bivariate system:

    Step 1: static OLS of the dependent leg on the independent leg,
            y_t = a + gamma * x_t + e_t, giving the hedge ratio gamma
            and the spread e_t.
    Step 2: unit-root test on e_t.

The regression is asymmetric, so both orderings are fitted and the one
whose residuals reject the unit root most strongly (most negative test
statistic) becomes the trading spread.

References:
    Engle & Granger (1987), MacKinnon (1991, 2010),
    Hamilton (1994) Chapter 19
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import numpy as np
import pandas as pd
from statsmodels.tsa.adfvalues import mackinnoncrit, mackinnonp

from coint_pairs.exceptions import DegenerateInput, InsufficientData
from coint_pairs.stationarity import StationarityResult, StationarityTester

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegressionFit:
    """
    Static least-squares fit of one price leg on the other.

    The residuals satisfy ``e_t = dependent_t - (intercept + hedge_ratio * independent_t)``
    over the window the fit was estimated on.
    """

    intercept: float
    hedge_ratio: float
    residuals: pd.Series
    dependent: str
    independent: str
    r_squared: float = np.nan

    @property
    def roles(self) -> Tuple[str, str]:
        return self.dependent, self.independent

    def spread(self, dependent: pd.Series, independent: pd.Series) -> pd.Series:
        """
        Apply the frozen coefficients to another window.

        Used for out-of-sample evaluation: fit on the formation period,
        then build the spread over the full sample with the same
        intercept and hedge ratio.
        """
        _check_same_index(dependent, independent)
        spread = dependent.astype(float) - (
            self.intercept + self.hedge_ratio * independent.astype(float)
        )
        spread.name = "spread"
        return spread


@dataclass(frozen=True)
class OrientationCandidate:
    """One ordering of the pair with its stationarity evidence."""

    fit: RegressionFit
    stationarity: StationarityResult
    eg_pvalue: float
    eg_critical_values: Dict[str, float] = field(default_factory=dict)


class CointegrationEstimator:
    """
    Engle-Granger estimator with orientation selection.

    Parameters
    ----------
    tester : StationarityTester or None
        Unit-root test applied to each candidate spread. Any object with
        a ``test(residuals)`` method returning a StationarityResult works.
    lag_selection : str or int
        Lag selection passed to the default tester (default 'BIC').
    significance : float
        Level used for the ``cointegrated`` verdict (default 0.05).
    """

    def __init__(self, tester: Optional[StationarityTester] = None,
                 lag_selection="BIC", significance: float = 0.05):
        self.tester = tester if tester is not None else StationarityTester(lag_selection)
        self.significance = significance
        self.results = None

    def fit(self, dependent: pd.Series, independent: pd.Series) -> RegressionFit:
        """
        Closed-form OLS of `dependent` on `independent` with intercept.

            b = Cov(y, x) / Var(x),   a = mean(y) - b * mean(x)

        Parameters
        ----------
        dependent, independent : pd.Series
            Index-aligned (transformed) price series.

        Returns
        -------
        RegressionFit
        """
        _check_same_index(dependent, independent)
        y = dependent.to_numpy(dtype=float)
        x = independent.to_numpy(dtype=float)
        if len(y) < 2:
            raise InsufficientData(f"Regression needs at least 2 points, got {len(y)}")

        x_mean = x.mean()
        y_mean = y.mean()
        var_x = np.mean((x - x_mean) ** 2)
        if np.ptp(x) == 0 or var_x == 0:
            raise DegenerateInput(
                f"Independent series {independent.name} has zero variance"
            )
        cov_xy = np.mean((x - x_mean) * (y - y_mean))
        slope = cov_xy / var_x
        intercept = y_mean - slope * x_mean

        resid = dependent.astype(float) - (intercept + slope * independent.astype(float))
        resid.name = "spread"

        ss_res = float((resid.to_numpy() ** 2).sum())
        ss_tot = float(((y - y_mean) ** 2).sum())
        r2 = 1 - ss_res / ss_tot if ss_tot > 0 else np.nan

        return RegressionFit(
            intercept=float(intercept),
            hedge_ratio=float(slope),
            residuals=resid,
            dependent=str(dependent.name),
            independent=str(independent.name),
            r_squared=r2,
        )

    def choose_orientation(self, series_a: pd.Series,
                           series_b: pd.Series) -> Tuple[RegressionFit, Tuple[str, str]]:
        """
        Fit both orderings and keep the one with the stronger rejection.

        The orientation whose residual test statistic is more negative is
        selected; on an exact tie the A-dependent ordering wins.

        Parameters
        ----------
        series_a, series_b : pd.Series
            Index-aligned (transformed) price series.

        Returns
        -------
        (RegressionFit, (dependent_name, independent_name))
        """
        a_on_b = self._candidate(series_a, series_b)
        b_on_a = self._candidate(series_b, series_a)

        if b_on_a.stationarity.statistic < a_on_b.stationarity.statistic:
            best, other = b_on_a, a_on_b
        else:
            best, other = a_on_b, b_on_a

        self.results = {
            "chosen": best,
            "alternative": other,
            "roles": best.fit.roles,
            "cointegrated": best.eg_pvalue < self.significance,
        }
        logger.info(
            "Orientation %s ~ %s chosen (ADF %.4f vs %.4f), hedge ratio %.4f",
            best.fit.dependent, best.fit.independent,
            best.stationarity.statistic, other.stationarity.statistic,
            best.fit.hedge_ratio,
        )
        return best.fit, best.fit.roles

    def _candidate(self, dependent: pd.Series,
                   independent: pd.Series) -> OrientationCandidate:
        fit = self.fit(dependent, independent)
        adf = self.tester.test(fit.residuals)
        return OrientationCandidate(
            fit=fit,
            stationarity=adf,
            eg_pvalue=float(mackinnonp(adf.statistic, regression="c", N=2)),
            eg_critical_values=dict(zip(
                ["1%", "5%", "10%"],
                (float(v) for v in mackinnoncrit(N=2, regression="c", nobs=adf.nobs)),
            )),
        )

    def get_summary(self) -> str:
        """Return formatted test summary."""
        if self.results is None:
            return "Run choose_orientation() first."
        best = self.results["chosen"]
        other = self.results["alternative"]
        r = best.stationarity
        sig = "***" if best.eg_pvalue < 0.01 else \
              "**" if best.eg_pvalue < 0.05 else \
              "*" if best.eg_pvalue < 0.10 else ""
        lines = [
            "=" * 60,
            "ENGLE-GRANGER COINTEGRATION TEST",
            "=" * 60,
            f"Ordering:           {best.fit.dependent} ~ {best.fit.independent}",
            f"Hedge ratio (gamma): {best.fit.hedge_ratio:.6f}",
            f"Intercept:          {best.fit.intercept:.6f}",
            f"R-squared:          {best.fit.r_squared:.4f}",
            "-" * 60,
            f"ADF statistic:      {r.statistic:.4f} {sig}",
            f"EG p-value:         {best.eg_pvalue:.6f}",
            f"ADF lags used:      {r.used_lag}",
            f"Alternative stat:   {other.stationarity.statistic:.4f} "
            f"({other.fit.dependent} ~ {other.fit.independent})",
            f"Cointegrated:       {self.results['cointegrated']}",
            "-" * 60,
            "Engle-Granger critical values:",
        ]
        for k, v in best.eg_critical_values.items():
            lines.append(f"  {k}: {v:.4f}")
        lines.append("=" * 60)
        return "\n".join(lines)


def _check_same_index(dependent: pd.Series, independent: pd.Series) -> None:
    if len(dependent) != len(independent) or not dependent.index.equals(independent.index):
        raise ValueError("Dependent and independent series must share an identical index.")
