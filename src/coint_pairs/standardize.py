"""
Spread Standardization
======================

    z_t = (e_t - mu) / sigma

mu and sigma come from a reference window (normally the formation
period) and are then applied unchanged to every observation, including
the trading period. They are never recomputed on the test segment.
"""

import logging
from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from coint_pairs.exceptions import DegenerateSpread, InsufficientData

logger = logging.getLogger(__name__)

ReferenceWindow = Optional[Union[slice, np.ndarray, pd.Series, pd.Index, Sequence]]


class SpreadStandardizer:
    """
    Z-score transform with statistics frozen on a reference window.

    Attributes
    ----------
    mean_, std_ : float
        Reference-window mean and sample standard deviation (ddof=1),
        available after ``fit``.
    """

    def __init__(self):
        self.mean_ = None
        self.std_ = None

    def fit(self, residuals: pd.Series,
            reference_window: ReferenceWindow = None) -> "SpreadStandardizer":
        ref = _select_window(residuals, reference_window)
        if len(ref) < 2:
            raise InsufficientData(
                f"Reference window needs at least 2 points, got {len(ref)}"
            )
        values = ref.to_numpy(dtype=float)
        if not np.all(np.isfinite(values)):
            raise ValueError("Reference window contains non-finite residuals.")

        mu = float(values.mean())
        sigma = float(values.std(ddof=1))
        if np.ptp(values) == 0 or sigma == 0:
            raise DegenerateSpread(
                f"Residual series is constant over the reference window ({len(ref)} points)"
            )
        self.mean_, self.std_ = mu, sigma
        logger.debug("Spread reference stats: mu=%.6f sigma=%.6f (n=%d)", mu, sigma, len(ref))
        return self

    def transform(self, residuals: pd.Series) -> pd.Series:
        if self.std_ is None:
            raise RuntimeError("Fit the standardizer first.")
        z = (residuals.astype(float) - self.mean_) / self.std_
        z.name = "zscore"
        return z

    def standardize(self, residuals: pd.Series,
                    reference_window: ReferenceWindow = None) -> pd.Series:
        """
        Fit on `reference_window` (or the whole series) and transform all of it.

        Parameters
        ----------
        residuals : pd.Series
            Spread series.
        reference_window : slice, boolean mask or index labels, optional
            Positional ``slice`` (e.g. ``slice(0, n_train)``), a boolean
            mask of the same length, or a collection of index labels.

        Returns
        -------
        pd.Series
            Z-score series over the full input.
        """
        return self.fit(residuals, reference_window).transform(residuals)


def standardize(residuals: pd.Series,
                reference_window: ReferenceWindow = None) -> pd.Series:
    """Functional shortcut for ``SpreadStandardizer().standardize``."""
    return SpreadStandardizer().standardize(residuals, reference_window)


def _select_window(residuals: pd.Series, window: ReferenceWindow) -> pd.Series:
    if window is None:
        return residuals
    if isinstance(window, slice):
        return residuals.iloc[window]
    mask = np.asarray(window)
    if mask.dtype == bool:
        if len(mask) != len(residuals):
            raise ValueError(
                f"Boolean reference window has length {len(mask)}, expected {len(residuals)}"
            )
        return residuals[mask]
    return residuals.loc[window]
