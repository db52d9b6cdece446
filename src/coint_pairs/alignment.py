"""
Series Alignment & Train/Test Split
===================================

Merges two raw price series on a common time axis, applies the price
transform (identity or natural log) and splits the aligned pair into a
formation (training) segment and a trading (test) segment.

Only timestamps present in both series survive the join. Prices are
never forward-filled.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union

import numpy as np
import pandas as pd

from coint_pairs.exceptions import InsufficientData, InvalidTransform

logger = logging.getLogger(__name__)

Transform = Optional[Union[str, Callable[[pd.Series], pd.Series]]]

MIN_SEGMENT_LENGTH = 2


@dataclass(frozen=True)
class AlignedSeriesPair:
    """
    Two price series sharing one ascending timestamp index.

    Parameters
    ----------
    a, b : pd.Series
        Index-aligned series (same length, same index).
    """

    a: pd.Series
    b: pd.Series

    def __post_init__(self):
        if len(self.a) != len(self.b):
            raise ValueError(
                f"Aligned series differ in length: {len(self.a)} != {len(self.b)}"
            )
        if not self.a.index.equals(self.b.index):
            raise ValueError("Aligned series must share an identical index.")

    def __len__(self) -> int:
        return len(self.a)

    @property
    def index(self) -> pd.Index:
        return self.a.index

    @property
    def names(self) -> Tuple[str, str]:
        return str(self.a.name), str(self.b.name)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({self.names[0]: self.a, self.names[1]: self.b})

    def segment(self, start: int, stop: int) -> "AlignedSeriesPair":
        """Positional slice of both legs."""
        return AlignedSeriesPair(self.a.iloc[start:stop], self.b.iloc[start:stop])


def _validate_price_series(series: pd.Series, label: str) -> pd.Series:
    if not isinstance(series, pd.Series):
        raise TypeError(f"{label} must be a pandas Series, got {type(series).__name__}")
    if series.index.has_duplicates:
        raise ValueError(f"{label} has duplicate timestamps.")
    return series.dropna().sort_index()


def _log_transform(series: pd.Series) -> pd.Series:
    bad = series[series <= 0]
    if len(bad) > 0:
        raise InvalidTransform(
            f"Log transform requires positive prices; {series.name} has "
            f"{len(bad)} non-positive value(s), first at {bad.index[0]}"
        )
    return np.log(series)


def _resolve_transform(transform: Transform) -> Callable[[pd.Series], pd.Series]:
    if transform is None or transform == "identity":
        return lambda s: s.astype(float)
    if transform == "log":
        return _log_transform
    if callable(transform):
        return transform
    raise ValueError(f"Unknown transform: {transform!r} (use 'identity' or 'log')")


def align(series_a: pd.Series, series_b: pd.Series,
          transform: Transform = None) -> AlignedSeriesPair:
    """
    Inner-join two price series on timestamp and apply a transform.

    Parameters
    ----------
    series_a, series_b : pd.Series
        Price series indexed by unique timestamps.
    transform : {None, 'identity', 'log'} or callable
        Elementwise transform applied after alignment.

    Returns
    -------
    AlignedSeriesPair
        Both legs restricted to the common timestamps, ascending.
    """
    func = _resolve_transform(transform)
    a = _validate_price_series(series_a, "series_a")
    b = _validate_price_series(series_b, "series_b")

    common = a.index.intersection(b.index).sort_values()
    if len(common) < MIN_SEGMENT_LENGTH:
        raise InsufficientData(
            f"Only {len(common)} common timestamp(s) between "
            f"{series_a.name} and {series_b.name}"
        )

    a = func(a.reindex(common).astype(float))
    b = func(b.reindex(common).astype(float))
    a.name = series_a.name if series_a.name is not None else "A"
    b.name = series_b.name if series_b.name is not None else "B"
    if str(a.name) == str(b.name):
        raise ValueError(f"Both legs are named {a.name!r} after alignment; names must differ.")

    dropped = max(len(series_a), len(series_b)) - len(common)
    if dropped:
        logger.debug("Alignment dropped %d unmatched timestamp(s)", dropped)
    return AlignedSeriesPair(a, b)


def split(pair: AlignedSeriesPair,
          train_fraction: float = 0.7) -> Tuple[AlignedSeriesPair, AlignedSeriesPair]:
    """
    Split an aligned pair into training and test segments.

    The training length is round-half-up of ``train_fraction * N``;
    the test segment takes the remainder.
    """
    if not 0.0 < train_fraction < 1.0:
        raise ValueError(f"train_fraction must lie in (0, 1), got {train_fraction}")

    n = len(pair)
    n_train = int(np.floor(train_fraction * n + 0.5))
    n_test = n - n_train
    if n_train < MIN_SEGMENT_LENGTH or n_test < MIN_SEGMENT_LENGTH:
        raise InsufficientData(
            f"Split of {n} points at {train_fraction} gives train={n_train}, "
            f"test={n_test}; both need at least {MIN_SEGMENT_LENGTH}"
        )
    return pair.segment(0, n_train), pair.segment(n_train, n)
