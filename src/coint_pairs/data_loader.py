"""
Price Data Acquisition & Synthetic Pairs
========================================
Provides:
    - fetch_price_series / fetch_pair: adjusted closes from yfinance
    - generate_cointegrated_pair: synthetic pair sharing a stochastic
      trend, with a stationary AR(1) spread between the log prices
"""
from __future__ import annotations

import logging
from typing import Tuple

import numpy as np
import pandas as pd
import yfinance as yf

from coint_pairs.exceptions import InsufficientData

logger = logging.getLogger(__name__)


def fetch_price_series(ticker: str, start: str, end: str) -> pd.Series:
    """Download daily adjusted close prices for a single ticker."""
    try:
        data = yf.download(
            ticker,
            start      = start,
            end        = end,
            auto_adjust= True,
            progress   = False,
        )
    except Exception as e:
        raise RuntimeError(f"Failed to fetch prices for {ticker}: {e}") from e

    if data is None or data.empty or "Close" not in data.columns.get_level_values(0):
        raise InsufficientData(f"No data returned for {ticker} between {start} and {end}")

    close = data["Close"]
    if isinstance(close, pd.DataFrame):
        close = close.iloc[:, 0]
    close = close.dropna().astype(float)
    close.index = pd.to_datetime(close.index)
    close = close[~close.index.duplicated(keep="last")].sort_index()
    close.name = ticker
    logger.info("Fetched %d prices for %s", len(close), ticker)
    return close


def fetch_pair(ticker_a: str, ticker_b: str,
               start: str, end: str) -> Tuple[pd.Series, pd.Series]:
    """Download both legs of a pair."""
    return (fetch_price_series(ticker_a, start, end),
            fetch_price_series(ticker_b, start, end))


def generate_cointegrated_pair(
    n_periods : int   = 750,
    seed      : int   = 123,
    beta      : float = 0.8,
    phi       : float = 0.92,
    spread_vol: float = 0.008,
    trend_vol : float = 0.015,
    start     : str   = "2020-01-01",
    names     : Tuple[str, str] = ("A", "B"),
) -> Tuple[pd.Series, pd.Series]:
    """
    Generate a synthetic cointegrated price pair.

        log A_t = trend_t + log(50)
        log B_t = beta * trend_t + s_t + log(40),   s_t = phi * s_{t-1} + u_t

    so that log B - beta * log A is stationary for |phi| < 1.
    """
    rng = np.random.RandomState(seed)
    dates = pd.bdate_range(start, periods=n_periods)
    trend = np.cumsum(rng.normal(0.0003, trend_vol, n_periods))
    spread = np.zeros(n_periods)
    for t in range(1, n_periods):
        spread[t] = phi * spread[t - 1] + rng.normal(0, spread_vol)
    pa = pd.Series(np.exp(trend + np.log(50)), index=dates, name=names[0])
    pb = pd.Series(np.exp(beta * trend + spread + np.log(40)), index=dates, name=names[1])
    return pa, pb
