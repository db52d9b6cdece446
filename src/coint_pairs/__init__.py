"""
Cointegrated Pairs Trading: Signal & Backtest Pipeline
======================================================

Deterministic analytical pipeline for a single pair: align two price
series, estimate the Engle-Granger hedge ratio, standardize the spread,
run the z-score signal state machine and account the P&L.

Modules:
    alignment      - Timestamp alignment, log transform, train/test split
    cointegration  - Static OLS hedge ratio & orientation selection
    stationarity   - Augmented Dickey-Fuller unit-root test wrapper
    standardize    - Z-score with formation-period mean / std
    strategy       - Flat / Long / Short signal state machine
    backtesting    - Spread P&L (additive & compounding curves)
    diagnostics    - Residual normality & half-life
    pipeline       - End-to-end orchestration
    data_loader    - yfinance prices & synthetic cointegrated pairs
"""

from coint_pairs.exceptions import (
    PairsTradingError, InvalidTransform, InsufficientData,
    DegenerateInput, DegenerateSpread, StationarityTestError,
)
from coint_pairs.alignment import AlignedSeriesPair, align, split
from coint_pairs.stationarity import StationarityTester, StationarityResult
from coint_pairs.cointegration import CointegrationEstimator, RegressionFit
from coint_pairs.standardize import SpreadStandardizer, standardize
from coint_pairs.strategy import PairsTradingStrategy, Position, transition
from coint_pairs.backtesting import PairsBacktester, PnLCurve
from coint_pairs.pipeline import PairsTradingPipeline, PipelineResult

__version__ = "1.0.0"
