"""
config.py
---------
Centralised configuration for the pairs-trading pipeline.
Parameters are read from environment variables with the documented
defaults, so a host application can tune a run without code changes.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional


def _optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else None


def _lag_selection(raw: str):
    return int(raw) if raw.isdigit() else raw


@dataclass
class SignalConfig:
    """Z-score thresholds for the signal state machine."""
    long_threshold:  float = float(os.getenv("PAIRS_LONG_Z",  "-1.6"))
    short_threshold: float = float(os.getenv("PAIRS_SHORT_Z", "1.6"))
    # Opt-in extension; None reproduces the baseline machine
    stop_loss:       Optional[float] = field(
        default_factory=lambda: _optional_float("PAIRS_STOP_Z"))


@dataclass
class CointegrationConfig:
    """Engle-Granger / unit-root test settings."""
    lag_selection: object = field(
        default_factory=lambda: _lag_selection(os.getenv("PAIRS_ADF_LAG", "BIC")))
    significance:  float  = float(os.getenv("PAIRS_SIGNIFICANCE", "0.05"))


@dataclass
class SplitConfig:
    """Formation / trading period split."""
    train_fraction: float = float(os.getenv("PAIRS_TRAIN_FRACTION", "0.7"))
    fit_on:         str   = os.getenv("PAIRS_FIT_ON", "train")   # train | full


@dataclass
class DataConfig:
    """Price source settings."""
    tickers:   List[str] = field(default_factory=lambda: os.getenv(
        "PAIRS_TICKERS", "KO,PEP").split(","))
    start:     str = os.getenv("PAIRS_START", "2018-01-01")
    end:       str = os.getenv("PAIRS_END",   "2023-12-31")
    transform: str = os.getenv("PAIRS_TRANSFORM", "log")        # log | identity


@dataclass
class PipelineConfig:
    """Master configuration aggregating all sub-configs."""
    signals:       SignalConfig        = field(default_factory=SignalConfig)
    cointegration: CointegrationConfig = field(default_factory=CointegrationConfig)
    split:         SplitConfig         = field(default_factory=SplitConfig)
    data:          DataConfig          = field(default_factory=DataConfig)

    output_dir: str = os.getenv("PAIRS_OUTPUT_DIR", "outputs")
    log_level:  str = os.getenv("LOG_LEVEL", "INFO")


# Default instance for host applications
CONFIG = PipelineConfig()
