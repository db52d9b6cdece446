"""
Integration Tests: Pipeline, Configuration, Data & Figures
==========================================================

Run from project root:
    pytest tests/ -v
"""

import importlib
import logging
import os
import sys

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, os.path.join(ROOT, "src"))
sys.path.insert(0, ROOT)

from coint_pairs import config
from coint_pairs import data_loader
from coint_pairs.config import PipelineConfig
from coint_pairs.data_loader import generate_cointegrated_pair
from coint_pairs.exceptions import DegenerateInput, InsufficientData, InvalidTransform
from coint_pairs.pipeline import PairsTradingPipeline
from coint_pairs.utils import get_logger, timeit
from coint_pairs.visualization.pairs_plots import generate_all_figures


@pytest.fixture(scope="module")
def raw_pair():
    return generate_cointegrated_pair(n_periods=750, seed=123)


@pytest.fixture(scope="module")
def result(raw_pair):
    pa, pb = raw_pair
    return PairsTradingPipeline(PipelineConfig()).run(pa, pb)


# =============================================================================
# Pipeline
# =============================================================================

class TestPipeline:
    def test_lengths_and_split(self, result):
        n = len(result.pair)
        assert n == 750
        assert result.n_train == 525
        for s in (result.spread, result.zscore, result.signals,
                  result.pnl.additive, result.pnl.compounding):
            assert len(s) == n
            assert s.index.equals(result.pair.index)
        assert result.split_date == result.pair.index[525]

    def test_zscore_uses_training_statistics(self, result):
        z_train = result.zscore.iloc[:result.n_train]
        assert abs(z_train.mean()) < 1e-9
        assert abs(z_train.std() - 1.0) < 1e-9

    def test_fit_is_out_of_sample(self, result):
        assert len(result.fit.residuals) == result.n_train
        np.testing.assert_allclose(
            result.spread.iloc[:result.n_train].values, result.fit.residuals.values
        )

    def test_roles_and_signals(self, result):
        assert set(result.roles) == {"A", "B"}
        assert set(result.signals.unique()).issubset({-1, 0, 1})
        assert result.pnl.additive.iloc[0] == 1.0
        assert result.pnl.compounding.iloc[0] == 1.0

    def test_reports(self, result):
        assert result.cointegration["chosen"].fit is result.fit
        assert "half_life" in result.diagnostics
        assert "n_trades" in result.trade_stats
        assert "PAIRS TRADING" in result.summary()

    def test_fit_on_full_sample(self, raw_pair):
        cfg = PipelineConfig()
        cfg.split.fit_on = "full"
        res = PairsTradingPipeline(cfg).run(*raw_pair)
        assert len(res.fit.residuals) == 750
        np.testing.assert_allclose(res.spread.values, res.fit.residuals.values)

    def test_invalid_fit_on(self):
        cfg = PipelineConfig()
        cfg.split.fit_on = "test"
        with pytest.raises(ValueError):
            PairsTradingPipeline(cfg)

    def test_stop_loss_config(self, raw_pair):
        cfg = PipelineConfig()
        cfg.signals.stop_loss = 2.5
        res = PairsTradingPipeline(cfg).run(*raw_pair)
        assert "n_stop_losses" in res.trade_stats

    def test_degenerate_leg_fails_and_logs(self, raw_pair, caplog):
        pa, _ = raw_pair
        flat = pd.Series(40.0, index=pa.index, name="FLAT")
        with caplog.at_level(logging.ERROR, logger="coint_pairs.pipeline"):
            with pytest.raises(DegenerateInput):
                PairsTradingPipeline().run(pa, flat)
        assert "cointegration" in caplog.text

    def test_non_positive_price_with_log(self, raw_pair):
        pa, pb = raw_pair
        bad = pb.copy()
        bad.iloc[10] = -1.0
        with pytest.raises(InvalidTransform):
            PairsTradingPipeline().run(pa, bad)

    def test_same_names_rejected(self, raw_pair):
        pa, pb = raw_pair
        with pytest.raises(ValueError):
            PairsTradingPipeline().run(pa, pb.rename("A"))

    def test_unnamed_leg_colliding_with_default_name_rejected(self, raw_pair):
        pa, pb = raw_pair
        with pytest.raises(ValueError):
            PairsTradingPipeline().run(pa.rename(None), pb.rename("A"))

    def test_spread_uses_both_legs_in_chosen_orientation(self, raw_pair):
        pa, pb = raw_pair
        res = PairsTradingPipeline().run(pa.rename(None), pb.rename("Z"))
        dep, indep = (res.pair.a, res.pair.b) if res.roles == ("A", "Z") else (res.pair.b, res.pair.a)
        expected = dep - (res.fit.intercept + res.fit.hedge_ratio * indep)
        np.testing.assert_allclose(res.spread.values, expected.values)

    def test_value_error_logs_failing_stage(self, raw_pair, caplog):
        pa, pb = raw_pair
        dup = pd.concat([pb.iloc[:1], pb])
        with caplog.at_level(logging.ERROR, logger="coint_pairs.pipeline"):
            with pytest.raises(ValueError):
                PairsTradingPipeline().run(pa, dup)
        assert "align" in caplog.text


# =============================================================================
# Configuration & logging
# =============================================================================

class TestConfig:
    def test_defaults(self):
        cfg = PipelineConfig()
        assert cfg.signals.long_threshold == -1.6
        assert cfg.signals.short_threshold == 1.6
        assert cfg.signals.stop_loss is None
        assert cfg.split.train_fraction == 0.7
        assert cfg.cointegration.lag_selection == "BIC"
        assert cfg.data.transform == "log"
        assert isinstance(config.CONFIG, config.PipelineConfig)

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("PAIRS_LONG_Z", "-2.5")
        monkeypatch.setenv("PAIRS_STOP_Z", "4")
        monkeypatch.setenv("PAIRS_ADF_LAG", "2")
        monkeypatch.setenv("PAIRS_TICKERS", "XOM,CVX")
        try:
            mod = importlib.reload(config)
            cfg = mod.PipelineConfig()
            assert cfg.signals.long_threshold == -2.5
            assert cfg.signals.stop_loss == 4.0
            assert cfg.cointegration.lag_selection == 2
            assert cfg.data.tickers == ["XOM", "CVX"]
        finally:
            for var in ("PAIRS_LONG_Z", "PAIRS_STOP_Z", "PAIRS_ADF_LAG", "PAIRS_TICKERS"):
                monkeypatch.delenv(var)
            importlib.reload(config)


class TestUtils:
    def test_get_logger_no_duplicate_handlers(self, tmp_path):
        log = get_logger("coint_pairs_test_logger", str(tmp_path / "logs"), "DEBUG")
        n = len(log.handlers)
        assert n == 2
        assert get_logger("coint_pairs_test_logger", str(tmp_path / "logs")) is log
        assert len(log.handlers) == n
        assert any(p.suffix == ".log" for p in (tmp_path / "logs").iterdir())

    def test_timeit_preserves_result(self):
        @timeit
        def add(a, b):
            return a + b
        assert add(2, 3) == 5
        assert add.__name__ == "add"


# =============================================================================
# Data
# =============================================================================

class TestDataLoader:
    def test_synthetic_pair(self):
        pa, pb = generate_cointegrated_pair(n_periods=300, seed=1, names=("X", "Y"))
        assert len(pa) == len(pb) == 300
        assert pa.name == "X" and pb.name == "Y"
        assert (pa > 0).all() and (pb > 0).all()
        assert pa.index.equals(pb.index)

    def test_fetch_price_series(self, monkeypatch):
        idx = pd.bdate_range("2023-01-02", periods=5)
        cols = pd.MultiIndex.from_product([["Close", "Open"], ["KO"]])
        frame = pd.DataFrame(np.arange(10.0).reshape(5, 2) + 50, index=idx,
                             columns=cols)

        def fake_download(ticker, **kwargs):
            assert kwargs["auto_adjust"] is True
            return frame

        monkeypatch.setattr(data_loader.yf, "download", fake_download)
        s = data_loader.fetch_price_series("KO", "2023-01-01", "2023-02-01")
        assert s.name == "KO"
        assert len(s) == 5
        assert s.iloc[0] == 50.0

    def test_fetch_empty(self, monkeypatch):
        monkeypatch.setattr(data_loader.yf, "download",
                            lambda ticker, **kwargs: pd.DataFrame())
        with pytest.raises(InsufficientData):
            data_loader.fetch_price_series("NOPE", "2023-01-01", "2023-02-01")

    def test_fetch_error_wrapped(self, monkeypatch):
        def boom(ticker, **kwargs):
            raise ConnectionError("offline")
        monkeypatch.setattr(data_loader.yf, "download", boom)
        with pytest.raises(RuntimeError):
            data_loader.fetch_price_series("KO", "2023-01-01", "2023-02-01")


# =============================================================================
# Figures & CLI
# =============================================================================

class TestFigures:
    def test_generate_all_figures(self, result, tmp_path):
        paths = generate_all_figures(result, str(tmp_path), stop_loss=3.0)
        assert len(paths) == 4
        for p in paths:
            assert os.path.exists(p)


class TestMain:
    def test_demo_run(self, tmp_path, monkeypatch):
        import main
        monkeypatch.chdir(tmp_path)
        assert main.main(["--demo", "--no-plots", "--long-z", "-2", "--short-z", "2"]) == 0

    def test_failure_exit_code(self, tmp_path, monkeypatch, raw_pair):
        import main
        pa, _ = raw_pair
        flat = pd.Series(40.0, index=pa.index, name="FLAT")
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(main, "generate_cointegrated_pair", lambda **kw: (pa, flat))
        assert main.main(["--demo", "--no-plots"]) == 1

    def test_download_failure_exit_code(self, tmp_path, monkeypatch):
        import main

        def offline(*args, **kwargs):
            raise RuntimeError("download failed")

        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(main, "fetch_pair", offline)
        assert main.main(["--tickers", "KO", "PEP", "--no-plots"]) == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
