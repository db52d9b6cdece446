"""
main.py
-------
Runs the cointegrated pairs-trading pipeline for one pair.

Usage
-----
# Synthetic cointegrated pair (no network):
    python main.py --demo

# Real tickers via yfinance:
    python main.py --tickers KO PEP --start 2018-01-01 --end 2023-12-31

# Tighter entries with the opt-in stop-loss:
    python main.py --demo --long-z -2 --short-z 2 --stop-z 3.5

Environment variables
---------------------
See src/coint_pairs/config.py for the full list of supported env vars.
"""

import os
import sys
import argparse

# Ensure the package is importable when running from project root
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "src"))

from coint_pairs.config import PipelineConfig
from coint_pairs.data_loader import fetch_pair, generate_cointegrated_pair
from coint_pairs.exceptions import PairsTradingError
from coint_pairs.pipeline import PairsTradingPipeline
from coint_pairs.utils import get_logger


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Cointegrated pairs trading backtest")
    p.add_argument("--tickers", nargs=2, metavar=("A", "B"))
    p.add_argument("--start")
    p.add_argument("--end")
    p.add_argument("--demo", action="store_true",
                   help="use a synthetic cointegrated pair instead of yfinance")
    p.add_argument("--long-z", type=float, help="long entry threshold (e.g. -1.6)")
    p.add_argument("--short-z", type=float, help="short entry threshold (e.g. 1.6)")
    p.add_argument("--stop-z", type=float, help="opt-in stop-loss magnitude")
    p.add_argument("--train-fraction", type=float)
    p.add_argument("--no-plots", action="store_true")
    return p.parse_args(argv)


def build_config(args: argparse.Namespace) -> PipelineConfig:
    cfg = PipelineConfig()
    if args.tickers:
        cfg.data.tickers = list(args.tickers)
    if args.start:
        cfg.data.start = args.start
    if args.end:
        cfg.data.end = args.end
    if args.long_z is not None:
        cfg.signals.long_threshold = args.long_z
    if args.short_z is not None:
        cfg.signals.short_threshold = args.short_z
    if args.stop_z is not None:
        cfg.signals.stop_loss = args.stop_z
    if args.train_fraction is not None:
        cfg.split.train_fraction = args.train_fraction
    return cfg


def main(argv=None) -> int:
    """Run the pipeline; returns the process exit code."""
    args = parse_args(argv)
    cfg = build_config(args)
    log = get_logger("coint_pairs", os.path.join(cfg.output_dir, "logs"), cfg.log_level)

    print("=" * 60)
    print("  COINTEGRATED PAIRS TRADING BACKTEST")
    print("=" * 60)

    try:
        print("\n[1/3] Loading prices...")
        if args.demo:
            series_a, series_b = generate_cointegrated_pair(names=("SYN_A", "SYN_B"))
        else:
            a, b = cfg.data.tickers[:2]
            series_a, series_b = fetch_pair(a, b, cfg.data.start, cfg.data.end)
        print(f"       {series_a.name}: {len(series_a)} obs | {series_b.name}: {len(series_b)} obs")

        print("\n[2/3] Running pipeline...")
        result = PairsTradingPipeline(cfg).run(series_a, series_b)
    except (PairsTradingError, RuntimeError, ValueError) as e:
        log.error("No signal / P&L produced for this run: %s", e)
        return 1

    print(result.summary())
    if result.pnl.ruin_date is not None:
        print(f"\n  WARNING: compounding P&L ruined at {result.pnl.ruin_date}")

    if not args.no_plots:
        print("\n[3/3] Generating figures...")
        from coint_pairs.visualization.pairs_plots import generate_all_figures
        generate_all_figures(
            result, os.path.join(cfg.output_dir, "figures"),
            long_threshold=cfg.signals.long_threshold,
            short_threshold=cfg.signals.short_threshold,
            stop_loss=cfg.signals.stop_loss,
        )

    print("\n" + "=" * 60)
    print("  PIPELINE COMPLETE")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
