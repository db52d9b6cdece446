"""
Pairs Trading Visualizations
============================

Renders the figures a host dashboard shows for one pipeline run.

Figure Catalog:
    1. Price Series & Spread (pair overview)
    2. Z-Score Trading Signals (thresholds, stop-loss lines, positions)
    3. Cumulative P&L (additive and compounding curves)
    4. Residual Diagnostics (histogram + Q-Q plot)

Stop-loss lines are drawn for reference only; they take part in the
signal logic only when the strategy was configured with ``stop_loss``.
"""

import logging
import os
from typing import List, Optional

import matplotlib.pyplot as plt
import matplotlib.gridspec as gridspec
import seaborn as sns
from scipy import stats as sp_stats

logger = logging.getLogger(__name__)

# -- Professional dark style --
plt.rcParams.update({
    "figure.facecolor": "#0d1117",
    "axes.facecolor": "#161b22",
    "axes.edgecolor": "#30363d",
    "axes.labelcolor": "#c9d1d9",
    "axes.grid": True,
    "grid.color": "#21262d",
    "grid.alpha": 0.6,
    "text.color": "#c9d1d9",
    "xtick.color": "#8b949e",
    "ytick.color": "#8b949e",
    "font.family": "sans-serif",
    "font.size": 10,
    "axes.titlesize": 13,
    "axes.labelsize": 11,
    "legend.facecolor": "#161b22",
    "legend.edgecolor": "#30363d",
    "legend.fontsize": 9,
    "figure.dpi": 150,
    "savefig.dpi": 200,
    "savefig.bbox": "tight",
    "savefig.facecolor": "#0d1117",
})

COLORS = ["#58a6ff", "#f0883e", "#3fb950", "#bc8cff",
          "#f778ba", "#79c0ff", "#d2a8ff", "#ffa657"]
RED = "#f85149"
GREY = "#8b949e"


def _save(fig, out_dir, name) -> str:
    os.makedirs(out_dir, exist_ok=True)
    fpath = os.path.join(out_dir, name)
    fig.savefig(fpath, dpi=200, bbox_inches="tight",
                facecolor=fig.get_facecolor())
    plt.close(fig)
    logger.info("[FIG] %s", fpath)
    return fpath


def plot_pair_overview(pa, pb, spread, out_dir, split_date=None):
    """Fig 1: Transformed price legs and the cointegrating spread."""
    fig = plt.figure(figsize=(14, 8))
    gs = gridspec.GridSpec(2, 1, height_ratios=[2, 1], hspace=0.2)

    ax1 = fig.add_subplot(gs[0])
    ax1b = ax1.twinx()
    ax1.plot(pa.index, pa, color=COLORS[0], linewidth=1.2, label=str(pa.name))
    ax1b.plot(pb.index, pb, color=COLORS[1], linewidth=1.2, label=str(pb.name))
    ax1.set_ylabel(str(pa.name), color=COLORS[0])
    ax1b.set_ylabel(str(pb.name), color=COLORS[1])
    ax1.set_title(f"Pair: {pa.name} / {pb.name}", fontsize=14, fontweight="bold")
    lines1, labels1 = ax1.get_legend_handles_labels()
    lines2, labels2 = ax1b.get_legend_handles_labels()
    ax1.legend(lines1 + lines2, labels1 + labels2, loc="upper left")

    ax2 = fig.add_subplot(gs[1], sharex=ax1)
    ax2.plot(spread.index, spread, color=COLORS[2], linewidth=1)
    ax2.axhline(0, color=GREY, linestyle="--", linewidth=0.8)
    if split_date is not None:
        ax2.axvline(split_date, color=COLORS[3], linestyle=":", linewidth=1,
                    label="Train / test split")
        ax2.legend(loc="upper right")
    ax2.set_title("Spread (Cointegrating Residual)", fontweight="bold")
    ax2.set_ylabel("Spread")

    return _save(fig, out_dir, "01_pair_overview.png")


def plot_trading_signals(zscore, signals, long_threshold, short_threshold,
                         out_dir, stop_loss: Optional[float] = None,
                         split_date=None):
    """Fig 2: Z-score with entry thresholds and the position timeline."""
    fig, axes = plt.subplots(2, 1, figsize=(14, 8), height_ratios=[2, 1],
                             sharex=True)

    axes[0].plot(zscore.index, zscore, color=COLORS[0], linewidth=0.8, alpha=0.8)
    axes[0].axhline(short_threshold, color=RED, linestyle="--", linewidth=0.8,
                    label=f"Short entry ({short_threshold:+.2f})")
    axes[0].axhline(long_threshold, color=COLORS[2], linestyle="--", linewidth=0.8,
                    label=f"Long entry ({long_threshold:+.2f})")
    axes[0].axhline(0, color=GREY, linewidth=0.6, label="Exit (0)")
    if stop_loss is not None:
        axes[0].axhline(stop_loss, color=COLORS[7], linestyle=":", linewidth=0.8,
                        label=f"Stop-loss (+/-{stop_loss:.2f})")
        axes[0].axhline(-stop_loss, color=COLORS[7], linestyle=":", linewidth=0.8)
    if split_date is not None:
        axes[0].axvline(split_date, color=COLORS[3], linestyle=":", linewidth=1)
    axes[0].set_title("Z-Score Trading Signals", fontweight="bold")
    axes[0].set_ylabel("Z-Score")
    axes[0].legend(loc="upper right", ncol=2, fontsize=8)

    axes[1].fill_between(signals.index, 0, signals, where=signals > 0,
                         color=COLORS[2], alpha=0.6, label="Long", step="post")
    axes[1].fill_between(signals.index, 0, signals, where=signals < 0,
                         color=RED, alpha=0.6, label="Short", step="post")
    axes[1].set_title("Position", fontweight="bold")
    axes[1].set_yticks([-1, 0, 1])
    axes[1].set_yticklabels(["Short", "Flat", "Long"])
    axes[1].legend()

    return _save(fig, out_dir, "02_trading_signals.png")


def plot_pnl_curves(pnl, out_dir, split_date=None):
    """Fig 3: Additive and compounding cumulative P&L."""
    fig, ax = plt.subplots(figsize=(14, 6))
    ax.plot(pnl.additive.index, pnl.additive, color=COLORS[0], linewidth=1.4,
            label="Additive")
    ax.plot(pnl.compounding.index, pnl.compounding, color=COLORS[1],
            linewidth=1.4, label="Compounding")
    ax.axhline(1.0, color=GREY, linestyle="--", linewidth=0.5)
    ax.axhline(0.0, color=RED, linestyle=":", linewidth=0.8, label="Ruin level")
    if split_date is not None:
        ax.axvline(split_date, color=COLORS[3], linestyle=":", linewidth=1,
                   label="Train / test split")

    ps = pnl.performance_summary()
    ann_text = (
        f"Total P&L: {ps['Total P&L']:.4f} | "
        f"Sharpe: {ps['Sharpe Ratio']:.2f} | "
        f"MaxDD: {ps['Max Drawdown']:.4f}"
    )
    ax.text(0.02, 0.05, ann_text, transform=ax.transAxes, fontsize=9,
            color="#c9d1d9", bbox=dict(boxstyle="round,pad=0.3",
                                       facecolor="#21262d",
                                       edgecolor="#30363d", alpha=0.9))
    ax.set_title("Strategy P&L", fontsize=14, fontweight="bold")
    ax.set_ylabel("Cumulative Value")
    ax.legend(loc="upper left")

    return _save(fig, out_dir, "03_pnl_curves.png")


def plot_residual_diagnostics(residuals, out_dir):
    """Fig 4: Residual distribution and normal Q-Q plot."""
    fig, axes = plt.subplots(1, 2, figsize=(14, 5))

    sns.histplot(residuals.dropna(), bins=50, kde=True, stat="density",
                 color=COLORS[1], ax=axes[0])
    axes[0].set_title("Residual Distribution", fontweight="bold")
    axes[0].set_xlabel("Residual")

    (osm, osr), (slope, intercept, _) = sp_stats.probplot(residuals.dropna(), dist="norm")
    axes[1].scatter(osm, osr, s=6, color=COLORS[0], alpha=0.7)
    axes[1].plot(osm, slope * osm + intercept, color=RED, linewidth=1)
    axes[1].set_title("Normal Q-Q", fontweight="bold")
    axes[1].set_xlabel("Theoretical Quantiles")
    axes[1].set_ylabel("Sample Quantiles")

    return _save(fig, out_dir, "04_residual_diagnostics.png")


def generate_all_figures(result, out_dir: str,
                         long_threshold: float = -1.6,
                         short_threshold: float = 1.6,
                         stop_loss: Optional[float] = None) -> List[str]:
    """
    Render every figure for a PipelineResult.

    Returns
    -------
    list of str
        Paths of the written PNG files.
    """
    split_date = result.split_date
    return [
        plot_pair_overview(result.pair.a, result.pair.b, result.spread,
                           out_dir, split_date),
        plot_trading_signals(result.zscore, result.signals, long_threshold,
                             short_threshold, out_dir, stop_loss, split_date),
        plot_pnl_curves(result.pnl, out_dir, split_date),
        plot_residual_diagnostics(result.fit.residuals, out_dir),
    ]
