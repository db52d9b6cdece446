from setuptools import setup, find_packages

setup(
    name="coint-pairs-backtest",
    version="1.0.0",
    description=(
        "Cointegrated pairs trading pipeline: Engle-Granger hedge ratio, "
        "z-score signal state machine and spread P&L backtest"
    ),
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.24.0", "scipy>=1.11.0", "pandas>=2.0.0",
        "statsmodels>=0.14.0", "matplotlib>=3.7.0", "seaborn>=0.12.0",
        "yfinance>=0.2.30",
    ],
    extras_require={
        "test": ["pytest>=7.4.0"],
    },
    keywords=[
        "pairs-trading", "cointegration", "statistical-arbitrage",
        "engle-granger", "mean-reversion", "backtesting",
    ],
)
