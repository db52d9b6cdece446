"""
Error Taxonomy
==============

Every pipeline stage fails fast with one of the errors below. None of
them is caught inside the package; the host decides what to do with a
failed run.
"""


class PairsTradingError(Exception):
    """Base class for all pipeline failures."""


class InvalidTransform(PairsTradingError, ValueError):
    """A domain-restricted transform (log) received a non-positive value."""


class InsufficientData(PairsTradingError, ValueError):
    """A series or segment has fewer points than the stage needs (< 2)."""


class DegenerateInput(PairsTradingError, ValueError):
    """The independent variable of a regression has zero variance."""


class DegenerateSpread(PairsTradingError, ValueError):
    """The residual series has zero variance over the reference window."""


class StationarityTestError(PairsTradingError, RuntimeError):
    """The unit-root test could not produce a usable statistic."""
