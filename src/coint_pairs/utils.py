"""
utils.py
--------
Logging and timing helpers shared by the pipeline and the CLI.
"""

import os
import logging
import time
import functools
from datetime import datetime
from pathlib import Path
from typing import Optional


def get_logger(name: str, log_dir: Optional[str] = "outputs/logs",
               level: str = "INFO") -> logging.Logger:
    """
    Return a named logger writing to stdout and, optionally, a dated file.

    Parameters
    ----------
    name    : Logger name (typically the module __name__ or the package).
    log_dir : Directory for log files; None disables the file handler.
    level   : Logging level string ("DEBUG", "INFO", "WARNING", "ERROR").

    Returns
    -------
    logging.Logger
    """
    logger = logging.getLogger(name)

    if logger.handlers:          # avoid duplicate handlers on re-import
        return logger

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_dir is not None:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        log_file = os.path.join(
            log_dir, f"pairs_{datetime.now().strftime('%Y%m%d')}.log"
        )
        fh = logging.FileHandler(log_file)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    return logger


def timeit(func):
    """Decorator that logs the execution time of any function."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger(func.__module__)
        t0 = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = time.perf_counter() - t0
        logger.debug("%s completed in %.3f s", func.__qualname__, elapsed)
        return result
    return wrapper
