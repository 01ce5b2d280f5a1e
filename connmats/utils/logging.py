"""A print-based logger for interactive scientific computing.

Standard Python logging disappears in Jupyter notebooks unless carefully
configured. This module provides a simple alternative: print to stdout
with timestamps and level labels. Unsophisticated, but visible.

Messages below the logger's minimum level are dropped. The level comes
from the ``level`` argument, else from the ``CONNMATS_LOG_LEVEL``
environment variable, else INFO.

Usage:
    from connmats.utils import get_logger
    log = get_logger("matrices.create")
    log.info("Loaded %d subjects", 42)
"""

import os
import sys
from datetime import datetime

LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}


def _resolve_level(level):
    if level is None:
        level = os.environ.get("CONNMATS_LOG_LEVEL", "INFO")
    if isinstance(level, int):
        return level
    return LEVELS.get(str(level).upper(), LEVELS["INFO"])


def get_logger(name, out=None, level=None):
    """Create a print-based logger.

    Parameters
    ----------
    name : str
        Logger name, displayed in every message header.
    out : file-like, optional
        Additional output stream (e.g., an open log file).
    level : str or int, optional
        Minimum level to print ("DEBUG", "INFO", "WARNING", "ERROR").

    Returns
    -------
    callable
        A log function with .debug, .info, .warning, .error methods.
    """
    prefix = f"connmats:{name}"
    line_length = 72
    extra = [out] if out else []
    threshold = _resolve_level(level)

    def _header(level, dests):
        now = datetime.now().strftime("%H:%M:%S")
        for dest in dests:
            print(f"{'_' * line_length}", file=dest)
            print(f"{prefix} {level} [{now}]", file=dest)

    def log(level, msg, args):
        if LEVELS[level] < threshold:
            return
        # sys.stdout is looked up per call so that captured streams work
        dests = [sys.stdout] + extra
        _header(level, dests)
        for dest in dests:
            try:
                print(msg % args, file=dest)
            except TypeError:
                print(msg, file=dest)

    log.debug = lambda msg, *args: log("DEBUG", msg, args)
    log.info = lambda msg, *args: log("INFO", msg, args)
    log.warning = lambda msg, *args: log("WARNING", msg, args)
    log.error = lambda msg, *args: log("ERROR", msg, args)
    log.name = prefix
    log.level = threshold

    return log
