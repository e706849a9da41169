from __future__ import annotations

import logging
import sys
from typing import Union


def setup_logging(level: Union[str, int] = logging.INFO) -> None:
    """
    Configure root logging with a single stderr handler.

    Call this ONCE, before the server starts. Pre-existing root handlers are
    removed so repeated calls do not duplicate output.
    """
    root = logging.getLogger()
    root.setLevel(level)

    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    ch = logging.StreamHandler(sys.stderr)
    ch.setFormatter(fmt)
    root.addHandler(ch)

    # Route warnings.warn(...) into logging as 'py.warnings'
    logging.captureWarnings(True)
