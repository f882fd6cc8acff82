from __future__ import annotations

import logging
import sys
from typing import Union


# PUBLIC_INTERFACE
def setup_logging(level: Union[str, int] = logging.INFO) -> None:
    """
    Configure root logging with a single stderr handler.

    Call this once, early, from the process entry point. Existing root handlers
    are removed so repeated calls do not duplicate output.
    """
    root = logging.getLogger()
    root.setLevel(level)

    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(handler)

    # uvicorn installs its own handlers; route them through ours instead.
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        lg = logging.getLogger(name)
        lg.handlers.clear()
        lg.propagate = True
