"""
Logging setup for the CLI runner.
"""

from __future__ import annotations

import logging
import os
from typing import List, Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_path: Optional[str], log_level: str) -> None:
    """
    Configure root logging to stderr and, when ``log_path`` is set, a file.

    Library code logs through the root logger; this is only called by
    entry points.
    """
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_path:
        log_dir = os.path.dirname(log_path)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)
        handlers.append(logging.FileHandler(log_path))

    logging.basicConfig(
        level=getattr(logging, log_level),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
    # Ultralytics is chatty at INFO
    logging.getLogger("ultralytics").setLevel(logging.WARNING)
