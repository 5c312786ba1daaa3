# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

#src/nodecfg/logging/log.py

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path

_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"


def init_logging(
    *,
    base_dir: Path | None = None,
    name: str = "nodecfg",
    verbose: bool = False,
) -> tuple[logging.Logger, Path]:
    """
    Send *name* logs to a per-run DEBUG file and to the console.

    The console shows INFO unless *verbose*. Calling again replaces the
    handlers of the previous run.
    """
    base_dir = base_dir or Path.home() / ".nodecfg" / "logs"
    base_dir.mkdir(parents=True, exist_ok=True)
    ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    log_path = base_dir / f"{name}-{ts}-{os.getpid()}.log"

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    for h in list(logger.handlers):
        h.close()
    logger.handlers.clear()
    logger.propagate = False

    formatter = logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    for handler, level in (
        (logging.FileHandler(log_path), logging.DEBUG),
        (logging.StreamHandler(), logging.DEBUG if verbose else logging.INFO),
    ):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.debug("log_file=%s", log_path)
    return logger, log_path
