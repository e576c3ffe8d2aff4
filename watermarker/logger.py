"""Console logging setup shared by the CLI and scripts."""

from __future__ import annotations

import logging
import sys


def setup_logger(name: str = "watermarker", level: int = logging.INFO) -> logging.Logger:
    """Attach a stdout handler to logger `name` (once) and set its level.

    Doxygen:
    - @param name: Logger name, usually the top-level package.
    - @param level: Logging level for logger and handler.
    - @return: Configured logger.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Prevent duplicate handlers
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(console_handler)
    return logger
