"""Logging setup for the command-line tool."""

import logging
import sys


# Libraries that log every request or event loop detail at INFO/DEBUG
NOISY_LOGGERS = ("asyncio", "httpx", "httpcore")


def setup_logging(level: str = "INFO", verbose: bool = False):
    """Configure the root logger.

    Records go to stderr so that prompts and tables on stdout stay
    readable. ``verbose`` forces DEBUG regardless of ``level``.
    """
    log_level = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
