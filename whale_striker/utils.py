"""
Common helpers for the whale striker: structured loggers and unit formatting.
"""

import logging
from decimal import Decimal
from typing import Union
from urllib.parse import urlparse

from web3 import Web3


# Logging utilities
def get_logger(name: str, level: Union[str, int] = logging.INFO) -> logging.Logger:
    """
    Get a module logger with consistent formatting.

    If the root logger is already configured (see ``logging_config.setup``),
    records propagate there and no handler is attached here.

    Args:
        name: Logger name (typically __name__)
        level: Logging level

    Returns:
        Configured logger with structured output
    """
    logger = logging.getLogger(name)

    if logger.level == logging.NOTSET:
        logger.setLevel(level)

    if not logger.handlers and not logging.getLogger().handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
                datefmt="%H:%M:%S",
            )
        )
        logger.addHandler(handler)

    return logger


# Unit helpers
def wei_to_ether(amount_wei: int) -> Decimal:
    """Convert wei to ether as an exact Decimal."""
    return Decimal(Web3.from_wei(amount_wei, "ether"))


def format_ether(amount_wei: int, places: int = 6) -> str:
    """Format a signed wei amount as ether for log lines."""
    sign = "-" if amount_wei < 0 else ""
    value = wei_to_ether(abs(amount_wei))
    return f"{sign}{value:.{places}f} ETH"


def mask_url(url: str) -> str:
    """Hide API keys embedded in RPC endpoints."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return "<invalid-url>"
    if not parsed.netloc:
        return "<invalid-url>"
    return f"{parsed.scheme}://{parsed.netloc}/***"
