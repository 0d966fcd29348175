"""
Logging configuration for the striker process.

Usage:
    import logging_config
    logging_config.setup()
"""

import logging
import sys


def setup(level=logging.INFO):
    """
    Configure logging for cleaner, more readable output.

    - Uses shorter timestamp format (HH:MM:SS instead of full datetime)
    - Quiets the websocket and web3 transport chatter
    """

    root = logging.getLogger()
    root.setLevel(level)

    # Clear existing handlers
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)

    # Minimal format: time + level + message
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-7s | %(message)s", datefmt="%H:%M:%S"
    )
    console.setFormatter(formatter)
    root.addHandler(console)

    # Suppress noisy loggers
    logging.getLogger("websockets").setLevel(logging.WARNING)
    logging.getLogger("web3").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    logging.getLogger("__main__").setLevel(level)
    logging.getLogger("whale_striker").setLevel(level)

    # Module loggers created by get_logger() before setup() route to root
    for name in list(logging.root.manager.loggerDict):
        if name.startswith("whale_striker."):
            module_logger = logging.getLogger(name)
            module_logger.handlers.clear()
            module_logger.propagate = True
            module_logger.setLevel(level)


def setup_minimal():
    """
    Only warnings and errors.
    Good for production or when you only care about problems.
    """
    setup(level=logging.WARNING)


def setup_debug():
    """
    Verbose logging for debugging.
    Shows every skipped simulation and websocket frame.
    """
    setup(level=logging.DEBUG)
    logging.getLogger("websockets").setLevel(logging.INFO)
