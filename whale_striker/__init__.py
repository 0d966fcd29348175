"""
Whale Striker.

Watches a pool for whale swaps and fires liquidity-guarded flash-loan
strikes through a target contract when a dry-run shows net profit.
"""

PROJECT_NAME = "whale-striker"
VERSION = "1.0.0"

from whale_striker.config import ConfigError, StrikerConfig, load_config
from whale_striker.monitor import StrikeMonitor, StrikePipeline

__all__ = [
    "PROJECT_NAME",
    "VERSION",
    "ConfigError",
    "StrikerConfig",
    "load_config",
    "StrikeMonitor",
    "StrikePipeline",
]
