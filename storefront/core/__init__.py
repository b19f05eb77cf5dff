"""
Core module initialization.
Exports configuration and logging utilities.
"""

from storefront.core.config import (
    AccessGateMode,
    EnvironmentMode,
    Settings,
    TransitionMode,
    get_logger,
    get_settings,
    setup_logging,
)

__all__ = [
    "get_settings",
    "setup_logging",
    "get_logger",
    "Settings",
    "EnvironmentMode",
    "AccessGateMode",
    "TransitionMode",
]
