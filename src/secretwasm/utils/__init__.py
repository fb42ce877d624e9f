"""
secretwasm SDK utilities.
"""

from secretwasm.utils.logging import (
    configure_logging,
    disable_logging,
    enable_debug,
    get_logger,
    set_level,
)
from secretwasm.utils.retry import NO_RETRY, RetryConfig, calculate_delay, retry_async

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "set_level",
    "disable_logging",
    "enable_debug",
    # Retry
    "RetryConfig",
    "NO_RETRY",
    "calculate_delay",
    "retry_async",
]
