from swapwatch.internal.logger.logger import (
    LogLevel,
    init_logging,
    debug,
    info,
    warn,
    error,
    green_text,
    red_text,
)

__all__ = [
    "LogLevel",
    "init_logging",
    "debug",
    "info",
    "warn",
    "error",
    "green_text",
    "red_text",
]
