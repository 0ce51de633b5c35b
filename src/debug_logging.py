"""
Unified Logging Utility for ZpoolKit

Provides one logging entry point for every module:
- Writes to stderr as "PREFIX [LEVEL]: message"
- Filters DEBUG-level messages unless debug mode is on
- Debug mode comes from set_debug_mode() or the 'debug' config setting

Usage:
    from debug_logging import log, log_debug, set_debug_mode

Modules call:
    log("ZPOOL_PARSER", "message")                    # INFO level (always logged)
    log("ZPOOL_PARSER", "verbose details", "DEBUG")   # Only logged in debug mode
    log("CORE", "error occurred", "ERROR")            # Always logged
"""

import sys

# Global state
_debug_enabled = False


def set_debug_mode(enabled: bool) -> None:
    """Enable or disable debug logging globally."""
    global _debug_enabled
    _debug_enabled = bool(enabled)


def is_debug_enabled() -> bool:
    """Check if debug mode is enabled."""
    return _debug_enabled


def configure_from_settings() -> None:
    """Apply the 'debug' setting from the user config file."""
    import config_manager
    import constants
    set_debug_mode(config_manager.get_bool_setting("debug", constants.DEFAULT_DEBUG_ENABLED))


def log(prefix: str, message: str, level: str = "INFO") -> None:
    """
    Log a message with the specified level.

    Args:
        prefix: Module prefix (e.g., "ZPOOL_PARSER", "TOPOLOGY", "CORE")
        message: The log message
        level: Log level - DEBUG, INFO, WARNING, ERROR, CRITICAL
               DEBUG messages are only shown when debug mode is enabled.
    """
    if level == "DEBUG" and not _debug_enabled:
        return

    txt = f"{prefix} [{level}]: {message}" if prefix else f"[{level}]: {message}"
    print(txt, file=sys.stderr)


# Convenience aliases for cleaner code
def log_debug(prefix: str, message: str) -> None:
    """Shortcut for DEBUG level logging."""
    log(prefix, message, "DEBUG")

def log_info(prefix: str, message: str) -> None:
    """Shortcut for INFO level logging."""
    log(prefix, message, "INFO")

def log_warning(prefix: str, message: str) -> None:
    """Shortcut for WARNING level logging."""
    log(prefix, message, "WARNING")

def log_error(prefix: str, message: str) -> None:
    """Shortcut for ERROR level logging."""
    log(prefix, message, "ERROR")
