# Path configuration module for ZpoolKit
# This module centralizes all path logic for the package
#
# Configuration and the optional command log live under the user's home
# directory; executables are resolved through PATH first, then through the
# usual sbin locations of each platform.

import os
import platform
import shutil
from pathlib import Path

# User configuration paths (per-user, in home directory)
USER_CONFIG_DIR = Path.home() / ".config" / "ZpoolKit"
USER_CONFIG_FILE_PATH = str(USER_CONFIG_DIR / "config.json")

# Command log (appended to by zfs_manager_core when command logging is enabled)
COMMAND_LOG_FILE_NAME = "zpoolkit-commands.log"
COMMAND_LOG_FILE_PATH = str(USER_CONFIG_DIR / COMMAND_LOG_FILE_NAME)


def find_executable(name: str, additional_paths: list[str] | None = None) -> str | None:
    """Find an executable by name.

    First tries shutil.which which searches PATH, then falls back to searching
    common platform-specific directories plus any additional_paths provided.

    Args:
        name: Executable base name to find
        additional_paths: Optional list of paths to search before the platform defaults

    Returns:
        Absolute path if found, otherwise None
    """
    path = shutil.which(name)
    if path:
        return path

    # zpool/zfs usually live in sbin, which is often missing from a non-root PATH
    system = platform.system()
    if system == 'Linux':
        base_paths = ['/usr/sbin', '/sbin', '/usr/local/sbin', '/usr/bin', '/bin']
    elif system == 'Darwin':
        base_paths = ['/usr/local/zfs/bin', '/usr/local/bin', '/usr/local/sbin', '/usr/sbin', '/sbin']
    elif 'BSD' in system:
        base_paths = ['/sbin', '/usr/sbin', '/usr/local/sbin']
    else:
        base_paths = ['/usr/sbin', '/sbin', '/usr/local/sbin']

    if additional_paths:
        base_paths = list(additional_paths) + base_paths

    for p in base_paths:
        candidate = os.path.join(p, name)
        if os.path.exists(candidate) and os.access(candidate, os.X_OK):
            return candidate  # earlier entries win
    return None
