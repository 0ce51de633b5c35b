# --- START OF FILE src/version.py ---
"""
Single source of truth for ZpoolKit version and package information.
"""

__version__ = "0.4.0"
__app_name__ = "ZpoolKit"
__app_description__ = "Typed parsing of zpool/zfs tool output and topology-to-argument building for ZFS pools."
__license__ = "GNU General Public License v3.0"


def get_version_info():
    """Return a dictionary with version and package information."""
    return {
        "version": __version__,
        "app_name": __app_name__,
        "description": __app_description__,
        "license": __license__,
    }

# --- END OF FILE src/version.py ---
