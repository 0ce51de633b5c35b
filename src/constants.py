# --- START OF FILE constants.py ---

"""
Central location for constants used across the parser, topology and command modules.
"""

# --- zpool status grammar ---
# Field labels recognised at the start of a header line (leading whitespace allowed)
POOL_FIELD_LABELS = (
    'pool', 'id', 'state', 'status', 'action', 'comment', 'see', 'scan', 'config', 'errors'
)
# Labels whose value may wrap onto indented continuation lines
MULTILINE_LABELS = ('status', 'action', 'scan', 'errors')

# A wrapped message is its label line plus at most this many continuation lines.
# Further indented lines are kept as advisory text on the report.
MAX_MESSAGE_CONTINUATION_LINES = 5
# Continuation lines are indented by a tab or at least this many spaces
CONTINUATION_INDENT_WIDTH = 8
TAB_WIDTH = 8

CONFIG_TABLE_HEADER = ('NAME', 'STATE', 'READ', 'WRITE', 'CKSUM')
# Subsection labels inside the config table
CONFIG_SUBSECTION_LABELS = ('logs', 'special', 'dedup', 'cache', 'spares')

NO_KNOWN_DATA_ERRORS = "No known data errors"
# Printed instead of a report when there is nothing to show or import
NO_POOLS_AVAILABLE = "no pools available"

# --- Topology ---
# Minimum member devices per redundancy token when building create/add arguments
MIN_DEVICES = {
    'mirror': 2,
    'raidz1': 2,
    'raidz2': 3,
    'raidz3': 4,
}
# Section tokens emitted after the data vdevs, in this order
SPECIAL_SECTION_TOKEN = 'special'
DEDUP_SECTION_TOKEN = 'dedup'
LOG_SECTION_TOKEN = 'log'
CACHE_SECTION_TOKEN = 'cache'
SPARE_SECTION_TOKEN = 'spare'

# --- zpool create options ---
# Keys passed with -O (root filesystem properties); everything in POOL_CREATE_POOL_PROPS goes with -o
POOL_CREATE_FS_PROPS = [
    'mountpoint', 'encryption', 'keyformat', 'keylocation', 'pbkdf2iters', 'compression',
    'atime', 'relatime', 'readonly', 'dedup', 'sync', 'logbias', 'recordsize',
    'canmount', 'xattr', 'acltype',
]
POOL_CREATE_POOL_PROPS = ['altroot', 'ashift', 'autoexpand', 'autotrim', 'cachefile', 'comment', 'failmode']

# Words the pool tool refuses as pool names
RESERVED_POOL_NAMES = (
    'mirror', 'raidz', 'raidz1', 'raidz2', 'raidz3', 'draid', 'spare', 'log', 'cache', 'special', 'dedup'
)

# --- zfs list ---
ZFS_LIST_NAME_PROPS = ['name']
ZFS_LIST_TYPED_PROPS = ['type', 'name']
ZFS_LIST_ALL_TYPES = 'filesystem,volume,snapshot,bookmark'

# --- Default Settings ---
# Fallback values used when config file doesn't have the setting or value is invalid
DEFAULT_COMMAND_TIMEOUT = 120       # Timeout for zpool/zfs invocations in seconds
DEFAULT_LOGGING_ENABLED = False     # Append every executed command to the command log
DEFAULT_STRICT_HEALTH_STATES = True # Unknown state tokens raise instead of being kept
DEFAULT_DEBUG_ENABLED = False

# --- END OF FILE constants.py ---
