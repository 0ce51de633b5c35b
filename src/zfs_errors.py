# --- START OF FILE zfs_errors.py ---

"""
Exception hierarchy shared by the parsers, the topology builder and the command layer.
"""

import shlex


class ZfsError(Exception):
    """Base class for ZFS related errors."""
    pass


# --- Parsing ---
class ZfsParsingError(ZfsError):
    """Custom exception for errors parsing ZFS command output."""
    def __init__(self, message, raw_line=None, line_number=None):
        super().__init__(message)
        self.raw_line = raw_line
        self.line_number = line_number

    def __str__(self):
        details = []
        if self.line_number is not None: details.append(f"Line {self.line_number}")
        if self.raw_line is not None:
            details.append(f"Problematic Line: '{self.raw_line[:100]}{'...' if len(self.raw_line) > 100 else ''}'")
        details_str = " (" + ", ".join(details) + ")" if details else ""
        return f"{super().__str__()}{details_str}"

class MalformedOutputError(ZfsParsingError):
    """A structurally required element is missing or unrecognizable."""
    pass

class UnknownStateError(ZfsParsingError):
    """A health-state or dataset-type token outside the recognised set."""
    def __init__(self, token, raw_line=None, line_number=None):
        super().__init__(f"Unknown state token '{token}'", raw_line, line_number)
        self.token = token


# --- Topology validation ---
class TopologyError(ZfsError):
    """Base class for topology requests the pool tool would reject or misread."""
    pass

class InsufficientDevicesError(TopologyError):
    def __init__(self, kind, required, got):
        super().__init__(f"VDEV type '{kind}' requires at least {required} device(s), but only {got} were given.")
        self.kind = kind
        self.required = required
        self.got = got

class DuplicateDeviceError(TopologyError):
    def __init__(self, identifier):
        super().__init__(f"Device '{identifier}' appears more than once in the topology.")
        self.identifier = identifier

class EmptyTopologyError(TopologyError):
    def __init__(self, message="Topology contains no devices."):
        super().__init__(message)

class InvalidPoolNameError(TopologyError):
    def __init__(self, name):
        super().__init__(f"Invalid pool name: {name!r}")
        self.name = name

class UnsupportedNestingError(TopologyError):
    """A redundancy kind the pool tool refuses inside a log, special or dedup section."""
    def __init__(self, section, kind):
        super().__init__(f"VDEV type '{kind}' is not allowed in the '{section}' section; use single devices or mirrors.")
        self.section = section
        self.kind = kind


# --- Command execution ---
class ZfsCommandError(ZfsError):
    """Custom exception for ZFS command execution errors."""
    def __init__(self, message, command_parts=None, stderr=None, returncode=None):
        super().__init__(message)
        self.command_parts = command_parts
        self.stderr = stderr
        self.returncode = returncode

    def __str__(self):
        details = []
        if self.command_parts:
            try: cmd_str = shlex.join(self.command_parts); details.append(f"Command: {cmd_str}")
            except TypeError: details.append(f"Command: {self.command_parts}")
        if self.returncode is not None: details.append(f"Return Code: {self.returncode}")
        if self.stderr:
            stderr_short = self.stderr.strip()
            if len(stderr_short) > 300: stderr_short = stderr_short[:300] + "..."
            details.append(f"Stderr: {stderr_short}")
        details_str = " (" + ", ".join(details) + ")" if details else ""
        return f"{super().__str__()}{details_str}"

class DatasetNotFoundError(ZfsCommandError):
    """The zfs tool reported "cannot open '<name>': dataset does not exist"."""
    def __init__(self, dataset, command_parts=None, stderr=None, returncode=None):
        super().__init__(f"Dataset '{dataset}' does not exist.", command_parts, stderr, returncode)
        self.dataset = dataset

# --- END OF FILE zfs_errors.py ---
