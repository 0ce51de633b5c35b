# --- START OF FILE models.py ---

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union

import constants
from parsers import lexical
from zfs_errors import UnknownStateError


@dataclass(frozen=True)
class UnrecognizedState:
    """A state token the parser saw but does not know (kept when strict_health_states is off)."""
    token: str

    def __str__(self):
        return self.token


@dataclass(frozen=True)
class UnrecognizedKind:
    """A group token such as 'draid2:4d:1s:8c' that has no RedundancyKind."""
    token: str

    def __str__(self):
        return self.token


class HealthState(Enum):
    ONLINE = "ONLINE"
    DEGRADED = "DEGRADED"
    FAULTED = "FAULTED"
    OFFLINE = "OFFLINE"
    UNAVAIL = "UNAVAIL"
    REMOVED = "REMOVED"
    SUSPENDED = "SUSPENDED"
    # Only reported for hot spares
    AVAIL = "AVAIL"
    INUSE = "INUSE"

    def __str__(self):
        return self.value

    @property
    def is_device_only(self) -> bool:
        return self in (HealthState.AVAIL, HealthState.INUSE)

    @classmethod
    def from_token(cls, token: str, strict: bool = True) -> Union['HealthState', UnrecognizedState]:
        """Maps a state token to a member; unknown tokens raise, or are wrapped when strict is False."""
        try:
            return cls(token)
        except ValueError:
            if strict:
                raise UnknownStateError(token)
            return UnrecognizedState(token)


class RedundancyKind(Enum):
    MIRROR = "mirror"
    RAIDZ1 = "raidz1"
    RAIDZ2 = "raidz2"
    RAIDZ3 = "raidz3"

    def __str__(self):
        return self.value

    @property
    def token(self) -> str:
        return self.value

    @property
    def min_devices(self) -> int:
        return constants.MIN_DEVICES[self.value]

    @classmethod
    def from_token(cls, token: str) -> 'RedundancyKind':
        """Raises ValueError for tokens outside the closed set."""
        if token == 'raidz': # pre-0.8 spelling of raidz1
            return cls.RAIDZ1
        return cls(token)


HealthLike = Union[HealthState, UnrecognizedState]
KindLike = Union[RedundancyKind, UnrecognizedKind]


@dataclass(frozen=True)
class ErrorCounts:
    read: int = 0
    write: int = 0
    checksum: int = 0

    @property
    def total(self) -> int:
        return self.read + self.write + self.checksum

    @property
    def has_errors(self) -> bool:
        return self.total > 0


@dataclass(frozen=True)
class Device:
    identifier: str # path (/dev/da0) or bare name (sda, gpt/disk1)
    state: HealthLike
    error_counts: Optional[ErrorCounts] = None # spares print no counters
    reason: Optional[str] = None # e.g. "was /dev/da1", "too many errors"

    @property
    def is_path(self) -> bool:
        return self.identifier.startswith('/')


@dataclass(frozen=True)
class DeviceGroup:
    """A top-level vdev: a naked leaf (kind is None) or a redundancy group with ordered members."""
    kind: Optional[KindLike]
    devices: Tuple[Device, ...]
    index: Optional[int] = None # the N in mirror-N
    state: Optional[HealthLike] = None
    error_counts: Optional[ErrorCounts] = None
    reason: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'devices', tuple(self.devices))
        if self.kind is None and len(self.devices) != 1:
            raise ValueError(f"A leaf group holds exactly one device, got {len(self.devices)}")
        if not self.devices:
            raise ValueError(f"Redundancy group '{self.kind}' must contain at least one device")

    @classmethod
    def leaf(cls, device: Device) -> 'DeviceGroup':
        return cls(kind=None, devices=(device,), state=device.state,
                   error_counts=device.error_counts, reason=device.reason)

    @classmethod
    def redundant(cls, kind: KindLike, devices, index: Optional[int] = None, state: Optional[HealthLike] = None,
                  error_counts: Optional[ErrorCounts] = None, reason: Optional[str] = None) -> 'DeviceGroup':
        return cls(kind=kind, devices=tuple(devices), index=index, state=state,
                   error_counts=error_counts, reason=reason)

    @property
    def is_leaf(self) -> bool:
        return self.kind is None

    @property
    def name(self) -> str:
        """The label zpool prints for this vdev."""
        if self.is_leaf:
            return self.devices[0].identifier
        return f"{self.kind}-{self.index}" if self.index is not None else str(self.kind)


@dataclass(frozen=True)
class PoolReport:
    name: str
    state: HealthLike
    device_forest: Tuple[DeviceGroup, ...]
    id: Optional[int] = None # only printed by 'zpool import'
    status_message: Optional[str] = None
    action_message: Optional[str] = None
    comment: Optional[str] = None
    see: Optional[str] = None
    scan: Optional[str] = None
    log_groups: Tuple[DeviceGroup, ...] = ()
    special_groups: Tuple[DeviceGroup, ...] = ()
    dedup_groups: Tuple[DeviceGroup, ...] = ()
    caches: Tuple[Device, ...] = ()
    spares: Tuple[Device, ...] = ()
    error_summary: Optional[str] = None
    # Counters and reason printed on the pool's own row of the config table
    error_counts: Optional[ErrorCounts] = None
    reason: Optional[str] = None
    # Lines the grammar did not recognise, kept verbatim in input order
    advisory: Tuple[str, ...] = field(default=(), compare=False)

    def __post_init__(self):
        for attr in ('device_forest', 'log_groups', 'special_groups', 'dedup_groups', 'caches', 'spares', 'advisory'):
            object.__setattr__(self, attr, tuple(getattr(self, attr)))
        if not self.device_forest:
            raise ValueError(f"Pool '{self.name}' must report at least one device group")

    @property
    def logs(self) -> Tuple[Device, ...]:
        return tuple(dev for group in self.log_groups for dev in group.devices)

    @property
    def devices(self) -> Tuple[Device, ...]:
        """Every leaf device of the data vdevs, in table order."""
        return tuple(dev for group in self.device_forest for dev in group.devices)

    @property
    def has_known_errors(self) -> bool:
        return self.error_summary is not None and self.error_summary != constants.NO_KNOWN_DATA_ERRORS


class DatasetType(Enum):
    FILESYSTEM = "filesystem"
    SNAPSHOT = "snapshot"
    VOLUME = "volume"
    BOOKMARK = "bookmark"

    def __str__(self):
        return self.value

    @classmethod
    def from_token(cls, token: str) -> 'DatasetType':
        try:
            return cls(token)
        except ValueError:
            raise UnknownStateError(token)


@dataclass(frozen=True)
class DatasetName:
    segments: Tuple[str, ...]
    snapshot: Optional[str] = None
    bookmark: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'segments', tuple(self.segments))
        if not self.segments:
            raise ValueError("Dataset name needs at least one segment")
        for part in self.segments + tuple(p for p in (self.snapshot, self.bookmark) if p is not None):
            if not lexical.SEGMENT_RE.fullmatch(part):
                raise ValueError(f"Invalid dataset name component: {part!r}")
        if self.snapshot is not None and self.bookmark is not None:
            raise ValueError("Dataset name cannot carry both a snapshot and a bookmark")

    def __str__(self):
        text = '/'.join(self.segments)
        if self.snapshot is not None:
            return f"{text}@{self.snapshot}"
        if self.bookmark is not None:
            return f"{text}#{self.bookmark}"
        return text

    @classmethod
    def parse(cls, text: str) -> 'DatasetName':
        from parsers.zfs import parse_dataset_name
        return parse_dataset_name(text)

    @property
    def pool(self) -> str:
        return self.segments[0]

    @property
    def filesystem_name(self) -> str:
        """The name without any @snapshot / #bookmark suffix."""
        return '/'.join(self.segments)

    @property
    def parent(self) -> Optional['DatasetName']:
        """The containing dataset: a snapshot's filesystem, or the name one segment up."""
        if self.snapshot is not None or self.bookmark is not None:
            return DatasetName(self.segments)
        if len(self.segments) == 1:
            return None
        return DatasetName(self.segments[:-1])

    @property
    def is_snapshot(self) -> bool:
        return self.snapshot is not None

    @property
    def is_bookmark(self) -> bool:
        return self.bookmark is not None

# --- END OF FILE models.py ---
