# --- START OF FILE topology.py ---
"""
Topology requests for `zpool create` / `zpool add` and their argument builder.

The pool tool assigns every device argument to the most recently named vdev
type, so argument order is significant. Validation runs completely before any
argument is emitted; a rejected request never yields a partial list.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import constants
from debug_logging import log_debug
from models import DeviceGroup, PoolReport, RedundancyKind
from zfs_errors import (DuplicateDeviceError, EmptyTopologyError, InsufficientDevicesError,
                        InvalidPoolNameError, TopologyError, UnsupportedNestingError)

POOL_NAME_RE = re.compile(r'^[A-Za-z][A-Za-z0-9_\-.:]*$')
# Besides the reserved words themselves, zpool refuses names starting with these
RESERVED_POOL_NAME_PREFIXES = ('mirror', 'raidz', 'draid', 'spare')
# Log, special and dedup sections take naked devices or mirrors only
AUXILIARY_KINDS = (None, RedundancyKind.MIRROR)


@dataclass(frozen=True)
class DeviceGroupSpec:
    """One top-level vdev of a request: a naked leaf (kind None) or a redundancy group."""
    kind: Optional[RedundancyKind]
    devices: Tuple[str, ...]
    index: Optional[int] = None

    def __post_init__(self):
        if isinstance(self.kind, str):
            try:
                object.__setattr__(self, 'kind', RedundancyKind.from_token(self.kind.lower()))
            except ValueError:
                raise TopologyError(f"Unsupported VDEV type '{self.kind}'") from None
        if self.kind is not None and not isinstance(self.kind, RedundancyKind):
            raise TopologyError(f"Unsupported VDEV type '{self.kind}'")
        if isinstance(self.devices, str):
            raise TypeError("devices must be a sequence of paths, not a single string")
        object.__setattr__(self, 'devices', tuple(self.devices))
        for i, dev in enumerate(self.devices):
            if not isinstance(dev, str) or not dev.strip() or dev != dev.strip():
                raise TopologyError(f"Invalid device path at index {i} for '{self.label}': Must be a non-empty string without surrounding blanks.")
        if self.kind is None and len(self.devices) != 1:
            raise TopologyError(f"A naked leaf vdev takes exactly one device, got {len(self.devices)}")

    @classmethod
    def leaf(cls, path: str) -> 'DeviceGroupSpec':
        return cls(None, (path,))

    @classmethod
    def mirror(cls, *paths: str) -> 'DeviceGroupSpec':
        return cls(RedundancyKind.MIRROR, paths)

    @classmethod
    def raidz(cls, level: int, *paths: str) -> 'DeviceGroupSpec':
        if level not in (1, 2, 3):
            raise TopologyError(f"Unsupported RAID-Z level {level!r}")
        return cls(f"raidz{level}", paths)

    @classmethod
    def group(cls, kind: Union[RedundancyKind, str], paths: Sequence[str], index: Optional[int] = None) -> 'DeviceGroupSpec':
        return cls(kind, tuple(paths), index)

    @property
    def is_leaf(self) -> bool:
        return self.kind is None

    @property
    def label(self) -> str:
        if self.kind is None:
            return "disk"
        return f"{self.kind.token}-{self.index}" if self.index is not None else self.kind.token

    def to_args(self) -> List[str]:
        if self.kind is None:
            return list(self.devices)
        return [self.label] + list(self.devices)


def _spec_from_group(group: DeviceGroup) -> DeviceGroupSpec:
    if group.is_leaf:
        return DeviceGroupSpec.leaf(group.devices[0].identifier)
    if not isinstance(group.kind, RedundancyKind):
        raise TopologyError(f"Cannot re-create VDEV '{group.name}': unsupported type '{group.kind}'")
    return DeviceGroupSpec(group.kind, tuple(dev.identifier for dev in group.devices))


@dataclass(frozen=True)
class TopologyRequest:
    name: str
    vdevs: Tuple[DeviceGroupSpec, ...]
    logs: Tuple[DeviceGroupSpec, ...] = ()
    caches: Tuple[str, ...] = ()
    spares: Tuple[str, ...] = ()
    special: Tuple[DeviceGroupSpec, ...] = ()
    dedup: Tuple[DeviceGroupSpec, ...] = ()

    def __post_init__(self):
        for attr in ('vdevs', 'logs', 'caches', 'spares', 'special', 'dedup'):
            object.__setattr__(self, attr, tuple(getattr(self, attr)))

    @classmethod
    def from_report(cls, report: PoolReport) -> 'TopologyRequest':
        """Re-derives a request from a parsed report. Group indices are dropped; the tool assigns them."""
        return cls(
            name=report.name,
            vdevs=tuple(_spec_from_group(g) for g in report.device_forest),
            logs=tuple(_spec_from_group(g) for g in report.log_groups),
            special=tuple(_spec_from_group(g) for g in report.special_groups),
            dedup=tuple(_spec_from_group(g) for g in report.dedup_groups),
            caches=tuple(dev.identifier for dev in report.caches),
            spares=tuple(dev.identifier for dev in report.spares),
        )


# --- Validation ---

def validate_pool_name(name: str):
    """Raises InvalidPoolNameError for names zpool would refuse."""
    if not isinstance(name, str) or not POOL_NAME_RE.match(name):
        raise InvalidPoolNameError(name)
    if name in constants.RESERVED_POOL_NAMES or name.startswith(RESERVED_POOL_NAME_PREFIXES):
        raise InvalidPoolNameError(name)


def _check_duplicates(identifiers: Iterable[str]):
    seen = set()
    for identifier in identifiers:
        if identifier in seen:
            raise DuplicateDeviceError(identifier)
        seen.add(identifier)


def _check_nesting(section, groups: Iterable[DeviceGroupSpec]):
    for spec in groups:
        if spec.kind not in AUXILIARY_KINDS:
            raise UnsupportedNestingError(section, spec.kind.token)


def _check_minimums(groups: Iterable[DeviceGroupSpec]):
    for spec in groups:
        if spec.kind is None:
            continue
        if len(spec.devices) < spec.kind.min_devices:
            raise InsufficientDevicesError(spec.kind.token, spec.kind.min_devices, len(spec.devices))


def _validate(pool_name, forest, logs, caches, spares, special, dedup, allow_empty_forest):
    validate_pool_name(pool_name)
    if not forest:
        if not allow_empty_forest or not (logs or caches or spares or special or dedup):
            raise EmptyTopologyError(f"Cannot build a topology for pool '{pool_name}' with no devices.")

    # Every identifier in emission order, so the first repeat is the one reported
    identifiers = []
    for spec in list(forest) + list(special) + list(dedup) + list(logs):
        identifiers.extend(spec.devices)
    identifiers.extend(caches)
    identifiers.extend(spares)
    _check_duplicates(identifiers)

    for section, groups in ((constants.SPECIAL_SECTION_TOKEN, special),
                            (constants.DEDUP_SECTION_TOKEN, dedup),
                            (constants.LOG_SECTION_TOKEN, logs)):
        _check_nesting(section, groups)

    _check_minimums(list(forest) + list(special) + list(dedup) + list(logs))


# --- Emission ---

def _emit(forest, logs, caches, spares, special, dedup) -> List[str]:
    args = []
    for spec in forest:
        args.extend(spec.to_args())
    for token, groups in ((constants.SPECIAL_SECTION_TOKEN, special),
                          (constants.DEDUP_SECTION_TOKEN, dedup),
                          (constants.LOG_SECTION_TOKEN, logs)):
        if groups:
            args.append(token)
            for spec in groups:
                args.extend(spec.to_args())
    if caches:
        args.append(constants.CACHE_SECTION_TOKEN)
        args.extend(caches)
    if spares:
        args.append(constants.SPARE_SECTION_TOKEN)
        args.extend(spares)
    return args


def build_create_args(request: TopologyRequest) -> List[str]:
    """Vdev arguments for `zpool create`; the caller places them after the pool name."""
    _validate(request.name, request.vdevs, request.logs, request.caches, request.spares,
              request.special, request.dedup, allow_empty_forest=False)
    args = _emit(request.vdevs, request.logs, request.caches, request.spares, request.special, request.dedup)
    log_debug("TOPOLOGY", f"create arguments for '{request.name}': {args}")
    return args


def build_add_args(pool_name: str, forest: Sequence[DeviceGroupSpec], logs: Sequence[DeviceGroupSpec] = (),
                   caches: Sequence[str] = (), spares: Sequence[str] = (),
                   special: Sequence[DeviceGroupSpec] = (), dedup: Sequence[DeviceGroupSpec] = ()) -> List[str]:
    """
    Vdev arguments for `zpool add`; the caller places them after the pool name.

    The data forest may be empty when only log, cache, spare or allocation-class
    devices are added.
    """
    forest, logs, special, dedup = tuple(forest), tuple(logs), tuple(special), tuple(dedup)
    caches, spares = tuple(caches), tuple(spares)
    _validate(pool_name, forest, logs, caches, spares, special, dedup, allow_empty_forest=True)
    args = _emit(forest, logs, caches, spares, special, dedup)
    log_debug("TOPOLOGY", f"add arguments for '{pool_name}': {args}")
    return args

# --- END OF FILE topology.py ---
