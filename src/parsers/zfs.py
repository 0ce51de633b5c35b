# --- START OF FILE parsers/zfs.py ---
"""
Parsers for `zfs` command outputs: dataset names, `zfs list -H -o name`,
`zfs list -H -o type,name` and the "dataset does not exist" error message.
"""

import re
from typing import List, Optional, Tuple

from debug_logging import log_debug
from models import DatasetName, DatasetType
from parsers import lexical
from zfs_errors import MalformedOutputError, UnknownStateError

# segment(/segment)* with an optional terminal @snapshot or #bookmark
DATASET_NAME = (
    r'(?P<path>' + lexical.SEGMENT + r'(?:/' + lexical.SEGMENT + r')*)'
    r'(?:(?P<marker>[@#])(?P<suffix>' + lexical.SEGMENT + r'))?'
)
DATASET_NAME_RE = re.compile(r'^' + DATASET_NAME + r'$')
TYPED_DATASET_RE = re.compile(
    r'^' + lexical.WS + r'*(?P<type>[a-z]+)' + lexical.WS_RUN + DATASET_NAME + lexical.WS + r'*$'
)
NOT_FOUND_RE = re.compile(r"^cannot open '(?P<name>[^']*)': dataset does not exist$")

# Which marker each dataset type must carry
_TYPE_MARKERS = {
    DatasetType.FILESYSTEM: None,
    DatasetType.VOLUME: None,
    DatasetType.SNAPSHOT: '@',
    DatasetType.BOOKMARK: '#',
}


def _name_from_match(m) -> DatasetName:
    segments = tuple(m.group('path').split('/'))
    marker, suffix = m.group('marker'), m.group('suffix')
    if marker == '@':
        return DatasetName(segments, snapshot=suffix)
    if marker == '#':
        return DatasetName(segments, bookmark=suffix)
    return DatasetName(segments)


def parse_dataset_name(text: str) -> DatasetName:
    """Parses a single dataset name such as 'tank/home@daily'. Raises MalformedOutputError."""
    m = DATASET_NAME_RE.match(text.strip())
    if not m:
        raise MalformedOutputError("Invalid dataset name", raw_line=text)
    return _name_from_match(m)


def parse_dataset_list(text: str) -> List[DatasetName]:
    """Parses `zfs list -H -o name` output, one dataset per line."""
    names = []
    for line_num, line in enumerate(text.split('\n'), 1):
        if lexical.is_blank(line):
            continue
        m = DATASET_NAME_RE.match(line.strip())
        if not m:
            raise MalformedOutputError("Invalid dataset name in listing", raw_line=line, line_number=line_num)
        names.append(_name_from_match(m))
    return names


def parse_typed_dataset_list(text: str) -> List[Tuple[DatasetType, DatasetName]]:
    """
    Parses `zfs list -H -o type,name` output.

    Raises UnknownStateError for a type token outside filesystem/snapshot/volume/bookmark,
    and MalformedOutputError when the name does not fit its type (a snapshot without '@').
    """
    entries = []
    for line_num, line in enumerate(text.split('\n'), 1):
        if lexical.is_blank(line):
            continue
        m = TYPED_DATASET_RE.match(line)
        if not m:
            raise MalformedOutputError("Invalid typed dataset line", raw_line=line, line_number=line_num)
        try:
            dataset_type = DatasetType.from_token(m.group('type'))
        except UnknownStateError as e:
            raise UnknownStateError(e.token, raw_line=line, line_number=line_num) from None
        if _TYPE_MARKERS[dataset_type] != m.group('marker'):
            raise MalformedOutputError(f"Dataset name does not match its type '{dataset_type}'",
                                       raw_line=line, line_number=line_num)
        entries.append((dataset_type, _name_from_match(m)))
    return entries


def try_parse_not_found_error(text: str) -> Optional[DatasetName]:
    """Returns the dataset named by "cannot open '<name>': dataset does not exist", else None."""
    if not text:
        return None
    m = NOT_FOUND_RE.match(text.strip())
    if not m:
        return None
    name_match = DATASET_NAME_RE.match(m.group('name'))
    if not name_match:
        log_debug("ZFS_PARSER", f"Not-found message names an unparsable dataset: {m.group('name')!r}")
        return None
    return _name_from_match(name_match)

# --- END OF FILE parsers/zfs.py ---
