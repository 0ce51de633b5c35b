# --- START OF FILE parsers/zpool.py ---
"""
Parser for `zpool status` and `zpool import` text output.

The report is read top to bottom as a sequence of labelled header fields
(pool, id, state, status, action, comment, see, scan), the mandatory
`config:` section holding the device table, and an optional `errors:`
trailer. Each line is matched against one production from parsers.lexical;
the device table is then folded into DeviceGroups by a small state machine,
since group membership is positional rather than bracketed.
"""

import re
from typing import List, Optional

import config_manager
import constants
import utils
from debug_logging import log_debug
from models import (Device, DeviceGroup, ErrorCounts, HealthState, PoolReport,
                    RedundancyKind, UnrecognizedKind)
from parsers import lexical
from zfs_errors import MalformedOutputError, UnknownStateError

# identifier  STATE  [READ WRITE CKSUM]  [reason]
DEVICE_LINE_RE = re.compile(
    r'^(?P<indent>' + lexical.WS + r'*)(?P<name>' + lexical.PATH + r')'
    + lexical.WS_RUN + r'(?P<state>[A-Z][A-Z_]*)'
    + r'(?:' + lexical.WS_RUN + r'(?P<read>' + lexical.COUNT + r')'
    + lexical.WS_RUN + r'(?P<write>' + lexical.COUNT + r')'
    + lexical.WS_RUN + r'(?P<cksum>' + lexical.COUNT + r'))?'
    + r'(?:' + lexical.WS_RUN + r'(?P<reason>' + lexical.TEXT + r'))?'
    + lexical.WS + r'*$'
)
# mirror-0, raidz2-1, raidz, draid2:4d:1s:8c-0
GROUP_NAME_RE = re.compile(
    r'^(?P<kind>mirror|raidz[123]?|draid[123]?(?::[0-9a-z]+)*)(?:-(?P<index>[0-9]+))?$'
)
# spare-0 (hot spare in use), replacing-0 (disk being replaced)
TRANSIENT_GROUP_RE = re.compile(r'^(?P<kind>spare|replacing)-(?P<index>[0-9]+)$')
TABLE_HEADER_RE = re.compile(
    r'^' + lexical.WS + r'*' + lexical.WS_RUN.join(constants.CONFIG_TABLE_HEADER) + lexical.WS + r'*$'
)
SUBSECTION_RE = re.compile(
    r'^' + lexical.WS + r'*(?P<label>' + '|'.join(constants.CONFIG_SUBSECTION_LABELS) + r')' + lexical.WS + r'*$'
)


class _DeviceLine:
    """One tokenized row of the config table."""
    __slots__ = ('raw', 'line_number', 'indent', 'name', 'state', 'counts', 'reason')

    def __init__(self, match, raw, line_number):
        self.raw = raw
        self.line_number = line_number
        self.indent = lexical.indent_width(match.group('indent'))
        self.name = match.group('name')
        self.state = match.group('state')
        self.counts = (match.group('read'), match.group('write'), match.group('cksum'))
        reason = match.group('reason')
        self.reason = reason.strip() if reason else None


class _GroupBuilder:
    """Collects the member rows of a redundancy group while the table is folded."""

    def __init__(self, line: _DeviceLine, kind, index):
        self.line = line
        self.kind = kind
        self.index = index
        self.members = []

    def build(self, parser) -> DeviceGroup:
        if not self.members:
            raise MalformedOutputError(f"Redundancy group '{self.line.name}' has no member devices",
                                       raw_line=self.line.raw, line_number=self.line.line_number)
        return DeviceGroup.redundant(
            self.kind, self.members, index=self.index,
            state=parser._state(self.line.state, self.line.raw, self.line.line_number),
            error_counts=parser._counts(self.line),
            reason=self.line.reason,
        )


class _ReportParser:
    """Parses the lines of exactly one report block. One instance per block."""

    def __init__(self, lines: List[str], first_line_number: int, strict_states: bool):
        self._lines = lines
        self._first_line_number = first_line_number
        self._strict_states = strict_states
        self._pos = 0
        self._advisory = []

    # --- cursor helpers ---
    def _at_end(self) -> bool:
        return self._pos >= len(self._lines)

    def _peek(self) -> str:
        return self._lines[self._pos]

    def _line_number(self) -> int:
        return self._first_line_number + self._pos

    def _skip_blank(self):
        while not self._at_end() and lexical.is_blank(self._peek()):
            self._pos += 1

    def _malformed(self, message):
        if self._at_end():
            return MalformedOutputError(message, raw_line=None, line_number=self._line_number())
        return MalformedOutputError(message, raw_line=self._peek(), line_number=self._line_number())

    def _keep_advisory(self, line):
        log_debug("ZPOOL_PARSER", f"Keeping unrecognized line as advisory text: {line.strip()!r}")
        self._advisory.append(line.strip())

    # --- token conversion ---
    def _state(self, token, raw_line, line_number):
        try:
            state = HealthState.from_token(token, strict=self._strict_states)
        except UnknownStateError:
            raise UnknownStateError(token, raw_line=raw_line, line_number=line_number) from None
        if not isinstance(state, HealthState):
            log_debug("ZPOOL_PARSER", f"Unrecognized state token '{token}' on line {line_number}")
        return state

    def _counts(self, line: _DeviceLine) -> Optional[ErrorCounts]:
        if line.counts[0] is None:
            return None
        try:
            return ErrorCounts(*(utils.parse_count(c) for c in line.counts))
        except ValueError as e:
            raise MalformedOutputError(f"Invalid error counter: {e}", raw_line=line.raw,
                                       line_number=line.line_number) from None

    def _device(self, line: _DeviceLine) -> Device:
        return Device(
            identifier=line.name,
            state=self._state(line.state, line.raw, line.line_number),
            error_counts=self._counts(line),
            reason=line.reason,
        )

    # --- productions ---
    def _read_message(self, first_value: str) -> Optional[str]:
        """Label text plus at most MAX_MESSAGE_CONTINUATION_LINES indented, unlabelled lines."""
        parts = [first_value] if first_value else []
        continuation_count = 0
        while not self._at_end() and continuation_count < constants.MAX_MESSAGE_CONTINUATION_LINES:
            line = self._peek()
            if lexical.is_blank(line) or lexical.match_field(line):
                break
            m = lexical.CONTINUATION_LINE_RE.match(line)
            if not m:
                break
            parts.append(m.group('text').strip())
            continuation_count += 1
            self._pos += 1
        return '\n'.join(parts) if parts else None

    def parse(self) -> PoolReport:
        self._skip_blank()
        field = None if self._at_end() else lexical.match_field(self._peek())
        if not field or field[0] != 'pool':
            raise self._malformed("Report does not start with 'pool:'")
        name = field[1]
        if not lexical.NAME_RE.fullmatch(name):
            raise self._malformed(f"Invalid pool name {name!r}")
        self._pos += 1

        values = {}
        seen_config = False
        while not self._at_end():
            line = self._peek()
            if lexical.is_blank(line):
                self._pos += 1
                continue
            field = lexical.match_field(line)
            if field is None:
                self._keep_advisory(line)
                self._pos += 1
                continue
            label, value = field
            if label == 'config':
                self._pos += 1
                seen_config = True
                break
            if label in ('pool', 'errors'):
                raise self._malformed(f"Unexpected '{label}:' before 'config:'")
            if label in values:
                raise self._malformed(f"Duplicate '{label}:' field")
            line_number = self._line_number()
            self._pos += 1
            if label == 'state':
                if not value:
                    raise MalformedOutputError(f"Pool '{name}' has an empty 'state:' field", raw_line=line,
                                               line_number=line_number)
                values['state'] = self._state(value, line, line_number)
            elif label == 'id':
                try:
                    values['id'] = utils.parse_digits(value)
                except ValueError:
                    raise MalformedOutputError(f"Invalid pool id {value!r}", raw_line=line,
                                               line_number=line_number) from None
            elif label in constants.MULTILINE_LABELS:
                values[label] = self._read_message(value)
            elif label == 'see':
                if lexical.URL_RE.fullmatch(value):
                    values['see'] = value
                else:
                    values['see'] = None
                    self._keep_advisory(line)
            else:
                values[label] = value or None

        if 'state' not in values:
            raise self._malformed(f"Pool '{name}' report has no 'state:' field")
        if not seen_config:
            raise self._malformed(f"Pool '{name}' report has no 'config:' section")

        pool_line, sections = self._parse_config(name)
        error_summary = self._parse_trailer()

        return PoolReport(
            name=name,
            state=values['state'],
            id=values.get('id'),
            status_message=values.get('status'),
            action_message=values.get('action'),
            comment=values.get('comment'),
            see=values.get('see'),
            scan=values.get('scan'),
            device_forest=self._fold(sections.pop('data')),
            log_groups=self._fold(sections.get('logs', [])),
            special_groups=self._fold(sections.get('special', [])),
            dedup_groups=self._fold(sections.get('dedup', [])),
            caches=self._leaves(sections.get('cache', [])),
            spares=self._leaves(sections.get('spares', [])),
            error_summary=error_summary,
            error_counts=self._counts(pool_line),
            reason=pool_line.reason,
            advisory=self._advisory,
        )

    def _parse_config(self, pool_name):
        """Reads the device table. Returns the pool's own row and the rows of each section."""
        self._skip_blank()
        if not self._at_end() and TABLE_HEADER_RE.match(self._peek()):
            self._pos += 1
            self._skip_blank()

        m = None if self._at_end() else DEVICE_LINE_RE.match(self._peek())
        if not m or m.group('name') != pool_name:
            raise self._malformed(f"Missing summary line for pool '{pool_name}' in config table")
        pool_line = _DeviceLine(m, self._peek(), self._line_number())
        # Validates the pool row's state token as well
        self._state(pool_line.state, pool_line.raw, pool_line.line_number)
        self._pos += 1

        sections = {'data': []}
        current = 'data'
        while not self._at_end():
            line = self._peek()
            if lexical.is_blank(line) or lexical.match_field(line):
                break
            sub = SUBSECTION_RE.match(line)
            if sub:
                current = sub.group('label')
                if current in sections:
                    raise self._malformed(f"Duplicate '{current}' subsection")
                sections[current] = []
                self._pos += 1
                continue
            m = DEVICE_LINE_RE.match(line)
            if not m:
                raise self._malformed("Unrecognized line in config table")
            sections[current].append(_DeviceLine(m, line, self._line_number()))
            self._pos += 1

        for label, rows in sections.items():
            if not rows:
                what = "pool" if label == 'data' else f"'{label}' subsection"
                raise self._malformed(f"No device lines in {what} of '{pool_name}'")
        return pool_line, sections

    def _parse_trailer(self) -> Optional[str]:
        """Optional 'errors:' field; anything else left in the block is advisory."""
        error_summary = None
        while not self._at_end():
            line = self._peek()
            if lexical.is_blank(line):
                self._pos += 1
                continue
            field = lexical.match_field(line)
            if field and field[0] == 'errors' and error_summary is None:
                self._pos += 1
                error_summary = self._read_message(field[1])
                continue
            self._keep_advisory(line)
            self._pos += 1
        return error_summary

    def _fold(self, rows: List[_DeviceLine]) -> List[DeviceGroup]:
        """
        Folds table rows into top-level groups.

        A group row opens a new group. A leaf row indented deeper than the open
        group's row is its member; any other leaf row closes the open group and
        becomes a naked top-level vdev. A spare-N or replacing-N row that is
        not inside an open group opens one of its own, with UnrecognizedKind;
        inside a group it is read as a plain member row.
        """
        forest = []
        current_group = None
        for row in rows:
            group_match = GROUP_NAME_RE.match(row.name)
            transient_match = TRANSIENT_GROUP_RE.match(row.name)
            nested = current_group is not None and row.indent > current_group.line.indent
            if group_match:
                if current_group is not None:
                    forest.append(current_group.build(self))
                current_group = _GroupBuilder(row, self._kind(group_match.group('kind')),
                                              int(group_match.group('index')) if group_match.group('index') else None)
            elif transient_match and not nested:
                if current_group is not None:
                    forest.append(current_group.build(self))
                current_group = _GroupBuilder(row, UnrecognizedKind(transient_match.group('kind')),
                                              int(transient_match.group('index')))
            elif nested:
                current_group.members.append(self._device(row))
            else:
                if current_group is not None:
                    forest.append(current_group.build(self))
                    current_group = None
                forest.append(DeviceGroup.leaf(self._device(row)))
        if current_group is not None:
            forest.append(current_group.build(self))
        return forest

    def _leaves(self, rows: List[_DeviceLine]) -> List[Device]:
        devices = []
        for row in rows:
            if GROUP_NAME_RE.match(row.name):
                raise MalformedOutputError(f"Redundancy group '{row.name}' is not allowed here",
                                           raw_line=row.raw, line_number=row.line_number)
            devices.append(self._device(row))
        return devices

    @staticmethod
    def _kind(token):
        try:
            return RedundancyKind.from_token(token)
        except ValueError:
            log_debug("ZPOOL_PARSER", f"Unrecognized redundancy kind '{token}'")
            return UnrecognizedKind(token)


def _strict_states_setting(strict_states: Optional[bool]) -> bool:
    if strict_states is not None:
        return strict_states
    return config_manager.get_bool_setting("strict_health_states", constants.DEFAULT_STRICT_HEALTH_STATES)


def _split_blocks(lines: List[str]):
    """Yields (start_index, block_lines) for each report, split at 'pool:' lines."""
    starts = []
    for idx, line in enumerate(lines):
        field = lexical.match_field(line)
        if field and field[0] == 'pool':
            starts.append(idx)
        elif not starts and not lexical.is_blank(line):
            raise MalformedOutputError("Unexpected text before the first 'pool:' line",
                                       raw_line=line, line_number=idx + 1)
    for pos, start in enumerate(starts):
        end = starts[pos + 1] if pos + 1 < len(starts) else len(lines)
        yield start, lines[start:end]


def parse_pool_reports(text: str, strict_states: Optional[bool] = None) -> List[PoolReport]:
    """
    Parses every report in `zpool status` / `zpool import` output, in input order.

    Blank lines between reports are ignored; empty input gives an empty list.
    Raises MalformedOutputError or UnknownStateError; no partial list is returned.
    """
    strict = _strict_states_setting(strict_states)
    lines = text.split('\n')
    reports = []
    for start, block in _split_blocks(lines):
        reports.append(_ReportParser(block, start + 1, strict).parse())
    log_debug("ZPOOL_PARSER", f"Parsed {len(reports)} pool report(s)")
    return reports


def parse_pool_report(text: str, strict_states: Optional[bool] = None) -> PoolReport:
    """Parses output holding exactly one pool report."""
    reports = parse_pool_reports(text, strict_states)
    if len(reports) != 1:
        raise MalformedOutputError(f"Expected a single pool report, found {len(reports)}")
    return reports[0]

# --- END OF FILE parsers/zpool.py ---
