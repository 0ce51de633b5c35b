# --- START OF FILE parsers/lexical.py ---
"""
Terminal productions shared by the zpool and zfs grammars.

Each constant is a regex fragment without anchors so it can be composed into
larger productions; the *_RE objects are the compiled, anchored forms used for
whole-token checks. A fragment that does not match means the surrounding
production does not match; nothing here recovers on its own.
"""

import re
import string

import constants

WS = r'[ \t]'
WS_RUN = WS + r'+'

# Digits, allowing '_' between groups as the tools sometimes print large numbers
DIGITS = r'[0-9][0-9_]*'

# Pool/dataset/device name characters
NAME_CHAR = r'[A-Za-z0-9_\-.:]'
NAME = NAME_CHAR + r'+'
SEGMENT = NAME

# Device identifiers: bare names (sda, gpt/disk0) or absolute paths
PATH = r'/?' + NAME + r'(?:/' + NAME + r')*'

# Error counters as printed in the config table: 0, 12, 1_024, 1.50K
COUNT = r'[0-9][0-9_]*(?:\.[0-9]+)?[KMGTPE]?'

# Free text: word characters, blanks and ASCII punctuation
TEXT_CHAR = r'[\w \t' + re.escape(string.punctuation) + r']'
TEXT = TEXT_CHAR + r'+'

URL = r'https?://[A-Za-z0-9\-._~%]+(?::[0-9]+)?(?:/[A-Za-z0-9\-._~%!$&\'()*+,;=:@/]*)?'

# Continuation lines start with a tab or at least CONTINUATION_INDENT_WIDTH spaces
CONTINUATION_INDENT = r'(?:\t| {' + str(constants.CONTINUATION_INDENT_WIDTH) + r',})'

FIELD_LABEL = r'(?:' + '|'.join(constants.POOL_FIELD_LABELS) + r')'


NAME_RE = re.compile(NAME)
SEGMENT_RE = re.compile(SEGMENT)
PATH_RE = re.compile(PATH)
DIGITS_RE = re.compile(DIGITS)
TEXT_RE = re.compile(TEXT)
URL_RE = re.compile(URL)

# "  pool: tank", " state: ONLINE", "config:"
FIELD_LINE_RE = re.compile(
    r'^' + WS + r'*(?P<label>' + FIELD_LABEL + r'):(?:' + WS_RUN + r'(?P<value>.*?))?' + WS + r'*$'
)
CONTINUATION_LINE_RE = re.compile(r'^' + CONTINUATION_INDENT + WS + r'*(?P<text>' + TEXT + r')$')
BLANK_LINE_RE = re.compile(r'^' + WS + r'*$')


def indent_width(line: str) -> int:
    """Width of the line's leading blanks with tabs expanded."""
    stripped = line.lstrip(' \t')
    return len(line[:len(line) - len(stripped)].expandtabs(constants.TAB_WIDTH))


def is_blank(line: str) -> bool:
    return BLANK_LINE_RE.match(line) is not None


def match_field(line: str):
    """Returns (label, value) when the line starts with a known field label, else None."""
    m = FIELD_LINE_RE.match(line)
    if not m:
        return None
    return m.group('label'), (m.group('value') or '')

# --- END OF FILE parsers/lexical.py ---
