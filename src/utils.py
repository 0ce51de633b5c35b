# --- START OF FILE utils.py ---

import re

_NICENUM_RE = re.compile(r'^([\d.]+)([KMGTPE])?$')
_NICENUM_UNITS = {'K': 1, 'M': 2, 'G': 3, 'T': 4, 'P': 5, 'E': 6}


def parse_digits(digits_str):
    """Parses an unsigned integer that may use '_' as a digit separator (e.g. 1_000_000)."""
    if not isinstance(digits_str, str):
        raise ValueError(f"Invalid digit sequence: {digits_str!r}")
    digits_str = digits_str.strip()
    if not re.match(r'^[0-9][0-9_]*$', digits_str):
        raise ValueError(f"Invalid digit sequence: '{digits_str}'")
    return int(digits_str.replace('_', ''))


def parse_count(count_str):
    """Parses a zpool error counter into an int.

    zpool prints large counters in 'nicenum' form (1.23K, 4M), base 1024,
    and some builds separate digit groups with '_'.
    """
    if isinstance(count_str, int):
        return count_str
    if count_str is None or not isinstance(count_str, str):
        raise ValueError(f"Invalid counter: {count_str!r}")

    count_str = count_str.strip().replace('_', '')
    match = _NICENUM_RE.match(count_str)
    if not match:
        raise ValueError(f"Invalid counter format: '{count_str}'")

    number, unit = match.group(1), match.group(2)
    if not unit:
        if not number.isdigit():
            raise ValueError(f"Invalid counter format: '{count_str}'")
        return int(number)
    try:
        value = float(number)
    except ValueError:
        raise ValueError(f"Invalid counter format: '{count_str}'")
    return int(value * 1024 ** _NICENUM_UNITS[unit])

# --- END OF FILE utils.py ---
