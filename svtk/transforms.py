# svtk/transforms.py
"""
Value transforms for mapped columns.

Any callable taking the field text can be used as a column transform. The
functions here are the ones that can also be named from a config file::

    readers:
      employees:
        columns:
          employee_id: {names: [id, emp id], transform: int}
          hired: {transform: date}

Unlike lenient cleaners, these raise ``ValueError`` on text they cannot
convert, so the reader can report the file position. Empty text gives None,
which lets a column default take over.
"""

import datetime as dt
import re
from typing import Any, Callable, Dict, Optional, Union

from dateutil import parser as dateutil_parser

numberPattern = re.compile(r'[\-\+]?\d+(\.\d+)?')


def _text(val: Any) -> Optional[str]:
    if val is None:
        return None
    val = str(val).strip()
    return val or None


def to_int(val: Any) -> Optional[int]:
    """
    Convert text to an integer.

    Example:
        to_int(" 42 ")   # 42
        to_int("")       # None
        to_int("4.5")    # ValueError
    """
    val = _text(val)
    if val is None:
        return None
    return int(val)


def to_float(val: Any) -> Optional[float]:
    """Convert text to a float, None for empty text."""
    val = _text(val)
    if val is None:
        return None
    return float(val)


def to_number(val: Any) -> Optional[float]:
    """
    Convert formatted numeric text to a float.

    Currency symbols and thousands separators are ignored.

    Example:
        to_number("$1,234.56")   # 1234.56
        to_number("-42")         # -42.0
        to_number("N/A")         # ValueError
    """
    val = _text(val)
    if val is None:
        return None
    cleaned = re.sub(r'[^\d+\-.]', '', val)
    match = numberPattern.fullmatch(cleaned)
    if not match:
        raise ValueError(f"not a number: {val!r}")
    return float(match.group())


def to_bool(val: Any) -> Optional[bool]:
    """
    Parse yes/no style text.

    Truthy: 'T', 'TRUE', 'YES', 'Y', '1'
    Falsy: 'F', 'FALSE', 'NO', 'N', '0'
    """
    val = _text(val)
    if val is None:
        return None
    val = val.upper()
    if val in ('T', 'TRUE', 'YES', 'Y', '1'):
        return True
    if val in ('F', 'FALSE', 'NO', 'N', '0'):
        return False
    raise ValueError(f"not a boolean: {val!r}")


def parse_datetime(val: Any) -> Optional[dt.datetime]:
    """
    Parse a date/time string with dateutil.

    Example:
        parse_datetime("2024-01-15 08:30")   # datetime(2024, 1, 15, 8, 30)
    """
    val = _text(val)
    if val is None:
        return None
    try:
        return dateutil_parser.parse(val, default=dt.datetime(1900, 1, 1))
    except (OverflowError, dateutil_parser.ParserError) as e:
        raise ValueError(f"not a date: {val!r}") from e


def parse_date(val: Any) -> Optional[dt.date]:
    """
    Parse a date string.

    Examples:
        parse_date("2024-01-15")      # -> date(2024, 1, 15)
        parse_date("01/15/2024")      # -> date(2024, 1, 15)
        parse_date("15 Jan 2024")     # -> date(2024, 1, 15)
    """
    parsed = parse_datetime(val)
    return parsed.date() if parsed is not None else None


def get_digits(val: Any) -> Optional[str]:
    """Keep only the digits, preserving leading zeros: "(800) 123-4567" -> "8001234567"."""
    val = _text(val)
    if val is None:
        return None
    return re.sub(r'\D', '', val) or None


TRANSFORMS: Dict[str, Callable[[str], Any]] = {
    'int': to_int,
    'float': to_float,
    'number': to_number,
    'bool': to_bool,
    'date': parse_date,
    'datetime': parse_datetime,
    'digits': get_digits,
    'strip': str.strip,
    'upper': str.upper,
    'lower': str.lower,
    'title': str.title,
}


def get_transform(transform: Union[str, Callable, None]) -> Optional[Callable[[str], Any]]:
    """
    Resolve a transform given by name or as a callable.

    Raises:
        ValueError: for an unknown name or a value that is neither a name nor callable
    """
    if transform is None or callable(transform):
        return transform
    if isinstance(transform, str):
        try:
            return TRANSFORMS[transform.lower()]
        except KeyError:
            raise ValueError(f"Unknown transform '{transform}'. "
                             f"Choose from: {', '.join(sorted(TRANSFORMS))}") from None
    raise ValueError(f"Transform must be a callable or a name, got {type(transform).__name__}")
