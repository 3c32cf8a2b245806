# svtk/columns.py

"""
Header handling: cleaning positional header names and mapping header rows
onto caller-defined logical ("virtual") columns.

A column mapping lets a loader say *what* it needs rather than *where* it is::

    columns = {
        'employee_id': {'names': ['id', 'emp id'], 'transform': int},
        'hired': {'transform': 'date', 'default': None},
        'department': None,          # header "department", no transform
        'salary': float,             # bare transform shorthand
    }

Header cells and accepted names are compared after ``normalize_header``, so
"Emp-ID", "EMP ID" and "emp_id" all match the name ``emp id``.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from .errors import ColumnError, TransformError
from .transforms import get_transform

logger = logging.getLogger(__name__)


class Clean:
    """Header cleaning levels for positional header names."""
    NOOP = 0  # Leave unchanged
    LOWER = 1  # Lower case header
    LOWER_NOSPACE = 2  # Lower case and replace spaces with _
    LOWER_ALPHANUM = 3  # Lower case, remove all non-alphanum characters
    DEFAULT = NOOP

    @classmethod
    def from_string(cls, value):
        """Convert string to Clean constant, or pass through if already int."""
        if value is None:
            return cls.DEFAULT
        if isinstance(value, int):
            return value

        string_map = {
            'noop': cls.NOOP,
            'lower': cls.LOWER,
            'lower_nospace': cls.LOWER_NOSPACE,
            'lower_alphanum': cls.LOWER_ALPHANUM,
        }
        try:
            return string_map[value.lower()]
        except KeyError:
            raise ValueError(f"Invalid clean_headers '{value}'. Choose from: {', '.join(string_map)}") from None

    @staticmethod
    def normalize(val: Any, clean_level: int = NOOP) -> str:
        """
        Normalize a header name.

        Examples:
            Clean.normalize(" Term Code", Clean.NOOP)           # -> " Term Code"
            Clean.normalize(" Term Code", Clean.LOWER)          # -> "term code"
            Clean.normalize(" Term Code", Clean.LOWER_NOSPACE)  # -> "term_code"
            Clean.normalize("#Term Code", Clean.LOWER_ALPHANUM) # -> "termcode"
        """
        if val is None:
            return ''
        val = str(val)
        if clean_level == Clean.NOOP:
            return val
        val = val.lower().strip()
        if clean_level == Clean.LOWER:
            return val
        elif clean_level == Clean.LOWER_NOSPACE:
            return val.replace(' ', '_')
        elif clean_level == Clean.LOWER_ALPHANUM:
            return re.sub(r'[^a-z0-9]', '', val)
        raise ValueError(f"Invalid clean_level: {clean_level}. Must be 0-3 or a Clean constant.")


def normalize_header(text: str) -> str:
    """Lowercase, collapse runs of non-alphanumerics to one space, trim: "Emp-ID #" -> "emp id"."""
    return re.sub(r'[^0-9a-z]+', ' ', text.lower()).strip()


@dataclass
class ColumnSpec:
    """
    One logical column.

    Attributes
    ----------
    name : str
        Logical name; the key used in emitted records.
    names : list of str
        Header texts accepted for this column.
    transform : callable, optional
        Applied to the field text. Exceptions become TransformError.
    default : any, optional
        Used when the (transformed) value is None or ''.
    """
    name: str
    names: List[str] = field(default_factory=list)
    transform: Optional[Callable[[str], Any]] = None
    default: Any = None

    @classmethod
    def coerce(cls, name: str, value: Union['ColumnSpec', Mapping, Callable, str, None]) -> 'ColumnSpec':
        """
        Build a ColumnSpec from any of the accepted shorthands.

        * ``None`` - match the logical name, keep the text as is
        * callable or transform name - bare transform
        * mapping with ``name``/``names``/``transform``/``default``
        * ColumnSpec - copied with ``name`` set
        """
        if isinstance(value, ColumnSpec):
            return cls(name, list(value.names), value.transform, value.default)
        if value is None:
            return cls(name)
        if callable(value) or isinstance(value, str):
            return cls(name, transform=get_transform(value))
        if isinstance(value, Mapping):
            unknown = set(value) - {'name', 'names', 'transform', 'default'}
            if unknown:
                raise ValueError(f"Unknown settings for column '{name}': {', '.join(sorted(unknown))}")
            if value.get('name'):
                names = [value['name']]
            elif isinstance(value.get('names'), str):
                names = [value['names']]
            else:
                names = list(value.get('names') or [])
            return cls(name, names, get_transform(value.get('transform')), value.get('default'))
        raise ValueError(f"Invalid specification for column '{name}': {value!r}")

    def accepted_names(self) -> List[str]:
        """Normalized header texts that select this column."""
        names = self.names or [self.name]
        accepted = []
        for n in names:
            n = normalize_header(re.sub(r'_+', ' ', n))
            if n not in accepted:
                accepted.append(n)
        return accepted


def build_column_name_map(columns: Mapping[str, Any]) -> Dict[str, ColumnSpec]:
    """Map every accepted (normalized) header text to its ColumnSpec. Aliases share one spec."""
    column_name_map = {}
    for name, value in columns.items():
        spec = ColumnSpec.coerce(name, value)
        for n in spec.accepted_names():
            column_name_map[n] = spec
    return column_name_map


def build_column_index_map(header: List[str], column_name_map: Dict[str, ColumnSpec]) -> Dict[int, ColumnSpec]:
    """
    Resolve logical columns against an actual header row.

    Args:
        header: header cells in file order
        column_name_map: from ``build_column_name_map``

    Returns:
        0-based file column index -> ColumnSpec

    Raises:
        ColumnError: listing every logical column with no matching header cell
    """
    column_index_map = {}
    found = set()
    for i, word in enumerate(header):
        spec = column_name_map.get(normalize_header(word or ''))
        if spec:
            column_index_map[i] = spec
            found.add(spec.name)

    missing = {}
    for n, spec in column_name_map.items():
        if spec.name not in found:
            missing.setdefault(spec.name, []).append(n)
    if missing:
        raise ColumnError(missing)

    logger.debug(f"Mapped columns: {', '.join(f'{i + 1}->{s.name}' for i, s in column_index_map.items())}")
    return column_index_map


def transform_field(value: str,
                    index: int,
                    column_index_map: Dict[int, ColumnSpec],
                    filename: Optional[str],
                    line: int,
                    column: int) -> Optional[Tuple[str, Any]]:
    """
    Convert one field for its logical column.

    Returns:
        (logical name, value), or None when the file column is not mapped

    Raises:
        TransformError: the column's transform raised
    """
    spec = column_index_map.get(index)
    if spec is None:
        return None
    if spec.transform:
        try:
            value = spec.transform(value)
        except Exception as e:
            raise TransformError(f"could not read field '{spec.name}': {e}",
                                 filename, line, column, column_name=spec.name) from e
    if (value is None or value == '') and spec.default is not None:
        value = spec.default
    return spec.name, value
