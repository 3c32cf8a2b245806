# svtk/__init__.py
"""
SVTK - Separated Values ToolKit

A streaming reader for comma, tab and other separated files that provides:
- Bounded memory use no matter how large the file is
- Quoted fields with embedded separators, newlines and doubled quotes
- Any mix of \\n, \\r and \\r\\n line endings
- Line and column positions for every value, for precise error messages
- Mapping of header rows onto logical columns with transforms and defaults
- YAML-based configuration with named reader profiles

Basic usage::

    import svtk

    reader, error = svtk.open('employees.csv', columns={
        'employee_id': {'names': ['id', 'emp id'], 'transform': 'int'},
        'name': None,
        'salary': {'transform': 'number', 'default': 0},
    })
    if reader is None:
        raise SystemExit(error)

    with reader:
        for record, positions in reader:
            print(record['employee_id'], record['name'])

In-memory text::

    for record, positions in svtk.open_string('a,b,c\\n1,2,3\\n'):
        print(record)   # ['a', 'b', 'c'] then ['1', '2', '3']
"""

__version__ = '0.3.0'

from .buffer import WindowBuffer
from .columns import Clean, ColumnSpec
from .config import set_config_file, get_setting
from .errors import SVError, ParseError, TransformError, ColumnError
from .logging_utils import setup_logging, errors_logged
from .options import ReaderOptions
from .readers import SVReader, RecordIterator, open, open_string, use
from .scanner import Field, FieldScanner, Position

__all__ = [
    'open',
    'open_string',
    'use',
    'SVReader',
    'RecordIterator',
    'ReaderOptions',
    'ColumnSpec',
    'Clean',
    'WindowBuffer',
    'FieldScanner',
    'Field',
    'Position',
    'SVError',
    'ParseError',
    'TransformError',
    'ColumnError',
    'set_config_file',
    'get_setting',
    'setup_logging',
    'errors_logged',
]
