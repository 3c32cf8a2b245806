# svtk/errors.py
"""
Exceptions raised while reading separated-value files.

Open failures are not exceptions: ``svtk.open`` returns them as a value.
Everything here is raised from inside record iteration and ends the session.
"""

from typing import Dict, List, Optional


class SVError(ValueError):
    """Base class for all reader failures."""


class ParseError(SVError):
    """
    Grammar failure at a known position in the source.

    ``str(error)`` gives the diagnostic in ``file:line:column: message`` form.
    """

    def __init__(self, message: str, filename: Optional[str] = None,
                 line: int = 0, column: int = 0):
        self.message = message
        self.filename = filename or '<unknown>'
        self.line = line
        self.column = column
        super().__init__(f"{self.filename}:{line}:{column}: {message}")


class TransformError(ParseError):
    """A column transform raised while converting a field."""

    def __init__(self, message: str, filename: Optional[str] = None,
                 line: int = 0, column: int = 0, column_name: Optional[str] = None):
        self.column_name = column_name
        super().__init__(message, filename, line, column)


class ColumnError(SVError):
    """Configured columns could not be found in the header row."""

    def __init__(self, missing: Dict[str, List[str]]):
        self.missing = missing
        problems = [f"Couldn't find a column named {_or_list(names)}" for names in missing.values()]
        super().__init__('\n'.join(problems))


def _or_list(names: List[str]) -> str:
    quoted = [f"'{name}'" for name in names]
    if len(quoted) == 1:
        return quoted[0]
    return ', '.join(quoted[:-1]) + ' or ' + quoted[-1]
