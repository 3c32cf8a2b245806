# svtk/scanner.py

"""
Field scanner: splits the text held by a WindowBuffer into fields.

One call to ``FieldScanner.next_field`` consumes exactly one field plus the
separator or line ending after it. The scanner tracks line and column numbers
purely for diagnostics; they never decide where a field ends.
"""

import logging
import re
from typing import NamedTuple, Optional, Tuple

from .buffer import WindowBuffer
from .errors import ParseError

logger = logging.getLogger(__name__)

QUOTE = re.compile(r'"("?)')
AFTER_QUOTE = re.compile(r' *([^ ])')
LINE_BREAK = re.compile(r'\r\n?|\n')
LINE_ENDINGS = ('\r', '\n')


class Position(NamedTuple):
    """1-based line and column where a field starts."""
    line: int
    column: int


class Field(NamedTuple):
    """
    One scanned field.

    ``terminator`` is the separator or line-ending character that ended the
    field, or None when the field ran to the end of input.
    """
    value: str
    position: Position
    terminator: Optional[str]

    @property
    def ends_record(self) -> bool:
        return self.terminator is None or self.terminator in LINE_ENDINGS


def detect_separator(buffer: WindowBuffer, candidates: str = ',\t',
                     sniff_size: int = 64 * 1024, default: str = ',') -> str:
    """
    Pick the separator from the first candidate character in the input.

    Only the first ``sniff_size`` characters are examined, one buffer chunk at
    a time, and reading stops at the first candidate. The first candidate seen
    wins even when it sits inside a quoted field, so inputs where that can
    happen should pass an explicit separator instead.
    """
    if not candidates:
        raise ValueError("separator_candidates must not be empty")
    pattern = re.compile('[' + re.escape(candidates) + ']')
    position = buffer.base
    limit = buffer.base + sniff_size
    while position < limit:
        text = buffer.sub(position, min(position + buffer.chunk_size, limit))
        if not text:
            break
        match = pattern.search(text)
        if match:
            logger.debug(f"Detected separator {match.group()!r}")
            return match.group()
        position += len(text)
    logger.debug(f"No separator among {candidates!r} in first {sniff_size:,} characters, using {default!r}")
    return default


class FieldScanner:
    """
    Walk a WindowBuffer one field at a time.

    Parameters
    ----------
    buffer : WindowBuffer
        Source of text. The scanner truncates it as fields are consumed.
    separator : str, optional
        Field separator. Detected from ``candidates`` when omitted.
    filename : str, optional
        Name used in diagnostics.
    candidates : str
        Characters considered by separator detection.
    sniff_size : int
        How far separator detection looks.

    Example
    -------
    ::

        scanner = FieldScanner(WindowBuffer(text='a,"b ""c"" d"\\n'))
        scanner.next_field()  # Field(value='a', position=Position(1, 1), terminator=',')
        scanner.next_field()  # Field(value='b "c" d', position=Position(1, 3), terminator='\\n')
    """

    def __init__(self,
                 buffer: WindowBuffer,
                 separator: Optional[str] = None,
                 filename: Optional[str] = None,
                 candidates: str = ',\t',
                 sniff_size: int = 64 * 1024):
        self.buffer = buffer
        self.filename = filename or '<unknown>'
        if separator is None:
            separator = detect_separator(buffer, candidates, sniff_size)
        self.separator = separator
        self._terminators = re.compile('([' + re.escape(separator) + '\r\n])')
        self._accepted = (separator,) + LINE_ENDINGS
        self._field_start = 0
        self._line = 1
        self._line_start = 0
        self.finished = False

    @property
    def position(self) -> Position:
        """Where the next field starts."""
        return Position(self._line, self._field_start - self._line_start + 1)

    def next_field(self) -> Optional[Field]:
        """
        Consume and return the next field, or None once the input is used up.

        Raises
        ------
        ParseError
            If a quoted field has no closing quote, or its closing quote is
            followed by something other than a separator or line ending.
        """
        if self.finished:
            return None

        start = self._field_start
        position = self.position
        self.buffer.truncate(start)

        if self.buffer.sub(start, start + 1) == '"':
            value_start = start + 1
            raw, terminator, next_start = self._scan_quoted(value_start, position)
            value = self._count_lines(raw, value_start).replace('""', '"')
        else:
            value_start = start
            match = self.buffer.find(self._terminators, start)
            if match:
                raw, terminator, next_start = self.buffer.sub(start, match.start), match.text, match.end
            else:
                raw, terminator, next_start = self.buffer.sub(start), None, None
            value = self._count_lines(raw, value_start).strip()

        if terminator is None:
            self.finished = True
        else:
            if terminator == '\r' and self.buffer.sub(next_start, next_start + 1) == '\n':
                next_start += 1
            if terminator in LINE_ENDINGS:
                self._line += 1
                self._line_start = next_start
            self._field_start = next_start

        return Field(value, position, terminator)

    def _scan_quoted(self, value_start: int, position: Position) -> Tuple[str, Optional[str], Optional[int]]:
        """Find the closing quote. Returns (raw text, terminator, offset after terminator)."""
        search_from = value_start
        while True:
            match = self.buffer.find(QUOTE, search_from)
            if match is None:
                raise self._error('unmatched quote', position)
            search_from = match.end
            if match.text != '"':
                break
        raw = self.buffer.sub(value_start, match.start)

        after = self.buffer.find(AFTER_QUOTE, match.end)
        if after is None:
            return raw, None, None
        if after.text not in self._accepted:
            raise self._error('unmatched quote', position)
        return raw, after.text, after.end

    def _count_lines(self, raw: str, value_start: int) -> str:
        """Advance the line counter past embedded line breaks and normalize them to \\n."""
        for match in LINE_BREAK.finditer(raw):
            self._line += 1
            self._line_start = value_start + match.end()
        return LINE_BREAK.sub('\n', raw)

    def _error(self, message: str, position: Position) -> ParseError:
        self.finished = True
        return ParseError(message, self.filename, position.line, position.column)
