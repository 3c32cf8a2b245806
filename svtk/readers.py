# svtk/readers.py

"""
Streaming reader for comma, tab and other separated files.

Records are produced one at a time as the caller asks for them, so files of
any size can be read with memory bounded by a few buffer chunks::

    import svtk

    reader, error = svtk.open('employees.csv', header=True)
    if reader is None:
        raise SystemExit(error)
    with reader:
        for record, positions in reader:
            print(record['name'], positions['name'].line)
"""

import logging
import time
from typing import Any, Dict, List, Optional, TextIO, Tuple, Union

from .buffer import WindowBuffer
from .columns import Clean, ColumnSpec, build_column_index_map, build_column_name_map, transform_field
from .config import get_setting
from .errors import SVError
from .files import open_file
from .options import ReaderOptions, resolve_options
from .scanner import Field, FieldScanner, Position

logger = logging.getLogger(__name__)

Record = Union[List[Any], Dict[str, Any]]
Positions = Union[List[Position], Dict[str, Position]]


class RecordIterator:
    """
    Pull-based record assembly.

    Each ``next()`` resumes scanning where the previous record ended and stops
    at the next record worth returning. All loop state lives on the instance:
    the scanner, the fields collected so far and the header/column maps.

    Yields ``(record, positions)`` tuples. ``record`` is a list in positional
    mode, or a dict keyed by header name or logical column name. ``positions``
    has the same shape and gives the (line, column) each value came from.

    The iterator is forward-only. After a failure it stays finished.
    """

    def __init__(self, reader: 'SVReader'):
        self.reader = reader
        self.options = reader.options
        self.filename = reader.source_name()
        self.row_count = 0
        self._scanner: Optional[FieldScanner] = None
        self._column_name_map: Optional[Dict[str, ColumnSpec]] = None
        self._column_index_map: Optional[Dict[int, ColumnSpec]] = None
        self._header: Optional[List[str]] = None
        self._done = False
        self._start_time: Optional[float] = None
        if self.options.columns is not None:
            self._column_name_map = build_column_name_map(self.options.columns)
        self._reset()

    def __iter__(self):
        return self

    def __next__(self) -> Tuple[Record, Positions]:
        if self._done:
            raise StopIteration
        if self._start_time is None:
            self._start_time = time.monotonic()
        try:
            result = self._next_record()
        except SVError as e:
            self._done = True
            logger.error(str(e))
            raise
        except Exception as e:
            # decode errors, reads from a closed source
            self._done = True
            logger.error(f"Error reading {self.filename} near line {self._line()}: {e}")
            raise
        if result is None:
            self._done = True
            took = time.monotonic() - self._start_time
            logger.info(f"Read {self.row_count:,} records from {self.filename} in {took:.2f}s")
            raise StopIteration
        self.row_count += 1
        return result

    @property
    def header(self) -> Optional[List[str]]:
        """Captured header names (header mode), or None."""
        return list(self._header) if self._header is not None else None

    @property
    def separator(self) -> Optional[str]:
        return self._scanner.separator if self._scanner else None

    def _line(self) -> int:
        return self._scanner.position.line if self._scanner else 1

    def _next_record(self) -> Optional[Tuple[Record, Positions]]:
        if self._scanner is None:
            self._scanner = self.reader._make_scanner()
        while True:
            field = self._scanner.next_field()
            if field is None:
                return None
            self._add(field)
            if field.ends_record:
                result = self._finish_record()
                if result is not None:
                    return result

    def _reset(self) -> None:
        keyed = self._column_index_map is not None or self._header is not None
        self._values = {} if keyed else []
        self._positions = {} if keyed else []
        self._field_count = 0
        self._first_value = None

    def _add(self, field: Field) -> None:
        index = self._field_count
        self._field_count += 1
        if index == 0:
            self._first_value = field.value

        if self._column_index_map is not None:
            if index == 0 and field.ends_record and field.value == '':
                # blank line, dropped by _finish_record
                return
            mapped = transform_field(field.value, index, self._column_index_map,
                                     self.filename, field.position.line, field.position.column)
            if mapped is None:
                return
            key, value = mapped
        elif self._header is not None:
            if index >= len(self._header):
                return
            key, value = self._header[index], field.value
        else:
            self._values.append(field.value)
            self._positions.append(field.position)
            return

        # duplicate names: last one wins
        self._values[key] = value
        self._positions[key] = field.position

    def _finish_record(self) -> Optional[Tuple[Record, Positions]]:
        values, positions = self._values, self._positions
        try:
            if self._column_name_map is not None and self._column_index_map is None:
                self._column_index_map = build_column_index_map(values, self._column_name_map)
                return None
            if self.options.header and self._header is None and self._column_name_map is None:
                self._header = [Clean.normalize(v, self.options.clean_headers) for v in values]
                logger.debug(f"Header for {self.filename}: {self._header}")
                return None
            if self._field_count == 1 and self._first_value == '':
                return None
            return values, positions
        finally:
            self._reset()


class SVReader:
    """
    One reading session over a separated-values source.

    Use ``svtk.open``, ``svtk.open_string`` or ``svtk.use`` rather than
    building one directly.

    Parameters
    ----------
    fp : file-like object, optional
        Text source with ``read(size)``. Open files with ``newline=''``.
    options : ReaderOptions, optional
        Reader settings; keyword arguments override individual options.
    text : str, optional
        In-memory content, used instead of ``fp``.

    Example
    -------
    ::

        from svtk import open_string

        with open_string('id,name\\n1,Aang\\n2,Katara\\n', header=True) as reader:
            for record, positions in reader:
                print(record['id'], record['name'])
    """

    def __init__(self, fp: Optional[TextIO] = None, options: Optional[ReaderOptions] = None,
                 text: Optional[str] = None, **kwargs):
        if (fp is None) == (text is None):
            raise ValueError("SVReader needs exactly one of fp or text")
        self.options = resolve_options(options, **kwargs)
        self.fp = fp
        self._text = text
        self._buffer: Optional[WindowBuffer] = None
        self._records: Optional[RecordIterator] = None

        if fp is not None and getattr(fp, 'encoding', None) == 'utf-8':
            # Using the standard utf-8 encoding can leave a BOM in the first header name
            logger.warning("utf-8 encoding detected. Consider using 'utf-8-sig' encoding instead.")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __iter__(self) -> RecordIterator:
        return self.records()

    def __repr__(self):
        return f"{self.__class__.__name__}('{self.source_name()}')"

    def source_name(self) -> str:
        """Name used in diagnostics."""
        if self.options.filename:
            return self.options.filename
        if self._text is not None:
            return _preview_name(self._text)
        return getattr(self.fp, 'name', None) or '<unknown>'

    def records(self) -> RecordIterator:
        """
        The lazy sequence of ``(record, positions)`` for this session.

        Calling it again returns the same iterator; reread by opening a new session.
        """
        if self._records is None:
            self._records = RecordIterator(self)
        return self._records

    @property
    def row_count(self) -> int:
        return self._records.row_count if self._records else 0

    @property
    def separator(self) -> Optional[str]:
        """The configured separator, or the detected one once reading has started."""
        if self.options.separator:
            return self.options.separator
        return self._records.separator if self._records else None

    @property
    def header(self) -> Optional[List[str]]:
        return self._records.header if self._records else None

    def close(self) -> None:
        """Release the source. Safe to call more than once."""
        if self._buffer is not None:
            self._buffer.close()
        elif self.fp is not None and hasattr(self.fp, 'close'):
            self.fp.close()

    def _make_scanner(self) -> FieldScanner:
        if self.fp is not None:
            self._buffer = WindowBuffer(self.fp, chunk_size=self.options.buffer_size)
        else:
            self._buffer = WindowBuffer(text=self._text, chunk_size=self.options.buffer_size)
        return FieldScanner(self._buffer,
                            separator=self.options.separator,
                            filename=self.source_name(),
                            candidates=self.options.separator_candidates,
                            sniff_size=self.options.separator_sniff_size)


def _preview_name(text: str) -> str:
    length = get_setting('source_preview_length', 20)
    lines = text.splitlines()
    first = lines[0] if lines else ''
    preview = first[:length]
    if len(preview) < len(first) or len(lines) > 1:
        preview += '...'
    return f"<string: {preview}>"


def open(path, options: Optional[ReaderOptions] = None, **kwargs) -> Tuple[Optional[SVReader], Optional[str]]:
    """
    Open a file by path.

    Failure to open is returned, not raised, so callers can tell it apart
    from problems found while reading.

    Returns:
        ``(reader, None)`` on success, ``(None, message)`` on failure

    Example:
        reader, error = svtk.open('data.csv.gz', separator='\\t')
    """
    options = resolve_options(options, **kwargs)
    try:
        fp = open_file(path, encoding=options.encoding, zip_member=options.zip_member)
    except (OSError, ValueError) as e:
        message = f"{path}: {e.strerror}" if isinstance(e, OSError) and e.strerror else str(e)
        logger.warning(f"Could not open {path}: {e}")
        return None, message
    if not options.filename:
        options = options.replace(filename=str(path))
    return SVReader(fp, options), None


def open_string(text: str, options: Optional[ReaderOptions] = None, **kwargs) -> SVReader:
    """Read from a string that is already fully in memory."""
    if not isinstance(text, str):
        raise TypeError(f"text must be a str, got {type(text).__name__}")
    return SVReader(text=text, options=options, **kwargs)


def use(fp: TextIO, options: Optional[ReaderOptions] = None, **kwargs) -> SVReader:
    """Read from an already open text file or stream (opened with ``newline=''``)."""
    return SVReader(fp, options, **kwargs)
