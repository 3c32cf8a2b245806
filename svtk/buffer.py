# svtk/buffer.py

"""
Growable window over a character source.

The window knows nothing about CSV. It hands out text by absolute offset,
reads more from the source when a request runs past what is buffered, and
forgets everything before the last truncation point so memory stays bounded
by a few chunks no matter how large the file is.
"""

import logging
from typing import NamedTuple, Optional, Pattern, TextIO

logger = logging.getLogger(__name__)


class BufferMatch(NamedTuple):
    """Result of ``WindowBuffer.find`` in absolute offsets."""
    start: int
    end: int
    text: str


class WindowBuffer:
    """
    Forward-only window over a text source.

    Offsets are absolute, 0-based character positions in the source. Ranges are
    half-open. Anything before ``base`` has been discarded by ``truncate`` and
    can no longer be read.

    Parameters
    ----------
    source : file-like object, optional
        Object with ``read(size)`` returning ``''`` at end of input. Open text
        files with ``newline=''`` so carriage returns reach the scanner.
    chunk_size : int
        Number of characters requested per read.
    text : str, optional
        Text that is already buffered. With no ``source`` the window is
        exhausted from the start and never reads.

    Example
    -------
    ::

        buf = WindowBuffer(io.StringIO('a,b\\n', newline=''), chunk_size=2)
        m = buf.find(re.compile(r'([,\\n])'), 0)   # BufferMatch(start=1, end=2, text=',')
        buf.sub(0, m.start)                         # 'a'
    """

    def __init__(self, source: Optional[TextIO] = None, chunk_size: int = 1024, text: str = ''):
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be at least 1, got {chunk_size}")
        self.chunk_size = chunk_size
        self._source = source
        self._data = text
        self._base = 0
        self._exhausted = source is None
        self._closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self):
        return (f"WindowBuffer(base={self._base}, buffered={len(self._data)}, "
                f"chunk_size={self.chunk_size}, exhausted={self._exhausted})")

    @property
    def base(self) -> int:
        """Absolute offset of the first character still held."""
        return self._base

    @property
    def end(self) -> int:
        """Absolute offset just past the last buffered character."""
        return self._base + len(self._data)

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    def _relative(self, position: int) -> int:
        if position < self._base:
            raise IndexError(f"Offset {position} was discarded (buffer starts at {self._base})")
        return position - self._base

    def _read(self, size: int) -> bool:
        """Append up to ``size`` characters from the source. Returns False at end of input."""
        if self._exhausted:
            return False
        text = self._source.read(size)
        if not text:
            self._exhausted = True
            return False
        self._data += text
        return True

    def extend(self, position: int) -> None:
        """Make sure everything before ``position`` is buffered, if the source has it."""
        extra = position - self.end
        if extra > 0:
            # whole chunks only, so reads stay aligned with truncate()
            size = -(-extra // self.chunk_size) * self.chunk_size
            while extra > 0 and self._read(size):
                extra = position - self.end
                size = self.chunk_size

    def find(self, pattern: Pattern, start: int) -> Optional[BufferMatch]:
        """
        Search for ``pattern`` from absolute offset ``start``.

        Pulls more of the source until there is a match that does not touch
        the end of the buffer, or the source runs out. A match touching the tail
        could still grow (or a pattern like ``"("?)`` could change its capture),
        so it is only trusted once more text has been seen.

        Returns
        -------
        BufferMatch or None
            ``text`` is the first capture group when the pattern has one,
            otherwise the whole match. None when the source is exhausted
            without a match.
        """
        while True:
            match = pattern.search(self._data, self._relative(start))
            if match and (match.end() < len(self._data) or self._exhausted):
                break
            if not self._read(self.chunk_size):
                break
        if match is None:
            return None
        text = match.group(1) if pattern.groups else match.group(0)
        return BufferMatch(self._base + match.start(), self._base + match.end(), text or '')

    def sub(self, start: int, end: Optional[int] = None) -> str:
        """
        Return the text in ``[start, end)``.

        ``end=None`` means "whatever is buffered right now" and never reads.
        Otherwise the buffer is extended first, so the result is only shorter
        than requested at end of input.
        """
        if end is None:
            return self._data[self._relative(start):]
        self.extend(end)
        return self._data[self._relative(start):self._relative(max(start, end))]

    def truncate(self, position: int) -> None:
        """Drop whole chunks that lie entirely before ``position``."""
        keep_from = min(self._relative(position), len(self._data))
        remove = (keep_from // self.chunk_size) * self.chunk_size
        if remove:
            self._data = self._data[remove:]
            self._base += remove

    def close(self) -> None:
        """Close the source. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._exhausted = True
        if self._source is not None and hasattr(self._source, 'close'):
            self._source.close()
            logger.debug("Closed buffer source")
