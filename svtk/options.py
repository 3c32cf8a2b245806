# svtk/options.py

"""Reader options."""

import dataclasses
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .columns import Clean
from .config import get_setting, get_profile


@dataclass
class ReaderOptions:
    """
    Settings for one reading session.

    Options left as None are filled from the configuration settings
    (``svtk.yml``), which in turn fall back to ``svtk.defaults``.

    Parameters
    ----------
    separator : str, optional
        Single field separator character. Detected from the first of
        ``separator_candidates`` found in the input when omitted.
    header : bool, default False
        Use the first record as names for the fields of the following records.
    columns : mapping, optional
        Logical column specifications (see ``svtk.columns``). Takes precedence
        over ``header``: the header row is consumed to resolve the columns.
    buffer_size : int, optional
        Characters read from the source at a time. Must be at least 1.
    separator_candidates : str, optional
        Characters tried by separator detection, default comma and tab.
    separator_sniff_size : int, optional
        How many characters separator detection may look at.
    clean_headers : Clean or str, default Clean.NOOP
        Cleaning applied to header names in ``header`` mode.
    filename : str, optional
        Name used in diagnostics instead of the source's own name.
    encoding : str, optional
        Encoding for files opened by path.
    zip_member : str, optional
        Member to read when a path names a ZIP archive holding several files.
    """
    separator: Optional[str] = None
    header: bool = False
    columns: Optional[Mapping[str, Any]] = None
    buffer_size: Optional[int] = None
    separator_candidates: Optional[str] = None
    separator_sniff_size: Optional[int] = None
    clean_headers: Any = Clean.NOOP
    filename: Optional[str] = None
    encoding: Optional[str] = None
    zip_member: Optional[str] = None

    def __post_init__(self):
        if self.buffer_size is None:
            self.buffer_size = get_setting('buffer_block_size', 1024)
        if self.separator_candidates is None:
            self.separator_candidates = get_setting('separator_candidates', ',\t')
        if self.separator_sniff_size is None:
            self.separator_sniff_size = get_setting('separator_sniff_size', 64 * 1024)
        if self.encoding is None:
            self.encoding = get_setting('encoding', 'utf-8-sig')
        self.clean_headers = Clean.from_string(self.clean_headers)
        self.validate()

    def validate(self) -> None:
        """Raise ValueError for settings the reader cannot work with."""
        if isinstance(self.buffer_size, bool) or not isinstance(self.buffer_size, int) or self.buffer_size < 1:
            raise ValueError(f"buffer_size must be an integer of at least 1, got {self.buffer_size!r}")
        if self.separator is not None:
            if not isinstance(self.separator, str) or len(self.separator) != 1:
                raise ValueError(f"separator must be a single character, got {self.separator!r}")
            if self.separator in '"\r\n':
                raise ValueError(f"separator cannot be a quote or line ending, got {self.separator!r}")
        if not self.separator_candidates:
            raise ValueError("separator_candidates must not be empty")
        if self.separator_sniff_size < 1:
            raise ValueError(f"separator_sniff_size must be at least 1, got {self.separator_sniff_size}")
        if self.columns is not None and not isinstance(self.columns, Mapping):
            raise ValueError(f"columns must be a mapping of logical name to specification, "
                             f"got {type(self.columns).__name__}")

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, Any]] = None, **overrides) -> 'ReaderOptions':
        """
        Build options from a plain dictionary (for example a config profile).

        ``buffer_block_size`` is accepted as another name for ``buffer_size``.
        """
        values = dict(mapping or {})
        values.update(overrides)
        if 'buffer_block_size' in values:
            block_size = values.pop('buffer_block_size')
            values.setdefault('buffer_size', block_size)
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(f"Unknown reader options: {', '.join(sorted(unknown))}")
        return cls(**values)

    @classmethod
    def from_profile(cls, name: str, config_file: Optional[str] = None, **overrides) -> 'ReaderOptions':
        """Build options from a ``readers:`` profile in the config file."""
        return cls.from_mapping(get_profile(name, config_file), **overrides)

    def replace(self, **changes) -> 'ReaderOptions':
        """Copy with some options changed."""
        return dataclasses.replace(self, **changes)


def resolve_options(options: Optional[ReaderOptions] = None, **kwargs) -> ReaderOptions:
    """Combine an options object and keyword overrides."""
    if options is None:
        return ReaderOptions.from_mapping(kwargs)
    if isinstance(options, Mapping):
        return ReaderOptions.from_mapping(options, **kwargs)
    if kwargs:
        return options.replace(**{('buffer_size' if k == 'buffer_block_size' else k): v
                                  for k, v in kwargs.items()})
    return options
