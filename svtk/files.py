# svtk/files.py

"""Opening files for the reader, with transparent decompression."""

import bz2
import gzip
import io
import logging
import lzma
import os
import zipfile
from pathlib import Path
from typing import Optional, TextIO, Union

from .config import get_setting

logger = logging.getLogger(__name__)


def _select_zip_member(zf: zipfile.ZipFile, filename: str, zip_member: Optional[str]) -> str:
    members = [m for m in zf.namelist() if not m.endswith('/')]
    if zip_member:
        if zip_member not in members:
            raise ValueError(
                f"ZIP member '{zip_member}' not found in archive. "
                f"Available members: {', '.join(members)}"
            )
        return zip_member
    if len(members) == 1:
        return members[0]

    # Multiple files - try to match archive name ('data.csv.zip' -> 'data')
    archive_name = os.path.basename(filename).split('.')[0]
    candidates = [m for m in members if os.path.basename(m).split('.')[0] == archive_name]
    if len(candidates) == 1:
        return candidates[0]
    raise ValueError(
        f"ZIP archive '{filename}' contains {len(members)} files. "
        f"Specify zip_member explicitly: {', '.join(members)}"
    )


def open_file(filename: Union[str, Path],
              encoding: Optional[str] = None,
              zip_member: Optional[str] = None) -> TextIO:
    """
    Open a file for reading as text, decompressing based on the extension.

    Supports: .gz (gzip), .bz2 (bzip2), .xz (lzma), .zip (zipfile)

    Line endings are passed through untranslated (``newline=''``); the scanner
    does its own normalization of ``\\r``, ``\\n`` and ``\\r\\n``.

    Args:
        filename: Path to file (e.g., 'data.csv', 'data.csv.gz', 'archive.zip')
        encoding: Text encoding (default from the ``encoding`` setting, 'utf-8-sig')
        zip_member: For ZIP files, the member to read. If None, uses the only
            member, or the one whose name matches the archive name.

    Returns:
        Text file object

    Raises:
        OSError: the file cannot be opened
        ValueError: a ZIP archive needs an explicit zip_member

    Example:
        fp = open_file('data.csv.gz')
        fp = open_file('archive.zip', zip_member='data.csv')
    """
    filename = str(filename)
    encoding = encoding or get_setting('encoding', 'utf-8-sig')
    buffer_size = get_setting('compressed_file_buffer_size', 1024 * 1024)
    lowered = filename.lower()

    if lowered.endswith('.gz'):
        binary_fp = gzip.open(filename, 'rb')
    elif lowered.endswith('.bz2'):
        binary_fp = bz2.open(filename, 'rb')
    elif lowered.endswith('.xz'):
        binary_fp = lzma.open(filename, 'rb')
    elif lowered.endswith('.zip'):
        try:
            zf = zipfile.ZipFile(filename, 'r')
        except zipfile.BadZipFile as e:
            raise OSError(f"Not a ZIP archive: {filename}") from e
        try:
            selected = _select_zip_member(zf, filename, zip_member)
        except ValueError:
            zf.close()
            raise
        logger.debug(f"Reading '{selected}' from {filename}")
        return io.TextIOWrapper(zf.open(selected, 'r'), encoding=encoding, newline='')
    else:
        # Regular uncompressed file
        return open(filename, 'r', encoding=encoding, newline='')

    return io.TextIOWrapper(io.BufferedReader(binary_fp, buffer_size), encoding=encoding, newline='')
