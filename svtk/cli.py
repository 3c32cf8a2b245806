# svtk/cli.py

import argparse
import json
import sys
from typing import List, Optional

from . import config
from .errors import SVError
from .options import ReaderOptions
from .readers import open as open_reader


def _separator(value: str) -> str:
    """Accept 'tab' and '\\t' on the command line."""
    if value.lower() in ('tab', '\\t'):
        return '\t'
    return value


def _options(args) -> ReaderOptions:
    overrides = {}
    if args.separator:
        overrides['separator'] = args.separator
    if args.header:
        overrides['header'] = True
    if args.buffer_size:
        overrides['buffer_size'] = args.buffer_size
    if args.zip_member:
        overrides['zip_member'] = args.zip_member
    if args.profile:
        return ReaderOptions.from_profile(args.profile, **overrides)
    return ReaderOptions.from_mapping(overrides)


def dump(args) -> int:
    """Print each record as a line of JSON."""
    reader, error = open_reader(args.path, _options(args))
    if reader is None:
        print(error, file=sys.stderr)
        return 1
    with reader:
        try:
            for record, positions in reader:
                if args.positions:
                    record = {'record': record, 'positions': positions}
                print(json.dumps(record, default=str, ensure_ascii=False))
        except SVError as e:
            print(e, file=sys.stderr)
            return 1
    return 0


def check(args) -> int:
    """Read the whole file and report the first problem, if any."""
    reader, error = open_reader(args.path, _options(args))
    if reader is None:
        print(error, file=sys.stderr)
        return 1
    with reader:
        try:
            for _ in reader:
                pass
        except SVError as e:
            print(e, file=sys.stderr)
            return 1
        print(f"OK: {reader.row_count:,} records")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog='svtk', description='SVTK command-line utilities')
    parser.add_argument('--config', help='Config file (default: svtk.yml in the current or ~/.config directory)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    for name, help_text in (('dump', 'Print records as JSON lines'),
                            ('check', 'Validate a file and count its records')):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument('path', help='File to read (.gz, .bz2, .xz and .zip are decompressed)')
        sub.add_argument('--separator', '-s', type=_separator,
                         help="Field separator (default: detect comma or tab). Use 'tab' for tabs")
        sub.add_argument('--header', action='store_true',
                         help='Use the first record as field names')
        sub.add_argument('--profile', '-p', help='Reader profile from the config file')
        sub.add_argument('--buffer-size', type=int, help='Characters read at a time')
        sub.add_argument('--zip-member', help='File to read from a ZIP archive holding several')
        if name == 'dump':
            sub.add_argument('--positions', action='store_true',
                             help='Include the line and column of each value')

    args = parser.parse_args(argv)

    try:
        if args.config:
            config.set_config_file(args.config)
        if args.command == 'dump':
            return dump(args)
        elif args.command == 'check':
            return check(args)
    except (ValueError, FileNotFoundError) as e:
        print(f"svtk: {e}", file=sys.stderr)
        return 2


if __name__ == '__main__':
    sys.exit(main())
