# tests/test_readers.py
"""
Tests for svtk readers: sessions, record assembly, headers and column mapping.
"""

import datetime as dt
import gzip
import io
import zipfile

import pytest

import svtk
from svtk import ReaderOptions, Position
from svtk.errors import ColumnError, ParseError, TransformError

BUFFER_SIZES = list(range(1, 17))

EMBEDDED = 'embedded\nnewline'

# (case id, text, options, expected records)
CASES = [
    ('simple', 'a,b,c\n', {}, [['a', 'b', 'c']]),
    ('no_trailing_newline', 'a,b\nc,d', {}, [['a', 'b'], ['c', 'd']]),
    ('embedded_newlines',
     '"embedded\nnewline","embedded\nnewline","embedded\nnewline"\n'
     '"embedded\r\nnewline","embedded\rnewline","embedded\nnewline"\r\n',
     {}, [[EMBEDDED] * 3, [EMBEDDED] * 3]),
    ('quotes', '"a ""quoted"" word",x\n"",""""\n', {}, [['a "quoted" word', 'x'], ['', '"']]),
    ('blank_lines', 'a,b\n\n\r\n\rc,d\n,x\n\n', {}, [['a', 'b'], ['c', 'd'], ['', 'x']]),
    ('tabs', 'a b\tc\n"d\te"\tf\n', {}, [['a b', 'c'], ['d\te', 'f']]),
    ('pipe', 'a|b,c\n', {'separator': '|'}, [['a', 'b,c']]),
    ('header', 'name,age\nAang,12\n\nKatara,14\n', {'header': True},
     [{'name': 'Aang', 'age': '12'}, {'name': 'Katara', 'age': '14'}]),
    ('columns', 'ALPHA,bravo,charlie\none,x,3\ntwo,y,\n',
     {'columns': {'apple': {'name': 'ALPHA'},
                  'charlie': {'transform': lambda v: float(v) * 10 if v else None, 'default': 0}}},
     [{'apple': 'one', 'charlie': 30}, {'apple': 'two', 'charlie': 0}]),
]


def case_params():
    for case_id, text, options, expected in CASES:
        for size in BUFFER_SIZES + [len(text)]:
            yield pytest.param(text, options, expected, size, id=f"{case_id}-{size}")


class TestChunkSizeIndependence:
    """The same records come out whatever the buffer size."""

    @pytest.mark.parametrize("text, options, expected, buffer_size", list(case_params()))
    def test_records(self, read_values, text, options, expected, buffer_size):
        assert read_values(text, buffer_size, **options) == expected

    @pytest.mark.parametrize("buffer_size", BUFFER_SIZES)
    def test_positions(self, read_all, buffer_size):
        """Positions do not depend on the buffer size either."""
        text = 'a,"b\nc",d\r\ne,f\rg\n'
        assert read_all(text, buffer_size) == read_all(text, len(text))

    @pytest.mark.parametrize("buffer_size", BUFFER_SIZES)
    def test_fixture_file(self, fixtures_dir, buffer_size):
        reader, error = svtk.open(fixtures_dir / 'embedded-newlines.csv', buffer_size=buffer_size)
        assert error is None
        with reader:
            assert [record for record, _ in reader] == [[EMBEDDED] * 3, [EMBEDDED] * 3]


class TestRecords:
    """Tests for record assembly in positional mode."""

    def test_simple_row(self, read_values):
        assert read_values('a,b,c\n') == [['a', 'b', 'c']]

    def test_blank_line_dropped_but_empty_first_field_kept(self, read_values):
        assert read_values('\n,x\n\n') == [['', 'x']]

    def test_empty_input(self, read_values):
        assert read_values('') == []

    def test_whitespace_only_line_is_blank(self, read_values):
        assert read_values('a\n   \nb\n') == [['a'], ['b']]

    def test_embedded_newline_positions(self, read_all):
        """Fields after a multi-line value report later lines."""
        results = read_all('id,note\n1,"line1\nline2"\n2,x\n')
        record, positions = results[1]
        assert record == ['1', 'line1\nline2']
        assert positions == [Position(2, 1), Position(2, 3)]
        assert results[2][1] == [Position(4, 1), Position(4, 3)]

    def test_mixed_line_endings(self, read_all):
        """\\r\\n, \\r and \\n endings give the same records as plain \\n."""
        plain = 'id,name\n1,"a\nb"\n2,c\n'
        mixed = 'id,name\r\n1,"a\r\nb"\n2,c\r'
        assert [r for r, _ in read_all(mixed)] == [r for r, _ in read_all(plain)]

    def test_crlf_fixture_matches_lf_fixture(self, fixtures_dir):
        results = []
        for name in ('embedded-newlines.csv', 'embedded-newlines-crlf.csv'):
            reader, _ = svtk.open(fixtures_dir / name)
            with reader:
                results.append([record for record, _ in reader])
        assert results[0] == results[1]

    def test_ragged_rows(self, read_values):
        assert read_values('a,b,c\n1\n1,2,3,4\n') == [['a', 'b', 'c'], ['1'], ['1', '2', '3', '4']]

    @pytest.mark.parametrize("separator", [",", None])
    def test_bounded_buffer(self, separator):
        """The window never holds much more than a few chunks, with or without separator detection."""
        reader = svtk.use(io.StringIO('abc,def\n' * 2000, newline=''), separator=separator, buffer_size=8)
        largest = 0
        for _ in reader:
            largest = max(largest, len(reader._buffer))
        assert reader.row_count == 2000
        assert largest <= 4 * 8


class TestHeaderMode:
    """Tests for header=True."""

    def test_header_keys(self, read_values):
        assert read_values('a,b\n1,2\n', header=True) == [{'a': '1', 'b': '2'}]

    def test_extra_fields_dropped_short_rows_partial(self, read_values):
        assert read_values('a,b\n1,2,3\n4\n', header=True) == [{'a': '1', 'b': '2'}, {'a': '4'}]

    def test_duplicate_names_last_wins(self, read_all):
        record, positions = read_all('x,x\n1,2\n', header=True)[0]
        assert record == {'x': '2'}
        assert positions == {'x': Position(2, 3)}

    def test_clean_headers(self, read_values):
        records = read_values('First Name,Last Name\nAang,\n', header=True, clean_headers='lower_nospace')
        assert records == [{'first_name': 'Aang', 'last_name': ''}]

    def test_header_property(self):
        reader = svtk.open_string('a,b\n1,2\n', header=True)
        assert reader.header is None
        list(reader)
        assert reader.header == ['a', 'b']

    def test_header_only(self, read_values):
        assert read_values('a,b\n', header=True) == []


class TestColumnMapping:
    """Tests for logical column mapping."""

    def test_mapping_example(self, read_all):
        columns = {
            'apple': {'name': 'ALPHA'},
            'charlie': {'transform': lambda v: int(v) * 10, 'default': 0},
        }
        record, positions = read_all('ALPHA,bravo,charlie\none,x,3\n', columns=columns)[0]
        assert record == {'apple': 'one', 'charlie': 30}
        assert positions == {'apple': Position(2, 1), 'charlie': Position(2, 7)}

    def test_columns_take_precedence_over_header(self, read_values):
        records = read_values('a,b\n1,2\n3,4\n', header=True, columns={'b': int})
        assert records == [{'b': 2}, {'b': 4}]

    def test_bare_transform_and_none(self, read_values):
        records = read_values('Item Name,Qty\nbolt,4\n', columns={'item_name': None, 'qty': 'int'})
        assert records == [{'item_name': 'bolt', 'qty': 4}]

    def test_missing_column_fails_before_rows(self):
        reader = svtk.open_string('a,b\n1,2\n', columns={'c': {'names': ['c', 'see', 'sea']}, 'a': None})
        with pytest.raises(ColumnError, match="Couldn't find a column named 'c', 'see' or 'sea'"):
            next(iter(reader))
        assert reader.row_count == 0
        assert list(reader) == []

    def test_transform_error_is_positioned(self):
        reader = svtk.open_string('n\n1\nx\n2\n', columns={'n': int}, filename='nums.csv')
        records = reader.records()
        assert next(records)[0] == {'n': 1}
        with pytest.raises(TransformError, match=r"^nums\.csv:3:1: could not read field 'n': "):
            next(records)
        with pytest.raises(StopIteration):
            next(records)

    def test_employees_profile(self, employees_file):
        """Mixed endings, quoting and aliases through a config profile."""
        reader, error = svtk.open(employees_file, ReaderOptions.from_profile('employees'))
        assert error is None
        with reader:
            records = [record for record, _ in reader]
        assert records == [
            {'employee_id': 1, 'name': 'Aang', 'department': 'Air',
             'hired': dt.date(2024, 1, 15), 'salary': 1200.5},
            {'employee_id': 2, 'name': 'Katara', 'department': 'Water',
             'hired': dt.date(2023, 6, 1), 'salary': 980.0},
            {'employee_id': 3, 'name': 'Sokka', 'department': 'Water',
             'hired': dt.date(2022, 3, 9), 'salary': 0.0},
            {'employee_id': 4, 'name': 'Toph', 'department': 'Earth',
             'hired': dt.date(2021, 11, 30), 'salary': 1500.0},
        ]


class TestErrors:
    """Tests for grammar failures during iteration."""

    def test_unmatched_quote_after_good_rows(self):
        reader = svtk.open_string('a,b\n"x,y\n', filename='bad.csv')
        records = reader.records()
        assert next(records)[0] == ['a', 'b']
        with pytest.raises(ParseError, match=r"^bad\.csv:2:1: unmatched quote$"):
            next(records)
        assert list(records) == []

    def test_garbage_after_quote(self):
        with pytest.raises(ParseError, match="unmatched quote"):
            list(svtk.open_string('"a"b\n'))


class TestSessions:
    """Tests for opening, naming and closing sessions."""

    def test_open_missing_file(self, tmp_path):
        reader, error = svtk.open(tmp_path / 'missing.csv')
        assert reader is None
        assert 'missing.csv' in error
        assert 'No such file' in error

    def test_open_positions(self, employees_file):
        reader, _ = svtk.open(employees_file)
        with reader:
            results = list(reader)
        assert len(results) == 5
        sokka, positions = results[3]
        assert sokka[1] == 'Sokka'
        assert sokka[5] == 'Says "boomerang!"\nA lot'
        assert positions[5] == Position(5, 29)
        assert results[4][1][0] == Position(7, 1)

    def test_idempotent_reads(self, employees_file):
        runs = []
        for _ in range(2):
            reader, _ = svtk.open(employees_file, header=True)
            with reader:
                runs.append(list(reader))
        assert runs[0] == runs[1]
        assert len(runs[0]) == 4

    def test_gzip_file(self, tmp_path, employees_file):
        gz_path = tmp_path / 'employees.csv.gz'
        with gzip.open(gz_path, 'wb') as f:
            f.write(employees_file.read_bytes())
        plain, _ = svtk.open(employees_file)
        packed, _ = svtk.open(gz_path)
        with plain, packed:
            assert list(packed) == list(plain)

    def test_zip_file(self, tmp_path, employees_file):
        zip_path = tmp_path / 'employees.zip'
        with zipfile.ZipFile(zip_path, 'w') as zf:
            zf.write(employees_file, 'employees.csv')
        reader, error = svtk.open(zip_path, header=True)
        assert error is None
        with reader:
            assert len(list(reader)) == 4

    def test_zip_member_option(self, tmp_path, employees_file, fixtures_dir):
        """An archive with several unrelated members needs zip_member."""
        zip_path = tmp_path / 'exports.zip'
        with zipfile.ZipFile(zip_path, 'w') as zf:
            zf.write(employees_file, 'employees.csv')
            zf.write(fixtures_dir / 'states.tsv', 'states.tsv')

        reader, error = svtk.open(zip_path, header=True)
        assert reader is None
        assert 'Specify zip_member' in error

        reader, error = svtk.open(zip_path, header=True, zip_member='states.tsv')
        assert error is None
        with reader:
            assert [record['code'] for record, _ in reader] == ['OR', 'WA']

    def test_decode_error_ends_session(self, tmp_path):
        """Invalid bytes stop the session for good, like parse errors do."""
        bad = tmp_path / 'latin1.csv'
        bad.write_bytes('name\nJos\xe9\n'.encode('latin-1'))
        reader, error = svtk.open(bad)
        assert error is None
        records = reader.records()
        with pytest.raises(UnicodeDecodeError):
            next(records)
        assert list(records) == []
        reader.close()

    def test_source_names(self, employees_file):
        reader, _ = svtk.open(employees_file)
        assert reader.source_name() == str(employees_file)
        reader.close()
        assert svtk.open_string('a,b,c,d,e,f,g,h\n1\n').source_name() == '<string: a,b,c,d,e,f,...>'
        assert svtk.open_string('a,b').source_name() == '<string: a,b>'
        assert svtk.open_string('a,b\n').source_name() == '<string: a,b>'
        assert svtk.open_string('a\nb').source_name() == '<string: a...>'
        assert svtk.open_string('a,b', filename='inline.csv').source_name() == 'inline.csv'
        assert svtk.use(io.StringIO('a,b')).source_name() == '<unknown>'

    def test_separator_detected(self, fixtures_dir):
        reader, _ = svtk.open(fixtures_dir / 'states.tsv', header=True)
        with reader:
            assert reader.separator is None
            records = [record for record, _ in reader]
            assert reader.separator == '\t'
        assert records[1] == {'state': 'Washington', 'code': 'WA', 'capital': 'Olympia'}

    def test_records_not_restartable(self):
        reader = svtk.open_string('a\nb\n')
        assert reader.records() is iter(reader)
        assert len(list(reader)) == 2
        assert list(reader) == []
        assert reader.row_count == 2

    def test_close_closes_source(self):
        fp = io.StringIO('a,b\n', newline='')
        with svtk.use(fp) as reader:
            next(iter(reader))
        assert fp.closed
        reader.close()

    def test_needs_exactly_one_source(self):
        with pytest.raises(ValueError, match="exactly one"):
            svtk.SVReader()

    def test_open_string_rejects_bytes(self):
        with pytest.raises(TypeError):
            svtk.open_string(b'a,b')


class TestReaderOptions:
    """Tests for option validation."""

    @pytest.mark.parametrize("kwargs, message", [
        ({'buffer_size': 0}, "buffer_size"),
        ({'buffer_size': 'big'}, "buffer_size"),
        ({'separator': ',,'}, "single character"),
        ({'separator': '"'}, "quote or line ending"),
        ({'separator': '\n'}, "quote or line ending"),
        ({'separator_candidates': ''}, "separator_candidates"),
        ({'columns': ['a', 'b']}, "columns must be a mapping"),
    ])
    def test_invalid(self, kwargs, message):
        with pytest.raises(ValueError, match=message):
            ReaderOptions(**kwargs)

    def test_unknown_option(self):
        with pytest.raises(ValueError, match="Unknown reader options: seperator"):
            svtk.open_string('a', seperator=',')

    def test_buffer_block_size_alias(self):
        assert ReaderOptions.from_mapping({'buffer_block_size': 7}).buffer_size == 7

    def test_defaults_from_settings(self):
        options = ReaderOptions()
        assert options.buffer_size == 1024
        assert options.separator_candidates == ',\t'

    def test_keyword_overrides(self):
        options = ReaderOptions(separator=';')
        reader = svtk.open_string('a;b', options, buffer_size=2)
        assert reader.options.separator == ';'
        assert reader.options.buffer_size == 2
        assert list(reader) == [(['a', 'b'], [Position(1, 1), Position(1, 3)])]
