# tests/conftest.py
"""
Shared test fixtures and configuration for pytest.
"""

import io
from pathlib import Path

import pytest

import svtk
from svtk.config import set_config_file


@pytest.fixture(autouse=True)
def setup_test_config():
    """Use the test config file for every test."""
    set_config_file(str(Path(__file__).parent / 'svtk_test.yml'))
    yield
    set_config_file(None)


@pytest.fixture
def config_file():
    """Path to the test config file."""
    return Path(__file__).parent / 'svtk_test.yml'


@pytest.fixture
def fixtures_dir():
    """Path to test fixtures directory."""
    return Path(__file__).parent / 'fixtures' / 'readers'


@pytest.fixture
def employees_file(fixtures_dir):
    """CSV with mixed line endings, quoted fields and a blank line."""
    return fixtures_dir / 'employees.csv'


@pytest.fixture
def read_all():
    """Drain a reader over text fed through a StringIO, returning (record, positions) pairs."""
    def _read_all(text, buffer_size=None, **options):
        if buffer_size is not None:
            options['buffer_size'] = buffer_size
        with svtk.use(io.StringIO(text, newline=''), **options) as reader:
            return list(reader)
    return _read_all


@pytest.fixture
def read_values(read_all):
    """Like read_all but returns only the records."""
    def _read_values(text, buffer_size=None, **options):
        return [record for record, positions in read_all(text, buffer_size, **options)]
    return _read_values
