"""Pytest configuration and fixtures."""

import pytest

from format_shapeshifter.options import reset_limits


class SteppingClock:
    """Clock that moves one second forward on every read."""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        current = self.now
        self.now += 1.0
        return current


@pytest.fixture(autouse=True)
def restore_default_limits():
    """Undo any set_limits() call made by a test."""
    yield
    reset_limits()


@pytest.fixture
def stepping_clock():
    """A clock under which any timeout expires at the first check."""
    return SteppingClock()


@pytest.fixture
def sample_record_json():
    """Nested object JSON for testing."""
    return (
        '{"name": "John", "age": 30, "active": true, "score": 9.5, '
        '"tags": ["admin", "dev"], "address": {"city": "Paris", "zip": "75001"}, '
        '"manager": null}'
    )


@pytest.fixture
def sample_rows_json():
    """Array-of-objects JSON for table-shaped formats."""
    return (
        '[{"id": 1, "name": "Alice", "email": "alice@example.com"}, '
        '{"id": 2, "name": "Bob", "email": "bob@example.com"}]'
    )


@pytest.fixture
def sample_csv():
    """CSV with a header row."""
    return "id,name,email\n1,Alice,alice@example.com\n2,Bob,bob@example.com\n"


@pytest.fixture
def sample_yaml():
    """Block-style YAML document."""
    return (
        "name: John\n"
        "age: 30\n"
        "tags:\n"
        "  - admin\n"
        "  - dev\n"
        "address:\n"
        "  city: Paris\n"
    )


@pytest.fixture
def sample_toml():
    """TOML document with a table and an array of tables."""
    return (
        'title = "Inventory"\n'
        "\n"
        "[owner]\n"
        'name = "Tom"\n'
        "\n"
        "[[items]]\n"
        'name = "apple"\n'
        "price = 1.25\n"
        "\n"
        "[[items]]\n"
        'name = "pear"\n'
        "price = 2\n"
    )


@pytest.fixture
def sample_xml():
    """XML document with attributes and repeated elements."""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<library name="City">\n'
        "  <book><title>Dune</title><year>1965</year></book>\n"
        "  <book><title>Emma</title><year>1815</year></book>\n"
        "</library>\n"
    )
