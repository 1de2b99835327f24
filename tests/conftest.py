"""
Pytest configuration and fixtures for line batch tests.
"""

import os

import pytest

from src.linebatch.core.config import BatchConfig
from src.linebatch.core.models import Record


@pytest.fixture(autouse=True)
def clean_batch_env(monkeypatch):
    """Keep BATCH_ variables from the outer environment out of the tests."""
    for key in list(os.environ):
        if key.upper().startswith("BATCH_"):
            monkeypatch.delenv(key)


@pytest.fixture
def make_config():
    """Build a config that ignores any .env file."""

    def _make(**kwargs):
        return BatchConfig(_env_file=None, **kwargs)

    return _make


@pytest.fixture
def default_config(make_config):
    return make_config()


@pytest.fixture
def make_records():
    """Turn a list of strings into indexed records."""

    def _make(lines):
        return [Record(index=i, text=line) for i, line in enumerate(lines)]

    return _make


@pytest.fixture
def write_input(tmp_path):
    """Write lines to a newline-delimited input file."""

    def _write(lines, name="input.txt", newline="\n", trailing=True):
        path = tmp_path / name
        content = newline.join(lines)
        if lines and trailing:
            content += newline
        path.write_bytes(content.encode("utf-8"))
        return path

    return _write


@pytest.fixture
def mixed_lines():
    """Lines with normal records, error markers and malformed records."""
    lines = []
    for i in range(500):
        if i % 50 == 7:
            lines.append("error")
        elif i % 37 == 3:
            lines.append(f"bad\x00record {i}")
        else:
            lines.append(f"record {i}")
    return lines
