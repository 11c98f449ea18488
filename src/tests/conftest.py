"""Test configuration for pytest.

Ensure the repository root is on sys.path so tests can import the `src` package
(and `run.py`) without needing PYTHONPATH set externally.
"""
import os
import sys

import pytest

# Compute project root: two directories above this file (src/tests -> src -> project root)
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

# the small lab trace used throughout the tests
YI_TRACE = """\
 L 10,1
 M 20,1
 L 22,1
 S 18,1
 L 110,1
 L 210,1
 M 12,1
"""


@pytest.fixture
def write_trace(tmp_path):
    """Return a helper that writes trace text to a file and gives its path."""
    def _write(text: str, name: str = 'test.trace') -> str:
        path = tmp_path / name
        path.write_text(text)
        return str(path)
    return _write


@pytest.fixture
def yi_trace(write_trace):
    return write_trace(YI_TRACE, 'yi.trace')
