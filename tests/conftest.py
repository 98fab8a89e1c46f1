"""Pytest configuration for scanomatic tests."""

import pytest

# Skip the entire suite when the imaging stack is unavailable.
pytest.importorskip("nibabel")
pytest.importorskip("numpy")
