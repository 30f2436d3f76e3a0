"""
Shared pytest configuration.

The app module builds its settings at import time, so the environment is
pinned here before any test module imports it.
"""

import os

os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("STORE", "memory")
os.environ.setdefault("LOG_FORMAT", "text")

import pytest

from clinicscribe.core.config import reset_settings


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Each test sees settings built from its own environment."""
    reset_settings()
    yield
    reset_settings()
