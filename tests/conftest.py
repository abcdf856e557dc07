# tests/conftest.py

"""Shared pytest fixtures for all pricesync tests."""

from collections.abc import Generator
from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def mock_sleep() -> Generator[None, None, None]:
    """Skip the pacing between platform attempts and between products.

    The orchestrator and batch driver call ``time.sleep`` through the
    ``time`` module, so one patch covers both.  Tests that assert on
    the pacing patch the module attribute again locally.
    """
    with patch("time.sleep"):
        yield
