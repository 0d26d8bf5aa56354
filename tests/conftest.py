"""Shared test fixtures."""

from __future__ import annotations

import sys

import pytest

from buildmeta.platform import Platform


@pytest.fixture
def host_platform() -> Platform:
    """Platform of the machine running the tests."""
    return Platform.current()


@pytest.fixture
def not_host_triple() -> str:
    """A valid triple that is never the test host."""
    if sys.platform == "win32":
        return "x86_64-unknown-linux-gnu"
    return "x86_64-pc-windows-msvc"
