"""Shared fixtures: settings isolation and a small in-memory store."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from fluentfn import clear_settings_cache, create_builder
from fluentfn.core import Builder


@pytest.fixture(autouse=True)
def fresh_settings() -> Iterator[None]:
    """Re-read FLUENTFN_* for every test so monkeypatched env vars apply."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def convex() -> Builder:
    return create_builder()


@pytest.fixture
def store() -> list[int]:
    """Numbers in insertion order."""
    return [23, 42, 7]


@pytest.fixture
def fluent_logger() -> Iterator[logging.Logger]:
    """The package logger, restored after configure_logging() tests."""
    root = logging.getLogger("fluentfn")
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
