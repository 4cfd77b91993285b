"""Shared test fixtures."""

from __future__ import annotations

import logging
import os

import pytest


@pytest.fixture(autouse=True)
def _mock_settings(monkeypatch, tmp_path):
    """Isolate settings from the developer's environment and .env file."""
    for key in list(os.environ):
        if key.startswith("AVERT_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)

    # Reset cached settings
    import avert.config.loader as loader
    loader._settings = None
    yield
    loader._settings = None


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """setup_logging replaces root handlers; put them back after each test."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)
