"""Shared fixtures: repo root on sys.path, isolated settings, offscreen Qt."""
from __future__ import annotations

import os
import sys

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from settings import SettingsManager, set_settings  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path):
    """Give every test default settings stored under a temp directory."""
    manager = SettingsManager(settings_dir=tmp_path / "config")
    set_settings(manager)
    yield manager
    set_settings(None)


@pytest.fixture(scope="session")
def qapp():
    """Provide a single QApplication for the entire test session."""
    from PyQt6.QtWidgets import QApplication
    app = QApplication.instance() or QApplication(sys.argv[:1])
    yield app
