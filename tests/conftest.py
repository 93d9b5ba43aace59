"""Shared fixtures."""

import pytest

from studypaste.config import PasteConfig


@pytest.fixture(autouse=True)
def no_user_config(monkeypatch):
    """Keep config files on the developer's machine out of the tests."""
    monkeypatch.setattr(PasteConfig, "CONFIG_LOCATIONS", [])
