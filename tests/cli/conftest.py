"""Shared fixtures for CLI tests."""

from __future__ import annotations

import os
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Never read the developer's global config or SHIPSHAPE__ env vars."""
    monkeypatch.setattr("shipshape.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "global.yaml")
    for key in list(os.environ):
        if key.upper().startswith("SHIPSHAPE__"):
            monkeypatch.delenv(key)
