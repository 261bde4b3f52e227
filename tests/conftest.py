from __future__ import annotations

from pathlib import Path

import pytest

from taskboard.config import settings


@pytest.fixture()
def data_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the server at a fresh board document and disable the API key."""
    path = tmp_path / "data" / "tasks.json"
    monkeypatch.setattr(settings, "data_file", path)
    monkeypatch.setattr(settings, "mistral_api_key", "")
    monkeypatch.setattr(settings, "save_debounce_seconds", 0.01)
    return path
