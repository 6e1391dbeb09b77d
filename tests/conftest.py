from __future__ import annotations

import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import orjson
import pytest

from app.config import AppSettings, FontSettings
from domain.models import RenderOptions
from tests.helpers.recording_backend import RecordingBackend
from tests.helpers.scenes import scene


def _clear_excalidraw_env() -> None:
    for key in list(os.environ):
        if key.startswith("EXCALIDRAW_"):
            os.environ.pop(key, None)


_clear_excalidraw_env()


@pytest.fixture(autouse=True)
def clear_excalidraw_env() -> Generator[None, None, None]:
    _clear_excalidraw_env()
    yield
    _clear_excalidraw_env()


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    # Keeps a developer's config/excalidraw.yaml out of the settings under test.
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def recording_backend() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(render=RenderOptions(), fonts=FontSettings())


@pytest.fixture
def write_scene(tmp_path: Path) -> Callable[..., Path]:
    def _write(*elements: dict[str, Any], name: str = "scene.excalidraw", **extra: Any) -> Path:
        path = tmp_path / "input" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(orjson.dumps(scene(*elements, **extra)))
        return path

    return _write
