from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol


class ExcalidrawRepository(Protocol):
    def load_raw(self, path: Path) -> Any: ...

    def save_image(self, payload: bytes, path: Path) -> None: ...
