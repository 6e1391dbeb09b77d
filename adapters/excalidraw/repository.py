from __future__ import annotations

from pathlib import Path
from typing import Any

from filelock import FileLock

from adapters.filesystem.json_utils import load_json_value, write_bytes_atomic
from domain.ports.repositories import ExcalidrawRepository


class FileSystemExcalidrawRepository(ExcalidrawRepository):
    def load_raw(self, path: Path) -> Any:
        return load_json_value(path)

    def save_image(self, payload: bytes, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        lock_path = path.with_suffix(f"{path.suffix}.lock")
        with FileLock(str(lock_path)):
            write_bytes_atomic(path, payload)
        lock_path.unlink(missing_ok=True)
