from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from PIL import ImageFont

from domain.fonts import FONT_FACES, FontSpec

logger = logging.getLogger(__name__)

PillowFont = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]
FALLBACK_FAMILY_ID = 2


class PillowFontRegistry:
    """Resolves Excalidraw font families to Pillow fonts.

    Registration scans ``fonts_dir`` once per registry instance; families whose
    file is absent fall back to Pillow's bundled default font.
    """

    def __init__(self, fonts_dir: Path | None = None) -> None:
        self.fonts_dir = fonts_dir
        self._registered = False
        self._paths: dict[int, Path] = {}
        self._cache: dict[tuple[int, int], PillowFont] = {}

    @property
    def registered(self) -> bool:
        return self._registered

    @property
    def font_paths(self) -> dict[int, Path]:
        return dict(self._paths)

    def ensure_registered(self) -> None:
        if self._registered:
            return
        for family_id, face in FONT_FACES.items():
            if self.fonts_dir is None:
                break
            path = self.fonts_dir / face.file_name
            if not path.exists():
                logger.warning("Font file for %s not found at %s, using fallback", face.name, path)
                continue
            self._paths[family_id] = path
        self._registered = True

    def font(self, spec: FontSpec) -> PillowFont:
        self.ensure_registered()
        size = max(1, round(spec.size))
        key = (spec.family_id, size)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        path = self._paths.get(spec.family_id) or self._paths.get(FALLBACK_FAMILY_ID)
        font: PillowFont | None = None
        if path is not None:
            try:
                font = ImageFont.truetype(str(path), size)
            except OSError:
                logger.warning("Could not load %s from %s, using fallback", spec.family, path)
        if font is None:
            font = ImageFont.load_default(size=size)
        self._cache[key] = font
        return font
