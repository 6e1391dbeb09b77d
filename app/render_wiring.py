from __future__ import annotations

from adapters.raster.font_registry import PillowFontRegistry
from adapters.raster.pillow_backend import PillowRasterBackend
from app.config import AppSettings
from domain.services.render_excalidraw import ExcalidrawRenderer


def build_renderer(settings: AppSettings) -> ExcalidrawRenderer:
    fonts = PillowFontRegistry(settings.fonts.fonts_dir)
    return ExcalidrawRenderer(PillowRasterBackend(fonts), fonts)
