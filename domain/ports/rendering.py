from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from domain.fonts import FontSpec
from domain.models import EmbeddedFile
from domain.services.geometry import Affine, PathCommand
from domain.services.sketch_options import SketchOptions

Coordinate = tuple[float, float]


class DrawingSurface(Protocol):
    def save(self) -> None: ...

    def restore(self) -> None: ...

    def transform(self, matrix: Affine) -> None: ...

    def set_alpha(self, alpha: float) -> None: ...

    def fill_rect(self, x: float, y: float, width: float, height: float, color: str) -> None: ...

    def fill_text(
        self,
        text: str,
        x: float,
        y: float,
        *,
        font: FontSpec,
        color: str,
        align: str,
    ) -> None: ...

    def draw_image(self, file: EmbeddedFile, width: float, height: float) -> None: ...

    def encode_png(self) -> bytes: ...


class SketchCanvas(Protocol):
    def line(self, x1: float, y1: float, x2: float, y2: float, options: SketchOptions) -> None: ...

    def rectangle(
        self, x: float, y: float, width: float, height: float, options: SketchOptions
    ) -> None: ...

    def ellipse(
        self, cx: float, cy: float, width: float, height: float, options: SketchOptions
    ) -> None: ...

    def polygon(self, points: Sequence[Coordinate], options: SketchOptions) -> None: ...

    def linear_path(self, points: Sequence[Coordinate], options: SketchOptions) -> None: ...

    def path(self, commands: Sequence[PathCommand], options: SketchOptions) -> None: ...


class RasterBackend(Protocol):
    def create_surface(self, width: int, height: int) -> DrawingSurface: ...

    def sketch_canvas(self, surface: DrawingSurface) -> SketchCanvas: ...


class FontProvider(Protocol):
    def ensure_registered(self) -> None: ...
