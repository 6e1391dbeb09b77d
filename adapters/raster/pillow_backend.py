from __future__ import annotations

import base64
import binascii
import io
import logging
import math
from collections.abc import Sequence

from PIL import Image, ImageColor, ImageDraw

from adapters.raster.font_registry import PillowFontRegistry
from domain.fonts import FontSpec
from domain.models import TRANSPARENT, EmbeddedFile
from domain.services.geometry import Affine, PathCommand, ellipse_points, flatten_path
from domain.services.sketch_options import SketchOptions

logger = logging.getLogger(__name__)

Coordinate = tuple[float, float]
RGBA = tuple[int, int, int, int]

TEXT_ANCHORS = {"left": "la", "center": "ma", "right": "ra"}


def parse_color(color: str | None) -> RGBA | None:
    if not color or color == TRANSPARENT:
        return None
    try:
        rgb = ImageColor.getrgb(color)
    except ValueError:
        logger.warning("Skipping primitive with unsupported color %r", color)
        return None
    if len(rgb) == 3:
        return (rgb[0], rgb[1], rgb[2], 255)
    return (rgb[0], rgb[1], rgb[2], rgb[3])


def decode_data_url(data_url: str) -> bytes:
    header, _, payload = data_url.partition(",")
    if not header.startswith("data:") or not payload:
        raise ValueError("Embedded file is not a data URL")
    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=False)
        except binascii.Error as exc:
            raise ValueError(f"Embedded file has invalid base64 payload: {exc}") from exc
    return payload.encode("utf-8")


def dash_polyline(
    points: Sequence[Coordinate],
    pattern: tuple[float, float],
) -> list[list[Coordinate]]:
    """Split a polyline into the "on" runs of a two-value dash pattern."""
    on, off = pattern
    if on <= 0 or len(points) < 2:
        return [list(points)]
    runs: list[list[Coordinate]] = []
    current: list[Coordinate] = [points[0]]
    drawing = True
    remaining = on
    for (x0, y0), (x1, y1) in zip(points, points[1:]):
        length = math.hypot(x1 - x0, y1 - y0)
        position = 0.0
        while length - position > remaining:
            position += remaining
            t = position / length
            split = (x0 + (x1 - x0) * t, y0 + (y1 - y0) * t)
            if drawing:
                current.append(split)
                runs.append(current)
                current = []
            else:
                current = [split]
            drawing = not drawing
            remaining = on if drawing else off
        remaining -= length - position
        if drawing:
            current.append((x1, y1))
    if drawing and len(current) > 1:
        runs.append(current)
    return runs


class PillowSurface:
    """RGBA drawing surface with canvas-style transform and alpha state."""

    def __init__(self, width: int, height: int, fonts: PillowFontRegistry | None = None) -> None:
        self.image = Image.new("RGBA", (max(width, 1), max(height, 1)), (0, 0, 0, 0))
        self.fonts = fonts or PillowFontRegistry()
        self.matrix = Affine.identity()
        self.alpha = 1.0
        self._stack: list[tuple[Affine, float]] = []

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size

    def save(self) -> None:
        self._stack.append((self.matrix, self.alpha))

    def restore(self) -> None:
        if self._stack:
            self.matrix, self.alpha = self._stack.pop()

    def transform(self, matrix: Affine) -> None:
        self.matrix = self.matrix.multiply(matrix)

    def set_alpha(self, alpha: float) -> None:
        self.alpha = min(max(alpha, 0.0), 1.0)

    def fill_rect(self, x: float, y: float, width: float, height: float, color: str) -> None:
        self.fill_polygon([(x, y), (x + width, y), (x + width, y + height), (x, y + height)], color)

    def fill_text(
        self,
        text: str,
        x: float,
        y: float,
        *,
        font: FontSpec,
        color: str,
        align: str,
    ) -> None:
        rgba = parse_color(color)
        if not text or rgba is None:
            return
        pixels_per_unit = max(self.matrix.scale_factor, 1e-6)
        pillow_font = self.fonts.font(font.scaled(pixels_per_unit))
        anchor = TEXT_ANCHORS.get(align, "la")

        measure = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
        left, top, right, bottom = measure.textbbox((0, 0), text, font=pillow_font, anchor=anchor)
        width, height = math.ceil(right - left), math.ceil(bottom - top)
        if width <= 0 or height <= 0:
            return
        layer = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        ImageDraw.Draw(layer).text((-left, -top), text, font=pillow_font, fill=rgba, anchor=anchor)
        self._paste_local(
            layer,
            origin=(x + left / pixels_per_unit, y + top / pixels_per_unit),
            pixels_per_unit=(pixels_per_unit, pixels_per_unit),
        )

    def draw_image(self, file: EmbeddedFile, width: float, height: float) -> None:
        if width <= 0 or height <= 0:
            return
        with Image.open(io.BytesIO(decode_data_url(file.data_url))) as source:
            picture = source.convert("RGBA")
        self._paste_local(
            picture,
            origin=(0.0, 0.0),
            pixels_per_unit=(picture.width / width, picture.height / height),
        )

    def encode_png(self) -> bytes:
        buffer = io.BytesIO()
        self.image.save(buffer, format="PNG")
        return buffer.getvalue()

    def stroke_polyline(
        self,
        points: Sequence[Coordinate],
        color: str,
        stroke_width: float,
        dash: tuple[float, float] | None = None,
    ) -> None:
        rgba = parse_color(color)
        if rgba is None or len(points) < 2:
            return
        runs = dash_polyline(points, dash) if dash else [list(points)]
        width = max(1, round(stroke_width * self.matrix.scale_factor))
        layer, draw = self._layer()
        for run in runs:
            if len(run) < 2:
                continue
            draw.line(self.matrix.apply_all(run), fill=rgba, width=width, joint="curve")
        self._commit(layer)

    def fill_polygon(self, points: Sequence[Coordinate], color: str | None) -> None:
        rgba = parse_color(color)
        if rgba is None or len(points) < 3:
            return
        layer, draw = self._layer()
        draw.polygon(self.matrix.apply_all(points), fill=rgba)
        self._commit(layer)

    def _layer(self) -> tuple[Image.Image, ImageDraw.ImageDraw]:
        layer = Image.new("RGBA", self.image.size, (0, 0, 0, 0))
        return layer, ImageDraw.Draw(layer)

    def _commit(self, layer: Image.Image) -> None:
        if self.alpha < 1.0:
            alpha = self.alpha
            layer.putalpha(layer.getchannel("A").point(lambda value: round(value * alpha)))
        self.image.alpha_composite(layer)

    def _paste_local(
        self,
        picture: Image.Image,
        *,
        origin: Coordinate,
        pixels_per_unit: tuple[float, float],
    ) -> None:
        """Warp ``picture``, whose top-left sits at ``origin`` in local units, onto the surface."""
        to_picture = (
            Affine.scaling(*pixels_per_unit)
            .multiply(Affine.translation(-origin[0], -origin[1]))
            .multiply(self.matrix.inverse())
        )
        warped = picture.transform(
            self.image.size,
            Image.Transform.AFFINE,
            (to_picture.a, to_picture.c, to_picture.e, to_picture.b, to_picture.d, to_picture.f),
            resample=Image.Resampling.BILINEAR,
        )
        self._commit(warped)


class PillowSketchCanvas:
    """Draws sketch primitives as exact geometry; roughness and seed are not applied."""

    def __init__(self, surface: PillowSurface) -> None:
        self.surface = surface

    def line(self, x1: float, y1: float, x2: float, y2: float, options: SketchOptions) -> None:
        self._stroke([(x1, y1), (x2, y2)], options)

    def rectangle(
        self, x: float, y: float, width: float, height: float, options: SketchOptions
    ) -> None:
        self.polygon([(x, y), (x + width, y), (x + width, y + height), (x, y + height)], options)

    def ellipse(
        self, cx: float, cy: float, width: float, height: float, options: SketchOptions
    ) -> None:
        self.polygon(ellipse_points(cx, cy, width, height), options)

    def polygon(self, points: Sequence[Coordinate], options: SketchOptions) -> None:
        closed = [*points, points[0]] if points else []
        if options.fill:
            self.surface.fill_polygon(points, options.fill)
        self._stroke(closed, options)

    def linear_path(self, points: Sequence[Coordinate], options: SketchOptions) -> None:
        self._stroke(points, options)

    def path(self, commands: Sequence[PathCommand], options: SketchOptions) -> None:
        for subpath in flatten_path(commands):
            if options.fill and subpath[0] == subpath[-1]:
                self.surface.fill_polygon(subpath, options.fill)
            self._stroke(subpath, options)

    def _stroke(self, points: Sequence[Coordinate], options: SketchOptions) -> None:
        self.surface.stroke_polyline(
            points,
            options.stroke,
            options.stroke_width,
            options.stroke_line_dash,
        )


class PillowRasterBackend:
    def __init__(self, fonts: PillowFontRegistry | None = None) -> None:
        self.fonts = fonts or PillowFontRegistry()

    def create_surface(self, width: int, height: int) -> PillowSurface:
        return PillowSurface(width, height, self.fonts)

    def sketch_canvas(self, surface: PillowSurface) -> PillowSketchCanvas:
        return PillowSketchCanvas(surface)
