from __future__ import annotations

from dataclasses import dataclass, replace

from domain.models import TRANSPARENT, ElementBase

PRESERVE_VERTICES_MAX_ROUGHNESS = 2
DASHED_LINE_DASH = 8.0
DOTTED_LINE_DASH = 1.5
DASH_STROKE_WIDEN = 0.5


@dataclass(frozen=True)
class SketchOptions:
    seed: int
    stroke_width: float
    roughness: float
    stroke: str
    preserve_vertices: bool
    stroke_line_dash: tuple[float, float] | None = None
    disable_multi_stroke: bool = False
    fill: str | None = None
    fill_style: str | None = None
    fill_weight: float | None = None
    hachure_gap: float | None = None


def build_sketch_options(element: ElementBase) -> SketchOptions:
    stroke_width = element.stroke_width
    options = SketchOptions(
        seed=element.seed,
        stroke_width=stroke_width,
        roughness=element.roughness,
        stroke=element.stroke_color,
        preserve_vertices=element.roughness < PRESERVE_VERTICES_MAX_ROUGHNESS,
    )

    # Multi-stroke sketching over a dash pattern leaves doubled dashes.
    if element.stroke_style == "dashed":
        options = replace(
            options,
            stroke_line_dash=(DASHED_LINE_DASH, 8 + stroke_width),
            stroke_width=stroke_width + DASH_STROKE_WIDEN,
            disable_multi_stroke=True,
        )
    elif element.stroke_style == "dotted":
        options = replace(
            options,
            stroke_line_dash=(DOTTED_LINE_DASH, 6 + stroke_width),
            stroke_width=stroke_width + DASH_STROKE_WIDEN,
            disable_multi_stroke=True,
        )

    if element.background_color and element.background_color != TRANSPARENT:
        options = replace(
            options,
            fill=element.background_color,
            fill_style=element.fill_style,
            fill_weight=stroke_width / 2,
            hachure_gap=stroke_width * 4,
        )
    return options


def arrowhead_options(options: SketchOptions) -> SketchOptions:
    """Arrow heads stay crisp: no fill, no dashes, single stroke."""
    return replace(
        options,
        fill=None,
        fill_style="solid",
        fill_weight=None,
        hachure_gap=None,
        stroke_line_dash=None,
        disable_multi_stroke=True,
    )


def stroke_only(options: SketchOptions) -> SketchOptions:
    return replace(options, fill=None, fill_style=None, fill_weight=None, hachure_gap=None)
