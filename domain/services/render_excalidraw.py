from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from domain.errors import NoVisibleElementsError, RenderError, StructuralError
from domain.fonts import FontSpec
from domain.models import (
    DEFAULT_BACKGROUND_COLOR,
    DiamondElement,
    Element,
    EllipseElement,
    ExcalidrawDocument,
    FrameElement,
    FreeDrawElement,
    ImageElement,
    LinearElement,
    OtherElement,
    RectangleElement,
    RenderOptions,
    TextElement,
)
from domain.ports.rendering import DrawingSurface, FontProvider, RasterBackend, SketchCanvas
from domain.services.geometry import (
    arrowheads_for,
    canvas_transform,
    compute_bounding_box,
    diamond_points,
    element_transform,
    rounded_rectangle_path,
)
from domain.services.sketch_options import arrowhead_options, build_sketch_options, stroke_only
from domain.services.validate_excalidraw import ExcalidrawValidator

logger = logging.getLogger(__name__)

_LINE_BREAKS = re.compile(r"\r\n?")


class ExcalidrawRenderer:
    """Sequences validation, layout and per-element drawing onto a raster backend."""

    def __init__(
        self,
        backend: RasterBackend,
        fonts: FontProvider | None = None,
        validator: ExcalidrawValidator | None = None,
    ) -> None:
        self.backend = backend
        self.fonts = fonts
        self.validator = validator or ExcalidrawValidator()

    def render(self, data: Mapping[str, Any], options: RenderOptions | None = None) -> bytes:
        options = options or RenderOptions()
        validation = self.validator.validate(data)
        structural = validation.structural_errors
        if structural:
            raise StructuralError(structural)
        if validation.errors:
            logger.info(
                "Rendering despite %d element error(s); affected elements may render incorrectly",
                len(validation.errors),
            )
        return self.render_document(ExcalidrawDocument.from_dict(data), options)

    def render_document(self, document: ExcalidrawDocument, options: RenderOptions) -> bytes:
        elements = document.visible_elements()
        if not elements:
            raise NoVisibleElementsError()

        box = compute_bounding_box(elements, options.padding)
        width = math.ceil(box.width * options.scale)
        height = math.ceil(box.height * options.scale)
        logger.debug("Rendering %d element(s) onto a %dx%d surface", len(elements), width, height)

        try:
            surface = self.backend.create_surface(width, height)
            sketch = self.backend.sketch_canvas(surface)

            if options.background:
                background = document.app_state.view_background_color or DEFAULT_BACKGROUND_COLOR
                surface.fill_rect(0, 0, width, height, background)

            surface.transform(canvas_transform(box, options.scale, options.padding))
            if self.fonts is not None:
                self.fonts.ensure_registered()

            for element in elements:
                surface.save()
                try:
                    surface.set_alpha(element.opacity / 100)
                    self._draw_element(element, document, surface, sketch)
                finally:
                    surface.restore()
            return surface.encode_png()
        except RenderError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise RenderError(str(exc)) from exc

    def _draw_element(
        self,
        element: Element,
        document: ExcalidrawDocument,
        surface: DrawingSurface,
        sketch: SketchCanvas,
    ) -> None:
        if isinstance(element, RectangleElement):
            self._with_transform(surface, element)
            self._draw_rectangle(element, sketch)
        elif isinstance(element, EllipseElement):
            self._with_transform(surface, element)
            options = build_sketch_options(element)
            sketch.ellipse(
                element.width / 2, element.height / 2, element.width, element.height, options
            )
        elif isinstance(element, DiamondElement):
            self._with_transform(surface, element)
            sketch.polygon(
                diamond_points(element.width, element.height), build_sketch_options(element)
            )
        elif isinstance(element, TextElement):
            self._with_transform(surface, element)
            self._draw_text(element, surface)
        elif isinstance(element, LinearElement):
            self._with_transform(surface, element)
            self._draw_linear(element, sketch)
        elif isinstance(element, FreeDrawElement):
            self._with_transform(surface, element)
            self._draw_freedraw(element, sketch)
        elif isinstance(element, ImageElement):
            self._with_transform(surface, element)
            self._draw_image(element, document, surface)
        elif isinstance(element, (FrameElement, OtherElement)):
            # Frames are layout containers only.
            return

    def _with_transform(self, surface: DrawingSurface, element: Element) -> None:
        surface.transform(element_transform(element))

    def _draw_rectangle(self, element: RectangleElement, sketch: SketchCanvas) -> None:
        options = build_sketch_options(element)
        if element.roundness:
            sketch.path(rounded_rectangle_path(element.width, element.height), options)
        else:
            sketch.rectangle(0, 0, element.width, element.height, options)

    def _draw_text(self, element: TextElement, surface: DrawingSurface) -> None:
        font = FontSpec(family_id=element.font_family, size=element.font_size)
        line_height = element.font_size * element.line_height
        offset = 0.0
        if element.text_align == "center":
            offset = element.width / 2
        elif element.text_align == "right":
            offset = element.width
        lines = _LINE_BREAKS.sub("\n", element.text).split("\n")
        for index, line in enumerate(lines):
            surface.fill_text(
                line,
                offset,
                index * line_height,
                font=font,
                color=element.stroke_color,
                align=element.text_align,
            )

    def _draw_linear(self, element: LinearElement, sketch: SketchCanvas) -> None:
        points = element.points or ()
        if len(points) < 2:
            return
        options = build_sketch_options(element)
        if len(points) == 2:
            sketch.line(points[0].x, points[0].y, points[1].x, points[1].y, options)
        else:
            sketch.linear_path([(point.x, point.y) for point in points], options)

        head_options = arrowhead_options(options)
        for head in arrowheads_for(element):
            if head.kind == "triangle":
                sketch.polygon(
                    [
                        (head.tip.x, head.tip.y),
                        (head.left.x, head.left.y),
                        (head.right.x, head.right.y),
                    ],
                    replace(head_options, fill=element.stroke_color),
                )
                continue
            sketch.line(head.left.x, head.left.y, head.tip.x, head.tip.y, head_options)
            sketch.line(head.right.x, head.right.y, head.tip.x, head.tip.y, head_options)

    def _draw_freedraw(self, element: FreeDrawElement, sketch: SketchCanvas) -> None:
        if len(element.points) < 2:
            return
        sketch.linear_path(
            [(point.x, point.y) for point in element.points],
            stroke_only(build_sketch_options(element)),
        )

    def _draw_image(
        self,
        element: ImageElement,
        document: ExcalidrawDocument,
        surface: DrawingSurface,
    ) -> None:
        embedded = document.files.get(element.file_id or "")
        if embedded is None:
            logger.warning(
                "Skipping image %s: file %r is not embedded", element.id, element.file_id
            )
            return
        surface.draw_image(embedded, element.width, element.height)
