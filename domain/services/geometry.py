from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Literal, Union

from domain.errors import NoVisibleElementsError
from domain.models import ElementBase, LinearElement, Point

logger = logging.getLogger(__name__)

STROKE_PADDING = 4.0
ARROWHEAD_ANGLE = math.radians(25)
SUPPORTED_ARROWHEADS = frozenset({"arrow", "triangle"})
ROUNDED_CORNER_RATIO = 0.1

ArrowPosition = Literal["start", "end"]


@dataclass(frozen=True)
class BoundingBox:
    min_x: float
    min_y: float
    width: float
    height: float


@dataclass(frozen=True)
class Affine:
    """2D affine matrix in canvas order: x' = a*x + c*y + e, y' = b*x + d*y + f."""

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    e: float = 0.0
    f: float = 0.0

    @classmethod
    def identity(cls) -> Affine:
        return cls()

    @classmethod
    def translation(cls, dx: float, dy: float) -> Affine:
        return cls(e=dx, f=dy)

    @classmethod
    def rotation(cls, angle: float) -> Affine:
        cos, sin = math.cos(angle), math.sin(angle)
        return cls(a=cos, b=sin, c=-sin, d=cos)

    @classmethod
    def scaling(cls, sx: float, sy: float | None = None) -> Affine:
        return cls(a=sx, d=sx if sy is None else sy)

    def multiply(self, other: Affine) -> Affine:
        """Compose so that ``other`` is applied first, like ``ctx.transform``."""
        return Affine(
            a=self.a * other.a + self.c * other.b,
            b=self.b * other.a + self.d * other.b,
            c=self.a * other.c + self.c * other.d,
            d=self.b * other.c + self.d * other.d,
            e=self.a * other.e + self.c * other.f + self.e,
            f=self.b * other.e + self.d * other.f + self.f,
        )

    def apply(self, x: float, y: float) -> tuple[float, float]:
        return (self.a * x + self.c * y + self.e, self.b * x + self.d * y + self.f)

    def apply_all(self, points: Iterable[tuple[float, float]]) -> list[tuple[float, float]]:
        return [self.apply(x, y) for x, y in points]

    @property
    def determinant(self) -> float:
        return self.a * self.d - self.b * self.c

    @property
    def scale_factor(self) -> float:
        return math.sqrt(abs(self.determinant))

    def inverse(self) -> Affine:
        det = self.determinant
        if det == 0:
            raise ValueError("Affine transform is not invertible")
        return Affine(
            a=self.d / det,
            b=-self.b / det,
            c=-self.c / det,
            d=self.a / det,
            e=(self.c * self.f - self.d * self.e) / det,
            f=(self.b * self.e - self.a * self.f) / det,
        )


@dataclass(frozen=True)
class ArrowHead:
    position: ArrowPosition
    kind: str
    tip: Point
    left: Point
    right: Point


@dataclass(frozen=True)
class MoveTo:
    point: Point


@dataclass(frozen=True)
class LineTo:
    point: Point


@dataclass(frozen=True)
class QuadraticTo:
    control: Point
    point: Point


@dataclass(frozen=True)
class ClosePath:
    pass


PathCommand = Union[MoveTo, LineTo, QuadraticTo, ClosePath]


def rotate_point(x: float, y: float, cx: float, cy: float, angle: float) -> tuple[float, float]:
    cos, sin = math.cos(angle), math.sin(angle)
    return (
        cos * (x - cx) - sin * (y - cy) + cx,
        sin * (x - cx) + cos * (y - cy) + cy,
    )


def element_corners(element: ElementBase) -> list[tuple[float, float]]:
    """Corners of the element rectangle after rotation about its center."""
    center = element.center
    x, y = element.x, element.y
    right, bottom = x + element.width, y + element.height
    return [
        rotate_point(px, py, center.x, center.y, element.angle)
        for px, py in ((x, y), (right, y), (right, bottom), (x, bottom))
    ]


def compute_bounding_box(elements: Sequence[ElementBase], padding: float) -> BoundingBox:
    """Rotated bounding box of all non-deleted elements, stroke padding included.

    Linear elements are measured by their points only: their width and height
    are not kept in sync with the points by every producer. The rectangle is
    used only for a linear element whose record has no points list.
    """
    min_x = min_y = math.inf
    max_x = max_y = -math.inf
    visible = 0

    for element in elements:
        if element.is_deleted:
            continue
        visible += 1
        if isinstance(element, LinearElement) and element.points is not None:
            # An empty points list contributes nothing.
            candidates = [(element.x + point.x, element.y + point.y) for point in element.points]
        else:
            candidates = element_corners(element)
        for px, py in candidates:
            min_x = min(min_x, px)
            min_y = min(min_y, py)
            max_x = max(max_x, px)
            max_y = max(max_y, py)

    if not visible or min_x == math.inf:
        raise NoVisibleElementsError()

    min_x -= STROKE_PADDING
    min_y -= STROKE_PADDING
    max_x += STROKE_PADDING
    max_y += STROKE_PADDING
    return BoundingBox(
        min_x=min_x,
        min_y=min_y,
        width=max_x - min_x + padding * 2,
        height=max_y - min_y + padding * 2,
    )


def canvas_transform(box: BoundingBox, scale: float, padding: float) -> Affine:
    """Map document coordinates onto a surface sized for ``box`` at ``scale``."""
    return Affine.scaling(scale).multiply(
        Affine.translation(-box.min_x + padding, -box.min_y + padding)
    )


def element_transform(element: ElementBase) -> Affine:
    """Local-to-document transform for drawing ``element`` in its own frame.

    Shapes draw from their unrotated top-left corner and rotate about their
    center; linear elements only move to their origin since their points
    already carry the shape.
    """
    if isinstance(element, LinearElement):
        return Affine.translation(element.x, element.y)
    center = element.center
    return (
        Affine.translation(center.x, center.y)
        .multiply(Affine.rotation(element.angle))
        .multiply(Affine.translation(-element.width / 2, -element.height / 2))
    )


def arrowhead_length(stroke_width: float) -> float:
    return stroke_width * 4 + 10


def arrowhead_geometry(
    points: Sequence[Point],
    position: ArrowPosition,
    stroke_width: float,
    kind: str = "arrow",
) -> ArrowHead | None:
    if len(points) < 2:
        return None
    if position == "end":
        tip, previous = points[-1], points[-2]
    else:
        tip, previous = points[0], points[1]
    dx = tip.x - previous.x
    dy = tip.y - previous.y
    distance = math.hypot(dx, dy)
    if distance == 0:
        return None

    nx, ny = dx / distance, dy / distance
    length = arrowhead_length(stroke_width)

    def wing(angle: float) -> Point:
        cos, sin = math.cos(angle), math.sin(angle)
        return Point(
            tip.x - length * (nx * cos - ny * sin),
            tip.y - length * (nx * sin + ny * cos),
        )

    return ArrowHead(
        position=position,
        kind=kind,
        tip=tip,
        left=wing(ARROWHEAD_ANGLE),
        right=wing(-ARROWHEAD_ANGLE),
    )


def arrowheads_for(element: LinearElement) -> list[ArrowHead]:
    if element.type != "arrow":
        return []
    heads: list[ArrowHead] = []
    sides: tuple[tuple[ArrowPosition, str | None], ...] = (
        ("end", element.end_arrowhead),
        ("start", element.start_arrowhead),
    )
    for position, kind in sides:
        if kind is None:
            continue
        if kind not in SUPPORTED_ARROWHEADS:
            logger.debug("Skipping unsupported %s arrowhead %r on %s", position, kind, element.id)
            continue
        head = arrowhead_geometry(element.points or (), position, element.stroke_width, kind)
        if head is None:
            logger.debug("Skipping degenerate %s arrowhead on %s", position, element.id)
            continue
        heads.append(head)
    return heads


def diamond_points(width: float, height: float) -> list[tuple[float, float]]:
    return [
        (width / 2, 0.0),
        (width, height / 2),
        (width / 2, height),
        (0.0, height / 2),
    ]


def rounded_rectangle_path(width: float, height: float) -> list[PathCommand]:
    radius = min(width, height) * ROUNDED_CORNER_RATIO
    w, h, r = width, height, radius
    return [
        MoveTo(Point(r, 0)),
        LineTo(Point(w - r, 0)),
        QuadraticTo(Point(w, 0), Point(w, r)),
        LineTo(Point(w, h - r)),
        QuadraticTo(Point(w, h), Point(w - r, h)),
        LineTo(Point(r, h)),
        QuadraticTo(Point(0, h), Point(0, h - r)),
        LineTo(Point(0, r)),
        QuadraticTo(Point(0, 0), Point(r, 0)),
        ClosePath(),
    ]


def flatten_path(
    commands: Sequence[PathCommand],
    steps: int = 8,
) -> list[list[tuple[float, float]]]:
    """Approximate a path by polylines, one per subpath; closed ones repeat their start."""
    subpaths: list[list[tuple[float, float]]] = []
    current: list[tuple[float, float]] = []
    for command in commands:
        if isinstance(command, MoveTo):
            if len(current) > 1:
                subpaths.append(current)
            current = [(command.point.x, command.point.y)]
        elif isinstance(command, LineTo):
            current.append((command.point.x, command.point.y))
        elif isinstance(command, QuadraticTo):
            if not current:
                current = [(command.control.x, command.control.y)]
            x0, y0 = current[-1]
            for step in range(1, steps + 1):
                t = step / steps
                inv = 1 - t
                current.append(
                    (
                        inv * inv * x0 + 2 * inv * t * command.control.x + t * t * command.point.x,
                        inv * inv * y0 + 2 * inv * t * command.control.y + t * t * command.point.y,
                    )
                )
        elif current:
            if current[-1] != current[0]:
                current.append(current[0])
            subpaths.append(current)
            current = []
    if len(current) > 1:
        subpaths.append(current)
    return subpaths


def ellipse_points(
    cx: float,
    cy: float,
    width: float,
    height: float,
    segments: int = 64,
) -> list[tuple[float, float]]:
    rx, ry = width / 2, height / 2
    return [
        (
            cx + rx * math.cos(2 * math.pi * index / segments),
            cy + ry * math.sin(2 * math.pi * index / segments),
        )
        for index in range(segments)
    ]
