from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from domain.schema import FRAME_TYPES, LINEAR_TYPES

DEFAULT_BACKGROUND_COLOR = "#ffffff"
DEFAULT_LINE_HEIGHT = 1.25
TRANSPARENT = "transparent"


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class BoundElement:
    id: str
    type: str


@dataclass(frozen=True)
class Binding:
    element_id: str
    focus: float = 0.0
    gap: float = 0.0


@dataclass(frozen=True)
class Roundness:
    type: int
    value: float | None = None


@dataclass(frozen=True)
class ElementBase:
    id: str = ""
    type: str = ""
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    angle: float = 0.0
    stroke_color: str = "#1e1e1e"
    background_color: str = TRANSPARENT
    fill_style: str = "solid"
    stroke_width: float = 1.0
    stroke_style: str = "solid"
    roughness: float = 1.0
    opacity: float = 100.0
    seed: int = 1
    is_deleted: bool = False
    group_ids: tuple[str, ...] = ()
    frame_id: str | None = None
    bound_elements: tuple[BoundElement, ...] = ()
    locked: bool = False
    roundness: Roundness | None = None
    link: str | None = None

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)


@dataclass(frozen=True)
class RectangleElement(ElementBase):
    """Rectangles, plus iframe and embeddable placeholders drawn as their frame."""


@dataclass(frozen=True)
class EllipseElement(ElementBase):
    pass


@dataclass(frozen=True)
class DiamondElement(ElementBase):
    pass


@dataclass(frozen=True)
class TextElement(ElementBase):
    text: str = ""
    font_size: float = 20.0
    font_family: int = 1
    text_align: str = "left"
    vertical_align: str = "top"
    line_height: float = DEFAULT_LINE_HEIGHT
    container_id: str | None = None


@dataclass(frozen=True)
class LinearElement(ElementBase):
    # None when the record carries no points list at all.
    points: tuple[Point, ...] | None = None
    start_arrowhead: str | None = None
    end_arrowhead: str | None = None
    start_binding: Binding | None = None
    end_binding: Binding | None = None


@dataclass(frozen=True)
class ImageElement(ElementBase):
    file_id: str | None = None
    status: str = "pending"
    scale: tuple[float, float] = (1.0, 1.0)


@dataclass(frozen=True)
class FreeDrawElement(ElementBase):
    points: tuple[Point, ...] = ()
    pressures: tuple[float, ...] = ()


@dataclass(frozen=True)
class FrameElement(ElementBase):
    name: str | None = None


@dataclass(frozen=True)
class OtherElement(ElementBase):
    pass


Element = Union[
    RectangleElement,
    EllipseElement,
    DiamondElement,
    TextElement,
    LinearElement,
    ImageElement,
    FreeDrawElement,
    FrameElement,
    OtherElement,
]


@dataclass(frozen=True)
class AppState:
    view_background_color: str = DEFAULT_BACKGROUND_COLOR
    grid_size: float | None = None


@dataclass(frozen=True)
class EmbeddedFile:
    id: str
    mime_type: str
    data_url: str


@dataclass(frozen=True)
class ExcalidrawDocument:
    elements: tuple[Element, ...]
    app_state: AppState = field(default_factory=AppState)
    files: dict[str, EmbeddedFile] = field(default_factory=dict)
    version: int = 2
    source: str = ""

    def visible_elements(self) -> list[Element]:
        return [element for element in self.elements if not element.is_deleted]

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> ExcalidrawDocument:
        raw_elements = payload.get("elements")
        elements = tuple(
            parse_element(raw)
            for raw in (raw_elements if isinstance(raw_elements, list) else [])
            if isinstance(raw, Mapping)
        )
        return cls(
            elements=elements,
            app_state=_load_app_state(payload.get("appState")),
            files=_load_files(payload.get("files")),
            version=int(_number(payload.get("version"), 2)),
            source=str(payload.get("source") or ""),
        )


def parse_element(raw: Mapping[str, Any]) -> Element:
    """Build the typed variant for one raw element, defaulting malformed values."""
    element_type = raw.get("type")
    base = _base_fields(raw)
    if element_type in ("rectangle", "iframe", "embeddable"):
        return RectangleElement(**base)
    if element_type == "ellipse":
        return EllipseElement(**base)
    if element_type == "diamond":
        return DiamondElement(**base)
    if element_type == "text":
        return TextElement(
            **base,
            text=str(raw.get("text") or ""),
            font_size=_number(raw.get("fontSize"), 20.0),
            font_family=int(_number(raw.get("fontFamily"), 1)),
            text_align=_string(raw.get("textAlign"), "left"),
            vertical_align=_string(raw.get("verticalAlign"), "top"),
            line_height=_number(raw.get("lineHeight"), DEFAULT_LINE_HEIGHT) or DEFAULT_LINE_HEIGHT,
            container_id=_optional_string(raw.get("containerId")),
        )
    if element_type in LINEAR_TYPES:
        return LinearElement(
            **base,
            points=_load_optional_points(raw.get("points")),
            start_arrowhead=_optional_string(raw.get("startArrowhead")),
            end_arrowhead=_optional_string(raw.get("endArrowhead")),
            start_binding=_load_binding(raw.get("startBinding")),
            end_binding=_load_binding(raw.get("endBinding")),
        )
    if element_type == "image":
        return ImageElement(
            **base,
            file_id=_optional_string(raw.get("fileId")),
            status=_string(raw.get("status"), "pending"),
            scale=_load_scale(raw.get("scale")),
        )
    if element_type == "freedraw":
        pressures = raw.get("pressures")
        return FreeDrawElement(
            **base,
            points=_load_points(raw.get("points")),
            pressures=tuple(
                _number(value, 0.5) for value in (pressures if isinstance(pressures, list) else [])
            ),
        )
    if element_type in FRAME_TYPES:
        return FrameElement(**base, name=_optional_string(raw.get("name")))
    return OtherElement(**base)


def _base_fields(raw: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "id": str(raw.get("id") or ""),
        "type": str(raw.get("type") or ""),
        "x": _number(raw.get("x"), 0.0),
        "y": _number(raw.get("y"), 0.0),
        "width": _number(raw.get("width"), 0.0),
        "height": _number(raw.get("height"), 0.0),
        "angle": _number(raw.get("angle"), 0.0),
        "stroke_color": _string(raw.get("strokeColor"), "#1e1e1e"),
        "background_color": _string(raw.get("backgroundColor"), TRANSPARENT),
        "fill_style": _string(raw.get("fillStyle"), "solid"),
        "stroke_width": _number(raw.get("strokeWidth"), 1.0),
        "stroke_style": _string(raw.get("strokeStyle"), "solid"),
        "roughness": _number(raw.get("roughness"), 1.0),
        "opacity": _number(raw.get("opacity"), 100.0),
        "seed": int(_number(raw.get("seed"), 1)),
        "is_deleted": bool(raw.get("isDeleted", False)),
        "group_ids": tuple(str(item) for item in _list(raw.get("groupIds"))),
        "frame_id": _optional_string(raw.get("frameId")),
        "bound_elements": _load_bound_elements(raw.get("boundElements")),
        "locked": bool(raw.get("locked", False)),
        "roundness": _load_roundness(raw.get("roundness")),
        "link": _optional_string(raw.get("link")),
    }


def _number(value: Any, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return float(value)


def _string(value: Any, default: str) -> str:
    return value if isinstance(value, str) and value else default


def _optional_string(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _load_points(value: Any) -> tuple[Point, ...]:
    points: list[Point] = []
    for item in _list(value):
        if not isinstance(item, (list, tuple)) or len(item) < 2:
            continue
        x, y = item[0], item[1]
        if isinstance(x, bool) or isinstance(y, bool):
            continue
        if isinstance(x, (int, float)) and isinstance(y, (int, float)):
            points.append(Point(float(x), float(y)))
    return tuple(points)


def _load_optional_points(value: Any) -> tuple[Point, ...] | None:
    return _load_points(value) if isinstance(value, list) else None


def _load_binding(value: Any) -> Binding | None:
    if not isinstance(value, Mapping):
        return None
    element_id = _optional_string(value.get("elementId"))
    if element_id is None:
        return None
    return Binding(
        element_id=element_id,
        focus=_number(value.get("focus"), 0.0),
        gap=_number(value.get("gap"), 0.0),
    )


def _load_bound_elements(value: Any) -> tuple[BoundElement, ...]:
    bound: list[BoundElement] = []
    for item in _list(value):
        if not isinstance(item, Mapping):
            continue
        bound_id = _optional_string(item.get("id"))
        if bound_id:
            bound.append(BoundElement(id=bound_id, type=str(item.get("type") or "")))
    return tuple(bound)


def _load_roundness(value: Any) -> Roundness | None:
    if not isinstance(value, Mapping):
        return None
    raw_value = value.get("value")
    return Roundness(
        type=int(_number(value.get("type"), 0)),
        value=None if raw_value is None else _number(raw_value, 0.0),
    )


def _load_scale(value: Any) -> tuple[float, float]:
    items = _list(value)
    if len(items) < 2:
        return (1.0, 1.0)
    return (_number(items[0], 1.0), _number(items[1], 1.0))


def _load_app_state(value: Any) -> AppState:
    if not isinstance(value, Mapping):
        return AppState()
    grid_size = value.get("gridSize")
    return AppState(
        view_background_color=_string(value.get("viewBackgroundColor"), DEFAULT_BACKGROUND_COLOR),
        grid_size=None if grid_size is None else _number(grid_size, 0.0) or None,
    )


def _load_files(value: Any) -> dict[str, EmbeddedFile]:
    if not isinstance(value, Mapping):
        return {}
    files: dict[str, EmbeddedFile] = {}
    for key, item in value.items():
        if not isinstance(item, Mapping):
            continue
        data_url = item.get("dataURL")
        if not isinstance(data_url, str) or not data_url:
            continue
        files[str(key)] = EmbeddedFile(
            id=str(item.get("id") or key),
            mime_type=str(item.get("mimeType") or ""),
            data_url=data_url,
        )
    return files


class RenderOptions(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    scale: float = Field(default=1.0, gt=0)
    background: bool = True
    # Reserved for collaborator styling; geometry ignores it.
    dark_mode: bool = False
    padding: float = Field(default=10.0, ge=0)
