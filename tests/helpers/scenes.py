from __future__ import annotations

import base64
import io
from typing import Any

from PIL import Image


def png_data_url(color: tuple[int, int, int, int] = (255, 0, 0, 255), size: int = 4) -> str:
    buffer = io.BytesIO()
    Image.new("RGBA", (size, size), color).save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


def base_element(element_type: str, element_id: str, **overrides: Any) -> dict[str, Any]:
    element: dict[str, Any] = {
        "id": element_id,
        "type": element_type,
        "x": 0,
        "y": 0,
        "width": 100,
        "height": 50,
        "angle": 0,
        "strokeColor": "#1e1e1e",
        "backgroundColor": "transparent",
        "fillStyle": "solid",
        "strokeWidth": 2,
        "strokeStyle": "solid",
        "roughness": 1,
        "opacity": 100,
        "seed": 42,
        "version": 1,
        "versionNonce": 7,
        "isDeleted": False,
        "groupIds": [],
        "boundElements": None,
        "locked": False,
    }
    element.update(overrides)
    return element


def rectangle(element_id: str = "rect-1", **overrides: Any) -> dict[str, Any]:
    return base_element("rectangle", element_id, **overrides)


def ellipse(element_id: str = "ellipse-1", **overrides: Any) -> dict[str, Any]:
    return base_element("ellipse", element_id, **overrides)


def diamond(element_id: str = "diamond-1", **overrides: Any) -> dict[str, Any]:
    return base_element("diamond", element_id, **overrides)


def text(element_id: str = "text-1", value: str = "Hello", **overrides: Any) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "text": value,
        "fontSize": 20,
        "fontFamily": 1,
        "textAlign": "left",
        "verticalAlign": "top",
        "containerId": None,
        "lineHeight": 1.25,
    }
    fields.update(overrides)
    return base_element("text", element_id, **fields)


def arrow(
    element_id: str = "arrow-1",
    points: list[list[float]] | None = None,
    **overrides: Any,
) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "points": points if points is not None else [[0, 0], [100, 0]],
        "startArrowhead": None,
        "endArrowhead": "arrow",
        "startBinding": None,
        "endBinding": None,
    }
    fields.update(overrides)
    return base_element("arrow", element_id, **fields)


def line(
    element_id: str = "line-1",
    points: list[list[float]] | None = None,
    **overrides: Any,
) -> dict[str, Any]:
    fields: dict[str, Any] = {"points": points if points is not None else [[0, 0], [50, 50]]}
    fields.update(overrides)
    return base_element("line", element_id, **fields)


def image(element_id: str = "image-1", file_id: str = "file-1", **overrides: Any) -> dict[str, Any]:
    return base_element("image", element_id, fileId=file_id, status="saved", **overrides)


def frame(element_id: str = "frame-1", **overrides: Any) -> dict[str, Any]:
    return base_element("frame", element_id, name="Frame", **overrides)


def embedded_file(file_id: str = "file-1") -> dict[str, Any]:
    return {
        "id": file_id,
        "mimeType": "image/png",
        "dataURL": png_data_url(),
        "created": 1,
    }


def scene(*elements: dict[str, Any], **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "type": "excalidraw",
        "version": 2,
        "source": "https://excalidraw.com",
        "elements": list(elements),
        "appState": {"viewBackgroundColor": "#ffffff", "gridSize": None},
        "files": {},
    }
    payload.update(extra)
    return payload
