from __future__ import annotations

import pytest
from pydantic import ValidationError

from domain.models import (
    DEFAULT_BACKGROUND_COLOR,
    EllipseElement,
    ExcalidrawDocument,
    FrameElement,
    FreeDrawElement,
    ImageElement,
    LinearElement,
    OtherElement,
    Point,
    RectangleElement,
    RenderOptions,
    TextElement,
    parse_element,
)
from tests.helpers.scenes import arrow, ellipse, embedded_file, frame, image, rectangle, scene, text


def test_document_builds_typed_variants() -> None:
    payload = scene(
        rectangle(),
        ellipse(),
        text(),
        arrow(),
        image(),
        frame(),
        {"id": "raw", "type": "freedraw", "points": [[0, 0], [1, 1]], "pressures": [0.3]},
        files={"file-1": embedded_file()},
    )

    document = ExcalidrawDocument.from_dict(payload)

    assert [type(element) for element in document.elements] == [
        RectangleElement,
        EllipseElement,
        TextElement,
        LinearElement,
        ImageElement,
        FrameElement,
        FreeDrawElement,
    ]
    assert document.files["file-1"].mime_type == "image/png"
    assert document.source == "https://excalidraw.com"


def test_embeddable_and_iframe_render_as_rectangles() -> None:
    assert isinstance(parse_element(rectangle(type="embeddable")), RectangleElement)
    assert isinstance(parse_element(rectangle(type="iframe")), RectangleElement)
    assert isinstance(parse_element(rectangle(type="sticker")), OtherElement)


def test_malformed_values_fall_back_to_defaults() -> None:
    element = parse_element(
        rectangle(width="wide", opacity=None, strokeColor=7, angle=True, isDeleted=0)
    )

    assert element.width == 0.0
    assert element.opacity == 100.0
    assert element.stroke_color == "#1e1e1e"
    assert element.angle == 0.0
    assert element.is_deleted is False


def test_linear_points_keep_only_numeric_pairs() -> None:
    element = parse_element(arrow(points=[[0, 0], [1], ["a", 2], [3, 4, 5], [True, 1]]))

    assert isinstance(element, LinearElement)
    assert element.points == (Point(0, 0), Point(3, 4))
    assert element.end_arrowhead == "arrow"
    assert element.start_arrowhead is None


def test_bindings_and_bound_elements() -> None:
    element = parse_element(
        arrow(
            startBinding={"elementId": "box", "focus": 0.2, "gap": 4},
            endBinding={"focus": 1},
            boundElements=[{"id": "label", "type": "text"}, {"type": "arrow"}, "junk"],
        )
    )

    assert isinstance(element, LinearElement)
    assert element.start_binding is not None
    assert element.start_binding.element_id == "box"
    assert element.start_binding.gap == 4.0
    assert element.end_binding is None
    assert [bound.id for bound in element.bound_elements] == ["label"]


def test_text_fields_and_line_height_default() -> None:
    element = parse_element(text(value="hi", fontFamily=3, lineHeight=None, containerId="box"))

    assert isinstance(element, TextElement)
    assert element.text == "hi"
    assert element.font_family == 3
    assert element.line_height == 1.25
    assert element.container_id == "box"


def test_non_object_elements_and_files_are_dropped() -> None:
    payload = scene(
        rectangle(),
        "oops",
        None,
        files={"good": embedded_file("good"), "bad": "nope", "empty": {"dataURL": ""}},
    )

    document = ExcalidrawDocument.from_dict(payload)

    assert len(document.elements) == 1
    assert list(document.files) == ["good"]


def test_missing_app_state_uses_white_background() -> None:
    document = ExcalidrawDocument.from_dict({"elements": [rectangle()]})

    assert document.app_state.view_background_color == DEFAULT_BACKGROUND_COLOR
    assert document.files == {}


def test_visible_elements_skip_deleted() -> None:
    document = ExcalidrawDocument.from_dict(
        scene(rectangle("kept"), rectangle("gone", isDeleted=True))
    )

    assert [element.id for element in document.visible_elements()] == ["kept"]


def test_element_center() -> None:
    element = RectangleElement(x=10.0, y=20.0, width=100.0, height=50.0)

    assert element.center == Point(60.0, 45.0)


def test_render_options_defaults_and_aliases() -> None:
    options = RenderOptions.model_validate({"darkMode": True, "scale": 2})

    assert options.dark_mode is True
    assert options.scale == 2.0
    assert options.background is True
    assert options.padding == 10.0


@pytest.mark.parametrize("overrides", [{"scale": 0}, {"scale": -1}, {"padding": -5}])
def test_render_options_reject_invalid_values(overrides: dict[str, float]) -> None:
    with pytest.raises(ValidationError):
        RenderOptions.model_validate(overrides)


def test_linear_points_distinguish_empty_from_absent() -> None:
    empty = parse_element(arrow(points=[]))
    invalid = parse_element(arrow(points=[["a", "b"]]))
    absent = arrow()
    del absent["points"]

    assert isinstance(empty, LinearElement)
    assert isinstance(invalid, LinearElement)
    parsed_absent = parse_element(absent)
    assert isinstance(parsed_absent, LinearElement)
    assert empty.points == ()
    assert invalid.points == ()
    assert parsed_absent.points is None
