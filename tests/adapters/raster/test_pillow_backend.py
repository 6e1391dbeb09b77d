from __future__ import annotations

import io
import logging
from pathlib import Path

import pytest
from PIL import Image

from adapters.raster.font_registry import PillowFontRegistry
from adapters.raster.pillow_backend import (
    PillowRasterBackend,
    PillowSurface,
    dash_polyline,
    decode_data_url,
    parse_color,
)
from domain.fonts import FontSpec
from domain.models import EmbeddedFile, RenderOptions
from domain.services.geometry import Affine
from domain.services.render_excalidraw import ExcalidrawRenderer
from tests.helpers.scenes import arrow, embedded_file, image, png_data_url, rectangle, scene, text


def _open(png: bytes) -> Image.Image:
    picture = Image.open(io.BytesIO(png))
    picture.load()
    return picture.convert("RGBA")


def test_parse_color_handles_hex_names_and_transparent() -> None:
    assert parse_color("#ff0000") == (255, 0, 0, 255)
    assert parse_color("#00ff0080") == (0, 255, 0, 128)
    assert parse_color("black") == (0, 0, 0, 255)
    assert parse_color("transparent") is None
    assert parse_color("") is None


def test_parse_color_skips_unsupported_syntax(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="adapters.raster.pillow_backend"):
        assert parse_color("rgb(30 30 30 / 50%)") is None

    assert "unsupported color 'rgb(30 30 30 / 50%)'" in caplog.text


def test_decode_data_url() -> None:
    assert decode_data_url("data:text/plain,hello") == b"hello"
    assert decode_data_url("data:text/plain;base64,aGk=") == b"hi"
    with pytest.raises(ValueError):
        decode_data_url("https://example.com/picture.png")


def test_dash_polyline_splits_into_on_runs() -> None:
    runs = dash_polyline([(0.0, 0.0), (30.0, 0.0)], (5.0, 5.0))

    assert [(run[0][0], run[-1][0]) for run in runs] == [
        (0.0, 5.0),
        (10.0, 15.0),
        (20.0, 25.0),
    ]


def test_dash_polyline_carries_pattern_across_corners() -> None:
    runs = dash_polyline([(0.0, 0.0), (3.0, 0.0), (3.0, 10.0)], (5.0, 5.0))

    assert runs[0][:2] == [(0.0, 0.0), (3.0, 0.0)]
    assert runs[0][2] == pytest.approx((3.0, 2.0))
    assert runs[1][0] == pytest.approx((3.0, 7.0))


def test_dash_polyline_without_pattern_length_is_unchanged() -> None:
    points = [(0.0, 0.0), (1.0, 1.0)]

    assert dash_polyline(points, (0.0, 4.0)) == [points]


def test_surface_fill_rect_respects_transform_and_alpha() -> None:
    surface = PillowSurface(20, 20)
    surface.transform(Affine.translation(5, 5))
    surface.set_alpha(0.5)

    surface.fill_rect(0, 0, 5, 5, "#0000ff")

    picture = _open(surface.encode_png())
    assert picture.getpixel((0, 0)) == (0, 0, 0, 0)
    red, green, blue, alpha = picture.getpixel((7, 7))
    assert (red, green) == (0, 0)
    assert blue >= 250
    assert alpha == pytest.approx(128, abs=1)


def test_save_and_restore_surface_state() -> None:
    surface = PillowSurface(10, 10)
    surface.save()
    surface.transform(Affine.scaling(3))
    surface.set_alpha(0.2)
    surface.restore()

    assert surface.matrix == Affine.identity()
    assert surface.alpha == 1.0


def test_draw_image_stretches_to_element_size() -> None:
    surface = PillowSurface(40, 40)
    surface.transform(Affine.translation(10, 10))
    file = EmbeddedFile(id="f", mime_type="image/png", data_url=png_data_url((0, 200, 0, 255)))

    surface.draw_image(file, 20, 20)

    picture = _open(surface.encode_png())
    assert picture.getpixel((20, 20))[:3] == (0, 200, 0)
    assert picture.getpixel((2, 2))[3] == 0


def test_fill_text_paints_pixels_in_color() -> None:
    surface = PillowSurface(200, 60)

    surface.fill_text(
        "Hello", 10, 10, font=FontSpec(family_id=2, size=24), color="#ff0000", align="left"
    )

    picture = _open(surface.encode_png())
    assert picture.getchannel("A").getbbox() is not None
    assert picture.getchannel("R").getextrema()[1] > 0
    assert picture.getchannel("G").getextrema() == (0, 0)


def test_renderer_produces_a_png_with_background() -> None:
    renderer = ExcalidrawRenderer(PillowRasterBackend())
    payload = scene(
        rectangle(backgroundColor="#ffc9c9", strokeStyle="dashed"),
        arrow(x=0, y=80, endArrowhead="triangle"),
        text(x=10, y=10, value="Label"),
        image(x=120, y=0, width=40, height=40),
        files={"file-1": embedded_file()},
    )

    png = renderer.render(payload, RenderOptions(scale=1.0, padding=10.0))

    picture = _open(png)
    assert picture.size == (188, 108)
    assert picture.getpixel((1, 1)) == (255, 255, 255, 255)
    assert picture.getpixel((104, 59))[:3] == (255, 201, 201)


def test_transparent_export_leaves_empty_pixels() -> None:
    renderer = ExcalidrawRenderer(PillowRasterBackend())

    png = renderer.render(scene(rectangle()), RenderOptions(background=False))

    assert _open(png).getpixel((0, 0)) == (0, 0, 0, 0)


def test_font_registry_registers_once_per_instance(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    first = PillowFontRegistry(tmp_path)
    second = PillowFontRegistry(tmp_path)

    with caplog.at_level(logging.WARNING):
        first.ensure_registered()
        first.ensure_registered()

    assert first.registered is True
    assert second.registered is False
    assert first.font_paths == {}
    assert caplog.text.count("not found") == 3


def test_font_registry_falls_back_to_default_font(tmp_path: Path) -> None:
    broken = tmp_path / "LiberationSans-Regular.woff2"
    broken.write_bytes(b"not a font")
    registry = PillowFontRegistry(tmp_path)

    font = registry.font(FontSpec(family_id=1, size=18))

    assert registry.font_paths == {2: broken}
    assert font is registry.font(FontSpec(family_id=1, size=18.2))


def test_unsupported_stroke_color_keeps_the_rest_of_the_element() -> None:
    renderer = ExcalidrawRenderer(PillowRasterBackend())
    payload = scene(rectangle(strokeColor="rgb(30 30 30 / 50%)", backgroundColor="#ffc9c9"))

    png = renderer.render(payload, RenderOptions(scale=1.0, padding=10.0))

    picture = _open(png)
    assert picture.size == (128, 78)
    assert picture.getpixel((64, 39))[:3] == (255, 201, 201)
    assert picture.getpixel((14, 14))[:3] != (30, 30, 30)
