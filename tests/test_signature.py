import io

import pytest
from PIL import Image

from mandate_intake.errors import EmptySignature, ValidationError
from mandate_intake.signature import (
    DATA_URL_PREFIX,
    Stroke,
    decode_data_url,
    render_signature,
    to_data_url,
)

GOLD = "#c9a24d"


def pad_data(color=GOLD):
    """Two strokes in signature pad toData() shape, captured in gold."""
    return [
        {
            "penColor": color,
            "minWidth": 2.0,
            "maxWidth": 4.0,
            "dotSize": 0,
            "points": [
                {"x": 10, "y": 10, "pressure": 0.5, "time": 1},
                {"x": 60, "y": 10, "pressure": 0.5, "time": 2},
                {"x": 60, "y": 40, "pressure": 0.5, "time": 3},
            ],
        },
        {
            "penColor": color,
            "minWidth": 2.0,
            "maxWidth": 4.0,
            "dotSize": 6,
            "points": [{"x": 90, "y": 30, "time": 4}],
        },
    ]


def _image(png: bytes) -> Image.Image:
    return Image.open(io.BytesIO(png)).convert("RGBA")


def test_renders_transparent_png_in_fixed_colour():
    png = render_signature(pad_data(), (120, 60))
    img = _image(png)
    assert img.size == (120, 60)

    # Background stays fully transparent
    assert img.getpixel((0, 59)) == (0, 0, 0, 0)
    assert img.getpixel((110, 55)) == (0, 0, 0, 0)

    # Strokes are black whatever the capture colour was
    assert img.getpixel((35, 10)) == (0, 0, 0, 255)
    assert img.getpixel((60, 25)) == (0, 0, 0, 255)


def test_single_point_stroke_is_a_dot():
    img = _image(render_signature(pad_data(), (120, 60)))
    assert img.getpixel((90, 30)) == (0, 0, 0, 255)


def test_capture_colour_does_not_change_output():
    assert render_signature(pad_data(GOLD), (120, 60)) == render_signature(pad_data("#ff0000"), (120, 60))


def test_custom_colour():
    img = _image(render_signature(pad_data(), (120, 60), color="#1e40af"))
    assert img.getpixel((35, 10)) == (0x1e, 0x40, 0xaf, 255)


def test_no_colour_from_capture_survives():
    img = _image(render_signature(pad_data(), (120, 60)))
    colours = {px for px in img.getdata() if px[3] > 0}
    assert all(px[:3] == (0, 0, 0) for px in colours)


@pytest.mark.parametrize("strokes", [
    [],
    None,
    [{"points": []}],
    [Stroke(), Stroke()],
])
def test_empty_strokes_rejected(strokes):
    with pytest.raises(EmptySignature):
        render_signature(strokes, (100, 50))


def test_pressure_drives_width():
    stroke = Stroke.from_dict({"minWidth": 1, "maxWidth": 5, "points": []})
    assert stroke.width_at(0) == 1
    assert stroke.width_at(1) == 5
    assert stroke.width_at(0.5) == 3
    # Out of range pressure is clamped
    assert stroke.width_at(7) == 5


def test_missing_pressure_defaults():
    stroke = Stroke.from_dict({"points": [{"x": 1, "y": 2}]})
    assert stroke.points[0].pressure == 0.5
    assert (stroke.points[0].x, stroke.points[0].y) == (1.0, 2.0)


def test_data_url_round_trip():
    png = render_signature(pad_data(), (120, 60))
    url = to_data_url(png)
    assert url.startswith(DATA_URL_PREFIX)
    assert decode_data_url(url) == png


@pytest.mark.parametrize("url", [
    None,
    "",
    "data:image/jpeg;base64,AAAA",
    DATA_URL_PREFIX + "!!!",
    DATA_URL_PREFIX + "aGVsbG8=",  # valid base64, not a PNG
])
def test_decode_data_url_rejects(url):
    with pytest.raises(ValidationError) as exc:
        decode_data_url(url)
    assert exc.value.field == "signature"


def test_decode_data_url_size_limit():
    url = to_data_url(render_signature(pad_data(), (120, 60)))
    with pytest.raises(ValidationError):
        decode_data_url(url, max_bytes=10)
