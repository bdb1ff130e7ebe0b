"""
Signature normalization.

Captured strokes arrive in the signature pad's `toData()` shape, drawn in
whatever pen colour the form used. They are re-rendered here onto a fresh
transparent canvas with a fixed colour so the stored PNG can be laid over
any document.
"""

from __future__ import annotations

import binascii
import io
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from PIL import Image, ImageDraw

from .errors import EmptySignature, ValidationError
from .util import b64d, b64e

DATA_URL_PREFIX = "data:image/png;base64,"
PNG_MAGIC = b"\x89PNG\r\n\x1a\n"

DEFAULT_COLOR = "#000000"
DEFAULT_MIN_WIDTH = 0.5
DEFAULT_MAX_WIDTH = 2.5
DEFAULT_PRESSURE = 0.5


@dataclass(frozen=True)
class StrokePoint:
    x: float
    y: float
    pressure: float = DEFAULT_PRESSURE


@dataclass
class Stroke:
    points: List[StrokePoint] = field(default_factory=list)
    min_width: float = DEFAULT_MIN_WIDTH
    max_width: float = DEFAULT_MAX_WIDTH
    dot_size: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Stroke":
        """Build from one signature pad point group. The pen colour is ignored."""
        points = []
        for p in data.get("points") or []:
            pressure = p.get("pressure")
            points.append(StrokePoint(
                x=float(p["x"]),
                y=float(p["y"]),
                pressure=DEFAULT_PRESSURE if pressure is None else float(pressure),
            ))
        dot = data.get("dotSize")
        return cls(
            points=points,
            min_width=float(data.get("minWidth", DEFAULT_MIN_WIDTH)),
            max_width=float(data.get("maxWidth", DEFAULT_MAX_WIDTH)),
            dot_size=float(dot) if dot is not None else None,
        )

    def width_at(self, pressure: float) -> float:
        pressure = min(max(pressure, 0.0), 1.0)
        return self.min_width + (self.max_width - self.min_width) * pressure

    def dot_radius(self) -> float:
        size = self.dot_size if self.dot_size is not None else (self.min_width + self.max_width) / 2
        return max(size, 0.5) / 2


def _hex_to_rgba(hexstr: str) -> Tuple[int, int, int, int]:
    """
    Convert hex color (#RRGGBB or #RGB) into an opaque RGBA tuple for PIL.
    """
    s = (hexstr or DEFAULT_COLOR).strip()
    if not s.startswith("#"):
        s = "#" + s
    if len(s) == 4:
        r = int(s[1] * 2, 16); g = int(s[2] * 2, 16); b = int(s[3] * 2, 16)
    elif len(s) == 7:
        r = int(s[1:3], 16); g = int(s[3:5], 16); b = int(s[5:7], 16)
    else:
        raise ValueError(f"unsupported colour {hexstr!r}")
    return (r, g, b, 255)


def parse_strokes(data: Iterable[Any]) -> List[Stroke]:
    """Accept either Stroke objects or raw point-group dicts."""
    return [s if isinstance(s, Stroke) else Stroke.from_dict(s) for s in data or []]


def is_empty(strokes: Iterable[Stroke]) -> bool:
    return not any(s.points for s in strokes)


def render_signature(strokes: Iterable[Any], size: Tuple[int, int],
                     color: str = DEFAULT_COLOR) -> bytes:
    """
    Re-render strokes into a transparent PNG with a fixed colour.

    Point coordinates and stroke grouping are kept as captured. Segment width
    follows point pressure between the stroke's min and max width; a stroke
    with a single point is drawn as a dot.

    Raises:
        EmptySignature: If there is nothing to draw
    """
    parsed = parse_strokes(strokes)
    if is_empty(parsed):
        raise EmptySignature()

    w, h = size
    fill = _hex_to_rgba(color)
    img = Image.new("RGBA", (max(1, int(w)), max(1, int(h))), (0, 0, 0, 0))
    drw = ImageDraw.Draw(img)

    for stroke in parsed:
        pts = stroke.points
        if len(pts) == 1:
            r = stroke.dot_radius()
            p = pts[0]
            drw.ellipse((p.x - r, p.y - r, p.x + r, p.y + r), fill=fill)
            continue
        for a, b in zip(pts, pts[1:]):
            width = stroke.width_at((a.pressure + b.pressure) / 2)
            drw.line([(a.x, a.y), (b.x, b.y)], fill=fill, width=max(1, round(width)))
            # round joins between segments
            r = width / 2
            drw.ellipse((b.x - r, b.y - r, b.x + r, b.y + r), fill=fill)

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def to_data_url(png: bytes) -> str:
    return DATA_URL_PREFIX + b64e(png)


def decode_data_url(url: str, max_bytes: Optional[int] = None) -> bytes:
    """
    Decode a PNG data URL back to image bytes.

    Raises:
        ValidationError: If the URL is not a base64 PNG data URL
    """
    if not isinstance(url, str) or not url.startswith(DATA_URL_PREFIX):
        raise ValidationError("signature", "must be a base64 PNG data URL")
    encoded = url[len(DATA_URL_PREFIX):]
    if max_bytes is not None and len(encoded) * 3 // 4 > max_bytes:
        raise ValidationError("signature", "image is too large")
    try:
        png = b64d(encoded)
    except (binascii.Error, ValueError):
        raise ValidationError("signature", "must be valid base64")
    if not png.startswith(PNG_MAGIC):
        raise ValidationError("signature", "is not a PNG image")
    return png
