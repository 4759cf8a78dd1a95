from __future__ import annotations

import re

from PIL import ImageColor

from retouchkit.domain.errors import InvalidColorError

_RGBA_FLOAT = re.compile(
    r"^rgba\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*([0-9]*\.?[0-9]+)\s*\)$",
    re.IGNORECASE,
)

RGBA = tuple[int, int, int, int]


def parse_color(color: str) -> RGBA:
    """Parse a CSS-style color into an RGBA tuple.

    Accepts everything Pillow's ImageColor understands plus `rgba(r, g, b, a)`
    with a fractional alpha in [0, 1].
    """
    if not isinstance(color, str) or not color.strip():
        raise InvalidColorError(f"Invalid color: {color!r}")
    text = color.strip()
    match = _RGBA_FLOAT.match(text)
    if match:
        r, g, b = (min(255, int(match.group(i))) for i in range(1, 4))
        alpha = float(match.group(4))
        # integer alphas above 1 are already on the 0..255 scale
        a = round(alpha * 255) if alpha <= 1.0 else min(255, int(alpha))
        return r, g, b, a
    try:
        return ImageColor.getcolor(text, "RGBA")  # type: ignore[return-value]
    except ValueError as exc:
        raise InvalidColorError(f"Invalid color: {color!r}") from exc


def is_valid_color(color: str | None) -> bool:
    if color is None:
        return True
    try:
        parse_color(color)
    except InvalidColorError:
        return False
    return True
