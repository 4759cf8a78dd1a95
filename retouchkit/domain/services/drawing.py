from __future__ import annotations

import logging
from functools import lru_cache

from PIL import Image, ImageDraw, ImageFilter, ImageFont

from retouchkit.domain.entities.surface import Surface
from retouchkit.domain.operations.params import ShapeParams, StrokeStyle, TextParams
from retouchkit.domain.services.colors import parse_color

logger = logging.getLogger(__name__)

H_ANCHORS = {"left": "l", "center": "m", "right": "r"}
V_ANCHORS = {"top": "t", "middle": "m", "bottom": "d", "alphabetic": "s"}

FALLBACK_FONTS = {
    (False, False): ("DejaVuSans.ttf",),
    (True, False): ("DejaVuSans-Bold.ttf", "DejaVuSans.ttf"),
    (False, True): ("DejaVuSans-Oblique.ttf", "DejaVuSans.ttf"),
    (True, True): ("DejaVuSans-BoldOblique.ttf", "DejaVuSans.ttf"),
}

Font = ImageFont.FreeTypeFont | ImageFont.ImageFont


def _font_candidates(family: str, bold: bool, italic: bool) -> list[str]:
    base = family.strip().strip("'\"")
    compact = base.replace(" ", "")
    style = ("Bold " if bold else "") + ("Italic" if italic else "")
    names: list[str] = []
    if style:
        names += [f"{base} {style.strip()}.ttf", f"{compact}-{style.replace(' ', '')}.ttf"]
        suffix = ("b" if bold else "") + ("i" if italic else "")
        names.append(f"{compact.lower()}{suffix}.ttf")
    names += [f"{base}.ttf", f"{compact}.ttf", f"{compact.lower()}.ttf"]
    names += list(FALLBACK_FONTS[(bold, italic)])
    return names


@lru_cache(maxsize=64)
def load_font(family: str, size: int, bold: bool = False, italic: bool = False) -> Font:
    """Resolve a font family to a Pillow font, falling back to Pillow's default face."""
    size = max(1, int(size))
    for name in _font_candidates(family, bold, italic):
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    logger.debug("No TrueType face for %r, using Pillow's default font", family)
    return ImageFont.load_default(size=size)


def _stroke_width(stroke: StrokeStyle) -> int:
    # stroke straddles the glyph outline, so only half of it lands outside
    return max(1, round(float(stroke.width) / 2))


class DrawingService:
    """Overlays drawn with Pillow onto a transparent layer, then composited."""

    @staticmethod
    def draw_text(surface: Surface, params: TextParams) -> None:
        font = DrawingService._fitted_font(params)
        anchor = H_ANCHORS[params.align] + V_ANCHORS[params.baseline]
        origin = (float(params.x), float(params.y))
        fill = parse_color(params.color)

        layer = surface.new_layer()

        if params.shadow is not None:
            shadow_color = parse_color(params.shadow.color)
            shadow = surface.new_layer()
            draw = ImageDraw.Draw(shadow)
            shadow_origin = (origin[0] + params.shadow.offset_x, origin[1] + params.shadow.offset_y)
            stroke_width = _stroke_width(params.stroke) if params.stroke else 0
            draw.text(
                shadow_origin,
                params.text,
                font=font,
                fill=shadow_color,
                anchor=anchor,
                stroke_width=stroke_width,
                stroke_fill=shadow_color,
            )
            if params.shadow.blur > 0:
                shadow = shadow.filter(ImageFilter.GaussianBlur(params.shadow.blur / 2))
            layer.alpha_composite(shadow)

        draw = ImageDraw.Draw(layer)
        if params.stroke is not None:
            stroke_color = parse_color(params.stroke.color)
            draw.text(
                origin,
                params.text,
                font=font,
                fill=stroke_color,
                anchor=anchor,
                stroke_width=_stroke_width(params.stroke),
                stroke_fill=stroke_color,
            )
        draw.text(origin, params.text, font=font, fill=fill, anchor=anchor)

        if params.rotation:
            layer = DrawingService._rotate_about(layer, params.rotation, origin)
        surface.composite(layer)

    @staticmethod
    def draw_shape(surface: Surface, params: ShapeParams) -> None:
        layer = surface.new_layer()
        draw = ImageDraw.Draw(layer)
        x0, y0 = float(params.x), float(params.y)
        x1, y1 = x0 + float(params.width) - 1, y0 + float(params.height) - 1
        fill = parse_color(params.fill) if params.fill else None

        if params.shape_type == "rectangle":
            if fill is not None:
                draw.rectangle([x0, y0, x1, y1], fill=fill)
            if params.stroke is not None:
                half = float(params.stroke.width) / 2
                draw.rectangle(
                    [x0 - half, y0 - half, x1 + half, y1 + half],
                    outline=parse_color(params.stroke.color),
                    width=max(1, round(params.stroke.width)),
                )
        elif params.shape_type == "ellipse":
            if fill is not None:
                draw.ellipse([x0, y0, x1, y1], fill=fill)
            if params.stroke is not None:
                half = float(params.stroke.width) / 2
                draw.ellipse(
                    [x0 - half, y0 - half, x1 + half, y1 + half],
                    outline=parse_color(params.stroke.color),
                    width=max(1, round(params.stroke.width)),
                )
        else:
            raise ValueError(f"Unsupported shape: {params.shape_type}")

        if params.rotation:
            center = (x0 + float(params.width) / 2, y0 + float(params.height) / 2)
            layer = DrawingService._rotate_about(layer, params.rotation, center)
        surface.composite(layer)

    @staticmethod
    def draw_watermark(surface: Surface, label: str = "UNLICENSED") -> None:
        size = max(12, min(surface.width, surface.height) // 12)
        margin = max(4, size // 2)
        DrawingService.draw_text(
            surface,
            TextParams(
                text=label,
                x=surface.width - margin,
                y=surface.height - margin,
                font_size=size,
                color="rgba(255, 255, 255, 0.5)",
                align="right",
                baseline="bottom",
                bold=True,
                stroke=StrokeStyle(color="rgba(0, 0, 0, 0.5)", width=2),
            ),
        )

    @staticmethod
    def _fitted_font(params: TextParams) -> Font:
        font = load_font(params.font_family, round(params.font_size), params.bold, params.italic)
        if params.max_width and params.max_width > 0:
            probe = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
            length = probe.textlength(params.text, font=font)
            if length > params.max_width:
                # shrink the face until the run fits max_width
                scaled = max(1, int(params.font_size * params.max_width / length))
                font = load_font(params.font_family, scaled, params.bold, params.italic)
        return font

    # Canvas angles are clockwise in degrees; Pillow rotates counter-clockwise.
    @staticmethod
    def _rotate_about(layer: Image.Image, degrees: float, center: tuple[float, float]) -> Image.Image:
        return layer.rotate(-float(degrees), resample=Image.Resampling.BICUBIC, center=center)
