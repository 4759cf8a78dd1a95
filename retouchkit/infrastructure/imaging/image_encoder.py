from __future__ import annotations

import base64
from io import BytesIO
from pathlib import Path

from PIL import Image

from retouchkit.domain.entities.surface import Surface
from retouchkit.domain.errors import ExportError

# mime type -> Pillow format
FORMATS = {
    "image/png": "PNG",
    "image/jpeg": "JPEG",
    "image/webp": "WEBP",
}
ALIASES = {"png": "image/png", "jpg": "image/jpeg", "jpeg": "image/jpeg", "webp": "image/webp"}
DEFAULT_QUALITY = 0.92


def normalize_format(fmt: str | None) -> str:
    """Map 'png', '.jpg', 'image/jpeg' and friends onto a supported mime type."""
    if not fmt:
        return "image/png"
    key = fmt.strip().lower().lstrip(".")
    mime = ALIASES.get(key, key)
    if mime not in FORMATS:
        raise ExportError(f"Unsupported export format: {fmt}")
    return mime


def quality_to_pillow(quality: float | None) -> int:
    # (0, 1] -> 1..100
    q = DEFAULT_QUALITY if quality is None else float(quality)
    if not 0.0 < q <= 1.0:
        q = DEFAULT_QUALITY
    return max(1, min(100, round(q * 100)))


class ImageEncoder:
    """Encodes rendered surfaces to PNG, JPEG or WEBP."""

    @staticmethod
    def encode(surface: Surface, fmt: str | None = "image/png", quality: float | None = None) -> bytes:
        mime = normalize_format(fmt)
        img = surface.to_image()
        if mime == "image/jpeg":
            # JPEG has no alpha: flatten on white
            background = Image.new("RGBA", img.size, (255, 255, 255, 255))
            background.alpha_composite(img)
            img = background.convert("RGB")
        buf = BytesIO()
        options: dict[str, int | bool] = {}
        if mime in ("image/jpeg", "image/webp"):
            options["quality"] = quality_to_pillow(quality)
        try:
            img.save(buf, format=FORMATS[mime], **options)
        except (OSError, ValueError, KeyError) as exc:
            raise ExportError(f"Failed to export image: {exc}") from exc
        return buf.getvalue()

    @staticmethod
    def to_data_url(surface: Surface, fmt: str | None = "image/png", quality: float | None = None) -> str:
        mime = normalize_format(fmt)
        payload = base64.b64encode(ImageEncoder.encode(surface, mime, quality)).decode("ascii")
        return f"data:{mime};base64,{payload}"

    @staticmethod
    def save(
        surface: Surface, path: str | Path, fmt: str | None = None, quality: float | None = None
    ) -> Path:
        path = Path(path)
        mime = normalize_format(fmt or path.suffix or "png")
        data = ImageEncoder.encode(surface, mime, quality)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise ExportError(f"Failed to write {path}: {exc}") from exc
        return path
