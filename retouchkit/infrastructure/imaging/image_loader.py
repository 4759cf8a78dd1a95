from __future__ import annotations

import logging
from io import BytesIO
from pathlib import Path

import numpy as np
import requests
from PIL import Image, UnidentifiedImageError

from retouchkit.domain.entities.source_state import SourceState
from retouchkit.domain.errors import ImageLoadError

logger = logging.getLogger(__name__)


class ImageLoader:
    """Image acquisition: decodes bytes, files, URLs, Pillow images and arrays into a SourceState."""

    def __init__(self, timeout: float = 30.0, session: requests.Session | None = None) -> None:
        self.timeout = timeout
        self.session = session or requests.Session()

    def from_bytes(self, data: bytes) -> SourceState:
        if not data:
            raise ImageLoadError("Failed to load image: empty payload")
        try:
            with Image.open(BytesIO(data)) as img:
                fmt = img.format
                img.load()
                return SourceState.from_image(img, format=fmt)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
            raise ImageLoadError(f"Failed to load image: {exc}") from exc

    def from_path(self, path: str | Path) -> SourceState:
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise ImageLoadError(f"Failed to load image from {path}: {exc}") from exc
        return self.from_bytes(data)

    def from_url(self, url: str) -> SourceState:
        logger.info("Fetching image from %s", url)
        try:
            resp = self.session.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise ImageLoadError(f"Failed to load image from URL: {exc}") from exc
        return self.from_bytes(resp.content)

    @staticmethod
    def from_image(image: Image.Image) -> SourceState:
        try:
            image.load()
        except OSError as exc:
            raise ImageLoadError(f"Failed to load image: {exc}") from exc
        return SourceState.from_image(image)

    @staticmethod
    def from_array(array: np.ndarray) -> SourceState:
        return SourceState.from_array(array)
