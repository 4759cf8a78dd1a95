from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from retouchkit.domain.entities.surface import Surface
from retouchkit.domain.services.drawing import DrawingService
from retouchkit.infrastructure.imaging.image_encoder import ImageEncoder, normalize_format
from retouchkit.infrastructure.licensing.license_manager import Entitlement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportResult:
    data: bytes
    mime_type: str
    width: int
    height: int
    watermarked: bool


@dataclass
class ExportImageUseCase:
    encoder: ImageEncoder
    entitlement: Entitlement | None = None

    def execute(
        self,
        surface: Surface,
        fmt: str | None = "image/png",
        quality: float | None = None,
        entitlement: Entitlement | None = None,
    ) -> ExportResult:
        """
        Encode a rendered surface for delivery.

        The entitlement is consulted here and nowhere else: without a valid
        one the surface is stamped with an "UNLICENSED" watermark before
        encoding. The surface passed in is never modified.
        """
        mime = normalize_format(fmt)
        out = self._stamped(surface, entitlement)
        data = self.encoder.encode(out, mime, quality)
        return ExportResult(
            data=data,
            mime_type=mime,
            width=out.width,
            height=out.height,
            watermarked=out is not surface,
        )

    def to_data_url(
        self,
        surface: Surface,
        fmt: str | None = "image/png",
        quality: float | None = None,
        entitlement: Entitlement | None = None,
    ) -> str:
        return self.encoder.to_data_url(self._stamped(surface, entitlement), fmt, quality)

    def save(
        self,
        surface: Surface,
        path: str | Path,
        fmt: str | None = None,
        quality: float | None = None,
        entitlement: Entitlement | None = None,
    ) -> Path:
        return self.encoder.save(self._stamped(surface, entitlement), path, fmt, quality)

    def _stamped(self, surface: Surface, entitlement: Entitlement | None) -> Surface:
        ent = entitlement if entitlement is not None else self.entitlement
        if ent is not None and ent.is_valid():
            return surface
        logger.info("No valid license, watermarking export")
        marked = surface.copy()
        DrawingService.draw_watermark(marked)
        return marked
