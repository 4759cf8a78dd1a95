from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import numpy as np
from PIL import Image

from retouchkit.application.use_cases.export_image import ExportImageUseCase, ExportResult
from retouchkit.config import get_settings
from retouchkit.domain.entities.source_state import SourceState
from retouchkit.domain.entities.surface import Surface
from retouchkit.domain.errors import InvalidCropError, InvalidOperationError
from retouchkit.domain.operations.operation import Operation
from retouchkit.domain.operations.params import (
    AdjustmentType,
    FilterType,
    OperationKind,
    ShadowStyle,
    StrokeStyle,
)
from retouchkit.domain.services.colors import parse_color
from retouchkit.domain.services.history import OperationHistory
from retouchkit.domain.services.replay_engine import ReplayEngine
from retouchkit.domain.services.validators import validate_crop_params, validate_dimensions
from retouchkit.infrastructure.imaging.image_encoder import ImageEncoder
from retouchkit.infrastructure.imaging.image_loader import ImageLoader
from retouchkit.infrastructure.licensing.license_manager import Entitlement

logger = logging.getLogger(__name__)


class PhotoEditor:
    """Non-destructive editor: a source bitmap plus an undoable list of operations.

    Editing methods only record operations; pixels are produced on demand by
    replaying the active history over the untouched source.

        editor = PhotoEditor.from_path("in.jpg").crop(0, 0, 800, 600).filter("sepia", 0.6)
        editor.save("out.png")
    """

    def __init__(
        self,
        source: SourceState,
        *,
        engine: ReplayEngine | None = None,
        entitlement: Entitlement | None = None,
        exporter: ExportImageUseCase | None = None,
        max_dimension: int | None = None,
    ) -> None:
        self._source = source
        self._history = OperationHistory()
        self._engine = engine or ReplayEngine()
        self._exporter = exporter or ExportImageUseCase(encoder=ImageEncoder(), entitlement=entitlement)
        self.entitlement = entitlement
        self.max_dimension = max_dimension or get_settings().max_dimension

    # --------- factories ---------
    @classmethod
    def from_source(cls, source: SourceState, **kwargs: Any) -> PhotoEditor:
        return cls(source, **kwargs)

    @classmethod
    def from_bytes(cls, data: bytes, **kwargs: Any) -> PhotoEditor:
        return cls(ImageLoader().from_bytes(data), **kwargs)

    @classmethod
    def from_path(cls, path: str | Path, **kwargs: Any) -> PhotoEditor:
        return cls(ImageLoader().from_path(path), **kwargs)

    @classmethod
    def from_url(cls, url: str, timeout: float | None = None, **kwargs: Any) -> PhotoEditor:
        loader = ImageLoader(timeout=timeout if timeout is not None else get_settings().load_timeout)
        return cls(loader.from_url(url), **kwargs)

    @classmethod
    def from_image(cls, image: Image.Image, **kwargs: Any) -> PhotoEditor:
        return cls(ImageLoader.from_image(image), **kwargs)

    @classmethod
    def from_array(cls, array: np.ndarray, **kwargs: Any) -> PhotoEditor:
        return cls(ImageLoader.from_array(array), **kwargs)

    # --------- editing ---------
    def append(self, op: Operation) -> PhotoEditor:
        """Validate against the projected output of the active history, then record."""
        self._check(op)
        self._history.append(op)
        logger.debug("Recorded %s (history=%d, cursor=%d)", op.kind.value, len(self._history), self._history.cursor)
        return self

    def crop(self, x: int, y: int, width: int, height: int) -> PhotoEditor:
        return self.append(Operation.crop(x, y, width, height))

    def resize(
        self,
        width: int,
        height: int,
        quality: str | None = None,
        maintain_aspect_ratio: bool | None = None,
    ) -> PhotoEditor:
        return self.append(Operation.resize(width, height, quality, maintain_aspect_ratio))

    def add_text(
        self,
        text: str,
        x: float,
        y: float,
        *,
        stroke: StrokeStyle | dict[str, Any] | None = None,
        shadow: ShadowStyle | dict[str, Any] | None = None,
        **options: Any,
    ) -> PhotoEditor:
        return self.append(Operation.text(text, x, y, stroke=stroke, shadow=shadow, **options))

    def add_shape(
        self,
        shape_type: str,
        x: float,
        y: float,
        width: float,
        height: float,
        *,
        fill: str | None = None,
        stroke: StrokeStyle | dict[str, Any] | None = None,
        rotation: float | None = None,
    ) -> PhotoEditor:
        return self.append(
            Operation.shape(shape_type, x, y, width, height, fill=fill, stroke=stroke, rotation=rotation)
        )

    def filter(self, filter_type: FilterType | str, intensity: float | None = 1.0, **extras: Any) -> PhotoEditor:
        return self.append(Operation.filter(filter_type, intensity, **extras))

    def brightness(self, value: float) -> PhotoEditor:
        return self.append(Operation.adjustment(AdjustmentType.BRIGHTNESS, value))

    def contrast(self, value: float) -> PhotoEditor:
        return self.append(Operation.adjustment(AdjustmentType.CONTRAST, value))

    def saturation(self, value: float) -> PhotoEditor:
        return self.append(Operation.adjustment(AdjustmentType.SATURATION, value))

    def exposure(self, value: float) -> PhotoEditor:
        return self.append(Operation.adjustment(AdjustmentType.EXPOSURE, value))

    def temperature(self, value: float) -> PhotoEditor:
        return self.append(Operation.adjustment(AdjustmentType.TEMPERATURE, value))

    # --------- history ---------
    def undo(self) -> PhotoEditor:
        self._history.undo()
        return self

    def redo(self) -> PhotoEditor:
        self._history.redo()
        return self

    def reset(self) -> PhotoEditor:
        self._history.reset()
        return self

    def clear(self) -> PhotoEditor:
        self._history.clear()
        return self

    def can_undo(self) -> bool:
        return self._history.can_undo()

    def can_redo(self) -> bool:
        return self._history.can_redo()

    def active_history(self) -> tuple[Operation, ...]:
        return self._history.active_operations()

    def all_history(self) -> tuple[Operation, ...]:
        return self._history.all_operations()

    @property
    def history(self) -> OperationHistory:
        return self._history

    # --------- state ---------
    @property
    def source(self) -> SourceState:
        return self._source

    def original(self) -> np.ndarray:
        return self._source.pixels

    @property
    def size(self) -> tuple[int, int]:
        return self._engine.project_size(self._source, self._history.active_operations())

    def render(self) -> Surface:
        return self._engine.render(self._source, self._history.active_operations())

    preview = render

    # --------- export ---------
    def export(
        self, fmt: str | None = "image/png", quality: float | None = None, entitlement: Entitlement | None = None
    ) -> ExportResult:
        return self._exporter.execute(self.render(), fmt, quality, self._entitlement(entitlement))

    def to_bytes(
        self, fmt: str | None = "image/png", quality: float | None = None, entitlement: Entitlement | None = None
    ) -> bytes:
        return self.export(fmt, quality, entitlement).data

    def to_data_url(
        self, fmt: str | None = "image/png", quality: float | None = None, entitlement: Entitlement | None = None
    ) -> str:
        return self._exporter.to_data_url(self.render(), fmt, quality, self._entitlement(entitlement))

    def save(
        self,
        path: str | Path,
        fmt: str | None = None,
        quality: float | None = None,
        entitlement: Entitlement | None = None,
    ) -> Path:
        return self._exporter.save(self.render(), path, fmt, quality, self._entitlement(entitlement))

    def _entitlement(self, override: Entitlement | None) -> Entitlement | None:
        return override if override is not None else self.entitlement

    # --------- validation ---------
    def _check(self, op: Operation) -> None:
        p = op.params
        if op.kind is OperationKind.CROP:
            width, height = self.size
            validate_crop_params(p.x, p.y, p.width, p.height, width, height)
        elif op.kind is OperationKind.RESIZE:
            validate_dimensions(p.width, p.height, self.max_dimension)
        elif op.kind in (OperationKind.TEXT, OperationKind.SHAPE):
            # surface a precise color error before the generic one
            colors = [getattr(p, "color", None), getattr(p, "fill", None)]
            colors += [style.color for style in (p.stroke, getattr(p, "shadow", None)) if style is not None]
            for color in colors:
                if color is not None:
                    parse_color(color)
        if not op.validate():
            if op.kind is OperationKind.CROP:
                raise InvalidCropError()
            raise InvalidOperationError(f"Invalid {op.kind.value} parameters: {op.describe()['params']}")
