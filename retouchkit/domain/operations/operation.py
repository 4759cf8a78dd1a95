from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

from retouchkit.domain.entities.surface import Surface
from retouchkit.domain.errors import InvalidOperationError, ReplayError
from retouchkit.domain.operations.params import (
    MAX_BLUR_RADIUS,
    RESIZE_QUALITIES,
    SHAPE_TYPES,
    TEXT_ALIGNS,
    TEXT_BASELINES,
    AdjustmentParams,
    AdjustmentType,
    CropParams,
    FilterParams,
    FilterType,
    OperationKind,
    OperationParams,
    ResizeParams,
    ShadowStyle,
    ShapeParams,
    StrokeStyle,
    TextParams,
)
from retouchkit.domain.services.adjustments import AdjustmentService
from retouchkit.domain.services.colors import is_valid_color
from retouchkit.domain.services.drawing import DrawingService
from retouchkit.domain.services.filters import FilterService, KernelExecutor
from retouchkit.domain.services.geometry import GeometryService
from retouchkit.domain.services.validators import clamp_adjustment_value, clamp_filter_intensity


def _stroke(value: StrokeStyle | dict[str, Any] | None) -> StrokeStyle | None:
    if value is None or isinstance(value, StrokeStyle):
        return value
    return StrokeStyle(color=str(value["color"]), width=float(value.get("width", 1)))


def _shadow(value: ShadowStyle | dict[str, Any] | None) -> ShadowStyle | None:
    if value is None or isinstance(value, ShadowStyle):
        return value
    return ShadowStyle(
        color=str(value["color"]),
        blur=float(value.get("blur", 0)),
        offset_x=float(value.get("offset_x", value.get("offsetX", 0))),
        offset_y=float(value.get("offset_y", value.get("offsetY", 0))),
    )


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items() if v is not None}
    return value


@dataclass(frozen=True)
class Operation:
    """One edit in the history: a kind tag plus its normalized parameters.

    Build operations through the factory classmethods; they apply defaults and
    clamp ranged values so `apply` never sees an unset parameter.
    """

    kind: OperationKind
    params: OperationParams

    # --------- factories ---------
    @classmethod
    def crop(cls, x: int, y: int, width: int, height: int) -> Operation:
        return cls(OperationKind.CROP, CropParams(int(x), int(y), int(width), int(height)))

    @classmethod
    def resize(
        cls,
        width: int,
        height: int,
        quality: str | None = None,
        maintain_aspect_ratio: bool | None = None,
    ) -> Operation:
        return cls(
            OperationKind.RESIZE,
            ResizeParams(
                width=int(width),
                height=int(height),
                quality=quality or "high",
                maintain_aspect_ratio=bool(maintain_aspect_ratio) if maintain_aspect_ratio is not None else False,
            ),
        )

    @classmethod
    def text(
        cls,
        text: str,
        x: float,
        y: float,
        *,
        font_size: float | None = None,
        font_family: str | None = None,
        color: str | None = None,
        align: str | None = None,
        baseline: str | None = None,
        max_width: float | None = None,
        bold: bool | None = None,
        italic: bool | None = None,
        rotation: float | None = None,
        stroke: StrokeStyle | dict[str, Any] | None = None,
        shadow: ShadowStyle | dict[str, Any] | None = None,
    ) -> Operation:
        return cls(
            OperationKind.TEXT,
            TextParams(
                text=str(text),
                x=float(x),
                y=float(y),
                font_size=float(font_size) if font_size is not None else 24.0,
                font_family=font_family or "Arial",
                color=color or "#000000",
                align=align or "left",
                baseline=baseline or "alphabetic",
                max_width=float(max_width) if max_width else 0.0,
                bold=bool(bold),
                italic=bool(italic),
                rotation=float(rotation) if rotation else 0.0,
                stroke=_stroke(stroke),
                shadow=_shadow(shadow),
            ),
        )

    @classmethod
    def shape(
        cls,
        shape_type: str,
        x: float,
        y: float,
        width: float,
        height: float,
        *,
        fill: str | None = None,
        stroke: StrokeStyle | dict[str, Any] | None = None,
        rotation: float | None = None,
    ) -> Operation:
        return cls(
            OperationKind.SHAPE,
            ShapeParams(
                shape_type=str(shape_type),
                x=float(x),
                y=float(y),
                width=float(width),
                height=float(height),
                fill=fill,
                stroke=_stroke(stroke),
                rotation=float(rotation) if rotation else 0.0,
            ),
        )

    @classmethod
    def filter(
        cls,
        filter_type: FilterType | str,
        intensity: float | None = 1.0,
        *,
        radius: int | None = None,
        strength: float | None = None,
        levels: int | None = None,
        block_size: int | None = None,
    ) -> Operation:
        try:
            ft = FilterType(filter_type)
        except ValueError as exc:
            raise InvalidOperationError(f"Unsupported filter: {filter_type}") from exc

        extras: dict[str, Any] = {}
        if ft is FilterType.BLUR:
            extras["radius"] = max(1, min(MAX_BLUR_RADIUS, int(radius))) if radius is not None else 1
        elif ft is FilterType.VIGNETTE:
            extras["strength"] = max(0.0, min(1.0, float(strength))) if strength is not None else 0.5
        elif ft is FilterType.POSTERIZE:
            extras["levels"] = max(2, min(16, math.floor(levels))) if levels is not None else 4
        elif ft is FilterType.PIXELATE:
            extras["block_size"] = max(1, math.floor(block_size)) if block_size is not None else 10

        return cls(
            OperationKind.FILTER,
            FilterParams(filter_type=ft, intensity=clamp_filter_intensity(intensity), **extras),
        )

    @classmethod
    def adjustment(cls, adjustment_type: AdjustmentType | str, value: float) -> Operation:
        try:
            kind = AdjustmentType(adjustment_type)
        except ValueError as exc:
            raise InvalidOperationError(f"Unsupported adjustment: {adjustment_type}") from exc
        return cls(
            OperationKind.ADJUSTMENT,
            AdjustmentParams(adjustment_type=kind, value=clamp_adjustment_value(value)),
        )

    # --------- contract ---------
    def validate(self) -> bool:
        """Parameter-only sanity check; needs no surface."""
        p = self.params
        if self.kind is OperationKind.CROP:
            return p.x >= 0 and p.y >= 0 and p.width > 0 and p.height > 0
        elif self.kind is OperationKind.RESIZE:
            return p.width > 0 and p.height > 0 and p.quality in RESIZE_QUALITIES
        elif self.kind is OperationKind.TEXT:
            return (
                len(p.text) > 0
                and "\n" not in p.text
                and "\r" not in p.text
                and p.font_size > 0
                and p.x >= 0
                and p.y >= 0
                and p.align in TEXT_ALIGNS
                and p.baseline in TEXT_BASELINES
                and is_valid_color(p.color)
                and (p.stroke is None or is_valid_color(p.stroke.color))
                and (p.shadow is None or is_valid_color(p.shadow.color))
            )
        elif self.kind is OperationKind.SHAPE:
            return (
                p.width > 0
                and p.height > 0
                and p.x >= 0
                and p.y >= 0
                and p.shape_type in SHAPE_TYPES
                and is_valid_color(p.fill)
                and (p.stroke is None or is_valid_color(p.stroke.color))
            )
        elif self.kind in (OperationKind.FILTER, OperationKind.ADJUSTMENT):
            return True
        return False

    def apply(self, surface: Surface, executor: KernelExecutor | None = None) -> None:
        """Mutate the surface in place; crop and resize change its size."""
        if self.kind is OperationKind.CROP:
            GeometryService.crop(surface, self.params)
        elif self.kind is OperationKind.RESIZE:
            GeometryService.resize(surface, self.params)
        elif self.kind is OperationKind.TEXT:
            DrawingService.draw_text(surface, self.params)
        elif self.kind is OperationKind.SHAPE:
            DrawingService.draw_shape(surface, self.params)
        elif self.kind is OperationKind.FILTER:
            FilterService.apply(surface, self.params, executor)
        elif self.kind is OperationKind.ADJUSTMENT:
            AdjustmentService.apply(surface, self.params)
        else:
            raise InvalidOperationError(f"Unsupported operation: {self.kind}")

    def output_size(self, width: int, height: int) -> tuple[int, int]:
        if self.kind is OperationKind.CROP:
            return self.params.width, self.params.height
        if self.kind is OperationKind.RESIZE:
            return GeometryService.resize_target(width, height, self.params)
        return width, height

    def ensure_applicable(self, surface: Surface) -> None:
        """Re-check surface-dependent preconditions right before apply."""
        if self.kind is OperationKind.CROP:
            p = self.params
            if p.x + p.width > surface.width or p.y + p.height > surface.height:
                raise ReplayError(
                    f"Crop ({p.x}, {p.y}, {p.width}x{p.height}) exceeds the "
                    f"{surface.width}x{surface.height} surface"
                )
        elif self.kind in (OperationKind.TEXT, OperationKind.SHAPE) and not self.validate():
            raise ReplayError(f"Invalid {self.kind.value} parameters: {self.describe()['params']}")

    def describe(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "params": _plain(asdict(self.params))}
