from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from retouchkit.domain.entities.source_state import SourceState
from retouchkit.domain.entities.surface import Surface
from retouchkit.domain.operations.operation import Operation
from retouchkit.domain.services.filters import KernelExecutor

logger = logging.getLogger(__name__)


class ReplayEngine:
    """Materializes an edit by folding operations over a fresh copy of the source.

    `executor` (optional) computes the offloadable filter kernels, e.g. a
    WorkerPool; results are identical to the inline path.
    """

    def __init__(self, executor: KernelExecutor | None = None) -> None:
        self.executor = executor

    def render(self, source: SourceState, operations: Sequence[Operation]) -> Surface:
        surface = Surface.from_pixels(source.pixels)
        logger.debug(
            "Rendering %d operation(s) over %dx%d source",
            len(operations),
            source.width,
            source.height,
        )
        for index, op in enumerate(operations):
            op.ensure_applicable(surface)
            op.apply(surface, self.executor)
            logger.debug("Applied #%d %s -> %dx%d", index, op.kind.value, surface.width, surface.height)
        logger.debug("Render finished at %dx%d", surface.width, surface.height)
        return surface

    @staticmethod
    def project_size(source: SourceState, operations: Iterable[Operation]) -> tuple[int, int]:
        """Output dimensions of a replay, computed without touching pixels."""
        width, height = source.width, source.height
        for op in operations:
            width, height = op.output_size(width, height)
        return width, height
