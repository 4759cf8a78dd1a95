from __future__ import annotations


class RetouchError(Exception):
    """Base class for every error raised by retouchkit."""


# --------- parameter errors ---------
class ParameterError(RetouchError, ValueError):
    """Invalid operation parameters, raised before any surface is touched."""


class InvalidDimensionsError(ParameterError):
    def __init__(self, message: str = "Invalid dimensions") -> None:
        super().__init__(message)


class InvalidCropError(ParameterError):
    def __init__(self, message: str = "Invalid crop parameters") -> None:
        super().__init__(message)


class InvalidOperationError(ParameterError):
    def __init__(self, message: str = "Invalid operation parameters") -> None:
        super().__init__(message)


class InvalidColorError(ParameterError):
    def __init__(self, message: str = "Invalid color") -> None:
        super().__init__(message)


# --------- surface errors ---------
class SurfaceError(RetouchError, RuntimeError):
    """Fatal to the render attempt that raised it."""


class SurfaceAllocationError(SurfaceError):
    def __init__(self, message: str = "Failed to allocate working surface") -> None:
        super().__init__(message)


class ReplayError(SurfaceError):
    def __init__(self, message: str = "Operation cannot be applied to the current surface") -> None:
        super().__init__(message)


# --------- collaborator errors ---------
class CollaboratorError(RetouchError):
    """Raised by an external collaborator and propagated unchanged."""


class ImageLoadError(CollaboratorError):
    def __init__(self, message: str = "Failed to load image") -> None:
        super().__init__(message)


class ExportError(CollaboratorError):
    def __init__(self, message: str = "Failed to export image") -> None:
        super().__init__(message)


class WorkerError(CollaboratorError):
    def __init__(self, message: str = "Worker task failed") -> None:
        super().__init__(message)


class WorkerTimeoutError(WorkerError):
    def __init__(self, message: str = "Worker timeout") -> None:
        super().__init__(message)


class LicenseError(CollaboratorError):
    """License validation failure. `code` is one of the LICENSE_* / INVALID_KEY codes."""

    def __init__(self, message: str, code: str) -> None:
        super().__init__(message)
        self.code = code
