from __future__ import annotations

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, Path

from retouchkit.application.use_cases.export_image import ExportImageUseCase
from retouchkit.config import get_settings
from retouchkit.domain.errors import LicenseError
from retouchkit.domain.services.replay_engine import ReplayEngine
from retouchkit.infrastructure.imaging.image_encoder import ImageEncoder
from retouchkit.infrastructure.imaging.image_loader import ImageLoader
from retouchkit.infrastructure.licensing.license_manager import LicenseManager
from retouchkit.infrastructure.sessions.session_repository import EditingSession, SessionRepository
from retouchkit.infrastructure.workers.worker_pool import WorkerPool

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_session_repo() -> SessionRepository:
    return SessionRepository()


@lru_cache(maxsize=1)
def get_worker_pool() -> WorkerPool:
    settings = get_settings()
    return WorkerPool(max_workers=settings.worker_max, timeout=settings.worker_timeout)


@lru_cache(maxsize=1)
def get_license_manager() -> LicenseManager:
    settings = get_settings()
    manager = LicenseManager.from_settings(settings)
    if settings.license_key and not manager.dev_mode:
        try:
            manager.set_license_key(settings.license_key)
        except LicenseError as exc:
            # exports fall back to watermarked output
            logger.warning("License validation failed (%s): %s", exc.code, exc)
    return manager


def get_replay_engine() -> ReplayEngine:
    return ReplayEngine(executor=get_worker_pool())


def get_image_loader() -> ImageLoader:
    return ImageLoader(timeout=get_settings().load_timeout)


def get_exporter() -> ExportImageUseCase:
    return ExportImageUseCase(encoder=ImageEncoder(), entitlement=get_license_manager())


def get_session(
    session_id: Annotated[str, Path(description="Editing session identifier")],
    sessions: Annotated[SessionRepository, Depends(get_session_repo)],
) -> EditingSession:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def reset_dependencies() -> None:
    """Drop cached singletons; the worker pool is shut down first."""
    if get_worker_pool.cache_info().currsize:
        get_worker_pool().terminate()
    get_session_repo.cache_clear()
    get_worker_pool.cache_clear()
    get_license_manager.cache_clear()
