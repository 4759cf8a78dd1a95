import os
import sys
from pathlib import Path

import numpy as np
import pytest
from fastapi.testclient import TestClient

# Ensure project root is on sys.path so 'retouchkit' is importable during tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("RETOUCHKIT_ENV", "test")
os.environ.setdefault("RETOUCHKIT_LICENSE_CACHE_ENABLED", "0")
os.environ.setdefault("RETOUCHKIT_WORKER_MAX", "2")


@pytest.fixture()
def client():
    # lazy import after env configured
    from retouchkit.infrastructure.api.dependencies import reset_dependencies
    from retouchkit.main import create_app

    reset_dependencies()
    with TestClient(create_app()) as test_client:
        yield test_client
    reset_dependencies()


@pytest.fixture()
def red_pixels() -> np.ndarray:
    """4x4 opaque red RGBA buffer."""
    pixels = np.zeros((4, 4, 4), dtype=np.uint8)
    pixels[..., 0] = 255
    pixels[..., 3] = 255
    return pixels


@pytest.fixture()
def gradient_pixels() -> np.ndarray:
    """12x8 RGBA buffer with distinct values per pixel and a varying alpha."""
    h, w = 8, 12
    ys, xs = np.indices((h, w))
    pixels = np.zeros((h, w, 4), dtype=np.uint8)
    pixels[..., 0] = (xs * 20) % 256
    pixels[..., 1] = (ys * 30) % 256
    pixels[..., 2] = (xs * ys * 7) % 256
    pixels[..., 3] = 200 + (xs + ys) % 56
    return pixels
