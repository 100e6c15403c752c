"""Programmatic test image and config fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import numpy as np
import pytest
import yaml
from PIL import Image


@pytest.fixture
def rgb_image(tmp_path: Path) -> str:
    """A 40x20 random RGB PNG (lossless, so outputs can be compared exactly)."""
    arr = np.random.randint(0, 256, (20, 40, 3), dtype=np.uint8)
    path = tmp_path / "photo.png"
    Image.fromarray(arr).save(path)
    return str(path)


@pytest.fixture
def rgba_image(tmp_path: Path) -> str:
    """A 10x10 RGBA PNG with a uniform semi-transparent colour."""
    arr = np.zeros((10, 10, 4), dtype=np.uint8)
    arr[:, :] = (10, 20, 30, 128)
    path = tmp_path / "overlay.png"
    Image.fromarray(arr).save(path)
    return str(path)


@pytest.fixture
def image_dir(tmp_path: Path) -> Path:
    """A directory with a few valid images and one corrupt file."""
    img_dir = tmp_path / "imgs"
    img_dir.mkdir()
    for i in range(3):
        arr = np.random.randint(0, 256, (30 + i * 10, 60, 3), dtype=np.uint8)
        Image.fromarray(arr).save(img_dir / f"img_{i}.png")
    (img_dir / "corrupt.png").write_bytes(b"not a real image file content")
    return img_dir


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[dict[str, Any]], Path]:
    """Return a helper that dumps a document to ``image_watcher.yaml``."""

    def _write(document: dict[str, Any], name: str = "image_watcher.yaml") -> Path:
        path = tmp_path / name
        path.write_text(yaml.safe_dump(document, sort_keys=False))
        return path

    return _write
