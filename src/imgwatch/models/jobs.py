"""Data models for resolved transformation jobs and watched files."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

# Sentinel for an unconstrained resize axis
U32_MAX = 2**32 - 1

# Largest finite IEEE-754 single precision value; blur sigmas clamp to it
F32_MAX = 3.4028234663852886e38

# Canonical application order, independent of key order in the config
STEP_ORDER: tuple[str, ...] = (
    "resize",
    "blur",
    "flipv",
    "fliph",
    "rotate90",
    "rotate180",
    "rotate270",
    "grayscale",
    "invert",
)

FLAG_FIELDS: tuple[str, ...] = (
    "flipv",
    "fliph",
    "rotate90",
    "rotate180",
    "rotate270",
    "grayscale",
    "invert",
)


class ResizeFilter(str, Enum):
    NEAREST = "Nearest"
    TRIANGLE = "Triangle"
    CATMULL_ROM = "CatmullRom"
    GAUSSIAN = "Gaussian"
    LANCZOS3 = "Lanczos3"


DEFAULT_RESIZE_FILTER = ResizeFilter.GAUSSIAN


class DimensionKind(str, Enum):
    WIDTH = "width"
    HEIGHT = "height"
    WIDTH_AND_HEIGHT = "width_and_height"


@dataclass(slots=True)
class Dimensions:
    """Resize target. An absent axis is unconstrained."""

    kind: DimensionKind
    width: int | None = None
    height: int | None = None

    @classmethod
    def of_width(cls, width: int) -> Dimensions:
        return cls(DimensionKind.WIDTH, width=width)

    @classmethod
    def of_height(cls, height: int) -> Dimensions:
        return cls(DimensionKind.HEIGHT, height=height)

    @classmethod
    def of_both(cls, width: int, height: int) -> Dimensions:
        return cls(DimensionKind.WIDTH_AND_HEIGHT, width=width, height=height)

    @classmethod
    def from_optional(cls, width: int | None, height: int | None) -> Dimensions | None:
        """Build from two optional axes; None when neither is given."""
        if width is not None and height is not None:
            return cls.of_both(width, height)
        if width is not None:
            return cls.of_width(width)
        if height is not None:
            return cls.of_height(height)
        return None

    def bounds(self) -> tuple[int, int]:
        """Target box with U32_MAX standing in for an unconstrained axis."""
        w = self.width if self.width is not None else U32_MAX
        h = self.height if self.height is not None else U32_MAX
        return w, h


@dataclass(slots=True)
class JobSet:
    resize: Dimensions | None = None
    blur: float | None = None
    flipv: bool = False
    fliph: bool = False
    rotate90: bool = False
    rotate180: bool = False
    rotate270: bool = False
    grayscale: bool = False
    invert: bool = False
    resize_filter: ResizeFilter | None = None

    @property
    def effective_filter(self) -> ResizeFilter:
        return self.resize_filter or DEFAULT_RESIZE_FILTER

    def steps(self) -> list[str]:
        """Names of enabled steps, in the order they are applied."""
        enabled: list[str] = []
        for name in STEP_ORDER:
            value = getattr(self, name)
            if name in FLAG_FIELDS:
                if value:
                    enabled.append(name)
            elif value is not None:
                enabled.append(name)
        return enabled


@dataclass(slots=True)
class GlobalDefaults:
    jobs: JobSet = field(default_factory=JobSet)


@dataclass(slots=True)
class FileTask:
    path: str
    output: str
    jobs: JobSet = field(default_factory=JobSet)


@dataclass(slots=True)
class WatchedEntry:
    task: FileTask
    # st_mtime_ns of the last observation; None until first seen
    last_modified: int | None = None
