"""Runtime configuration with sensible defaults."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

DEFAULT_CONFIG_FILE = "image_watcher.yaml"


@dataclass(slots=True)
class WatchConfig:
    config_path: str = DEFAULT_CONFIG_FILE
    interval: float = 1.0  # seconds between polling passes
    workers: int = 1
    strict: bool = False  # abort on the first per-file error


class RunMode(str, Enum):
    COMPILE = "compile"  # one pass, then exit
    WATCH = "watch"  # poll until interrupted
