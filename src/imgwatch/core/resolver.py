"""Load the YAML config and resolve it into one FileTask per watched file.

The document looks like::

    resize_filter: Lanczos3        # top-level keys are defaults for every file
    width: 800
    files:
      - path: imgs/photo.jpg       # -> imgs/photo.min.jpg
        grayscale: true
      - path: imgs/banner.png
        output: dist/banner.png
        resize: {height: 120}
        blur: 1.5

Per-file keys override the defaults field by field. The resize dimensions
count as a single field: a file giving only ``width`` does not inherit the
default ``height``.
"""

from __future__ import annotations

import math
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from imgwatch.errors import (
    ConfigFileError,
    ConfigStructureError,
    InvalidFieldError,
    MalformedPathError,
    MissingDimensionsError,
    MissingFieldError,
    UnknownFilterError,
)
from imgwatch.models.config import DEFAULT_CONFIG_FILE
from imgwatch.models.jobs import (
    F32_MAX,
    FLAG_FIELDS,
    U32_MAX,
    Dimensions,
    FileTask,
    GlobalDefaults,
    JobSet,
    ResizeFilter,
)

_FILTERS_BY_NAME = {f.value: f for f in ResizeFilter}


def load_document(path: str | Path = DEFAULT_CONFIG_FILE) -> Any:
    """Read and parse the YAML config file."""
    try:
        with open(path) as f:
            text = f.read()
    except OSError as exc:
        raise ConfigFileError(f"failed to open config file {path}: {exc.strerror or exc}") from exc

    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigFileError(f"failed to parse config file {path}: {exc}") from exc


def resolve_config(
    source: str | Path | Mapping[str, Any] = DEFAULT_CONFIG_FILE,
) -> tuple[list[FileTask], GlobalDefaults]:
    """Resolve a config file (or an already-parsed document) into file tasks."""
    document = source if isinstance(source, Mapping) else load_document(source)

    if not isinstance(document, Mapping):
        raise ConfigStructureError("base of the config is not a mapping")
    if "files" not in document:
        raise ConfigStructureError("no files section in config")
    files = document["files"]
    if not isinstance(files, list):
        raise ConfigStructureError("files section in config is not a list")

    global_fields, _ = _read_job_fields(document, None)
    defaults = GlobalDefaults(jobs=JobSet(**global_fields))

    tasks = [_resolve_file(entry, index, global_fields) for index, entry in enumerate(files)]
    return tasks, defaults


def derive_output_path(path: str, index: int | None = None) -> str:
    """``<parent>/<stem>.min.<ext>``; a bare file name keeps no parent prefix."""
    head, tail = os.path.split(path)
    stem, ext = os.path.splitext(tail)
    if not tail or not stem:
        raise MalformedPathError(f"path {path!r} has no file name", index)
    if len(ext) <= 1:
        raise MalformedPathError(f"path {path!r} has no extension", index)
    prefix = head.rstrip("/") + "/" if head else ""
    return f"{prefix}{stem}.min{ext}"


def _resolve_file(entry: Any, index: int, global_fields: dict[str, Any]) -> FileTask:
    if not isinstance(entry, Mapping):
        raise ConfigStructureError("entry is not a mapping", index)

    path = entry.get("path")
    if path is None:
        raise MissingFieldError("no path", index)
    if not isinstance(path, str) or not path:
        raise InvalidFieldError("path is not a non-empty string", index)

    output = entry.get("output")
    if output is None:
        output = derive_output_path(path, index)
    elif not isinstance(output, str) or not output:
        raise InvalidFieldError("output path is not a non-empty string", index)

    file_fields, wants_resize = _read_job_fields(entry, index)
    merged = {**global_fields, **file_fields}
    if wants_resize and merged.get("resize") is None:
        raise MissingDimensionsError("resize requested but no width nor height given", index)

    return FileTask(path=path, output=output, jobs=JobSet(**merged))


def _read_job_fields(mapping: Mapping[str, Any], index: int | None) -> tuple[dict[str, Any], bool]:
    """Collect only the job fields explicitly set in ``mapping``.

    The second value is True when the mapping asks for something that only
    makes sense with a resize (its own ``resize_filter`` or a ``resize`` key).
    """
    fields: dict[str, Any] = {}

    resize_key_given, dims = _read_dimensions(mapping, index)
    if dims is not None:
        fields["resize"] = dims

    blur = _read_blur(mapping, index)
    if blur is not None:
        fields["blur"] = blur

    for name in FLAG_FIELDS:
        flag = _read_bool(mapping, name, index)
        if flag is not None:
            fields[name] = flag

    resize_filter = _read_filter(mapping, index)
    if resize_filter is not None:
        fields["resize_filter"] = resize_filter

    wants_resize = resize_key_given or resize_filter is not None
    return fields, wants_resize


def _read_dimensions(
    mapping: Mapping[str, Any], index: int | None
) -> tuple[bool, Dimensions | None]:
    flat_given = mapping.get("width") is not None or mapping.get("height") is not None
    if "resize" not in mapping:
        width = _read_u32(mapping, "width", index)
        height = _read_u32(mapping, "height", index)
        return False, Dimensions.from_optional(width, height)

    if flat_given:
        raise InvalidFieldError(
            "give either resize: {width, height} or width/height, not both", index
        )
    nested = mapping["resize"]
    if nested is None:
        nested = {}
    if not isinstance(nested, Mapping):
        raise InvalidFieldError("resize is not a mapping of width and/or height", index)
    width = _read_u32(nested, "width", index)
    height = _read_u32(nested, "height", index)
    return True, Dimensions.from_optional(width, height)


def _read_u32(mapping: Mapping[str, Any], key: str, index: int | None) -> int | None:
    value = mapping.get(key)
    if value is None:
        return None
    # bool is an int subclass; `width: yes` must not become 1
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidFieldError(f"{key} value is not an integer: {value!r}", index)
    if not 0 <= value <= U32_MAX:
        raise InvalidFieldError(f"{key} value {value} is outside 0..{U32_MAX}", index)
    return value


def _read_blur(mapping: Mapping[str, Any], index: int | None) -> float | None:
    value = mapping.get("blur")
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidFieldError(f"blur value is not a number: {value!r}", index)
    sigma = float(value)
    if math.isnan(sigma) or sigma < 0:
        raise InvalidFieldError(f"blur value must be a non-negative number, got {value!r}", index)
    return min(sigma, F32_MAX)


def _read_bool(mapping: Mapping[str, Any], key: str, index: int | None) -> bool | None:
    value = mapping.get(key)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise InvalidFieldError(f"{key} value is not true or false: {value!r}", index)
    return value


def _read_filter(mapping: Mapping[str, Any], index: int | None) -> ResizeFilter | None:
    value = mapping.get("resize_filter")
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidFieldError(f"resize_filter is not a string: {value!r}", index)
    try:
        return _FILTERS_BY_NAME[value]
    except KeyError:
        raise UnknownFilterError(value, index) from None
