"""Exception hierarchy for config loading, polling and image processing."""

from __future__ import annotations


class ImgwatchError(Exception):
    """Base class for every error imgwatch reports to the user."""


# --- configuration ----------------------------------------------------------


class ConfigError(ImgwatchError):
    """The config document could not be turned into file tasks."""

    def __init__(self, message: str, index: int | None = None) -> None:
        self.index = index
        if index is not None:
            message = f"file index {index}: {message}"
        super().__init__(message)


class ConfigFileError(ConfigError):
    """Config file missing, unreadable or not valid YAML."""


class ConfigStructureError(ConfigError):
    """Document shape is wrong (root, `files` section or an entry)."""


class MissingFieldError(ConfigError):
    """A required key is absent."""


class InvalidFieldError(ConfigError):
    """A key holds a value of the wrong type or out of range."""


class UnknownFilterError(ConfigError):
    def __init__(self, name: object, index: int | None = None) -> None:
        self.name = name
        super().__init__(f"unknown resize_filter {name!r}", index)


class MissingDimensionsError(ConfigError):
    """A resize setting was given but neither width nor height resolves."""


class MalformedPathError(ConfigError):
    """A source path has no file name or no extension to derive an output from."""


# --- runtime ----------------------------------------------------------------
# These keep their constructor arguments in ``args`` so they can be pickled
# back from pool workers.


class FileStatError(ImgwatchError):
    """Modification time of a watched file could not be read."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(path, reason)
        self.path = path
        self.reason = reason

    def __str__(self) -> str:
        return f"failed to read modification time of {self.path}: {self.reason}"


class ExecError(ImgwatchError):
    """Processing a file failed after it was opened."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(path, reason)
        self.path = path
        self.reason = reason

    def __str__(self) -> str:
        return f"failed to process {self.path}: {self.reason}"


class OpenFailedError(ExecError):
    def __str__(self) -> str:
        return f"failed to open image {self.path}: {self.reason}"


class SaveFailedError(ExecError):
    def __init__(self, path: str, output: str, reason: str) -> None:
        ImgwatchError.__init__(self, path, output, reason)
        self.path = path
        self.output = output
        self.reason = reason

    def __str__(self) -> str:
        return f"failed to save {self.path} to {self.output}: {self.reason}"
