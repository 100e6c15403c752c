"""imgwatch: re-render watched images through a declarative transform pipeline."""

try:
    from importlib.metadata import version

    __version__ = version("imgwatch")
except Exception:
    __version__ = "0.0.0"
