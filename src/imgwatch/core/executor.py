"""Apply a resolved JobSet to an image with Pillow. Stateless between calls."""

from __future__ import annotations

from collections.abc import Callable

from PIL import Image, ImageFilter, ImageOps

from imgwatch.errors import ExecError, OpenFailedError, SaveFailedError
from imgwatch.models.jobs import U32_MAX, Dimensions, FileTask, JobSet, ResizeFilter

# Pillow has no Gaussian resampling kernel; Hamming is the closest smooth window
RESAMPLING: dict[ResizeFilter, Image.Resampling] = {
    ResizeFilter.NEAREST: Image.Resampling.NEAREST,
    ResizeFilter.TRIANGLE: Image.Resampling.BILINEAR,
    ResizeFilter.CATMULL_ROM: Image.Resampling.BICUBIC,
    ResizeFilter.GAUSSIAN: Image.Resampling.HAMMING,
    ResizeFilter.LANCZOS3: Image.Resampling.LANCZOS,
}


def execute(task: FileTask) -> None:
    """Open ``task.path``, run its jobs and write ``task.output``."""
    try:
        src = Image.open(task.path)
    except (OSError, Image.DecompressionBombError) as exc:
        raise OpenFailedError(task.path, str(exc)) from exc

    with src:
        try:
            src.load()
        except OSError as exc:
            raise OpenFailedError(task.path, str(exc)) from exc

        try:
            img = apply_jobs(src, task.jobs)
        except (ValueError, OverflowError, MemoryError) as exc:
            raise ExecError(task.path, str(exc)) from exc

        try:
            img.save(task.output)
        except (OSError, ValueError, KeyError) as exc:
            # KeyError/ValueError: Pillow has no writer for the output extension
            raise SaveFailedError(task.path, task.output, str(exc) or type(exc).__name__) from exc


def apply_jobs(img: Image.Image, jobs: JobSet) -> Image.Image:
    """Run every enabled step in canonical order and return the new image."""
    for name in jobs.steps():
        img = STEPS[name](img, jobs)
    return img


def fit_dimensions(width: int, height: int, max_width: int, max_height: int) -> tuple[int, int]:
    """Largest size with the source aspect ratio that fits the target box.

    Scales up as well as down. Each side is at least one pixel.
    """
    ratio = min(max_width / width, max_height / height)
    new_w = min(max(round(width * ratio), 1), U32_MAX)
    new_h = min(max(round(height * ratio), 1), U32_MAX)
    return new_w, new_h


def resize(img: Image.Image, dims: Dimensions, resample: Image.Resampling) -> Image.Image:
    max_w, max_h = dims.bounds()
    size = fit_dimensions(img.width, img.height, max_w, max_h)
    if img.mode == "P":
        img = img.convert("RGBA" if _has_alpha(img) else "RGB")
    return img.resize(size, resample)


def blur(img: Image.Image, sigma: float) -> Image.Image:
    # Pillow's box blur crashes or hangs on huge radii; cap at the longest side
    return img.filter(ImageFilter.GaussianBlur(min(sigma, max(img.size))))


def _has_alpha(img: Image.Image) -> bool:
    return "A" in img.getbands() or "transparency" in img.info


def grayscale(img: Image.Image) -> Image.Image:
    return img.convert("LA" if _has_alpha(img) else "L")


def invert(img: Image.Image) -> Image.Image:
    """Invert colour channels; alpha is left as is."""
    if _has_alpha(img):
        rgba = img.convert("LA" if img.mode in ("L", "LA") else "RGBA")
        *colour, alpha = rgba.split()
        inverted = [ImageOps.invert(band) for band in colour]
        return Image.merge(rgba.mode, [*inverted, alpha])
    if img.mode not in ("L", "RGB"):
        img = img.convert("RGB")
    return ImageOps.invert(img)


Step = Callable[[Image.Image, JobSet], Image.Image]

# Keyed in STEP_ORDER. Pillow's ROTATE_* turn counter-clockwise; the config
# means clockwise.
STEPS: dict[str, Step] = {
    "resize": lambda img, jobs: resize(img, jobs.resize, RESAMPLING[jobs.effective_filter]),
    "blur": lambda img, jobs: blur(img, jobs.blur),
    "flipv": lambda img, jobs: img.transpose(Image.Transpose.FLIP_TOP_BOTTOM),
    "fliph": lambda img, jobs: img.transpose(Image.Transpose.FLIP_LEFT_RIGHT),
    "rotate90": lambda img, jobs: img.transpose(Image.Transpose.ROTATE_270),
    "rotate180": lambda img, jobs: img.transpose(Image.Transpose.ROTATE_180),
    "rotate270": lambda img, jobs: img.transpose(Image.Transpose.ROTATE_90),
    "grayscale": lambda img, jobs: grayscale(img),
    "invert": lambda img, jobs: invert(img),
}
