"""
Error-diffusion dithering to a 1-bit image.

Floyd-Steinberg uses Pillow's built-in quantizer. Stucki and Jarvis-Judice-
Ninke are not provided by Pillow and run through a generic kernel diffuser
working on Pillow pixel access objects.
"""

from __future__ import annotations

import logging
from typing import Final, Mapping, Tuple

from PIL import Image

from tdlabel.model.enums import DitherMode

logger: Final = logging.getLogger(__name__)

__all__ = ["DiffusionKernel", "KERNELS", "binarize", "error_diffuse"]

# (dx, dy, weight) entries relative to the current pixel, and the divisor
DiffusionKernel = Tuple[Tuple[Tuple[int, int, int], ...], int]

KERNELS: Final[Mapping[DitherMode, DiffusionKernel]] = {
    DitherMode.STUCKI: (
        (
            (1, 0, 8), (2, 0, 4),
            (-2, 1, 2), (-1, 1, 4), (0, 1, 8), (1, 1, 4), (2, 1, 2),
            (-2, 2, 1), (-1, 2, 2), (0, 2, 4), (1, 2, 2), (2, 2, 1),
        ),
        42,
    ),
    DitherMode.JARVIS: (
        (
            (1, 0, 7), (2, 0, 5),
            (-2, 1, 3), (-1, 1, 5), (0, 1, 7), (1, 1, 5), (2, 1, 3),
            (-2, 2, 1), (-1, 2, 3), (0, 2, 5), (1, 2, 3), (2, 2, 1),
        ),
        48,
    ),
}


def binarize(image: Image.Image, mode: DitherMode) -> Image.Image:
    """
    Reduce a grayscale image to pure black and white with ``mode``.

    Args:
        image: Source image, any mode Pillow can convert to "L".
        mode: Dither algorithm; must not be DitherMode.NONE.

    Returns:
        Image in mode "1".
    """
    if mode is DitherMode.NONE:
        raise ValueError("binarize() needs an error-diffusion mode")

    gray = image if image.mode == "L" else image.convert("L")
    if mode is DitherMode.FLOYD_STEINBERG:
        return gray.convert("1", dither=Image.Dither.FLOYDSTEINBERG)
    return error_diffuse(gray, KERNELS[mode])


def error_diffuse(gray: Image.Image, kernel: DiffusionKernel) -> Image.Image:
    """Diffuse the quantization error of each pixel over its unvisited neighbours."""
    weights, divisor = kernel
    width, height = gray.size
    logger.debug(f"Error diffusion over {width}x{height} px, divisor {divisor}")

    src = gray.load()
    out = Image.new("1", (width, height), 1)
    dst = out.load()

    # pending error per pixel, not clipped to 0-255
    errors = [[0.0] * width for _ in range(height)]

    for y in range(height):
        row_errors = errors[y]
        for x in range(width):
            old = src[x, y] + row_errors[x]
            new = 255 if old >= 128 else 0
            dst[x, y] = 255 if new else 0
            err = old - new
            if not err:
                continue
            for dx, dy, weight in weights:
                nx, ny = x + dx, y + dy
                if 0 <= nx < width and ny < height:
                    errors[ny][nx] += err * weight / divisor

    return out
