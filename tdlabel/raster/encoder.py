"""
Bitmap to raster-line encoder for TD-series print heads.

Turns a decoded Pillow image into the packed raster lines the printer
expects: optional rotation, scale-down to the printable area, binarization,
centering within the print head and bit packing.

Raster line layout (one per image row):

    | floor(margin/2) margin dots | image row, right to left | trailing margin |
    |<------------------------ raster_width_pixels ------------------------->|

The print head scans in the opposite direction to the image columns, hence
the reversed row. Lines are packed 8 dots per byte, MSB first, 1 = ink.

Example:
    >>> geometry = compute_max_bounds(model, LabelSpec(LabelType.DIE_CUT, 102, 152))
    >>> encoded = encode(load_image("logo.png"), geometry, model.raster_width_pixels)
    >>> len(encoded.lines[0])
    104
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Final, List, Sequence, Tuple, Union

from PIL import Image

from tdlabel.exceptions import ImageLoadError, RasterEncodingError
from tdlabel.model.enums import DitherMode, MarginColor
from tdlabel.model.label import MM_PER_INCH, LabelSpec, PrintGeometry
from tdlabel.raster.dither import binarize

logger: Final = logging.getLogger(__name__)

__all__ = [
    "INK_THRESHOLD",
    "EncodedImage",
    "load_image",
    "fit_scale",
    "scale_to_fit",
    "to_grayscale",
    "row_to_bits",
    "assemble_line",
    "pack_bits",
    "unpack_bits",
    "encode",
]

INK_THRESHOLD: Final[int] = 128  # luminance above this prints nothing


@dataclass(frozen=True)
class EncodedImage:
    """
    Result of encoding one image.

    Attributes:
        bitmap: Binarized image that was rasterized (mode "L", 0/255 only
            when dithered, grayscale otherwise).
        lines: Packed raster lines, one per image row.
        label: Label spec of the job. For continuous tape the length is
            recomputed from the final image height.
    """

    bitmap: Image.Image
    lines: Tuple[bytes, ...]
    label: LabelSpec

    @property
    def width(self) -> int:
        return self.bitmap.width

    @property
    def height(self) -> int:
        return self.bitmap.height

    @property
    def raster_data(self) -> bytes:
        """All packed lines concatenated, without command framing."""
        return b"".join(self.lines)


def load_image(path: Union[str, Path]) -> Image.Image:
    """
    Open and fully decode an image file.

    Raises:
        ImageLoadError: If the file is missing, unreadable or not an image.
    """
    try:
        image = Image.open(path)
        image.load()
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageLoadError(str(path), str(e)) from e
    logger.debug(f"Loaded {path}: {image.width}x{image.height} {image.mode}")
    return image


def fit_scale(width: int, height: int, geometry: PrintGeometry) -> float:
    """Largest factor that keeps a ``width`` x ``height`` image inside the bounds."""
    width_ratio = geometry.max_width_px / width
    height_ratio = geometry.max_height_px / height
    return min(width_ratio, height_ratio)


def scale_to_fit(image: Image.Image, geometry: PrintGeometry) -> Image.Image:
    """Shrink ``image`` to fit ``geometry``, preserving aspect ratio. Never enlarges."""
    scale = fit_scale(image.width, image.height, geometry)
    if scale >= 1:
        return image

    size = (
        max(1, round(image.width * scale)),
        max(1, round(image.height * scale)),
    )
    logger.debug(f"Scaling {image.width}x{image.height} by {scale:.4f} to {size[0]}x{size[1]}")
    return image.resize(size, Image.Resampling.LANCZOS)


def to_grayscale(image: Image.Image) -> Image.Image:
    """Convert to mode "L"; transparent areas become white (no ink)."""
    if image.mode in ("RGBA", "LA", "PA") or (
        image.mode == "P" and "transparency" in image.info
    ):
        rgba = image.convert("RGBA")
        background = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
        image = Image.alpha_composite(background, rgba)
    return image if image.mode == "L" else image.convert("L")


def row_to_bits(row: bytes) -> List[int]:
    """Map one row of 8-bit luminance values to ink bits."""
    return [0 if value > INK_THRESHOLD else 1 for value in row]


def assemble_line(
    row_bits: Sequence[int],
    raster_width: int,
    margin_color: Union[MarginColor, int] = MarginColor.WHITE,
) -> List[int]:
    """
    Lay one image row out across the print head.

    The row is written right to left after ``floor(margin / 2)`` margin dots;
    the rest of the line is filled with ``margin_color``.

    Raises:
        RasterEncodingError: If the row is wider than the print head.
    """
    margin = raster_width - len(row_bits)
    if margin < 0:
        raise RasterEncodingError(
            f"Image row of {len(row_bits)} dots does not fit a {raster_width}-dot print head",
            context={"width": len(row_bits), "raster_width": raster_width},
        )

    fill = int(margin_color)
    line = [fill] * (margin // 2)
    line.extend(reversed(row_bits))
    line.extend([fill] * (raster_width - len(line)))
    return line


def pack_bits(bits: Sequence[int]) -> bytes:
    """
    Pack dots 8 per byte, most significant bit first.

    Raises:
        ValueError: If the number of dots is not a multiple of 8.
    """
    if len(bits) % 8:
        raise ValueError(f"Bit count must be a multiple of 8, got {len(bits)}")

    packed = bytearray()
    for offset in range(0, len(bits), 8):
        value = 0
        for bit in bits[offset : offset + 8]:
            value = (value << 1) | (1 if bit else 0)
        packed.append(value)
    return bytes(packed)


def unpack_bits(data: bytes) -> List[int]:
    """Inverse of pack_bits."""
    return [(byte >> shift) & 1 for byte in data for shift in range(7, -1, -1)]


def encode(
    image: Image.Image,
    geometry: PrintGeometry,
    raster_width_pixels: int,
    margin_color: Union[MarginColor, int] = MarginColor.WHITE,
    dither: DitherMode = DitherMode.NONE,
    rotate: bool = False,
) -> EncodedImage:
    """
    Encode a decoded image into packed raster lines.

    Steps:
        1. rotate 90 degrees clockwise when ``rotate`` is set
        2. scale down to the printable area (never up)
        3. binarize: error diffusion when ``dither`` is set, else grayscale
           thresholded at luminance 128
        4. for continuous tape, derive the label length from the image height
        5. center each row on the print head, reversed
        6. pack 8 dots per byte

    Args:
        image: Decoded source image.
        geometry: Printable bounds for the label and printer.
        raster_width_pixels: Dots per raster line of the printer.
        margin_color: Bit written into the margins.
        dither: Error-diffusion algorithm, or DitherMode.NONE.
        rotate: Rotate the image before fitting it.

    Returns:
        EncodedImage with one packed line per image row.

    Raises:
        RasterEncodingError: If the image is wider than the print head.
    """
    if rotate:
        image = image.transpose(Image.Transpose.ROTATE_270)

    image = scale_to_fit(image, geometry)

    gray = to_grayscale(image)
    if dither.is_error_diffusion:
        bitmap = binarize(gray, dither).convert("L")
    else:
        bitmap = gray

    width, height = bitmap.size
    label = geometry.label
    if label.is_continuous:
        label = label.with_height(math.ceil(height / geometry.dpi * MM_PER_INCH))
        logger.info(f"Continuous tape length set to {label.height_mm} mm")

    data = bitmap.tobytes()
    lines = tuple(
        pack_bits(
            assemble_line(
                row_to_bits(data[y * width : (y + 1) * width]),
                raster_width_pixels,
                margin_color,
            )
        )
        for y in range(height)
    )

    logger.debug(
        f"Encoded {width}x{height} px into {len(lines)} raster lines of "
        f"{raster_width_pixels // 8} bytes"
    )
    return EncodedImage(bitmap=bitmap, lines=lines, label=label)
