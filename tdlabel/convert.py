"""
Source file detection and rasterization of vector inputs.

PDF and SVG files are rendered to PNG by ImageMagick at the printer's
resolution before they enter the raster pipeline; everything else is handed
to Pillow as is.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Final, Iterator, Optional, Sequence, Union

from tdlabel.exceptions import ConversionError, ImageLoadError

logger: Final = logging.getLogger(__name__)

__all__ = [
    "SourceKind",
    "CONVERTER_COMMANDS",
    "detect_source_kind",
    "find_converter",
    "rasterize",
    "prepared_source",
]

PDF_MAGIC: Final[bytes] = b"%PDF-"
CONVERTER_COMMANDS: Final[tuple[str, ...]] = ("magick", "convert")
CONVERT_TIMEOUT_S: Final[int] = 120


class SourceKind(str, Enum):
    RASTER = "raster"
    PDF = "pdf"
    SVG = "svg"

    @property
    def needs_rasterizing(self) -> bool:
        return self is not SourceKind.RASTER


def detect_source_kind(path: Union[str, Path]) -> SourceKind:
    """
    Classify an input file.

    PDF is recognized by its ``%PDF-`` header, SVG by the ``.svg`` suffix
    (any case). Everything else is treated as a raster image.

    Raises:
        ImageLoadError: If the file cannot be read.
    """
    path = Path(path)
    try:
        with open(path, "rb") as f:
            header = f.read(len(PDF_MAGIC))
    except OSError as e:
        raise ImageLoadError(str(path), str(e)) from e

    if header == PDF_MAGIC:
        return SourceKind.PDF
    if path.suffix.lower() == ".svg":
        return SourceKind.SVG
    return SourceKind.RASTER


def find_converter() -> Optional[str]:
    """Path of the ImageMagick executable, preferring IM7 ``magick``."""
    for name in CONVERTER_COMMANDS:
        found = shutil.which(name)
        if found:
            return found
    return None


def _converter_args(
    executable: str, source: Path, output: Path, dpi: int
) -> Sequence[str]:
    # "[0]": first page only, so a multi-page file still yields a single output.png
    return [
        executable,
        "-density",
        str(dpi),
        "-units",
        "pixelsperinch",
        f"{source}[0]",
        str(output),
    ]


def rasterize(source: Union[str, Path], dpi: int, output: Union[str, Path]) -> Path:
    """
    Render the first page of a PDF or SVG file to PNG at ``dpi``.

    Args:
        source: Vector input file.
        dpi: Rendering density, the printer's resolution.
        output: PNG file to write.

    Returns:
        Path of the written PNG.

    Raises:
        ConversionError: If ImageMagick is missing, fails or times out.
    """
    executable = find_converter()
    if executable is None:
        raise ConversionError(
            "ImageMagick not found; install it to print PDF or SVG files",
            context={"source": str(source)},
        )

    output = Path(output)
    args = _converter_args(executable, Path(source), output, dpi)
    logger.info(f"Rasterizing {source} at {dpi} DPI")
    logger.debug(f"Running {' '.join(args)}")

    try:
        result = subprocess.run(
            args, capture_output=True, text=True, timeout=CONVERT_TIMEOUT_S
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        raise ConversionError(f"Could not run {executable}: {e}") from e

    if result.returncode != 0:
        raise ConversionError(
            f"{Path(executable).name} exited with status {result.returncode}: "
            f"{result.stderr.strip()}",
            context={"source": str(source)},
        )
    if not output.exists():
        raise ConversionError(
            f"{Path(executable).name} produced no output", context={"source": str(source)}
        )
    return output


@contextmanager
def prepared_source(path: Union[str, Path], dpi: int) -> Iterator[Path]:
    """
    Yield a raster file for ``path``, rasterizing vector inputs to a temp PNG.

    The temporary directory is removed when the block exits.
    """
    path = Path(path)
    kind = detect_source_kind(path)
    if not kind.needs_rasterizing:
        yield path
        return

    logger.debug(f"{path} detected as {kind.value}")
    with tempfile.TemporaryDirectory(prefix="tdlabel-") as tmp:
        yield rasterize(path, dpi, Path(tmp) / f"{path.stem}.png")
