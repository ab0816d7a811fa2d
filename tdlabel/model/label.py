"""
Модель этикетки и расчёт печатной области в точках принтера.

Label model: label size in millimetres, media type, and the printable
bounds (in device pixels) derived from them for a given resolution.

Модуль: tdlabel/model/label.py
Архитектура: слой модели (без генерации команд принтера)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Final, Union

from tdlabel.exceptions import InvalidLabelSizeError
from tdlabel.model.enums import LabelType

if TYPE_CHECKING:
    from tdlabel.device.catalog import DeviceModel

logger: Final = logging.getLogger(__name__)

__all__ = [
    "MM_PER_INCH",
    "DIE_CUT_MARGIN_PX",
    "MAX_CONTINUOUS_LENGTH_MM",
    "MAX_LABEL_MM",
    "DEFAULT_LABEL_SIZE",
    "LabelSpec",
    "PrintGeometry",
    "parse_label_size",
    "compute_max_bounds",
]

# =============================================================================
# Константы
# =============================================================================

MM_PER_INCH: Final[float] = 25.4
DIE_CUT_MARGIN_PX: Final[int] = 48  # Фиксированное поле принтера на высечных этикетках
MAX_CONTINUOUS_LENGTH_MM: Final[int] = 3000  # Максимальная длина непрерывной ленты
MAX_LABEL_MM: Final[int] = 255  # Размеры передаются одним байтом
DEFAULT_LABEL_SIZE: Final[str] = "102x200"

_SIZE_PATTERN: Final = re.compile(r"^\s*(\d+)\s*[xX]\s*(\d+)\s*$")
_WIDTH_PATTERN: Final = re.compile(r"^\s*(\d+)")


# =============================================================================
# Неизменяемые классы
# =============================================================================


@dataclass(frozen=True, slots=True)
class LabelSpec:
    """
    Label media as loaded in the printer.

    Attributes:
        label_type: Die-cut labels or continuous tape.
        width_mm: Label width in millimetres (1-255).
        height_mm: Label length in millimetres. Required for die-cut labels,
            ignored for continuous tape (its length follows the image).

    Raises:
        InvalidLabelSizeError: on construction, if the dimensions are invalid.
    """

    label_type: LabelType
    width_mm: int
    height_mm: int = 0

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if not isinstance(self.width_mm, int) or not isinstance(self.height_mm, int):
            raise InvalidLabelSizeError(
                "Label dimensions must be whole millimetres",
                context={"width_mm": self.width_mm, "height_mm": self.height_mm},
            )
        if not 0 < self.width_mm <= MAX_LABEL_MM:
            raise InvalidLabelSizeError(
                f"Label width must be 1-{MAX_LABEL_MM} mm, got {self.width_mm}",
                context={"width_mm": self.width_mm},
            )
        if self.label_type is LabelType.DIE_CUT and not 0 < self.height_mm <= MAX_LABEL_MM:
            raise InvalidLabelSizeError(
                f"Die-cut label height must be 1-{MAX_LABEL_MM} mm, got {self.height_mm}",
                context={"height_mm": self.height_mm},
            )

    @property
    def is_continuous(self) -> bool:
        return self.label_type is LabelType.CONTINUOUS

    def with_height(self, height_mm: int) -> "LabelSpec":
        """Return a copy with a different label length."""
        return replace(self, height_mm=height_mm)

    def __str__(self) -> str:
        if self.is_continuous:
            return f"{self.width_mm} mm continuous"
        return f"{self.width_mm}x{self.height_mm} mm die-cut"


@dataclass(frozen=True, slots=True)
class PrintGeometry:
    """
    Printable area in device pixels, computed once per job.

    Attributes:
        max_width_px: Widest image that fits across the label.
        max_height_px: Tallest image that fits along the label.
        dpi: Resolution the bounds were computed for.
        label: Label the bounds were computed from.
    """

    max_width_px: int
    max_height_px: int
    dpi: int
    label: LabelSpec


# =============================================================================
# Функции
# =============================================================================


def parse_label_size(text: str, label_type: LabelType = LabelType.DIE_CUT) -> LabelSpec:
    """
    Parse a label size given on the command line.

    Die-cut labels need ``WIDTHxHEIGHT`` (e.g. ``"102x200"``). For continuous
    tape only the leading width digits are used, so both ``"62"`` and
    ``"62x100"`` are accepted and the height is dropped.

    Raises:
        InvalidLabelSizeError: If the text cannot be parsed or is out of range.

    Example:
        >>> parse_label_size("102x152")
        LabelSpec(label_type=<LabelType.DIE_CUT: 'd'>, width_mm=102, height_mm=152)
    """
    if label_type is LabelType.CONTINUOUS:
        match = _WIDTH_PATTERN.match(text)
        if match is None:
            raise InvalidLabelSizeError(
                "label option not recognized", context={"label": text}
            )
        return LabelSpec(label_type, int(match.group(1)), 0)

    match = _SIZE_PATTERN.match(text)
    if match is None:
        raise InvalidLabelSizeError("label option not recognized", context={"label": text})
    return LabelSpec(label_type, int(match.group(1)), int(match.group(2)))


def compute_max_bounds(model: Union["DeviceModel", int], spec: LabelSpec) -> PrintGeometry:
    """
    Compute the largest image (in pixels) that fits on the label.

    - width: ``round(width_mm * dpi / 25.4)``
    - die-cut height: ``round(height_mm * dpi / 25.4) - 48``; the printer
      keeps a fixed 48-dot margin on gap-separated labels
    - continuous height: ``round(3000 / 25.4 * dpi)``, the longest tape run

    Nothing is clamped: bounds that come out non-positive are reported.

    Args:
        model: Catalog entry of the selected printer, or a bare DPI value.
        spec: Label loaded in the printer.

    Raises:
        InvalidLabelSizeError: If either bound is not positive.
    """
    dpi = model if isinstance(model, int) else model.dpi

    max_width = round(spec.width_mm * dpi / MM_PER_INCH)
    if spec.is_continuous:
        max_height = round(MAX_CONTINUOUS_LENGTH_MM / MM_PER_INCH * dpi)
    else:
        max_height = round(spec.height_mm * dpi / MM_PER_INCH) - DIE_CUT_MARGIN_PX

    if max_width <= 0 or max_height <= 0:
        raise InvalidLabelSizeError(
            f"Label {spec} leaves no printable area at {dpi} DPI",
            context={"max_width_px": max_width, "max_height_px": max_height},
        )

    logger.debug(f"Printable area for {spec} at {dpi} DPI: {max_width}x{max_height} px")
    return PrintGeometry(max_width_px=max_width, max_height_px=max_height, dpi=dpi, label=spec)
