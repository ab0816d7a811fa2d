"""
model/enums.py

(Краткое RU: Перечисления для задания печати на принтерах серии TD: тип носителя, дизеринг, цвет полей.)

EN: Domain enums for TD-series label jobs (media type, dithering, margin color).
NO raster command logic here apart from the single media-type byte!

See Also:
    - tdlabel/protocol/commands.py (for protocol logic)
"""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Final

__all__ = [
    "LabelType",
    "DitherMode",
    "MarginColor",
    "DEFAULT_LABEL_TYPE",
    "DEFAULT_DITHER_MODE",
    "DEFAULT_MARGIN_COLOR",
]


class LabelType(str, Enum):
    """
    Media loaded in the printer.

    The value is the short code used on the command line ("d" / "c").
    """

    DIE_CUT = "d"
    CONTINUOUS = "c"

    @property
    def command_code(self) -> int:
        """Media-type byte (n2) of the ESC i z print information command."""
        return 0x0B if self is LabelType.DIE_CUT else 0x0A

    @property
    def has_fixed_length(self) -> bool:
        return self is LabelType.DIE_CUT


class DitherMode(str, Enum):
    NONE = "none"
    FLOYD_STEINBERG = "floyd"
    STUCKI = "stucki"
    JARVIS = "jarvis"

    @property
    def is_error_diffusion(self) -> bool:
        return self is not DitherMode.NONE


class MarginColor(IntEnum):
    """Bit value written into the padding on both sides of the image."""

    WHITE = 0
    BLACK = 1


DEFAULT_LABEL_TYPE: Final[LabelType] = LabelType.DIE_CUT
DEFAULT_DITHER_MODE: Final[DitherMode] = DitherMode.NONE
DEFAULT_MARGIN_COLOR: Final[MarginColor] = MarginColor.WHITE
