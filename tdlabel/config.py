# -*- coding: utf-8 -*-
"""
RU: Параметры задания печати (размер этикетки, дизеринг, копии, отладка).
EN: Print job settings (label size, dithering, copies, debug output).
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Final, Mapping, Optional

from tdlabel.exceptions import ConfigError
from tdlabel.model.enums import (
    DEFAULT_DITHER_MODE,
    DEFAULT_LABEL_TYPE,
    DEFAULT_MARGIN_COLOR,
    DitherMode,
    LabelType,
    MarginColor,
)
from tdlabel.model.label import DEFAULT_LABEL_SIZE, LabelSpec, parse_label_size

MAX_COPIES: Final[int] = 999


@dataclass(frozen=True)
class PrintSettings:
    """
    Settings of one print job.

    Attributes:
        label_size: Label size as ``WIDTHxHEIGHT`` in mm (width only for tape).
        label_type: Die-cut labels or continuous tape.
        dither: Error-diffusion algorithm, DitherMode.NONE for plain threshold.
        margin_color: Bit value of the margin dots.
        rotate: Rotate the image 90 degrees before fitting.
        copies: Number of copies (1-999).
        printer_name: Model name filter for device selection.
        serial: USB serial number filter for device selection.
        debug: Write image.png / raster.dat / commands.prn.
        debug_dir: Directory receiving the debug files.
        timeout_ms: Bulk transfer timeout.
        endpoint: Bulk OUT endpoint address.
        interface: USB interface to claim.

    Examples:
        >>> settings = PrintSettings(label_size="62", label_type=LabelType.CONTINUOUS)
        >>> settings.label.width_mm
        62
    """

    label_size: str = DEFAULT_LABEL_SIZE
    label_type: LabelType = DEFAULT_LABEL_TYPE
    dither: DitherMode = DEFAULT_DITHER_MODE
    margin_color: MarginColor = DEFAULT_MARGIN_COLOR
    rotate: bool = False
    copies: int = 1
    printer_name: Optional[str] = None
    serial: Optional[str] = None
    debug: bool = False
    debug_dir: Path = Path(".")
    timeout_ms: int = 5000
    endpoint: int = 0x02
    interface: int = 0

    def __post_init__(self) -> None:
        """Coerce plain values and validate."""
        try:
            object.__setattr__(self, "label_type", LabelType(self.label_type))
            object.__setattr__(self, "dither", DitherMode(self.dither))
            object.__setattr__(self, "margin_color", MarginColor(int(self.margin_color)))
            object.__setattr__(self, "debug_dir", Path(self.debug_dir))
        except (TypeError, ValueError) as e:
            raise ConfigError(str(e)) from e

        if not isinstance(self.label_size, str):
            raise ConfigError(
                f"label_size must be a string such as '102x200', got {self.label_size!r}"
            )
        for name in ("copies", "timeout_ms", "endpoint", "interface"):
            value = getattr(self, name)
            # bool is an int subclass but never a valid count or address
            if not isinstance(value, int) or isinstance(value, bool):
                raise ConfigError(
                    f"{name} must be an integer, got {value!r}", context={name: value}
                )

        if not 1 <= self.copies <= MAX_COPIES:
            raise ConfigError(f"copies must be between 1 and {MAX_COPIES}, got {self.copies}")
        if self.timeout_ms <= 0:
            raise ConfigError(f"timeout_ms must be positive, got {self.timeout_ms}")
        if not 0 <= self.endpoint <= 0xFF:
            raise ConfigError(f"endpoint must be a byte, got {self.endpoint}")
        if self.interface < 0:
            raise ConfigError(f"interface must not be negative, got {self.interface}")
        # raises InvalidLabelSizeError before any printer is opened
        parse_label_size(self.label_size, self.label_type)

    @property
    def label(self) -> LabelSpec:
        return parse_label_size(self.label_size, self.label_type)

    @staticmethod
    def from_mapping(values: Mapping[str, Any]) -> "PrintSettings":
        """
        Build settings from a config dict, ignoring unknown keys and None values.

        Examples:
            >>> PrintSettings.from_mapping({"copies": 2, "dither": "stucki"}).dither
            <DitherMode.STUCKI: 'stucki'>
        """
        known = {f.name for f in fields(PrintSettings)}
        kwargs = {k: v for k, v in values.items() if k in known and v is not None}
        return PrintSettings(**kwargs)


__all__ = [
    "MAX_COPIES",
    "PrintSettings",
]
