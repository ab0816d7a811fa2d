"""
Raster command constants for Brother TD-4000 series label printers.

Low-level byte sequences of the raster command mode used by the TD-4210D,
TD-4410D, TD-4420DN, TD-4510D, TD-4520DN and TD-4550DNWB. Values are
wire-exact; CommandBuilder (tdlabel.protocol.builder) assembles them into a
full print stream.

Reference: Brother Raster Command Reference, TD-2D/TD-4D series
Compatibility: TD-4210D, TD-4410D, TD-4420DN, TD-4510D, TD-4520DN, TD-4550DNWB

Stream layout:
    INVALIDATE                     350 x 00
    ESC_INITIALIZE                 ESC @
    per copy:
        ESC_RASTER_MODE            ESC i a 01
        ESC_STATUS_NOTIFY_OFF      ESC i ! 00
        print_information(...)     ESC i z n1..n10
        set_feed_amount(24)        ESC i d 18 00
        set_compression(NONE)      M 00
        raster_line(...) x N       g 00 n d1..dn
        PRINT (between copies)     FF
    PRINT_WITH_FEED (last copy)    SUB
"""

from __future__ import annotations

import struct
from enum import IntEnum, IntFlag
from typing import Final

from tdlabel.model.enums import LabelType

__all__ = [
    "INVALIDATE",
    "ESC_INITIALIZE",
    "ESC_RASTER_MODE",
    "ESC_STATUS_NOTIFY_OFF",
    "PRINT",
    "PRINT_WITH_FEED",
    "DEFAULT_FEED_DOTS",
    "RASTER_LINE_HEADER_SIZE",
    "PrintInfoFlag",
    "PRINT_INFO_FLAGS",
    "CompressionMode",
    "print_information",
    "set_feed_amount",
    "set_compression",
    "raster_line",
]

# =============================================================================
# INITIALIZATION
# =============================================================================

INVALIDATE: Final[bytes] = b"\x00" * 350
"""
Invalidate: 350 NUL bytes.

Flushes any partially received command so the printer is in a known state
before ESC @. Sent once at the start of every stream.
"""

ESC_INITIALIZE: Final[bytes] = b"\x1b\x40"
"""
Initialize (ESC @).

Hex: 1B 40
Clears the print buffer and resets settings to their defaults.
"""

# =============================================================================
# MODE CONTROL
# =============================================================================

ESC_RASTER_MODE: Final[bytes] = b"\x1b\x69\x61\x01"
"""
Switch dynamic command mode to raster (ESC i a 01).

Hex: 1B 69 61 01
"""

ESC_STATUS_NOTIFY_OFF: Final[bytes] = b"\x1b\x69\x21\x00"
"""
Automatic status notification off (ESC i ! 00).

Hex: 1B 69 21 00
The printer then only reports status on request, which tdlabel never makes.
"""

# =============================================================================
# PRINT COMMANDS
# =============================================================================

PRINT: Final[bytes] = b"\x0c"
"""
Print without feeding (FF). Ends every page except the last one.

Hex: 0C
"""

PRINT_WITH_FEED: Final[bytes] = b"\x1a"
"""
Print with feeding (SUB). Ends the last page and cuts/feeds the media.

Hex: 1A
"""

DEFAULT_FEED_DOTS: Final[int] = 24
RASTER_LINE_HEADER_SIZE: Final[int] = 3


class PrintInfoFlag(IntFlag):
    """Validity flags of the ESC i z print information command (n1)."""

    KIND = 0x02  # media type (n2) is valid
    WIDTH = 0x04  # media width (n3) is valid
    LENGTH = 0x08  # media length (n4) is valid
    RECOVER = 0x80  # printer recovery always on


PRINT_INFO_FLAGS: Final[PrintInfoFlag] = (
    PrintInfoFlag.KIND | PrintInfoFlag.WIDTH | PrintInfoFlag.LENGTH | PrintInfoFlag.RECOVER
)


class CompressionMode(IntEnum):
    """Raster data compression (M n)."""

    NONE = 0x00
    TIFF = 0x02


# =============================================================================
# COMMAND BUILDERS
# =============================================================================


def print_information(
    label_type: LabelType,
    width_mm: int,
    height_mm: int,
    raster_lines: int,
    starting_page: bool = True,
) -> bytes:
    """
    Generate the print information command.

    Command: ESC i z n1 n2 n3 n4 n5 n6 n7 n8 n9 n10
    Hex: 1B 69 7A n1..n10

    Args:
        label_type: Media type; n2 = 0x0B die-cut labels, 0x0A continuous tape.
        width_mm: Media width in mm (n3, 1-255).
        height_mm: Media length in mm (n4, 0-255). Sent as 0 for continuous tape.
        raster_lines: Number of raster lines on the page (n5-n8, little endian).
        starting_page: n9 = 0 for the starting page, 1 for other pages.

    Returns:
        13 command bytes.

    Raises:
        ValueError: If a value does not fit its field.

    Example:
        >>> print_information(LabelType.DIE_CUT, 102, 152, 1152).hex(" ")
        '1b 69 7a 8e 0b 66 98 80 04 00 00 00 00'
    """
    length = 0 if label_type is LabelType.CONTINUOUS else height_mm

    if not (0 < width_mm <= 255):
        raise ValueError(f"Media width must be 1-255 mm, got {width_mm}")
    if not (0 <= length <= 255):
        raise ValueError(f"Media length must be 0-255 mm, got {length}")
    if not (0 <= raster_lines <= 0xFFFFFFFF):
        raise ValueError(f"Raster line count out of range: {raster_lines}")

    return (
        b"\x1b\x69\x7a"
        + bytes([int(PRINT_INFO_FLAGS), label_type.command_code, width_mm, length])
        + struct.pack("<I", raster_lines)
        + bytes([0 if starting_page else 1, 0])
    )


def set_feed_amount(dots: int = DEFAULT_FEED_DOTS) -> bytes:
    """
    Specify margin amount / feed (ESC i d n1 n2).

    Hex: 1B 69 64 nL nH
    Print streams always use 24 dots (18 00).
    """
    if not (0 <= dots <= 0xFFFF):
        raise ValueError(f"Feed amount must be 0-65535 dots, got {dots}")
    return b"\x1b\x69\x64" + struct.pack("<H", dots)


def set_compression(mode: CompressionMode = CompressionMode.NONE) -> bytes:
    """
    Select compression mode (M n).

    Hex: 4D n
    tdlabel only sends uncompressed raster lines.
    """
    return b"\x4d" + bytes([int(mode)])


def raster_line(data: bytes) -> bytes:
    """
    Frame one packed raster line (g 00 n d1..dn).

    Hex: 67 00 n data
    ``n`` is the byte count of the line: 0x68 for a 832-dot head,
    0xA0 for a 1280-dot head.

    Raises:
        ValueError: If the line is empty or longer than 255 bytes.
    """
    if not (0 < len(data) <= 255):
        raise ValueError(f"Raster line must be 1-255 bytes, got {len(data)}")
    return b"\x67\x00" + bytes([len(data)]) + data
