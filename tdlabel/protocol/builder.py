"""
Assembly of the complete print stream for one job.

CommandBuilder frames packed raster lines with the control commands of
tdlabel.protocol.commands and repeats the page once per copy. The stream
is built once, returned as immutable bytes and written to the printer in a
single bulk transfer.
"""

from __future__ import annotations

import logging
from typing import Final, Sequence

from tdlabel.model.label import LabelSpec
from tdlabel.protocol.commands import (
    ESC_INITIALIZE,
    ESC_RASTER_MODE,
    ESC_STATUS_NOTIFY_OFF,
    INVALIDATE,
    PRINT,
    PRINT_WITH_FEED,
    RASTER_LINE_HEADER_SIZE,
    CompressionMode,
    print_information,
    raster_line,
    set_compression,
    set_feed_amount,
)

logger: Final = logging.getLogger(__name__)

__all__ = ["CONTROL_BLOCK_SIZE", "CommandBuilder", "build_command_stream"]

CONTROL_BLOCK_SIZE: Final[int] = 28


class CommandBuilder:
    """
    Builds the byte stream for printing ``copies`` copies of one page.

    Args:
        label: Label spec sent in the print information header.
        lines: Packed raster lines, all of the same length.
        copies: Number of copies, at least 1.

    Raises:
        ValueError: If copies < 1 or the lines differ in length.

    Example:
        >>> builder = CommandBuilder(encoded.label, encoded.lines, copies=2)
        >>> stream = builder.build()
        >>> len(stream) == builder.expected_length()
        True
    """

    def __init__(self, label: LabelSpec, lines: Sequence[bytes], copies: int = 1) -> None:
        if copies < 1:
            raise ValueError(f"copies must be >= 1, got {copies}")
        if len({len(line) for line in lines}) > 1:
            raise ValueError("All raster lines must have the same length")

        self.label = label
        self.lines = tuple(lines)
        self.copies = copies

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def initialize(self) -> bytes:
        """Invalidate + ESC @, sent once per stream."""
        return INVALIDATE + ESC_INITIALIZE

    def control_block(self) -> bytes:
        """Mode setup and print information header preceding each copy."""
        return (
            ESC_RASTER_MODE
            + ESC_STATUS_NOTIFY_OFF
            + print_information(
                self.label.label_type,
                self.label.width_mm,
                self.label.height_mm,
                self.line_count,
            )
            + set_feed_amount()
            + set_compression(CompressionMode.NONE)
        )

    def raster_payload(self) -> bytes:
        """All raster lines of one copy, each framed with ``g 00 n``."""
        return b"".join(raster_line(line) for line in self.lines)

    def build(self) -> bytes:
        control = self.control_block()
        payload = self.raster_payload()

        parts = [self.initialize()]
        for copy in range(self.copies):
            logger.debug(f"Adding page {copy + 1}/{self.copies}")
            parts.append(control)
            parts.append(payload)
            if copy < self.copies - 1:
                parts.append(PRINT)
        parts.append(PRINT_WITH_FEED)

        stream = b"".join(parts)
        logger.debug(
            f"Built stream of {len(stream)} bytes: {self.copies} copies, "
            f"{self.line_count} lines each"
        )
        return stream

    def expected_length(self) -> int:
        """Stream length computed arithmetically from the inputs."""
        per_copy = CONTROL_BLOCK_SIZE + sum(
            RASTER_LINE_HEADER_SIZE + len(line) for line in self.lines
        )
        return len(INVALIDATE) + len(ESC_INITIALIZE) + self.copies * per_copy + self.copies


def build_command_stream(label: LabelSpec, lines: Sequence[bytes], copies: int = 1) -> bytes:
    """Shortcut for ``CommandBuilder(label, lines, copies).build()``."""
    return CommandBuilder(label, lines, copies).build()
