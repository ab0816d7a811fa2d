"""
protocol

Команды растрового режима Brother TD и сборка полного потока печати.

Public API:
    - CommandBuilder, build_command_stream: поток для N копий
    - print_information, set_feed_amount, set_compression, raster_line: отдельные команды
"""

from tdlabel.protocol.builder import CONTROL_BLOCK_SIZE, CommandBuilder, build_command_stream
from tdlabel.protocol.commands import (
    CompressionMode,
    print_information,
    raster_line,
    set_compression,
    set_feed_amount,
)

__all__ = [
    "CONTROL_BLOCK_SIZE",
    "CommandBuilder",
    "build_command_stream",
    "CompressionMode",
    "print_information",
    "set_feed_amount",
    "set_compression",
    "raster_line",
]
