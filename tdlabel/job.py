"""
One print job, from source file to bytes on the wire.

PrintJob wires the pipeline together:

    select_device -> lookup -> claimed_interface
        -> prepared_source -> load_image
        -> compute_max_bounds -> encode -> CommandBuilder
        -> write_stream

Every step either succeeds or aborts the job; the USB interface is released
and the device closed on all paths.
"""

from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from dataclasses import dataclass
from pathlib import Path
from typing import Final, Optional, Tuple, Union

from PIL import Image

from tdlabel.config import PrintSettings
from tdlabel.convert import prepared_source
from tdlabel.device.catalog import VENDOR_ID, DeviceModel, lookup
from tdlabel.device.protocols import DeviceHandle, UsbBus
from tdlabel.device.selector import SelectionCriteria, select_device
from tdlabel.device.transport import PyUsbBus, claimed_interface, write_stream
from tdlabel.exceptions import UnknownProductError
from tdlabel.model.label import LabelSpec, compute_max_bounds
from tdlabel.protocol.builder import CommandBuilder
from tdlabel.raster.encoder import EncodedImage, encode, load_image

logger: Final = logging.getLogger(__name__)

__all__ = [
    "DEBUG_IMAGE_NAME",
    "DEBUG_RASTER_NAME",
    "DEBUG_COMMANDS_NAME",
    "PrintResult",
    "PrintJob",
]

DEBUG_IMAGE_NAME: Final[str] = "image.png"
DEBUG_RASTER_NAME: Final[str] = "raster.dat"
DEBUG_COMMANDS_NAME: Final[str] = "commands.prn"


@dataclass(frozen=True)
class PrintResult:
    """Summary of a transmitted job."""

    model: DeviceModel
    width: int
    height: int
    label: LabelSpec
    copies: int
    bytes_sent: int

    def __str__(self) -> str:
        return f"Printed successfully ({self.width} x {self.height} dots at {self.model.dpi} DPI)"


class PrintJob:
    """
    Prints one file with the given settings.

    Args:
        settings: Job settings.
        bus: USB bus to search; defaults to the pyusb/libusb bus.

    Example:
        >>> result = PrintJob(PrintSettings(label_size="102x152")).run("label.png")
        >>> print(result)
        Printed successfully (815 x 1152 dots at 203 DPI)
    """

    def __init__(self, settings: PrintSettings, bus: Optional[UsbBus] = None) -> None:
        self.settings = settings
        self._bus = bus

    @property
    def bus(self) -> UsbBus:
        if self._bus is None:
            self._bus = PyUsbBus()
        return self._bus

    @property
    def criteria(self) -> SelectionCriteria:
        return SelectionCriteria(name=self.settings.printer_name, serial=self.settings.serial)

    def select(self) -> Tuple[DeviceHandle, DeviceModel]:
        """Open the printer and resolve its catalog entry."""
        handle = select_device(self.bus, VENDOR_ID, self.criteria)
        try:
            model = lookup(handle.product_id)
        except UnknownProductError:
            handle.close()
            raise
        return handle, model

    def prepare_source(
        self, path: Union[str, Path], dpi: int
    ) -> AbstractContextManager[Path]:
        """Raster file for ``path``; PDF and SVG are rendered at ``dpi`` first."""
        return prepared_source(path, dpi)

    def render(self, image: Image.Image, model: DeviceModel) -> Tuple[EncodedImage, bytes]:
        """
        Encode ``image`` for ``model`` and build the command stream.

        Writes the debug files when debug output is enabled.
        """
        settings = self.settings
        geometry = compute_max_bounds(model, settings.label)
        encoded = encode(
            image,
            geometry,
            model.raster_width_pixels,
            margin_color=settings.margin_color,
            dither=settings.dither,
            rotate=settings.rotate,
        )
        builder = CommandBuilder(encoded.label, encoded.lines, settings.copies)
        stream = builder.build()

        if settings.debug:
            self.dump_debug(encoded, builder.raster_payload(), stream)
        return encoded, stream

    def dump_debug(self, encoded: EncodedImage, raster: bytes, stream: bytes) -> None:
        """Write the binarized image, the framed raster lines and the full stream."""
        directory = self.settings.debug_dir
        directory.mkdir(parents=True, exist_ok=True)

        encoded.bitmap.save(directory / DEBUG_IMAGE_NAME)
        (directory / DEBUG_RASTER_NAME).write_bytes(raster)
        (directory / DEBUG_COMMANDS_NAME).write_bytes(stream)
        logger.info(f"Debug output written to {directory.resolve()}")

    def send(self, handle: DeviceHandle, stream: bytes) -> int:
        """Write ``stream`` to the configured endpoint; raises ShortWriteError."""
        return write_stream(handle, stream, self.settings.endpoint, self.settings.timeout_ms)

    def run(self, path: Union[str, Path]) -> PrintResult:
        """
        Print ``path`` on the selected printer.

        Raises:
            LabelPrinterError: Any pipeline failure (see tdlabel.exceptions).
        """
        settings = self.settings
        handle, model = self.select()
        logger.info(f"Printing {path} on {model}, label {settings.label}")

        with claimed_interface(handle, settings.interface) as printer:
            with self.prepare_source(path, model.dpi) as source:
                image = load_image(source)
            encoded, stream = self.render(image, model)
            sent = self.send(printer, stream)

        result = PrintResult(
            model=model,
            width=encoded.width,
            height=encoded.height,
            label=encoded.label,
            copies=settings.copies,
            bytes_sent=sent,
        )
        logger.info(str(result))
        return result
