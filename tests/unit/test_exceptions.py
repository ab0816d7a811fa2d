"""Тесты иерархии исключений (tdlabel/exceptions.py)."""

import pytest

from tdlabel.exceptions import (
    ConfigError,
    ConversionError,
    DeviceError,
    DeviceNotFoundError,
    ImageLoadError,
    InterfaceClaimError,
    InvalidLabelSizeError,
    InvalidSelectionError,
    LabelPrinterError,
    RasterEncodingError,
    ShortWriteError,
    TransmissionError,
    UnknownProductError,
)


@pytest.mark.parametrize(
    "error, parent",
    [
        (DeviceNotFoundError(), DeviceError),
        (UnknownProductError(0x1234), DeviceError),
        (InvalidSelectionError("both"), DeviceError),
        (InterfaceClaimError("busy"), DeviceError),
        (ShortWriteError(1, 2), TransmissionError),
        (InvalidLabelSizeError("bad"), LabelPrinterError),
        (ImageLoadError("a.png", "missing"), LabelPrinterError),
        (RasterEncodingError("wide"), LabelPrinterError),
        (ConversionError("no magick"), LabelPrinterError),
        (ConfigError("copies"), LabelPrinterError),
    ],
)
def test_hierarchy(error: LabelPrinterError, parent: type) -> None:
    assert isinstance(error, parent)
    assert isinstance(error, LabelPrinterError)


class TestFormatting:
    def test_message_only(self) -> None:
        assert str(LabelPrinterError("Job aborted")) == "LabelPrinterError: Job aborted"

    def test_with_context(self) -> None:
        error = ShortWriteError(10, 20)
        assert str(error) == (
            "ShortWriteError: Failed to send data. Sent 10/20 bytes (sent=10, expected=20)"
        )

    def test_repr(self) -> None:
        error = ConfigError("bad", context={"copies": 0})
        assert repr(error) == "ConfigError(message='bad', context={'copies': 0})"

    def test_device_not_found_context(self) -> None:
        error = DeviceNotFoundError(serial="A123")
        assert error.message == "Printer not found"
        assert error.context == {"serial": "A123"}

    def test_unknown_product(self) -> None:
        assert UnknownProductError(0x20FF).message == "Unsupported product id 0x20FF"

    def test_image_load(self) -> None:
        error = ImageLoadError("label.png", "cannot identify image file")
        assert error.message == "Can't load image label.png: cannot identify image file"
        assert error.path == "label.png"
