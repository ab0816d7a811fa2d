"""
Exception hierarchy for the label printing pipeline.

Every failure raised by tdlabel derives from LabelPrinterError, so a caller
can abort a job with a single except clause. None of these errors is retried
anywhere in the pipeline: a failed step terminates the job.

Hierarchy:
    LabelPrinterError (base)
    ├── DeviceError
    │   ├── DeviceNotFoundError
    │   ├── UnknownProductError
    │   ├── InvalidSelectionError
    │   └── InterfaceClaimError
    ├── TransmissionError
    │   └── ShortWriteError
    ├── InvalidLabelSizeError
    ├── ImageLoadError
    ├── RasterEncodingError
    ├── ConversionError
    └── ConfigError

Example:
    >>> from tdlabel.exceptions import LabelPrinterError
    >>> try:
    ...     job.run("label.png")
    ... except LabelPrinterError as e:
    ...     logger.error(f"Print failed: {e}")
"""

from __future__ import annotations

from typing import Any, Dict, Optional

__all__: list[str] = [
    "LabelPrinterError",
    "DeviceError",
    "DeviceNotFoundError",
    "UnknownProductError",
    "InvalidSelectionError",
    "InterfaceClaimError",
    "TransmissionError",
    "ShortWriteError",
    "InvalidLabelSizeError",
    "ImageLoadError",
    "RasterEncodingError",
    "ConversionError",
    "ConfigError",
]


# ==============================================================================
# BASE EXCEPTION
# ==============================================================================


class LabelPrinterError(Exception):
    """
    Base exception for all tdlabel errors.

    Attributes:
        message: Human readable description.
        context: Extra key/value details for logs (optional).

    Example:
        >>> raise LabelPrinterError("Job aborted", context={"copies": 2})
    """

    def __init__(
        self,
        message: str,
        *,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """
        Format as ``ClassName: message (key=value, ...)``.

        Example:
            >>> str(ShortWriteError(10, 20))
            'ShortWriteError: Failed to send data. Sent 10/20 bytes (sent=10, expected=20)'
        """
        parts = [self.__class__.__name__, ": ", self.message]

        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f" ({ctx_str})")

        return "".join(parts)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, context={self.context!r})"


# ==============================================================================
# DEVICE ERRORS
# ==============================================================================


class DeviceError(LabelPrinterError):
    """Errors raised while locating or opening the USB printer."""

    pass


class DeviceNotFoundError(DeviceError):
    """
    No matching printer could be opened on the bus.

    Raised when no catalog entry passes the name/serial filters, or when
    every candidate failed to open.
    """

    def __init__(
        self,
        message: str = "Printer not found",
        *,
        name: Optional[str] = None,
        serial: Optional[str] = None,
    ) -> None:
        context: Dict[str, Any] = {}
        if name:
            context["name"] = name
        if serial:
            context["serial"] = serial
        super().__init__(message, context=context)
        self.name = name
        self.serial = serial


class UnknownProductError(DeviceError):
    """
    USB product id is not part of the device catalog.

    Kept distinct from DeviceNotFoundError: the device is connected, but
    tdlabel does not know its resolution.
    """

    def __init__(self, product_id: int) -> None:
        super().__init__(
            f"Unsupported product id 0x{product_id:04X}",
            context={"product_id": f"0x{product_id:04X}"},
        )
        self.product_id = product_id


class InvalidSelectionError(DeviceError):
    """Selection criteria are contradictory (printer name and serial both given)."""

    pass


class InterfaceClaimError(DeviceError):
    """
    The device was found but interface 0 could not be claimed.

    The device handle is always closed before this error propagates.
    """

    pass


# ==============================================================================
# TRANSMISSION ERRORS
# ==============================================================================


class TransmissionError(LabelPrinterError):
    """Errors raised while writing the command stream to the printer."""

    pass


class ShortWriteError(TransmissionError):
    """
    Bulk transfer accepted fewer bytes than the command stream holds.

    Attributes:
        sent: Bytes reported as written by the endpoint.
        expected: Length of the command stream.
    """

    def __init__(self, sent: int, expected: int) -> None:
        super().__init__(
            f"Failed to send data. Sent {sent}/{expected} bytes",
            context={"sent": sent, "expected": expected},
        )
        self.sent = sent
        self.expected = expected


# ==============================================================================
# JOB INPUT ERRORS
# ==============================================================================


class InvalidLabelSizeError(LabelPrinterError):
    """Label dimensions are malformed, non-positive or do not fit the wire format."""

    pass


class ImageLoadError(LabelPrinterError):
    """Source image is unreadable or cannot be decoded."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Can't load image {path}: {reason}", context={"path": path})
        self.path = path
        self.reason = reason


class RasterEncodingError(LabelPrinterError):
    """Prepared bitmap cannot be laid out on the print head."""

    pass


class ConversionError(LabelPrinterError):
    """External rasterizer (ImageMagick) is missing or failed."""

    pass


class ConfigError(LabelPrinterError):
    """Print settings hold values outside their allowed range."""

    pass
