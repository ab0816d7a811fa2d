"""
pyusb-backed USB transport.

Provides the concrete UsbBus / DeviceHandle used in production, the scoped
interface claim, and the single bulk transfer of a job.

Usage:
    >>> bus = PyUsbBus()
    >>> handle = select_device(bus, VENDOR_ID, SelectionCriteria())
    >>> with claimed_interface(handle) as printer:
    ...     write_stream(printer, stream)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Final, Iterator, Optional

import usb.core
import usb.util

from tdlabel.device.protocols import DeviceHandle
from tdlabel.exceptions import (
    DeviceError,
    InterfaceClaimError,
    ShortWriteError,
    TransmissionError,
)

logger: Final = logging.getLogger(__name__)

__all__ = [
    "ENDPOINT_OUT",
    "WRITE_TIMEOUT_MS",
    "PyUsbHandle",
    "PyUsbBus",
    "claimed_interface",
    "write_stream",
]

ENDPOINT_OUT: Final[int] = 0x02
WRITE_TIMEOUT_MS: Final[int] = 5000


class PyUsbHandle:
    """DeviceHandle over a ``usb.core.Device``."""

    def __init__(self, device: usb.core.Device) -> None:
        self._device = device

    @property
    def device(self) -> usb.core.Device:
        return self._device

    @property
    def product_id(self) -> int:
        return int(self._device.idProduct)

    def kernel_driver_active(self, interface: int) -> bool:
        return bool(self._device.is_kernel_driver_active(interface))

    def detach_kernel_driver(self, interface: int) -> None:
        self._device.detach_kernel_driver(interface)

    def claim_interface(self, interface: int) -> None:
        try:
            self._device.get_active_configuration()
        except usb.core.USBError:
            self._device.set_configuration()
        usb.util.claim_interface(self._device, interface)

    def set_interface_alt_setting(self, interface: int, alt_setting: int) -> None:
        self._device.set_interface_altsetting(interface=interface, alternate_setting=alt_setting)

    def release_interface(self, interface: int) -> None:
        usb.util.release_interface(self._device, interface)

    def bulk_write(self, endpoint: int, data: bytes, timeout_ms: int) -> int:
        return int(self._device.write(endpoint, data, timeout_ms))

    def close(self) -> None:
        usb.util.dispose_resources(self._device)


class PyUsbBus:
    """UsbBus over the default libusb backend."""

    def __init__(self, backend: Optional[object] = None) -> None:
        self._backend = backend

    def open(
        self, vendor_id: int, product_id: int, serial: Optional[str] = None
    ) -> Optional[PyUsbHandle]:
        """
        Raises:
            DeviceError: If no libusb backend is installed.
        """
        try:
            devices = list(
                usb.core.find(
                    find_all=True, idVendor=vendor_id, idProduct=product_id, backend=self._backend
                )
            )
        except usb.core.NoBackendError as e:
            raise DeviceError("USB backend not available", context={"reason": str(e)}) from e

        for device in devices:
            if serial is None:
                return PyUsbHandle(device)
            if _read_serial(device) == serial:
                return PyUsbHandle(device)
        return None


def _read_serial(device: usb.core.Device) -> Optional[str]:
    try:
        return usb.util.get_string(device, device.iSerialNumber)
    except (usb.core.USBError, ValueError) as e:
        logger.debug(f"Could not read serial number of {device.idProduct:04x}: {e}")
        return None


@contextmanager
def claimed_interface(handle: DeviceHandle, interface: int = 0) -> Iterator[DeviceHandle]:
    """
    Claim ``interface`` for the duration of the block.

    The interface is released and the handle closed on every exit path. If the
    claim itself fails, the handle is closed before InterfaceClaimError is raised.
    """
    try:
        handle.claim_interface(interface)
        handle.set_interface_alt_setting(interface, 0)
    except OSError as e:
        handle.close()
        raise InterfaceClaimError(
            f"Interface claim failed: {e}", context={"interface": interface}
        ) from e

    try:
        yield handle
    finally:
        try:
            handle.release_interface(interface)
        except OSError as e:
            logger.warning(f"Could not release interface {interface}: {e}")
        finally:
            handle.close()


def write_stream(
    handle: DeviceHandle,
    stream: bytes,
    endpoint: int = ENDPOINT_OUT,
    timeout_ms: int = WRITE_TIMEOUT_MS,
) -> int:
    """
    Send the whole command stream in one bulk transfer.

    Returns:
        Number of bytes written (always ``len(stream)``).

    Raises:
        ShortWriteError: If the device accepted fewer bytes.
        TransmissionError: If the transfer failed or timed out.
    """
    logger.debug(f"Writing {len(stream)} bytes to endpoint 0x{endpoint:02x}")
    try:
        sent = handle.bulk_write(endpoint, stream, timeout_ms)
    except OSError as e:
        raise TransmissionError(
            f"Bulk transfer failed: {e}", context={"expected": len(stream)}
        ) from e

    if sent != len(stream):
        raise ShortWriteError(sent, len(stream))
    return sent
