"""
Structural interfaces of the USB collaborators.

The pipeline never talks to pyusb directly: device selection and
transmission only see these two protocols. tdlabel.device.transport
provides the pyusb-backed implementation; tests provide fakes.

Failures are reported the way pyusb reports them: ``usb.core.USBError`` is a
subclass of ``OSError``, so implementations raise ``OSError`` (or a subclass).
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

__all__ = ["DeviceHandle", "UsbBus"]


@runtime_checkable
class DeviceHandle(Protocol):
    """An opened USB device."""

    @property
    def product_id(self) -> int: ...

    def kernel_driver_active(self, interface: int) -> bool: ...

    def detach_kernel_driver(self, interface: int) -> None: ...

    def claim_interface(self, interface: int) -> None: ...

    def set_interface_alt_setting(self, interface: int, alt_setting: int) -> None: ...

    def release_interface(self, interface: int) -> None: ...

    def bulk_write(self, endpoint: int, data: bytes, timeout_ms: int) -> int:
        """Write ``data`` to a bulk OUT endpoint, return the number of bytes sent."""
        ...

    def close(self) -> None: ...


@runtime_checkable
class UsbBus(Protocol):
    """Access to the devices attached to the host."""

    def open(
        self, vendor_id: int, product_id: int, serial: Optional[str] = None
    ) -> Optional[DeviceHandle]:
        """
        Open the first device matching vid/pid (and serial, when given).

        Returns None when no such device is attached; raises OSError when
        a matching device exists but cannot be opened.
        """
        ...
