"""
Resolve the printer to print on from optional name / serial filters.

Candidates are probed in catalog order (ascending product id); the first
one that opens wins. When several printers are attached and no filter is
given, which one is chosen depends on that order only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Final, Iterable, Optional

from tdlabel.device.catalog import DeviceModel, iter_models
from tdlabel.device.protocols import DeviceHandle, UsbBus
from tdlabel.exceptions import DeviceNotFoundError, InvalidSelectionError

logger: Final = logging.getLogger(__name__)

__all__ = ["PRINTER_INTERFACE", "SelectionCriteria", "select_device"]

PRINTER_INTERFACE: Final[int] = 0


@dataclass(frozen=True)
class SelectionCriteria:
    """
    Filters for picking one printer.

    At most one of them may be set. Empty strings count as "not given".
    """

    name: Optional[str] = None
    serial: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", self.name or None)
        object.__setattr__(self, "serial", self.serial or None)

    @property
    def is_empty(self) -> bool:
        return self.name is None and self.serial is None


def select_device(
    bus: UsbBus,
    vendor_id: int,
    criteria: SelectionCriteria,
    catalog: Optional[Iterable[DeviceModel]] = None,
) -> DeviceHandle:
    """
    Open the printer matching ``criteria``.

    Selection policy:
        - no filter: first catalog entry that opens
        - name: only entries with exactly that name
        - serial: every entry, opened by vid/pid/serial
        - name and serial together are rejected

    On success the kernel driver bound to interface 0 is detached if active.
    Failing to detach is logged and ignored.

    Args:
        bus: USB bus to probe.
        vendor_id: USB vendor id of the printers.
        criteria: Name / serial filters.
        catalog: Models to probe (defaults to the full catalog).

    Returns:
        Opened device handle.

    Raises:
        InvalidSelectionError: If both name and serial are given.
        DeviceNotFoundError: If no candidate could be opened.
    """
    if criteria.name is not None and criteria.serial is not None:
        raise InvalidSelectionError(
            "Select a printer either by name or by serial, not both",
            context={"name": criteria.name, "serial": criteria.serial},
        )

    candidates = list(iter_models() if catalog is None else catalog)
    if criteria.name is not None:
        candidates = [model for model in candidates if model.name == criteria.name]
        if not candidates:
            raise DeviceNotFoundError(
                f"Unknown printer model {criteria.name!r}", name=criteria.name
            )
    if criteria.serial is not None:
        logger.info(f"Using serial {criteria.serial}")

    for model in candidates:
        handle = _try_open(bus, vendor_id, model, criteria.serial)
        if handle is None:
            continue
        logger.info(f"Selected printer {model}")
        _detach_kernel_driver(handle)
        return handle

    raise DeviceNotFoundError(name=criteria.name, serial=criteria.serial)


def _try_open(
    bus: UsbBus, vendor_id: int, model: DeviceModel, serial: Optional[str]
) -> Optional[DeviceHandle]:
    try:
        return bus.open(vendor_id, model.product_id, serial)
    except OSError as e:
        logger.debug(f"Could not open {model}: {e}")
        return None


def _detach_kernel_driver(handle: DeviceHandle) -> None:
    try:
        if handle.kernel_driver_active(PRINTER_INTERFACE):
            handle.detach_kernel_driver(PRINTER_INTERFACE)
            logger.debug("Detached kernel driver from interface 0")
    except (OSError, NotImplementedError) as e:
        logger.warning(f"Could not detach kernel driver: {e}")
