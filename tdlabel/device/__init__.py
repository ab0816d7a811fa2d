"""
device

Поиск и открытие USB-принтеров Brother TD, передача потока команд.

Public API:
    - VENDOR_ID, CATALOG, DeviceModel, lookup: каталог поддерживаемых моделей
    - DeviceHandle, UsbBus: протоколы USB-слоя (подменяются в тестах)
    - SelectionCriteria, select_device: выбор принтера по имени или серийному номеру
    - PyUsbBus, claimed_interface, write_stream: реализация на pyusb

Зависимости:
    pyusb (+ libusb)
"""

from tdlabel.device.catalog import CATALOG, VENDOR_ID, DeviceModel, find_by_name, iter_models, lookup
from tdlabel.device.protocols import DeviceHandle, UsbBus
from tdlabel.device.selector import SelectionCriteria, select_device
from tdlabel.device.transport import PyUsbBus, PyUsbHandle, claimed_interface, write_stream

__all__ = [
    "VENDOR_ID",
    "CATALOG",
    "DeviceModel",
    "lookup",
    "find_by_name",
    "iter_models",
    "DeviceHandle",
    "UsbBus",
    "SelectionCriteria",
    "select_device",
    "PyUsbBus",
    "PyUsbHandle",
    "claimed_interface",
    "write_stream",
]
