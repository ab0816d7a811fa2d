"""
Catalog of supported Brother TD-series printers.

The table maps a USB product id to the model name and print resolution.
It is built once at import time and exposed read-only.

Supported models:
    TD-4210D, TD-4410D, TD-4420DN (203 DPI, 832-dot print head)
    TD-4510D, TD-4520DN, TD-4550DNWB (300 DPI, 1280-dot print head)
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Final, Iterator, Mapping

from tdlabel.exceptions import UnknownProductError

__all__ = [
    "VENDOR_ID",
    "RASTER_WIDTH_BY_DPI",
    "DeviceModel",
    "CATALOG",
    "lookup",
    "find_by_name",
    "iter_models",
]

VENDOR_ID: Final[int] = 0x04F9  # Brother Industries, Ltd

# Print head width in dots, fixed per resolution class
RASTER_WIDTH_BY_DPI: Final[Mapping[int, int]] = MappingProxyType({203: 832, 300: 1280})


@dataclass(frozen=True)
class DeviceModel:
    """
    One supported hardware variant.

    Attributes:
        product_id: USB idProduct.
        name: Model name as printed on the device (e.g. 'TD-4410D').
        dpi: Print resolution, 203 or 300.
        model_code: Model byte reported by the printer in its status reply.
    """

    product_id: int
    name: str
    dpi: int
    model_code: int

    def __post_init__(self) -> None:
        if self.dpi not in RASTER_WIDTH_BY_DPI:
            raise ValueError(f"Unsupported resolution {self.dpi} DPI for {self.name}")

    @property
    def raster_width_pixels(self) -> int:
        """Dots per raster line (832 at 203 DPI, 1280 at 300 DPI)."""
        return RASTER_WIDTH_BY_DPI[self.dpi]

    @property
    def raster_line_bytes(self) -> int:
        return self.raster_width_pixels // 8

    def __str__(self) -> str:
        return f"{self.name} (0x{self.product_id:04X}, {self.dpi} DPI)"


_MODELS: Final[tuple[DeviceModel, ...]] = (
    DeviceModel(0x20F2, "TD-4210D", 203, 0x43),
    DeviceModel(0x20B6, "TD-4410D", 203, 0x37),
    DeviceModel(0x20B7, "TD-4420DN", 203, 0x38),
    DeviceModel(0x20B8, "TD-4510D", 300, 0x39),
    DeviceModel(0x20B9, "TD-4520DN", 300, 0x41),
    DeviceModel(0x20BA, "TD-4550DNWB", 300, 0x42),
)

CATALOG: Final[Mapping[int, DeviceModel]] = MappingProxyType(
    {model.product_id: model for model in sorted(_MODELS, key=lambda m: m.product_id)}
)


def lookup(product_id: int) -> DeviceModel:
    """
    Return the catalog entry for a USB product id.

    Raises:
        UnknownProductError: If the id is not a supported model.
    """
    try:
        return CATALOG[product_id]
    except KeyError:
        raise UnknownProductError(product_id) from None


def find_by_name(name: str) -> tuple[DeviceModel, ...]:
    """All catalog entries whose name matches exactly."""
    return tuple(model for model in iter_models() if model.name == name)


def iter_models() -> Iterator[DeviceModel]:
    """Iterate the catalog in ascending product id order."""
    return iter(CATALOG.values())
