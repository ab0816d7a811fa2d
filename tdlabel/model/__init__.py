"""
model

Модель задания печати: тип носителя, размер этикетки и печатная область.

Public API:
    - LabelType, DitherMode, MarginColor: перечисления задания
    - LabelSpec: размер и тип этикетки (frozen dataclass)
    - PrintGeometry: максимальный размер изображения в точках
    - parse_label_size: разбор "102x152" / "62"
    - compute_max_bounds: печатная область для модели принтера

Примеры:
    >>> from tdlabel.model import LabelType, compute_max_bounds, parse_label_size
    >>> spec = parse_label_size("62", LabelType.CONTINUOUS)
    >>> compute_max_bounds(300, spec).max_width_px
    732
"""

from tdlabel.model.enums import DitherMode, LabelType, MarginColor
from tdlabel.model.label import (
    LabelSpec,
    PrintGeometry,
    compute_max_bounds,
    parse_label_size,
)

__all__ = [
    "LabelType",
    "DitherMode",
    "MarginColor",
    "LabelSpec",
    "PrintGeometry",
    "parse_label_size",
    "compute_max_bounds",
]
