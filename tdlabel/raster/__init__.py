"""
raster

Подготовка изображения к печати: масштабирование, бинаризация, дизеринг и
упаковка растровых строк (8 точек на байт, старший бит первым).

Public API:
    - encode: изображение -> EncodedImage (упакованные строки)
    - load_image: загрузка файла через Pillow
    - binarize: дизеринг Floyd-Steinberg / Stucki / Jarvis

Зависимости:
    Pillow
"""

from tdlabel.raster.dither import KERNELS, binarize, error_diffuse
from tdlabel.raster.encoder import EncodedImage, encode, load_image, pack_bits, unpack_bits

__all__ = [
    "KERNELS",
    "binarize",
    "error_diffuse",
    "EncodedImage",
    "encode",
    "load_image",
    "pack_bits",
    "unpack_bits",
]
