"""
Модульные тесты для tdlabel/raster/encoder.py
Масштабирование, бинаризация, раскладка строки и упаковка битов.
"""

import random
from pathlib import Path

import pytest
from PIL import Image

from tdlabel.device.catalog import lookup
from tdlabel.exceptions import ImageLoadError, RasterEncodingError
from tdlabel.model.enums import DitherMode, LabelType, MarginColor
from tdlabel.model.label import LabelSpec, compute_max_bounds
from tdlabel.raster.encoder import (
    assemble_line,
    encode,
    fit_scale,
    load_image,
    pack_bits,
    row_to_bits,
    scale_to_fit,
    to_grayscale,
    unpack_bits,
)

TD4410D = lookup(0x20B6)  # 203 DPI, 832 dots
TD4510D = lookup(0x20B8)  # 300 DPI, 1280 dots


@pytest.fixture
def die_cut_geometry():
    return compute_max_bounds(TD4410D, LabelSpec(LabelType.DIE_CUT, 102, 200))


class TestPackBits:
    def test_msb_first(self) -> None:
        assert pack_bits([1, 0, 0, 0, 0, 0, 0, 0]) == b"\x80"
        assert pack_bits([0, 0, 0, 0, 0, 0, 1, 1]) == b"\x03"
        assert pack_bits([1] * 16) == b"\xff\xff"

    @pytest.mark.parametrize("length", [8, 64, 832, 1280])
    def test_round_trip(self, length: int) -> None:
        rng = random.Random(length)
        bits = [rng.randint(0, 1) for _ in range(length)]
        packed = pack_bits(bits)
        assert len(packed) == length // 8
        assert unpack_bits(packed) == bits

    def test_length_must_be_multiple_of_8(self) -> None:
        with pytest.raises(ValueError):
            pack_bits([1, 0, 1])


class TestRowLayout:
    def test_threshold(self) -> None:
        assert row_to_bits(bytes([0, 128, 129, 255])) == [1, 1, 0, 0]

    def test_row_written_right_to_left(self) -> None:
        line = assemble_line([1, 0, 0, 0, 0, 0, 0, 0], 16)
        # margin 8, 4 dots before the row; the first image column ends last
        assert line.index(1) == 11
        assert sum(line) == 1

    def test_odd_margin_puts_extra_dot_after_row(self) -> None:
        line = assemble_line([0, 0, 0], 8, MarginColor.BLACK)
        assert line == [1, 1, 0, 0, 0, 1, 1, 1]

    def test_margin_symmetry(self) -> None:
        line = assemble_line([0] * 100, 832, MarginColor.BLACK)
        assert len(line) == 832
        leading = line.index(0)
        trailing = 832 - leading - 100
        assert leading == 366
        assert trailing == 366

    def test_row_wider_than_head(self) -> None:
        with pytest.raises(RasterEncodingError):
            assemble_line([0] * 833, 832)


class TestScaling:
    def test_fit_scale(self, die_cut_geometry) -> None:
        assert fit_scale(2000, 100, die_cut_geometry) == pytest.approx(815 / 2000)

    def test_scales_down_preserving_aspect(self, die_cut_geometry) -> None:
        scaled = scale_to_fit(Image.new("L", (2000, 100), 255), die_cut_geometry)
        assert scaled.size == (815, 41)

    def test_never_scales_up(self, die_cut_geometry) -> None:
        image = Image.new("L", (10, 10), 255)
        assert scale_to_fit(image, die_cut_geometry).size == (10, 10)


class TestGrayscale:
    def test_transparent_becomes_white(self) -> None:
        image = Image.new("RGBA", (4, 4), (0, 0, 0, 0))
        assert set(to_grayscale(image).getdata()) == {255}

    def test_opaque_black_stays_black(self) -> None:
        image = Image.new("RGBA", (4, 4), (0, 0, 0, 255))
        assert set(to_grayscale(image).getdata()) == {0}

    def test_rgb_converted(self) -> None:
        assert to_grayscale(Image.new("RGB", (2, 2), (255, 255, 255))).mode == "L"


class TestEncode:
    def test_all_black_die_cut_203(self, die_cut_geometry) -> None:
        encoded = encode(Image.new("L", (100, 150), 0), die_cut_geometry, 832)

        assert encoded.width == 100
        assert encoded.height == 150
        assert len(encoded.lines) == 150
        assert encoded.label == LabelSpec(LabelType.DIE_CUT, 102, 200)

        # 366 white dots, 100 black dots, 366 white dots
        expected = bytes(45) + b"\x03" + b"\xff" * 12 + b"\xc0" + bytes(45)
        assert len(expected) == 104
        for line in encoded.lines:
            assert line == expected
        assert unpack_bits(encoded.lines[0]) == [0] * 366 + [1] * 100 + [0] * 366

    def test_black_margin(self, die_cut_geometry) -> None:
        encoded = encode(Image.new("L", (100, 1), 255), die_cut_geometry, 832, MarginColor.BLACK)
        assert unpack_bits(encoded.lines[0]) == [1] * 366 + [0] * 100 + [1] * 366

    def test_300_dpi_line_length(self) -> None:
        geometry = compute_max_bounds(TD4510D, LabelSpec(LabelType.DIE_CUT, 102, 152))
        encoded = encode(Image.new("L", (50, 3), 0), geometry, TD4510D.raster_width_pixels)
        assert {len(line) for line in encoded.lines} == {160}
        assert len(encoded.raster_data) == 3 * 160

    def test_continuous_height_recomputed(self) -> None:
        geometry = compute_max_bounds(TD4510D, LabelSpec(LabelType.CONTINUOUS, 62, 150))
        encoded = encode(Image.new("L", (10, 812), 0), geometry, 1280)
        # ceil(812 / 300 * 25.4) = 69
        assert encoded.label.height_mm == 69
        assert encoded.label.width_mm == 62

    def test_rotate_clockwise(self, die_cut_geometry) -> None:
        image = Image.new("L", (10, 20), 255)
        image.putpixel((0, 0), 0)
        encoded = encode(image, die_cut_geometry, 832, rotate=True)
        assert encoded.bitmap.size == (20, 10)
        assert encoded.bitmap.getpixel((19, 0)) == 0
        assert encoded.bitmap.getpixel((0, 0)) == 255

    def test_oversized_image_fits_print_head(self, die_cut_geometry) -> None:
        encoded = encode(Image.new("L", (3000, 300), 0), die_cut_geometry, 832)
        assert encoded.width <= die_cut_geometry.max_width_px
        assert {len(line) for line in encoded.lines} == {104}

    def test_dithered_bitmap_is_two_level(self, die_cut_geometry) -> None:
        gradient = Image.linear_gradient("L").resize((64, 64))
        encoded = encode(gradient, die_cut_geometry, 832, dither=DitherMode.STUCKI)
        assert encoded.bitmap.mode == "L"
        assert set(encoded.bitmap.getdata()) <= {0, 255}


class TestLoadImage:
    def test_loads_png(self, tmp_path: Path) -> None:
        path = tmp_path / "label.png"
        Image.new("RGB", (8, 4), "white").save(path)
        image = load_image(path)
        assert image.size == (8, 4)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ImageLoadError) as exc_info:
            load_image(tmp_path / "missing.png")
        assert "Can't load image" in str(exc_info.value)

    def test_not_an_image(self, tmp_path: Path) -> None:
        path = tmp_path / "notes.png"
        path.write_text("not an image")
        with pytest.raises(ImageLoadError):
            load_image(path)
