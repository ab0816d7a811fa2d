"""Тесты дизеринга (tdlabel/raster/dither.py)."""

from unittest import mock

import pytest
from PIL import Image

from tdlabel.model.enums import DitherMode
from tdlabel.raster.dither import KERNELS, binarize, error_diffuse

DIFFUSION_MODES = [DitherMode.FLOYD_STEINBERG, DitherMode.STUCKI, DitherMode.JARVIS]


class TestKernels:
    @pytest.mark.parametrize("mode, divisor", [(DitherMode.STUCKI, 42), (DitherMode.JARVIS, 48)])
    def test_weights_sum_to_divisor(self, mode: DitherMode, divisor: int) -> None:
        weights, kernel_divisor = KERNELS[mode]
        assert kernel_divisor == divisor
        assert sum(w for _, _, w in weights) == divisor

    def test_only_forward_neighbours(self) -> None:
        for weights, _ in KERNELS.values():
            for dx, dy, _ in weights:
                assert dy > 0 or (dy == 0 and dx > 0)


class TestBinarize:
    @pytest.mark.parametrize("mode", DIFFUSION_MODES)
    def test_output_is_one_bit(self, mode: DitherMode) -> None:
        result = binarize(Image.new("L", (16, 8), 90), mode)
        assert result.mode == "1"
        assert result.size == (16, 8)

    @pytest.mark.parametrize("mode", DIFFUSION_MODES)
    @pytest.mark.parametrize("value", [0, 255])
    def test_solid_images_unchanged(self, mode: DitherMode, value: int) -> None:
        result = binarize(Image.new("L", (12, 12), value), mode)
        assert set(result.getdata()) == {value}

    @pytest.mark.parametrize("mode", [DitherMode.STUCKI, DitherMode.JARVIS])
    def test_mid_gray_mixes_black_and_white(self, mode: DitherMode) -> None:
        result = binarize(Image.new("L", (32, 32), 128), mode)
        black = sum(1 for v in result.getdata() if v == 0)
        assert 0.2 < black / (32 * 32) < 0.8

    def test_accepts_rgb(self) -> None:
        assert binarize(Image.new("RGB", (4, 4), (0, 0, 0)), DitherMode.JARVIS).mode == "1"

    def test_none_rejected(self) -> None:
        with pytest.raises(ValueError):
            binarize(Image.new("L", (4, 4)), DitherMode.NONE)


class TestErrorDiffuse:
    def test_reads_source_in_place(self) -> None:
        gray = Image.linear_gradient("L").resize((16, 16))
        before = gray.tobytes()
        with mock.patch.object(Image.Image, "copy", side_effect=AssertionError("copied")):
            result = error_diffuse(gray, KERNELS[DitherMode.STUCKI])
        assert result.mode == "1"
        assert gray.tobytes() == before
