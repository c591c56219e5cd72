"""Tests for digital soil generation."""

import math

import numpy as np
import pytest
from pydantic import ValidationError

from lumen_genesis.core.alea_prng import AleaPRNG
from lumen_genesis.core.brightness import PixelBuffer
from lumen_genesis.core.soil import (
    SoilPoint,
    SoilSettings,
    SoilShape,
    draw_soil_floor,
    generate_preview,
    generate_soil,
)
from lumen_genesis.core.surface import RecordingSurface


def gray_buffer(width, height, value):
    return PixelBuffer.from_array(np.full((height, width, 3), value, dtype=np.uint8))


class TestSoilSettings:
    """Test settings validation and clamping."""

    def test_defaults(self):
        settings = SoilSettings()
        assert settings.threshold == 100
        assert settings.dot_size == 8
        assert settings.spacing == 4
        assert settings.shape is SoilShape.DOT
        assert settings.max_points == 2000

    def test_camel_case_aliases(self):
        settings = SoilSettings(dotSize=12, maxPoints=500)
        assert settings.dot_size == 12
        assert settings.max_points == 500

    def test_out_of_range_values_are_clamped(self):
        settings = SoilSettings(threshold=300, dot_size=0.5, spacing=0, max_points=-5)
        assert settings.threshold == 255
        assert settings.dot_size == 2
        assert settings.spacing == 1
        assert settings.step == 1
        assert settings.max_points == 1

        assert SoilSettings(threshold=-10).threshold == 0
        assert SoilSettings(spacing=45).spacing == 20

    def test_unknown_shape_rejected(self):
        with pytest.raises(ValidationError):
            SoilSettings(shape="hexagon")


class TestPreview:
    """Test the lightweight preview pass."""

    def test_uniform_grid_scenario(self):
        """100x100 at luminance 200, threshold 100, spacing 10, dot 8."""
        buffer = gray_buffer(100, 100, 200)
        settings = SoilSettings(threshold=100, spacing=10, dot_size=8)
        dots = generate_preview(buffer, settings)

        assert len(dots) == 100
        for dot in dots:
            assert dot.size == pytest.approx(100 / 155 * 8, abs=1e-6)
        assert dots[0].x == -50 and dots[0].y == -50
        assert {d.x for d in dots} == {float(x) for x in range(-50, 50, 10)}

    def test_capped_by_truncation(self):
        buffer = gray_buffer(200, 200, 255)
        dots = generate_preview(buffer, SoilSettings(threshold=0, spacing=1))

        assert len(dots) == 4000
        # Row-major truncation keeps the top rows only
        assert dots[0].x == -100 and dots[0].y == -100
        assert max(d.y for d in dots) == -81

    def test_tiny_dots_are_dropped(self):
        buffer = gray_buffer(20, 20, 102)
        dots = generate_preview(buffer, SoilSettings(threshold=100, spacing=2, dot_size=2))
        assert dots == []

    def test_not_ready(self):
        assert generate_preview(None, SoilSettings()) == []
        empty = PixelBuffer(np.empty(0, dtype=np.uint8), 0, 0)
        assert generate_preview(empty, SoilSettings()) == []


class TestGenerateSoil:
    """Test the final soil generation pass."""

    @pytest.fixture
    def gradient_buffer(self):
        """Luminance rising left to right from 0 to 255."""
        row = np.linspace(0, 255, 128).astype(np.uint8)
        array = np.repeat(np.tile(row, (64, 1))[:, :, np.newaxis], 3, axis=2)
        return PixelBuffer.from_array(array)

    @pytest.mark.parametrize("threshold", [0, 60, 128, 200, 250])
    def test_points_respect_threshold(self, gradient_buffer, threshold):
        settings = SoilSettings(threshold=threshold, spacing=3, max_points=100000)
        soil = generate_soil(gradient_buffer, settings, AleaPRNG("thr"), min_points=0)

        assert len(soil) > 0
        for pt in soil.points:
            assert pt.b > threshold
            assert 0 <= pt.n <= 1
            assert -3 <= pt.z <= 3

    def test_normalized_increases_with_luminance(self, gradient_buffer):
        settings = SoilSettings(threshold=50, spacing=1, max_points=100000)
        soil = generate_soil(gradient_buffer, settings, AleaPRNG("mono"))
        pairs = sorted({(pt.b, pt.n) for pt in soil.points})
        ns = [n for _, n in pairs]
        assert all(a < b for a, b in zip(ns, ns[1:]))

    def test_capped_at_max_points(self):
        buffer = gray_buffer(100, 100, 255)
        settings = SoilSettings(threshold=0, spacing=1, max_points=300)
        soil = generate_soil(buffer, settings, AleaPRNG("cap"))

        assert len(soil) == 300
        assert soil.scanned == 10000
        assert len({(pt.x, pt.y) for pt in soil.points}) == 300

    def test_subsampling_has_no_spatial_skew(self):
        buffer = gray_buffer(100, 100, 255)
        settings = SoilSettings(threshold=0, spacing=1, max_points=1000)
        top_share = []
        mean_x = []
        for run in range(10):
            soil = generate_soil(buffer, settings, AleaPRNG(f"skew-{run}"))
            ys = np.array([pt.y for pt in soil.points])
            xs = np.array([pt.x for pt in soil.points])
            top_share.append(np.mean(ys < 0))
            mean_x.append(xs.mean())

        assert np.mean(top_share) == pytest.approx(0.5, abs=0.05)
        assert np.mean(mean_x) == pytest.approx(-0.5, abs=3)

    def test_reproducible_with_seed(self):
        buffer = gray_buffer(60, 60, 180)
        settings = SoilSettings(threshold=10, spacing=2, max_points=200)
        a = generate_soil(buffer, settings, AleaPRNG("same"))
        b = generate_soil(buffer, settings, AleaPRNG("same"))
        assert a.points == b.points

    @pytest.mark.parametrize("size", [(1, 1), (37, 11), (300, 200)])
    def test_black_image_fallback(self, size):
        width, height = size
        soil = generate_soil(gray_buffer(width, height, 0), SoilSettings(), AleaPRNG("dark"))

        assert len(soil) == 120
        assert soil.synthetic == 120
        for pt in soil.points:
            assert (pt.n, pt.b, pt.z) == (1, 255, 0)
            assert -width / 2 <= pt.x <= width / 2
            assert -height / 2 <= pt.y <= height / 2

    def test_sparse_image_keeps_real_points(self):
        array = np.zeros((40, 40, 3), dtype=np.uint8)
        array[0, 0] = 255
        soil = generate_soil(
            PixelBuffer.from_array(array), SoilSettings(threshold=10, spacing=1), AleaPRNG("s")
        )
        assert len(soil) == 121
        assert soil.points[0].b == pytest.approx(255)
        assert soil.points[0].n == pytest.approx(1)

    def test_not_ready(self):
        assert generate_soil(None, SoilSettings(), AleaPRNG("none")) is None


class TestSoilFloor:
    """Test drawing soil points on the floor plane."""

    @pytest.fixture
    def bright_point(self):
        return SoilPoint(x=0.0, y=0.0, z=2.0, b=255.0, n=1.0)

    def test_empty_field_draws_nothing(self):
        surface = RecordingSurface()
        draw_soil_floor(surface, [], SoilSettings(), 0.0)
        assert surface.calls == []

    def test_point_lies_on_floor(self, bright_point):
        surface = RecordingSurface()
        draw_soil_floor(surface, [bright_point], SoilSettings(dot_size=10), 0.0)

        assert surface.last("translate") == (0.0, 3.0, 0.0)
        assert surface.last("rotate_x") == (pytest.approx(math.pi / 2),)
        assert surface.last("ellipse") == (0, 0, pytest.approx(7.0), pytest.approx(7.0))
        assert surface.depth == 0

    @pytest.mark.parametrize(
        "shape, call, size",
        [
            (SoilShape.DOT, "ellipse", (7.0, 7.0)),
            (SoilShape.SQUARE, "rect", (8.4, 8.4)),
            (SoilShape.LINE, "rect", (4.2, 14.0)),
        ],
    )
    def test_shape_dispatch(self, bright_point, shape, call, size):
        surface = RecordingSurface()
        settings = SoilSettings(dot_size=10, shape=shape)
        draw_soil_floor(surface, [bright_point], settings, 0.0)

        assert surface.count("ellipse") + surface.count("rect") == 1
        assert surface.last(call)[2:] == (pytest.approx(size[0]), pytest.approx(size[1]))

    def test_dim_points_are_smaller(self):
        surface = RecordingSurface()
        dim = SoilPoint(x=0.0, y=0.0, z=0.0, b=101.0, n=0.0)
        draw_soil_floor(surface, [dim], SoilSettings(dot_size=10), 0.0)
        assert surface.last("ellipse")[2] == pytest.approx(2.1)

    def test_breathing(self, bright_point):
        surface = RecordingSurface()
        draw_soil_floor(surface, [bright_point], SoilSettings(dot_size=10), math.pi / 2)
        assert surface.last("ellipse")[2] == pytest.approx(7.0 * 1.05)
