"""Tests for glitch effects."""

import numpy as np
import pytest

from sigilscope.core.sigil import generate_sigil
from sigilscope.render.colorgrade import new_buffer, parse_rgb
from sigilscope.render.glitch import (
    GRID,
    apply_glitch_level,
    draw_scanlines,
    fill_square,
    glitch_displace,
    glitch_flicker,
    snap,
)


@pytest.fixture
def particles():
    return generate_sigil("The Lattice").particles


class TestSnap:
    def test_floors_to_grid(self):
        assert snap(0.0) == 0
        assert snap(2.9) == 0
        assert snap(3.0) == 3
        assert snap(-0.1) == -3
        assert snap(10, grid=4) == 8


class TestGlitchDisplace:
    def test_does_not_mutate_input(self, particles):
        before = list(particles)
        glitch_displace(particles, probability=1.0, rng=np.random.default_rng(0))
        assert particles == before

    def test_offsets_on_grid(self, particles):
        out = glitch_displace(particles, intensity=9, probability=1.0, rng=np.random.default_rng(1))
        for old, new in zip(particles, out):
            dx, dy = new.x - old.x, new.y - old.y
            assert new.glitched
            assert dx == pytest.approx(round(dx)) and round(dx) % GRID == 0
            assert dy == pytest.approx(round(dy)) and round(dy) % GRID == 0
            assert abs(dx) <= 9 + GRID
            assert abs(dy) <= 4.5 + GRID

    def test_probability_zero_is_identity(self, particles):
        out = glitch_displace(particles, probability=0.0, rng=np.random.default_rng(2))
        assert out == list(particles)

    def test_same_rng_same_result(self, particles):
        a = glitch_displace(particles, rng=np.random.default_rng(5))
        b = glitch_displace(particles, rng=np.random.default_rng(5))
        assert a == b

    def test_rejects_bad_probability(self, particles):
        with pytest.raises(ValueError):
            glitch_displace(particles, probability=1.5)

    def test_rejects_non_dataclass(self):
        with pytest.raises(TypeError):
            glitch_displace([(1.0, 2.0)], probability=1.0)


class TestFlicker:
    def test_range(self):
        rng = np.random.default_rng(0)
        for t in np.linspace(0, 10, 200):
            v = glitch_flicker(float(t), rng=rng)
            assert 0.7 <= v <= 1.0

    def test_deterministic_without_rng(self):
        assert glitch_flicker(1.23) == glitch_flicker(1.23)


class TestBufferEffects:
    def test_fill_square_clips(self):
        buf = new_buffer(4, 4)
        fill_square(buf, 2, 2, 5, parse_rgb("255, 0, 0"), 1.0)
        assert buf[3, 3, 0] == pytest.approx(1.0)
        assert buf[3, 3, 3] == pytest.approx(1.0)
        assert buf[1, 1, 3] == 0.0

    def test_fill_square_source_over(self):
        buf = new_buffer(2, 2)
        rgb = parse_rgb("255, 255, 255")
        fill_square(buf, 0, 0, 1, rgb, 0.5)
        fill_square(buf, 0, 0, 1, rgb, 0.5)
        assert buf[0, 0, 3] == pytest.approx(0.75)

    def test_scanlines_darken_every_third_row(self):
        buf = np.ones((9, 2, 4), dtype=np.float32)
        out = draw_scanlines(buf, opacity=0.5)
        assert out[0, 0, 0] == pytest.approx(0.5)
        assert out[1, 0, 0] == 1.0
        assert out[3, 0, 0] == pytest.approx(0.5)
        assert buf[0, 0, 0] == 1.0

    def test_level_zero_is_noop(self):
        buf = new_buffer(8, 8)
        assert apply_glitch_level(buf, 0, np.random.default_rng(0)) is buf

    def test_noise_level_adds_grain(self):
        buf = new_buffer(60, 60)
        out = apply_glitch_level(buf, 1, np.random.default_rng(0))
        assert out[..., 3].sum() > 0
        assert buf[..., 3].sum() == 0

    def test_invalid_level(self):
        with pytest.raises(ValueError):
            apply_glitch_level(new_buffer(2, 2), 5, np.random.default_rng(0))
