"""Tests for the volumetric nebula renderer."""

import math

import numpy as np
import pytest

from sigilscope.core.attractor import AttractorType
from sigilscope.core.sampler import ParticleSystem
from sigilscope.render.nebula import (
    NebulaRenderConfig,
    NebulaRenderer,
    depth_alpha,
    project_to_screen,
    proximity_boost,
    rotate_y,
    splat_squares,
)
from sigilscope.render.colorgrade import new_buffer


def _single(x, y, z, alpha=0.4, size=2.0):
    return ParticleSystem(
        positions=np.array([[x, y, z]], dtype=np.float64),
        is_core=np.array([False]),
        alpha=np.array([alpha]),
        phase=np.array([0.0]),
        size=np.array([size]),
    )


VOID = np.array([5, 4, 3], dtype=np.uint8)


class TestProjectionHelpers:
    def test_rotate_y_quarter_turn(self):
        out = rotate_y(np.array([[1.0, 2.0, 0.0]]), math.pi / 2)
        np.testing.assert_allclose(out, [[0.0, 2.0, 1.0]], atol=1e-12)

    def test_rotation_preserves_height(self):
        pts = np.random.default_rng(0).normal(size=(50, 3))
        np.testing.assert_array_equal(rotate_y(pts, 0.7)[:, 1], pts[:, 1])

    def test_perspective(self):
        pts = np.array([[10.0, -5.0, 0.0], [10.0, 0.0, 400.0], [0.0, 0.0, -400.0]])
        sx, sy, scale = project_to_screen(pts, (100.0, 50.0), focal_length=400.0)
        assert (sx[0], sy[0], scale[0]) == (110.0, 45.0, 1.0)
        assert scale[1] == pytest.approx(0.5)
        assert sx[1] == pytest.approx(105.0)
        assert np.isnan(scale[2])

    def test_depth_alpha(self):
        z = np.array([-10.0, 0.0, 10.0, 100.0])
        out = depth_alpha(np.ones(4), z, max_depth=10.0)
        np.testing.assert_allclose(out, [1.0, 0.75, 0.5, 0.1])

    def test_proximity_boost(self):
        z = np.array([-10.0, -5.0, 0.0, 10.0])
        np.testing.assert_allclose(proximity_boost(z, 10.0), [1.8, 1.4, 1.0, 1.0])

    def test_splat_clips_to_buffer(self):
        buf = new_buffer(6, 6)
        splat_squares(
            buf,
            np.array([-1.0, 4.0, 50.0]),
            np.array([-1.0, 4.0, 50.0]),
            np.array([2, 3, 2]),
            np.array([1.0, 0.0, 0.0], dtype=np.float32),
            np.array([0.5, 0.25, 1.0]),
        )
        assert buf[0, 0, 3] == pytest.approx(0.5)
        assert buf[1, 1, 3] == 0.0
        assert buf[5, 5, 3] == pytest.approx(0.25)
        assert buf[..., 3].sum() == pytest.approx(0.5 + 4 * 0.25)

    def test_splat_is_additive(self):
        buf = new_buffer(3, 3)
        xs = np.array([0.0, 0.0])
        splat_squares(buf, xs, xs, np.array([1, 1]), np.ones(3, dtype=np.float32), np.array([0.3, 0.3]))
        assert buf[0, 0, 3] == pytest.approx(0.6)


class TestConfig:
    def test_default_radius(self):
        cfg = NebulaRenderConfig(width=120, height=90)
        assert cfg.effective_radius == pytest.approx(36.0)

    @pytest.mark.parametrize("size", [(1920, 1080), (3840, 2160)])
    def test_default_radius_capped_by_focal_length(self, size):
        cfg = NebulaRenderConfig(width=size[0], height=size[1])
        assert cfg.effective_radius == pytest.approx(180.0)
        assert cfg.effective_radius * cfg.scale < cfg.focal_length

    def test_radius_beyond_focal_length_rejected(self):
        with pytest.raises(ValueError, match="focal_length"):
            NebulaRenderConfig(radius=300.0, scale=1.5)
        with pytest.raises(ValueError, match="focal_length"):
            NebulaRenderConfig(width=3840, height=2160, radius=864.0)

    def test_string_attractor(self):
        assert NebulaRenderConfig(attractor="thomas").attractor is AttractorType.THOMAS

    @pytest.mark.parametrize("overrides", [
        {"particle_count": -1},
        {"core_ratio": 2.0},
        {"attractor": "chua"},
        {"radius": 0.0},
        {"focal_length": 0.0},
        {"glitch_level": 7},
        {"width": 0},
    ])
    def test_invalid(self, overrides):
        with pytest.raises(ValueError):
            NebulaRenderConfig(**overrides)


class TestRenderer:
    def test_frame_shape(self, small_nebula_config, cache):
        frame = NebulaRenderer(small_nebula_config, cache=cache).render_frame(0)
        assert frame.shape == (90, 120, 3)
        assert frame.dtype == np.uint8
        assert (frame != VOID).any()

    def test_transparent_output(self, small_nebula_config, cache):
        small_nebula_config.background = None
        frame = NebulaRenderer(small_nebula_config, cache=cache).render_frame(0)
        assert frame.shape == (90, 120, 4)

    def test_deterministic(self, small_nebula_config, cache):
        a = NebulaRenderer(small_nebula_config, cache=cache).render_frame(12)
        b = NebulaRenderer(small_nebula_config, cache=cache).render_frame(12)
        np.testing.assert_array_equal(a, b)
        assert cache.hits == 1

    def test_rotation_changes_frames(self, small_nebula_config, cache):
        small_nebula_config.rotation_speed = 0.01
        renderer = NebulaRenderer(small_nebula_config, cache=cache)
        assert not np.array_equal(renderer.render_frame(0), renderer.render_frame(100))

    def test_rotation_is_monotone(self, small_nebula_config, cache):
        renderer = NebulaRenderer(small_nebula_config, cache=cache)
        angles = [renderer.rotation_at(i) for i in range(5)]
        assert angles == sorted(angles)
        assert angles[1] == pytest.approx(0.0003)

    def test_single_particle_at_origin(self, small_nebula_config):
        renderer = NebulaRenderer(small_nebula_config, particles=_single(0.0, 0.0, 0.0))
        frame = renderer.render_frame(0)
        # centre (60, 45) snaps to (60, 45); 2 px square
        assert (frame[45:47, 60:62] != VOID).all()
        assert (frame[44, 60] == VOID).all()
        assert (frame[45, 62] == VOID).all()

    def test_alpha_combines_factors(self, small_nebula_config):
        renderer = NebulaRenderer(small_nebula_config, particles=_single(0.0, 0.0, 0.0, alpha=0.4))
        _, _, side, alpha, visible = renderer.project(0)
        assert visible[0]
        assert side[0] == 2
        # breathe 1, depth fade 0.75, no proximity boost
        assert alpha[0] == pytest.approx(0.4 * 0.75)

    def test_behind_camera_is_culled(self, small_nebula_config):
        renderer = NebulaRenderer(small_nebula_config, particles=_single(0.0, 0.0, -500.0))
        _, _, _, _, visible = renderer.project(0)
        assert not visible[0]
        assert (renderer.render_frame(0) == VOID).all()

    def test_offscreen_is_culled(self, small_nebula_config):
        renderer = NebulaRenderer(small_nebula_config, particles=_single(500.0, 0.0, 0.0))
        assert not renderer.project(0)[4][0]

    def test_non_finite_particles_skipped(self, small_nebula_config):
        renderer = NebulaRenderer(small_nebula_config, particles=_single(np.nan, 0.0, 0.0))
        frame = renderer.render_frame(0)
        assert (frame == VOID).all()

    def test_near_particles_draw_larger(self, small_nebula_config):
        renderer = NebulaRenderer(small_nebula_config, particles=_single(0.0, 0.0, -200.0))
        _, _, side, _, _ = renderer.project(0)
        assert side[0] == 4

    def test_4k_cloud_stays_in_front_of_camera(self, cache):
        cfg = NebulaRenderConfig(width=3840, height=2160, particle_count=300,
                                 rotation_speed=0.05)
        renderer = NebulaRenderer(cfg, cache=cache)
        for frame_index in range(0, 126, 5):
            rotated = rotate_y(renderer.particles.positions, renderer.rotation_at(frame_index))
            assert (cfg.focal_length + rotated[:, 2] > 0).all()
            _, _, side, _, visible = renderer.project(frame_index)
            assert side[visible].max() <= 10

    def test_post_effects(self, small_nebula_config, cache):
        small_nebula_config.glow_enabled = True
        small_nebula_config.vignette_strength = 0.3
        small_nebula_config.glitch_level = 4
        small_nebula_config.flicker = True
        frames = list(NebulaRenderer(small_nebula_config, cache=cache).render_frames(2))
        assert all(f.shape == (90, 120, 3) for f in frames)
