"""Tests for point cloud normalization and the attractor cache."""

from unittest.mock import patch

import numpy as np
import pytest

from sigilscope.core import cloud
from sigilscope.core.attractor import AttractorType
from sigilscope.core.cloud import (
    DEFAULT_CACHE,
    AttractorCache,
    clear_attractor_cache,
    get_cached_attractor_points,
    normalize_attractor_points,
)


class TestNormalize:
    def test_extent_and_centre(self):
        rng = np.random.default_rng(0)
        pts = rng.normal(size=(500, 3)) * [3.0, 1.0, 0.5] + [10.0, -4.0, 2.0]
        out = normalize_attractor_points(pts, radius=180.0, scale=1.5)

        extent = out.max(axis=0) - out.min(axis=0)
        assert extent.max() == pytest.approx(2 * 180.0 * 1.5)
        midpoint = (out.max(axis=0) + out.min(axis=0)) / 2
        np.testing.assert_allclose(midpoint, 0.0, atol=1e-9)

    def test_aspect_ratio_preserved(self):
        pts = np.array([[0.0, 0.0, 0.0], [4.0, 2.0, 1.0]])
        out = normalize_attractor_points(pts, radius=10.0)
        np.testing.assert_allclose(out, [[-10.0, -5.0, -2.5], [10.0, 5.0, 2.5]])

    def test_input_not_modified(self):
        pts = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
        before = pts.copy()
        normalize_attractor_points(pts, radius=5.0)
        np.testing.assert_array_equal(pts, before)

    def test_degenerate_cloud(self):
        pts = np.full((10, 3), 7.0)
        out = normalize_attractor_points(pts, radius=50.0)
        np.testing.assert_array_equal(out, np.zeros((10, 3)))

    def test_empty(self):
        assert normalize_attractor_points(np.zeros((0, 3)), radius=5.0).shape == (0, 3)

    @pytest.mark.parametrize("radius,scale", [(0.0, 1.0), (-1.0, 1.0), (1.0, 0.0)])
    def test_invalid(self, radius, scale):
        with pytest.raises(ValueError):
            normalize_attractor_points(np.ones((2, 3)), radius=radius, scale=scale)


class TestAttractorCache:
    def test_hit_returns_same_array(self, cache):
        a = cache.get(AttractorType.THOMAS, 1000, 50.0, 1.0)
        b = cache.get("thomas", 1000, 50.0, 1.0)
        assert a is b
        assert (cache.hits, cache.misses) == (1, 1)

    def test_generates_once_per_key(self, cache):
        with patch.object(cloud, "generate_attractor_points", wraps=cloud.generate_attractor_points) as gen:
            cache.get(AttractorType.LORENZ, 1000, 50.0, 1.0)
            cache.get(AttractorType.LORENZ, 1000, 50.0, 1.0)
            assert gen.call_count == 1

            cache.get(AttractorType.LORENZ, 1000, 60.0, 1.0)
            assert gen.call_count == 2
        assert len(cache) == 2

    def test_result_is_normalized_and_read_only(self, cache):
        pts = cache.get(AttractorType.ROSSLER, 1000, 40.0, 2.0)
        extent = pts.max(axis=0) - pts.min(axis=0)
        assert extent.max() == pytest.approx(160.0)
        with pytest.raises(ValueError):
            pts[0, 0] = 1.0

    def test_clear(self, cache):
        cache.get(AttractorType.GALAXY, 1000, 50.0, 1.0)
        key = cache.make_key(AttractorType.GALAXY, 1000, 50.0, 1.0)
        assert key in cache
        cache.clear()
        assert len(cache) == 0
        assert key not in cache
        assert (cache.hits, cache.misses) == (0, 0)

    def test_seed_for(self, cache):
        assert cache.seed_for(AttractorType.LORENZ) == 7
        unseeded = AttractorCache()
        assert unseeded.seed_for(AttractorType.LORENZ) != unseeded.seed_for(AttractorType.THOMAS)

    def test_unseeded_caches_agree(self):
        a = AttractorCache().get(AttractorType.THOMAS, 1000, 50.0)
        b = AttractorCache().get(AttractorType.THOMAS, 1000, 50.0)
        np.testing.assert_array_equal(a, b)

    def test_separate_instances_do_not_share(self, cache):
        other = AttractorCache(seed=7)
        cache.get(AttractorType.THOMAS, 1000, 50.0)
        assert len(other) == 0


class TestModuleLevelCache:
    def test_get_and_clear(self):
        a = get_cached_attractor_points(AttractorType.GALAXY, 1000, 30.0)
        assert get_cached_attractor_points(AttractorType.GALAXY, 1000, 30.0) is a
        assert len(DEFAULT_CACHE) == 1

        clear_attractor_cache()
        assert len(DEFAULT_CACHE) == 0
        b = get_cached_attractor_points(AttractorType.GALAXY, 1000, 30.0)
        assert b is not a
        np.testing.assert_array_equal(a, b)
