"""
Point cloud normalization and the attractor cache.
"""

from typing import Dict, Optional, Tuple

import numpy as np

from sigilscope.core.attractor import (
    AttractorConfig,
    AttractorType,
    generate_attractor_points,
    parse_attractor_type,
)
from sigilscope.core.seed import hash_key


def normalize_attractor_points(
    points: np.ndarray,
    radius: float,
    scale: float = 1.0,
) -> np.ndarray:
    """
    Centre a cloud on its bounding-box midpoint and rescale it.

    The largest bounding-box extent becomes ``2 * radius * scale``, so the
    result fits in a sphere of radius ``radius * scale`` along every axis.

    Args:
        points: (N, 3) raw points.
        radius: Target radius, > 0.
        scale: Radius multiplier, > 0.

    Returns:
        New (N, 3) float64 array; the input is not modified.
    """
    if not radius > 0:
        raise ValueError(f"radius must be positive, got {radius}")
    if not scale > 0:
        raise ValueError(f"scale must be positive, got {scale}")

    pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    if len(pts) == 0:
        return pts.copy()

    lo = pts.min(axis=0)
    hi = pts.max(axis=0)
    center = (lo + hi) / 2.0
    range_max = float((hi - lo).max()) or 1.0
    scale_factor = (radius * 2.0 * scale) / range_max

    return (pts - center) * scale_factor


CacheKey = Tuple[AttractorType, int, float, float]


class AttractorCache:
    """
    Normalized point clouds keyed by ``(type, point_count, radius, scale)``.

    Exact-match lookup, no eviction. Without an explicit ``seed`` each type
    gets a seed derived from its name, so clouds are reproducible across
    processes. Each rendering context can own its own
    instance; the module-level helpers share ``DEFAULT_CACHE``. Arrays are
    returned read-only because they are shared between callers.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._store: Dict[CacheKey, np.ndarray] = {}
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(
        type: AttractorType,
        point_count: int,
        radius: float,
        scale: float,
    ) -> CacheKey:
        return (parse_attractor_type(type), int(point_count), float(radius), float(scale))

    def get(
        self,
        type: AttractorType,
        point_count: int = 2000,
        radius: float = 180.0,
        scale: float = 1.0,
    ) -> np.ndarray:
        key = self.make_key(type, point_count, radius, scale)
        cached = self._store.get(key)
        if cached is not None:
            self.hits += 1
            return cached

        self.misses += 1
        config = AttractorConfig(
            type=key[0], point_count=key[1], radius=key[2], scale=key[3]
        )
        raw = generate_attractor_points(config, seed=self.seed_for(key[0]))
        normalized = normalize_attractor_points(raw, config.radius, config.scale)
        normalized.setflags(write=False)
        # Redundant first writers produce equivalent clouds; last one wins.
        self._store[key] = normalized
        return normalized

    def seed_for(self, type: AttractorType) -> int:
        """Fixed seed if one was given, else one derived from the type name."""
        if self.seed is not None:
            return self.seed
        return hash_key(type.value)

    def clear(self) -> None:
        self._store.clear()
        self.hits = 0
        self.misses = 0

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._store

    def __len__(self) -> int:
        return len(self._store)


DEFAULT_CACHE = AttractorCache()


def get_cached_attractor_points(
    type: AttractorType,
    point_count: int = 2000,
    radius: float = 180.0,
    scale: float = 1.0,
) -> np.ndarray:
    """Normalized points from ``DEFAULT_CACHE``; generated on first use."""
    return DEFAULT_CACHE.get(type, point_count, radius, scale)


def clear_attractor_cache() -> None:
    """Empty ``DEFAULT_CACHE``."""
    DEFAULT_CACHE.clear()
