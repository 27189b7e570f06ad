"""Pytest configuration and shared fixtures."""

import pytest

from sigilscope.core.cloud import AttractorCache, clear_attractor_cache
from sigilscope.render.loop import ManualScheduler
from sigilscope.render.nebula import NebulaRenderConfig


@pytest.fixture(autouse=True)
def _clean_default_cache():
    """Module-level cache state must not leak between tests."""
    clear_attractor_cache()
    yield
    clear_attractor_cache()


@pytest.fixture
def cache() -> AttractorCache:
    """Private attractor cache with a fixed seed."""
    return AttractorCache(seed=7)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def small_nebula_config() -> NebulaRenderConfig:
    """
    Small, fast nebula settings.

    Returns:
        120x90 frame, 300 particles, no post effects.
    """
    return NebulaRenderConfig(
        width=120,
        height=90,
        fps=30,
        particle_count=300,
        radius=30.0,
    )
