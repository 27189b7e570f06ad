"""
Volumetric particle sampling from normalized attractor clouds.

Particles come in two tiers: bright, tightly clustered "core" particles and
dim, loosely scattered "nebula" particles. Core particles are always sampled
first, so ``system.is_core[:system.core_count]`` is all True.
"""

import math
from dataclasses import dataclass
from typing import Iterator, NamedTuple, Optional, Tuple

import numpy as np

from sigilscope.core.attractor import (
    AttractorConfig,
    AttractorType,
    generate_attractor_points,
    parse_attractor_type,
)
from sigilscope.core.cloud import AttractorCache, normalize_attractor_points
from sigilscope.core.seed import hash_key


class VolumetricParticle(NamedTuple):
    x: float
    y: float
    z: float
    is_core: bool
    alpha: float
    phase: float
    size: float


@dataclass
class SamplerConfig:
    """Tier constants. Jitter is the full width of the per-axis offset."""

    core_jitter: float = 3.0
    nebula_jitter: float = 8.0
    core_alpha: Tuple[float, float] = (0.6, 0.9)
    nebula_alpha: Tuple[float, float] = (0.15, 0.4)
    core_size: float = 3.0
    nebula_size: float = 2.0

    def __post_init__(self):
        for name in ("core_jitter", "nebula_jitter"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        for name in ("core_alpha", "nebula_alpha"):
            lo, hi = getattr(self, name)
            if not 0.0 < lo <= hi <= 1.0:
                raise ValueError(f"{name} must satisfy 0 < low <= high <= 1, got {(lo, hi)}")


DEFAULT_SAMPLER = SamplerConfig()


@dataclass
class ParticleSystem:
    """Struct-of-arrays particle set. Rows line up across all arrays."""

    positions: np.ndarray  # (N, 3) float64
    is_core: np.ndarray    # (N,) bool
    alpha: np.ndarray      # (N,) float64
    phase: np.ndarray      # (N,) float64 in [0, 2π)
    size: np.ndarray       # (N,) float64

    def __len__(self) -> int:
        return len(self.positions)

    def __getitem__(self, i: int) -> VolumetricParticle:
        x, y, z = self.positions[i]
        return VolumetricParticle(
            float(x), float(y), float(z),
            bool(self.is_core[i]), float(self.alpha[i]),
            float(self.phase[i]), float(self.size[i]),
        )

    def __iter__(self) -> Iterator[VolumetricParticle]:
        for i in range(len(self)):
            yield self[i]

    @property
    def core_count(self) -> int:
        return int(self.is_core.sum())

    @classmethod
    def empty(cls) -> "ParticleSystem":
        return cls(
            positions=np.zeros((0, 3), dtype=np.float64),
            is_core=np.zeros(0, dtype=bool),
            alpha=np.zeros(0, dtype=np.float64),
            phase=np.zeros(0, dtype=np.float64),
            size=np.zeros(0, dtype=np.float64),
        )

    @classmethod
    def concatenate(cls, *systems: "ParticleSystem") -> "ParticleSystem":
        if not systems:
            return cls.empty()
        return cls(
            positions=np.concatenate([s.positions for s in systems]),
            is_core=np.concatenate([s.is_core for s in systems]),
            alpha=np.concatenate([s.alpha for s in systems]),
            phase=np.concatenate([s.phase for s in systems]),
            size=np.concatenate([s.size for s in systems]),
        )


def sample_particles(
    points: np.ndarray,
    count: int,
    is_core: bool,
    rng: np.random.Generator,
    sampler: SamplerConfig = DEFAULT_SAMPLER,
) -> ParticleSystem:
    """
    Draw ``count`` particles of one tier from ``points``.

    Each particle picks a uniformly random cloud point and adds per-axis
    jitter in ``[-jitter/2, jitter/2)``.
    """
    if count <= 0:
        return ParticleSystem.empty()
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)

    if len(points):
        base = points[rng.integers(0, len(points), count)]
    else:
        base = np.zeros((count, 3), dtype=np.float64)

    if is_core:
        jitter, (a_lo, a_hi), size = sampler.core_jitter, sampler.core_alpha, sampler.core_size
    else:
        jitter, (a_lo, a_hi), size = sampler.nebula_jitter, sampler.nebula_alpha, sampler.nebula_size

    positions = base + (rng.random((count, 3)) - 0.5) * jitter
    alpha = a_lo + rng.random(count) * (a_hi - a_lo)
    phase = rng.random(count) * (2.0 * math.pi)

    return ParticleSystem(
        positions=positions,
        is_core=np.full(count, is_core, dtype=bool),
        alpha=alpha,
        phase=phase,
        size=np.full(count, size, dtype=np.float64),
    )


def create_attractor_particle_system(
    type: AttractorType,
    particle_count: int,
    core_ratio: float = 0.2,
    radius: float = 180.0,
    scale: float = 1.0,
    seed: Optional[int] = None,
    cache: Optional[AttractorCache] = None,
    sampler: Optional[SamplerConfig] = None,
    point_count: Optional[int] = None,
) -> ParticleSystem:
    """
    Sample a full core + nebula particle system from an attractor.

    Args:
        type: Attractor type.
        particle_count: Total particles, >= 0.
        core_ratio: Fraction flagged as core; ``floor(count * ratio)`` of them.
        radius: Target radius of the normalized cloud.
        scale: Radius multiplier.
        seed: Seed for sampling, and for integration when no ``cache`` is
            given. Defaults to one derived from the type name, so the result
            is reproducible.
        cache: If given, the normalized cloud is taken from (and stored in)
            this cache instead of being generated fresh. The cache's own seed
            then builds the cloud; ``seed`` only affects sampling.
        sampler: Tier constants.
        point_count: Cloud size. Defaults to ``max(2000, 2 * particle_count)``.

    Returns:
        ParticleSystem with core particles first.
    """
    attractor_type = parse_attractor_type(type)
    if particle_count < 0:
        raise ValueError(f"particle_count must be >= 0, got {particle_count}")
    if not 0.0 <= core_ratio <= 1.0:
        raise ValueError(f"core_ratio must be in [0, 1], got {core_ratio}")

    seed = hash_key(attractor_type.value) if seed is None else seed
    if point_count is None:
        point_count = max(2000, particle_count * 2)

    if cache is not None:
        points = cache.get(attractor_type, point_count, radius, scale)
    else:
        config = AttractorConfig(
            type=attractor_type, point_count=point_count, radius=radius, scale=scale
        )
        raw = generate_attractor_points(config, seed=seed)
        points = normalize_attractor_points(raw, radius, scale)

    # Separate stream so sampling does not depend on how the cloud was built
    rng = np.random.default_rng([seed, particle_count])
    sampler = sampler or DEFAULT_SAMPLER
    core_count = math.floor(particle_count * core_ratio)

    core = sample_particles(points, core_count, True, rng, sampler)
    nebula = sample_particles(points, particle_count - core_count, False, rng, sampler)
    return ParticleSystem.concatenate(core, nebula)
