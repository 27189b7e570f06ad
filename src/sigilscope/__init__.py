"""Deterministic particle sigils and attractor nebulae."""

from sigilscope.core.attractor import AttractorConfig, AttractorType, generate_attractor_points
from sigilscope.core.cloud import (
    AttractorCache,
    clear_attractor_cache,
    get_cached_attractor_points,
    normalize_attractor_points,
)
from sigilscope.core.dna import PatternDNA, PatternKind
from sigilscope.core.sampler import ParticleSystem, create_attractor_particle_system
from sigilscope.core.seed import SeededRandom, hash_key, make_random
from sigilscope.core.sigil import Particle2D, Sigil, generate_sigil

__version__ = "0.1.0"
__all__ = [
    "AttractorCache",
    "AttractorConfig",
    "AttractorType",
    "Particle2D",
    "ParticleSystem",
    "PatternDNA",
    "PatternKind",
    "SeededRandom",
    "Sigil",
    "clear_attractor_cache",
    "create_attractor_particle_system",
    "generate_attractor_points",
    "generate_sigil",
    "get_cached_attractor_points",
    "hash_key",
    "make_random",
    "normalize_attractor_points",
]
