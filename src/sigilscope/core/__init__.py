"""Pure, deterministic generation: seeds, DNA, sigil geometry and attractor clouds."""

from sigilscope.core.attractor import AttractorConfig, AttractorType
from sigilscope.core.cloud import AttractorCache
from sigilscope.core.dna import DNARegistry, PatternDNA
from sigilscope.core.sampler import ParticleSystem, SamplerConfig
from sigilscope.core.seed import SeededRandom

__all__ = [
    "AttractorCache",
    "AttractorConfig",
    "AttractorType",
    "DNARegistry",
    "ParticleSystem",
    "PatternDNA",
    "SamplerConfig",
    "SeededRandom",
]
