"""
Planar sigil generators.

Five algorithms turn (seeded stream, DNA, radius) into a list of particles in
a local frame centred on the origin. Coordinates are neither translated nor
grid-quantized here; that is the renderer's job.

The order in which values are drawn from the stream is part of the output
contract: reordering any ``random()`` call changes every sigil.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from sigilscope.core.dna import (
    DEFAULT_REGISTRY,
    DNARegistry,
    PatternDNA,
    PatternKind,
)
from sigilscope.core.seed import SeededRandom, hash_key, seed_key

PHI = 1.618033988749895
TAU = math.pi * 2

# Size tiers
SMALL = 1
MEDIUM = 2
LARGE = 3


@dataclass(frozen=True)
class Particle2D:
    x: float
    y: float
    size: int
    alpha: float
    glitch_x: float = 0.0
    glitch_y: float = 0.0
    glitched: bool = False

    @property
    def is_core(self) -> bool:
        return self.size == LARGE


@dataclass(frozen=True)
class Sigil:
    """A generated sigil: particles plus the inputs that produced them."""

    category: str
    instance_id: Optional[str]
    dna: PatternDNA
    color: str
    size: int
    particles: List[Particle2D] = field(default_factory=list)

    @property
    def radius(self) -> float:
        return sigil_radius(self.size)

    def __len__(self) -> int:
        return len(self.particles)

    def __iter__(self):
        return iter(self.particles)


def _glitch(random: SeededRandom, chance: float, magnitude: float) -> float:
    """Offset in ``[-magnitude/2, magnitude/2)`` with probability ``chance``."""
    if random() < chance:
        return (random() - 0.5) * magnitude
    return 0.0


def _core() -> Particle2D:
    return Particle2D(0.0, 0.0, LARGE, 1.0)


def generate_constellation(random: SeededRandom, dna: PatternDNA, radius: float) -> List[Particle2D]:
    """Bright core, inner ring, radiating arms and faint satellites."""
    particles: List[Particle2D] = []
    arms = dna.arms

    if dna.has_core:
        particles.append(_core())

        inner_count = 4 + math.floor(random() * 3)
        for i in range(inner_count):
            angle = (i / inner_count) * TAU + dna.rotation + (random() - 0.5) * 0.3
            dist = radius * 0.2 + random() * radius * 0.15
            particles.append(Particle2D(
                x=math.cos(angle) * dist,
                y=math.sin(angle) * dist,
                size=MEDIUM,
                alpha=0.85 + random() * 0.15,
                glitch_x=_glitch(random, dna.glitch_chance, 2),
                glitch_y=_glitch(random, dna.glitch_chance, 2),
            ))

    arm_particles = dna.base_particles // arms
    for arm in range(arms):
        arm_angle = (arm / arms) * TAU + dna.rotation
        for i in range(arm_particles):
            progress = (i + 1) / arm_particles
            dist = radius * (0.3 + progress * dna.spread * 0.7)
            angle_offset = (random() - 0.5) * 0.4 * (1 - progress)
            particles.append(Particle2D(
                x=math.cos(arm_angle + angle_offset) * dist,
                y=math.sin(arm_angle + angle_offset) * dist,
                size=MEDIUM if progress < 0.5 else SMALL,
                alpha=0.9 - progress * 0.4,
                glitch_x=_glitch(random, dna.glitch_chance, 3),
                glitch_y=_glitch(random, dna.glitch_chance, 3),
            ))

    # Satellites glitch twice as often
    satellite_count = math.floor(dna.base_particles * 0.3)
    for _ in range(satellite_count):
        angle = random() * TAU
        dist = radius * (0.6 + random() * dna.spread * 0.4)
        particles.append(Particle2D(
            x=math.cos(angle) * dist,
            y=math.sin(angle) * dist,
            size=SMALL,
            alpha=0.4 + random() * 0.3,
            glitch_x=_glitch(random, dna.glitch_chance * 2, 4),
            glitch_y=_glitch(random, dna.glitch_chance * 2, 4),
        ))

    return particles


def generate_scatter(random: SeededRandom, dna: PatternDNA, radius: float) -> List[Particle2D]:
    """Golden-angle cloud plus a few tight secondary clusters."""
    particles: List[Particle2D] = []

    for i in range(dna.base_particles):
        golden_angle = i * TAU / (PHI * PHI)
        angle = golden_angle + (random() - 0.5) * 0.8
        u = random()
        dist = radius * dna.spread * math.pow(u, dna.density_falloff)
        particles.append(Particle2D(
            x=math.cos(angle) * dist,
            y=math.sin(angle) * dist,
            size=MEDIUM if random() < 0.3 else SMALL,
            alpha=0.5 + random() * 0.5,
            glitch_x=_glitch(random, dna.glitch_chance, 4),
            glitch_y=_glitch(random, dna.glitch_chance, 4),
        ))

    cluster_count = 2 + math.floor(random() * 3)
    for _ in range(cluster_count):
        cluster_angle = random() * TAU
        cluster_dist = radius * 0.3 + random() * radius * 0.4
        cx = math.cos(cluster_angle) * cluster_dist
        cy = math.sin(cluster_angle) * cluster_dist
        particles.append(Particle2D(cx, cy, MEDIUM, 0.8))

        sat_count = 2 + math.floor(random() * 3)
        for _ in range(sat_count):
            sat_angle = random() * TAU
            sat_dist = 4 + random() * 6
            particles.append(Particle2D(
                x=cx + math.cos(sat_angle) * sat_dist,
                y=cy + math.sin(sat_angle) * sat_dist,
                size=SMALL,
                alpha=0.5 + random() * 0.3,
                glitch_x=_glitch(random, dna.glitch_chance, 2),
                glitch_y=_glitch(random, dna.glitch_chance, 2),
            ))

    return particles


GRID_SPAN = 3


def generate_grid(random: SeededRandom, dna: PatternDNA, radius: float) -> List[Particle2D]:
    """Sparse lattice with thinned edges and rare horizontal glitch lines."""
    particles: List[Particle2D] = []
    cell = math.floor(radius / 4)

    if dna.has_core:
        particles.append(_core())

    for gx in range(-GRID_SPAN, GRID_SPAN + 1):
        for gy in range(-GRID_SPAN, GRID_SPAN + 1):
            if random() < 0.5:
                continue
            if gx == 0 and gy == 0 and dna.has_core:
                continue

            dist = math.sqrt(gx * gx + gy * gy)
            if dist > GRID_SPAN * 0.9 and random() < 0.7:
                continue

            particles.append(Particle2D(
                x=float(gx * cell),
                y=float(gy * cell),
                size=MEDIUM if dist < 2 else SMALL,
                alpha=1.0 - (dist / GRID_SPAN) * 0.5,
                glitch_x=_glitch(random, dna.glitch_chance, cell * 0.5),
                glitch_y=_glitch(random, dna.glitch_chance, cell * 0.5),
            ))

    if random() < dna.glitch_chance * 3:
        line_y = (random() - 0.5) * radius
        for _ in range(3):
            particles.append(Particle2D(
                x=(random() - 0.5) * radius * 1.5,
                y=line_y,
                size=SMALL,
                alpha=0.3 + random() * 0.2,
            ))

    return particles


def generate_cross(random: SeededRandom, dna: PatternDNA, radius: float) -> List[Particle2D]:
    """Straight arms with occasional perpendicular offshoots."""
    particles: List[Particle2D] = []
    arms = dna.arms

    if dna.has_core:
        particles.append(_core())

    arm_length = radius * dna.spread
    per_arm = dna.base_particles // arms

    for arm in range(arms):
        angle = (arm / arms) * TAU + dna.rotation

        for i in range(1, per_arm + 1):
            progress = i / per_arm
            dist = arm_length * progress
            ax = math.cos(angle) * dist
            ay = math.sin(angle) * dist

            particles.append(Particle2D(
                x=ax,
                y=ay,
                size=MEDIUM if progress < 0.6 else SMALL,
                alpha=1.0 - progress * 0.5,
                glitch_x=_glitch(random, dna.glitch_chance, 2),
                glitch_y=_glitch(random, dna.glitch_chance, 2),
            ))

            if random() < 0.4 and progress < 0.7:
                perp = angle + math.pi / 2
                offset = (random() - 0.5) * 6
                particles.append(Particle2D(
                    x=ax + math.cos(perp) * offset,
                    y=ay + math.sin(perp) * offset,
                    size=SMALL,
                    alpha=0.6,
                    glitch_x=_glitch(random, dna.glitch_chance, 3),
                    glitch_y=_glitch(random, dna.glitch_chance, 3),
                ))

    return particles


def generate_spiral(random: SeededRandom, dna: PatternDNA, radius: float) -> List[Particle2D]:
    """Arms that curl through 270 degrees, radius growing as t^(1/phi)."""
    particles: List[Particle2D] = []
    arms = dna.arms

    if dna.has_core:
        particles.append(_core())

    per_arm = dna.base_particles // arms
    for arm in range(arms):
        arm_offset = (arm / arms) * TAU + dna.rotation
        for i in range(per_arm):
            t = (i + 1) / per_arm
            angle = arm_offset + t * math.pi * 1.5
            dist = radius * dna.spread * math.pow(t, 1 / PHI)
            particles.append(Particle2D(
                x=math.cos(angle) * dist,
                y=math.sin(angle) * dist,
                size=MEDIUM if t < 0.5 else SMALL,
                alpha=0.9 - t * 0.4,
                glitch_x=_glitch(random, dna.glitch_chance, 3),
                glitch_y=_glitch(random, dna.glitch_chance, 3),
            ))

    return particles


PatternGenerator = Callable[[SeededRandom, PatternDNA, float], List[Particle2D]]

PATTERN_GENERATORS: Dict[PatternKind, PatternGenerator] = {
    PatternKind.CONSTELLATION: generate_constellation,
    PatternKind.SCATTER: generate_scatter,
    PatternKind.GRID: generate_grid,
    PatternKind.CROSS: generate_cross,
    PatternKind.SPIRAL: generate_spiral,
}


def generate_pattern(random: SeededRandom, dna: PatternDNA, radius: float) -> List[Particle2D]:
    """Dispatch to the generator for ``dna.pattern``."""
    if radius <= 0:
        raise ValueError(f"radius must be positive, got {radius}")
    return PATTERN_GENERATORS[dna.pattern](random, dna, radius)


def sigil_radius(size: float) -> float:
    """Drawable radius for an icon of ``size`` pixels (4 px inset)."""
    return size / 2 - 4


def generate_particles(
    category: str,
    instance_id: Optional[str] = None,
    radius: float = 20.0,
    custom_dna: Optional[Mapping[str, Any]] = None,
    registry: Optional[DNARegistry] = None,
) -> Tuple[PatternDNA, List[Particle2D]]:
    """
    Resolved DNA and particles for a category or instance at ``radius``.

    The stream seeded from the key is shared by DNA mutation and the
    generator, so instance DNA and geometry are tied to the same key.
    """
    registry = registry or DEFAULT_REGISTRY
    random = SeededRandom(hash_key(seed_key(category, instance_id)))
    dna = registry.resolve(category, instance_id, random, custom_dna)
    return dna, generate_pattern(random, dna, radius)


def generate_sigil(
    category: str,
    instance_id: Optional[str] = None,
    color: Optional[str] = None,
    size: int = 48,
    custom_dna: Optional[Mapping[str, Any]] = None,
    registry: Optional[DNARegistry] = None,
) -> Sigil:
    """
    Generate the sigil for ``category`` (optionally one of its instances).

    Args:
        category: Category/domain name; selects the base pattern.
        instance_id: Optional entity id producing a consistent variant.
        color: RGB triplet string, e.g. ``"202, 165, 84"``. Defaults to the
            registry's category colour, its default, or Dawn.
        size: Icon size in pixels.
        custom_dna: Partial DNA overrides applied before instance mutation.
        registry: Category mapping and colours. Defaults to the Atlas registry.

    Returns:
        Sigil with deterministic particles.
    """
    radius = sigil_radius(size)
    if radius <= 0:
        raise ValueError(f"size must be greater than 8 px, got {size}")

    registry = registry or DEFAULT_REGISTRY
    dna, particles = generate_particles(category, instance_id, radius, custom_dna, registry)

    fill = color or registry.color_for(category)
    return Sigil(
        category=category,
        instance_id=instance_id,
        dna=dna,
        color=fill,
        size=size,
        particles=particles,
    )
