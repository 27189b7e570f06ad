"""
Pattern DNA: the parameter records that drive planar sigil generation.

A category resolves to DNA by explicit mapping first, then by hashing the
category into the ordered preset list. Instances of a category inherit its DNA
with small seeded mutations so they stay recognisably related.
"""

import enum
import math
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Mapping, Optional, Tuple

from sigilscope.core.seed import SeededRandom, hash_key


class PatternKind(str, enum.Enum):
    CONSTELLATION = "constellation"
    SCATTER = "scatter"
    GRID = "grid"
    CROSS = "cross"
    SPIRAL = "spiral"


@dataclass(frozen=True)
class PatternDNA:
    """Genetic signature of a sigil."""

    pattern: PatternKind
    base_particles: int
    spread: float          # 0-1, fraction of radius used
    glitch_chance: float   # 0-1, per-particle glitch offset probability
    rotation: float        # radians
    has_core: bool
    density_falloff: float  # >1 concentrates toward the centre
    arms: int

    def __post_init__(self):
        # Accept plain strings for the pattern field
        if not isinstance(self.pattern, PatternKind):
            try:
                object.__setattr__(self, "pattern", PatternKind(self.pattern))
            except ValueError:
                raise ValueError(
                    f"Unknown pattern kind {self.pattern!r}; "
                    f"expected one of {[k.value for k in PatternKind]}"
                ) from None
        if self.base_particles < 0:
            raise ValueError(f"base_particles must be >= 0, got {self.base_particles}")
        if self.arms < 1:
            raise ValueError(f"arms must be >= 1, got {self.arms}")

    def with_overrides(self, overrides: Optional[Mapping[str, Any]]) -> "PatternDNA":
        """Return a copy with the given fields replaced."""
        if not overrides:
            return self
        unknown = set(overrides) - set(asdict(self))
        if unknown:
            raise ValueError(f"Unknown PatternDNA fields: {sorted(unknown)}")
        return replace(self, **overrides)

    def mutate(self, random: SeededRandom) -> "PatternDNA":
        """
        Entity-level variation. Draws exactly three values from ``random``:
        rotation ±0.25 rad, spread ±0.075, glitch chance ±0.025.
        """
        return replace(
            self,
            rotation=self.rotation + (random() - 0.5) * 0.5,
            spread=self.spread + (random() - 0.5) * 0.15,
            glitch_chance=self.glitch_chance + (random() - 0.5) * 0.05,
        )


# Order matters: hashed selection indexes into this mapping's key order.
PATTERN_PRESETS: Dict[str, PatternDNA] = {
    # Star-like with radiating arms
    "constellation": PatternDNA(
        pattern=PatternKind.CONSTELLATION,
        base_particles=16,
        spread=0.75,
        glitch_chance=0.05,
        rotation=-math.pi / 6,
        has_core=True,
        density_falloff=1.2,
        arms=4,
    ),
    # Organic cloud with cluster points
    "scatter": PatternDNA(
        pattern=PatternKind.SCATTER,
        base_particles=14,
        spread=0.8,
        glitch_chance=0.08,
        rotation=math.pi / 8,
        has_core=False,
        density_falloff=0.8,
        arms=5,
    ),
    # Data-like lattice with corruption gaps
    "grid": PatternDNA(
        pattern=PatternKind.GRID,
        base_particles=18,
        spread=0.65,
        glitch_chance=0.25,
        rotation=0.0,
        has_core=True,
        density_falloff=0.6,
        arms=4,
    ),
    # X-shaped gateway
    "cross": PatternDNA(
        pattern=PatternKind.CROSS,
        base_particles=12,
        spread=0.7,
        glitch_chance=0.12,
        rotation=math.pi / 4,
        has_core=True,
        density_falloff=1.0,
        arms=4,
    ),
    # Golden-ratio spiral arms
    "spiral": PatternDNA(
        pattern=PatternKind.SPIRAL,
        base_particles=14,
        spread=0.7,
        glitch_chance=0.1,
        rotation=0.0,
        has_core=True,
        density_falloff=1.0,
        arms=3,
    ),
}

DEFAULT_DNA = PATTERN_PRESETS["constellation"]


def _preset(name: str, **overrides) -> PatternDNA:
    return replace(PATTERN_PRESETS[name], **overrides)


# ---------------------------------------------------------------------------
# Platform tables
# ---------------------------------------------------------------------------

ATLAS_DOMAIN_DNA: Dict[str, PatternDNA] = {
    "Starhaven Reaches": PATTERN_PRESETS["constellation"],  # warm golden constellation
    "Gradient Throne": PATTERN_PRESETS["scatter"],          # ethereal mist
    "The Lattice": PATTERN_PRESETS["grid"],                 # data corruption
    "The Threshold": PATTERN_PRESETS["cross"],              # gateway
}

ASTROLABE_COLLECTION_DNA: Dict[str, PatternDNA] = {
    "research": _preset("constellation", arms=6, glitch_chance=0.03),
    "reference": _preset("grid", glitch_chance=0.08),
    "archive": _preset("scatter", density_falloff=1.0),
    "project": _preset("cross", arms=4),
}

LEDGER_CATEGORY_DNA: Dict[str, PatternDNA] = {
    "income": _preset("constellation", arms=5, spread=0.8),
    "expense": _preset("scatter", density_falloff=0.9),
    "transfer": _preset("cross", arms=4),
    "investment": _preset("spiral", arms=3),
}

THOUGHTFORM_SERVICE_DNA: Dict[str, PatternDNA] = {
    "training": _preset("constellation", arms=4, glitch_chance=0.05),
    "consulting": _preset("cross", spread=0.75),
    "integration": _preset("grid", glitch_chance=0.15),
    "research": _preset("spiral", arms=4),
}

# platform -> (table, fallback preset)
PLATFORM_DNA: Dict[str, Tuple[Dict[str, PatternDNA], str]] = {
    "atlas": (ATLAS_DOMAIN_DNA, "constellation"),
    "astrolabe": (ASTROLABE_COLLECTION_DNA, "constellation"),
    "ledger": (LEDGER_CATEGORY_DNA, "scatter"),
    "thoughtform": (THOUGHTFORM_SERVICE_DNA, "constellation"),
}

DAWN = "236, 227, 214"

# Platform-agnostic fallbacks, keyed by category or colour name
DEFAULT_COLORS: Dict[str, str] = {
    "default": DAWN,
    "gold": "202, 165, 84",
    "verde": "91, 138, 122",
    "teal": "61, 139, 122",
}

PLATFORM_COLORS: Dict[str, Dict[str, str]] = {
    "atlas": {
        "Starhaven Reaches": "202, 165, 84",  # gold
        "Gradient Throne": "180, 200, 200",   # silver-white
        "The Lattice": "184, 196, 208",       # blue-white
        "The Threshold": "139, 115, 85",      # amber
        "default": DAWN,
    },
    "astrolabe": {
        "research": "202, 165, 84",
        "reference": "180, 180, 175",
        "archive": "160, 155, 145",
        "project": "202, 165, 84",
        "default": "202, 165, 84",
    },
    "ledger-dark": {
        "income": "91, 138, 122",
        "expense": "139, 90, 90",
        "transfer": "122, 122, 104",
        "investment": "91, 138, 122",
        "default": "91, 138, 122",
    },
    "ledger-light": {
        "income": "61, 139, 122",
        "expense": "139, 90, 90",
        "transfer": "90, 87, 82",
        "investment": "61, 139, 122",
        "default": "61, 139, 122",
    },
    "thoughtform": {
        "training": "202, 165, 84",
        "consulting": "202, 165, 84",
        "integration": "184, 196, 208",
        "research": "202, 165, 84",
        "default": "202, 165, 84",
    },
}
PLATFORM_COLORS["ledger"] = PLATFORM_COLORS["ledger-dark"]


def get_platform_dna(platform: str, category: str) -> PatternDNA:
    """DNA for ``category`` on ``platform``, falling back to the platform default."""
    try:
        table, fallback = PLATFORM_DNA[platform]
    except KeyError:
        raise ValueError(
            f"Unknown platform {platform!r}; expected one of {sorted(PLATFORM_DNA)}"
        ) from None
    return DNARegistry(table, fallback=fallback).category_dna(category)


def get_platform_color(platform: str, category: str) -> str:
    """RGB triplet string for ``category`` on ``platform``."""
    table = PLATFORM_COLORS.get(platform)
    if table is None:
        return DAWN
    return table.get(category, table["default"])


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def preset_for_category(category: str) -> PatternDNA:
    """Select a preset by hashing the category into the ordered preset list."""
    names = list(PATTERN_PRESETS)
    return PATTERN_PRESETS[names[hash_key(category) % len(names)]]


class DNARegistry:
    """
    Category -> DNA and colour lookup.

    Unmapped categories use the ``fallback`` preset when one is set, else a
    preset picked by hashing the category name.

    Args:
        mapping: Explicit category mapping. Defaults to the Atlas domain table.
        fallback: Preset name for unmapped categories; None hashes instead.
        colors: Category -> RGB triplet table with a ``"default"`` entry.
            Defaults to the Atlas colours when ``mapping`` is also omitted.
    """

    def __init__(
        self,
        mapping: Optional[Mapping[str, PatternDNA]] = None,
        fallback: Optional[str] = None,
        colors: Optional[Mapping[str, str]] = None,
    ):
        if fallback is not None and fallback not in PATTERN_PRESETS:
            raise ValueError(
                f"Unknown fallback preset {fallback!r}; "
                f"expected one of {list(PATTERN_PRESETS)}"
            )
        if colors is None and mapping is None:
            colors = PLATFORM_COLORS["atlas"]
        self.mapping: Dict[str, PatternDNA] = dict(
            ATLAS_DOMAIN_DNA if mapping is None else mapping
        )
        self.fallback = fallback
        self.colors: Dict[str, str] = dict(colors or {})

    @classmethod
    def for_platform(cls, platform: str) -> "DNARegistry":
        """Registry using a platform's table, fallback preset and colours."""
        if platform not in PLATFORM_DNA:
            raise ValueError(
                f"Unknown platform {platform!r}; expected one of {sorted(PLATFORM_DNA)}"
            )
        table, fallback = PLATFORM_DNA[platform]
        return cls(table, fallback=fallback, colors=PLATFORM_COLORS.get(platform))

    def register(self, category: str, dna: PatternDNA) -> None:
        self.mapping[category] = dna

    def category_dna(
        self,
        category: str,
        custom_dna: Optional[Mapping[str, Any]] = None,
    ) -> PatternDNA:
        dna = self.mapping.get(category)
        if dna is None:
            if self.fallback is not None:
                dna = PATTERN_PRESETS[self.fallback]
            else:
                dna = preset_for_category(category)
        return dna.with_overrides(custom_dna)

    def color_for(self, category: str) -> str:
        """Table colour, then a named fallback colour, then the table default or Dawn."""
        if category in self.colors:
            return self.colors[category]
        return DEFAULT_COLORS.get(category) or self.colors.get("default") or DAWN

    def resolve(
        self,
        category: str,
        instance_id: Optional[str] = None,
        random: Optional[SeededRandom] = None,
        custom_dna: Optional[Mapping[str, Any]] = None,
    ) -> PatternDNA:
        """
        Resolve DNA for a category or one of its instances.

        When ``instance_id`` is given, ``random`` must be the stream seeded
        from ``category:instance_id``; three values are consumed from it.
        """
        dna = self.category_dna(category, custom_dna)
        if instance_id:
            if random is None:
                raise ValueError("instance-level DNA requires a seeded random stream")
            dna = dna.mutate(random)
        return dna


DEFAULT_REGISTRY = DNARegistry()
