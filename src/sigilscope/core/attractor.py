"""
Strange attractor point clouds for volumetric nebulae.

Seven chaotic flows are integrated with fixed-step explicit Euler; the galaxy
type is a closed-form two-arm spiral. Constants and the default ``dt`` are the
published/empirically stable values. No runtime stability correction is
performed: a diverging trajectory shows up as NaN/Inf in the output.
"""

import enum
import math
from dataclasses import dataclass, replace
from typing import Callable, Dict, Optional, Tuple

import numpy as np


class AttractorType(str, enum.Enum):
    GALAXY = "galaxy"
    LORENZ = "lorenz"
    HALVORSEN = "halvorsen"
    AIZAWA = "aizawa"
    THOMAS = "thomas"
    SPROTT = "sprott"
    ROSSLER = "rossler"
    DADRAS = "dadras"


Vec3 = Tuple[float, float, float]


# ---------------------------------------------------------------------------
# Equations: (x, y, z) -> (dx, dy, dz)
# ---------------------------------------------------------------------------

def lorenz(x: float, y: float, z: float) -> Vec3:
    """Classic two-lobed butterfly. σ=10, ρ=28, β=8/3."""
    sigma, rho, beta = 10.0, 28.0, 8.0 / 3.0
    return sigma * (y - x), x * (rho - z) - y, x * y - beta * z


def thomas(x: float, y: float, z: float) -> Vec3:
    """Smooth cyclically symmetric flow. b=0.208186."""
    b = 0.208186
    return math.sin(y) - b * x, math.sin(z) - b * y, math.sin(x) - b * z


def halvorsen(x: float, y: float, z: float) -> Vec3:
    """Twisted triangular loops. a=1.89."""
    a = 1.89
    return (
        -a * x - 4 * y - 4 * z - y * y,
        -a * y - 4 * z - 4 * x - z * z,
        -a * z - 4 * x - 4 * y - x * x,
    )


def aizawa(x: float, y: float, z: float) -> Vec3:
    """Disc pierced by a central axis."""
    a, b, c, d, e, f = 0.95, 0.7, 0.6, 3.5, 0.25, 0.1
    return (
        (z - b) * x - d * y,
        d * x + (z - b) * y,
        c + a * z - (z * z * z) / 3 - (x * x + y * y) * (1 + e * z) + f * z * x * x * x,
    )


def sprott(x: float, y: float, z: float) -> Vec3:
    a, b = 0.4, 1.2
    return a * y * z, x - y, b - x * y


def rossler(x: float, y: float, z: float) -> Vec3:
    """Spiral with a fold. a=0.2, b=0.2, c=5.7."""
    a, b, c = 0.2, 0.2, 5.7
    return -(y + z), x + a * y, b + z * (x - c)


def dadras(x: float, y: float, z: float) -> Vec3:
    p, q, r, s, e = 3.0, 2.7, 1.7, 2.0, 9.0
    return y - p * x + q * y * z, r * y - x * z + z, s * x * y - e * z


Equation = Callable[[float, float, float], Vec3]

EQUATIONS: Dict[AttractorType, Equation] = {
    AttractorType.LORENZ: lorenz,
    AttractorType.THOMAS: thomas,
    AttractorType.HALVORSEN: halvorsen,
    AttractorType.AIZAWA: aizawa,
    AttractorType.SPROTT: sprott,
    AttractorType.ROSSLER: rossler,
    AttractorType.DADRAS: dadras,
}


def galaxy_points(
    count: int,
    rng: np.random.Generator,
    arm_count: int = 2,
) -> np.ndarray:
    """
    Parametric spiral galaxy: radius grows as sqrt(t mod 10), thin jittered disc.

    Returns:
        (count, 3) float64 array. The disc lies in the x/z plane.
    """
    i = np.arange(count, dtype=np.float64)
    t = i * 0.01
    arm_angle = (np.arange(count) % arm_count) * (2.0 * math.pi / arm_count)
    r = np.sqrt(t % 10.0) * 2.0
    spiral = t * 0.3 + arm_angle

    jitter = rng.random((count, 3)) - 0.5
    pts = np.empty((count, 3), dtype=np.float64)
    pts[:, 0] = r * np.cos(spiral) + jitter[:, 0] * 0.5
    pts[:, 1] = jitter[:, 1] * 0.3 * np.exp(-r * 0.1)
    pts[:, 2] = r * np.sin(spiral) + jitter[:, 2] * 0.5
    return pts


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

def parse_attractor_type(value) -> AttractorType:
    if isinstance(value, AttractorType):
        return value
    try:
        return AttractorType(str(value).lower())
    except ValueError:
        raise ValueError(
            f"Unknown attractor type {value!r}; "
            f"expected one of {[t.value for t in AttractorType]}"
        ) from None


@dataclass
class AttractorConfig:
    """Integration settings for one point cloud."""

    type: AttractorType = AttractorType.LORENZ
    point_count: int = 2000          # points recorded after warmup
    radius: float = 180.0            # target radius after normalization
    scale: float = 1.0               # radius multiplier
    warmup_iterations: int = 500     # discarded transient steps
    dt: float = 0.005                # Euler step
    initial: Optional[Vec3] = None   # None = 0.1 + U[0, 0.1) per axis

    def __post_init__(self):
        self.type = parse_attractor_type(self.type)
        if self.point_count <= 0:
            raise ValueError(f"point_count must be positive, got {self.point_count}")
        if self.warmup_iterations < 0:
            raise ValueError(
                f"warmup_iterations must be >= 0, got {self.warmup_iterations}"
            )
        if self.point_count <= self.warmup_iterations:
            raise ValueError(
                f"point_count ({self.point_count}) must exceed "
                f"warmup_iterations ({self.warmup_iterations})"
            )
        if not self.radius > 0 or not math.isfinite(self.radius):
            raise ValueError(f"radius must be positive, got {self.radius}")
        if not self.scale > 0 or not math.isfinite(self.scale):
            raise ValueError(f"scale must be positive, got {self.scale}")
        if not self.dt > 0 or not math.isfinite(self.dt):
            raise ValueError(f"dt must be a positive finite number, got {self.dt}")
        if self.initial is not None:
            if len(self.initial) != 3:
                raise ValueError(f"initial must be (x, y, z), got {self.initial!r}")
            self.initial = tuple(float(v) for v in self.initial)

    def with_overrides(self, **overrides) -> "AttractorConfig":
        return replace(self, **overrides)


DEFAULT_ATTRACTOR_CONFIG = AttractorConfig()


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

def integrate(
    equation: Equation,
    start: Vec3,
    steps: int,
    dt: float,
    warmup: int,
) -> np.ndarray:
    """
    Euler-integrate ``equation`` from ``start``; keep states after ``warmup``.

    Returns:
        (steps - warmup, 3) float64 array.
    """
    out = np.empty((steps - warmup, 3), dtype=np.float64)
    x, y, z = start
    for i in range(steps):
        dx, dy, dz = equation(x, y, z)
        x += dx * dt
        y += dy * dt
        z += dz * dt
        if i >= warmup:
            out[i - warmup] = (x, y, z)
    return out


def generate_attractor_points(
    config: Optional[AttractorConfig] = None,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """
    Raw (unnormalized) point cloud for ``config.type``.

    Args:
        config: Integration settings. Defaults to ``DEFAULT_ATTRACTOR_CONFIG``.
        seed: Seed for the initial offset / galaxy jitter.
        rng: Existing generator; takes precedence over ``seed``.

    Returns:
        (point_count, 3) float64 array.
    """
    cfg = config or DEFAULT_ATTRACTOR_CONFIG
    rng = rng if rng is not None else np.random.default_rng(seed)

    if cfg.type is AttractorType.GALAXY:
        return galaxy_points(cfg.point_count, rng)

    if cfg.initial is not None:
        start = cfg.initial
    else:
        ox, oy, oz = rng.random(3) * 0.1
        start = (0.1 + float(ox), 0.1 + float(oy), 0.1 + float(oz))

    total = cfg.point_count + cfg.warmup_iterations
    return integrate(EQUATIONS[cfg.type], start, total, cfg.dt, cfg.warmup_iterations)


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AttractorInfo:
    name: str
    character: str
    recommended_density: Tuple[int, int]
    use_case: str


ATTRACTOR_INFO: Dict[AttractorType, AttractorInfo] = {
    AttractorType.LORENZ: AttractorInfo(
        "Lorenz (Butterfly)", "Classic butterfly, two-lobed", (800, 1200),
        "Primary domains, navigation",
    ),
    AttractorType.THOMAS: AttractorInfo(
        "Thomas", "Smooth, symmetric, elegant", (600, 900),
        "Ethereal, calm categories",
    ),
    AttractorType.HALVORSEN: AttractorInfo(
        "Halvorsen", "Twisted triangular loops", (800, 1000),
        "Dynamic, active categories",
    ),
    AttractorType.AIZAWA: AttractorInfo(
        "Aizawa", "Disc with central axis", (700, 1000),
        "Structured, technical categories",
    ),
    AttractorType.SPROTT: AttractorInfo(
        "Sprott", "Elegant spiral shell", (500, 800),
        "Minimalist, refined",
    ),
    AttractorType.ROSSLER: AttractorInfo(
        "Rössler", "Spiral with fold", (700, 1000),
        "Transitions, thresholds",
    ),
    AttractorType.DADRAS: AttractorInfo(
        "Dadras", "Complex intertwined loops", (800, 1200),
        "Complex, data-heavy",
    ),
    AttractorType.GALAXY: AttractorInfo(
        "Galaxy Spiral", "Classic two-arm galaxy", (600, 1000),
        "Familiar, accessible fallback",
    ),
}
