"""
Glitch effects.

Levels, from subtle to dramatic:
  0  none
  1  texture     grain noise
  2  scanlines   horizontal line overlay
  3  displace    grid-snapped particle offsets
  4  aberration  RGB split (applied after compositing)

Everything here is a pure function of its inputs plus an explicit
``numpy.random.Generator``; inputs are never mutated.
"""

import math
from dataclasses import is_dataclass, replace
from typing import List, Optional, Sequence, TypeVar

import numpy as np

from sigilscope.render.colorgrade import COLORS, ColorLike, parse_rgb

GRID = 3  # all positions snap to this grid

MAX_GLITCH_LEVEL = 4

P = TypeVar("P")


def snap(value: float, grid: int = GRID) -> int:
    """Floor ``value`` to a multiple of ``grid``."""
    return int(math.floor(value / grid) * grid)


def glitch_displace(
    particles: Sequence[P],
    intensity: float = GRID,
    probability: float = 0.3,
    rng: Optional[np.random.Generator] = None,
) -> List[P]:
    """
    Offset a random subset of particles by grid-snapped amounts.

    Horizontal offsets span twice the vertical range. Displaced particles come
    back with ``glitched=True``; the others are returned as they were.

    Args:
        particles: Dataclass particles with ``x``, ``y`` and ``glitched`` fields.
        intensity: Displacement scale in pixels (3-9 typical).
        probability: Chance each particle is displaced.
        rng: Random source. A fresh unseeded generator if omitted.

    Returns:
        New list; the input sequence and its items are unchanged.
    """
    if not 0.0 <= probability <= 1.0:
        raise ValueError(f"probability must be in [0, 1], got {probability}")
    rng = rng if rng is not None else np.random.default_rng()

    out: List[P] = []
    for p in particles:
        if not is_dataclass(p):
            raise TypeError(f"glitch_displace expects dataclass particles, got {type(p).__name__}")
        if rng.random() > probability:
            out.append(p)
            continue
        dx = snap((rng.random() - 0.5) * intensity * 2)
        dy = snap((rng.random() - 0.5) * intensity)
        out.append(replace(p, x=p.x + dx, y=p.y + dy, glitched=True))
    return out


def glitch_flicker(
    time: float,
    frequency: float = 0.1,
    min_opacity: float = 0.7,
    rng: Optional[np.random.Generator] = None,
) -> float:
    """Opacity multiplier in [min_opacity, 1] from layered sines plus rare drops."""
    flicker = (
        math.sin(time * frequency * 50) * 0.5
        + math.sin(time * frequency * 73) * 0.3
        + math.sin(time * frequency * 97) * 0.2
    )
    spike = 1.0
    if rng is not None and rng.random() > 0.98:
        spike = 0.5
    return max(min_opacity, (flicker * 0.5 + 0.5) * spike)


def fill_square(
    buffer: np.ndarray,
    x: int,
    y: int,
    side: int,
    rgb: np.ndarray,
    alpha: float,
) -> None:
    """Source-over a square onto a premultiplied RGBA buffer, clipped to bounds."""
    h, w = buffer.shape[:2]
    x0, y0 = max(x, 0), max(y, 0)
    x1, y1 = min(x + side, w), min(y + side, h)
    if x0 >= x1 or y0 >= y1 or alpha <= 0:
        return
    region = buffer[y0:y1, x0:x1]
    region *= 1.0 - alpha
    region[..., :3] += rgb * alpha
    region[..., 3] += alpha


def draw_noise(
    buffer: np.ndarray,
    rng: np.random.Generator,
    color: ColorLike = COLORS["DAWN"],
    density: float = 0.02,
    alpha: float = 0.08,
) -> np.ndarray:
    """Level 1: sprinkle grid-snapped grain. Returns a new buffer."""
    out = buffer.copy()
    h, w = out.shape[:2]
    rgb = parse_rgb(color)
    count = int(w * h * density / (GRID * GRID))
    xs = rng.random(count) * w
    ys = rng.random(count) * h
    alphas = rng.random(count) * alpha
    for x, y, a in zip(xs, ys, alphas):
        fill_square(out, snap(x), snap(y), GRID - 1, rgb, float(a))
    return out


def draw_scanlines(
    buffer: np.ndarray,
    opacity: float = 0.03,
    gap: int = 2,
) -> np.ndarray:
    """Level 2: darken one row every ``max(gap, GRID)`` rows. Returns a new buffer."""
    out = buffer.copy()
    step = max(gap, GRID)
    out[::step] *= 1.0 - opacity
    return out


def apply_glitch_level(
    buffer: np.ndarray,
    level: int,
    rng: np.random.Generator,
    color: ColorLike = COLORS["DAWN"],
) -> np.ndarray:
    """
    Buffer-level effects for ``level`` (noise from 1, scanlines from 2).

    Displacement (3) is applied to particles by the renderers and aberration
    (4) after compositing.
    """
    if not 0 <= level <= MAX_GLITCH_LEVEL:
        raise ValueError(f"glitch level must be in [0, {MAX_GLITCH_LEVEL}], got {level}")
    if level >= 1:
        buffer = draw_noise(buffer, rng, color, 0.02, 0.08)
    if level >= 2:
        buffer = draw_scanlines(buffer, 0.03 + (level - 2) * 0.01)
    return buffer
