"""
Volumetric nebula renderer.

Each frame the particle system is rotated about the vertical axis, projected
with a simple pinhole camera and splatted as grid-quantized squares into an
additive float buffer. Alpha combines the particle's base alpha with a depth
fade, a slow breathing pulse and a boost for particles close to the camera.
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from sigilscope.core.attractor import AttractorType, parse_attractor_type
from sigilscope.core.cloud import DEFAULT_CACHE, AttractorCache
from sigilscope.core.sampler import (
    ParticleSystem,
    SamplerConfig,
    create_attractor_particle_system,
)
from sigilscope.render.base import BaseRenderer, RenderConfig
from sigilscope.render.colorgrade import COLORS, new_buffer, parse_rgb
from sigilscope.render.glitch import GRID, glitch_flicker


# ---------------------------------------------------------------------------
# Projection helpers (vectorized over N particles)
# ---------------------------------------------------------------------------

def rotation_matrix(angle: float, tilt: float = 0.0) -> np.ndarray:
    """3x3 rotation: ``angle`` about Y, then ``tilt`` about X.

    With zero tilt, ``x' = x cos a - z sin a`` and ``z' = x sin a + z cos a``.
    """
    ca, sa = math.cos(angle), math.sin(angle)
    ct, st = math.cos(tilt), math.sin(tilt)
    Ry = np.array(
        [[ca, 0.0, -sa], [0.0, 1.0, 0.0], [sa, 0.0, ca]], dtype=np.float64
    )
    Rx = np.array(
        [[1.0, 0.0, 0.0], [0.0, ct, -st], [0.0, st, ct]], dtype=np.float64
    )
    return Rx @ Ry


def rotate_y(points: np.ndarray, angle: float) -> np.ndarray:
    """Rotate (N, 3) points about the vertical axis."""
    return np.asarray(points, dtype=np.float64) @ rotation_matrix(angle).T


def project_to_screen(
    points: np.ndarray,
    center: Tuple[float, float],
    focal_length: float = 400.0,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Perspective projection.

    Returns ``(sx, sy, scale)`` with ``scale = f / (f + z)``. Points at or
    behind the camera plane (``f + z <= 0``) get NaN.
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    denom = focal_length + pts[:, 2]
    with np.errstate(divide="ignore", invalid="ignore"):
        scale = np.where(denom > 0, focal_length / denom, np.nan)
    sx = center[0] + pts[:, 0] * scale
    sy = center[1] + pts[:, 1] * scale
    return sx, sy, scale


def breathing_alpha(
    alpha: np.ndarray,
    phase: np.ndarray,
    time_ms: float,
    intensity: float = 0.2,
) -> np.ndarray:
    return alpha * (np.sin(time_ms * 0.002 + phase) * intensity + 1.0)


def depth_alpha(
    alpha: np.ndarray,
    z: np.ndarray,
    max_depth: float,
    depth_effect: float = 0.5,
) -> np.ndarray:
    """Fade from full alpha at ``z = -max_depth`` (near) down to a floor of 0.1."""
    depth_ratio = (z + max_depth) / (max_depth * 2.0)
    return alpha * np.maximum(0.1, 1.0 - depth_ratio * depth_effect)


def proximity_boost(z: np.ndarray, max_depth: float, boost: float = 0.8) -> np.ndarray:
    """Multiplier in ``[1, 1 + boost]``, growing as z approaches ``-max_depth``."""
    return 1.0 + boost * np.clip(-z / max_depth, 0.0, 1.0)


def splat_squares(
    buffer: np.ndarray,
    x: np.ndarray,
    y: np.ndarray,
    side: np.ndarray,
    rgb: np.ndarray,
    alpha: np.ndarray,
) -> None:
    """
    Additively accumulate squares into a premultiplied RGBA buffer.

    Squares are expanded per side length so every covered pixel is a single
    ``np.add.at`` scatter. Pixels outside the buffer are dropped.
    """
    H, W = buffer.shape[:2]
    contrib = np.concatenate(
        [np.outer(alpha, rgb), alpha[:, None]], axis=1
    ).astype(np.float32)

    for s in np.unique(side):
        sel = side == s
        s = int(s)
        offs = np.arange(s)
        xi = (x[sel][:, None, None] + offs[None, None, :]).astype(np.int64)
        yi = (y[sel][:, None, None] + offs[None, :, None]).astype(np.int64)
        xi, yi = np.broadcast_arrays(xi, yi)
        vals = np.broadcast_to(contrib[sel][:, None, None, :], xi.shape + (4,))

        xi = xi.reshape(-1)
        yi = yi.reshape(-1)
        vals = vals.reshape(-1, 4)
        valid = (xi >= 0) & (xi < W) & (yi >= 0) & (yi < H)
        if not np.any(valid):
            continue
        np.add.at(buffer, (yi[valid], xi[valid]), vals[valid])


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

@dataclass
class NebulaRenderConfig(RenderConfig):
    """Configuration for the volumetric attractor renderer."""

    # Particle system
    attractor: AttractorType = AttractorType.LORENZ
    particle_count: int = 1000
    core_ratio: float = 0.2
    radius: Optional[float] = None   # None = see effective_radius
    scale: float = 1.0
    point_count: Optional[int] = None  # None = max(2000, 2 * particle_count)
    color: str = COLORS["GOLD"]

    # Camera and motion
    focal_length: float = 400.0
    rotation_speed: float = 0.0003   # radians per frame
    tilt: float = 0.0

    # Alpha shaping
    breathe_intensity: float = 0.2
    depth_effect: float = 0.5
    proximity_boost: float = 0.8
    flicker: bool = False

    cull_margin: float = 20.0

    def __post_init__(self):
        super().__post_init__()
        self.attractor = parse_attractor_type(self.attractor)
        if self.particle_count < 0:
            raise ValueError(f"particle_count must be >= 0, got {self.particle_count}")
        if not 0.0 <= self.core_ratio <= 1.0:
            raise ValueError(f"core_ratio must be in [0, 1], got {self.core_ratio}")
        if self.radius is not None and not self.radius > 0:
            raise ValueError(f"radius must be positive, got {self.radius}")
        if not self.scale > 0:
            raise ValueError(f"scale must be positive, got {self.scale}")
        if not self.focal_length > 0:
            raise ValueError(f"focal_length must be positive, got {self.focal_length}")
        if self.point_count is not None and self.point_count <= 0:
            raise ValueError(f"point_count must be positive, got {self.point_count}")
        # Cloud radius must sit inside the camera distance; stray corners are culled
        if self.effective_radius * self.scale >= self.focal_length:
            raise ValueError(
                f"radius * scale ({self.effective_radius * self.scale:g}) must be "
                f"smaller than focal_length ({self.focal_length:g})"
            )

    @property
    def effective_radius(self) -> float:
        """Explicit radius, else 40% of the shorter side capped at 0.45 * focal."""
        if self.radius is not None:
            return float(self.radius)
        return min(min(self.width, self.height) * 0.4, self.focal_length * 0.45)


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------

class NebulaRenderer(BaseRenderer):
    """
    Renders a rotating volumetric attractor cloud.

    The particle system is built once at construction (point clouds are
    shared through ``cache``); frames are then a pure function of the frame
    index, so they can be rendered in any order.
    """

    def __init__(
        self,
        config: Optional[NebulaRenderConfig] = None,
        seed: Optional[int] = None,
        cache: Optional[AttractorCache] = DEFAULT_CACHE,
        sampler: Optional[SamplerConfig] = None,
        particles: Optional[ParticleSystem] = None,
    ):
        super().__init__(config or NebulaRenderConfig(), seed)
        self.cfg: NebulaRenderConfig = self.cfg
        self.rgb = parse_rgb(self.cfg.color)
        self.max_depth = self.cfg.effective_radius * self.cfg.scale

        if particles is None:
            particles = create_attractor_particle_system(
                self.cfg.attractor,
                self.cfg.particle_count,
                core_ratio=self.cfg.core_ratio,
                radius=self.cfg.effective_radius,
                scale=self.cfg.scale,
                seed=seed,
                cache=cache,
                sampler=sampler,
                point_count=self.cfg.point_count,
            )
        self.particles = particles

    def rotation_at(self, frame_index: int) -> float:
        return self.cfg.rotation_speed * frame_index

    def project(self, frame_index: int):
        """
        Screen-space state for one frame.

        Returns:
            ``(sx, sy, side, alpha, visible)`` arrays over all particles.
            ``side`` and ``alpha`` are only meaningful where ``visible``.
        """
        cfg = self.cfg
        ps = self.particles

        rotated = ps.positions @ rotation_matrix(self.rotation_at(frame_index), cfg.tilt).T
        z = rotated[:, 2]
        sx, sy, scale = project_to_screen(rotated, self.center_pos, cfg.focal_length)

        margin = cfg.cull_margin
        with np.errstate(invalid="ignore"):
            visible = (
                np.isfinite(sx) & np.isfinite(sy) & np.isfinite(scale)
                & (sx >= -margin) & (sx <= cfg.width + margin)
                & (sy >= -margin) & (sy <= cfg.height + margin)
            )

        alpha = breathing_alpha(ps.alpha, ps.phase, self.frame_time_ms(frame_index),
                                cfg.breathe_intensity)
        alpha = depth_alpha(alpha, z, self.max_depth, cfg.depth_effect)
        alpha = alpha * proximity_boost(z, self.max_depth, cfg.proximity_boost)
        alpha = np.clip(alpha * cfg.opacity, 0.0, 1.0)

        scale = np.where(visible, scale, 0.0)
        side = np.maximum(1, np.round(ps.size * scale)).astype(np.int64)
        return sx, sy, side, alpha, visible

    def draw(self, frame_index: int, rng: np.random.Generator) -> np.ndarray:
        buffer = new_buffer(self.cfg.width, self.cfg.height)
        if len(self.particles) == 0:
            return buffer

        sx, sy, side, alpha, visible = self.project(frame_index)
        if self.cfg.flicker:
            alpha = alpha * glitch_flicker(self.frame_time_ms(frame_index) / 1000.0, rng=rng)

        gx = np.floor(sx[visible] / GRID) * GRID
        gy = np.floor(sy[visible] / GRID) * GRID
        splat_squares(buffer, gx, gy, side[visible], self.rgb, alpha[visible])
        return buffer
