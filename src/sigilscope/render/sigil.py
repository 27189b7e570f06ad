"""
Planar sigil rasterizer.

Translates local-frame particles to the icon centre, floors them onto the
3 px grid and fills small squares. The result is crisp and deliberately
pixelated at any output scale (upscale with nearest-neighbour only).
"""

import math
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Sequence

import numpy as np

from sigilscope.core.sigil import LARGE, MEDIUM, SMALL, Particle2D, Sigil
from sigilscope.render.base import BaseRenderer, RenderConfig
from sigilscope.render.colorgrade import new_buffer, parse_rgb
from sigilscope.render.glitch import GRID, fill_square, glitch_displace, snap

# Size tier -> square side in pixels
PIXEL_SIZES = {LARGE: 4, MEDIUM: GRID, SMALL: 2}


class SigilPixel(NamedTuple):
    x: int
    y: int
    side: int
    alpha: float


@dataclass
class SigilRenderConfig(RenderConfig):
    """Settings for sigil icons. Width/height default to the sigil size."""
    width: int = 48
    height: int = 48
    background: Optional[str] = None

    pulse: float = 0.0            # 0-1 breathing depth
    breathe_speed: float = 0.05   # radians per frame
    displace_intensity: float = GRID
    displace_probability: float = 0.3


class SigilRenderer(BaseRenderer):
    """
    Renders a generated sigil, optionally animated.

    Frame 0 with ``pulse=0`` is the static icon. With ``pulse > 0`` each
    particle's alpha breathes as ``1 + 0.2 * pulse * sin(frame * k + 0.5 i)``.
    At glitch level 3+ a fresh subset of particles is displaced every frame.
    """

    def __init__(
        self,
        sigil: Sigil,
        config: Optional[SigilRenderConfig] = None,
        seed: Optional[int] = None,
    ):
        config = config or SigilRenderConfig(width=sigil.size, height=sigil.size)
        super().__init__(config, seed)
        self.cfg: SigilRenderConfig = self.cfg
        self.sigil = sigil
        self.rgb = parse_rgb(sigil.color)

    def _pulse_alpha(self, index: int, frame_index: int) -> float:
        if self.cfg.pulse <= 0:
            return 1.0
        return 1.0 + self.cfg.pulse * 0.2 * math.sin(
            frame_index * self.cfg.breathe_speed + index * 0.5
        )

    def layout(
        self,
        frame_index: int = 0,
        particles: Optional[Sequence[Particle2D]] = None,
    ) -> List[SigilPixel]:
        """Grid-snapped squares for a frame, in draw order."""
        particles = self.sigil.particles if particles is None else particles
        cx, cy = self.center_pos
        pixels: List[SigilPixel] = []
        for i, p in enumerate(particles):
            x = p.x + p.glitch_x
            y = p.y + p.glitch_y
            alpha = min(1.0, p.alpha * self.cfg.opacity * self._pulse_alpha(i, frame_index))
            pixels.append(SigilPixel(
                x=snap(x + cx),
                y=snap(y + cy),
                side=PIXEL_SIZES.get(p.size, GRID),
                alpha=max(0.0, alpha),
            ))
        return pixels

    def draw(self, frame_index: int, rng: np.random.Generator) -> np.ndarray:
        particles = self.sigil.particles
        if self.cfg.glitch_level >= 3:
            particles = glitch_displace(
                particles,
                intensity=self.cfg.displace_intensity,
                probability=self.cfg.displace_probability,
                rng=rng,
            )

        buffer = new_buffer(self.cfg.width, self.cfg.height)
        for px in self.layout(frame_index, particles):
            fill_square(buffer, px.x, px.y, px.side, self.rgb, px.alpha)
        return buffer


def render_sigil(
    sigil: Sigil,
    background: Optional[str] = None,
    opacity: float = 1.0,
    pulse: float = 0.0,
) -> np.ndarray:
    """Static sigil image: (size, size, 4) RGBA, or RGB with a background."""
    config = SigilRenderConfig(
        width=sigil.size,
        height=sigil.size,
        background=background,
        opacity=opacity,
        pulse=pulse,
    )
    return SigilRenderer(sigil, config).render_frame(0)
