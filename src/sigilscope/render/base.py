"""
Base classes and shared styling for the sigilscope renderers.
"""

import abc
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Tuple

import numpy as np

from sigilscope.render.colorgrade import (
    COLORS,
    add_glow,
    chromatic_aberration,
    composite,
    vignette,
)
from sigilscope.render.glitch import MAX_GLITCH_LEVEL, apply_glitch_level


@dataclass
class RenderConfig:
    """Settings shared by all renderers."""
    width: int = 480
    height: int = 480
    fps: int = 30

    # Compositing
    background: Optional[str] = COLORS["VOID"]  # None = transparent RGBA output
    opacity: float = 1.0

    # Post-processing
    glow_enabled: bool = False
    glow_intensity: float = 0.35
    glow_radius: float = 2.0
    vignette_strength: float = 0.0
    glitch_level: int = 0          # 0-4, see sigilscope.render.glitch
    aberration_offset: int = 2     # used at glitch level 4

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"frame size must be positive, got {self.width}x{self.height}")
        if self.fps <= 0:
            raise ValueError(f"fps must be positive, got {self.fps}")
        if not 0.0 <= self.opacity <= 1.0:
            raise ValueError(f"opacity must be in [0, 1], got {self.opacity}")
        if not 0 <= self.glitch_level <= MAX_GLITCH_LEVEL:
            raise ValueError(
                f"glitch_level must be in [0, {MAX_GLITCH_LEVEL}], got {self.glitch_level}"
            )


class BaseRenderer(abc.ABC):
    """
    Abstract base for the sigil and nebula renderers.

    Subclasses draw one frame into a premultiplied RGBA float buffer; the
    base class applies post-processing and yields uint8 frames. Per-frame
    randomness (glitch effects) comes from a generator seeded with
    ``(seed, frame_index)`` so any frame can be re-rendered on its own.
    """

    def __init__(
        self,
        config: Optional[RenderConfig] = None,
        seed: Optional[int] = None,
        center_pos: Optional[Tuple[float, float]] = None,
    ):
        self.cfg = config or RenderConfig()
        self.seed = 0 if seed is None else int(seed)
        self.center_pos = center_pos or (self.cfg.width / 2, self.cfg.height / 2)
        self.polisher = FramePolisher(self.cfg)

    def frame_rng(self, frame_index: int) -> np.random.Generator:
        return np.random.default_rng([self.seed, frame_index])

    def frame_time_ms(self, frame_index: int) -> float:
        """Wall-clock-equivalent time of a frame, in milliseconds."""
        return frame_index * 1000.0 / self.cfg.fps

    @abc.abstractmethod
    def draw(self, frame_index: int, rng: np.random.Generator) -> np.ndarray:
        """Return the (H, W, 4) premultiplied float32 buffer for one frame."""

    def render_frame(self, frame_index: int = 0) -> np.ndarray:
        """Draw and polish one frame. Returns uint8 (H, W, 3) or (H, W, 4)."""
        rng = self.frame_rng(frame_index)
        buffer = self.draw(frame_index, rng)
        return self.polisher.apply(buffer, rng)

    def render_frames(
        self,
        n_frames: int,
        start: int = 0,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> Iterator[np.ndarray]:
        """
        Render ``n_frames`` consecutive frames as a generator.

        Yields:
            uint8 frames, one per index.
        """
        for i in range(n_frames):
            yield self.render_frame(start + i)

            if progress_callback:
                progress_callback(i + 1, n_frames)


class FramePolisher:
    """Turns a drawn buffer into a finished uint8 frame."""

    def __init__(self, config: RenderConfig):
        self.cfg = config

    def apply(self, buffer: np.ndarray, rng: np.random.Generator) -> np.ndarray:
        cfg = self.cfg

        if cfg.glow_enabled:
            buffer = add_glow(buffer, intensity=cfg.glow_intensity, radius=cfg.glow_radius)

        if cfg.glitch_level > 0:
            buffer = apply_glitch_level(buffer, cfg.glitch_level, rng)

        frame = composite(buffer, cfg.background)

        if cfg.glitch_level >= 4:
            frame = chromatic_aberration(frame, offset=cfg.aberration_offset)

        if cfg.vignette_strength > 0:
            frame = vignette(frame, strength=cfg.vignette_strength)

        return frame
