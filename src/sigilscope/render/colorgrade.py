"""
Colour constants and frame post-processing.

Frames are built as premultiplied float32 RGBA buffers (H, W, 4) and only
converted to uint8 at the very end. Colours are given as RGB triplet strings
("202, 165, 84") throughout, matching the design tokens.
"""

from typing import Optional, Union

import numpy as np
from scipy.ndimage import gaussian_filter

from sigilscope.core.dna import DAWN, DEFAULT_COLORS

COLORS = {
    # Universal
    "DAWN": DAWN,
    "VOID": "5, 4, 3",
    # Dark mode accents
    "GOLD": "202, 165, 84",
    "GOLD_BRIGHT": "224, 188, 106",
    "VERDE": "43, 78, 64",
    "VERDE_GLOW": "91, 168, 130",
    # Light mode
    "PAPER": "240, 239, 236",
    "INK": "58, 56, 53",
    "TEAL": "61, 139, 122",
    "SIGNAL": "184, 92, 74",
    "GOLD_LIGHT": "166, 144, 85",
    "MUTED": "122, 120, 104",
}

ColorLike = Union[str, tuple, list, np.ndarray]


def parse_rgb(color: ColorLike) -> np.ndarray:
    """
    Parse a colour to a float32 RGB vector in [0, 1].

    Accepts ``"r, g, b"`` triplets, named tokens (``"gold"``, ``"VOID"``),
    ``#rrggbb`` hex, or a 3-sequence of 0-255 ints.
    """
    if isinstance(color, str):
        text = color.strip()
        named = COLORS.get(text.upper()) or DEFAULT_COLORS.get(text.lower())
        if named is not None:
            text = named
        if text.startswith("#") and len(text) == 7:
            values = [int(text[i:i + 2], 16) for i in (1, 3, 5)]
        else:
            try:
                values = [float(v) for v in text.split(",")]
            except ValueError:
                raise ValueError(f"Cannot parse colour {color!r}") from None
    else:
        values = [float(v) for v in color]

    if len(values) != 3 or any(v < 0 or v > 255 for v in values):
        raise ValueError(f"Colour must be three 0-255 components, got {color!r}")
    return np.asarray(values, dtype=np.float32) / 255.0


def new_buffer(width: int, height: int) -> np.ndarray:
    """Empty premultiplied RGBA float32 buffer."""
    return np.zeros((height, width, 4), dtype=np.float32)


def add_glow(
    buffer: np.ndarray,
    intensity: float = 0.35,
    radius: float = 2.0,
) -> np.ndarray:
    """
    Additive gaussian bloom on a premultiplied RGBA buffer.

    Args:
        buffer: (H, W, 4) float32.
        intensity: Bloom weight (0 disables).
        radius: Gaussian sigma in pixels.

    Returns:
        New (H, W, 4) float32 buffer.
    """
    if intensity <= 0 or radius <= 0:
        return buffer
    blurred = gaussian_filter(buffer, sigma=[radius, radius, 0])
    return buffer + blurred * intensity


def composite(
    buffer: np.ndarray,
    background: Optional[ColorLike] = None,
) -> np.ndarray:
    """
    Flatten a premultiplied buffer to uint8.

    With a background colour the result is opaque (H, W, 3) RGB; without one
    it stays (H, W, 4) straight-alpha RGBA.
    """
    buf = np.clip(buffer, 0.0, 1.0)
    rgb = buf[..., :3]
    alpha = buf[..., 3:4]

    if background is not None:
        bg = parse_rgb(background)
        out = rgb + bg * (1.0 - alpha)
        return (np.clip(out, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)

    straight = np.divide(rgb, alpha, out=np.zeros_like(rgb), where=alpha > 0)
    out = np.concatenate([np.clip(straight, 0.0, 1.0), alpha], axis=-1)
    return (out * 255.0 + 0.5).astype(np.uint8)


def chromatic_aberration(
    frame: np.ndarray,
    offset: int = 2,
) -> np.ndarray:
    """
    Shift R left and B right for an RGB split.

    Args:
        frame: (H, W, 3|4) uint8.
        offset: Pixel shift for R and B channels.

    Returns:
        Same shape uint8 array.
    """
    if offset <= 0:
        return frame

    result = frame.copy()
    w = frame.shape[1]
    if offset >= w:
        return result

    result[:, :w - offset, 0] = frame[:, offset:, 0]
    result[:, offset:, 2] = frame[:, :w - offset, 2]
    return result


def vignette(
    frame: np.ndarray,
    strength: float = 0.3,
) -> np.ndarray:
    """
    Radial darkening of the RGB channels.

    Args:
        frame: (H, W, 3|4) uint8.
        strength: 0 = none, 1 = black corners.
    """
    if strength <= 0:
        return frame

    h, w = frame.shape[:2]
    cy, cx = h / 2, w / 2
    max_r = np.sqrt(cx ** 2 + cy ** 2)

    y = np.arange(h, dtype=np.float32) - cy
    x = np.arange(w, dtype=np.float32) - cx
    xg, yg = np.meshgrid(x, y)
    r = np.sqrt(xg ** 2 + yg ** 2) / max_r

    vign = 1.0 - np.clip(r * strength, 0, 1) ** 2

    out = frame.copy()
    out[..., :3] = (frame[..., :3].astype(np.float32) * vign[:, :, np.newaxis]).astype(np.uint8)
    return out
