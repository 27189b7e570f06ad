"""
Rasterizers and frame output for sigils and nebulae.
"""

from sigilscope.render.base import BaseRenderer, FramePolisher, RenderConfig
from sigilscope.render.nebula import NebulaRenderConfig, NebulaRenderer
from sigilscope.render.sigil import SigilRenderConfig, SigilRenderer, render_sigil
