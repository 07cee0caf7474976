"""Render module: the parallel pixel loop and its output.

Components:
    framebuffer: Immutable pixel grid with 8-bit conversion
    renderer: RenderSettings and the render entry points
"""

from .framebuffer import Framebuffer
from .renderer import RenderSettings, render, render_with_settings

__all__ = ["Framebuffer", "RenderSettings", "render", "render_with_settings"]
