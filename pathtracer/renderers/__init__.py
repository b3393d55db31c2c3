# Importing the modules registers each renderer with RendererFactory.
from pathtracer.renderers import cpu_renderer, parallel_renderer  # noqa: F401
from pathtracer.renderers.base_renderer import BaseRenderer, RendererFactory

__all__ = ["BaseRenderer", "RendererFactory"]
