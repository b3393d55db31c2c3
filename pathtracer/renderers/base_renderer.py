import logging
import time
from abc import ABC, abstractmethod
from typing import List

import numpy as np
from tqdm import tqdm

from pathtracer.config import SHOW_PROGRESS
from pathtracer.core.image import ImageBuffer
from pathtracer.core.scene import Scene
from pathtracer.core.tracer import rays_per_second

logger = logging.getLogger(__name__)


class BaseRenderer(ABC):
    """Base class every renderer implements."""

    def __init__(self, name: str, progress: bool = SHOW_PROGRESS):
        self.name = name
        self.progress = progress

    @abstractmethod
    def render_buffer(self, scene: Scene) -> ImageBuffer:
        """Render every row of ``scene`` into a fully written linear buffer."""

    @abstractmethod
    def get_capabilities(self) -> List[str]:
        """Features this renderer supports."""

    def render(self, scene: Scene) -> np.ndarray:
        """Render ``scene`` and return the finalized (height, width, 3) uint8 image."""
        settings = scene.settings
        logger.info("%s: rendering %dx%d, %d spp, max depth %d, %d object(s)",
                    self.name, settings.width, settings.height, settings.samples_per_pixel,
                    settings.max_depth, len(scene.world))
        start_time = time.perf_counter()
        buffer = self.render_buffer(scene)
        elapsed = time.perf_counter() - start_time
        logger.info("%s: finished in %.2fs (%.0f primary rays/sec)",
                    self.name, elapsed, rays_per_second(settings, elapsed))
        return buffer.finalize()

    def _progress_bar(self, total: int) -> tqdm:
        # disable=None lets tqdm hide itself when stderr is not a terminal
        return tqdm(total=total, desc=self.name, unit="row",
                    disable=None if self.progress else True, leave=False)

    def get_name(self) -> str:
        return self.name

    def supports(self, feature: str) -> bool:
        return feature in self.get_capabilities()


class RendererFactory:
    """Registry of renderer classes by name."""

    _renderers = {}

    @classmethod
    def register(cls, name: str, renderer_class):
        cls._renderers[name] = renderer_class

    @classmethod
    def create(cls, name: str, **kwargs) -> BaseRenderer:
        if name not in cls._renderers:
            raise ValueError(f"Unknown renderer: {name}")
        return cls._renderers[name](**kwargs)

    @classmethod
    def list_available(cls) -> List[str]:
        return list(cls._renderers.keys())
