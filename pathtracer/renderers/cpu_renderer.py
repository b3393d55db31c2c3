from typing import List

from pathtracer.config import SHOW_PROGRESS
from pathtracer.core.errors import RenderError
from pathtracer.core.image import ImageBuffer
from pathtracer.core.scene import Scene
from pathtracer.core.tracer import render_row
from pathtracer.renderers.base_renderer import BaseRenderer, RendererFactory


class CPURenderer(BaseRenderer):
    """Runs every scanline in the calling process, top to bottom."""

    def __init__(self, progress: bool = SHOW_PROGRESS):
        super().__init__("cpu_raytracer", progress)

    def get_capabilities(self) -> List[str]:
        return [
            "path_tracing",
            "reflection",
            "refraction",
            "depth_of_field",
            "anti_aliasing",
            "bvh_acceleration",
        ]

    def render_buffer(self, scene: Scene) -> ImageBuffer:
        settings = scene.settings
        camera = scene.build_camera()
        buffer = ImageBuffer(settings.width, settings.height)

        with self._progress_bar(settings.height) as bar:
            for j in range(settings.height):
                try:
                    row = render_row(j, camera, scene.world, settings, scene.background)
                except RenderError:
                    raise
                except Exception as e:
                    raise RenderError(f"row {j} failed: {e}") from e
                buffer.write_row(j, row)
                bar.update()

        return buffer


RendererFactory.register("cpu_raytracer", CPURenderer)
