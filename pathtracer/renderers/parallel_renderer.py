"""Scanline-parallel renderer on a process pool.

The scene is shipped to every worker once through the pool initializer and
treated as read-only from then on. Each task renders one row with its own
random stream (see ``tracer.row_rng``) and returns the row's linear colors;
only the parent process writes into the image buffer, one row per task, so
the result does not depend on how rows were scheduled.
"""

import logging
import os
from concurrent.futures import FIRST_EXCEPTION, ProcessPoolExecutor, wait
from concurrent.futures.process import BrokenProcessPool
from typing import List, Optional

import numpy as np

from pathtracer.config import DEFAULT_WORKERS, SHOW_PROGRESS
from pathtracer.core.errors import RenderError
from pathtracer.core.image import ImageBuffer
from pathtracer.core.scene import Scene
from pathtracer.core.tracer import render_row
from pathtracer.renderers.base_renderer import BaseRenderer, RendererFactory

logger = logging.getLogger(__name__)

# Per-process render state, set once by _init_worker.
_worker_state = {}


def _init_worker(scene: Scene) -> None:
    _worker_state["scene"] = scene
    _worker_state["camera"] = scene.build_camera()


def _render_row_task(j: int) -> tuple:
    scene = _worker_state["scene"]
    row = render_row(j, _worker_state["camera"], scene.world, scene.settings, scene.background)
    return j, row


def default_workers() -> int:
    return os.cpu_count() or 1


class ParallelRenderer(BaseRenderer):
    """Distributes scanlines over a fixed-size pool of worker processes."""

    def __init__(self, workers: Optional[int] = None, progress: bool = SHOW_PROGRESS):
        super().__init__("parallel_raytracer", progress)
        self.workers = workers

    def get_capabilities(self) -> List[str]:
        return [
            "path_tracing",
            "reflection",
            "refraction",
            "depth_of_field",
            "anti_aliasing",
            "bvh_acceleration",
            "multiprocessing",
        ]

    def resolve_workers(self, scene: Scene) -> int:
        workers = self.workers or scene.settings.workers or DEFAULT_WORKERS or default_workers()
        return max(1, min(workers, scene.settings.height))

    def render_buffer(self, scene: Scene) -> ImageBuffer:
        settings = scene.settings
        # Validate the camera here so scene errors surface before any process starts.
        scene.build_camera()
        buffer = ImageBuffer(settings.width, settings.height)
        workers = self.resolve_workers(scene)
        logger.info("%s: %d worker process(es)", self.name, workers)

        try:
            with ProcessPoolExecutor(max_workers=workers, initializer=_init_worker,
                                     initargs=(scene,)) as pool, \
                    self._progress_bar(settings.height) as bar:
                pending = {pool.submit(_render_row_task, j) for j in range(settings.height)}
                while pending:
                    done, pending = wait(pending, return_when=FIRST_EXCEPTION)
                    for future in done:
                        error = future.exception()
                        if error is not None:
                            for other in pending:
                                other.cancel()
                            raise error
                        j, row = future.result()
                        buffer.write_row(j, np.asarray(row))
                        bar.update()
        except RenderError:
            raise
        except BrokenProcessPool as e:
            raise RenderError(f"a worker process died: {e}") from e
        except Exception as e:
            raise RenderError(f"render failed: {e}") from e

        if not buffer.is_complete():
            raise RenderError(f"rows never rendered: {buffer.missing_rows()[:10]}")
        return buffer


RendererFactory.register("parallel_raytracer", ParallelRenderer)
