class PathTracerError(Exception):
    """Base class for every error raised by the renderer."""


class SceneError(PathTracerError, ValueError):
    """Scene input was rejected before rendering started."""


class RenderError(PathTracerError, RuntimeError):
    """The render could not run to completion; no image is produced."""
