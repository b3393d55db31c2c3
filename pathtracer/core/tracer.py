"""Radiance estimation: the recursive color function and per-row sampling."""

import math

import numpy as np

from pathtracer.core.camera import Camera
from pathtracer.core.math import Color, Ray
from pathtracer.core.scene import Background, RenderSettings, World

BLACK = Color(0.0, 0.0, 0.0)

# Lower bound of the hit range; keeps rays from re-hitting the surface they left.
HIT_T_MIN = 1e-3


def trace(ray: Ray, world: World, depth: int, rng: np.random.Generator, background: Background) -> Color:
    """Radiance carried back along ``ray``.

    ``depth`` is the number of scatter events still allowed. Once it drops
    below zero the path is cut off and contributes nothing.
    """
    if depth < 0:
        return BLACK

    rec = world.closest_hit(ray, max(ray.t_min, HIT_T_MIN), ray.t_max)
    if rec is None:
        return background(ray)

    scattered = rec.material.scatter(ray, rec, rng)
    if scattered is None:
        return BLACK
    attenuation, scattered_ray = scattered
    return attenuation * trace(scattered_ray, world, depth - 1, rng, background)


def row_rng(seed: int, row: int) -> np.random.Generator:
    """Independent stream per scanline, stable across worker counts and scheduling."""
    return np.random.default_rng(np.random.SeedSequence(seed, spawn_key=(row,)))


def sample_pixel(i: int, j: int, camera: Camera, world: World, settings: RenderSettings,
                 rng: np.random.Generator, background: Background) -> Color:
    """Average of ``samples_per_pixel`` jittered samples for column i of row j (0 = top)."""
    width, height = settings.width, settings.height
    flipped = height - 1 - j
    r = g = b = 0.0
    for _ in range(settings.samples_per_pixel):
        du, dv = rng.random(2)
        ray = camera.get_ray((i + du) / width, (flipped + dv) / height, rng)
        c = trace(ray, world, settings.max_depth, rng, background)
        r += c.x
        g += c.y
        b += c.z
    scale = 1.0 / settings.samples_per_pixel
    return Color(r * scale, g * scale, b * scale)


def render_row(j: int, camera: Camera, world: World, settings: RenderSettings,
               background: Background) -> np.ndarray:
    """One work unit: linear colors of row j as a (width, 3) array."""
    rng = row_rng(settings.seed, j)
    row = np.empty((settings.width, 3), dtype=np.float64)
    for i in range(settings.width):
        c = sample_pixel(i, j, camera, world, settings, rng, background)
        row[i] = (c.x, c.y, c.z)
    if not np.isfinite(row).all():
        raise ArithmeticError(f"non-finite radiance in row {j}")
    return row


def rays_per_second(settings: RenderSettings, elapsed: float) -> float:
    primary = settings.width * settings.height * settings.samples_per_pixel
    return primary / elapsed if elapsed > 0 else math.inf
