"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest

from pathtracer.core.geometry import Sphere
from pathtracer.core.material import Dielectric, Lambertian, Metal
from pathtracer.core.math import Color, Vec3
from pathtracer.core.scene import CameraParams, ConstantBackground, RenderSettings, Scene, SkyBackground, World


def assert_vec_close(actual: Vec3, expected: Vec3, tol: float = 1e-9):
    assert abs(actual.x - expected.x) < tol, (actual, expected)
    assert abs(actual.y - expected.y) < tol, (actual, expected)
    assert abs(actual.z - expected.z) < tol, (actual, expected)


@pytest.fixture
def rng():
    """Fixed generator so statistical tests are repeatable."""
    return np.random.default_rng(1234)


@pytest.fixture
def red_diffuse():
    return Lambertian(Color(0.8, 0.3, 0.2))


@pytest.fixture
def mirror():
    return Metal(Color(0.9, 0.9, 0.9), 0.0)


@pytest.fixture
def glass():
    return Dielectric(1.5)


@pytest.fixture
def single_sphere_scene(red_diffuse):
    """One diffuse sphere straight ahead under a constant white sky."""
    world = World([Sphere(Vec3(0, 0, -3), 1.0, red_diffuse)])
    camera = CameraParams(lookfrom=Vec3(0, 0, 0), lookat=Vec3(0, 0, -1), vup=Vec3(0, 1, 0), vfov=90.0)
    settings = RenderSettings(width=16, height=12, samples_per_pixel=1, max_depth=1, seed=7, workers=1)
    return Scene(world=world, camera=camera, settings=settings,
                 background=ConstantBackground(Color(1.0, 1.0, 1.0)))


@pytest.fixture
def small_scene(red_diffuse, mirror, glass):
    """Ground plus three materials, small enough to render in well under a second."""
    world = World([
        Sphere(Vec3(0, -100.5, -1), 100.0, Lambertian(Color(0.8, 0.8, 0.0))),
        Sphere(Vec3(0, 0, -1.2), 0.5, red_diffuse),
        Sphere(Vec3(-1.0, 0, -1), 0.5, glass),
        Sphere(Vec3(1.0, 0, -1), 0.5, mirror),
    ])
    camera = CameraParams(lookfrom=Vec3(0, 0, 1), lookat=Vec3(0, 0, -1), vup=Vec3(0, 1, 0), vfov=90.0)
    settings = RenderSettings(width=8, height=6, samples_per_pixel=2, max_depth=5, seed=11, workers=2)
    return Scene(world=world, camera=camera, settings=settings, background=SkyBackground())
