import math

import numpy as np
import pytest

from pathtracer.core.errors import SceneError
from pathtracer.core.geometry import Plane, Sphere, Triangle
from pathtracer.core.material import Lambertian
from pathtracer.core.math import Color, Ray, Vec3, random_unit_vector
from pathtracer.core.scene import CameraParams, ConstantBackground, RenderSettings, SkyBackground, World


class TestWorld:
    def test_closest_of_two_overlapping_spheres(self, red_diffuse, mirror):
        far = Sphere(Vec3(0, 0, -5), 1.0, mirror)
        near = Sphere(Vec3(0, 0, -4), 1.0, red_diffuse)
        world = World([far, near])
        rec = world.closest_hit(Ray(Vec3(0, 0, 0), Vec3(0, 0, -1)), 1e-3, math.inf)
        assert abs(rec.t - 3.0) < 1e-12
        assert rec.material is red_diffuse

    def test_order_does_not_matter(self, red_diffuse, mirror):
        spheres = [Sphere(Vec3(0, 0, -5), 1.0, mirror), Sphere(Vec3(0, 0, -4), 1.0, red_diffuse)]
        ray = Ray(Vec3(0, 0, 0), Vec3(0, 0, -1))
        a = World(spheres).closest_hit(ray, 1e-3, math.inf)
        b = World(spheres[::-1]).closest_hit(ray, 1e-3, math.inf)
        assert a.t == b.t and a.material is b.material

    def test_miss_returns_none(self, red_diffuse):
        world = World([Sphere(Vec3(0, 0, -5), 1.0, red_diffuse)])
        assert world.closest_hit(Ray(Vec3(0, 0, 0), Vec3(0, 0, 1)), 1e-3, math.inf) is None
        assert World().closest_hit(Ray(Vec3(0, 0, 0), Vec3(0, 0, 1)), 1e-3, math.inf) is None

    def test_t_max_bounds_the_query(self, red_diffuse):
        world = World([Sphere(Vec3(0, 0, -5), 1.0, red_diffuse)])
        assert world.closest_hit(Ray(Vec3(0, 0, 0), Vec3(0, 0, -1)), 1e-3, 3.0) is None

    def test_bvh_matches_linear_scan(self, rng):
        objects = []
        for k in range(60):
            center = Vec3(*rng.uniform(-6, 6, 3))
            objects.append(Sphere(center, float(rng.uniform(0.2, 1.0)), Lambertian(Color(0.5, 0.5, 0.5))))
        objects.append(Triangle(Vec3(-8, -8, -9), Vec3(8, -8, -9), Vec3(0, 8, -9), Lambertian(Color(1, 0, 0))))
        objects.append(Plane(Vec3(0, -7, 0), Vec3(0, 1, 0), Lambertian(Color(0, 1, 0))))

        linear = World(objects)
        accelerated = World(objects)
        accelerated.build_bvh()
        assert accelerated.bvh_root is not None
        assert accelerated.unbounded == [objects[-1]]

        for _ in range(300):
            ray = Ray(Vec3(*rng.uniform(-10, 10, 3)), random_unit_vector(rng))
            a = linear.closest_hit(ray, 1e-3, math.inf)
            b = accelerated.closest_hit(ray, 1e-3, math.inf)
            if a is None:
                assert b is None
            else:
                assert b is not None
                assert abs(a.t - b.t) < 1e-9

    def test_add_invalidates_bvh(self, red_diffuse):
        world = World([Sphere(Vec3(0, 0, -5), 1.0, red_diffuse)])
        world.build_bvh()
        world.add(Sphere(Vec3(0, 0, -2), 0.5, red_diffuse))
        rec = world.closest_hit(Ray(Vec3(0, 0, 0), Vec3(0, 0, -1)), 1e-3, math.inf)
        assert abs(rec.t - 1.5) < 1e-12


class TestRenderSettings:
    @pytest.mark.parametrize("field,value", [
        ("width", 0),
        ("height", -3),
        ("samples_per_pixel", 0),
        ("max_depth", 0),
        ("width", 2.5),
        ("height", True),
        ("seed", -1),
        ("workers", 0),
    ])
    def test_rejects_invalid_values(self, field, value):
        with pytest.raises(SceneError, match=field):
            RenderSettings(**{field: value})

    def test_aspect_ratio(self):
        assert RenderSettings(width=400, height=200).aspect_ratio == 2.0


class TestCameraParams:
    def test_defocus_angle_to_aperture(self):
        params = CameraParams.from_defocus_angle(Vec3(0, 0, 0), Vec3(0, 0, -1), Vec3(0, 1, 0), 90.0,
                                                 defocus_angle=10.0, focus_dist=3.4)
        assert abs(params.aperture - 2 * 3.4 * math.tan(math.radians(5.0))) < 1e-12

    def test_zero_defocus_angle_is_pinhole(self):
        params = CameraParams.from_defocus_angle(Vec3(0, 0, 0), Vec3(0, 0, -1), Vec3(0, 1, 0), 90.0, 0.0, 1.0)
        assert params.aperture == 0.0

    def test_build_needs_aspect(self):
        with pytest.raises(SceneError):
            CameraParams().build()
        assert CameraParams().build(2.0).lens_radius == 0.0


class TestBackgrounds:
    def test_sky_gradient(self):
        sky = SkyBackground()
        assert sky(Ray(Vec3(0, 0, 0), Vec3(0, 1, 0))) == Color(0.5, 0.7, 1.0)
        assert sky(Ray(Vec3(0, 0, 0), Vec3(0, -1, 0))) == Color(1.0, 1.0, 1.0)

    def test_constant(self):
        background = ConstantBackground(Color(0.2, 0.3, 0.4))
        assert background(Ray(Vec3(0, 0, 0), Vec3(*np.ones(3)))) == Color(0.2, 0.3, 0.4)
