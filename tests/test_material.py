import math

import numpy as np

from pathtracer.core.material import Dielectric, HitRecord, Lambertian, Metal
from pathtracer.core.math import Color, Ray, Vec3
from tests.conftest import assert_vec_close

UP = Vec3(0, 0, 1)


def surface_hit(material, normal=UP, front_face=True):
    return HitRecord(Vec3(0, 0, 0), normal, 1.0, material, front_face)


class TestLambertian:
    def test_scatters_into_hemisphere_with_cosine_weighting(self, red_diffuse, rng):
        rec = surface_hit(red_diffuse)
        incoming = Ray(Vec3(0, 0, 1), Vec3(0, 0, -1))
        cosines = []
        for _ in range(5000):
            attenuation, scattered = red_diffuse.scatter(incoming, rec, rng)
            assert attenuation == red_diffuse.albedo
            assert abs(scattered.direction.length() - 1.0) < 1e-9
            cosines.append(scattered.direction.dot(UP))
        assert min(cosines) >= 0.0
        # the mean of cos(theta) under a cosine-weighted hemisphere is 2/3
        assert abs(np.mean(cosines) - 2.0 / 3.0) < 0.02

    def test_scattered_ray_starts_at_hit_point(self, red_diffuse, rng):
        rec = HitRecord(Vec3(1, 2, 3), UP, 1.0, red_diffuse)
        _, scattered = red_diffuse.scatter(Ray(Vec3(1, 2, 5), Vec3(0, 0, -1)), rec, rng)
        assert scattered.origin == Vec3(1, 2, 3)
        assert scattered.t_min > 0.0


class TestMetal:
    def test_perfect_mirror_reflects_exactly(self, mirror, rng):
        rec = surface_hit(mirror, normal=Vec3(0, 1, 0))
        attenuation, scattered = mirror.scatter(Ray(Vec3(-1, 1, 0), Vec3(1, -1, 0)), rec, rng)
        assert attenuation == Color(0.9, 0.9, 0.9)
        assert_vec_close(scattered.direction, Vec3(1, 1, 0).unit_vector())

    def test_reflection_below_surface_is_absorbed(self, mirror, rng):
        rec = surface_hit(mirror, normal=Vec3(0, 1, 0))
        assert mirror.scatter(Ray(Vec3(0, 0, 0), Vec3(0, 1, 0)), rec, rng) is None

    def test_fuzz_is_clamped(self):
        assert Metal(Color(1, 1, 1), 3.0).fuzz == 1.0
        assert Metal(Color(1, 1, 1), -0.5).fuzz == 0.0

    def test_fuzzy_reflections_stay_above_surface(self, rng):
        metal = Metal(Color(0.8, 0.8, 0.8), 0.7)
        rec = surface_hit(metal)
        incoming = Ray(Vec3(0, 1, 1), Vec3(0, -1, -1))
        for _ in range(500):
            result = metal.scatter(incoming, rec, rng)
            if result is not None:
                assert result[1].direction.dot(UP) > 0.0


class TestDielectric:
    def test_matched_index_passes_straight_through(self, rng):
        material = Dielectric(1.0)
        rec = surface_hit(material)
        for _ in range(50):
            attenuation, scattered = material.scatter(Ray(Vec3(0, 0, 1), Vec3(0, 0, -1)), rec, rng)
            assert attenuation == Color(1.0, 1.0, 1.0)
            assert_vec_close(scattered.direction, Vec3(0, 0, -1))

    def test_total_internal_reflection(self, glass, rng):
        # leaving glass at 60 degrees: 1.5 * sin(60) > 1, so every sample reflects
        normal = Vec3(0, 1, 0)
        rec = surface_hit(glass, normal=normal, front_face=False)
        direction = Vec3(math.sin(math.radians(60)), -math.cos(math.radians(60)), 0)
        expected = Vec3(direction.x, -direction.y, 0)
        for _ in range(50):
            _, scattered = glass.scatter(Ray(Vec3(0, 1, 0), direction), rec, rng)
            assert_vec_close(scattered.direction, expected)

    def test_reflectance_grows_toward_grazing(self):
        normal = Dielectric.reflectance(1.0, 1 / 1.5)
        grazing = Dielectric.reflectance(0.05, 1 / 1.5)
        assert abs(normal - 0.04) < 1e-9
        assert normal < grazing <= 1.0

    def test_refracted_rays_bend_toward_normal(self, glass, rng):
        rec = surface_hit(glass)
        direction = Vec3(math.sin(math.radians(45)), 0, -math.cos(math.radians(45)))
        refracted = 0
        for _ in range(200):
            _, scattered = glass.scatter(Ray(Vec3(0, 0, 1), direction), rec, rng)
            if scattered.direction.z < 0:
                refracted += 1
                sin_out = scattered.direction.x
                assert abs(sin_out - math.sin(math.radians(45)) / 1.5) < 1e-9
        assert refracted > 150
