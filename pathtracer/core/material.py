import math
from abc import ABC, abstractmethod
from typing import Optional, Tuple

import numpy as np

from pathtracer.core.math import Color, Ray, Vec3, random_in_unit_sphere, random_unit_vector

# Scattered rays start slightly off the surface to avoid shadow acne.
SCATTER_T_MIN = 1e-3

ScatterResult = Optional[Tuple[Color, Ray]]


class HitRecord:
    """Where a ray met a surface. The normal always faces the incoming ray."""

    __slots__ = ("point", "normal", "t", "material", "front_face")

    def __init__(self, point: Vec3, normal: Vec3, t: float, material: "Material", front_face: bool = True):
        self.point = point
        self.normal = normal
        self.t = t
        self.material = material
        self.front_face = front_face

    @classmethod
    def from_outward_normal(cls, ray: Ray, t: float, point: Vec3, outward_normal: Vec3,
                            material: "Material") -> "HitRecord":
        front_face = ray.direction.dot(outward_normal) < 0
        normal = outward_normal if front_face else -outward_normal
        return cls(point, normal, t, material, front_face)

    def __repr__(self):
        return (f"HitRecord(t={self.t:.4f}, point={self.point!r}, normal={self.normal!r}, "
                f"front_face={self.front_face}, material={self.material!r})")


class Material(ABC):
    """Scattering law of a surface. Implementations are immutable and hold no RNG."""

    kind = "material"

    @abstractmethod
    def scatter(self, ray_in: Ray, rec: HitRecord, rng: np.random.Generator) -> ScatterResult:
        """Return (attenuation, scattered_ray), or None when the ray is absorbed."""

    @abstractmethod
    def to_dict(self) -> dict:
        pass


class Lambertian(Material):
    kind = "Lambertian"

    def __init__(self, albedo: Color):
        self.albedo = albedo

    def scatter(self, ray_in: Ray, rec: HitRecord, rng: np.random.Generator) -> ScatterResult:
        scatter_direction = rec.normal + random_unit_vector(rng)

        # normal + (almost exactly -normal) would leave no direction at all
        if scatter_direction.near_zero():
            scatter_direction = rec.normal

        scattered = Ray(rec.point, scatter_direction.unit_vector(), SCATTER_T_MIN)
        return self.albedo, scattered

    def to_dict(self) -> dict:
        return {self.kind: {"albedo": list(self.albedo)}}

    def __repr__(self):
        return f"Lambertian(albedo={self.albedo!r})"


class Metal(Material):
    kind = "Metal"

    def __init__(self, albedo: Color, fuzz: float = 0.0):
        self.albedo = albedo
        self.fuzz = min(max(fuzz, 0.0), 1.0)

    def scatter(self, ray_in: Ray, rec: HitRecord, rng: np.random.Generator) -> ScatterResult:
        reflected = ray_in.direction.unit_vector().reflect(rec.normal)
        if self.fuzz > 0.0:
            reflected = reflected + random_in_unit_sphere(rng) * self.fuzz

        # fuzz can push the reflection below the surface; absorb it there
        if reflected.dot(rec.normal) <= 0:
            return None
        return self.albedo, Ray(rec.point, reflected.unit_vector(), SCATTER_T_MIN)

    def to_dict(self) -> dict:
        return {self.kind: {"albedo": list(self.albedo), "fuzz": self.fuzz}}

    def __repr__(self):
        return f"Metal(albedo={self.albedo!r}, fuzz={self.fuzz})"


class Dielectric(Material):
    """Clear refractive material (glass, water) choosing reflection by Schlick's law."""

    kind = "Dielectric"

    def __init__(self, refraction_index: float):
        self.refraction_index = refraction_index

    @staticmethod
    def reflectance(cosine: float, ref_idx: float) -> float:
        # Schlick's approximation
        r0 = (1.0 - ref_idx) / (1.0 + ref_idx)
        r0 = r0 * r0
        return r0 + (1.0 - r0) * math.pow(1.0 - cosine, 5)

    def scatter(self, ray_in: Ray, rec: HitRecord, rng: np.random.Generator) -> ScatterResult:
        attenuation = Color(1.0, 1.0, 1.0)
        ratio = 1.0 / self.refraction_index if rec.front_face else self.refraction_index

        unit_direction = ray_in.direction.unit_vector()
        cos_theta = min(-unit_direction.dot(rec.normal), 1.0)
        sin_theta = math.sqrt(max(0.0, 1.0 - cos_theta * cos_theta))

        direction = None
        cannot_refract = ratio * sin_theta > 1.0
        if not cannot_refract and self.reflectance(cos_theta, ratio) <= rng.random():
            direction = unit_direction.refract(rec.normal, ratio)
        if direction is None:
            direction = unit_direction.reflect(rec.normal)

        return attenuation, Ray(rec.point, direction.unit_vector(), SCATTER_T_MIN)

    def to_dict(self) -> dict:
        return {self.kind: {"refraction_index": self.refraction_index}}

    def __repr__(self):
        return f"Dielectric(refraction_index={self.refraction_index})"
