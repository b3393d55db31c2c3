import math
from abc import ABC, abstractmethod
from typing import Optional

from pathtracer.core.material import HitRecord, Material
from pathtracer.core.math import AABB, Point3, Ray, Vec3


class Hittable(ABC):
    """Anything a ray can intersect."""

    kind = "hittable"

    @abstractmethod
    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        """Closest intersection with t strictly inside (t_min, t_max), if any."""

    @abstractmethod
    def bounding_box(self) -> Optional[AABB]:
        """Box enclosing the primitive, or None when it is unbounded."""

    @abstractmethod
    def to_dict(self, material_names: Optional[dict] = None) -> dict:
        pass


def _material_ref(material: Material, material_names: Optional[dict]):
    if material_names and id(material) in material_names:
        return material_names[id(material)]
    return material.to_dict()


class Sphere(Hittable):
    kind = "Sphere"

    def __init__(self, center: Point3, radius: float, material: Material):
        self.center = center
        self.radius = max(radius, 0.0)
        self.material = material
        r = Vec3(self.radius, self.radius, self.radius)
        self.box = AABB(center - r, center + r)

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        oc = ray.origin - self.center
        a = ray.direction.length_squared()
        if a == 0.0:
            return None
        half_b = oc.dot(ray.direction)
        c = oc.length_squared() - self.radius * self.radius

        discriminant = half_b * half_b - a * c
        if discriminant < 0:
            return None
        sqrt_d = math.sqrt(discriminant)

        # nearest root inside the open range
        root = (-half_b - sqrt_d) / a
        if not t_min < root < t_max:
            root = (-half_b + sqrt_d) / a
            if not t_min < root < t_max:
                return None

        point = ray.at(root)
        if self.radius > 0.0:
            outward_normal = (point - self.center) / self.radius
        else:
            outward_normal = -ray.direction.unit_vector()
        return HitRecord.from_outward_normal(ray, root, point, outward_normal, self.material)

    def bounding_box(self) -> AABB:
        return self.box

    def to_dict(self, material_names: Optional[dict] = None) -> dict:
        return {self.kind: {
            "center": list(self.center),
            "radius": self.radius,
            "material": _material_ref(self.material, material_names),
        }}

    def __repr__(self):
        return f"Sphere(center={self.center!r}, radius={self.radius}, material={self.material!r})"


class Plane(Hittable):
    """Infinite plane through ``point`` perpendicular to ``normal``."""

    kind = "Plane"

    def __init__(self, point: Point3, normal: Vec3, material: Material):
        self.point = point
        self.normal = normal.unit_vector()
        self.material = material

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        denom = self.normal.dot(ray.direction)
        if abs(denom) < 1e-8:
            return None  # parallel to the plane

        t = (self.point - ray.origin).dot(self.normal) / denom
        if not t_min < t < t_max:
            return None

        return HitRecord.from_outward_normal(ray, t, ray.at(t), self.normal, self.material)

    def bounding_box(self) -> None:
        return None

    def to_dict(self, material_names: Optional[dict] = None) -> dict:
        return {self.kind: {
            "point": list(self.point),
            "normal": list(self.normal),
            "material": _material_ref(self.material, material_names),
        }}

    def __repr__(self):
        return f"Plane(point={self.point!r}, normal={self.normal!r}, material={self.material!r})"


class Triangle(Hittable):
    kind = "Triangle"

    def __init__(self, v0: Point3, v1: Point3, v2: Point3, material: Material):
        self.v0 = v0
        self.v1 = v1
        self.v2 = v2
        self.material = material
        self.edge1 = v1 - v0
        self.edge2 = v2 - v0
        self.normal = self.edge1.cross(self.edge2).unit_vector()

        pad = 1e-4  # flat boxes would make the slab test degenerate
        self.box = AABB(
            Vec3(min(v0.x, v1.x, v2.x) - pad, min(v0.y, v1.y, v2.y) - pad, min(v0.z, v1.z, v2.z) - pad),
            Vec3(max(v0.x, v1.x, v2.x) + pad, max(v0.y, v1.y, v2.y) + pad, max(v0.z, v1.z, v2.z) + pad),
        )

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        # Moller-Trumbore
        h = ray.direction.cross(self.edge2)
        a = self.edge1.dot(h)
        if abs(a) < 1e-10:
            return None  # parallel

        f = 1.0 / a
        s = ray.origin - self.v0
        u = f * s.dot(h)
        if u < 0.0 or u > 1.0:
            return None

        q = s.cross(self.edge1)
        v = f * ray.direction.dot(q)
        if v < 0.0 or u + v > 1.0:
            return None

        t = f * self.edge2.dot(q)
        if not t_min < t < t_max:
            return None
        return HitRecord.from_outward_normal(ray, t, ray.at(t), self.normal, self.material)

    def bounding_box(self) -> AABB:
        return self.box

    def to_dict(self, material_names: Optional[dict] = None) -> dict:
        return {self.kind: {
            "v0": list(self.v0),
            "v1": list(self.v1),
            "v2": list(self.v2),
            "material": _material_ref(self.material, material_names),
        }}

    def __repr__(self):
        return f"Triangle({self.v0!r}, {self.v1!r}, {self.v2!r}, material={self.material!r})"
