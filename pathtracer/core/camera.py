import math

import numpy as np

from pathtracer.core.errors import SceneError
from pathtracer.core.math import Point3, Ray, Vec3, random_in_unit_disk


class Camera:
    """Thin-lens camera.

    The image plane sits ``focus_dist`` in front of ``lookfrom``; rays leave
    from a disk of radius ``aperture / 2`` so that only the focus plane is
    sharp. ``get_ray(s, t)`` takes image coordinates in [0, 1] measured from
    the lower-left corner.
    """

    def __init__(self,
                 lookfrom: Point3,
                 lookat: Point3,
                 vup: Vec3,
                 vfov: float,        # vertical field of view, degrees
                 aspect: float,      # width / height
                 aperture: float = 0.0,
                 focus_dist: float = 1.0):
        if not 0.0 < vfov < 180.0:
            raise SceneError(f"vfov must be in (0, 180) degrees, got {vfov}")
        if aspect <= 0.0:
            raise SceneError(f"aspect ratio must be positive, got {aspect}")
        if aperture < 0.0:
            raise SceneError(f"aperture must be non-negative, got {aperture}")

        view = lookfrom - lookat
        if view.near_zero():
            raise SceneError("lookfrom and lookat must be different points")
        if focus_dist <= 0.0:
            raise SceneError(f"focus_dist must be positive, got {focus_dist}")
        side = vup.cross(view)
        if side.near_zero():
            raise SceneError("vup must not be parallel to the viewing direction")

        self.origin = lookfrom
        self.lens_radius = aperture / 2.0

        theta = math.radians(vfov)
        half_height = math.tan(theta / 2)
        half_width = aspect * half_height

        # orthonormal basis: w points backwards, u right, v up
        self.w = view.unit_vector()
        self.u = side.unit_vector()
        self.v = self.w.cross(self.u)

        self.lower_left_corner = (self.origin
                                  - self.u * (half_width * focus_dist)
                                  - self.v * (half_height * focus_dist)
                                  - self.w * focus_dist)
        self.horizontal = self.u * (2 * half_width * focus_dist)
        self.vertical = self.v * (2 * half_height * focus_dist)

    def get_ray(self, s: float, t: float, rng: np.random.Generator = None) -> Ray:
        origin = self.origin
        if self.lens_radius > 0.0:
            if rng is None:
                raise ValueError("a generator is required when the lens has an aperture")
            rd = random_in_unit_disk(rng) * self.lens_radius
            origin = origin + self.u * rd.x + self.v * rd.y

        direction = (self.lower_left_corner +
                     self.horizontal * s +
                     self.vertical * t -
                     origin)
        return Ray(origin, direction.unit_vector())

    def __repr__(self):
        return (f"Camera(origin={self.origin!r}, lower_left_corner={self.lower_left_corner!r}, "
                f"lens_radius={self.lens_radius})")
