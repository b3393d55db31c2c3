import math
from dataclasses import dataclass, field
from typing import List, Optional, Union

from pathtracer.config import DEFAULT_SEED
from pathtracer.core.acceleration import BVHNode
from pathtracer.core.camera import Camera
from pathtracer.core.errors import SceneError
from pathtracer.core.geometry import Hittable
from pathtracer.core.material import HitRecord
from pathtracer.core.math import Color, Point3, Ray, Vec3


@dataclass
class CameraParams:
    lookfrom: Point3 = field(default_factory=lambda: Vec3(0, 0, 0))
    lookat: Point3 = field(default_factory=lambda: Vec3(0, 0, -1))
    vup: Vec3 = field(default_factory=lambda: Vec3(0, 1, 0))
    vfov: float = 90.0
    aspect: Optional[float] = None  # None: taken from the image size
    aperture: float = 0.0
    focus_dist: float = 1.0

    @classmethod
    def from_defocus_angle(cls, lookfrom: Point3, lookat: Point3, vup: Vec3, vfov: float,
                           defocus_angle: float, focus_dist: float,
                           aspect: Optional[float] = None) -> "CameraParams":
        """Build params from a defocus cone angle (degrees) instead of an aperture."""
        if defocus_angle < 0.0:
            raise SceneError(f"defocus_angle must be non-negative, got {defocus_angle}")
        aperture = 2.0 * focus_dist * math.tan(math.radians(defocus_angle / 2.0))
        return cls(lookfrom, lookat, vup, vfov, aspect, aperture, focus_dist)

    def build(self, aspect: Optional[float] = None) -> Camera:
        aspect = self.aspect if self.aspect is not None else aspect
        if aspect is None:
            raise SceneError("camera aspect ratio is unknown")
        return Camera(self.lookfrom, self.lookat, self.vup, self.vfov, aspect,
                      self.aperture, self.focus_dist)


def _positive_int(name: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise SceneError(f"{name} must be a positive integer, got {value!r}")


@dataclass
class RenderSettings:
    width: int = 400
    height: int = 225
    samples_per_pixel: int = 10
    max_depth: int = 10
    seed: int = DEFAULT_SEED
    workers: Optional[int] = None  # None: one per CPU

    def __post_init__(self):
        _positive_int("width", self.width)
        _positive_int("height", self.height)
        _positive_int("samples_per_pixel", self.samples_per_pixel)
        _positive_int("max_depth", self.max_depth)
        if isinstance(self.seed, bool) or not isinstance(self.seed, int) or self.seed < 0:
            raise SceneError(f"seed must be a non-negative integer, got {self.seed!r}")
        if self.workers is not None:
            _positive_int("workers", self.workers)

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


class SkyBackground:
    """Vertical white-to-blue gradient keyed on the ray direction."""

    def __init__(self, horizon: Color = None, zenith: Color = None):
        self.horizon = horizon if horizon is not None else Color(1.0, 1.0, 1.0)
        self.zenith = zenith if zenith is not None else Color(0.5, 0.7, 1.0)

    def __call__(self, ray: Ray) -> Color:
        unit_direction = ray.direction.unit_vector()
        a = 0.5 * (unit_direction.y + 1.0)
        return self.horizon * (1.0 - a) + self.zenith * a

    def to_json(self):
        return "sky"

    def __repr__(self):
        return f"SkyBackground(horizon={self.horizon!r}, zenith={self.zenith!r})"


class ConstantBackground:
    def __init__(self, color: Color):
        self.color = color

    def __call__(self, ray: Ray) -> Color:
        return self.color

    def to_json(self):
        return list(self.color)

    def __repr__(self):
        return f"ConstantBackground({self.color!r})"


Background = Union[SkyBackground, ConstantBackground]


class World:
    """Ordered collection of primitives answering closest-hit queries."""

    def __init__(self, objects: Optional[List[Hittable]] = None):
        self.objects: List[Hittable] = list(objects) if objects else []
        self.bvh_root: Optional[BVHNode] = None
        self.unbounded: List[Hittable] = []

    def add(self, obj: Hittable) -> None:
        self.objects.append(obj)
        self.bvh_root = None

    def __len__(self):
        return len(self.objects)

    def __iter__(self):
        return iter(self.objects)

    def build_bvh(self) -> None:
        bounded = [o for o in self.objects if o.bounding_box() is not None]
        self.unbounded = [o for o in self.objects if o.bounding_box() is None]
        self.bvh_root = BVHNode(bounded) if bounded else None
        if self.bvh_root is None:
            # nothing to accelerate; fall back to the linear scan
            self.unbounded = []

    def closest_hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        if self.bvh_root is not None:
            closest = self.bvh_root.hit(ray, t_min, t_max)
            candidates = self.unbounded
        else:
            closest = None
            candidates = self.objects

        closest_so_far = closest.t if closest is not None else t_max
        for obj in candidates:
            rec = obj.hit(ray, t_min, closest_so_far)
            if rec is not None:
                closest_so_far = rec.t
                closest = rec
        return closest


@dataclass
class Scene:
    """Everything a render needs: geometry, camera, settings and background."""

    world: World
    camera: CameraParams
    settings: RenderSettings
    background: Background = field(default_factory=SkyBackground)

    def build_camera(self) -> Camera:
        return self.camera.build(self.settings.aspect_ratio)
