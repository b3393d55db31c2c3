import math
from typing import Iterator, Optional

import numpy as np


class Vec3:
    """Three-component float vector used for points, directions and RGB colors.

    Instances are treated as values: no operation mutates them.
    """

    __slots__ = ("x", "y", "z")

    def __init__(self, x=0.0, y=0.0, z=0.0):
        self.x = float(x)
        self.y = float(y)
        self.z = float(z)

    def __add__(self, other):
        return Vec3(self.x + other.x,
                    self.y + other.y,
                    self.z + other.z)

    def __sub__(self, other):
        return Vec3(self.x - other.x,
                    self.y - other.y,
                    self.z - other.z)

    def __mul__(self, t):
        # scalar or component-wise (Hadamard) product
        if isinstance(t, Vec3):
            return Vec3(self.x * t.x,
                        self.y * t.y,
                        self.z * t.z)
        return Vec3(self.x * t, self.y * t, self.z * t)

    __rmul__ = __mul__

    def __truediv__(self, t):
        return Vec3(self.x / t, self.y / t, self.z / t)

    def __neg__(self):
        return Vec3(-self.x, -self.y, -self.z)

    def __eq__(self, other):
        if not isinstance(other, Vec3):
            return NotImplemented
        return self.x == other.x and self.y == other.y and self.z == other.z

    def __hash__(self):
        return hash((self.x, self.y, self.z))

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def __getstate__(self):
        return (self.x, self.y, self.z)

    def __setstate__(self, state):
        self.x, self.y, self.z = state

    def dot(self, other):
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other):
        return Vec3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x
        )

    def length_squared(self):
        return self.x * self.x + self.y * self.y + self.z * self.z

    def length(self):
        return math.sqrt(self.length_squared())

    def unit_vector(self):
        # zero-length input has no direction; callers guard with near_zero()
        l = self.length()
        if l == 0:
            return Vec3(0, 0, 0)
        return self / l

    def near_zero(self, eps: float = 1e-8) -> bool:
        return abs(self.x) < eps and abs(self.y) < eps and abs(self.z) < eps

    def reflect(self, normal):
        # r = v - 2 * dot(v, n) * n
        return self - normal * (2 * self.dot(normal))

    def refract(self, normal, eta_ratio) -> Optional["Vec3"]:
        """Bend this unit direction through a surface with unit ``normal``.

        ``normal`` must face the incoming direction and ``eta_ratio`` is
        eta_incident / eta_transmitted. Returns None on total internal
        reflection.
        """
        cos_theta = min(-self.dot(normal), 1.0)
        discr = 1.0 - eta_ratio * eta_ratio * (1.0 - cos_theta * cos_theta)
        if discr < 0:
            return None
        r_out_perp = (self + normal * cos_theta) * eta_ratio
        r_out_parallel = normal * -math.sqrt(discr)
        return r_out_perp + r_out_parallel

    def __repr__(self):
        return f"Vec3({self.x:.3f}, {self.y:.3f}, {self.z:.3f})"


Color = Vec3
Point3 = Vec3


def reflect(v: Vec3, n: Vec3) -> Vec3:
    return v.reflect(n)


def refract(uv: Vec3, n: Vec3, eta_ratio: float) -> Optional[Vec3]:
    return uv.refract(n, eta_ratio)


class Interval:
    """Real interval [min, max]; the default is empty."""

    __slots__ = ("min", "max")

    def __init__(self, min_val=math.inf, max_val=-math.inf):
        self.min = min_val
        self.max = max_val

    def size(self):
        return self.max - self.min

    def contains(self, x):
        return self.min <= x <= self.max

    def surrounds(self, x):
        return self.min < x < self.max

    def clamp(self, x):
        if x < self.min:
            return self.min
        if x > self.max:
            return self.max
        return x

    def __repr__(self):
        return f"Interval({self.min}, {self.max})"


Interval.EMPTY = Interval(math.inf, -math.inf)
Interval.UNIVERSE = Interval(-math.inf, math.inf)


class Ray:
    """Half-open parametric line origin + t * direction for t in (t_min, t_max)."""

    __slots__ = ("origin", "direction", "t_min", "t_max")

    def __init__(self, origin: Vec3, direction: Vec3, t_min: float = 0.0, t_max: float = math.inf):
        self.origin = origin
        self.direction = direction
        self.t_min = t_min
        self.t_max = t_max

    def at(self, t):
        return self.origin + self.direction * t

    def __repr__(self):
        return f"Ray({self.origin!r}, {self.direction!r}, t_min={self.t_min}, t_max={self.t_max})"


class AABB:
    def __init__(self, min_pt: Vec3, max_pt: Vec3):
        self.min = min_pt
        self.max = max_pt

    @staticmethod
    def surrounding_box(box0, box1):
        small = Vec3(
            min(box0.min.x, box1.min.x),
            min(box0.min.y, box1.min.y),
            min(box0.min.z, box1.min.z)
        )
        big = Vec3(
            max(box0.max.x, box1.max.x),
            max(box0.max.y, box1.max.y),
            max(box0.max.z, box1.max.z)
        )
        return AABB(small, big)

    def longest_axis(self) -> int:
        extent = self.max - self.min
        if extent.x >= extent.y and extent.x >= extent.z:
            return 0
        return 1 if extent.y >= extent.z else 2

    def centroid(self) -> Vec3:
        return (self.min + self.max) * 0.5

    def hit(self, ray: Ray, t_min: float, t_max: float) -> bool:
        # slab test, one axis at a time
        for origin, direction, lo, hi in (
            (ray.origin.x, ray.direction.x, self.min.x, self.max.x),
            (ray.origin.y, ray.direction.y, self.min.y, self.max.y),
            (ray.origin.z, ray.direction.z, self.min.z, self.max.z),
        ):
            if direction == 0.0:
                if origin < lo or origin > hi:
                    return False
                continue
            inv_d = 1.0 / direction
            t0 = (lo - origin) * inv_d
            t1 = (hi - origin) * inv_d
            if inv_d < 0.0:
                t0, t1 = t1, t0
            t_min = t0 if t0 > t_min else t_min
            t_max = t1 if t1 < t_max else t_max
            if t_max < t_min:
                return False
        return True

    def __repr__(self):
        return f"AABB({self.min!r}, {self.max!r})"


# Sampling helpers. Every caller passes its own generator so that no
# random state is shared between work units.

def random_vec(rng: np.random.Generator, lo: float = 0.0, hi: float = 1.0) -> Vec3:
    a, b, c = rng.uniform(lo, hi, 3)
    return Vec3(a, b, c)


def random_in_unit_sphere(rng: np.random.Generator) -> Vec3:
    while True:
        p = random_vec(rng, -1.0, 1.0)
        if p.length_squared() < 1.0:
            return p


def random_unit_vector(rng: np.random.Generator) -> Vec3:
    while True:
        p = random_vec(rng, -1.0, 1.0)
        lensq = p.length_squared()
        if 1e-160 < lensq <= 1.0:
            return p / math.sqrt(lensq)


def random_on_hemisphere(normal: Vec3, rng: np.random.Generator) -> Vec3:
    on_unit_sphere = random_unit_vector(rng)
    if on_unit_sphere.dot(normal) > 0.0:
        return on_unit_sphere
    return -on_unit_sphere


def random_in_unit_disk(rng: np.random.Generator) -> Vec3:
    while True:
        a, b = rng.uniform(-1.0, 1.0, 2)
        p = Vec3(a, b, 0.0)
        if p.length_squared() < 1.0:
            return p
