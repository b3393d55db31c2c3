from typing import List, Optional

from pathtracer.core.geometry import Hittable
from pathtracer.core.material import HitRecord
from pathtracer.core.math import AABB, Ray


def _axis_key(axis: int):
    if axis == 0:
        return lambda o: o.bounding_box().centroid().x
    if axis == 1:
        return lambda o: o.bounding_box().centroid().y
    return lambda o: o.bounding_box().centroid().z


class BVHNode(Hittable):
    """Bounding volume hierarchy over bounded primitives.

    Splits at the median centroid along the longest axis of the node's box,
    so the tree shape depends only on the input order and geometry.
    """

    kind = "BVH"

    def __init__(self, objects: List[Hittable], start: int = 0, end: Optional[int] = None):
        if end is None:
            end = len(objects)
        span = end - start
        if span <= 0:
            raise ValueError("BVHNode needs at least one object")

        box = objects[start].bounding_box()
        for obj in objects[start + 1:end]:
            box = AABB.surrounding_box(box, obj.bounding_box())

        if span == 1:
            self.left = self.right = objects[start]
        elif span == 2:
            self.left = objects[start]
            self.right = objects[start + 1]
        else:
            objects[start:end] = sorted(objects[start:end], key=_axis_key(box.longest_axis()))
            mid = start + span // 2
            self.left = BVHNode(objects, start, mid)
            self.right = BVHNode(objects, mid, end)

        self.box = box

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        if not self.box.hit(ray, t_min, t_max):
            return None

        rec_left = self.left.hit(ray, t_min, t_max)
        if rec_left is not None:
            t_max = rec_left.t
        if self.right is self.left:
            return rec_left
        rec_right = self.right.hit(ray, t_min, t_max)
        return rec_right if rec_right is not None else rec_left

    def bounding_box(self) -> AABB:
        return self.box

    def to_dict(self, material_names: Optional[dict] = None) -> dict:
        raise TypeError("BVH nodes are derived data and are not serialized")
