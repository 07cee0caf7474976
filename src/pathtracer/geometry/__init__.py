"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive, the shared HitRecord and ray-sphere intersection
    rect: Axis-aligned rectangle primitive and ray-rectangle intersection
    aabb: Host-side axis-aligned bounding boxes

Intersection routines are Taichi functions (@ti.func) sharing one contract:

    record = hit_shape(ray_origin, ray_direction, shape, t_min, t_max)

where record.hit == 0 means the ray missed within (t_min, t_max).
"""

from .aabb import Aabb, union
from .rect import AXIS_X, AXIS_Y, AXIS_Z, AxisAlignedRect, hit_rect
from .sphere import HitRecord, Sphere, hit_sphere, make_miss_record

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_miss_record",
    "AxisAlignedRect",
    "hit_rect",
    "AXIS_X",
    "AXIS_Y",
    "AXIS_Z",
    "Aabb",
    "union",
]
