"""Axis-aligned rectangle primitive with ray-rectangle intersection.

An axis-aligned rectangle lies in the plane ``coord[axis] == k`` and is
bounded on the two remaining ("free") axes:

    axis = 0 (X): plane x = k, bounds on (y, z)
    axis = 1 (Y): plane y = k, bounds on (x, z)
    axis = 2 (Z): plane z = k, bounds on (x, y)

The outward normal is the positive unit vector of the fixed axis; like the
sphere, the reported normal is flipped to oppose the incoming ray and the
original winding is recorded in ``front_face``.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.geometry.rect import AxisAlignedRect, hit_rect
    >>> # Floor at y = 0 spanning x in [-1, 1] and z in [-2, 0]
    >>> floor = AxisAlignedRect(axis=1, a0=-1.0, a1=1.0, b0=-2.0, b1=0.0, k=0.0)
    >>> # Use hit_rect within a Taichi kernel
"""

import taichi as ti

from pathtracer.core.vector import vec3
from pathtracer.geometry.sphere import HitRecord, make_miss_record, oriented_hit_record

# Index of the fixed (plane) axis
AXIS_X = 0
AXIS_Y = 1
AXIS_Z = 2


@ti.dataclass
class AxisAlignedRect:
    """A rectangle in an axis-aligned plane.

    Attributes:
        axis: The fixed axis of the plane (0 = X, 1 = Y, 2 = Z).
        a0: Lower bound on the first free axis.
        a1: Upper bound on the first free axis (a0 < a1).
        b0: Lower bound on the second free axis.
        b1: Upper bound on the second free axis (b0 < b1).
        k: Offset of the plane along the fixed axis.
    """

    axis: ti.i32
    a0: ti.f32
    a1: ti.f32
    b0: ti.f32
    b1: ti.f32
    k: ti.f32


@ti.func
def axis_component(v: vec3, axis: ti.i32) -> ti.f32:
    """Select the x, y or z component of a vector by axis index."""
    result = v.x
    if axis == AXIS_Y:
        result = v.y
    elif axis == AXIS_Z:
        result = v.z
    return result


@ti.func
def axis_unit_vector(axis: ti.i32) -> vec3:
    """Return the positive unit vector along an axis."""
    result = vec3(1.0, 0.0, 0.0)
    if axis == AXIS_Y:
        result = vec3(0.0, 1.0, 0.0)
    elif axis == AXIS_Z:
        result = vec3(0.0, 0.0, 1.0)
    return result


@ti.func
def free_axes(axis: ti.i32):
    """Return the two bounded axes of a rectangle, in ascending order."""
    first = AXIS_X
    second = AXIS_Y
    if axis == AXIS_X:
        first = AXIS_Y
        second = AXIS_Z
    elif axis == AXIS_Y:
        second = AXIS_Z
    return first, second


@ti.func
def hit_rect(
    ray_origin: vec3,
    ray_direction: vec3,
    rect: AxisAlignedRect,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-rectangle intersection.

    1. Solve origin[axis] + t * direction[axis] = k for t.
    2. Reject t outside (t_min, t_max).
    3. Reject hit points outside [a0, a1] x [b0, b1] on the free axes.

    Rays parallel to the plane never hit.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be unit length).
        rect: The rectangle to test intersection against.
        t_min: Lower bound for accepted hits.
        t_max: Upper bound for accepted hits.

    Returns:
        A HitRecord; check the hit field to see whether an intersection occurred.
    """
    result = make_miss_record()

    origin_k = axis_component(ray_origin, rect.axis)
    direction_k = axis_component(ray_direction, rect.axis)

    if ti.abs(direction_k) > 1e-8:
        t = (rect.k - origin_k) / direction_k

        if t > t_min and t < t_max:
            hit_point = ray_origin + t * ray_direction
            first, second = free_axes(rect.axis)
            a = axis_component(hit_point, first)
            b = axis_component(hit_point, second)

            if rect.a0 <= a <= rect.a1 and rect.b0 <= b <= rect.b1:
                outward_normal = axis_unit_vector(rect.axis)
                result = oriented_hit_record(t, hit_point, ray_direction, outward_normal)

    return result
