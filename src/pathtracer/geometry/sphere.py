"""Spheres and the hit record shared by every primitive.

hit_sphere takes the two roots of the ray-sphere quadratic as q / a and
c / q, where q carries the sign of the linear term. Neither root then comes
from subtracting two nearly equal f32 values, so grazing rays and far-away
spheres keep accurate hit distances.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.geometry.sphere import Sphere, hit_sphere, vec3
    >>> sphere = Sphere(center=vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.vector import vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: Whether the ray intersected the primitive (1 if hit, 0 if miss).
        t: The ray parameter of the intersection. Only valid if hit == 1.
        point: The intersection point. Only valid if hit == 1.
        normal: The unit surface normal, oriented against the incoming ray.
            Only valid if hit == 1.
        front_face: 1 if the ray arrived on the side the outward normal points
            to, 0 if it arrived from behind (e.g. from inside a sphere).
            Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
    )


@ti.func
def oriented_hit_record(
    t: ti.f32,
    point: vec3,
    ray_direction: vec3,
    outward_normal: vec3,
) -> HitRecord:
    """Build a hit record whose normal faces the incoming ray.

    Args:
        t: The ray parameter of the intersection.
        point: The intersection point.
        ray_direction: The direction of the incoming ray.
        outward_normal: The unit geometric normal of the primitive.

    Returns:
        A HitRecord with hit == 1 and front_face recording the original winding.
    """
    is_front_face = 1
    normal = outward_normal
    if tm.dot(ray_direction, outward_normal) > 0.0:
        # Ray travels along the outward normal: it hits the back face
        is_front_face = 0
        normal = -outward_normal

    return HitRecord(
        hit=1,
        t=t,
        point=point,
        normal=normal,
        front_face=is_front_face,
    )


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection.

    Solves |ray_origin + t * ray_direction - center|^2 = radius^2, i.e.

        a*t^2 + 2*h*t + c = 0
        a = dot(direction, direction)
        h = dot(direction, origin - center)
        c = |origin - center|^2 - radius^2

    and accepts the smaller root inside (t_min, t_max), falling back to the
    larger one (the exit point) when the smaller root is out of range.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be unit length).
        sphere: The sphere to test intersection against.
        t_min: Lower bound for accepted hits; positive to avoid self-intersection.
        t_max: Upper bound for accepted hits (the current closest hit).

    Returns:
        A HitRecord; check the hit field to see whether an intersection occurred.
    """
    oc = ray_origin - sphere.center

    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = h * h - a * c

    result = make_miss_record()

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)

        # q takes the sign of -h, so neither root subtracts nearly equal terms
        q = -h - ti.select(h < 0.0, -sqrt_d, sqrt_d)
        near = (-h - sqrt_d) / a
        far = (-h + sqrt_d) / a
        if ti.abs(q) > 1e-10:
            near = ti.min(q / a, c / q)
            far = ti.max(q / a, c / q)

        t = near
        valid = (t > t_min) and (t < t_max)

        if not valid:
            t = far
            valid = (t > t_min) and (t < t_max)

        if valid:
            hit_point = ray_origin + t * ray_direction
            outward_normal = (hit_point - sphere.center) / sphere.radius
            result = oriented_hit_record(t, hit_point, ray_direction, outward_normal)

    return result
