"""Vector and color helpers for use inside Taichi kernels.

Colors and points share the ``vec3`` type from ``taichi.math``, which already
provides addition, scaling, dot, cross and length; ``*`` between two vectors
is the component-wise product used for tinting a color by an attenuation.

The optical helpers follow the usual conventions:
    reflect(v, n) = v - 2 * dot(v, n) * n
    refract(v, n, eta) splits the refracted ray into the components
    perpendicular and parallel to n (Snell's law) and reports total
    internal reflection instead of returning a direction.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.vector import reflect, vec3
    >>> @ti.kernel
    ... def bounce() -> vec3:
    ...     return reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))
    >>> bounce()  # (1, 1, 0)
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Components below this magnitude count as zero
NEAR_ZERO_EPSILON = 1e-8


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check whether every component of a vector is near zero.

    Args:
        v: The vector to check.

    Returns:
        1 if all components are below NEAR_ZERO_EPSILON in magnitude, 0 otherwise.
    """
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def safe_normalize(v: vec3, fallback: vec3) -> vec3:
    """Normalize a vector, substituting a fallback for degenerate input.

    Normalizing a (near) zero vector divides by zero and would push NaNs
    through the rest of the path, so the fallback is returned unchanged
    instead.

    Args:
        v: The vector to normalize.
        fallback: The direction to use when v has near-zero length.

    Returns:
        v / |v|, or fallback when |v| is near zero.
    """
    result = fallback
    len_sq = tm.dot(v, v)
    if len_sq > NEAR_ZERO_EPSILON * NEAR_ZERO_EPSILON:
        result = v / ti.sqrt(len_sq)
    return result


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Args:
        incident: The incoming direction (pointing toward the surface).
        normal: The surface normal (unit length).

    Returns:
        The mirrored direction; its length equals the incident length.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, eta_ratio: ti.f32):
    """Refract a unit incident vector through a surface using Snell's law.

    Args:
        incident: The incoming direction (unit length).
        normal: The surface normal facing the incident ray (unit length).
        eta_ratio: Ratio of refractive indices n_incident / n_transmitted.

    Returns:
        A tuple of (direction, did_refract) where:
        - direction: The unit refracted direction, or the zero vector.
        - did_refract: 0 when total internal reflection occurs (the
          discriminant 1 - |r_perp|^2 is negative), 1 otherwise.
    """
    cos_theta = tm.min(-tm.dot(incident, normal), 1.0)
    r_out_perp = eta_ratio * (incident + cos_theta * normal)
    discriminant = 1.0 - tm.dot(r_out_perp, r_out_perp)

    direction = vec3(0.0, 0.0, 0.0)
    did_refract = 0
    if discriminant >= 0.0:
        r_out_parallel = -ti.sqrt(discriminant) * normal
        direction = r_out_perp + r_out_parallel
        did_refract = 1
    return direction, did_refract


@ti.func
def schlick_reflectance(cosine: ti.f32, refractive_index: ti.f32) -> ti.f32:
    """Approximate Fresnel reflectance with Schlick's formula.

    R(theta) = R0 + (1 - R0) * (1 - cos(theta))^5,
    R0 = ((1 - n) / (1 + n))^2

    Args:
        cosine: Cosine of the angle between incident ray and normal.
        refractive_index: Index (or index ratio) of the interface.

    Returns:
        Reflection probability in [0, 1].
    """
    r0 = (1.0 - refractive_index) / (1.0 + refractive_index)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)

