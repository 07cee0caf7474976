"""Path tracing integrator.

A path starts at the camera and bounces through the scene. At every bounce
the nearest hit is found and the hit material either absorbs the path or
scatters it, multiplying the path throughput by its attenuation. A path that
leaves the scene picks up the sky color:

    L = attenuation_1 * attenuation_2 * ... * attenuation_k * sky(direction)

A path that is absorbed, or that is still bouncing after ``max_depth`` scene
queries, contributes black. Taichi functions cannot recurse, so the
recursive estimator is evaluated as a loop with a throughput accumulator;
the result is identical.

The scene is passed as a template argument, so any object exposing the
``nearest_hit``, ``sky_color`` and ``materials.scatter`` Taichi functions can
be traced (see pathtracer.scene.Scene).
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from pathtracer.core.sampler import pixel_seed
from pathtracer.core.vector import safe_normalize, vec3

# Ray epsilon for avoiding self-intersection
RAY_EPSILON = 1e-4

# Default query interval for scene intersections
T_MIN = 1e-4
T_MAX = 1e10


@ti.func
def _offset_ray_origin(point: vec3, normal: vec3, direction: vec3) -> vec3:
    """Offset ray origin to avoid self-intersection.

    Pushes the point slightly along the normal toward the side the scattered
    ray travels to (above the surface for reflection, below for refraction).
    """
    offset_dir = normal
    if tm.dot(direction, normal) < 0.0:
        offset_dir = -normal
    return point + RAY_EPSILON * offset_dir


@ti.func
def trace_path(
    scene: ti.template(),
    ray_origin: vec3,
    ray_direction: vec3,
    max_depth: ti.i32,
    rng: ti.template(),
):
    """Trace a single path through the scene.

    Args:
        scene: The scene to trace against.
        ray_origin: Starting point of the path.
        ray_direction: Initial direction of the path.
        max_depth: Maximum number of scene queries along the path.
        rng: Per-pixel generator state, advanced in place.

    Returns:
        A tuple of (radiance, bounces) where bounces is the number of scene
        queries performed, never more than max_depth.
    """
    origin = ray_origin
    direction = ray_direction

    radiance = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    bounces = 0

    # Taichi doesn't support break in ti.func loops
    active = 1

    for _ in range(max_depth):
        if active == 1:
            bounces += 1
            hit_record = scene.nearest_hit(origin, direction, T_MIN, T_MAX)

            if hit_record.hit == 0:
                radiance = throughput * scene.sky_color(direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = scene.materials.scatter(
                    hit_record.material_id,
                    direction,
                    hit_record.normal,
                    hit_record.front_face,
                    rng,
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    origin = _offset_ray_origin(
                        hit_record.point, hit_record.normal, scattered_direction
                    )
                    direction = scattered_direction

    return radiance, bounces


@ti.func
def trace(
    scene: ti.template(),
    ray_origin: vec3,
    ray_direction: vec3,
    max_depth: ti.i32,
    rng: ti.template(),
) -> vec3:
    """Estimate the radiance arriving along a ray (see trace_path)."""
    radiance, _ = trace_path(scene, ray_origin, ray_direction, max_depth, rng)
    return radiance


@ti.kernel
def _trace_kernel(
    scene: ti.template(),
    origin: vec3,
    direction: vec3,
    max_depth: ti.i32,
    seed: ti.i32,
) -> ti.types.vector(4, ti.f32):
    rng = pixel_seed(seed, 0)
    unit = safe_normalize(direction, vec3(0.0, 0.0, -1.0))
    radiance, bounces = trace_path(scene, origin, unit, max_depth, rng)
    return ti.Vector([radiance.x, radiance.y, radiance.z, ti.cast(bounces, ti.f32)])


@dataclass(frozen=True)
class TraceResult:
    """Result of tracing one path from Python.

    Attributes:
        color: The path's radiance estimate.
        bounces: Number of scene queries the path made (<= max_depth).
    """

    color: tuple[float, float, float]
    bounces: int


def trace_ray(scene, origin, direction, max_depth: int, seed: int = 0) -> TraceResult:
    """Trace a single path from Python.

    Args:
        scene: The scene to trace against.
        origin: The ray origin.
        direction: The ray direction (non-zero).
        max_depth: Maximum number of scene queries (>= 0).
        seed: Seed for the path's random numbers.

    Returns:
        The TraceResult for the path.
    """
    if max_depth < 0:
        raise ValueError(f"max_depth = {max_depth} must be non-negative.")
    o = [float(c) for c in origin]
    d = [float(c) for c in direction]
    if len(o) != 3 or len(d) != 3:
        raise ValueError("origin and direction must have 3 components.")
    if not any(d):
        raise ValueError("direction must be non-zero.")

    packed = _trace_kernel(scene, vec3(*o), vec3(*d), max_depth, seed)
    return TraceResult(
        color=(float(packed[0]), float(packed[1]), float(packed[2])),
        bounces=int(round(float(packed[3]))),
    )
