"""Parallel render loop and the render entry point.

The image is rendered by one kernel whose outermost loop runs over image
rows; Taichi splits those rows across ``thread_count`` CPU threads. Each
pixel is written by exactly one iteration, reads nothing but the read-only
scene and camera, and draws all of its random numbers from its own
generator seeded with (seed, row * width + col). The image therefore does
not depend on the order rows finish. It is also bit-identical for any
number of threads when Taichi runs without fast math
(``ti.init(arch=ti.cpu, fast_math=False)``); with fast math the serial and
threaded loops may round differently in the last bits.

The output is written into a NumPy array passed to the kernel, so a render
allocates no Taichi fields and repeated renders reuse the compiled kernel.

For each pixel:
    1. Draw ``samples_per_pixel`` jittered viewport positions (s, t)
    2. Trace one path per position
    3. Zero out NaN/Inf samples, clamp negatives, and average
    4. Apply gamma correction: c ** (1 / gamma)

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.render import render
    >>> from pathtracer.scene import create_demo_scene
    >>> scene, camera = create_demo_scene()
    >>> image = render(scene, camera, 320, 180, samples_per_pixel=16, thread_count=4)
    >>> image.to_rgb8().shape
    (180, 320, 3)
"""

import logging
import math
import os
import time
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any, Optional, Union

import numpy as np
import taichi as ti
import taichi.math as tm

from pathtracer.camera import Camera, CameraConfig
from pathtracer.core.integrator import trace
from pathtracer.core.sampler import next_float, pixel_seed
from pathtracer.core.vector import vec3
from pathtracer.render.framebuffer import Framebuffer
from pathtracer.scene import Scene

logger = logging.getLogger(__name__)

_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1

# Relative aspect ratio mismatch tolerated without a warning
_ASPECT_TOLERANCE = 1e-3


@dataclass(frozen=True)
class RenderSettings:
    """Parameters of a render job.

    Attributes:
        width: Image width in pixels (>= 1).
        height: Image height in pixels (>= 1).
        samples_per_pixel: Paths traced per pixel (>= 1).
        max_depth: Maximum scene queries per path (>= 0).
        thread_count: CPU threads for the row loop; None means os.cpu_count().
        seed: Global seed for every pixel's random numbers (32-bit signed).
        gamma: Display gamma; pixels are stored as c ** (1 / gamma).
    """

    width: int
    height: int
    samples_per_pixel: int = 16
    max_depth: int = 8
    thread_count: Optional[int] = None
    seed: int = 0
    gamma: float = 2.0

    def __post_init__(self) -> None:
        for name, minimum in (
            ("width", 1),
            ("height", 1),
            ("samples_per_pixel", 1),
            ("max_depth", 0),
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
                raise ValueError(f"{name} = {value!r} must be an integer >= {minimum}.")
        if self.thread_count is not None and (
            isinstance(self.thread_count, bool)
            or not isinstance(self.thread_count, int)
            or self.thread_count < 1
        ):
            raise ValueError(f"thread_count = {self.thread_count!r} must be None or an integer >= 1.")
        if (
            isinstance(self.seed, bool)
            or not isinstance(self.seed, int)
            or not _I32_MIN <= self.seed <= _I32_MAX
        ):
            raise ValueError(f"seed = {self.seed!r} must be a 32-bit signed integer.")
        if not math.isfinite(self.gamma) or self.gamma <= 0.0:
            raise ValueError(f"gamma = {self.gamma} must be positive.")

    @property
    def resolved_thread_count(self) -> int:
        """Thread count with None replaced by the number of CPUs."""
        if self.thread_count is not None:
            return self.thread_count
        return os.cpu_count() or 1

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RenderSettings":
        """Build settings from a mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown render settings: {sorted(unknown)}")
        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@ti.kernel
def _render_rows(
    scene: ti.template(),
    camera: ti.template(),
    pixels: ti.types.ndarray(dtype=vec3, ndim=2),
    width: ti.i32,
    height: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
    seed: ti.i32,
    inv_gamma: ti.f32,
    thread_count: ti.template(),
):
    ti.loop_config(parallelize=thread_count)
    for row in range(height):
        for col in range(width):
            rng = pixel_seed(seed, row * width + col)
            total = vec3(0.0, 0.0, 0.0)

            for _ in range(samples_per_pixel):
                # Row 0 is the top of the image, t = 0 the bottom of the viewport
                s = (ti.cast(col, ti.f32) + next_float(rng)) / ti.cast(width, ti.f32)
                t = (ti.cast(height - 1 - row, ti.f32) + next_float(rng)) / ti.cast(height, ti.f32)
                ray = camera.generate_ray(s, t, rng)
                color = trace(scene, ray.origin, ray.direction, max_depth, rng)

                # Clamp negative values (numerical errors)
                color = tm.max(color, vec3(0.0, 0.0, 0.0))

                # Check for NaN/Inf and replace with zero
                for c in ti.static(range(3)):
                    if tm.isnan(color[c]) or tm.isinf(color[c]):
                        color[c] = 0.0

                total += color

            mean = total / ti.cast(samples_per_pixel, ti.f32)
            pixels[row, col] = mean**inv_gamma


def render_with_settings(
    scene: Scene,
    camera: Union[Camera, CameraConfig],
    settings: RenderSettings,
) -> Framebuffer:
    """Render a scene with the given settings.

    A CameraConfig is turned into a Camera that lives only for this call.
    Passing the same Camera to repeated renders also reuses the compiled
    kernel.

    Args:
        scene: The scene to render.
        camera: The camera, or a CameraConfig to build one from.
        settings: The render job parameters.

    Returns:
        The rendered Framebuffer.

    Raises:
        ValueError: If the scene or camera has the wrong type.
    """
    if not isinstance(scene, Scene):
        raise ValueError(f"Expected a Scene, got {type(scene).__name__}.")
    if isinstance(camera, CameraConfig):
        temporary = Camera(camera)
        try:
            return _render_frame(scene, temporary, settings)
        finally:
            temporary.destroy()
    if not isinstance(camera, Camera):
        raise ValueError(f"Expected a Camera or CameraConfig, got {type(camera).__name__}.")
    return _render_frame(scene, camera, settings)


def _render_frame(scene: Scene, camera: Camera, settings: RenderSettings) -> Framebuffer:
    image_aspect = settings.width / settings.height
    if abs(camera.aspect_ratio - image_aspect) > _ASPECT_TOLERANCE * image_aspect:
        logger.warning(
            "Camera aspect ratio %.4f does not match image aspect ratio %.4f (%dx%d); "
            "the image will be stretched",
            camera.aspect_ratio,
            image_aspect,
            settings.width,
            settings.height,
        )

    thread_count = settings.resolved_thread_count
    logger.info(
        "Rendering %dx%d, %d spp, max depth %d, %d threads, seed %d (%d primitives)",
        settings.width,
        settings.height,
        settings.samples_per_pixel,
        settings.max_depth,
        thread_count,
        settings.seed,
        len(scene),
    )

    start = time.perf_counter()
    pixels = np.zeros((settings.height, settings.width, 3), dtype=np.float32)
    _render_rows(
        scene,
        camera,
        pixels,
        settings.width,
        settings.height,
        settings.samples_per_pixel,
        settings.max_depth,
        settings.seed,
        1.0 / settings.gamma,
        thread_count,
    )
    framebuffer = Framebuffer(pixels)
    elapsed = time.perf_counter() - start

    logger.info("Rendered %dx%d in %.2f s", settings.width, settings.height, elapsed)
    return framebuffer


def render(
    scene: Scene,
    camera: Union[Camera, CameraConfig],
    width: int,
    height: int,
    samples_per_pixel: int = 16,
    max_depth: int = 8,
    thread_count: Optional[int] = None,
    *,
    seed: int = 0,
    gamma: float = 2.0,
) -> Framebuffer:
    """Render a scene into a Framebuffer.

    Args:
        scene: The scene to render.
        camera: The camera, or a CameraConfig to build one from.
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Paths traced per pixel.
        max_depth: Maximum scene queries per path.
        thread_count: CPU threads for the row loop; None uses every CPU.
            The result does not depend on this value as long as Taichi was
            initialised with fast_math=False.
        seed: Global random seed.
        gamma: Display gamma.

    Returns:
        The rendered Framebuffer, row 0 at the top.

    Raises:
        ValueError: If any parameter is invalid.
    """
    settings = RenderSettings(
        width=width,
        height=height,
        samples_per_pixel=samples_per_pixel,
        max_depth=max_depth,
        thread_count=thread_count,
        seed=seed,
        gamma=gamma,
    )
    return render_with_settings(scene, camera, settings)
