"""Thin-lens camera model with depth of field.

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport is placed on the focus plane, ``focus_distance`` in front of
the camera. Every ray starts at a random point on a lens disk of radius
``aperture / 2`` around the camera origin and passes through the viewport
point for (s, t). Points on the focus plane are therefore sharp while
everything nearer or farther is blurred in proportion to the aperture. An
aperture of 0 turns the camera into a pinhole: every ray starts at lookfrom
and no random numbers are drawn.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera import Camera, CameraConfig
    >>> camera = Camera(CameraConfig(
    ...     lookfrom=(0.0, 0.0, 3.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=60.0,
    ...     aspect_ratio=16.0 / 9.0,
    ...     aperture=0.1,
    ... ))
    >>> origins, directions = camera.sample_rays(0.5, 0.5, count=8)
"""

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np
import taichi as ti

from pathtracer.core.ray import Ray, make_ray
from pathtracer.core.sampler import pixel_seed, random_in_unit_disk
from pathtracer.core.vector import safe_normalize, vec3

Vec3Tuple = tuple[float, float, float]

# Minimum |vup x w| for a well-defined camera frame
_MIN_FRAME_NORM = 1e-6


@dataclass(frozen=True)
class CameraConfig:
    """Configuration for a thin-lens camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width divided by height of the viewport.
        aperture: Lens diameter; 0 gives a pinhole camera.
        focus_distance: Distance from lookfrom to the plane in perfect focus.
            None means the distance from lookfrom to lookat.
    """

    lookfrom: Vec3Tuple
    lookat: Vec3Tuple
    vup: Vec3Tuple = (0.0, 1.0, 0.0)
    vfov: float = 40.0
    aspect_ratio: float = 1.0
    aperture: float = 0.0
    focus_distance: Optional[float] = None

    def __post_init__(self) -> None:
        for name in ("lookfrom", "lookat", "vup"):
            value = tuple(float(c) for c in getattr(self, name))
            if len(value) != 3 or not all(math.isfinite(c) for c in value):
                raise ValueError(f"{name} must be 3 finite numbers, got {value}.")
            object.__setattr__(self, name, value)

        w = np.subtract(self.lookfrom, self.lookat)
        if np.linalg.norm(w) == 0.0:
            raise ValueError("lookfrom and lookat must be different points.")
        w = w / np.linalg.norm(w)
        if np.linalg.norm(np.cross(self.vup, w)) < _MIN_FRAME_NORM:
            raise ValueError(
                f"vup {self.vup} is zero or parallel to the view direction."
            )

        if not math.isfinite(self.vfov) or not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov = {self.vfov} must be in (0, 180) degrees.")
        if not math.isfinite(self.aspect_ratio) or self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio = {self.aspect_ratio} must be positive.")
        if not math.isfinite(self.aperture) or self.aperture < 0.0:
            raise ValueError(f"aperture = {self.aperture} must be non-negative.")
        if self.focus_distance is not None and (
            not math.isfinite(self.focus_distance) or self.focus_distance <= 0.0
        ):
            raise ValueError(f"focus_distance = {self.focus_distance} must be positive.")

    @property
    def lens_radius(self) -> float:
        return self.aperture / 2.0

    @property
    def resolved_focus_distance(self) -> float:
        """The focus distance, defaulting to |lookfrom - lookat|."""
        if self.focus_distance is not None:
            return float(self.focus_distance)
        return float(np.linalg.norm(np.subtract(self.lookfrom, self.lookat)))


@ti.data_oriented
class Camera:
    """A thin-lens camera whose frame lives in Taichi fields.

    The frame is computed once with NumPy and is read-only afterwards.

    Attributes:
        config: The configuration the camera was built from.
        lens_radius: Radius of the lens disk (aperture / 2).
        focus_distance: Distance to the plane in perfect focus.
    """

    def __init__(self, config: CameraConfig) -> None:
        if not isinstance(config, CameraConfig):
            raise ValueError(f"Expected a CameraConfig, got {type(config).__name__}.")
        self.config = config
        self.lens_radius = config.lens_radius
        self.focus_distance = config.resolved_focus_distance

        theta = math.radians(config.vfov)
        h = math.tan(theta / 2.0)

        # Viewport dimensions on the focus plane
        viewport_height = 2.0 * h * self.focus_distance
        viewport_width = config.aspect_ratio * viewport_height

        lookfrom = np.array(config.lookfrom, dtype=np.float64)
        lookat = np.array(config.lookat, dtype=np.float64)
        vup = np.array(config.vup, dtype=np.float64)

        w = lookfrom - lookat
        w = w / np.linalg.norm(w)
        u = np.cross(vup, w)
        u = u / np.linalg.norm(u)
        v = np.cross(w, u)

        horizontal = viewport_width * u
        vertical = viewport_height * v
        lower_left = lookfrom - self.focus_distance * w - horizontal / 2.0 - vertical / 2.0

        self.origin = ti.Vector.field(3, dtype=ti.f32)
        self.u = ti.Vector.field(3, dtype=ti.f32)
        self.v = ti.Vector.field(3, dtype=ti.f32)
        self.w = ti.Vector.field(3, dtype=ti.f32)
        self.horizontal = ti.Vector.field(3, dtype=ti.f32)
        self.vertical = ti.Vector.field(3, dtype=ti.f32)
        self.lower_left = ti.Vector.field(3, dtype=ti.f32)

        builder = ti.FieldsBuilder()
        builder.place(
            self.origin,
            self.u,
            self.v,
            self.w,
            self.horizontal,
            self.vertical,
            self.lower_left,
        )
        self._snode_tree = builder.finalize()

        self.origin[None] = lookfrom.tolist()
        self.u[None] = u.tolist()
        self.v[None] = v.tolist()
        self.w[None] = w.tolist()
        self.horizontal[None] = horizontal.tolist()
        self.vertical[None] = vertical.tolist()
        self.lower_left[None] = lower_left.tolist()

    @property
    def aspect_ratio(self) -> float:
        return self.config.aspect_ratio

    def destroy(self) -> None:
        """Release the camera frame fields. The camera must not be used afterwards."""
        if self._snode_tree is not None:
            self._snode_tree.destroy()
            self._snode_tree = None

    @ti.func
    def generate_ray(self, s: ti.f32, t: ti.f32, rng: ti.template()) -> Ray:
        """Generate a ray through normalized viewport coordinates (s, t).

        Args:
            s: Horizontal coordinate, 0 = left edge, 1 = right edge.
            t: Vertical coordinate, 0 = bottom edge, 1 = top edge.
            rng: Per-pixel generator state, advanced in place when the lens
                has a non-zero radius.

        Returns:
            A Ray from a point on the lens toward the focus-plane point for
            (s, t), with a unit direction.
        """
        origin = self.origin[None]
        if ti.static(self.lens_radius > 0.0):
            disk = self.lens_radius * random_in_unit_disk(rng)
            origin = origin + self.u[None] * disk.x + self.v[None] * disk.y

        target = self.lower_left[None] + s * self.horizontal[None] + t * self.vertical[None]
        direction = safe_normalize(target - origin, -self.w[None])
        return make_ray(origin, direction)

    @ti.kernel
    def _sample_kernel(
        self,
        s: ti.f32,
        t: ti.f32,
        seed: ti.i32,
        origins: ti.types.ndarray(dtype=vec3, ndim=1),
        directions: ti.types.ndarray(dtype=vec3, ndim=1),
    ):
        for i in range(origins.shape[0]):
            rng = pixel_seed(seed, i)
            ray = self.generate_ray(s, t, rng)
            origins[i] = ray.origin
            directions[i] = ray.direction

    def sample_rays(
        self, s: float, t: float, count: int, seed: int = 0
    ) -> tuple[np.ndarray, np.ndarray]:
        """Generate ``count`` independent rays for one viewport point.

        Args:
            s: Horizontal viewport coordinate in [0, 1].
            t: Vertical viewport coordinate in [0, 1].
            count: Number of rays to draw.
            seed: Seed for the lens samples.

        Returns:
            A tuple (origins, directions) of float32 arrays of shape (count, 3).
        """
        if count <= 0:
            raise ValueError(f"count = {count} must be positive.")
        origins = np.zeros((count, 3), dtype=np.float32)
        directions = np.zeros((count, 3), dtype=np.float32)
        self._sample_kernel(s, t, seed, origins, directions)
        return origins, directions

    def info(self) -> dict[str, tuple[float, float, float]]:
        """Return the camera frame for debugging.

        Returns:
            Dictionary with origin, u, v, w, horizontal, vertical, lower_left.
        """
        result = {}
        for name in ("origin", "u", "v", "w", "horizontal", "vertical", "lower_left"):
            vec = getattr(self, name)[None]
            result[name] = (float(vec[0]), float(vec[1]), float(vec[2]))
        return result
