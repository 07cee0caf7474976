"""Scene storage and nearest-hit queries.

A Scene packs its primitive specs into Taichi fields once, at construction,
and never writes them again; any number of kernels may read it concurrently.
Each scene owns its own SNode tree, so several scenes can coexist, and
``destroy()`` releases the tree once the scene is no longer needed.

Spheres and rectangles are kept in separate arrays. A nearest-hit query
visits every primitive and shrinks the accepted interval to the closest hit
found so far:

    closest_t = t_max
    for each primitive:
        rec = hit(primitive, t_min, closest_t)
        if rec.hit: closest_t = rec.t

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials import Lambertian
    >>> from pathtracer.scene import Scene, SphereSpec
    >>> scene = Scene([SphereSpec((0, 0, -1), 0.5, Lambertian((0.5, 0.5, 0.5)))])
    >>> scene.intersect((0, 0, 0), (0, 0, -1)).t  # 0.5
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

import numpy as np
import taichi as ti

from pathtracer.core.integrator import T_MAX, T_MIN
from pathtracer.core.vector import safe_normalize, vec3
from pathtracer.geometry.aabb import Aabb, Vec3Tuple, union
from pathtracer.geometry.rect import AxisAlignedRect, hit_rect
from pathtracer.geometry.sphere import HitRecord, Sphere, hit_sphere
from pathtracer.materials import Material, MaterialTable
from pathtracer.scene.description import (
    Primitive,
    RectSpec,
    Sky,
    SphereSpec,
    material_from_dict,
    primitive_from_dict,
)

logger = logging.getLogger(__name__)


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Attributes:
        hit: 1 if any primitive was struck, 0 otherwise.
        t: Ray parameter of the nearest hit.
        point: The hit point.
        normal: Unit normal facing the incoming ray.
        front_face: 1 if the ray hit the outward side of the surface.
        material_id: Row of the hit primitive's material in the scene's
            MaterialTable. -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


@ti.func
def _to_scene_hit_record(rec: HitRecord, material_id: ti.i32) -> SceneHitRecord:
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        front_face=rec.front_face,
        material_id=material_id,
    )


@ti.func
def _make_miss_record() -> SceneHitRecord:
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@dataclass(frozen=True)
class Hit:
    """Host-side copy of a nearest-hit result.

    Attributes:
        t: Ray parameter of the hit.
        point: The hit point.
        normal: Unit normal facing the incoming ray.
        front_face: True if the ray hit the outward side of the surface.
        material: The material of the hit primitive.
    """

    t: float
    point: Vec3Tuple
    normal: Vec3Tuple
    front_face: bool
    material: Material


@ti.data_oriented
class Scene:
    """An immutable collection of primitives plus the background sky.

    Attributes:
        primitives: The primitive specs, in the order given.
        sky: The background gradient.
        materials: Table of the distinct materials used by the primitives.
        num_spheres: Number of spheres.
        num_rects: Number of rectangles.
    """

    def __init__(self, primitives: Iterable[Primitive], sky: Sky | None = None) -> None:
        self.primitives: tuple[Primitive, ...] = tuple(primitives)
        for primitive in self.primitives:
            if not isinstance(primitive, (SphereSpec, RectSpec)):
                raise ValueError(
                    f"Unsupported primitive type: {type(primitive).__name__}"
                )
        self.sky = sky if sky is not None else Sky()
        if not isinstance(self.sky, Sky):
            raise ValueError(f"sky must be a Sky, got {type(self.sky).__name__}.")

        self.materials = MaterialTable(p.material for p in self.primitives)

        spheres = [p for p in self.primitives if isinstance(p, SphereSpec)]
        rects = [p for p in self.primitives if isinstance(p, RectSpec)]
        self.num_spheres = len(spheres)
        self.num_rects = len(rects)

        # Fields cannot be empty; unused rows are never visited
        sphere_capacity = max(1, self.num_spheres)
        rect_capacity = max(1, self.num_rects)

        self.sphere_centers = ti.Vector.field(3, dtype=ti.f32)
        self.sphere_radii = ti.field(dtype=ti.f32)
        self.sphere_material_ids = ti.field(dtype=ti.i32)
        self.rect_axes = ti.field(dtype=ti.i32)
        self.rect_bounds = ti.Vector.field(4, dtype=ti.f32)
        self.rect_offsets = ti.field(dtype=ti.f32)
        self.rect_material_ids = ti.field(dtype=ti.i32)
        self.sky_horizon = ti.Vector.field(3, dtype=ti.f32)
        self.sky_zenith = ti.Vector.field(3, dtype=ti.f32)

        builder = ti.FieldsBuilder()
        for field in (self.sphere_centers, self.sphere_radii, self.sphere_material_ids):
            builder.dense(ti.i, sphere_capacity).place(field)
        for field in (self.rect_axes, self.rect_bounds, self.rect_offsets, self.rect_material_ids):
            builder.dense(ti.i, rect_capacity).place(field)
        builder.place(self.sky_horizon, self.sky_zenith)
        self._snode_tree = builder.finalize()

        self._pack_spheres(spheres, sphere_capacity)
        self._pack_rects(rects, rect_capacity)
        self.sky_horizon[None] = self.sky.horizon
        self.sky_zenith[None] = self.sky.zenith

        logger.debug(
            "Built scene with %d spheres, %d rectangles and %d materials",
            self.num_spheres,
            self.num_rects,
            len(self.materials),
        )

    def _pack_spheres(self, spheres: list[SphereSpec], capacity: int) -> None:
        centers = np.zeros((capacity, 3), dtype=np.float32)
        radii = np.ones(capacity, dtype=np.float32)
        material_ids = np.zeros(capacity, dtype=np.int32)
        for i, sphere in enumerate(spheres):
            centers[i] = sphere.center
            radii[i] = sphere.radius
            material_ids[i] = self.materials.index(sphere.material)

        self.sphere_centers.from_numpy(centers)
        self.sphere_radii.from_numpy(radii)
        self.sphere_material_ids.from_numpy(material_ids)

    def _pack_rects(self, rects: list[RectSpec], capacity: int) -> None:
        axes = np.zeros(capacity, dtype=np.int32)
        bounds = np.zeros((capacity, 4), dtype=np.float32)
        offsets = np.zeros(capacity, dtype=np.float32)
        material_ids = np.zeros(capacity, dtype=np.int32)
        for i, rect in enumerate(rects):
            axes[i] = int(rect.axis)
            bounds[i] = (rect.a0, rect.a1, rect.b0, rect.b1)
            offsets[i] = rect.k
            material_ids[i] = self.materials.index(rect.material)

        self.rect_axes.from_numpy(axes)
        self.rect_bounds.from_numpy(bounds)
        self.rect_offsets.from_numpy(offsets)
        self.rect_material_ids.from_numpy(material_ids)

    def __len__(self) -> int:
        return len(self.primitives)

    def destroy(self) -> None:
        """Release the scene's fields and its material table.

        The scene must not be rendered or queried afterwards. Calling this
        more than once has no further effect.
        """
        if self._snode_tree is not None:
            self._snode_tree.destroy()
            self._snode_tree = None
            self.materials.destroy()

    @property
    def bounds(self) -> Aabb | None:
        """Box enclosing every primitive, or None for an empty scene."""
        return union(p.bounding_box() for p in self.primitives)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Scene":
        """Build a scene from its dictionary form.

        Args:
            data: Mapping with optional "sky" and "materials" sections and a
                "primitives" list (see pathtracer.scene.description).

        Returns:
            The scene.

        Raises:
            ValueError: If any part of the description is invalid.
        """
        named = {
            name: material_from_dict(spec)
            for name, spec in data.get("materials", {}).items()
        }
        primitives = [primitive_from_dict(p, named) for p in data.get("primitives", [])]
        sky = Sky.from_dict(data["sky"]) if "sky" in data else None
        return cls(primitives, sky)

    def to_dict(self) -> dict[str, Any]:
        """Export the scene with every material written inline."""
        return {
            "sky": self.sky.to_dict(),
            "primitives": [p.to_dict() for p in self.primitives],
        }

    @ti.func
    def nearest_hit(
        self,
        ray_origin: vec3,
        ray_direction: vec3,
        t_min: ti.f32,
        t_max: ti.f32,
    ) -> SceneHitRecord:
        """Find the closest primitive hit within (t_min, t_max).

        Args:
            ray_origin: The starting point of the ray.
            ray_direction: The direction of the ray.
            t_min: Lower bound for accepted hits.
            t_max: Upper bound for accepted hits.

        Returns:
            A SceneHitRecord; hit == 0 if nothing was struck.
        """
        closest_t = t_max
        result = _make_miss_record()

        for i in range(self.num_spheres):
            sphere = Sphere(center=self.sphere_centers[i], radius=self.sphere_radii[i])
            rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, closest_t)
            if rec.hit == 1:
                closest_t = rec.t
                result = _to_scene_hit_record(rec, self.sphere_material_ids[i])

        for i in range(self.num_rects):
            bounds = self.rect_bounds[i]
            rect = AxisAlignedRect(
                axis=self.rect_axes[i],
                a0=bounds[0],
                a1=bounds[1],
                b0=bounds[2],
                b1=bounds[3],
                k=self.rect_offsets[i],
            )
            rec = hit_rect(ray_origin, ray_direction, rect, t_min, closest_t)
            if rec.hit == 1:
                closest_t = rec.t
                result = _to_scene_hit_record(rec, self.rect_material_ids[i])

        return result

    @ti.func
    def sky_color(self, ray_direction: vec3) -> vec3:
        """Background color for a ray that left the scene."""
        unit = safe_normalize(ray_direction, vec3(0.0, 1.0, 0.0))
        a = 0.5 * (unit.y + 1.0)
        return (1.0 - a) * self.sky_horizon[None] + a * self.sky_zenith[None]

    @ti.kernel
    def _intersect_kernel(
        self,
        origin: vec3,
        direction: vec3,
        t_min: ti.f32,
        t_max: ti.f32,
    ) -> ti.types.vector(10, ti.f32):
        rec = self.nearest_hit(origin, direction, t_min, t_max)
        return ti.Vector(
            [
                ti.cast(rec.hit, ti.f32),
                rec.t,
                rec.point.x,
                rec.point.y,
                rec.point.z,
                rec.normal.x,
                rec.normal.y,
                rec.normal.z,
                ti.cast(rec.front_face, ti.f32),
                ti.cast(rec.material_id, ti.f32),
            ]
        )

    def intersect(
        self,
        origin: Iterable[float],
        direction: Iterable[float],
        t_min: float = T_MIN,
        t_max: float = T_MAX,
    ) -> Hit | None:
        """Run a nearest-hit query from Python.

        Args:
            origin: The ray origin.
            direction: The ray direction (non-zero, any length).
            t_min: Lower bound for accepted hits.
            t_max: Upper bound for accepted hits.

        Returns:
            The nearest Hit, or None if the ray misses every primitive.
        """
        o = np.asarray(tuple(origin), dtype=np.float32)
        d = np.asarray(tuple(direction), dtype=np.float32)
        if o.shape != (3,) or d.shape != (3,):
            raise ValueError("origin and direction must have 3 components.")
        if not np.any(d):
            raise ValueError("direction must be non-zero.")

        packed = self._intersect_kernel(
            vec3(*(float(c) for c in o)), vec3(*(float(c) for c in d)), t_min, t_max
        )
        if packed[0] < 0.5:
            return None
        return Hit(
            t=float(packed[1]),
            point=(float(packed[2]), float(packed[3]), float(packed[4])),
            normal=(float(packed[5]), float(packed[6]), float(packed[7])),
            front_face=packed[8] > 0.5,
            material=self.materials.materials[int(round(float(packed[9])))],
        )
