"""Device-side material table and the single scatter dispatch.

Every distinct material of a scene occupies one row of a structure-of-arrays
table. Primitives refer to a row by index, so a material shared by many
primitives is stored once. Rows are written when the table is built and only
read afterwards. The fields live in the table's own SNode tree, released by
``destroy()``.

Material dispatch inside kernels:
    kind == LAMBERTIAN -> scatter_lambertian
    kind == METAL      -> scatter_metal
    kind == DIELECTRIC -> scatter_dielectric
    kind == MIRROR     -> scatter_mirror
"""

import logging
from collections.abc import Iterable

import numpy as np
import taichi as ti

from pathtracer.core.vector import vec3
from pathtracer.materials.base import Material, MaterialType
from pathtracer.materials.dielectric import scatter_dielectric
from pathtracer.materials.lambertian import scatter_lambertian
from pathtracer.materials.metal import scatter_metal
from pathtracer.materials.mirror import scatter_mirror

logger = logging.getLogger(__name__)

# Maximum number of distinct materials in one table
MAX_MATERIALS = 65536

_LAMBERTIAN = int(MaterialType.LAMBERTIAN)
_METAL = int(MaterialType.METAL)
_DIELECTRIC = int(MaterialType.DIELECTRIC)
_MIRROR = int(MaterialType.MIRROR)


@ti.data_oriented
class MaterialTable:
    """Packed parameters for a set of materials.

    Equal materials (by value) share a single row.

    Attributes:
        materials: The distinct materials, in row order.
        kinds: i32 field of MaterialType tags.
        albedos: vec3 field of albedo colors (white where unused).
        fuzzes: f32 field of metal fuzz values (0 where unused).
        refractive_indices: f32 field of refractive indices (1 where unused).
    """

    def __init__(self, materials: Iterable[Material]) -> None:
        rows: dict[Material, int] = {}
        for material in materials:
            if not isinstance(material, Material):
                raise ValueError(
                    f"Expected a Material, got {type(material).__name__}."
                )
            if material not in rows:
                rows[material] = len(rows)

        if len(rows) > MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        self._rows = rows
        self.materials = tuple(rows)

        # Fields cannot be empty, so an empty table still gets one row
        capacity = max(1, len(self.materials))
        self.kinds = ti.field(dtype=ti.i32)
        self.albedos = ti.Vector.field(3, dtype=ti.f32)
        self.fuzzes = ti.field(dtype=ti.f32)
        self.refractive_indices = ti.field(dtype=ti.f32)

        builder = ti.FieldsBuilder()
        for field in (self.kinds, self.albedos, self.fuzzes, self.refractive_indices):
            builder.dense(ti.i, capacity).place(field)
        self._snode_tree = builder.finalize()

        kinds = np.zeros(capacity, dtype=np.int32)
        albedos = np.ones((capacity, 3), dtype=np.float32)
        fuzzes = np.zeros(capacity, dtype=np.float32)
        iors = np.ones(capacity, dtype=np.float32)
        for i, material in enumerate(self.materials):
            kinds[i] = int(material.kind)
            albedos[i] = material.albedo_value
            fuzzes[i] = material.fuzz_value
            iors[i] = material.ior_value

        self.kinds.from_numpy(kinds)
        self.albedos.from_numpy(albedos)
        self.fuzzes.from_numpy(fuzzes)
        self.refractive_indices.from_numpy(iors)

        logger.debug("Built material table with %d distinct materials", len(self.materials))

    def __len__(self) -> int:
        return len(self.materials)

    def destroy(self) -> None:
        """Release the table's fields. The table must not be used afterwards."""
        if self._snode_tree is not None:
            self._snode_tree.destroy()
            self._snode_tree = None

    def index(self, material: Material) -> int:
        """Return the row holding a material.

        Raises:
            ValueError: If the material is not in the table.
        """
        try:
            return self._rows[material]
        except KeyError:
            raise ValueError(f"Material {material!r} is not in this table.") from None

    @ti.func
    def scatter(
        self,
        material_id: ti.i32,
        incident_direction: vec3,
        normal: vec3,
        front_face: ti.i32,
        rng: ti.template(),
    ):
        """Scatter a ray off the material in row ``material_id``.

        Args:
            material_id: Row index into the table.
            incident_direction: The incoming ray direction.
            normal: The unit surface normal, facing the incoming ray.
            front_face: 1 if the ray arrives from outside the surface.
            rng: Per-pixel generator state, advanced in place.

        Returns:
            A tuple of (scattered_direction, attenuation, did_scatter) where
            did_scatter == 0 means the path is absorbed.
        """
        kind = self.kinds[material_id]

        direction = vec3(0.0, 0.0, 0.0)
        attenuation = vec3(0.0, 0.0, 0.0)
        did_scatter = 0

        if kind == _LAMBERTIAN:
            d, a, s = scatter_lambertian(self.albedos[material_id], normal, rng)
            direction = d
            attenuation = a
            did_scatter = s
        elif kind == _METAL:
            d, a, s = scatter_metal(
                self.albedos[material_id],
                self.fuzzes[material_id],
                incident_direction,
                normal,
                rng,
            )
            direction = d
            attenuation = a
            did_scatter = s
        elif kind == _DIELECTRIC:
            d, a, s = scatter_dielectric(
                self.refractive_indices[material_id],
                incident_direction,
                normal,
                front_face,
                rng,
            )
            direction = d
            attenuation = a
            did_scatter = s
        elif kind == _MIRROR:
            d, a, s = scatter_mirror(incident_direction, normal)
            direction = d
            attenuation = a
            did_scatter = s

        return direction, attenuation, did_scatter
