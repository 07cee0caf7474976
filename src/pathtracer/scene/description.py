"""Declarative scene description: primitives, background and dict loading.

A scene is described on the host by immutable specs that reference material
objects. Specs are validated as they are created, so a malformed scene fails
before any Taichi field is allocated:

    >>> from pathtracer.materials import Lambertian, Metal
    >>> from pathtracer.scene.description import SphereSpec, xz_rect
    >>> ground = Lambertian((0.5, 0.5, 0.5))
    >>> primitives = [
    ...     xz_rect(-10, 10, -10, 10, 0.0, ground),
    ...     SphereSpec((0, 1, 0), 1.0, Metal((0.8, 0.6, 0.2), fuzz=0.1)),
    ... ]

The same description can be written as plain dictionaries (the format an
external scene loader produces):

    {
        "sky": {"horizon": [1, 1, 1], "zenith": [0.5, 0.7, 1.0]},
        "materials": {"ground": {"type": "lambertian", "albedo": [0.5, 0.5, 0.5]}},
        "primitives": [
            {"type": "rect", "axis": "y", "a0": -10, "a1": 10,
             "b0": -10, "b1": 10, "k": 0, "material": "ground"},
            {"type": "sphere", "center": [0, 1, 0], "radius": 1,
             "material": {"type": "metal", "albedo": [0.8, 0.6, 0.2], "fuzz": 0.1}},
        ],
    }

Materials given by name refer to the top-level "materials" section and are
shared by every primitive naming them.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Union

from pathtracer.geometry.aabb import Aabb, Vec3Tuple
from pathtracer.geometry.rect import AXIS_X, AXIS_Y, AXIS_Z
from pathtracer.materials import Dielectric, Lambertian, Material, Metal, Mirror

# Half-thickness given to the bounding box of a flat rectangle
RECT_BOX_PADDING = 1e-4


def _as_vec3(name: str, value: Sequence[float]) -> Vec3Tuple:
    if len(value) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(value)}.")
    result = (float(value[0]), float(value[1]), float(value[2]))
    if not all(math.isfinite(c) for c in result):
        raise ValueError(f"{name} = {result} has non-finite components.")
    return result


def _check_material(material: Any) -> None:
    if not isinstance(material, Material):
        raise ValueError(
            f"Primitive material must be a Material, got {type(material).__name__}."
        )


class Axis(IntEnum):
    """Fixed axis of an axis-aligned rectangle."""

    X = AXIS_X
    Y = AXIS_Y
    Z = AXIS_Z


@dataclass(frozen=True)
class Sky:
    """Background gradient seen by rays that leave the scene.

    The color blends from ``horizon`` (ray pointing straight down) to
    ``zenith`` (straight up) linearly in the direction's y component.
    """

    horizon: Vec3Tuple = (1.0, 1.0, 1.0)
    zenith: Vec3Tuple = (0.5, 0.7, 1.0)

    def __post_init__(self) -> None:
        for name in ("horizon", "zenith"):
            color = _as_vec3(name, getattr(self, name))
            if min(color) < 0.0:
                raise ValueError(f"Sky {name} = {color} has negative components.")
            object.__setattr__(self, name, color)

    @property
    def brightest(self) -> float:
        """Largest channel value the gradient can produce."""
        return max(max(self.horizon), max(self.zenith))

    def to_dict(self) -> dict[str, Any]:
        return {"horizon": list(self.horizon), "zenith": list(self.zenith)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Sky:
        return cls(
            horizon=tuple(data.get("horizon", (1.0, 1.0, 1.0))),
            zenith=tuple(data.get("zenith", (0.5, 0.7, 1.0))),
        )


@dataclass(frozen=True)
class SphereSpec:
    """A sphere primitive.

    Attributes:
        center: The center point.
        radius: The radius (finite and > 0).
        material: The surface material.
    """

    center: Vec3Tuple
    radius: float
    material: Material

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", _as_vec3("center", self.center))
        if not math.isfinite(self.radius) or self.radius <= 0.0:
            raise ValueError(f"Sphere radius = {self.radius} must be a finite positive number.")
        object.__setattr__(self, "radius", float(self.radius))
        _check_material(self.material)

    def bounding_box(self) -> Aabb:
        r = self.radius
        cx, cy, cz = self.center
        return Aabb((cx - r, cy - r, cz - r), (cx + r, cy + r, cz + r))

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "sphere",
            "center": list(self.center),
            "radius": self.radius,
            "material": self.material.to_dict(),
        }


@dataclass(frozen=True)
class RectSpec:
    """An axis-aligned rectangle primitive.

    The rectangle lies in the plane ``coord[axis] == k`` and spans
    ``[a0, a1] x [b0, b1]`` on the two free axes, taken in ascending order
    (X: y then z, Y: x then z, Z: x then y).

    Attributes:
        axis: The fixed axis.
        a0: Lower bound on the first free axis.
        a1: Upper bound on the first free axis.
        b0: Lower bound on the second free axis.
        b1: Upper bound on the second free axis.
        k: Plane offset along the fixed axis.
        material: The surface material.
    """

    axis: Axis
    a0: float
    a1: float
    b0: float
    b1: float
    k: float
    material: Material

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "axis", Axis(self.axis))
        except ValueError:
            raise ValueError(f"Rectangle axis must be 0, 1 or 2, got {self.axis!r}.") from None
        for name in ("a0", "a1", "b0", "b1", "k"):
            value = float(getattr(self, name))
            if not math.isfinite(value):
                raise ValueError(f"Rectangle {name} = {value} is not finite.")
            object.__setattr__(self, name, value)
        if not self.a0 < self.a1:
            raise ValueError(f"Rectangle bounds a0 = {self.a0} and a1 = {self.a1} are not ordered.")
        if not self.b0 < self.b1:
            raise ValueError(f"Rectangle bounds b0 = {self.b0} and b1 = {self.b1} are not ordered.")
        _check_material(self.material)

    def bounding_box(self) -> Aabb:
        """Bounding box padded along the fixed axis so it is never flat."""
        lo = [0.0, 0.0, 0.0]
        hi = [0.0, 0.0, 0.0]
        first, second = [i for i in range(3) if i != self.axis]
        lo[first], hi[first] = self.a0, self.a1
        lo[second], hi[second] = self.b0, self.b1
        lo[self.axis] = self.k - RECT_BOX_PADDING
        hi[self.axis] = self.k + RECT_BOX_PADDING
        return Aabb(tuple(lo), tuple(hi))

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "rect",
            "axis": self.axis.name.lower(),
            "a0": self.a0,
            "a1": self.a1,
            "b0": self.b0,
            "b1": self.b1,
            "k": self.k,
            "material": self.material.to_dict(),
        }


Primitive = Union[SphereSpec, RectSpec]


def xy_rect(x0: float, x1: float, y0: float, y1: float, z: float, material: Material) -> RectSpec:
    """Rectangle in the plane z = const."""
    return RectSpec(Axis.Z, x0, x1, y0, y1, z, material)


def xz_rect(x0: float, x1: float, z0: float, z1: float, y: float, material: Material) -> RectSpec:
    """Rectangle in the plane y = const."""
    return RectSpec(Axis.Y, x0, x1, z0, z1, y, material)


def yz_rect(y0: float, y1: float, z0: float, z1: float, x: float, material: Material) -> RectSpec:
    """Rectangle in the plane x = const."""
    return RectSpec(Axis.X, y0, y1, z0, z1, x, material)


def material_from_dict(data: Mapping[str, Any]) -> Material:
    """Build a material from its dictionary form.

    Args:
        data: Mapping with a "type" key (lambertian, metal, dielectric or
            mirror) and the material's parameters.

    Returns:
        The material.

    Raises:
        ValueError: If the type is unknown or a parameter is invalid.
    """
    mat_type = str(data.get("type", "")).lower()
    if mat_type == "lambertian":
        return Lambertian(albedo=tuple(data.get("albedo", (0.5, 0.5, 0.5))))
    elif mat_type == "metal":
        return Metal(
            albedo=tuple(data.get("albedo", (0.8, 0.8, 0.8))),
            fuzz=float(data.get("fuzz", 0.0)),
        )
    elif mat_type == "dielectric":
        return Dielectric(refractive_index=float(data.get("refractive_index", 1.5)))
    elif mat_type == "mirror":
        return Mirror()
    raise ValueError(f"Unknown material type: {mat_type!r}")


def _resolve_material(
    value: Any,
    named_materials: Mapping[str, Material],
) -> Material:
    if isinstance(value, Material):
        return value
    if isinstance(value, str):
        if value not in named_materials:
            raise ValueError(f"Unknown material name: {value!r}")
        return named_materials[value]
    if isinstance(value, Mapping):
        return material_from_dict(value)
    raise ValueError(f"Cannot interpret {value!r} as a material.")


def primitive_from_dict(
    data: Mapping[str, Any],
    named_materials: Mapping[str, Material] | None = None,
) -> Primitive:
    """Build a primitive from its dictionary form.

    Args:
        data: Mapping with a "type" key (sphere or rect), the geometry and a
            "material" given inline as a dict or by name.
        named_materials: Materials that may be referenced by name.

    Returns:
        The primitive spec.

    Raises:
        ValueError: If the type, geometry or material is invalid.
    """
    named_materials = named_materials or {}
    prim_type = str(data.get("type", "")).lower()
    if "material" not in data:
        raise ValueError(f"Primitive {dict(data)!r} has no material.")
    material = _resolve_material(data["material"], named_materials)

    if prim_type == "sphere":
        return SphereSpec(
            center=tuple(data.get("center", (0.0, 0.0, 0.0))),
            radius=float(data.get("radius", 1.0)),
            material=material,
        )
    elif prim_type == "rect":
        axis = data.get("axis", "z")
        if isinstance(axis, str):
            try:
                axis = Axis[axis.upper()]
            except KeyError:
                raise ValueError(f"Unknown rectangle axis: {axis!r}") from None
        try:
            bounds = {name: float(data[name]) for name in ("a0", "a1", "b0", "b1")}
        except KeyError as exc:
            raise ValueError(f"Rectangle is missing bound {exc.args[0]!r}.") from None
        return RectSpec(
            axis=axis,
            **bounds,
            k=float(data.get("k", 0.0)),
            material=material,
        )
    raise ValueError(f"Unknown primitive type: {prim_type!r}")
