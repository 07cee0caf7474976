"""Scene module for describing and querying renderable scenes.

Components:
    description: Primitive specs, the background Sky and dict loading
    scene: The Scene container and its nearest-hit query
    presets: A ready-made demo scene
"""

from .description import (
    Axis,
    RectSpec,
    Sky,
    SphereSpec,
    material_from_dict,
    primitive_from_dict,
    xy_rect,
    xz_rect,
    yz_rect,
)
from .scene import Hit, Scene, SceneHitRecord
from .presets import create_demo_scene

__all__ = [
    "Axis",
    "SphereSpec",
    "RectSpec",
    "Sky",
    "xy_rect",
    "xz_rect",
    "yz_rect",
    "material_from_dict",
    "primitive_from_dict",
    "Scene",
    "SceneHitRecord",
    "Hit",
    "create_demo_scene",
]
