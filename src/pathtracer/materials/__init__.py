"""Materials module for the four supported surface kinds.

Components:
    base: MaterialType tags and the host-side Material interface
    lambertian: Ideal diffuse surfaces
    metal: Fuzzy specular reflectors
    dielectric: Glass-like surfaces that reflect or refract
    mirror: Perfect specular reflectors
    table: Device-side material table with the scatter dispatch

Every scatter function returns (scattered_direction, attenuation, did_scatter);
did_scatter == 0 means the path was absorbed.
"""

from .base import Material, MaterialType
from .dielectric import Dielectric, scatter_dielectric
from .lambertian import Lambertian, scatter_lambertian
from .metal import Metal, scatter_metal
from .mirror import Mirror, scatter_mirror
from .table import MaterialTable

__all__ = [
    "Material",
    "MaterialType",
    "Lambertian",
    "Metal",
    "Dielectric",
    "Mirror",
    "MaterialTable",
    "scatter_lambertian",
    "scatter_metal",
    "scatter_dielectric",
    "scatter_mirror",
]
