"""Material kinds and the shared host-side material interface.

Materials form a closed set of four kinds. On the host each kind is a frozen
dataclass holding validated parameters; on the device a material is a row in
the MaterialTable (see table.py) tagged with its MaterialType, and a single
scatter function dispatches on that tag.

Materials are immutable and may be shared by any number of primitives.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Sequence
from enum import IntEnum
from typing import Any, ClassVar

Color = tuple[float, float, float]


class MaterialType(IntEnum):
    """Enumeration of supported material kinds.

    Used for material dispatch in the path tracer to determine which
    scattering function to call.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2
    MIRROR = 3


class Material(ABC):
    """Base class for host-side material descriptions.

    Subclasses are frozen dataclasses and set ``kind``. The device table
    reads the packed parameters through ``albedo_value``, ``fuzz_value`` and
    ``ior_value``; parameters a kind does not use report neutral values.
    """

    kind: ClassVar[MaterialType]

    @property
    def albedo_value(self) -> Color:
        return (1.0, 1.0, 1.0)

    @property
    def fuzz_value(self) -> float:
        return 0.0

    @property
    def ior_value(self) -> float:
        return 1.0

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """Export the material as a plain dictionary."""


def validate_color(name: str, color: Sequence[float]) -> Color:
    """Check that a color has three components in [0, 1].

    Args:
        name: Parameter name used in error messages.
        color: The color to check.

    Returns:
        The color as a tuple of floats.

    Raises:
        ValueError: If the color does not have three finite components in [0, 1].
    """
    if len(color) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(color)}.")
    for i, component in enumerate(color):
        if not math.isfinite(component) or component < 0.0 or component > 1.0:
            raise ValueError(
                f"{name} component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )
    return (float(color[0]), float(color[1]), float(color[2]))
