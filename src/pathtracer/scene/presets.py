"""Ready-made demo scene.

The demo scene exercises every primitive and material kind:

- A large diffuse ground rectangle (y = 0)
- A matte center sphere flanked by a glass sphere and a fuzzy gold sphere
- A hollow-looking glass bubble (a glass sphere inside a glass sphere,
  the inner one with index 1 / 1.5 so it acts like an air pocket)
- A vertical mirror panel (x = -3) behind the left sphere

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.presets import create_demo_scene
    >>> from pathtracer.render import render
    >>>
    >>> scene, camera = create_demo_scene()
    >>> image = render(scene, camera, 400, 225, samples_per_pixel=32)
"""

from pathtracer.camera import CameraConfig
from pathtracer.materials import Dielectric, Lambertian, Metal, Mirror
from pathtracer.scene.description import Sky, SphereSpec, xz_rect, yz_rect
from pathtracer.scene.scene import Scene

GROUND_ALBEDO = (0.5, 0.5, 0.5)
CENTER_ALBEDO = (0.1, 0.2, 0.5)
GOLD_ALBEDO = (0.8, 0.6, 0.2)
GOLD_FUZZ = 0.3
GLASS_IOR = 1.5

GROUND_HALF_SIZE = 20.0


def create_demo_scene(aspect_ratio: float = 16.0 / 9.0) -> tuple[Scene, CameraConfig]:
    """Create the demo scene and a camera looking at it.

    Args:
        aspect_ratio: Width / height of the image the camera will render.

    Returns:
        Tuple of (Scene, CameraConfig).
    """
    ground = Lambertian(GROUND_ALBEDO)
    glass = Dielectric(GLASS_IOR)

    primitives = [
        xz_rect(
            -GROUND_HALF_SIZE,
            GROUND_HALF_SIZE,
            -GROUND_HALF_SIZE,
            GROUND_HALF_SIZE,
            0.0,
            ground,
        ),
        SphereSpec((0.0, 1.0, 0.0), 1.0, Lambertian(CENTER_ALBEDO)),
        SphereSpec((-2.1, 1.0, 0.0), 1.0, glass),
        SphereSpec((-2.1, 1.0, 0.0), 0.85, Dielectric(1.0 / GLASS_IOR)),
        SphereSpec((2.1, 1.0, 0.0), 1.0, Metal(GOLD_ALBEDO, fuzz=GOLD_FUZZ)),
        SphereSpec((0.6, 0.35, 1.6), 0.35, glass),
        yz_rect(0.0, 2.5, -2.5, -0.5, -3.2, Mirror()),
    ]

    camera = CameraConfig(
        lookfrom=(0.0, 2.0, 7.0),
        lookat=(0.0, 1.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=40.0,
        aspect_ratio=aspect_ratio,
        aperture=0.05,
    )

    return Scene(primitives, Sky()), camera
