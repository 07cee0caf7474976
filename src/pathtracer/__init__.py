"""Offline Monte Carlo path tracer built on Taichi.

This package renders a fixed scene through a thin-lens camera into a
framebuffer by tracing randomly sampled light paths on the CPU, with the
image rows split across a fixed pool of worker threads.

Subpackages:
    core: Vector helpers, rays, per-pixel random numbers and the path integrator
    geometry: Sphere and axis-aligned rectangle intersection, bounding boxes
    materials: Lambertian, metal, dielectric and mirror scattering
    scene: Declarative primitive specs and the immutable render scene
    camera: Thin-lens camera with depth of field
    render: Parallel pixel sampling and the framebuffer

Taichi must be initialised by the caller before any scene, camera or render
call, e.g. ``ti.init(arch=ti.cpu, fast_math=False)``. Renders are bit-identical
for any thread count only when fast math is off.

Scenes and cameras keep their data in Taichi fields that live until
``destroy()`` is called on them; renders allocate no fields of their own.
"""

__version__ = "0.1.0"
