"""Pytest configuration for path tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts. Scenes and cameras
    own their fields, so no per-test cleanup is needed.
    """
    ti.init(arch=ti.cpu, default_fp=ti.f32, fast_math=False)
    yield


@pytest.fixture
def gray():
    """A mid-gray Lambertian material."""
    from pathtracer.materials import Lambertian

    return Lambertian((0.5, 0.5, 0.5))


@pytest.fixture
def unit_sphere_scene(gray):
    """Scene with a single sphere of radius 0.5 at (0, 0, -1)."""
    from pathtracer.scene import Scene, SphereSpec

    return Scene([SphereSpec((0.0, 0.0, -1.0), 0.5, gray)])
