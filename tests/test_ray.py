"""Unit tests for the Ray dataclass."""

import taichi as ti


class TestRay:
    """Tests for Ray construction and evaluation."""

    def test_ray_at(self):
        """ray_at(t) = origin + t * direction."""
        from pathtracer.core.ray import make_ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(1.0, 2.0, 3.0), vec3(0.0, 0.0, -2.0))
            result[None] = ray_at(ray, 2.5)

        test_kernel()
        p = result[None]
        assert abs(p[0] - 1.0) < 1e-6
        assert abs(p[1] - 2.0) < 1e-6
        assert abs(p[2] + 2.0) < 1e-6

    def test_direction_not_normalized(self):
        """Rays keep the direction they were given."""
        from pathtracer.core.ray import Ray, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 3.0, 0.0))
            result[None] = ray.direction

        test_kernel()
        assert abs(result[None][1] - 3.0) < 1e-6
