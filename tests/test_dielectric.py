"""Unit tests for the Dielectric material.

Tests cover:
- Parameter validation
- Straight-through transmission at normal incidence
- Total internal reflection always reflects
- Fresnel-weighted choice between reflection and refraction
"""

import numpy as np
import pytest
import taichi as ti


class TestDielectricValidation:
    """Tests for Dielectric construction."""

    @pytest.mark.parametrize("ior", [0.0, -1.5, float("inf")])
    def test_invalid_index(self, ior):
        """The refractive index must be a finite positive number."""
        from pathtracer.materials import Dielectric

        with pytest.raises(ValueError, match="Refractive index"):
            Dielectric(ior)

    def test_index_below_one_allowed(self):
        """Indices in (0, 1) model a less dense inclusion, such as an air bubble."""
        from pathtracer.materials import Dielectric

        assert Dielectric(1.0 / 1.5).refractive_index == pytest.approx(1.0 / 1.5)


class TestDielectricScatter:
    """Tests for scatter_dielectric()."""

    def test_attenuation_is_white(self):
        """Glass never tints and never absorbs."""
        from pathtracer.core.sampler import pixel_seed
        from pathtracer.materials.dielectric import scatter_dielectric, vec3

        n = 500
        attenuations = ti.Vector.field(3, dtype=ti.f32, shape=n)
        scattered = ti.field(dtype=ti.i32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                rng = pixel_seed(9, i)
                _, a, s = scatter_dielectric(
                    1.5, vec3(0.3, -1.0, 0.2), vec3(0.0, 1.0, 0.0), 1, rng
                )
                attenuations[i] = a
                scattered[i] = s

        test_kernel()
        assert np.all(scattered.to_numpy() == 1)
        assert np.allclose(attenuations.to_numpy(), 1.0)

    def test_total_internal_reflection_always_reflects(self):
        """Leaving glass beyond the critical angle reflects every time."""
        from pathtracer.core.sampler import pixel_seed
        from pathtracer.materials.dielectric import scatter_dielectric, vec3

        n = 500
        directions = ti.Vector.field(3, dtype=ti.f32, shape=n)

        theta = np.radians(60.0)
        sin_t = float(np.sin(theta))
        cos_t = float(np.cos(theta))

        @ti.kernel
        def test_kernel():
            for i in range(n):
                rng = pixel_seed(11, i)
                # Inside the glass (front_face = 0), normal faces the ray
                d, _, _ = scatter_dielectric(
                    1.5, vec3(sin_t, -cos_t, 0.0), vec3(0.0, 1.0, 0.0), 0, rng
                )
                directions[i] = d

        test_kernel()
        d = directions.to_numpy()
        assert np.allclose(d, [sin_t, cos_t, 0.0], atol=1e-5)

    def test_reflection_fraction_matches_schlick(self):
        """At normal incidence about R0 = 4% of rays reflect for n = 1.5."""
        from pathtracer.core.sampler import pixel_seed
        from pathtracer.materials.dielectric import scatter_dielectric, vec3

        n = 20000
        directions = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                rng = pixel_seed(13, i)
                d, _, _ = scatter_dielectric(
                    1.5, vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1, rng
                )
                directions[i] = d

        test_kernel()
        d = directions.to_numpy()
        reflected = np.mean(d[:, 1] > 0.0)
        assert abs(reflected - 0.04) < 0.01
        # Refracted rays continue straight down
        assert np.allclose(d[d[:, 1] < 0.0], [0.0, -1.0, 0.0], atol=1e-6)


class TestDielectricRoundTrip:
    """A ray along a glass sphere's diameter passes straight through."""

    def test_no_lateral_displacement(self):
        """Enter and exit at normal incidence: the ray stays on the axis."""
        from pathtracer.core.integrator import T_MAX, T_MIN, _offset_ray_origin
        from pathtracer.core.sampler import pixel_seed
        from pathtracer.core.vector import vec3
        from pathtracer.materials import Dielectric
        from pathtracer.scene import Scene, SphereSpec

        scene = Scene([SphereSpec((0.0, 0.0, 0.0), 1.0, Dielectric(1.5))])

        n = 2000
        exit_points = ti.Vector.field(3, dtype=ti.f32, shape=n)
        exit_directions = ti.Vector.field(3, dtype=ti.f32, shape=n)
        transmitted = ti.field(dtype=ti.i32, shape=n)

        @ti.kernel
        def test_kernel(s: ti.template()):
            for i in range(n):
                rng = pixel_seed(17, i)
                origin = vec3(0.0, 0.0, 5.0)
                direction = vec3(0.0, 0.0, -1.0)
                through = 1
                for _ in range(2):
                    rec = s.nearest_hit(origin, direction, T_MIN, T_MAX)
                    if rec.hit == 0:
                        through = 0
                    else:
                        d, _att, _ok = s.materials.scatter(
                            rec.material_id, direction, rec.normal, rec.front_face, rng
                        )
                        if d.z > 0.0:
                            through = 0
                        origin = _offset_ray_origin(rec.point, rec.normal, d)
                        direction = d
                exit_points[i] = origin
                exit_directions[i] = direction
                transmitted[i] = through

        test_kernel(scene)
        through = transmitted.to_numpy() == 1
        # Most rays are transmitted twice (about 0.96^2 of them)
        assert through.mean() > 0.85
        p = exit_points.to_numpy()[through]
        d = exit_directions.to_numpy()[through]
        assert np.allclose(p[:, :2], 0.0, atol=1e-6)
        assert np.allclose(p[:, 2], -1.0, atol=1e-3)
        assert np.allclose(d, [0.0, 0.0, -1.0], atol=1e-6)
