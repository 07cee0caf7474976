"""Unit tests for the Lambertian material.

Tests cover:
- Parameter validation
- Scattered directions stay on the normal's hemisphere
- Cosine-weighted distribution
- Attenuation equals albedo
"""

import numpy as np
import pytest
import taichi as ti


class TestLambertianValidation:
    """Tests for Lambertian construction."""

    def test_valid_albedo(self):
        """Albedo is stored as a tuple of floats."""
        from pathtracer.materials import Lambertian, MaterialType

        mat = Lambertian([0.1, 0.2, 0.3])
        assert mat.albedo == (0.1, 0.2, 0.3)
        assert mat.kind == MaterialType.LAMBERTIAN

    @pytest.mark.parametrize("albedo", [(1.5, 0.0, 0.0), (-0.1, 0.5, 0.5), (0.5, 0.5)])
    def test_invalid_albedo(self, albedo):
        """Albedo components must lie in [0, 1]."""
        from pathtracer.materials import Lambertian

        with pytest.raises(ValueError):
            Lambertian(albedo)

    def test_equal_materials_compare_equal(self):
        """Materials are values: same parameters, same material."""
        from pathtracer.materials import Lambertian

        assert Lambertian((0.5, 0.5, 0.5)) == Lambertian([0.5, 0.5, 0.5])
        assert hash(Lambertian((0.5, 0.5, 0.5))) == hash(Lambertian((0.5, 0.5, 0.5)))


class TestLambertianScatter:
    """Tests for scatter_lambertian()."""

    def test_scatter_above_surface(self):
        """Every scattered direction is a unit vector on the normal's side."""
        from pathtracer.core.sampler import pixel_seed
        from pathtracer.materials.lambertian import scatter_lambertian, vec3

        n = 5000
        directions = ti.Vector.field(3, dtype=ti.f32, shape=n)
        attenuations = ti.Vector.field(3, dtype=ti.f32, shape=n)
        scattered = ti.field(dtype=ti.i32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                rng = pixel_seed(1, i)
                d, a, s = scatter_lambertian(vec3(0.2, 0.4, 0.6), vec3(0.0, 1.0, 0.0), rng)
                directions[i] = d
                attenuations[i] = a
                scattered[i] = s

        test_kernel()
        d = directions.to_numpy()
        assert np.all(scattered.to_numpy() == 1)
        assert np.allclose(np.linalg.norm(d, axis=1), 1.0, atol=1e-5)
        assert np.all(d[:, 1] >= -1e-6)
        assert np.allclose(attenuations.to_numpy(), [0.2, 0.4, 0.6])

    def test_cosine_weighted(self):
        """E[cos theta] is 2/3 for a cosine-weighted hemisphere."""
        from pathtracer.core.sampler import pixel_seed
        from pathtracer.materials.lambertian import scatter_lambertian, vec3

        n = 20000
        cosines = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                rng = pixel_seed(2, i)
                d, _, _ = scatter_lambertian(vec3(0.5, 0.5, 0.5), vec3(0.0, 0.0, 1.0), rng)
                cosines[i] = d.z

        test_kernel()
        assert abs(cosines.to_numpy().mean() - 2.0 / 3.0) < 0.02
