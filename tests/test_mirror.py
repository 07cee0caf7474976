"""Unit tests for the Mirror material."""

import numpy as np
import taichi as ti


class TestMirror:
    """Tests for Mirror and scatter_mirror()."""

    def test_has_no_parameters(self):
        """All mirrors are the same material."""
        from pathtracer.materials import MaterialType, Mirror

        assert Mirror() == Mirror()
        assert Mirror().kind == MaterialType.MIRROR
        assert Mirror().to_dict() == {"type": "mirror"}

    def test_reflects_exactly_without_tint(self):
        """The reflection is exact, white and never absorbed."""
        from pathtracer.materials.mirror import scatter_mirror, vec3

        direction = ti.field(dtype=ti.math.vec3, shape=())
        attenuation = ti.field(dtype=ti.math.vec3, shape=())
        scattered = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            d, a, s = scatter_mirror(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))
            direction[None] = d
            attenuation[None] = a
            scattered[None] = s

        test_kernel()
        inv_sqrt2 = 1.0 / np.sqrt(2.0)
        assert scattered[None] == 1
        assert np.allclose(direction[None].to_numpy(), [inv_sqrt2, inv_sqrt2, 0.0], atol=1e-6)
        assert np.allclose(attenuation[None].to_numpy(), [1.0, 1.0, 1.0])
