"""Tests for the demo scene."""


class TestDemoScene:
    """Tests for create_demo_scene()."""

    def test_uses_every_kind(self):
        """The demo scene contains both primitives and all four materials."""
        from pathtracer.materials import MaterialType
        from pathtracer.scene import create_demo_scene

        scene, camera = create_demo_scene()
        assert scene.num_spheres > 0
        assert scene.num_rects > 0
        kinds = {m.kind for m in scene.materials.materials}
        assert kinds == set(MaterialType)
        assert camera.aspect_ratio == 16.0 / 9.0
        assert camera.aperture > 0.0

    def test_glass_is_shared(self):
        """Spheres made of the same glass share one material row."""
        from pathtracer.materials import Dielectric
        from pathtracer.scene import create_demo_scene

        scene, _ = create_demo_scene()
        glass = [p for p in scene.primitives if p.material == Dielectric(1.5)]
        assert len(glass) == 2
        assert glass[0].material is glass[1].material

    def test_camera_sees_scene(self):
        """The center ray hits something."""
        from pathtracer.camera import Camera
        from pathtracer.scene import create_demo_scene

        scene, config = create_demo_scene()
        origins, directions = Camera(config).sample_rays(0.5, 0.5, count=1)
        assert scene.intersect(origins[0], directions[0]) is not None
