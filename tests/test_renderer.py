"""Tests for the render entry point and framebuffer.

Tests cover:
- Output shape and value range
- Determinism across thread counts and seeds
- Orientation (row 0 at the top)
- Gamma correction and depth limit
- Settings validation and logging
- 8-bit conversion
"""

import logging

import numpy as np
import pytest


@pytest.fixture
def small_scene():
    """A small scene with every material kind, plus a matching camera."""
    from pathtracer.scene import create_demo_scene

    return create_demo_scene(aspect_ratio=2.0)


class TestRender:
    """Tests for render()."""

    def test_output_shape_and_range(self, small_scene):
        """The framebuffer has one finite, non-negative color per pixel."""
        from pathtracer.render import render

        scene, camera = small_scene
        fb = render(scene, camera, 16, 8, samples_per_pixel=4, max_depth=4, thread_count=2)
        assert (fb.width, fb.height) == (16, 8)
        assert fb.pixels.shape == (8, 16, 3)
        assert fb.pixels.dtype == np.float32
        assert np.all(np.isfinite(fb.pixels))
        assert np.all(fb.pixels >= 0.0)
        assert np.all(fb.pixels <= 1.0 + 1e-5)

    def test_thread_count_does_not_change_image(self, small_scene):
        """1 and 4 threads give bit-identical framebuffers."""
        from pathtracer.render import render

        scene, camera = small_scene
        single = render(scene, camera, 24, 12, samples_per_pixel=4, max_depth=6, thread_count=1)
        multi = render(scene, camera, 24, 12, samples_per_pixel=4, max_depth=6, thread_count=4)
        assert np.array_equal(single.pixels, multi.pixels)

    def test_seed_controls_noise(self, small_scene):
        """Same seed reproduces the image, another seed changes it."""
        from pathtracer.render import render

        scene, camera = small_scene
        a = render(scene, camera, 16, 8, samples_per_pixel=2, seed=1)
        b = render(scene, camera, 16, 8, samples_per_pixel=2, seed=1)
        c = render(scene, camera, 16, 8, samples_per_pixel=2, seed=2)
        assert np.array_equal(a.pixels, b.pixels)
        assert not np.array_equal(a.pixels, c.pixels)

    def test_row_zero_is_top(self):
        """In an empty scene the top rows show the zenith color."""
        from pathtracer.camera import CameraConfig
        from pathtracer.render import render
        from pathtracer.scene import Scene, Sky

        scene = Scene([], Sky(horizon=(1.0, 0.0, 0.0), zenith=(0.0, 0.0, 1.0)))
        camera = CameraConfig(lookfrom=(0, 0, 0), lookat=(0, 0, -1), vfov=90.0, aspect_ratio=1.0)
        fb = render(scene, camera, 8, 8, samples_per_pixel=4, gamma=1.0)
        top, bottom = fb.pixel(4, 0), fb.pixel(4, 7)
        assert top[2] > bottom[2]
        assert top[0] < bottom[0]

    def test_gamma(self, small_scene):
        """Gamma 2 is the square root of the linear image."""
        from pathtracer.render import render

        scene, camera = small_scene
        linear = render(scene, camera, 8, 4, samples_per_pixel=2, gamma=1.0)
        corrected = render(scene, camera, 8, 4, samples_per_pixel=2, gamma=2.0)
        assert np.allclose(corrected.pixels, np.sqrt(linear.pixels), atol=1e-5)

    def test_zero_depth_is_black(self, small_scene):
        """With max_depth 0 no light reaches the camera."""
        from pathtracer.render import render

        scene, camera = small_scene
        fb = render(scene, camera, 8, 4, samples_per_pixel=2, max_depth=0)
        assert np.all(fb.pixels == 0.0)

    def test_accepts_camera_object(self, small_scene):
        """A prebuilt Camera renders the same as its config."""
        from pathtracer.camera import Camera
        from pathtracer.render import render

        scene, config = small_scene
        a = render(scene, config, 8, 4, samples_per_pixel=2)
        b = render(scene, Camera(config), 8, 4, samples_per_pixel=2)
        assert np.array_equal(a.pixels, b.pixels)

    def test_aspect_mismatch_warns(self, small_scene, caplog):
        """A camera built for another aspect ratio logs a warning."""
        from pathtracer.render import render

        scene, camera = small_scene
        with caplog.at_level(logging.WARNING, logger="pathtracer.render.renderer"):
            render(scene, camera, 4, 4, samples_per_pixel=1)
        assert "aspect ratio" in caplog.text

    def test_logs_job(self, small_scene, caplog):
        """Start and finish of a render are logged at INFO."""
        from pathtracer.render import render

        scene, camera = small_scene
        with caplog.at_level(logging.INFO, logger="pathtracer.render.renderer"):
            render(scene, camera, 8, 4, samples_per_pixel=1)
        assert "Rendering 8x4" in caplog.text
        assert "Rendered 8x4" in caplog.text

    def test_rejects_wrong_scene(self, small_scene):
        """render() needs a Scene."""
        from pathtracer.render import render

        _, camera = small_scene
        with pytest.raises(ValueError, match="Scene"):
            render([], camera, 8, 4)


class TestRepeatedRender:
    """Rendering many times in one process."""

    def test_renders_allocate_no_fields(self, small_scene, monkeypatch):
        """Repeated renders write into NumPy arrays, never new Taichi fields."""
        import taichi as ti

        from pathtracer.camera import Camera
        from pathtracer.render import render

        scene, config = small_scene
        camera = Camera(config)

        def no_fields(*args, **kwargs):
            raise AssertionError("render allocated a Taichi field")

        monkeypatch.setattr(ti, "field", no_fields)
        monkeypatch.setattr(ti.Vector, "field", no_fields)

        images = [
            render(scene, camera, 32, 16, samples_per_pixel=1, max_depth=2).pixels
            for _ in range(10)
        ]
        for image in images[1:]:
            assert np.array_equal(image, images[0])

    def test_config_camera_is_released(self, small_scene, monkeypatch):
        """A Camera built from a CameraConfig is destroyed after the render."""
        from pathtracer.camera import Camera
        from pathtracer.render import render

        scene, config = small_scene
        destroyed = []
        original = Camera.destroy

        def spy(self):
            destroyed.append(self)
            original(self)

        monkeypatch.setattr(Camera, "destroy", spy)
        for _ in range(3):
            render(scene, config, 8, 4, samples_per_pixel=1, max_depth=1)
        assert len(destroyed) == 3
        assert all(camera._snode_tree is None for camera in destroyed)


class TestRenderSettings:
    """Tests for RenderSettings validation."""

    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"width": 0}, "width"),
            ({"height": 2.5}, "height"),
            ({"samples_per_pixel": 0}, "samples_per_pixel"),
            ({"max_depth": -1}, "max_depth"),
            ({"thread_count": 0}, "thread_count"),
            ({"seed": 2**40}, "seed"),
            ({"seed": True}, "seed"),
            ({"gamma": 0.0}, "gamma"),
        ],
    )
    def test_invalid_settings(self, overrides, message):
        """Invalid settings fail before rendering."""
        from pathtracer.render import RenderSettings

        params = {"width": 8, "height": 4}
        params.update(overrides)
        with pytest.raises(ValueError, match=message):
            RenderSettings(**params)

    def test_thread_count_default(self):
        """None resolves to at least one thread."""
        from pathtracer.render import RenderSettings

        assert RenderSettings(8, 4).resolved_thread_count >= 1
        assert RenderSettings(8, 4, thread_count=3).resolved_thread_count == 3

    def test_from_dict(self):
        """Settings round-trip through a dict; unknown keys are rejected."""
        from pathtracer.render import RenderSettings

        settings = RenderSettings(8, 4, samples_per_pixel=3, seed=7)
        assert RenderSettings.from_dict(settings.to_dict()) == settings
        with pytest.raises(ValueError, match="Unknown render settings"):
            RenderSettings.from_dict({"width": 8, "height": 4, "spp": 3})


class TestFramebuffer:
    """Tests for Framebuffer."""

    def test_to_rgb8(self):
        """Channels are clamped to [0, 1] and scaled by 255 with rounding."""
        from pathtracer.render import Framebuffer

        fb = Framebuffer(np.array([[[0.0, 0.5, 1.2], [-0.3, 0.2, 1.0]]]))
        rgb = fb.to_rgb8()
        assert rgb.dtype == np.uint8
        assert rgb.tolist() == [[[0, 128, 255], [0, 51, 255]]]

    def test_pixel_access(self):
        """pixel(x, y) reads column x of row y."""
        from pathtracer.render import Framebuffer

        data = np.zeros((2, 3, 3), dtype=np.float32)
        data[1, 2] = (0.1, 0.2, 0.3)
        fb = Framebuffer(data)
        assert fb.pixel(2, 1) == pytest.approx((0.1, 0.2, 0.3))
        with pytest.raises(IndexError):
            fb.pixel(3, 0)

    def test_read_only(self):
        """The pixel array cannot be modified."""
        from pathtracer.render import Framebuffer

        fb = Framebuffer(np.zeros((1, 1, 3)))
        with pytest.raises(ValueError):
            fb.pixels[0, 0, 0] = 1.0

    def test_rejects_bad_shape(self):
        """Pixels must be (height, width, 3)."""
        from pathtracer.render import Framebuffer

        with pytest.raises(ValueError, match="shape"):
            Framebuffer(np.zeros((4, 4)))
