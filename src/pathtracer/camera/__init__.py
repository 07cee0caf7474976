"""Camera module for primary ray generation.

Components:
    thin_lens: CameraConfig and the thin-lens Camera (pinhole when the
        aperture is 0)
"""

from .thin_lens import Camera, CameraConfig

__all__ = ["Camera", "CameraConfig"]
