"""Rendered image container.

A Framebuffer holds the final, gamma-corrected color of every pixel in a
read-only ``(height, width, 3)`` float32 array. Row 0 is the top of the
image and column 0 its left edge, the order image encoders expect.
"""

import numpy as np


class Framebuffer:
    """Immutable grid of pixel colors.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        pixels: Read-only float32 array of shape (height, width, 3).
    """

    def __init__(self, pixels: np.ndarray) -> None:
        pixels = np.array(pixels, dtype=np.float32)
        if pixels.ndim != 3 or pixels.shape[2] != 3:
            raise ValueError(
                f"Framebuffer pixels must have shape (height, width, 3), got {pixels.shape}."
            )
        pixels.setflags(write=False)
        self.pixels = pixels

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def __repr__(self) -> str:
        return f"Framebuffer(width={self.width}, height={self.height})"

    def pixel(self, x: int, y: int) -> tuple[float, float, float]:
        """Color of the pixel in column x and row y (row 0 at the top)."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) is outside a {self.width}x{self.height} image.")
        r, g, b = self.pixels[y, x]
        return (float(r), float(g), float(b))

    def to_rgb8(self) -> np.ndarray:
        """Convert to 8-bit channels for an image encoder.

        Each channel is clamped to [0, 1] and mapped to round(c * 255).

        Returns:
            A uint8 array of shape (height, width, 3).
        """
        clamped = np.clip(self.pixels, 0.0, 1.0)
        return np.round(clamped * 255.0).astype(np.uint8)
