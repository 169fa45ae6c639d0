"""Decoded RGBA raster."""

from dataclasses import dataclass
import numpy as np

from utils.errors import PreconditionViolation


@dataclass
class RasterImage:
    """H x W x 4 uint8 pixel grid in R, G, B, A order."""
    
    pixels: np.ndarray
    
    def __post_init__(self):
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise PreconditionViolation(
                f"Raster must have shape (height, width, 4), got {self.pixels.shape}"
            )
        if self.pixels.shape[0] < 1 or self.pixels.shape[1] < 1:
            raise PreconditionViolation(
                f"Raster dimensions must be positive, got {self.pixels.shape[1]}x{self.pixels.shape[0]}"
            )
        if self.pixels.dtype != np.uint8:
            raise PreconditionViolation(f"Raster samples must be uint8, got {self.pixels.dtype}")
    
    @classmethod
    def from_rgb(cls, rgb: np.ndarray) -> "RasterImage":
        """Wrap an H x W x 3 array, alpha set to 255."""
        if rgb.ndim != 3 or rgb.shape[2] != 3:
            raise PreconditionViolation(f"Expected (height, width, 3) array, got {rgb.shape}")
        h, w = rgb.shape[:2]
        pixels = np.empty((h, w, 4), dtype=np.uint8)
        pixels[:, :, :3] = rgb
        pixels[:, :, 3] = 255
        return cls(pixels)
    
    @classmethod
    def from_rgba(cls, rgba: np.ndarray) -> "RasterImage":
        return cls(np.ascontiguousarray(rgba, dtype=np.uint8))
    
    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])
    
    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])
    
    @property
    def size(self) -> tuple:
        """(width, height)."""
        return (self.width, self.height)
    
    @property
    def rgb(self) -> np.ndarray:
        return self.pixels[:, :, :3]
    
    @property
    def nbytes_rgb(self) -> int:
        """Uncompressed 24-bit size in bytes."""
        return self.width * self.height * 3
    
    def copy(self) -> "RasterImage":
        return RasterImage(self.pixels.copy())
