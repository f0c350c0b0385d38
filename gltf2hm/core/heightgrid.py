"""Height grid buffer threaded through the conversion stages."""

import numpy as np
from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass
class HeightGrid:
    """
    Row-major grid of normalized elevations.

    heights[y, x] holds a value in [0, 1]; 0.0 doubles as the "never written"
    sentinel. coverage[y, x] records whether any triangle wrote the cell and
    is informational only: filters look at the values, not the mask.
    """

    heights: np.ndarray
    coverage: Optional[np.ndarray] = field(default=None)

    def __post_init__(self):
        if self.heights.ndim != 2:
            raise ValueError(f"Heights must be 2D, got shape {self.heights.shape}")
        if self.coverage is None:
            self.coverage = np.zeros(self.heights.shape, dtype=bool)
        elif self.coverage.shape != self.heights.shape:
            raise ValueError(
                f"Coverage shape {self.coverage.shape} does not match heights {self.heights.shape}"
            )

    @classmethod
    def empty(cls, width: int, height: int) -> "HeightGrid":
        """Allocate an unwritten grid."""
        if width <= 0 or height <= 0:
            raise ValueError(f"Grid size must be positive, got {width}x{height}")
        return cls(heights=np.zeros((height, width), dtype=np.float32))

    @property
    def shape(self) -> Tuple[int, int]:
        return self.heights.shape

    @property
    def width(self) -> int:
        return self.heights.shape[1]

    @property
    def height(self) -> int:
        return self.heights.shape[0]

    def snapshot(self) -> np.ndarray:
        """Read-only copy of the current heights for neighbourhood filters."""
        snap = self.heights.copy()
        snap.setflags(write=False)
        return snap

    def stats(self) -> dict:
        """Summary used in log events."""
        return {
            "min": float(self.heights.min()),
            "max": float(self.heights.max()),
            "mean": float(self.heights.mean()),
            "covered": int(self.coverage.sum()),
            "unwritten": int(np.count_nonzero(self.heights == 0.0)),
        }
