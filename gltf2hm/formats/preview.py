"""8-bit grayscale PNG preview of a height grid."""

import numpy as np
import structlog
from PIL import Image
from pathlib import Path
from typing import Union

from ..core.heightgrid import HeightGrid

logger = structlog.get_logger()


def to_preview_bytes(grid: HeightGrid) -> np.ndarray:
    """Row-major uint8 samples, value * 255 truncated."""
    return (np.clip(grid.heights, 0.0, 1.0) * 255.0).astype(np.uint8)


def write_preview(grid: HeightGrid, path: Union[str, Path]) -> Path:
    """
    Save the grid as a grayscale PNG.

    Raises:
        OSError: If the image cannot be written
    """
    path = Path(path)
    image = Image.fromarray(to_preview_bytes(grid))
    try:
        image.save(path, format="PNG")
    except OSError as e:
        logger.error("Failed to write heightmap preview", path=str(path), error=str(e))
        raise

    logger.info("Wrote heightmap preview", path=str(path), width=grid.width, height=grid.height)
    return path
