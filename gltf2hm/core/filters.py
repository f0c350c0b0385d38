"""
Post-processing filters for rasterized height grids.

Every neighbourhood filter reads from an immutable snapshot of the grid and
writes into the live buffer, so a repaired cell is never seen by its
neighbours during the same pass and results do not depend on traversal
order. 3x3 window sums are computed with scipy.ndimage; positions outside
the grid contribute nothing.

Cells valued exactly 0.0 or 1.0 are treated as suspect: 0.0 is what an
unwritten cell holds and 1.0 is what saturated edge artifacts collapse to.
"""

import numpy as np
import structlog
from concurrent.futures import ThreadPoolExecutor
from scipy import ndimage
from typing import Optional

from .heightgrid import HeightGrid

logger = structlog.get_logger()

# Minimum number of real neighbours needed before a hole is filled
HOLE_FILL_MIN_NEIGHBOURS = 6

# More edge values than this in a 3x3 window protects a cell from smoothing
SMOOTH_MAX_EDGE_NEIGHBOURS = 2

UNSPIKE_EPSILON = 0.0001

_WINDOW = np.ones((3, 3))


def _is_edge_value(values: np.ndarray) -> np.ndarray:
    return (values == 0.0) | (values == 1.0)


def _window_sum(values: np.ndarray) -> np.ndarray:
    """Sum over each cell's 3x3 window, clamped at the grid edges."""
    return ndimage.correlate(values, _WINDOW.astype(values.dtype), mode="constant", cval=0)


def fill_holes(grid: HeightGrid) -> int:
    """
    Repair sentinel cells from their 3x3 neighbourhood.

    A cell valued 0.0 or 1.0 is replaced by the mean of the neighbours that
    lie strictly inside (0, 1), provided there are at least six of them.
    Cells with fewer real neighbours are left untouched so that large voids
    in the source geometry are not filled with invented terrain.

    Args:
        grid: Grid to repair in place

    Returns:
        Number of cells repaired
    """
    snapshot = grid.snapshot().astype(np.float64)
    valid = (snapshot > 0.0) & (snapshot < 1.0)

    total = _window_sum(np.where(valid, snapshot, 0.0))
    count = _window_sum(valid.astype(np.int32))

    repair = _is_edge_value(snapshot) & (count >= HOLE_FILL_MIN_NEIGHBOURS)
    grid.heights[repair] = total[repair] / count[repair]

    repaired = int(repair.sum())
    logger.info("Filled holes", repaired=repaired)
    return repaired


def smooth(grid: HeightGrid, amount: float) -> int:
    """
    Dampen cells that deviate from their local mean by more than amount.

    The mean is taken over the in-grid part of the 3x3 window, leaving out
    edge values (exactly 0.0 or 1.0). Cells with more than two edge values in
    their window, or with no valid values at all, are skipped so terrain
    borders and holes are not smeared.

    Args:
        grid: Grid to smooth in place
        amount: Tolerance; 0 disables smoothing

    Returns:
        Number of cells changed
    """
    if amount < 0:
        raise ValueError(f"Smoothing tolerance must be >= 0, got {amount}")
    if amount == 0:
        return 0

    snapshot = grid.snapshot().astype(np.float64)
    edge = _is_edge_value(snapshot)

    total = _window_sum(np.where(edge, 0.0, snapshot))
    valid_count = _window_sum((~edge).astype(np.int32))
    edge_count = _window_sum(edge.astype(np.int32))

    skip = (edge_count > SMOOTH_MAX_EDGE_NEIGHBOURS) | (valid_count == 0)
    mean = total / np.maximum(valid_count, 1)
    change = ~skip & (np.abs(snapshot - mean) > amount)
    grid.heights[change] = mean[change]

    changed = int(change.sum())
    logger.info("Smoothed heightmap", amount=amount, changed=changed)
    return changed


def unspike(grid: HeightGrid, epsilon: float = UNSPIKE_EPSILON) -> int:
    """
    Remove single-cell outliers.

    An interior cell is replaced by the mean of its four direct neighbours
    when it holds an edge value or when every neighbour differs from it by
    more than epsilon. A sharp ridge survives as long as one neighbour agrees
    with it. Border cells are never modified.

    Returns:
        Number of cells replaced
    """
    if grid.height < 3 or grid.width < 3:
        return 0

    snapshot = grid.snapshot().astype(np.float64)
    centre = snapshot[1:-1, 1:-1]
    neighbours = (
        snapshot[:-2, 1:-1],  # up
        snapshot[2:, 1:-1],  # down
        snapshot[1:-1, :-2],  # left
        snapshot[1:-1, 2:],  # right
    )

    all_differ = np.ones(centre.shape, dtype=bool)
    for values in neighbours:
        all_differ &= np.abs(values - centre) > epsilon

    spikes = _is_edge_value(centre) | all_differ
    mean = sum(neighbours) / 4.0

    interior = grid.heights[1:-1, 1:-1]
    interior[spikes] = mean[spikes]

    removed = int(spikes.sum())
    logger.info("Removed spikes", removed=removed)
    return removed


def _interpolate_line(line: np.ndarray) -> np.ndarray:
    """Linearly fill zero runs that have written cells on both sides."""
    result = line.astype(np.float64)
    written = np.flatnonzero(result != 0.0)
    if len(written) < 2:
        return result

    span = np.arange(written[0], written[-1] + 1)
    gaps = span[result[span] == 0.0]
    result[gaps] = np.interp(gaps, written, result[written])
    return result


def interpolate_lines(grid: HeightGrid, workers: Optional[int] = None) -> int:
    """
    Fill unwritten gaps by linear interpolation along rows, then columns.

    Rows are independent slices and are interpolated in parallel; the column
    pass runs over the row result the same way and is transposed back.

    Args:
        grid: Grid to interpolate in place
        workers: Thread pool size (None lets the executor decide)

    Returns:
        Number of previously unwritten cells that received a value
    """
    snapshot = grid.snapshot()
    with ThreadPoolExecutor(max_workers=workers) as pool:
        rows = np.vstack(list(pool.map(_interpolate_line, snapshot)))
        columns = np.stack(list(pool.map(_interpolate_line, rows.T)), axis=1)

    filled = int(np.count_nonzero((snapshot == 0.0) & (columns != 0.0)))
    grid.heights[:] = columns
    logger.info("Interpolated gaps", filled=filled)
    return filled


def flip(grid: HeightGrid, flip_x: bool = False, flip_y: bool = False) -> None:
    """
    Mirror the grid to match the target engine's axis convention.

    flip_y reverses the row order, flip_x reverses each row. Values are
    untouched; the coverage mask is mirrored with them.
    """
    if flip_y:
        grid.heights[:] = np.flipud(grid.heights).copy()
        grid.coverage[:] = np.flipud(grid.coverage).copy()
    if flip_x:
        grid.heights[:] = np.fliplr(grid.heights).copy()
        grid.coverage[:] = np.fliplr(grid.coverage).copy()
    if flip_x or flip_y:
        logger.info("Flipped heightmap", flip_x=flip_x, flip_y=flip_y)
