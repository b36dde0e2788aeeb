# flow_field.py

import logging
import numba
import numpy as np

logger = logging.getLogger("flow_field_sim")

# --- JIT-Compiled Grid Functions ---
# Kept at module level so the particle kernels in particle_system.py can call
# them from nopython mode during the batch step.

@numba.jit(nopython=True)
def _init_vectors_jit(cells):
    """Fills the cells with one full rotational sweep, cell k at angle k * 2pi / n."""
    num_cells = cells.shape[0]
    angle_increment = 2.0 * np.pi / num_cells
    for k in range(num_cells):
        angle = angle_increment * k
        cells[k, 0] = np.cos(angle)
        cells[k, 1] = np.sin(angle)

@numba.jit(nopython=True)
def _normalize_cells_jit(cells):
    """Rescales every cell to unit length. Zero-length cells are left unchanged."""
    for k in range(cells.shape[0]):
        length = np.sqrt(cells[k, 0] * cells[k, 0] + cells[k, 1] * cells[k, 1])
        if length > 0.0:
            cells[k, 0] /= length
            cells[k, 1] /= length

@numba.jit(nopython=True)
def _sample_index_jit(x, y, scale_factor, columns):
    """
    Maps a world position to a cell index.
    The composition is additive (row + column * columns), not row-major.
    Changing it alters which cell steers a particle.
    """
    column = x / scale_factor
    row = y / scale_factor
    return int(abs(row + column * columns))

@numba.jit(nopython=True)
def _clamp_index_jit(index, num_cells):
    """Returns (index clamped into [0, num_cells), whether clamping was needed)."""
    if index >= num_cells:
        return num_cells - 1, True
    if index < 0:
        return 0, True
    return index, False


def sample_index(position, scale_factor: float, columns: int) -> int:
    """
    Pure position-to-index mapping, without bounds clamping.

    - Inputs:
        - position: (x, y) world coordinates.
        - scale_factor (float): world distance between adjacent cells.
        - columns (int): number of grid columns.
    - Outputs: int(|y / scale_factor + (x / scale_factor) * columns|).
    """
    return _sample_index_jit(float(position[0]), float(position[1]), float(scale_factor), int(columns))


class FlowField:
    """
    A rectangular grid of unit direction vectors driven by coherent noise.

    Data Contract:
    - Inputs:
        - config (SimulationConfig): grid shape, cell size and noise steps.
        - noise: any object with sample(x, y, z) -> float.
    - Outputs: None. This class modifies its internal state.
    - Side Effects: Consumes one noise sample per cell on every update().
    - Invariants: cells has shape (columns * rows, 2) and is stored row-major
      (row i, column j -> i * columns + j). After update() every cell is unit
      length. The cell array is allocated once and never resized.
    """
    def __init__(self, config, noise):
        self.config = config
        self.columns = config.columns
        self.rows = config.rows
        self.scale_factor = config.scale_factor
        self.num_cells = self.columns * self.rows
        self.noise = noise

        self.cells = np.zeros((self.num_cells, 2), dtype=float)
        self.noise_cursor = np.zeros(3, dtype=float)
        self.increment = config.noise_increment
        self.z_step = config.noise_z_step

        # Diagnostic: lookups whose raw index fell outside the grid.
        self.out_of_range_lookups = 0

        self._initialized = False
        self._angles = np.zeros(self.num_cells, dtype=float)

        logger.info(
            f"FlowField created: {self.columns}x{self.rows} cells, "
            f"scale_factor={self.scale_factor}, noise={noise!r}"
        )

    def init_vectors(self):
        """
        Fills the grid with a deterministic, noise-free spiral pattern.
        Must be called exactly once before the first update or lookup.
        """
        if self._initialized:
            raise RuntimeError("FlowField.init_vectors() called twice")
        _init_vectors_jit(self.cells)
        self._initialized = True

    def update(self):
        """
        Regenerates every cell from the noise source.

        The cursor schedule is fixed: y resets once per update, x resets at
        the start of every row, both advance by `increment` per column/row,
        and z advances by `z_step` once per full grid. Each noise value is
        used directly as an angle in radians.
        """
        cursor = self.noise_cursor
        angles = self._angles
        sample = self.noise.sample

        cursor[1] = 0.0
        for i in range(self.rows):
            cursor[0] = 0.0
            row_start = i * self.columns
            for j in range(self.columns):
                angles[row_start + j] = sample(cursor[0], cursor[1], cursor[2])
                cursor[0] += self.increment
            cursor[1] += self.increment
        cursor[2] += self.z_step

        self.cells[:, 0] = np.cos(angles)
        self.cells[:, 1] = np.sin(angles)
        _normalize_cells_jit(self.cells)

    def cell_index(self, row: int, column: int) -> int:
        """Row-major index of the cell at (row, column)."""
        if not (0 <= row < self.rows and 0 <= column < self.columns):
            raise IndexError(f"Cell ({row}, {column}) outside {self.rows}x{self.columns} grid")
        return row * self.columns + column

    def lookup(self, position):
        """
        Returns (index, clamped) for the cell that steers a particle at `position`.
        Out-of-range indices are clamped into the grid and counted, never raised.
        """
        raw_index = sample_index(position, self.scale_factor, self.columns)
        index, clamped = _clamp_index_jit(raw_index, self.num_cells)
        if clamped:
            self.out_of_range_lookups += 1
            logger.debug(f"Field index {raw_index} out of range for position {tuple(position)}; clamped to {index}.")
        return index, clamped

    def vector_at(self, position) -> np.ndarray:
        index, _ = self.lookup(position)
        return self.cells[index]
