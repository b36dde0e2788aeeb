# particle_system.py

import logging
import numba
import numpy as np
from flow_field import _sample_index_jit, _clamp_index_jit
from particle import Particle, _update_particle_jit

logger = logging.getLogger("flow_field_sim")

# --- JIT-Compiled Batch Step ---
# Particles are independent and the field is read-only during the step, so
# this loop could become a numba.prange without any synchronization.

@numba.jit(nopython=True)
def _step_particles_jit(positions, velocities, accelerations, last_positions, cells, scale_factor, columns, max_speed, half_width, half_height):
    """
    Numba-accelerated follow + update for every particle.
    Returns the number of field lookups that had to be clamped into range.
    """
    num_cells = cells.shape[0]
    clamped_count = 0
    for i in range(positions.shape[0]):
        raw_index = _sample_index_jit(positions[i, 0], positions[i, 1], scale_factor, columns)
        index, clamped = _clamp_index_jit(raw_index, num_cells)
        if clamped:
            clamped_count += 1

        accelerations[i, 0] += cells[index, 0]
        accelerations[i, 1] += cells[index, 1]

        _update_particle_jit(
            positions[i], velocities[i], accelerations[i], last_positions[i],
            max_speed, half_width, half_height
        )
    return clamped_count


class ParticleSystem:
    """
    Owns a fixed-size population of particles stored as a structure of arrays.

    Data Contract:
    - Inputs:
        - config (SimulationConfig): particle_count, max_speed and bounds.
        - rng (np.random.Generator): the master seeded random number generator.
    - Outputs: None. This class modifies its internal state.
    - Side Effects: step() mutates positions, velocities, accelerations and
      last_positions in place.
    - Invariants: The number of particles is constant for the run. Each
      Particle in `particles` is a view onto row i of the arrays.
    """
    def __init__(self, config, rng: np.random.Generator):
        self.config = config
        self.num_particles = config.particle_count
        self.max_speed = config.max_speed
        self.rng = rng

        # --- Preallocated state (Structure of Arrays) ---
        self.positions = np.zeros((self.num_particles, 2), dtype=float)
        self.velocities = np.zeros((self.num_particles, 2), dtype=float)
        self.accelerations = np.zeros((self.num_particles, 2), dtype=float)
        self.last_positions = np.zeros((self.num_particles, 2), dtype=float)

        self.particles = []

        logger.info(f"ParticleSystem created for {self.num_particles} particles (max_speed={self.max_speed}).")

    def init(self):
        """
        Constructs every particle at a random position and gives it a small
        random kick, uniform in [0, 1) on each axis, before the first step.
        """
        if self.particles:
            raise RuntimeError("ParticleSystem.init() called twice")

        for i in range(self.num_particles):
            storage = (self.positions[i], self.velocities[i], self.accelerations[i], self.last_positions[i])
            particle = Particle(self.config, self.rng, storage=storage)
            particle.apply_force(self.rng.random(2))
            self.particles.append(particle)

        logger.info(f"ParticleSystem initialized: {len(self.particles)} particles seeded.")

    def step(self, field) -> int:
        """
        Every particle samples the field, applies the sample as a force and
        integrates. Returns the number of clamped field lookups this step.
        """
        if len(self.particles) != self.num_particles:
            raise RuntimeError("ParticleSystem.step() called before init()")

        clamped = _step_particles_jit(
            self.positions,
            self.velocities,
            self.accelerations,
            self.last_positions,
            field.cells,
            float(field.scale_factor),
            field.columns,
            float(self.max_speed),
            float(self.config.half_width),
            float(self.config.half_height)
        )
        if clamped:
            field.out_of_range_lookups += clamped
            logger.debug(f"{clamped} field lookup(s) clamped into range this step.")
        return clamped

    def record_trail_anchors(self):
        """Vectorized record_trail_anchor() for the whole population."""
        self.last_positions[:] = self.positions

    def mean_speed(self) -> float:
        if self.num_particles == 0:
            return 0.0
        return float(np.mean(np.linalg.norm(self.velocities, axis=1)))

    def __len__(self):
        return len(self.particles)

    def __getitem__(self, index):
        return self.particles[index]

    def __iter__(self):
        return iter(self.particles)
