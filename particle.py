# particle.py

import logging
import numba
import numpy as np

logger = logging.getLogger("flow_field_sim")

# --- JIT-Compiled Motion Functions ---
# Shared by the per-particle API below and the batch kernel in
# particle_system.py, so both paths integrate identically.

@numba.jit(nopython=True)
def _limit_speed_jit(velocity, max_speed):
    """Rescales velocity to max_speed if it is faster. A zero vector is never touched."""
    speed_sq = velocity[0] * velocity[0] + velocity[1] * velocity[1]
    if speed_sq > max_speed * max_speed:
        speed = np.sqrt(speed_sq)
        velocity[0] = velocity[0] / speed * max_speed
        velocity[1] = velocity[1] / speed * max_speed

@numba.jit(nopython=True)
def _wrap_bounds_jit(position, last_position, half_width, half_height):
    """
    Toroidal wrap. Each axis is checked independently. On any wrap the trail
    anchor jumps with the particle so no segment is drawn across the screen.
    """
    wrapped = False
    if position[0] > half_width:
        position[0] = -half_width
        wrapped = True
    elif position[0] < -half_width:
        position[0] = half_width
        wrapped = True

    if position[1] > half_height:
        position[1] = -half_height
        wrapped = True
    elif position[1] < -half_height:
        position[1] = half_height
        wrapped = True

    if wrapped:
        last_position[0] = position[0]
        last_position[1] = position[1]
    return wrapped

@numba.jit(nopython=True)
def _update_particle_jit(position, velocity, acceleration, last_position, max_speed, half_width, half_height):
    """
    One integration step:
    p_new = p_old + v_old
    v_new = v_old + a
    a = 0
    The position moves with the pre-update velocity. Then speed clamp, then wrap.
    """
    position[0] += velocity[0]
    position[1] += velocity[1]
    velocity[0] += acceleration[0]
    velocity[1] += acceleration[1]
    acceleration[0] = 0.0
    acceleration[1] = 0.0

    _limit_speed_jit(velocity, max_speed)
    return _wrap_bounds_jit(position, last_position, half_width, half_height)


class Particle:
    """
    Represents a single particle steered by the flow field.

    Data Contract:
    - Inputs:
        - config (SimulationConfig): supplies max_speed and the wrap boundary.
        - rng (np.random.Generator): draws the starting position.
        - storage (optional): four length-2 arrays (position, velocity,
          acceleration, last_position). A ParticleSystem passes row views of
          its own arrays here; when omitted the particle allocates its own.
    - Invariants: |velocity| <= max_speed after every update(). State is
      always mutated in place so views stay bound to their storage.
    """
    def __init__(self, config, rng: np.random.Generator, storage=None):
        if storage is None:
            storage = np.zeros((4, 2), dtype=float)
        self.position, self.velocity, self.acceleration, self.last_position = storage

        self.max_speed = config.max_speed
        self.half_width = config.half_width
        self.half_height = config.half_height

        self.position[:] = rng.uniform(
            (-self.half_width, -self.half_height),
            (self.half_width, self.half_height),
        )
        self.velocity.fill(0.0)
        self.acceleration.fill(0.0)
        self.last_position[:] = self.position

        logger.debug(f"Particle created: pos={self.position}, max_speed={self.max_speed}")

    @property
    def speed(self) -> float:
        return float(np.hypot(self.velocity[0], self.velocity[1]))

    def apply_force(self, force):
        """Accumulates a force into acceleration. Mass is implicitly 1."""
        self.acceleration += force

    def follow(self, field):
        """Samples the field vector at the current position and applies it as a force."""
        self.apply_force(field.vector_at(self.position))

    def update(self):
        _update_particle_jit(
            self.position, self.velocity, self.acceleration, self.last_position,
            self.max_speed, self.half_width, self.half_height
        )

    def wrap_bounds(self) -> bool:
        return _wrap_bounds_jit(self.position, self.last_position, self.half_width, self.half_height)

    def record_trail_anchor(self):
        """Marks the current position as the start of the next frame's trail."""
        self.last_position[:] = self.position
