# simulation.py

import logging
import numpy as np
import constants
from flow_field import FlowField
from particle_system import ParticleSystem

logger = logging.getLogger("flow_field_sim")


class Simulation:
    """
    Composition root: one FlowField and one ParticleSystem sharing one config.

    Data Contract:
    - Inputs:
        - config (SimulationConfig): the shared engine configuration.
        - noise: any object with sample(x, y, z) -> float.
        - rng (np.random.Generator): the master seeded random number generator.
    - Outputs: render data through trail_segments() and field_glyphs().
    - Side Effects: advance() and commit_trail_anchors() are the only mutators.
    - Invariants: Within one advance() the field is updated before any
      particle samples it, so every particle sees the same field snapshot.

    Render protocol, once per frame:
        simulation.advance()
        for start, end, color in simulation.field_glyphs(): ...
        for start, end, color in simulation.trail_segments(): ...
        simulation.commit_trail_anchors()
    """
    def __init__(self, config, noise, rng: np.random.Generator):
        self.config = config

        self.field = FlowField(config, noise)
        self.field.init_vectors()

        self.particles = ParticleSystem(config, rng)
        self.particles.init()

        logger.info("Simulation ready.")

    def advance(self) -> int:
        """Runs one tick. Returns the number of clamped field lookups."""
        self.field.update()
        return self.particles.step(self.field)

    def trail_segments(self, color=constants.PARTICLE_COLOR):
        """
        Yields one (start, end, color) line per particle, in world coordinates.

        The segment runs from the current position back past the trail anchor,
        extended by `trail_scale` times the last frame's displacement.
        """
        trail_scale = self.config.trail_scale
        for position, last_position in zip(self.particles.positions, self.particles.last_positions):
            trail = (position - last_position) * trail_scale
            end = last_position - trail
            yield (float(position[0]), float(position[1])), (float(end[0]), float(end[1])), color

    def field_glyphs(self, color=constants.FIELD_COLOR):
        """Yields one (start, end, color) line per cell, scale_factor long, along the cell direction."""
        field = self.field
        scale = field.scale_factor
        for i in range(field.rows):
            start_y = i * scale - self.config.half_height
            for j in range(field.columns):
                start_x = j * scale - self.config.half_width
                dx, dy = field.cells[i * field.columns + j]
                yield (start_x, start_y), (start_x + scale * float(dx), start_y + scale * float(dy)), color

    def commit_trail_anchors(self):
        """Second render phase: the drawn positions become the next frame's trail anchors."""
        self.particles.record_trail_anchors()
