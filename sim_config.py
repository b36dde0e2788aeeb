# sim_config.py

import json
import logging
from collections import namedtuple

logger = logging.getLogger("flow_field_sim")

_FIELDS = [
    'particle_count', 'max_speed', 'columns', 'rows', 'scale_factor',
    'noise_increment', 'noise_z_step', 'half_width', 'half_height',
    'trail_scale', 'noise_seed',
]


class SimulationConfig(namedtuple('SimulationConfig', _FIELDS)):
    """
    Per-run engine configuration, shared by reference with every component.

    Data Contract:
    - Inputs: the 'simulation' section of the config file.
    - Outputs: an immutable record. Use `_replace` to derive variants.
    - Invariants: particle_count, columns and rows are positive integers;
      max_speed, scale_factor, half_width and half_height are positive.
    """
    __slots__ = ()

    @classmethod
    def from_dict(cls, sim_config: dict):
        config = cls(
            particle_count=int(sim_config['particle_count']),
            max_speed=float(sim_config['max_speed']),
            columns=int(sim_config['columns']),
            rows=int(sim_config['rows']),
            scale_factor=float(sim_config['scale_factor']),
            noise_increment=float(sim_config.get('noise_increment', 0.1)),  # Default to 0.1 if not in config
            noise_z_step=float(sim_config.get('noise_z_step', 0.009)),  # Default to 0.009 if not in config
            half_width=float(sim_config['half_width']),
            half_height=float(sim_config['half_height']),
            trail_scale=float(sim_config.get('trail_scale', 2.0)),
            noise_seed=int(sim_config.get('noise_seed', 0)),
        )
        config.validate()
        return config

    def validate(self):
        for name in ('particle_count', 'columns', 'rows'):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be a positive integer, got {getattr(self, name)}")
        for name in ('max_speed', 'scale_factor', 'half_width', 'half_height'):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")

    @property
    def bounds(self):
        """The (half_width, half_height) wrap boundary."""
        return (self.half_width, self.half_height)

    @property
    def num_cells(self):
        return self.columns * self.rows


DEFAULT_CONFIG = SimulationConfig(
    particle_count=300,
    max_speed=6.0,
    columns=77,
    rows=44,
    scale_factor=20.0,
    noise_increment=0.1,
    noise_z_step=0.009,
    half_width=768.0,
    half_height=450.0,
    trail_scale=2.0,
    noise_seed=0,
)


def load_config(config_path='config.json'):
    """
    Reads the JSON config file and returns (full_config, SimulationConfig).
    The full dict is returned as well since the host needs 'master_seed'.
    """
    with open(config_path, 'r') as f:
        config = json.load(f)

    sim_config = SimulationConfig.from_dict(config['simulation'])
    logger.info(f"Loaded simulation configuration: {sim_config}")
    return config, sim_config
