# noise_source.py

"""
Coherent Noise Source

The flow field only needs a 3-input, 1-output sampling contract:

    sample(x: float, y: float, z: float) -> float

deterministic for a given coordinate and smooth in its inputs. Any object
with such a `sample` method can drive a FlowField (tests use constant stubs).
"""

from noise import pnoise3


class PerlinNoise:
    """
    Single-octave 3D Perlin noise backed by `noise.pnoise3`.

    - Inputs: base (int) - permutation table offset, acts as the seed.
    - Invariants: the same (x, y, z, base) always yields the same value.
    """
    def __init__(self, base: int = 0, octaves: int = 1):
        self.base = base
        self.octaves = octaves

    def sample(self, x: float, y: float, z: float) -> float:
        return pnoise3(x, y, z, octaves=self.octaves, base=self.base)

    def __repr__(self):
        return f"PerlinNoise(base={self.base}, octaves={self.octaves})"
