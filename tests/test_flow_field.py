import math
import unittest
import numpy as np
from flow_field import FlowField, sample_index, _normalize_cells_jit
from sim_config import DEFAULT_CONFIG
from noise_stubs import ConstantNoise, RecordingNoise


def make_field(noise=None, **overrides):
    config = DEFAULT_CONFIG._replace(**overrides)
    return FlowField(config, noise if noise is not None else ConstantNoise(0.0))


class TestInitVectors(unittest.TestCase):
    def test_two_by_two_grid_is_a_quarter_turn_per_cell(self):
        field = make_field(columns=2, rows=2, scale_factor=10.0)
        field.init_vectors()
        for k in range(4):
            np.testing.assert_allclose(
                field.cells[k],
                (math.cos(k * math.pi / 2), math.sin(k * math.pi / 2)),
                atol=1e-12,
            )

    def test_reference_grid_sweeps_a_full_circle(self):
        field = make_field()
        field.init_vectors()
        self.assertEqual(field.cells.shape, (77 * 44, 2))
        np.testing.assert_allclose(np.linalg.norm(field.cells, axis=1), 1.0)
        step = 2 * math.pi / (77 * 44)
        np.testing.assert_allclose(field.cells[100], (math.cos(100 * step), math.sin(100 * step)))

    def test_second_init_is_an_error(self):
        field = make_field(columns=2, rows=2)
        field.init_vectors()
        with self.assertRaises(RuntimeError):
            field.init_vectors()
        self.assertEqual(len(field.cells), 4)


class TestUpdate(unittest.TestCase):
    def test_constant_noise_is_used_as_an_angle(self):
        c = 0.7
        field = make_field(ConstantNoise(c), columns=5, rows=3)
        field.init_vectors()
        field.update()
        expected = np.array([math.cos(c), math.sin(c)])
        for cell in field.cells:
            np.testing.assert_allclose(cell, expected, atol=1e-12)

    def test_cells_are_unit_length_after_update(self):
        field = make_field(RecordingNoise(), columns=7, rows=4)
        field.init_vectors()
        for _ in range(3):
            field.update()
            np.testing.assert_allclose(np.linalg.norm(field.cells, axis=1), 1.0, atol=1e-9)

    def test_noise_cursor_schedule(self):
        noise = RecordingNoise()
        field = make_field(noise, columns=3, rows=2, noise_increment=0.1, noise_z_step=0.009)
        field.init_vectors()
        field.update()

        expected = [
            (0.0, 0.0, 0.0), (0.1, 0.0, 0.0), (0.2, 0.0, 0.0),
            (0.0, 0.1, 0.0), (0.1, 0.1, 0.0), (0.2, 0.1, 0.0),
        ]
        self.assertEqual(len(noise.calls), 6)
        for call, want in zip(noise.calls, expected):
            np.testing.assert_allclose(call, want, atol=1e-12)
        self.assertAlmostEqual(field.noise_cursor[2], 0.009)

        noise.calls.clear()
        field.update()
        np.testing.assert_allclose(noise.calls[0], (0.0, 0.0, 0.009), atol=1e-12)
        np.testing.assert_allclose(noise.calls[-1], (0.2, 0.1, 0.009), atol=1e-12)
        self.assertAlmostEqual(field.noise_cursor[2], 0.018)

    def test_cells_are_written_row_major(self):
        noise = RecordingNoise()
        field = make_field(noise, columns=3, rows=2)
        field.init_vectors()
        field.update()
        x, y, z = noise.calls[4]  # row 1, column 1
        angle = noise.sample(x, y, z)
        np.testing.assert_allclose(field.cells[field.cell_index(1, 1)], (math.cos(angle), math.sin(angle)))

    def test_zero_length_cells_are_left_unchanged(self):
        cells = np.array([[0.0, 0.0], [3.0, 4.0]])
        _normalize_cells_jit(cells)
        np.testing.assert_array_equal(cells[0], (0.0, 0.0))
        np.testing.assert_allclose(cells[1], (0.6, 0.8))


class TestIndexing(unittest.TestCase):
    def test_sample_index_is_additive(self):
        self.assertEqual(sample_index((30.0, 20.0), 10.0, 5), 17)
        self.assertEqual(sample_index((-30.0, 20.0), 10.0, 5), 13)
        self.assertEqual(sample_index((12.0, 7.0), 10.0, 5), 6)
        self.assertEqual(sample_index((0.0, 0.0), 20.0, 77), 0)

    def test_sample_index_is_deterministic(self):
        position = np.array([123.4, -56.7])
        first = sample_index(position, 20.0, 77)
        for _ in range(10):
            self.assertEqual(sample_index(position, 20.0, 77), first)

    def test_grid_indexing_is_a_bijection(self):
        field = make_field(columns=6, rows=4)
        indices = [field.cell_index(i, j) for i in range(4) for j in range(6)]
        self.assertEqual(sorted(indices), list(range(24)))

    def test_cell_index_rejects_out_of_grid(self):
        field = make_field(columns=6, rows=4)
        with self.assertRaises(IndexError):
            field.cell_index(4, 0)
        with self.assertRaises(IndexError):
            field.cell_index(0, -1)

    def test_lookup_clamps_out_of_range_index(self):
        field = make_field(columns=2, rows=2, scale_factor=10.0)
        field.init_vectors()
        index, clamped = field.lookup((100.0, 0.0))
        self.assertEqual(index, 3)
        self.assertTrue(clamped)
        self.assertEqual(field.out_of_range_lookups, 1)

        index, clamped = field.lookup((5.0, 5.0))
        self.assertEqual(index, 1)
        self.assertFalse(clamped)
        self.assertEqual(field.out_of_range_lookups, 1)

    def test_vector_at_returns_the_looked_up_cell(self):
        field = make_field(columns=2, rows=2, scale_factor=10.0)
        field.init_vectors()
        np.testing.assert_allclose(field.vector_at((10.0, 0.0)), field.cells[2])


if __name__ == '__main__':
    unittest.main()
