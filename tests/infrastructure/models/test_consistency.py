import unittest

import numpy as np

from nnetchain.domain._errors import NumericalDivergenceError, StructuralError
from nnetchain.infrastructure import AffineTransform, Nnet, Sigmoid
from nnetchain.infrastructure.models import BufferPool, check_consistency


class TestCheckConsistency(unittest.TestCase):
    def test_valid_network(self):
        comps = [AffineTransform(3, 4), Sigmoid(4)]
        check_consistency(comps, BufferPool(2))
        check_consistency([], BufferPool(0))

    def test_buffer_count(self):
        comps = [AffineTransform(3, 4), Sigmoid(4)]
        with self.assertRaises(StructuralError):
            check_consistency(comps, BufferPool(1))
        pool = BufferPool(2)
        pool.clear()
        with self.assertRaises(StructuralError):
            check_consistency([], pool)

    def test_dimension_chain_reports_left_index(self):
        comps = [Sigmoid(3), AffineTransform(3, 4), AffineTransform(5, 2)]
        with self.assertRaises(StructuralError) as ctx:
            check_consistency(comps, BufferPool(3))
        self.assertEqual(ctx.exception.index, 1)
        self.assertIn("output-dim 4", str(ctx.exception))

    def test_nan_parameter(self):
        n = Nnet([AffineTransform(3, 4), Sigmoid(4)])
        n[0].linearity[1, 2] = np.nan
        with self.assertRaises(NumericalDivergenceError) as ctx:
            n.check()
        self.assertEqual(ctx.exception.kind, "nan")

    def test_inf_parameter(self):
        n = Nnet([AffineTransform(3, 4)])
        n[0].bias[0] = np.inf
        with self.assertRaises(NumericalDivergenceError) as ctx:
            n.check()
        self.assertEqual(ctx.exception.kind, "inf")
        self.assertIn("weight explosion", str(ctx.exception))

    def test_structural_mutation_runs_check(self):
        n = Nnet([AffineTransform(3, 4)])
        n[0].linearity[0, 0] = np.inf
        with self.assertRaises(NumericalDivergenceError):
            n.append_component(Sigmoid(4))

    def test_large_finite_parameters_pass(self):
        n = Nnet([AffineTransform(3, 4, initializer="zeros")])
        n[0].linearity[...] = np.finfo(np.float32).max
        n.check()


if __name__ == "__main__":
    unittest.main()
