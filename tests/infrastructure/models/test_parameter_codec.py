import unittest

import numpy as np
from numpy.testing import assert_array_equal

from nnetchain.domain._errors import UnsupportedCapabilityError
from nnetchain.domain._train_options import TrainOptions
from nnetchain.infrastructure import AffineTransform, Nnet, RecurrentCell, Sigmoid


def _affine(in_dim, out_dim, start):
    a = AffineTransform(in_dim, out_dim, initializer=None)
    a.set_params(np.arange(start, start + a.num_params(), dtype=np.float32))
    return a


class TestNativeParameters(unittest.TestCase):
    def test_concatenation_order(self):
        n = Nnet([_affine(2, 2, 0), Sigmoid(2), _affine(2, 1, 100)])
        self.assertEqual(n.num_params(), 6 + 3)
        assert_array_equal(n.get_params(), [0, 1, 2, 3, 4, 5, 100, 101, 102])

    def test_set_params_round_trip(self):
        np.random.seed(0)
        n = Nnet([AffineTransform(3, 4), Sigmoid(4), RecurrentCell(4, 2)])
        params = n.get_params()
        self.assertEqual(params.shape, (n.num_params(),))

        n.set_params(params * 2)
        assert_array_equal(n.get_params(), params * 2)
        assert_array_equal(n[2].w_h.reshape(-1), (params * 2)[16 + 8 : 16 + 8 + 4])

    def test_set_params_wrong_length(self):
        n = Nnet([_affine(2, 2, 0)])
        with self.assertRaises(ValueError):
            n.set_params(np.zeros((5,), dtype=np.float32))
        with self.assertRaises(ValueError):
            n.set_params(np.zeros((7,), dtype=np.float32))

    def test_gradient_follows_last_update(self):
        n = Nnet([_affine(2, 2, 0)], TrainOptions(learn_rate=0.0))
        assert_array_equal(n.get_gradient(), np.zeros(6))
        n.propagate([[1.0, 2.0]])
        n.backpropagate([[1.0, 0.0]])
        assert_array_equal(n.get_gradient(), [1, 2, 0, 0, 1, 0])


class TestWeightMarshaling(unittest.TestCase):
    def test_round_trip(self):
        n = Nnet([_affine(2, 2, 0), Sigmoid(2), _affine(2, 1, 100)])
        w = n.get_weights()
        assert_array_equal(w, n.get_params())

        n.set_weights(np.ones_like(w))
        assert_array_equal(n[0].linearity, np.ones((2, 2)))
        assert_array_equal(n[2].bias, [1.0])

    def test_wrong_length(self):
        n = Nnet([_affine(2, 2, 0)])
        with self.assertRaises(ValueError):
            n.set_weights(np.zeros((3,), dtype=np.float32))

    def test_unsupported_component_is_reported(self):
        n = Nnet([_affine(3, 4, 0), Sigmoid(4), RecurrentCell(4, 2)])
        with self.assertRaises(UnsupportedCapabilityError) as ctx:
            n.get_weights()
        self.assertEqual(ctx.exception.index, 2)
        self.assertEqual(ctx.exception.component_type, "<RecurrentCell>")

        before = n.get_params()
        with self.assertRaises(UnsupportedCapabilityError):
            n.set_weights(np.zeros(n.num_params(), dtype=np.float32))
        assert_array_equal(n.get_params(), before)


if __name__ == "__main__":
    unittest.main()
