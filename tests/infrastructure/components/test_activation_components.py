import io
import unittest

import numpy as np
from numpy.testing import assert_allclose, assert_array_equal

from nnetchain.infrastructure import Sigmoid, Softmax, Tanh
from nnetchain.infrastructure.component import read_component
from nnetchain.infrastructure.encoding import TokenReader, TokenWriter


class TestSigmoid(unittest.TestCase):
    def test_forward_values(self):
        s = Sigmoid(3)
        out = s.propagate(np.array([[0.0, 2.0, -2.0]], dtype=np.float32))
        expected = 1.0 / (1.0 + np.exp(-np.array([0.0, 2.0, -2.0])))
        assert_allclose(out, [expected], rtol=1e-6)
        self.assertEqual(out.dtype, np.float32)

    def test_forward_is_stable_for_large_inputs(self):
        out = Sigmoid(2).propagate(np.array([[-1000.0, 1000.0]], dtype=np.float32))
        self.assertTrue(np.isfinite(out).all())
        assert_allclose(out, [[0.0, 1.0]], atol=1e-7)

    def test_backward_uses_output(self):
        s = Sigmoid(2)
        x = np.zeros((1, 2), dtype=np.float32)
        y = s.propagate(x)
        d = s.backpropagate(x, y, np.array([[1.0, 2.0]], dtype=np.float32))
        assert_allclose(d, [[0.25, 0.5]], rtol=1e-6)


class TestTanh(unittest.TestCase):
    def test_forward_and_backward(self):
        t = Tanh(2)
        x = np.array([[0.5, -1.0]], dtype=np.float32)
        y = t.propagate(x)
        assert_allclose(y, np.tanh(x), rtol=1e-6)
        d = t.backpropagate(x, y, np.ones((1, 2), dtype=np.float32))
        assert_allclose(d, 1.0 - np.tanh(x) ** 2, rtol=1e-5)


class TestSoftmax(unittest.TestCase):
    def test_rows_sum_to_one(self):
        x = np.random.RandomState(0).randn(5, 4).astype(np.float32)
        y = Softmax(4).propagate(x)
        assert_allclose(y.sum(axis=1), np.ones(5), rtol=1e-6)
        self.assertTrue((y > 0).all())

    def test_large_inputs(self):
        y = Softmax(2).propagate(np.array([[1000.0, 1000.0]], dtype=np.float32))
        assert_allclose(y, [[0.5, 0.5]])

    def test_backward_passes_gradient_through(self):
        s = Softmax(3)
        x = np.ones((2, 3), dtype=np.float32)
        y = s.propagate(x)
        g = np.arange(6, dtype=np.float32).reshape(2, 3)
        d = s.backpropagate(x, y, g)
        assert_array_equal(d, g)
        self.assertIsNot(d, g)


class TestActivationCommon(unittest.TestCase):
    def test_dims_must_match(self):
        for cls in (Sigmoid, Tanh, Softmax):
            with self.assertRaises(ValueError):
                cls(3, 4)
            c = cls(3, 3)
            self.assertEqual((c.input_dim, c.output_dim), (3, 3))
            self.assertFalse(c.is_updatable())

    def test_markers(self):
        self.assertEqual(Sigmoid(1).get_type(), "<Sigmoid>")
        self.assertEqual(Tanh(1).get_type(), "<Tanh>")
        self.assertEqual(Softmax(1).get_type(), "<Softmax>")

    def test_config_and_proto(self):
        c = Tanh.from_config(Tanh(5).get_config())
        self.assertEqual(c.input_dim, 5)
        self.assertIsInstance(Sigmoid.from_proto(4, 4, {}), Sigmoid)
        with self.assertRaises(ValueError):
            Sigmoid.from_proto(4, 4, {"<ParamStddev>": "0.1"})

    def test_stream_record_has_no_data(self):
        buf = io.BytesIO()
        Sigmoid(4).write(TokenWriter(buf, False))
        self.assertEqual(buf.getvalue(), b"<Sigmoid> 4 4 \n")

        c = read_component(TokenReader(io.BytesIO(buf.getvalue() + b"</Nnet> "), False))
        self.assertIsInstance(c, Sigmoid)
        self.assertEqual(c.input_dim, 4)

    def test_info_is_empty(self):
        self.assertEqual(Softmax(2).info(), "")
        self.assertEqual(Softmax(2).info_gradient(), "")
        self.assertEqual(repr(Softmax(2)), "Softmax(dim=2)")


if __name__ == "__main__":
    unittest.main()
