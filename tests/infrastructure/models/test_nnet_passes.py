import unittest

import numpy as np
from numpy.testing import assert_allclose, assert_array_equal

from nnetchain.domain._errors import StructuralError
from nnetchain.domain._train_options import TrainOptions
from nnetchain.infrastructure import AffineTransform, Dropout, Nnet, Sigmoid, Softmax, Tanh


def _identity_affine():
    a = AffineTransform(3, 2, initializer=None)
    a.linearity[...] = [[1, 0, 0], [0, 1, 0]]
    return a


def _mlp(seed=0, opts=None):
    np.random.seed(seed)
    return Nnet(
        [AffineTransform(4, 6), Sigmoid(6), AffineTransform(6, 3), Softmax(3)],
        opts,
    )


class TestEmptyNetwork(unittest.TestCase):
    def test_passes_copy_input(self):
        n = Nnet()
        x = np.arange(6, dtype=np.float32).reshape(2, 3)
        for out in (n.propagate(x), n.feedforward(x), n.backpropagate(x)):
            assert_array_equal(out, x)
            self.assertIsNot(out, x)

    def test_buffers_and_dims(self):
        n = Nnet()
        self.assertEqual(len(n), 0)
        self.assertEqual(len(n.propagate_buffers), 1)
        self.assertEqual(len(n.backpropagate_buffers), 1)
        with self.assertRaises(StructuralError):
            n.input_dim()
        with self.assertRaises(StructuralError):
            n.output_dim()
        self.assertEqual(n.num_params(), 0)
        self.assertEqual(n.get_params().shape, (0,))


class TestPropagate(unittest.TestCase):
    def test_identity_affine(self):
        n = Nnet([_identity_affine()])
        assert_allclose(n.propagate([1.0, 2.0, 3.0]), [[1.0, 2.0]])

    def test_buffers_hold_every_activation(self):
        n = _mlp()
        x = np.random.RandomState(0).randn(5, 4).astype(np.float32)
        out = n.propagate(x)

        bufs = n.propagate_buffers
        self.assertEqual(len(bufs), n.num_components() + 1)
        assert_array_equal(bufs[0], x)
        for i, c in enumerate(n):
            assert_array_equal(bufs[i + 1], c.propagate(bufs[i]))
        assert_array_equal(out, bufs[-1])
        self.assertIsNot(out, bufs[-1])
        assert_allclose(out.sum(axis=1), np.ones(5), rtol=1e-6)

    def test_input_is_not_aliased(self):
        n = Nnet([Sigmoid(2)])
        x = np.zeros((1, 2), dtype=np.float32)
        n.propagate(x)
        x[0, 0] = 5.0
        self.assertEqual(n.propagate_buffers[0][0, 0], 0.0)

    def test_wrong_width_raises(self):
        n = Nnet([_identity_affine()])
        with self.assertRaises(ValueError):
            n.propagate(np.ones((1, 4), dtype=np.float32))


class TestFeedforward(unittest.TestCase):
    def test_matches_propagate_and_releases_buffers(self):
        n = _mlp()
        x = np.random.RandomState(1).randn(7, 4).astype(np.float32)
        expected = n.propagate(x)
        out = n.feedforward(x)
        assert_allclose(out, expected, rtol=1e-6)
        self.assertEqual(n.propagate_buffers[0].shape, (0, 0))
        self.assertEqual(n.propagate_buffers[1].shape, (0, 0))
        self.assertEqual(len(n.propagate_buffers), 5)

    def test_single_and_two_component_networks(self):
        x = np.array([[1.0, 2.0, 3.0]], dtype=np.float32)
        assert_allclose(Nnet([_identity_affine()]).feedforward(x), [[1.0, 2.0]])

        n = Nnet([_identity_affine(), Tanh(2)])
        assert_allclose(n.feedforward(x), np.tanh([[1.0, 2.0]]), rtol=1e-6)

    def test_odd_and_even_depths(self):
        x = np.random.RandomState(2).randn(3, 2).astype(np.float32)
        for depth in (3, 4, 5):
            n = Nnet([Tanh(2) for _ in range(depth)])
            expected = x.astype(np.float64)
            for _ in range(depth):
                expected = np.tanh(expected)
            assert_allclose(n.feedforward(x), expected, rtol=1e-5)

    def test_dropout_is_still_applied(self):
        np.random.seed(0)
        n = Nnet([Dropout(100, dropout_retention=0.5), Sigmoid(100)])
        out = n.feedforward(np.full((1, 100), 3.0, dtype=np.float32))
        self.assertTrue(np.any(np.isclose(out, 0.5)))


class TestBackpropagate(unittest.TestCase):
    def test_identity_gradient(self):
        n = Nnet([_identity_affine()], TrainOptions(learn_rate=0.0))
        n.propagate([1.0, 2.0, 3.0])
        d = n.backpropagate([[1.0, -1.0]])
        assert_allclose(d, [[1.0, -1.0, 0.0]])

    def test_buffers_hold_every_gradient(self):
        n = _mlp(opts=TrainOptions(learn_rate=0.0))
        x = np.random.RandomState(3).randn(4, 4).astype(np.float32)
        g = np.random.RandomState(4).randn(4, 3).astype(np.float32)
        n.propagate(x)
        d = n.backpropagate(g)

        bwd = n.backpropagate_buffers
        self.assertEqual(len(bwd), 5)
        assert_array_equal(bwd[-1], g)
        assert_array_equal(d, bwd[0])
        self.assertEqual(bwd[2].shape, (4, 6))

    def test_shape_must_match_last_output(self):
        n = _mlp()
        n.propagate(np.ones((2, 4), dtype=np.float32))
        with self.assertRaises(ValueError):
            n.backpropagate(np.ones((3, 3), dtype=np.float32))

    def test_update_changes_parameters(self):
        n = _mlp(opts=TrainOptions(learn_rate=0.5))
        before = n.get_params()
        n.propagate(np.ones((2, 4), dtype=np.float32))
        n.backpropagate(np.ones((2, 3), dtype=np.float32))
        self.assertFalse(np.array_equal(before, n.get_params()))

    def test_no_update_leaves_parameters(self):
        n = _mlp(opts=TrainOptions(learn_rate=0.5))
        before = n.get_params()
        n.propagate(np.ones((2, 4), dtype=np.float32))
        n.backpropagate(np.ones((2, 3), dtype=np.float32), update=False)
        assert_array_equal(before, n.get_params())


class TestTwoStepUpdate(unittest.TestCase):
    def test_matches_fused_update(self):
        opts = TrainOptions(learn_rate=0.1, momentum=0.9, l2_penalty=1e-3)
        a = _mlp(seed=3, opts=opts)
        b = a.copy()
        x = np.random.RandomState(5).randn(8, 4).astype(np.float32)
        g = np.random.RandomState(6).randn(8, 3).astype(np.float32)

        for _ in range(3):
            a.propagate(x)
            da = a.backpropagate(g)

            b.propagate(x)
            db = b.backpropagate(g, update=False)
            records = b.compute_gradients()
            self.assertIsNone(records[1])
            self.assertIsNone(records[3])
            b.apply_gradients(records)

            assert_allclose(da, db, rtol=1e-5, atol=1e-6)
            assert_allclose(a.get_params(), b.get_params(), rtol=1e-5, atol=1e-6)
            assert_allclose(a.get_gradient(), b.get_gradient(), rtol=1e-5, atol=1e-6)

    def test_record_count_must_match(self):
        n = _mlp()
        with self.assertRaises(ValueError):
            n.apply_gradients([None])


class TestTrainingConverges(unittest.TestCase):
    def test_xor_with_softmax_cross_entropy(self):
        np.random.seed(0)
        n = Nnet(
            [AffineTransform(2, 8), Tanh(8), AffineTransform(8, 2), Softmax(2)],
            TrainOptions(learn_rate=0.1, momentum=0.9),
        )
        x = np.array([[0, 0], [0, 1], [1, 0], [1, 1]], dtype=np.float32)
        labels = np.array([0, 1, 1, 0])
        targets = np.eye(2, dtype=np.float32)[labels]

        for _ in range(2000):
            y = n.propagate(x)
            n.backpropagate((y - targets) / len(x))

        pred = n.feedforward(x).argmax(axis=1)
        assert_array_equal(pred, labels)


if __name__ == "__main__":
    unittest.main()
