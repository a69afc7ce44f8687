import io
import logging
import os
import tempfile
import unittest

import numpy as np
from numpy.testing import assert_allclose, assert_array_equal

from nnetchain.domain._errors import StreamFormatError
from nnetchain.domain._train_options import TrainOptions
from nnetchain.infrastructure import (
    AffineTransform,
    Dropout,
    Nnet,
    RecurrentCell,
    Sigmoid,
    Softmax,
)


def _net():
    np.random.seed(21)
    return Nnet(
        [
            AffineTransform(4, 6, learn_rate_coef=0.5),
            Sigmoid(6),
            Dropout(6, dropout_retention=0.8),
            RecurrentCell(6, 5),
            AffineTransform(5, 3),
            Softmax(3),
        ],
        TrainOptions(learn_rate=0.1),
    )


class TestNnetFileIO(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)

    def _path(self, name):
        return os.path.join(self._tmp.name, name)

    def _assert_same(self, a, b):
        self.assertEqual(a.num_components(), b.num_components())
        for ca, cb in zip(a, b):
            self.assertEqual(type(ca), type(cb))
            self.assertEqual((ca.input_dim, ca.output_dim), (cb.input_dim, cb.output_dim))
        assert_array_equal(a.get_params(), b.get_params())

    def test_binary_round_trip(self):
        a = _net()
        path = self._path("model.nnet")
        a.write(path)
        with open(path, "rb") as f:
            self.assertEqual(f.read(2), b"\0B")

        b = Nnet()
        b.read(path)
        self._assert_same(a, b)
        self.assertAlmostEqual(b[2].dropout_retention, 0.8)
        self.assertEqual(b[0].learn_rate_coef, 0.5)

    def test_text_round_trip(self):
        a = _net()
        path = self._path("model.txt")
        a.write(path, binary=False)
        with open(path, "rb") as f:
            self.assertTrue(f.read().startswith(b"<Nnet> \n<AffineTransform> 6 4 \n"))

        b = Nnet()
        b.read(path)
        self._assert_same(a, b)

    def test_inference_is_preserved(self):
        a = _net()
        a[2].training = False
        x = np.random.RandomState(0).randn(3, 4).astype(np.float32)
        path = self._path("model.nnet")
        a.write(path)
        b = Nnet()
        b.read(path)
        b[2].training = False
        assert_allclose(b.feedforward(x), a.feedforward(x), rtol=1e-6)

    def test_read_resets_learn_rate(self):
        a = _net()
        path = self._path("model.nnet")
        a.write(path)
        b = Nnet()
        b.read(path)
        self.assertEqual(b.train_options.learn_rate, 0.0)
        self.assertEqual(b[0].train_options.learn_rate, 0.0)
        self.assertEqual(b[3].train_options.learn_rate, 0.0)

    def test_read_appends_to_existing_components(self):
        path = self._path("tail.nnet")
        Nnet([Sigmoid(4), AffineTransform(4, 2)]).write(path)
        n = Nnet([AffineTransform(3, 4)])
        n.read(path)
        self.assertEqual(n.num_components(), 3)
        self.assertEqual(len(n.propagate_buffers), 4)

    def test_empty_network_warns(self):
        path = self._path("empty.nnet")
        Nnet().write(path)
        n = Nnet()
        with self.assertLogs("nnetchain.infrastructure.models._nnet", level=logging.WARNING) as cm:
            n.read(path)
        self.assertEqual(n.num_components(), 0)
        self.assertIn("is empty", cm.output[0])

    def test_write_creates_parent_directories(self):
        path = self._path(os.path.join("a", "b", "model.nnet"))
        _net().write(path)
        self.assertTrue(os.path.exists(path))


class TestNnetStreamErrors(unittest.TestCase):
    def _read_text(self, data):
        n = Nnet()
        n.read_stream(io.BytesIO(data), False)
        return n

    def test_dimension_mismatch(self):
        with self.assertRaises(StreamFormatError) as ctx:
            self._read_text(b"<Nnet> <Sigmoid> 3 3 <Sigmoid> 2 2 </Nnet> ")
        self.assertIn("Dimensionality mismatch", str(ctx.exception))

    def test_truncated_stream(self):
        with self.assertRaises(StreamFormatError):
            self._read_text(b"<Nnet> <Sigmoid> 3 3 ")
        with self.assertRaises(StreamFormatError):
            self._read_text(b"<Nnet> <Sigmoid> 3 ")

    def test_unknown_marker(self):
        with self.assertRaises(StreamFormatError):
            self._read_text(b"<Nnet> <Bogus> 3 3 </Nnet> ")

    def test_opening_token_is_optional(self):
        n = self._read_text(b"<Sigmoid> 3 3 <Tanh> 3 3 </Nnet> ")
        self.assertEqual(n.num_components(), 2)

    def test_truncated_binary_file(self):
        buf = io.BytesIO()
        _net().write_stream(buf, True)
        data = buf.getvalue()
        with self.assertRaises(StreamFormatError):
            Nnet().read_stream(io.BytesIO(data[: len(data) // 2]), True)

    def test_write_stream_has_no_header(self):
        buf = io.BytesIO()
        Nnet([Sigmoid(2)]).write_stream(buf, True)
        self.assertEqual(buf.getvalue()[:7], b"<Nnet> ")


if __name__ == "__main__":
    unittest.main()
