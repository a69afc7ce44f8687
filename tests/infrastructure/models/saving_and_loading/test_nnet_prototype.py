import logging
import os
import tempfile
import unittest

import numpy as np
from numpy.testing import assert_allclose, assert_array_equal

from nnetchain.infrastructure import (
    AffineTransform,
    Dropout,
    Nnet,
    Sigmoid,
    Softmax,
)
from nnetchain.domain._errors import StructuralError

PROTO = """<NnetProto>

<AffineTransform> <InputDim> 3 <OutputDim> 4 <ParamStddev> 0.1 <BiasMean> 0.0 <BiasRange> 0.0
<Sigmoid> <InputDim> 4 <OutputDim> 4
<Dropout> <InputDim> 4 <OutputDim> 4 <DropoutRetention> 0.8
<AffineTransform> <InputDim> 4 <OutputDim> 2 <Init> zeros <BiasMean> 1.0 <BiasRange> 0.0
<Softmax> <InputDim> 2 <OutputDim> 2
</NnetProto>
"""


class TestNnetInit(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)

    def _write(self, text, name="nnet.proto"):
        path = os.path.join(self._tmp.name, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        return path

    def test_init_from_prototype(self):
        np.random.seed(0)
        n = Nnet()
        n.init(self._write(PROTO))

        self.assertEqual(
            [type(c) for c in n],
            [AffineTransform, Sigmoid, Dropout, AffineTransform, Softmax],
        )
        self.assertEqual((n.input_dim(), n.output_dim()), (3, 2))
        self.assertEqual(len(n.propagate_buffers), 6)
        assert_array_equal(n[0].bias, np.zeros(4))
        self.assertTrue(np.any(n[0].linearity != 0))
        assert_array_equal(n[3].linearity, np.zeros((2, 4)))
        assert_allclose(n[3].bias, [1.0, 1.0])
        self.assertAlmostEqual(n[2].dropout_retention, 0.8)

    def test_lines_are_logged_at_debug(self):
        path = self._write("<Sigmoid> <InputDim> 2 <OutputDim> 2\n")
        with self.assertLogs("nnetchain.infrastructure.models._nnet", level=logging.DEBUG) as cm:
            Nnet().init(path)
        self.assertIn("<Sigmoid> <InputDim> 2 <OutputDim> 2", cm.output[0])

    def test_init_appends(self):
        n = Nnet([AffineTransform(5, 3)])
        n.init(self._write("<AffineTransform> <InputDim> 3 <OutputDim> 4\n"))
        self.assertEqual(n.num_components(), 2)

    def test_errors(self):
        with self.assertRaises(ValueError):
            Nnet().init(self._write("<AffineTransform> <InputDim> 3 <OutputDim> 4 <Bogus> 1\n"))
        with self.assertRaises(ValueError):
            Nnet().init(self._write("<Bogus> <InputDim> 3 <OutputDim> 4\n"))
        with self.assertRaises(StructuralError):
            Nnet().init(
                self._write(
                    "<AffineTransform> <InputDim> 3 <OutputDim> 4\n"
                    "<Sigmoid> <InputDim> 5 <OutputDim> 5\n"
                )
            )
        with self.assertRaises(FileNotFoundError):
            Nnet().init(os.path.join(self._tmp.name, "missing.proto"))


if __name__ == "__main__":
    unittest.main()
