import contextlib
import importlib.util
import io
import os
import tempfile
import unittest

import numpy as np
from numpy.testing import assert_array_equal

from nnetchain import AffineTransform, Nnet, Sigmoid, Softmax

SCRIPTS_DIR = os.path.abspath(
    os.path.join(os.path.dirname(__file__), "..", "..", "scripts")
)


def _load_script(name):
    spec = importlib.util.spec_from_file_location(
        name, os.path.join(SCRIPTS_DIR, f"{name}.py")
    )
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestNnetScripts(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)

    def _path(self, name):
        return os.path.join(self._tmp.name, name)

    def _model(self):
        np.random.seed(0)
        path = self._path("model.nnet")
        Nnet(
            [AffineTransform(3, 4), Sigmoid(4), AffineTransform(4, 2), Softmax(2)]
        ).write(path)
        return path

    def test_initialize(self):
        proto = self._path("nnet.proto")
        with open(proto, "w", encoding="utf-8") as f:
            f.write(
                "<NnetProto>\n"
                "<AffineTransform> <InputDim> 3 <OutputDim> 4\n"
                "<Sigmoid> <InputDim> 4 <OutputDim> 4\n"
                "</NnetProto>\n"
            )
        out = self._path("init.txt")
        main = _load_script("nnet_initialize").main
        self.assertEqual(main([proto, out, "--no-binary", "--seed", "1"]), 0)

        with open(out, "rb") as f:
            self.assertTrue(f.read().startswith(b"<Nnet> "))
        n = Nnet()
        n.read(out)
        self.assertEqual(n.num_components(), 2)

        again = self._path("init2.txt")
        main([proto, again, "--no-binary", "--seed", "1"])
        m = Nnet()
        m.read(again)
        assert_array_equal(m.get_params(), n.get_params())

    def test_info(self):
        path = self._model()
        buf = io.StringIO()
        with contextlib.redirect_stdout(buf):
            rc = _load_script("nnet_info").main([path])
        self.assertEqual(rc, 0)
        self.assertIn("num-components 4", buf.getvalue())

    def test_info_json(self):
        n = Nnet()
        n.read(self._model())
        ckpt = self._path("model.json")
        n.save_json(ckpt)
        buf = io.StringIO()
        with contextlib.redirect_stdout(buf):
            _load_script("nnet_info").main(["--json", ckpt])
        self.assertIn("component 3 : <AffineTransform>", buf.getvalue())

    def test_copy_trims_and_converts(self):
        src = self._model()
        dst = self._path("trimmed.txt")
        main = _load_script("nnet_copy").main
        rc = main(
            ["--no-binary", "--remove-first-components", "1", "--remove-last-components", "1", src, dst]
        )
        self.assertEqual(rc, 0)

        n = Nnet()
        n.read(dst)
        self.assertEqual([type(c) for c in n], [Sigmoid, AffineTransform])

    def test_copy_refuses_to_remove_too_many(self):
        main = _load_script("nnet_copy").main
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                main(["--remove-last-components", "5", self._model(), self._path("x.nnet")])
            with self.assertRaises(SystemExit):
                main(["--remove-last-components", "-1", self._model(), self._path("x.nnet")])


if __name__ == "__main__":
    unittest.main()
