import unittest

import numpy as np
from numpy.testing import assert_array_equal

from nnetchain.infrastructure.encoding._b64 import (
    b64_str_to_bytes,
    bytes_to_b64_str,
    ndarray_to_payload,
    payload_to_ndarray,
)


class TestB64Payload(unittest.TestCase):
    def test_bytes_round_trip(self):
        raw = bytes(range(256))
        s = bytes_to_b64_str(raw)
        self.assertIsInstance(s, str)
        self.assertEqual(b64_str_to_bytes(s), raw)

    def test_payload_fields(self):
        p = ndarray_to_payload(np.arange(6, dtype=np.float64).reshape(2, 3))
        self.assertEqual(p["dtype"], "<f4")
        self.assertEqual(p["shape"], [2, 3])
        self.assertEqual(p["order"], "C")

        out = payload_to_ndarray(p)
        self.assertEqual(out.dtype, np.float32)
        assert_array_equal(out, np.arange(6, dtype=np.float32).reshape(2, 3))
        self.assertTrue(out.flags.writeable)

    def test_byte_count_mismatch_raises(self):
        p = ndarray_to_payload(np.ones((4,), dtype=np.float32))
        p["shape"] = [5]
        with self.assertRaises(ValueError):
            payload_to_ndarray(p)


if __name__ == "__main__":
    unittest.main()
