import unittest

import numpy as np

from nnetchain.infrastructure.models import BufferPool


class TestBufferPool(unittest.TestCase):
    def test_initial_buffers_are_empty(self):
        pool = BufferPool(3)
        self.assertEqual(len(pool.propagate_buffers), 4)
        self.assertEqual(len(pool.backpropagate_buffers), 4)
        for b in pool.propagate_buffers + pool.backpropagate_buffers:
            self.assertEqual(b.shape, (0, 0))

    def test_resize_keeps_existing_buffers(self):
        pool = BufferPool(1)
        m = np.ones((2, 2), dtype=np.float32)
        pool.set_propagate(1, m)
        pool.resize(3)
        self.assertIs(pool.propagate_buffers[1], m)
        self.assertEqual(len(pool.propagate_buffers), 4)
        pool.resize(0)
        self.assertEqual(len(pool.backpropagate_buffers), 1)
        with self.assertRaises(ValueError):
            pool.resize(-1)

    def test_release_only_touches_forward_buffer(self):
        pool = BufferPool(1)
        pool.set_propagate(0, np.ones((2, 3), dtype=np.float32))
        pool.set_backpropagate(0, np.ones((2, 3), dtype=np.float32))
        pool.release(0)
        self.assertEqual(pool.propagate_buffers[0].shape, (0, 0))
        self.assertEqual(pool.backpropagate_buffers[0].shape, (2, 3))

    def test_clear(self):
        pool = BufferPool(2)
        pool.clear()
        self.assertEqual(pool.propagate_buffers, ())
        self.assertEqual(pool.backpropagate_buffers, ())
        self.assertEqual(repr(pool), "BufferPool(propagate=0, backpropagate=0)")


if __name__ == "__main__":
    unittest.main()
