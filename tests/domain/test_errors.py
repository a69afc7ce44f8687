import unittest

from nnetchain.domain._errors import (
    NnetError,
    NumericalDivergenceError,
    StreamFormatError,
    StructuralError,
    UnsupportedCapabilityError,
)


class TestErrors(unittest.TestCase):
    def test_hierarchy(self):
        for cls in (
            StructuralError,
            NumericalDivergenceError,
            UnsupportedCapabilityError,
            StreamFormatError,
        ):
            self.assertTrue(issubclass(cls, NnetError))
        self.assertTrue(issubclass(NnetError, RuntimeError))

    def test_structural_error_index(self):
        e = StructuralError("dims disagree", index=3)
        self.assertEqual(e.index, 3)
        self.assertIn("component 3", str(e))

        e = StructuralError("buffers")
        self.assertIsNone(e.index)
        self.assertEqual(str(e), "buffers")

    def test_divergence_messages(self):
        e = NumericalDivergenceError("inf")
        self.assertEqual(e.kind, "inf")
        self.assertEqual(
            str(e),
            "'inf' in network parameters (weight explosion, try lower learning rate?)",
        )

        e = NumericalDivergenceError("nan")
        self.assertEqual(e.kind, "nan")
        self.assertEqual(str(e), "'nan' in network parameters (try lower learning rate?)")

    def test_unsupported_capability_attributes(self):
        e = UnsupportedCapabilityError("weight marshaling", "<RecurrentCell>", 2)
        self.assertEqual(e.capability, "weight marshaling")
        self.assertEqual(e.component_type, "<RecurrentCell>")
        self.assertEqual(e.index, 2)
        self.assertIn("<RecurrentCell>", str(e))
        self.assertIn("index 2", str(e))


if __name__ == "__main__":
    unittest.main()
