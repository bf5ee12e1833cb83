import unittest

from dynlyap.errors import (
    ConfigurationError,
    DynlyapError,
    NumericalDivergenceError,
    UnderflowWarning,
)


class TestErrors(unittest.TestCase):
    def test_hierarchy(self):
        self.assertTrue(issubclass(ConfigurationError, DynlyapError))
        self.assertTrue(issubclass(ConfigurationError, ValueError))
        self.assertTrue(issubclass(NumericalDivergenceError, DynlyapError))
        self.assertTrue(issubclass(NumericalDivergenceError, ArithmeticError))
        self.assertTrue(issubclass(UnderflowWarning, RuntimeWarning))

    def test_divergence_time(self):
        err = NumericalDivergenceError("state became non-finite", t=2.5)
        self.assertEqual(err.t, 2.5)
        self.assertIn("t=2.5", str(err))
        self.assertEqual(str(NumericalDivergenceError("failed")), "failed")


if __name__ == "__main__":
    unittest.main()
