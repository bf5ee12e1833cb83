import unittest

import numpy as np

import dynlyap.flows as dfl
import dynlyap.maps as dmp
from dynlyap.base import CallableFlow, CallableMap, DynMap, DynSys, SystemKind
from dynlyap.errors import ConfigurationError


class TestSystemConstruction(unittest.TestCase):
    def test_metadata(self):
        model = dfl.Lorenz()
        self.assertIsInstance(model, DynSys)
        self.assertIs(model.kind, SystemKind.CONTINUOUS)
        self.assertEqual(model.dimension, 3)
        self.assertEqual(model.ic.shape, (3,))
        self.assertEqual(model.sigma, 10.0)
        self.assertEqual(model.param_list, [model.beta, model.rho, model.sigma])
        self.assertAlmostEqual(model.maximum_lyapunov_estimated, 0.9056)

    def test_map_metadata(self):
        model = dmp.Henon()
        self.assertIsInstance(model, DynMap)
        self.assertIs(model.kind, SystemKind.DISCRETE)
        self.assertEqual(model.dimension, 2)
        self.assertEqual(model.param_list, [1.4, 0.3])

    def test_overrides(self):
        model = dmp.Henon(parameters={"a": 1.2, "b": 0.2}, initial_conditions=[0.1, 0.1])
        self.assertEqual(model.a, 1.2)
        self.assertTrue(np.allclose(model.ic, [0.1, 0.1]))

    def test_rhs(self):
        model = dfl.Lorenz()
        self.assertTrue(np.allclose(model.rhs(model.ic, 0.0), [100.0, -10.0, 0.0]))
        self.assertTrue(np.allclose(dmp.Henon().rhs([0.0, 0.0]), [1.0, 0.0]))

    def test_batched_rhs(self):
        model = dmp.Henon()
        X = np.array([[0.0, 0.0], [1.0, 1.0], [0.5, -0.5]])
        out = model.rhs(X)
        self.assertEqual(out.shape, (3, 2))
        self.assertTrue(np.allclose(out[1], model.rhs(X[1])))

    def test_dimension_mismatch(self):
        with self.assertRaises(ConfigurationError):
            dfl.Lorenz(initial_conditions=[1.0, 2.0])

    def test_jacobian_shape_mismatch(self):
        with self.assertRaises(ConfigurationError):
            CallableMap(lambda x: 0.5 * x, [1.0, 1.0], jac=lambda x: np.identity(3))

    def test_rhs_shape_mismatch(self):
        with self.assertRaises(ConfigurationError):
            CallableFlow(lambda x, t: np.zeros(3), [1.0, 1.0])

    def test_missing_metadata(self):
        class Unknown(DynMap):
            pass

        with self.assertWarns(UserWarning):
            with self.assertRaises(ConfigurationError):
                Unknown()


class TestCallableSystems(unittest.TestCase):
    def setUp(self):
        self.A = np.array([[0.5, 1.0], [0.0, 0.25]])

    def test_callable_map(self):
        A = self.A
        model = CallableMap(lambda x: A @ x, [1.0, 1.0], jac=lambda x: A, name="Linear")
        self.assertEqual(model.name, "Linear")
        self.assertEqual(model.dimension, 2)
        self.assertTrue(model.has_jacobian())
        self.assertTrue(np.allclose(model.jacobian(model.ic), A))
        self.assertTrue(np.allclose(model.evolve(2), A @ A @ np.ones(2)))

    def test_scalar_map(self):
        model = CallableMap(lambda x: 0.5 * x, 1.0)
        self.assertEqual(model.dimension, 1)
        self.assertEqual(model.jacobian(model.ic).shape, (1, 1))

    def test_callable_flow(self):
        model = CallableFlow(lambda X, t: -X, [1.0, 2.0])
        self.assertFalse(model.has_jacobian())
        self.assertTrue(np.allclose(model.jacobian(model.ic, 0.0), -np.identity(2)))
        X1 = model.step(model.ic, 1.0)
        self.assertTrue(np.allclose(X1, np.exp(-1.0) * np.array([1.0, 2.0]), rtol=1e-7))

    def test_scalar_flow(self):
        model = CallableFlow(lambda X, t: -X, 1.0)
        self.assertEqual(model.dimension, 1)
        self.assertEqual(model.jacobian(model.ic, 0.0).shape, (1, 1))
        X1 = model.step(model.ic, 1.0)
        self.assertTrue(np.allclose(X1, [np.exp(-1.0)], rtol=1e-7))


class TestEvolution(unittest.TestCase):
    def test_map_step(self):
        model = dmp.Henon()
        X = model.ic
        for _ in range(5):
            X = model.rhs(X)
        self.assertTrue(np.allclose(model.step(model.ic, 5), X))
        self.assertTrue(np.allclose(model.evolve(5), X))
        self.assertTrue(np.allclose(model.step(model.ic, 0), model.ic))

    def test_map_step_non_integer(self):
        with self.assertRaises(ConfigurationError):
            dmp.Henon().step([0.0, 0.0], 1.5)

    def test_flow_step(self):
        model = dfl.Lorenz()
        X1 = model.step(model.ic, 0.5)
        X2 = model.step(model.step(model.ic, 0.25), 0.25, t0=0.25)
        self.assertEqual(X1.shape, (3,))
        self.assertTrue(np.allclose(X1, X2, atol=1e-6))

    def test_make_trajectory(self):
        tpts, sol = dfl.Rossler().make_trajectory(200, return_times=True)
        self.assertEqual(sol.shape, (200, 3))
        self.assertTrue(np.allclose(np.diff(tpts), 0.05))

        sol = dmp.Logistic().make_trajectory(100)
        self.assertEqual(sol.shape, (100, 1))
        self.assertTrue(np.all((sol >= 0) & (sol <= 1)))

    def test_hamiltonian_energy(self):
        model = dfl.HenonHeiles()
        X1 = model.step(model.ic, 10.0)
        self.assertAlmostEqual(model.energy(X1), model.energy(model.ic), places=6)


if __name__ == "__main__":
    unittest.main()
