import unittest

import numpy as np
import pandas as pd

import dynlyap.flows as dfl
import dynlyap.maps as dmp
from dynlyap.base import DynMap, DynSys
from dynlyap.systems import compute_lyapunov_table, get_attractor_list, make_system


class TestCatalog(unittest.TestCase):
    def test_attractor_lists(self):
        self.assertEqual(get_attractor_list("continuous"), ["HenonHeiles", "Lorenz", "Rossler"])
        self.assertIn("Henon", get_attractor_list("discrete"))
        self.assertNotIn("Henon", get_attractor_list("discrete", exclude=["Henon"]))
        with self.assertRaises(ValueError):
            get_attractor_list("delay")

    def test_continuous_systems(self):
        for system_name in get_attractor_list(sys_class="continuous"):
            with self.subTest(system=system_name):
                system = getattr(dfl, system_name)()
                self.assertIsInstance(system, DynSys)
                self.assertEqual(system.jacobian_strategy.name, "analytic")

                sol = system.make_trajectory(100, return_times=True)
                self.assertIsInstance(sol, tuple)
                self.assertEqual(sol[1].shape, (100, system.dimension))

    def test_discrete_maps(self):
        for system_name in get_attractor_list(sys_class="discrete"):
            with self.subTest(system=system_name):
                system = getattr(dmp, system_name)()
                self.assertIsInstance(system, DynMap)
                self.assertEqual(system.jacobian_strategy.name, "analytic")

                sol = system.make_trajectory(100)
                self.assertEqual(sol.shape, (100, system.dimension))
                self.assertTrue(np.all(np.isfinite(sol)))

    def test_analytic_jacobians(self):
        # the coupled maps wrap near their default initial condition, see test_coupled_jacobian
        discrete = get_attractor_list("discrete", exclude=["CoupledStandardMaps"])
        for system_name in get_attractor_list("continuous") + discrete:
            with self.subTest(system=system_name):
                system = make_system(system_name)
                fd = make_system(system_name, jacobian_strategy="fd")
                X = system.evolve(5)
                self.assertTrue(
                    np.allclose(system.jacobian(X), fd.jacobian(X), atol=1e-5)
                )

    def test_coupled_jacobian(self):
        model = dmp.CoupledStandardMaps(M=5)
        fd = dmp.CoupledStandardMaps(M=5, jacobian_strategy="fd")
        X = np.linspace(1.0, 2.0, 10)
        self.assertEqual(model.dimension, 10)
        self.assertTrue(np.allclose(model.jacobian(X), fd.jacobian(X), atol=1e-6))

    def test_make_system(self):
        model = make_system("Lorenz", parameters={"beta": 2.0, "rho": 28.0, "sigma": 10.0})
        self.assertIsInstance(model, dfl.Lorenz)
        self.assertEqual(model.beta, 2.0)
        self.assertIsInstance(make_system("Henon"), dmp.Henon)
        with self.assertRaises(ValueError):
            make_system("Lorentz")


class TestLyapunovTable(unittest.TestCase):
    def test_table(self):
        table = compute_lyapunov_table(["CatMap", "Henon"], T=2000, use_tqdm=False)
        self.assertIsInstance(table, pd.DataFrame)
        self.assertEqual(list(table.index), ["CatMap", "Henon"])
        self.assertEqual(table.loc["Henon", "dimension"], 2)
        self.assertAlmostEqual(
            table.loc["CatMap", "max_exponent"], np.log((3 + np.sqrt(5)) / 2), delta=1e-2
        )
        self.assertAlmostEqual(table.loc["Henon", "sum"], np.log(0.3), places=6)
        self.assertEqual(table.loc["Henon", "reference"], [0.41922, -1.62319])

    def test_table_instances(self):
        table = compute_lyapunov_table([dmp.Logistic()], T=500, use_tqdm=False, Ttr=0)
        self.assertEqual(list(table.index), ["Logistic"])
        self.assertEqual(len(table.loc["Logistic", "spectrum"]), 1)


if __name__ == "__main__":
    unittest.main()
