"""
Low-dimensional chaotic maps in Python, with analytic Jacobians.

Parameters are passed to the equations in alphabetical order of their names.

Requirements:
+ numpy
+ numba (optional, for faster iteration)
"""

import numpy as np

from .base import DynMap, staticjit


class Logistic(DynMap):
    @staticjit
    def _rhs(x, r):
        return r * x * (1 - x)

    @staticjit
    def _jac(x, r):
        return r * (1 - 2 * x)


class Henon(DynMap):
    @staticjit
    def _rhs(x, y, a, b):
        xp = 1 - a * x**2 + y
        yp = b * x
        return xp, yp

    @staticjit
    def _jac(x, y, a, b):
        row1 = (-2 * a * x, 1.0)
        row2 = (b, 0.0)
        return row1, row2


class FoldedTowel(DynMap):
    """
    Rossler's folded-towel map, the lowest dimensional hyperchaotic map, with two
    positive and one negative Lyapunov exponent.

    References:
        O. E. Rossler, Phys. Lett. 71A, pp 155 (1979)
    """

    @staticjit
    def _rhs(x, y, z, a, b):
        xp = a * x * (1 - x) - 0.05 * (y + 0.35) * (1 - 2 * z)
        yp = 0.1 * ((y + 0.35) * (1 - 2 * z) - 1) * (1 - 1.9 * x)
        zp = 3.78 * z * (1 - z) + b * y
        return xp, yp, zp

    @staticjit
    def _jac(x, y, z, a, b):
        row1 = (a * (1 - 2 * x), -0.05 * (1 - 2 * z), 0.1 * (y + 0.35))
        row2 = (
            -0.19 * ((y + 0.35) * (1 - 2 * z) - 1),
            0.1 * (1 - 2 * z) * (1 - 1.9 * x),
            -0.2 * (y + 0.35) * (1 - 1.9 * x),
        )
        row3 = (0.0, b, 3.78 * (1 - 2 * z))
        return row1, row2, row3


class StandardMap(DynMap):
    """
    The Chirikov standard map on the torus [0, 2pi)^2, with state (theta, p).
    The default k is the critical value where the golden-ratio torus breaks up.
    """

    @staticjit
    def _rhs(theta, p, k):
        pp = np.mod(p + k * np.sin(theta), 2 * np.pi)
        thetap = np.mod(theta + p + k * np.sin(theta), 2 * np.pi)
        return thetap, pp

    @staticjit
    def _jac(theta, p, k):
        row1 = (1 + k * np.cos(theta), 1.0)
        row2 = (k * np.cos(theta), 1.0)
        return row1, row2


class CatMap(DynMap):
    """Arnold's cat map on the unit torus. Its Jacobian is the same everywhere."""

    @staticjit
    def _rhs(x, y):
        xp = np.mod(2 * x + y, 1.0)
        yp = np.mod(x + y, 1.0)
        return xp, yp

    @staticjit
    def _jac(x, y):
        row1 = (2.0, 1.0)
        row2 = (1.0, 1.0)
        return row1, row2


class CoupledStandardMaps(DynMap):
    """
    A ring of M standard maps with nearest-neighbor coupling. The state is
    (theta_1, ..., theta_M, p_1, ..., p_M), so the dimension is 2M. The map is
    symplectic, so exponents come in pairs of opposite sign.

    Args:
        M (int): the number of coupled maps
        random_seed (int): seed for the default initial condition, drawn uniformly
            from [0, 0.001)
        kwargs (dict): passed to DynMap
    """

    def __init__(self, M: int = 5, random_seed: int = 0, **kwargs):
        self.M = int(M)
        if "initial_conditions" not in kwargs:
            rng = np.random.default_rng(random_seed)
            kwargs["initial_conditions"] = 0.001 * rng.random(2 * self.M)
        super().__init__(dimension=2 * self.M, **kwargs)

    def has_jacobian(self) -> bool:
        return True

    def _kicks(self, theta):
        left, right = np.roll(theta, 1, axis=-1), np.roll(theta, -1, axis=-1)
        return self.k * np.sin(theta) - self.gamma * (
            np.sin(left - theta) + np.sin(right - theta)
        )

    def rhs(self, X):
        X = np.asarray(X, dtype=float)
        theta, p = X[..., : self.M], X[..., self.M :]
        pp = np.mod(p + self._kicks(theta), 2 * np.pi)
        thetap = np.mod(theta + p + self._kicks(theta), 2 * np.pi)
        return np.concatenate([thetap, pp], axis=-1)

    def jac(self, X):
        M = self.M
        theta = np.asarray(X, dtype=float)[:M]
        k = np.broadcast_to(self.k, (M,))
        dkick = np.diag(k * np.cos(theta))
        for i in range(M):
            for j in ((i - 1) % M, (i + 1) % M):
                coupling = self.gamma * np.cos(theta[j] - theta[i])
                dkick[i, i] += coupling
                dkick[i, j] -= coupling
        eye = np.identity(M)
        return np.block([[eye + dkick, eye], [dkick, eye]])
