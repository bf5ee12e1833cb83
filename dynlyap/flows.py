"""
Low-dimensional continuous-time systems in Python, with analytic Jacobians.

Parameters are passed to the equations in alphabetical order of their names.

Requirements:
+ numpy
+ scipy
+ numba (optional, for faster integration)

"""

import numpy as np

from .base import DynSys, staticjit


class Lorenz(DynSys):
    @staticjit
    def _rhs(x, y, z, t, beta, rho, sigma):
        xdot = sigma * y - sigma * x
        ydot = rho * x - x * z - y
        zdot = x * y - beta * z
        return xdot, ydot, zdot

    @staticjit
    def _jac(x, y, z, t, beta, rho, sigma):
        row1 = (-sigma, sigma, 0.0)
        row2 = (rho - z, -1.0, -x)
        row3 = (y, x, -beta)
        return row1, row2, row3

    def divergence(self, X, t=0.0):
        """Trace of the Jacobian, constant for the Lorenz system"""
        return -(self.sigma + 1.0 + self.beta)


class Rossler(DynSys):
    @staticjit
    def _rhs(x, y, z, t, a, b, c):
        xdot = -y - z
        ydot = x + a * y
        zdot = b + z * x - c * z
        return xdot, ydot, zdot

    @staticjit
    def _jac(x, y, z, t, a, b, c):
        row1 = (0.0, -1.0, -1.0)
        row2 = (1.0, a, 0.0)
        row3 = (z, 0.0, x - c)
        return row1, row2, row3

    def divergence(self, X, t=0.0):
        """Trace of the Jacobian"""
        return self.a + np.asarray(X)[..., 0] - self.c


class HenonHeiles(DynSys):
    """
    The Henon-Heiles Hamiltonian system, with state (x, y, px, py). The flow is
    volume preserving, so its Lyapunov spectrum comes in pairs of opposite sign.
    """

    @staticjit
    def _rhs(x, y, px, py, t, lam):
        xdot = px
        ydot = py
        pxdot = -x - 2 * lam * x * y
        pydot = -y - lam * (x**2 - y**2)
        return xdot, ydot, pxdot, pydot

    @staticjit
    def _jac(x, y, px, py, t, lam):
        row1 = (0.0, 0.0, 1.0, 0.0)
        row2 = (0.0, 0.0, 0.0, 1.0)
        row3 = (-1.0 - 2 * lam * y, -2 * lam * x, 0.0, 0.0)
        row4 = (-2 * lam * x, -1.0 + 2 * lam * y, 0.0, 0.0)
        return row1, row2, row3, row4

    def energy(self, X):
        """The conserved Hamiltonian"""
        x, y, px, py = np.asarray(X).T
        return (
            0.5 * (px**2 + py**2)
            + 0.5 * (x**2 + y**2)
            + self.lam * (x**2 * y - y**3 / 3)
        )

    def divergence(self, X, t=0.0):
        return 0.0
