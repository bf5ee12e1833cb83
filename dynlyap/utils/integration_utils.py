"""Utilities for integration"""

from typing import Callable

import numpy as np
from scipy.integrate import solve_ivp

DEFAULT_METHOD = "DOP853"
DEFAULT_RTOL = 1e-9
DEFAULT_ATOL = 1e-9


def integrator_options(**kwargs):
    """Fill in the default solver, tolerances for a call to scipy.integrate.solve_ivp"""
    kwargs.setdefault("method", DEFAULT_METHOD)
    kwargs.setdefault("rtol", DEFAULT_RTOL)
    kwargs.setdefault("atol", DEFAULT_ATOL)
    return kwargs


def integrate_dyn(
    f: Callable,
    ic: np.ndarray,
    tvals: np.ndarray,
    dtval=None,
    **kwargs,
):
    """
    Given the RHS of a dynamical system, integrate the system

    Args:
        f (callable): The right hand side of a system of ODEs, in format f(y, t).
        ic (ndarray): the initial conditions
        tvals (ndarray): times points at which to evaluate the solution
        dtval (float): The starting integration timestep.
        kwargs (dict): Arguments passed to scipy.integrate.solve_ivp.

    Returns:
        sol (ndarray): The integrated trajectory, with shape (D, len(tvals)). If the
            solver stops early, fewer than len(tvals) points are returned.
    """
    ic = np.array(ic, dtype=float)

    sol0 = solve_ivp(
        lambda t, y: f(y, t),
        [tvals[0], tvals[-1]],
        ic,
        t_eval=tvals,
        first_step=dtval,
        **integrator_options(**kwargs),
    )
    sol = sol0.y

    return sol


def solve_interval(f: Callable, y0: np.ndarray, t0: float, dt: float, **kwargs):
    """
    Integrate a system of ODEs from t0 to t0 + dt, keeping only the final state

    Args:
        f (callable): The right hand side of a system of ODEs, in format f(y, t).
        y0 (ndarray): the state at time t0
        t0 (float): the starting time
        dt (float): the length of the interval
        kwargs (dict): Arguments passed to scipy.integrate.solve_ivp.

    Returns:
        y1 (ndarray): The state at time t0 + dt
        sol (OdeResult): The raw solver output, for checking its status
    """
    sol = solve_ivp(
        lambda t, y: f(y, t),
        (t0, t0 + dt),
        np.asarray(y0, dtype=float),
        t_eval=None,
        dense_output=False,
        **integrator_options(**kwargs),
    )
    return sol.y[:, -1], sol
