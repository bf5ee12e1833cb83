"""
Helper utilities for working with state vectors and matrices. This module is intended
to have no dependencies on the rest of the package.
"""

import numpy as np
from scipy.optimize import approx_fprime


def cast_to_numpy(x, singleton_scalar=False):
    """Convert a list, tuple, or scalar loaded from metadata into floats

    Args:
        x: The value to convert
        singleton_scalar (bool): If True, scalars are returned as arrays of shape (1,).
            Otherwise scalars are returned as Python floats.

    Returns:
        arr (ndarray or float): The converted value
    """
    arr = np.asarray(x, dtype=float)
    if arr.ndim == 0:
        return arr[None] if singleton_scalar else float(arr)
    return arr


def signif(x, figs=6):
    """Round a float to a fixed number of significant digits

    Args:
        x (float): The number to round
        figs (int): the desired number of significant figures
    """
    if x == 0 or not np.isfinite(x):
        return x
    figs = int(figs - np.ceil(np.log10(abs(x))))
    return round(x, figs)


def all_finite(*arrays):
    """Check that every entry of every array is finite"""
    return all(np.all(np.isfinite(arr)) for arr in arrays)


def jac_fd(func0, y0, eps=1e-6, method="central"):
    """
    Calculate numerical jacobian of a function with respect to a reference value

    Args:
        func0 (callable): a vector-valued function
        y0 (ndarray): a point around which to take the gradient
        eps (float): the step size for the finite difference calculation. For the
            central method, the step is scaled by the magnitude of each coordinate.
        method (str): "central" for second-order central differences, or "forward"
            for scipy's first-order forward differences

    Returns:
        jac (ndarray): a numerical estimate of the Jacobian about that point, with
            shape (len(func0(y0)), len(y0))

    """
    func = lambda x: np.atleast_1d(np.asarray(func0(x), dtype=float))
    y0 = np.atleast_1d(np.asarray(y0, dtype=float))

    if method == "forward":
        d = len(func(y0))
        all_rows = list()
        for i in range(d):
            row_func = lambda yy: func(yy)[i]
            row = approx_fprime(y0, row_func, epsilon=eps)
            all_rows.append(row)
        return np.array(all_rows)

    if method != "central":
        raise ValueError(f"Unknown finite difference method: {method}")

    steps = eps * np.maximum(1.0, np.abs(y0))
    columns = list()
    for i, h in enumerate(steps):
        dy = np.zeros_like(y0)
        dy[i] = h
        columns.append((func(y0 + dy) - func(y0 - dy)) / (2 * h))
    jac = np.stack(columns, axis=-1)

    return jac
