"""
Chaos indicators derived from the Lyapunov spectrum or the tangent dynamics.
"""

import warnings

import numpy as np

from .base import BaseDyn, SystemKind
from .errors import ConfigurationError
from .tangent import TangentSpaceStepper, TangentWorkspace


def kaplan_yorke_dimension(spectrum0):
    """Calculate the Kaplan-Yorke dimension, given a list of
    Lyapunov exponents"""
    spectrum = np.sort(spectrum0)[::-1]
    d = len(spectrum)
    cspec = np.cumsum(spectrum)
    if cspec[0] < 0:
        # contracting in every direction, e.g. a stable fixed point
        return 0.0
    j = np.max(np.where(cspec >= 0))
    if j > d - 2:
        j = d - 2
        warnings.warn(
            "Cumulative sum of Lyapunov exponents never crosses zero. System may be ill-posed or undersampled."
        )
    dky = 1 + j + cspec[j] / np.abs(spectrum[j + 1])

    return dky


def gali(
    ds: BaseDyn,
    k,
    tmax,
    dt=None,
    threshold=1e-12,
    ws=None,
    init_cond=None,
    random_seed=0,
    **integrator_kwargs,
):
    """
    Compute the generalized alignment index GALI_k of k deviation vectors.

    The deviation vectors are evolved with the tangent dynamics and normalized to
    unit length after every step; GALI_k is the volume of the parallelepiped they
    span, the product of their singular values. It decays exponentially for chaotic
    orbits and stays roughly constant (or decays as a power law) for regular ones.

    Args:
        ds (BaseDyn): the dynamical system
        k (int): the number of deviation vectors, 2 <= k <= D
        tmax (int or float): the total evolution time, or iterations for maps
        dt (int or float): time between evaluations of the index. Always 1 for maps,
            and 1.0 by default for flows.
        threshold (float): stop the evolution once GALI_k falls below this value
        ws (ndarray): initial deviation vectors, shape (D, k). Defaults to a random
            orthonormal set.
        init_cond (ndarray): the starting state. Defaults to ds.ic
        random_seed (int): seed for the default deviation vectors
        integrator_kwargs (dict): options for scipy.integrate.solve_ivp

    Returns:
        gali_k (ndarray): the index at every evaluation time, starting from 1 at t=0
        times (ndarray): the evaluation times, truncated where the threshold was hit

    References:
        Skokos, C. H. et al., Physica D 231, pp 30-54 (2007)
    """
    d = ds.dimension
    if not 2 <= k <= d:
        raise ConfigurationError(f"GALI needs between 2 and {d} deviation vectors, got {k}")
    if ds.kind is SystemKind.DISCRETE:
        if dt not in (None, 1):
            raise ConfigurationError("Maps evaluate GALI at every iteration, dt must be 1")
        dt = 1
    else:
        dt = 1.0 if dt is None else dt
    if dt <= 0 or tmax < dt:
        raise ConfigurationError(f"tmax={tmax} must be at least one step dt={dt}")

    if ws is None:
        rng = np.random.default_rng(random_seed)
        ws, _ = np.linalg.qr(rng.random((d, k)))
    ws = np.array(ws, dtype=float)
    ws = ws / np.linalg.norm(ws, axis=0)

    workspace = TangentWorkspace.initialize(ds, k, init_cond, ws)
    stepper = TangentSpaceStepper(ds, **integrator_kwargs)

    times = np.arange(0, tmax + dt / 2, dt)
    gali_k = np.ones(len(times))
    for i in range(1, len(times)):
        stepper.advance(workspace, dt)
        workspace.W = workspace.W / np.linalg.norm(workspace.W, axis=0)
        gali_k[i] = np.prod(np.linalg.svd(workspace.W, compute_uv=False))
        if gali_k[i] < threshold:
            return gali_k[: i + 1], times[: i + 1]

    return gali_k, times
