"""
Estimation of Lyapunov exponents from the tangent dynamics of a system.

The spectrum is estimated with the QR method of Benettin et al. and Geist et al.:
a set of k deviation vectors is evolved alongside the trajectory, and every
`renorm_interval` they are orthonormalized. The logarithms of the diagonal of R,
accumulated over the run and divided by the elapsed time, converge to the k
largest Lyapunov exponents.

References:
    K. Geist, U. Parlitz & W. Lauterborn, Progr. Theor. Phys. 83, pp 875 (1990)
    G. Benettin et al., Phys. Rev. A 14, pp 2338 (1976)
"""

import warnings
from enum import Enum
from numbers import Integral

import numpy as np

from .base import BaseDyn, SystemKind
from .errors import ConfigurationError, NumericalDivergenceError, UnderflowWarning
from .qr import QR_METHODS, orthonormalize
from .tangent import TangentSpaceStepper, TangentWorkspace
from .utils import all_finite, integrator_options, solve_interval

DEFAULT_TRANSIENT = {SystemKind.DISCRETE: 100, SystemKind.CONTINUOUS: 1.0}
DEFAULT_RENORM_INTERVAL = {SystemKind.DISCRETE: 1, SystemKind.CONTINUOUS: 1.0}


class AccumulatorState(Enum):
    INITIALIZING = "initializing"
    STEPPING = "stepping"
    RENORMALIZING = "renormalizing"
    FINALIZING = "finalizing"


def _check_length(name, value, kind, allow_zero=False):
    """Validate an evolution length: a whole number of steps for maps, a time for flows"""
    if kind is SystemKind.DISCRETE and not (
        isinstance(value, Integral) or float(value).is_integer()
    ):
        raise ConfigurationError(
            f"{name} must be a whole number of iterations for a map, got {value}"
        )
    if value < 0 or (value == 0 and not allow_zero):
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return int(value) if kind is SystemKind.DISCRETE else float(value)


class LyapunovAccumulator:
    """
    Drives a tangent-space run and accumulates the growth rates of the deviation
    vectors into an estimate of the Lyapunov spectrum.

    The run moves through the states INITIALIZING, then alternates STEPPING and
    RENORMALIZING once per renormalization cycle, and ends in FINALIZING. All of the
    arguments are checked when the accumulator is built, so a misconfigured run
    fails before any evolution happens.

    Args:
        ds (BaseDyn): the dynamical system
        T (int or float): total evolution length after the transient. Iterations for
            maps, time for flows.
        k (int): number of exponents to estimate. Defaults to the dimension.
        renorm_interval (int or float): steps or time between orthonormalizations.
            Defaults to 1.
        Ttr (int or float): transient evolved without tangent tracking before the
            run. Defaults to 100 iterations for maps and 1.0 time units for flows.
        init_cond (ndarray): the starting state. Defaults to ds.ic
        W0 (ndarray): starting deviation vectors, shape (D, k). Defaults to the
            first k columns of the identity.
        qr_method (str): "gram-schmidt" or "householder"
        underflow_tol (float): emit an UnderflowWarning when a diagonal entry of R,
            relative to the largest one, falls below this value
        integrator_kwargs (dict): options for scipy.integrate.solve_ivp

    Attributes:
        n_cycles (int): the number of renormalization cycles, T / renorm_interval
            rounded down
        running_sum (ndarray): the accumulated log stretching factors
        elapsed (float): the time covered by the completed cycles
    """

    def __init__(
        self,
        ds: BaseDyn,
        T,
        k=None,
        renorm_interval=None,
        Ttr=None,
        init_cond=None,
        W0=None,
        qr_method="gram-schmidt",
        underflow_tol=1e-12,
        **integrator_kwargs,
    ):
        self.state = AccumulatorState.INITIALIZING
        self.ds = ds
        kind = ds.kind
        d = ds.dimension

        self.k = d if k is None else k
        if int(self.k) != self.k or not 1 <= self.k <= d:
            raise ConfigurationError(
                f"The number of exponents k must be between 1 and {d}, got {self.k}"
            )
        self.k = int(self.k)

        self.T = _check_length("T", T, kind)
        self.renorm_interval = _check_length(
            "renorm_interval",
            DEFAULT_RENORM_INTERVAL[kind] if renorm_interval is None else renorm_interval,
            kind,
        )
        self.Ttr = _check_length(
            "Ttr", DEFAULT_TRANSIENT[kind] if Ttr is None else Ttr, kind, allow_zero=True
        )
        self.n_cycles = int(np.floor(self.T / self.renorm_interval + 1e-9))
        if self.n_cycles < 1:
            raise ConfigurationError(
                f"T={T} is shorter than a single renormalization interval ({self.renorm_interval})"
            )
        if qr_method not in QR_METHODS:
            raise ConfigurationError(
                f"Unknown QR method {qr_method!r}, must be one of {sorted(QR_METHODS)}"
            )
        self.qr_method = qr_method
        self.underflow_tol = underflow_tol

        # build the workspace now so that bad initial conditions fail early
        self.init_cond = init_cond
        self.W0 = W0
        self.workspace = TangentWorkspace.initialize(ds, self.k, init_cond, W0)
        self.stepper = TangentSpaceStepper(ds, **integrator_kwargs)

        self.running_sum = np.zeros(self.k)
        self.elapsed = 0
        self.n_renorm = 0
        self.history = list()

    def initialize(self):
        """Rebuild the starting state and deviation vectors, discard the transient
        and reset the accumulated sums"""
        self.state = AccumulatorState.INITIALIZING
        self.workspace = TangentWorkspace.initialize(
            self.ds, self.k, self.init_cond, self.W0
        )
        if self.Ttr > 0:
            self.stepper.advance_state(self.workspace, self.Ttr)
        self.running_sum = np.zeros(self.k)
        self.elapsed = 0
        self.n_renorm = 0
        self.history = list()

    def step(self):
        """Evolve the state and deviation vectors by one renormalization interval"""
        self.state = AccumulatorState.STEPPING
        self.stepper.advance(self.workspace, self.renorm_interval)

    def renormalize(self):
        """Orthonormalize the deviation vectors and accumulate their growth"""
        self.state = AccumulatorState.RENORMALIZING
        Q, R = orthonormalize(self.workspace.W, method=self.qr_method)
        stretch = np.abs(np.diag(R))

        largest = np.max(stretch)
        if largest > 0 and np.any(stretch / largest < self.underflow_tol):
            warnings.warn(
                f"{self.ds.name}: a deviation vector shrank below {self.underflow_tol:g} "
                f"of the leading one at t={self.workspace.t}. Results may be inaccurate; "
                "decrease renorm_interval.",
                UnderflowWarning,
            )

        with np.errstate(divide="ignore"):
            growth = np.log(stretch)
        if not all_finite(growth):
            raise NumericalDivergenceError(
                f"{self.ds.name}: deviation vectors collapsed between orthonormalizations, "
                "decrease renorm_interval",
                t=self.workspace.t,
            )

        self.running_sum += growth
        self.workspace.W = Q
        self.elapsed += self.renorm_interval
        self.n_renorm += 1

    def finalize(self):
        """The time-averaged growth rates, sorted from largest to smallest"""
        self.state = AccumulatorState.FINALIZING
        return np.sort(self.running_sum / self.elapsed)[::-1]

    def run(self, return_convergence=False):
        """
        Run the full estimation

        Args:
            return_convergence (bool): also return the running estimate after every
                renormalization

        Returns:
            spectrum (ndarray): the k estimated exponents, largest first
            estimates (ndarray): only if return_convergence is True, the running
                estimates with shape (n_cycles, k), in deviation-vector order
            times (ndarray): only if return_convergence is True, the elapsed time of
                each running estimate
        """
        self.initialize()
        for _ in range(self.n_cycles):
            self.step()
            self.renormalize()
            if return_convergence:
                self.history.append(self.running_sum / self.elapsed)
        spectrum = self.finalize()

        if return_convergence:
            times = self.renorm_interval * np.arange(1, self.n_cycles + 1)
            return spectrum, np.array(self.history), times
        return spectrum


def lyapunov_spectrum(
    ds: BaseDyn,
    T,
    k=None,
    renorm_interval=None,
    Ttr=None,
    return_convergence=False,
    **kwargs,
):
    """
    Given a dynamical system, compute its spectrum of Lyapunov exponents.

    Args:
        ds (BaseDyn): the dynamical system, a map or a flow
        T (int or float): total evolution length, iterations for maps or time for flows
        k (int): the number of exponents to compute. Defaults to the dimension.
        renorm_interval (int or float): steps or time between orthonormalizations
        Ttr (int or float): transient to discard before the run
        return_convergence (bool): also return the running estimates and times
        kwargs: additional keyword arguments for LyapunovAccumulator, including
            options for scipy.integrate.solve_ivp

    Returns:
        spectrum (ndarray): The k largest Lyapunov exponents, sorted descending

    Example:
        >>> import dynlyap
        >>> model = dynlyap.maps.Henon()
        >>> lyap = dynlyap.lyapunov_spectrum(model, 100000)
        >>> print(lyap)
    """
    accumulator = LyapunovAccumulator(
        ds, T, k=k, renorm_interval=renorm_interval, Ttr=Ttr, **kwargs
    )
    return accumulator.run(return_convergence=return_convergence)


def max_lyapunov_exponent(
    ds: BaseDyn,
    T,
    Ttr=None,
    d0=None,
    threshold=None,
    dt=None,
    init_cond=None,
    return_convergence=False,
    **integrator_kwargs,
):
    """
    Estimate the maximal Lyapunov exponent by following two nearby trajectories and
    rescaling their separation back to d0 whenever it exceeds the threshold.

    Args:
        ds (BaseDyn): the dynamical system
        T (int or float): total evolution length after the transient
        Ttr (int or float): transient to discard. Defaults to 100 iterations for maps
            and 1.0 time units for flows.
        d0 (float): initial and rescaled separation. Defaults to 1e-7 for maps and
            1e-9 for flows.
        threshold (float): separation that triggers a rescaling. Defaults to 1e3 * d0
            for maps and 1e4 * d0 for flows.
        dt (int or float): time between separation checks. Always 1 for maps; 0.1 by
            default for flows.
        init_cond (ndarray): starting state. Defaults to ds.ic
        return_convergence (bool): also return the running estimate at each rescaling
        integrator_kwargs (dict): options for scipy.integrate.solve_ivp

    Returns:
        lam (float): the estimated maximal exponent
        estimates, times (ndarray): only if return_convergence is True

    References:
        G. Benettin et al., Phys. Rev. A 14, pp 2338 (1976)
    """
    kind = ds.kind
    discrete = kind is SystemKind.DISCRETE
    d0 = (1e-7 if discrete else 1e-9) if d0 is None else d0
    threshold = (1e3 if discrete else 1e4) * d0 if threshold is None else threshold
    if threshold <= d0:
        raise ConfigurationError("threshold must be larger than d0")
    T = _check_length("T", T, kind)
    Ttr = _check_length(
        "Ttr", DEFAULT_TRANSIENT[kind] if Ttr is None else Ttr, kind, allow_zero=True
    )
    dt = 1 if discrete else _check_length("dt", 0.1 if dt is None else dt, kind)
    # whole steps of dt, tolerant to rounding in T / dt
    n_steps = int(np.floor(T / dt + 1e-9))
    if n_steps < 1:
        raise ConfigurationError(f"T={T} is shorter than a single step dt={dt}")

    ws = TangentWorkspace.initialize(ds, 1, init_cond)
    stepper = TangentSpaceStepper(ds, **integrator_kwargs)
    if Ttr > 0:
        stepper.advance_state(ws, Ttr)

    d = ds.dimension
    st1 = ws.state
    st2 = st1 + d0 * np.ones(d) / np.sqrt(d)
    t0 = ws.t
    opts = integrator_options(**integrator_kwargs)

    def pair_rhs(y, t):
        return np.concatenate([ds.rhs(y[:d], t), ds.rhs(y[d:], t)])

    t = 0
    lam = 0.0
    steps_since_rescale = 0
    estimates, times = list(), list()
    for i in range(1, n_steps + 1):
        if discrete:
            st1, st2 = ds.rhs(st1), ds.rhs(st2)
        else:
            y1, sol = solve_interval(
                pair_rhs, np.concatenate([st1, st2]), t0 + t, dt, **opts
            )
            if not sol.success:
                raise NumericalDivergenceError(
                    f"{ds.name}: integration failed ({sol.message})", t=t0 + t
                )
            st1, st2 = y1[:d], y1[d:]
        t = i * dt
        steps_since_rescale += 1
        if not all_finite(st1, st2):
            raise NumericalDivergenceError(
                f"{ds.name}: trajectories became non-finite", t=t0 + t
            )

        dist = np.linalg.norm(st2 - st1)
        if dist < threshold and i < n_steps:
            continue

        a = dist / d0
        if steps_since_rescale == 1 and not discrete and dist >= threshold:
            warnings.warn(
                "Distance between test and reference trajectory exceeded the threshold "
                "after a single evolution step. Decrease dt, increase threshold or "
                "decrease d0."
            )
        if a == 0:
            raise NumericalDivergenceError(
                f"{ds.name}: test and reference trajectories merged", t=t0 + t
            )
        lam += np.log(a)
        st2 = st1 + (st2 - st1) / a
        steps_since_rescale = 0
        if return_convergence:
            estimates.append(lam / t)
            times.append(t)

    lam /= t
    if return_convergence:
        return lam, np.array(estimates), np.array(times)
    return lam
