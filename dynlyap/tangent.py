"""
Joint evolution of a state and a set of deviation vectors in tangent space.

For maps, each iteration applies w <- J(u) w and then u <- f(u). For flows, the
state and the deviation vectors are integrated together as one augmented system
of dimension D * (1 + k),

    du/dt = f(u, t)
    dW/dt = J(u(t), t) W

so the Jacobian is sampled along the trajectory, not only at the ends of each
interval.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .base import BaseDyn, SystemKind
from .errors import ConfigurationError, NumericalDivergenceError
from .utils import all_finite, integrator_options, solve_interval


@dataclass
class TangentWorkspace:
    """
    The mutable buffers of a tangent-space run, owned by whichever loop drives it.

    Attributes:
        state (ndarray): the current state, shape (D,)
        W (ndarray): the deviation vectors as columns, shape (D, k)
        t (float): the current time, or iteration count for maps
    """

    state: np.ndarray
    W: np.ndarray
    t: float = 0.0

    @property
    def dimension(self) -> int:
        return self.state.shape[0]

    @property
    def k(self) -> int:
        return self.W.shape[1]

    @classmethod
    def initialize(
        cls,
        ds: BaseDyn,
        k: Optional[int] = None,
        init_cond: Optional[np.ndarray] = None,
        W0: Optional[np.ndarray] = None,
    ) -> "TangentWorkspace":
        """
        Copy the initial condition of a system into a fresh workspace

        Args:
            ds (BaseDyn): the dynamical system
            k (int): the number of deviation vectors. Defaults to the dimension.
            init_cond (ndarray): a starting state. Defaults to ds.ic
            W0 (ndarray): starting deviation vectors, shape (D, k). Defaults to the
                first k columns of the identity.
        """
        if init_cond is None:
            if not hasattr(ds, "ic"):
                raise ConfigurationError(
                    f"{ds.name} has no default initial condition, pass init_cond"
                )
            init_cond = ds.ic
        state = np.array(init_cond, dtype=float)
        if state.shape != (ds.dimension,):
            raise ConfigurationError(
                f"Initial condition must have shape ({ds.dimension},), got {state.shape}"
            )

        d = ds.dimension
        k = d if k is None else k
        if not 1 <= k <= d:
            raise ConfigurationError(f"k must be between 1 and {d}, got {k}")
        if W0 is None:
            W = np.identity(d)[:, :k]
        else:
            W = np.array(W0, dtype=float)
            if W.ndim == 1:
                W = W[:, None]
            if W.shape != (d, k):
                raise ConfigurationError(
                    f"Deviation vectors must have shape {(d, k)}, got {W.shape}"
                )
            if np.linalg.matrix_rank(W) < k:
                raise ConfigurationError("Deviation vectors must be linearly independent")
        return cls(state=state, W=W)


class TangentSpaceStepper:
    """
    Advance a TangentWorkspace under the nonlinear dynamics of the state and the
    linearized dynamics of the deviation vectors.

    Args:
        ds (BaseDyn): the dynamical system
        integrator_kwargs (dict): options for scipy.integrate.solve_ivp, used by
            continuous systems only

    Raises:
        NumericalDivergenceError: after any advance that leaves a non-finite value
            in the workspace, or when the integrator fails
    """

    def __init__(self, ds: BaseDyn, **integrator_kwargs):
        self.ds = ds
        self.integrator_kwargs = integrator_options(**integrator_kwargs)
        self._advance = {
            SystemKind.DISCRETE: self._advance_discrete,
            SystemKind.CONTINUOUS: self._advance_continuous,
        }[ds.kind]

    def advance(self, ws: TangentWorkspace, delta) -> TangentWorkspace:
        """Evolve the state and the deviation vectors by delta"""
        self._advance(ws, delta)
        self._check_finite(ws)
        return ws

    def advance_state(self, ws: TangentWorkspace, delta) -> TangentWorkspace:
        """Evolve only the state by delta, leaving the deviation vectors untouched"""
        if self.ds.kind is SystemKind.CONTINUOUS:
            ws.state = self.ds.step(ws.state, delta, t0=ws.t, **self.integrator_kwargs)
        else:
            ws.state = self.ds.step(ws.state, delta)
        ws.t += delta
        self._check_finite(ws)
        return ws

    def _advance_discrete(self, ws: TangentWorkspace, n):
        if int(n) != n:
            raise ConfigurationError(f"Maps advance by whole iterations, got {n}")
        u, W = ws.state, ws.W
        for _ in range(int(n)):
            W = self.ds.jacobian(u) @ W
            u = self.ds.rhs(u)
        ws.state, ws.W = u, W
        ws.t += n

    def _augmented_rhs(self, y, t, d, k):
        u = y[:d]
        W = y[d:].reshape(d, k)
        du = self.ds.rhs(u, t)
        dW = self.ds.jacobian(u, t) @ W
        return np.concatenate([du, dW.ravel()])

    def _advance_continuous(self, ws: TangentWorkspace, dt):
        d, k = ws.dimension, ws.k
        y0 = np.concatenate([ws.state, ws.W.ravel()])
        y1, sol = solve_interval(
            lambda y, t: self._augmented_rhs(y, t, d, k),
            y0,
            ws.t,
            dt,
            **self.integrator_kwargs,
        )
        if not sol.success:
            raise NumericalDivergenceError(
                f"{self.ds.name}: integration of the tangent dynamics failed ({sol.message})",
                t=ws.t,
            )
        ws.state = y1[:d]
        ws.W = y1[d:].reshape(d, k)
        ws.t += dt

    def _check_finite(self, ws: TangentWorkspace):
        if not all_finite(ws.state, ws.W):
            raise NumericalDivergenceError(
                f"{self.ds.name}: state or deviation vectors became non-finite",
                t=ws.t,
            )
