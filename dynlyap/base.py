"""Dynamical systems in Python"""

import json
import warnings
from enum import Enum
from importlib import resources
from typing import Any, Callable, Dict, Optional, Tuple, Union

import numpy as np
from numpy.typing import ArrayLike

from .errors import ConfigurationError, NumericalDivergenceError
from .jacobians import JacobianStrategy, resolve_jacobian
from .utils import (
    all_finite,
    cast_to_numpy,
    has_module,
    integrate_dyn,
    solve_interval,
)

if has_module("numba"):
    from numba import njit
else:
    warnings.warn("Numba not installed. Falling back to no JIT compilation.")

    def njit(func):
        return func


BASE_REQUIRED_METADATA = ("parameters", ("dimension", "embedding_dimension"))

DATAPATH_CONTINUOUS = str(
    resources.files("dynlyap").joinpath("data/continuous_systems.json")
)
DATAPATH_DISCRETE = str(resources.files("dynlyap").joinpath("data/discrete_maps.json"))


def staticjit(func: Callable) -> Callable:
    """Decorator to apply numba's njit decorator to a static method"""
    return staticmethod(njit(func))


class SystemKind(Enum):
    """Tag for the time domain of a dynamical system"""

    DISCRETE = "discrete"
    CONTINUOUS = "continuous"


def _as_state(out, X):
    """Pack the output of an equation of motion into the shape of the input state"""
    X = np.asarray(X)
    return np.asarray(out, dtype=float).reshape(X.T.shape).T


class BaseDyn:
    """A base class for dynamical systems"""

    kind: SystemKind

    def __init__(
        self,
        metadata_path: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        required_fields: Tuple[
            Union[str, Tuple[str, ...]], ...
        ] = BASE_REQUIRED_METADATA,
        jacobian_strategy: Optional[Union[str, JacobianStrategy]] = None,
        **extra_metadata,
    ) -> None:
        """
        Initialize the dynamical system with metadata.

        Args:
            metadata_path (Optional[str]): Path to the JSON file containing metadata.
            metadata (Optional[Dict[str, Any]]): Dictionary containing metadata.
            required_fields (Tuple[str, ...]): Required metadata fields.
            jacobian_strategy (str or JacobianStrategy): How to evaluate the Jacobian.
                None uses the analytic Jacobian if the system defines one, and finite
                differences otherwise. See dynlyap.jacobians.resolve_jacobian.
            **extra_metadata: Additional metadata as keyword arguments.

        Raises:
            ConfigurationError: If no metadata is provided, if required fields are
                missing, or if the initial condition, the right hand side and the
                Jacobian disagree on the dimension of the system.

        Note:
            This method sets various attributes of the class instance based on the
            metadata, including system name, parameters, initial conditions, and
            published reference values like the Lyapunov spectrum.
        """
        self.name = self.__class__.__name__
        self.metadata_path = metadata_path
        self.metadata = dict(metadata or {})
        self.required_fields = required_fields

        # optionally load system attributes and reference quantities from a JSON file
        if self.metadata_path is not None:
            self.metadata.update(
                self.load_system_metadata(self.name, self.metadata_path)
            )

        # update the metadata with any extra metadata provided that is not None
        self.metadata.update({k: v for k, v in extra_metadata.items() if v is not None})

        if len(self.metadata) == 0:
            raise ConfigurationError(f"No metadata provided for {self.name}")
        if not all(  # check that all required fields are present
            any(k in key for k in self.metadata)
            if isinstance(key, tuple)
            else key in self.metadata
            for key in required_fields
        ):
            raise ConfigurationError(
                f"The provided metadata {self.metadata} is missing some required fields: {required_fields}"
            )

        self.params = self.metadata.pop("parameters")
        self.params = {k: cast_to_numpy(v) for k, v in self.params.items()}
        self.__dict__.update(self.params)
        self.param_list = [self.params[key] for key in sorted(self.params.keys())]

        if "initial_conditions" in self.metadata:
            self.ic = cast_to_numpy(
                self.metadata.pop("initial_conditions"), singleton_scalar=True
            )

        if "dimension" in self.metadata:
            self.dimension = int(self.metadata.pop("dimension"))
        elif "embedding_dimension" in self.metadata:
            self.dimension = int(self.metadata.pop("embedding_dimension"))

        # set all attributes in the metadata dictionary
        # do this last so the user can override any of the above
        for key in self.metadata:
            setattr(self, key, self.metadata[key])

        self._jacobian = resolve_jacobian(self, jacobian_strategy)
        self.validate()

    @staticmethod
    def load_system_metadata(system_name: str, data_path: str) -> Dict[str, Any]:
        """
        Load data from a JSON file

        Returns an empty dictionary if the system name is not found
        """
        with open(data_path, "r") as file:
            data = json.load(file)

        if system_name in data:
            return data[system_name]
        else:
            warnings.warn(f"No metadata available for {system_name}")
            return {}

    @staticmethod
    def _rhs(X, t):
        """The right-hand side of the dynamical system. Overwritten by the subclass"""
        raise NotImplementedError

    @staticmethod
    def _jac(X, t, *args):
        """The Jacobian of the dynamical system. Overwritten by the subclass"""
        raise NotImplementedError

    def has_jacobian(self) -> bool:
        """Check if the subclass has implemented the _jac method."""
        return self._jac is not BaseDyn._jac

    @property
    def jacobian_strategy(self) -> JacobianStrategy:
        """The strategy used to evaluate the Jacobian"""
        return self._jacobian

    def validate(self) -> None:
        """
        Check that the initial condition, the right hand side and the Jacobian agree
        on the dimension of the system.

        Raises:
            ConfigurationError: On any dimension mismatch
        """
        if not hasattr(self, "ic"):
            if not hasattr(self, "dimension"):
                raise ConfigurationError(
                    f"{self.name}: neither a dimension nor initial conditions were provided"
                )
            return

        if self.ic.ndim > 2:
            raise ConfigurationError(
                f"{self.name}: initial conditions must have shape (D,) or (B, D), got {self.ic.shape}"
            )
        d = self.ic.shape[-1]
        if getattr(self, "dimension", d) != d:
            raise ConfigurationError(
                f"{self.name}: initial condition has {d} entries but the system dimension is {self.dimension}"
            )
        self.dimension = d

        ic = self.ic if self.ic.ndim == 1 else self.ic[0]
        f0 = self._evaluate_rhs(ic)
        if f0.shape != (d,):
            raise ConfigurationError(
                f"{self.name}: right hand side returned shape {f0.shape} for a {d}-dimensional state"
            )
        jac0 = self.jacobian(ic)
        if jac0.shape != (d, d):
            raise ConfigurationError(
                f"{self.name}: Jacobian returned shape {jac0.shape} for a {d}-dimensional state, expected {(d, d)}"
            )

    def _evaluate_rhs(self, X):
        raise NotImplementedError

    def jacobian(self, X, t=0.0) -> np.ndarray:
        """The D x D Jacobian at state X, from the system's Jacobian strategy"""
        raise NotImplementedError

    def step(self, X, delta):
        """Evolve the state X by one interval delta. Overwritten by the subclass"""
        raise NotImplementedError

    def evolve(self, T, init_cond: Optional[np.ndarray] = None, **kwargs) -> np.ndarray:
        """
        Evolve the initial condition (or init_cond if given) for a total time T and
        return the final state, without recording intermediate states. For discrete
        systems T is a number of iterations.
        """
        if not hasattr(self, "ic") and init_cond is None:
            raise ValueError(
                "No initial conditions provided and no default initial conditions available for this system."
            )
        X = np.array(init_cond if init_cond is not None else self.ic, dtype=float)
        return self.step(X, T, **kwargs)

    def make_trajectory(self, *args, **kwargs):
        """Make a trajectory for the dynamical system"""
        raise NotImplementedError

    def __repr__(self):
        return f"{self.dimension}-dimensional {self.kind.value} system {self.name}"


class DynSys(BaseDyn):
    """A continuous dynamical system base class"""

    kind = SystemKind.CONTINUOUS

    dt: float
    maximum_lyapunov_estimated: float

    def __init__(
        self,
        metadata_path: Optional[str] = DATAPATH_CONTINUOUS,
        parameters: Optional[Dict[str, ArrayLike]] = None,
        dt: Optional[float] = None,
        maximum_lyapunov_estimated: Optional[float] = None,
        **kwargs: Any,
    ):
        super().__init__(
            metadata_path=metadata_path,
            parameters=parameters,
            dt=dt,
            maximum_lyapunov_estimated=maximum_lyapunov_estimated,
            **kwargs,
        )

    def rhs(self, X, t=0.0):
        """The right hand side of a dynamical equation"""
        return _as_state(self._rhs(*np.asarray(X).T, t, *self.param_list), X)  # type: ignore

    def jac(self, X, t=0.0):
        """The analytic Jacobian of the dynamical system"""
        d = np.shape(X)[-1]
        return np.asarray(
            self._jac(*np.asarray(X).T, t, *self.param_list), dtype=float
        ).reshape(d, d)

    def jacobian(self, X, t=0.0) -> np.ndarray:
        return self._jacobian(np.asarray(X, dtype=float), t)

    def _evaluate_rhs(self, X):
        return np.asarray(self.rhs(X, 0.0), dtype=float)

    def __call__(self, X, t):
        """Wrapper around right hand side"""
        return self.rhs(X, t)

    def step(self, X, delta=1.0, t0: float = 0.0, **kwargs):
        """
        Integrate the state X forward by a time delta

        Args:
            X (ndarray): the state at time t0
            delta (float): the length of time to integrate
            t0 (float): the starting time, for non-autonomous systems
            kwargs (dict): options passed to scipy.integrate.solve_ivp

        Returns:
            X1 (ndarray): the state at time t0 + delta

        Raises:
            NumericalDivergenceError: If the solver fails or the state is non-finite
        """
        if delta == 0:
            return np.array(X, dtype=float)
        X1, sol = solve_interval(self.rhs, X, t0, delta, **kwargs)
        if not sol.success or not all_finite(X1):
            raise NumericalDivergenceError(
                f"{self.name}: integration failed ({sol.message})", t=t0 + delta
            )
        return X1

    def make_trajectory(
        self,
        n: int,
        dt: Optional[float] = None,
        init_cond: Optional[np.ndarray] = None,
        return_times: bool = False,
        **kwargs,
    ) -> Union[np.ndarray, Tuple[np.ndarray, np.ndarray], None]:
        """
        Generate a fixed-length trajectory for the dynamical system.

        Args:
            n: Total number of trajectory points.
            dt: Sampling interval. Defaults to the system's dt, or 1e-2 if not set.
            init_cond: Initial conditions. If None, uses system's default.
            return_times: If True, return time points along with trajectory.
            **kwargs: Additional arguments for scipy.integrate.solve_ivp.

        Returns:
            If return_times is False:
                np.ndarray: n x D trajectory array.
            If return_times is True:
                Tuple[np.ndarray, np.ndarray]: n time points and n x D trajectory array.
            None: If the integration did not complete.
        """
        dt = dt if dt is not None else getattr(self, "dt", None) or 1e-2
        tpts = np.arange(n) * dt

        if not hasattr(self, "ic") and init_cond is None:
            raise ValueError(
                "No initial conditions provided and no default initial conditions available for this system."
            )
        ic = init_cond if init_cond is not None else self.ic

        traj = integrate_dyn(self.rhs, ic, tpts, **kwargs)
        if traj.shape[-1] != len(tpts):
            warnings.warn(
                f"{self.name}: Integration did not complete for initial condition {ic}, only got {traj.shape[-1]} points."
            )
            return None

        sol = traj.T
        return (tpts, sol) if return_times else sol


class DynMap(BaseDyn):
    """A discrete map dynamical system class"""

    kind = SystemKind.DISCRETE

    def __init__(
        self,
        metadata_path: Optional[str] = DATAPATH_DISCRETE,
        parameters: Optional[Dict[str, ArrayLike]] = None,
        **kwargs,
    ):
        super().__init__(
            metadata_path=metadata_path,
            parameters=parameters,
            required_fields=("parameters",),
            **kwargs,
        )

    def rhs(self, X):
        """The right hand side of a dynamical map"""
        return _as_state(self._rhs(*np.asarray(X).T, *self.param_list), X)

    def jac(self, X):
        """The analytic Jacobian of a dynamical map"""
        d = np.shape(X)[-1]
        return np.asarray(
            self._jac(*np.asarray(X).T, *self.param_list), dtype=float
        ).reshape(d, d)

    def jacobian(self, X, t=0.0) -> np.ndarray:
        return self._jacobian(np.asarray(X, dtype=float))

    def _evaluate_rhs(self, X):
        return np.asarray(self.rhs(X), dtype=float)

    def __call__(self, X):
        """Wrapper around right hand side"""
        return self.rhs(X)

    def step(self, X, delta: int = 1, **kwargs):
        """Apply the map delta times to the state X"""
        if int(delta) != delta or delta < 0:
            raise ConfigurationError(
                f"Discrete systems evolve by a non-negative integer number of steps, got {delta}"
            )
        X = np.array(X, dtype=float)
        for _ in range(int(delta)):
            X = self.rhs(X)
        return X

    def make_trajectory(
        self,
        n: int,
        init_cond: Optional[np.ndarray] = None,
        return_times: bool = False,
        **kwargs,
    ) -> Union[np.ndarray, Tuple[np.ndarray, np.ndarray]]:
        """
        Generate a fixed-length trajectory with default parameters and initial condition(s).

        Args:
            n (int): The length of each trajectory.
            init_cond (Optional[np.ndarray]): Initial conditions. If None, use default.
            return_times (bool): Whether to return the timepoints of the solution.

        Returns:
            Union[np.ndarray, Tuple[np.ndarray, np.ndarray]]:
                If return_times is False, returns the trajectory.
                If return_times is True, returns a tuple of (timepoints, trajectory).

        """
        if not hasattr(self, "ic") and init_cond is None:
            raise ValueError(
                "No initial conditions provided and no default initial conditions available for this system."
            )
        ics = np.asarray(init_cond if init_cond is not None else self.ic, dtype=float)
        curr = np.expand_dims(ics, axis=0) if ics.ndim < 2 else ics

        traj = np.zeros((curr.shape[0], n, curr.shape[-1]))

        for i in range(n):
            curr = self.rhs(curr)
            traj[:, i, :] = curr

        sol = traj[0] if ics.ndim < 2 else traj

        if return_times:
            return np.arange(n), sol
        else:
            return sol


class CallableFlow(DynSys):
    """
    A continuous dynamical system built directly from functions, without subclassing

    Args:
        f (callable): the vector field f(X, t)
        ic (array): the initial condition
        jac (callable): the Jacobian jac(X, t). If None, finite differences are used.
        name (str): a name for the system
        kwargs (dict): extra metadata

    Example:
        >>> flow = CallableFlow(lambda X, t: -X, [1.0, 2.0], jac=lambda X, t: -np.eye(2))
    """

    def __init__(
        self,
        f: Callable,
        ic: ArrayLike,
        jac: Optional[Callable] = None,
        name: Optional[str] = None,
        **kwargs,
    ):
        self._f = f
        self._user_jac = jac
        super().__init__(
            metadata_path=None,
            parameters=kwargs.pop("parameters", {}),
            initial_conditions=ic,
            dimension=np.shape(np.atleast_1d(ic))[-1],
            **kwargs,
        )
        self.name = name or self.name

    def has_jacobian(self) -> bool:
        return self._user_jac is not None

    def rhs(self, X, t=0.0):
        return np.asarray(self._f(np.asarray(X, dtype=float), t), dtype=float)

    def jac(self, X, t=0.0):
        return np.atleast_2d(np.asarray(self._user_jac(np.asarray(X, dtype=float), t)))


class CallableMap(DynMap):
    """
    A discrete map built directly from functions, without subclassing

    Args:
        f (callable): the map f(X), returning the next state
        ic (array): the initial condition
        jac (callable): the Jacobian jac(X). If None, finite differences are used.
        name (str): a name for the system
        kwargs (dict): extra metadata
    """

    def __init__(
        self,
        f: Callable,
        ic: ArrayLike,
        jac: Optional[Callable] = None,
        name: Optional[str] = None,
        **kwargs,
    ):
        self._f = f
        self._user_jac = jac
        super().__init__(
            metadata_path=None,
            parameters=kwargs.pop("parameters", {}),
            initial_conditions=ic,
            dimension=np.shape(np.atleast_1d(ic))[-1],
            **kwargs,
        )
        self.name = name or self.name

    def has_jacobian(self) -> bool:
        return self._user_jac is not None

    def rhs(self, X):
        X = np.asarray(X, dtype=float)
        return _as_state(self._f(X), X)

    def jac(self, X):
        return np.atleast_2d(np.asarray(self._user_jac(np.asarray(X, dtype=float))))
