"""
Strategies for evaluating the Jacobian of a dynamical system at a given state.

A system picks its strategy once, when it is constructed. Code that consumes
Jacobians only ever calls the strategy, and does not need to know whether the
matrix came from a closed-form expression or from finite differences.
"""

from typing import Callable, Optional, Union

import numpy as np

from .errors import ConfigurationError
from .utils import jac_fd


class JacobianStrategy:
    """Base class for Jacobian evaluation strategies"""

    name = "base"

    def __call__(self, X, *args) -> np.ndarray:
        raise NotImplementedError

    def __repr__(self):
        return f"{self.__class__.__name__}()"


class AnalyticJacobian(JacobianStrategy):
    """Evaluate a user supplied Jacobian function

    Args:
        fn (callable): a function fn(X, *args) returning the D x D Jacobian, as an
            array or as a sequence of rows
    """

    name = "analytic"

    def __init__(self, fn: Callable):
        self.fn = fn

    def __call__(self, X, *args) -> np.ndarray:
        return np.atleast_2d(np.asarray(self.fn(X, *args), dtype=float))


class FiniteDifferenceJacobian(JacobianStrategy):
    """Differentiate the right hand side numerically

    Args:
        f (callable): the right hand side f(X, *args) of the system
        eps (float): the relative finite difference step
        method (str): "central" or "forward"
    """

    name = "fd"

    def __init__(self, f: Callable, eps: float = 1e-6, method: str = "central"):
        if method not in ("central", "forward"):
            raise ConfigurationError(f"Unknown finite difference method: {method}")
        self.f = f
        self.eps = eps
        self.method = method

    def __call__(self, X, *args) -> np.ndarray:
        return jac_fd(lambda x: self.f(x, *args), X, eps=self.eps, method=self.method)

    def __repr__(self):
        return f"{self.__class__.__name__}(eps={self.eps}, method={self.method!r})"


def resolve_jacobian(
    system, strategy: Optional[Union[str, JacobianStrategy]] = None
) -> JacobianStrategy:
    """
    Choose the Jacobian strategy for a dynamical system

    Args:
        system (BaseDyn): the system. Its `jac` method is used for the analytic
            strategy and its `rhs` method for finite differences.
        strategy (str or JacobianStrategy): None picks the analytic Jacobian when the
            system implements one, and finite differences otherwise. The strings
            "analytic" and "fd" force a choice. A strategy instance is used as is.

    Returns:
        JacobianStrategy
    """
    if isinstance(strategy, JacobianStrategy):
        return strategy

    if strategy is None:
        strategy = "analytic" if system.has_jacobian() else "fd"

    if strategy == "analytic":
        if not system.has_jacobian():
            raise ConfigurationError(
                f"{system.name} does not implement an analytic Jacobian"
            )
        return AnalyticJacobian(system.jac)
    elif strategy in ("fd", "finite_difference"):
        return FiniteDifferenceJacobian(system.rhs)
    else:
        raise ConfigurationError(f"Unknown Jacobian strategy: {strategy}")
