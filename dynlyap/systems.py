"""Utilities for the implemented systems"""

import inspect
from types import ModuleType
from typing import Any, Sequence

import numpy as np
import pandas as pd
from tqdm import tqdm

from . import flows as dfl
from . import maps as dmp
from .base import BaseDyn, DynMap, DynSys
from .lyap import lyapunov_spectrum
from .utils import signif

DEFAULT_RUN_LENGTH = {"continuous": 1000.0, "discrete": 10000}


def _resolve_module(sys_class: str):
    if sys_class == "continuous":
        return dfl, DynSys
    elif sys_class == "discrete":
        return dmp, DynMap
    else:
        raise ValueError("sys_class must be in ['continuous', 'discrete']")


def get_attractor_list(
    sys_class: str = "continuous", exclude: Sequence[str] = ()
) -> list[str]:
    """Get names of implemented dynamical systems

    Args:
        sys_class: class of systems to get the name of - must
            be one of ['continuous', 'discrete']
        exclude: list of systems to exclude, optional

    Returns:
        Sorted list of systems belonging to sys_class
    """
    module: ModuleType
    module, parent_class = _resolve_module(sys_class)

    systems = inspect.getmembers(
        module,
        lambda obj: inspect.isclass(obj)
        and issubclass(obj, parent_class)
        and obj.__module__ == module.__name__,
    )

    return sorted(name for name, _ in systems if name not in exclude)


def make_system(name: str, **kwargs: Any) -> BaseDyn:
    """Build a system from the catalog by name, searching flows then maps

    Args:
        name: the class name of the system, e.g. "Lorenz" or "Henon"
        kwargs: overrides for the system's metadata, such as parameters or
            initial_conditions

    Raises:
        ValueError: if no system of that name is implemented
    """
    for sys_class in ("continuous", "discrete"):
        if name in get_attractor_list(sys_class):
            module, _ = _resolve_module(sys_class)
            return getattr(module, name)(**kwargs)
    raise ValueError(f"No system named {name}")


def compute_lyapunov_table(
    subset: Sequence[str] | Sequence[BaseDyn] | None = None,
    sys_class: str = "discrete",
    T=None,
    use_tqdm: bool = True,
    **kwargs,
) -> pd.DataFrame:
    """
    Estimate the Lyapunov spectrum of several systems with identical settings, and
    tabulate the estimates next to the reference values stored in each system's
    metadata.

    Args:
        subset (list): A list of system names or BaseDyn instances. Defaults to all
            systems of sys_class.
        sys_class (str): "continuous" or "discrete", used when subset is None
        T (int or float): the run length for every system. Defaults to 10000
            iterations for maps and 1000 time units for flows.
        use_tqdm (bool): Whether to use a progress bar
        kwargs (dict): passed to lyapunov_spectrum

    Returns:
        table (pd.DataFrame): one row per system, indexed by name, with columns
            dimension, spectrum, reference, max_exponent and sum
    """
    if subset is None:
        subset = get_attractor_list(sys_class)

    if use_tqdm:
        subset = tqdm(subset, desc="Computing Lyapunov spectra")  # type: ignore

    rows = list()
    for system in subset:
        ds = make_system(system) if isinstance(system, str) else system
        run_length = T if T is not None else DEFAULT_RUN_LENGTH[ds.kind.value]
        spectrum = lyapunov_spectrum(ds, run_length, **kwargs)
        reference = getattr(ds, "lyapunov_spectrum_estimated", None)
        rows.append(
            {
                "name": ds.name,
                "dimension": ds.dimension,
                "spectrum": [signif(val) for val in spectrum],
                "reference": reference,
                "max_exponent": spectrum[0],
                "sum": np.sum(spectrum),
            }
        )

    return pd.DataFrame(rows).set_index("name")
