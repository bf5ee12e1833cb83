from pathlib import Path

from .analysis import gali, kaplan_yorke_dimension
from .base import CallableFlow, CallableMap, DynMap, DynSys, SystemKind
from .errors import (
    ConfigurationError,
    DynlyapError,
    NumericalDivergenceError,
    UnderflowWarning,
)
from .lyap import LyapunovAccumulator, lyapunov_spectrum, max_lyapunov_exponent
from .systems import compute_lyapunov_table, get_attractor_list, make_system

PACKAGEDIR = Path(__file__).parent.absolute()
