"""
Helper utilities for working with states, Jacobians and integrators. This module is
intended to have no dependencies on the rest of the package.
"""

from .integration_utils import *
from .native_utils import *
from .utils import *
