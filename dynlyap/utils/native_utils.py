"""Native python utilities"""

import importlib


def has_module(module_name: str) -> bool:
    """Check if a module is installed"""
    try:
        importlib.import_module(module_name)
        return True
    except ImportError:
        return False
