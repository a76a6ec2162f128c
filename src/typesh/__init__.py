"""typesh - a structured command shell with statically typed pipelines."""

from .errors import TypeshError
from .shell import Shell

__version__ = "0.1.0"

__all__ = ["Shell", "TypeshError", "__version__"]
