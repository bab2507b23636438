"""Quest script (EQF) tooling for Endless Online style game data."""

from .cache import SingleFlight
from .resources import EditorResources

__version__ = "0.1.0"

__all__ = ['SingleFlight', 'EditorResources', '__version__']
