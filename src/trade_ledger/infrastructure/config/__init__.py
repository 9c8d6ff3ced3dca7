"""Infrastructure configuration module."""

from .loader import ConfigLoader
from .models import EngineConfig

__all__ = ["ConfigLoader", "EngineConfig"]
