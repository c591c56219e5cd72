"""Lumen Genesis: grow procedural creatures from an image's light."""

from .session import Population, Scene, Session, configure_logging

__version__ = "0.1.0"

__all__ = ["Population", "Scene", "Session", "configure_logging", "__version__"]
