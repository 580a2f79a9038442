"""Text generation backends."""

from .generator import ModelTextGenerator, TextGenerator
from .manager import ModelManager

__all__ = ["ModelManager", "ModelTextGenerator", "TextGenerator"]
