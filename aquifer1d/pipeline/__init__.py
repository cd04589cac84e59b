"""Sequential step pipeline."""

from .engine import run
from .registry import StepHandler, StepRegistry

__all__ = ["StepHandler", "StepRegistry", "run"]
