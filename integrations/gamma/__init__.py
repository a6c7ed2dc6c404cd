"""Gamma card generation integration package."""

from .client import CardGenerationError, GammaClient

__all__ = ["CardGenerationError", "GammaClient"]
