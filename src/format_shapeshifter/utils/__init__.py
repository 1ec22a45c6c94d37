"""Utility functions for the format converter."""

from .size_calculator import SizeCalculator
from .validation import ValidationUtils

__all__ = ["SizeCalculator", "ValidationUtils"]
