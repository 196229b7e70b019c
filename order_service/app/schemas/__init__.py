"""
Order schemas package
"""

from .order import HealthResponse

__all__ = ["HealthResponse"]
