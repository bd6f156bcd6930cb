"""
Pydantic models for Linear API responses.
"""

from .base import ApiModel, Connection, NamedRef

__all__ = ["ApiModel", "Connection", "NamedRef"]
