"""University voting portal service."""

from .main import create_application

__all__ = ["create_application"]
