"""HTTP surface for chatgate."""

from .app import create_app

__all__ = ["create_app"]
