"""HTTP server exposing the task API."""

from .api import create_app

__all__ = ["create_app"]
