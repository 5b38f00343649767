"""HTTP API for PainPoint."""
from .app import create_app

__all__ = ["create_app"]
