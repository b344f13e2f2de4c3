"""HTTP surface."""

from .routes import get_loader, router

__all__ = ["get_loader", "router"]
