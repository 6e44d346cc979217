"""HTTP API."""

from .routes import Services, build_services, router

__all__ = ["Services", "build_services", "router"]
