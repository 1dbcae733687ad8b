"""HTTP API for batch person searches."""

from .endpoints import create_api_router

__all__ = ["create_api_router"]
