"""
API v1 package.

Contains versioned API routes for the identity lifecycle API.
"""

from src.api.v1.routes import FAILURE_REDIRECTS, router

__all__ = ["FAILURE_REDIRECTS", "router"]
