"""
HTTP API for the claim registry.

Serves the registry operations over FastAPI; callers identify themselves
with the X-Caller-Id header.
"""

from .app import CALLER_HEADER, create_app, main

__all__ = ["CALLER_HEADER", "create_app", "main"]
