"""
HTTP server package for perfmock.

FastAPI app factory, request pipeline middleware, routes, response envelope
and health reporting.
"""

from perfmock.server.app import create_app

__all__ = ["create_app"]
