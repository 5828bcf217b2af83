"""
Read-only HTTP interface (FastAPI).

- server: application factory and GET endpoints
- mapper: registry values -> response DTOs
"""

from .server import app, create_app

__all__ = ['app', 'create_app']
