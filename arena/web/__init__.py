"""
HTTP front-end for the arena.
"""

from arena.web.app import create_app

__all__ = ["create_app"]
