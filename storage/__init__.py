"""
Persistence for submissions, the ban list and the request log.
"""

from storage.arena_store import ArenaStore

__all__ = ["ArenaStore"]
