from .base import BaseRepository
from .session_store import FlaskSessionStore, InMemorySessionStore, SessionStore
from .stored_cart_repository import StoredCartRepository

__all__ = [
    "BaseRepository",
    "SessionStore", "InMemorySessionStore", "FlaskSessionStore",
    "StoredCartRepository",
]
