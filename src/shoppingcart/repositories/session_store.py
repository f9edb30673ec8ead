"""
Session-scoped storage for the live cart content of each instance.

Keys are "cart." + instance name. Content is a dict of rowId -> CartItem.
"""
from typing import Any, Dict, MutableMapping, Optional, Protocol

from flask import session as flask_session

from shoppingcart.models.cart_item import CartItem

CartContent = Dict[str, CartItem]


class SessionStore(Protocol):
    def get(self, key: str) -> Optional[CartContent]:
        ...

    def put(self, key: str, content: CartContent) -> None:
        ...

    def has(self, key: str) -> bool:
        ...

    def remove(self, key: str) -> None:
        ...


class InMemorySessionStore:
    """Keeps live CartItem objects; suitable for scripts, workers and tests"""

    def __init__(self):
        self._data: Dict[str, CartContent] = {}

    def get(self, key: str) -> Optional[CartContent]:
        return self._data.get(key)

    def put(self, key: str, content: CartContent) -> None:
        self._data[key] = content

    def has(self, key: str) -> bool:
        return key in self._data

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class FlaskSessionStore:
    """
    Stores cart content in the Flask session

    The session is serialized by Flask, so items are kept as minimal
    snapshots and rebuilt on read. Must be used inside a request context.

    Only the associated model's type tag survives a round trip. A live
    object given to `associate` is not kept between requests, so
    `item.model` looks it up again through the model resolver.
    """

    def __init__(self, session: Optional[MutableMapping[str, Any]] = None):
        self._session = session

    @property
    def session(self) -> MutableMapping[str, Any]:
        return self._session if self._session is not None else flask_session

    def get(self, key: str) -> Optional[CartContent]:
        snapshots = self.session.get(key)
        if snapshots is None:
            return None
        content: CartContent = {}
        for snapshot in snapshots:
            item = CartItem.from_dict(snapshot)
            content[item.row_id] = item
        return content

    def put(self, key: str, content: CartContent) -> None:
        self.session[key] = [item.to_dict(minimal=True) for item in content.values()]
        if hasattr(self.session, "modified"):
            self.session.modified = True

    def has(self, key: str) -> bool:
        return key in self.session

    def remove(self, key: str) -> None:
        self.session.pop(key, None)
