from collections import OrderedDict

import pytest

from shoppingcart.core.events import CART_ADDED, SignalDispatcher, cart_signals
from shoppingcart.core.exceptions import UnknownModelError
from shoppingcart.models.cart_item import CartItem
from shoppingcart.services.model_resolver import ModelResolver


class Catalogue:
    class Entry:
        pass


def test_resolve_registered_alias():
    resolver = ModelResolver()
    resolver.register("ordered", OrderedDict)

    assert resolver.resolve_type("ordered") is OrderedDict
    assert resolver.alias_for(OrderedDict) == "ordered"
    assert resolver.alias_for(OrderedDict()) == "ordered"


def test_resolve_dotted_path():
    resolver = ModelResolver()

    assert resolver.resolve_type("collections.OrderedDict") is OrderedDict
    assert resolver.alias_for("collections.OrderedDict") == "collections.OrderedDict"


def test_resolve_nested_class():
    resolver = ModelResolver()

    assert resolver.resolve_type(f"{__name__}.Catalogue.Entry") is Catalogue.Entry
    assert resolver.alias_for(Catalogue.Entry) == f"{__name__}.Catalogue.Entry"


@pytest.mark.parametrize("name", ["missing", "no.such.Model", "collections.NoSuchThing", "collections.abc"])
def test_unknown_names(name):
    with pytest.raises(UnknownModelError):
        ModelResolver().resolve_type(name)


def test_find_uses_registered_loader():
    resolver = ModelResolver()
    resolver.register("item", CartItem, loader=lambda id: CartItem(id, "Loaded", 1.00))

    found = resolver.find("item", 5)

    assert found.id == 5
    assert found.name == "Loaded"


def test_find_without_loader_returns_none():
    resolver = ModelResolver()
    resolver.register("ordered", OrderedDict)

    assert resolver.find("ordered", 1) is None


def test_signal_dispatcher_sends_blinker_signal():
    received = []

    def listener(sender, payload=None):
        received.append((sender, payload))

    cart_signals.signal(CART_ADDED).connect(listener)
    try:
        SignalDispatcher(sender="cart").dispatch(CART_ADDED, {"id": 1})
    finally:
        cart_signals.signal(CART_ADDED).disconnect(listener)

    assert received == [("cart", {"id": 1})]
