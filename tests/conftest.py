from typing import Any, Dict, List, Optional, Tuple

import pytest

from shoppingcart.app import create_app
from shoppingcart.core.config import CartConfig, Config, DatabaseConfig
from shoppingcart.db import create_db_engine, create_tables
from shoppingcart.repositories.session_store import InMemorySessionStore
from shoppingcart.repositories.stored_cart_repository import StoredCartRepository
from shoppingcart.services.cart import Cart
from shoppingcart.services.model_resolver import ModelResolver


class RecordingDispatcher:
    """Collects dispatched events instead of sending signals"""

    def __init__(self):
        self.events: List[Tuple[str, Any]] = []

    def dispatch(self, event: str, payload: Optional[Any] = None) -> None:
        self.events.append((event, payload))

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self.events]

    def clear(self) -> None:
        self.events.clear()


class Product:
    """A catalogue entity that can be put in the cart"""

    catalogue: Dict[Any, "Product"] = {}

    def __init__(self, id: Any = 1, name: str = "Item name", price: float = 10.00):
        self.id = id
        self.name = name
        self.price = price
        Product.catalogue[id] = self

    def get_buyable_identifier(self, options=None):
        return self.id

    def get_buyable_description(self, options=None):
        return self.name

    def get_buyable_price(self, options=None):
        return self.price

    @classmethod
    def find(cls, id):
        return cls.catalogue.get(id)


class Customer:
    def __init__(self, identifier):
        self.identifier = identifier

    def get_instance_identifier(self):
        return self.identifier


@pytest.fixture
def session_store():
    return InMemorySessionStore()


@pytest.fixture
def events():
    return RecordingDispatcher()


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    create_tables(engine, "shopping_cart")
    yield engine
    engine.dispose()


@pytest.fixture
def repository(engine):
    return StoredCartRepository(engine, "shopping_cart")


@pytest.fixture
def cart_config():
    return CartConfig(tax_rate=21, database=DatabaseConfig(url="sqlite://"))


@pytest.fixture
def resolver():
    return ModelResolver()


@pytest.fixture
def cart(session_store, events, repository, cart_config, resolver):
    return Cart(session_store, events, repository, cart_config, resolver)


@pytest.fixture
def product():
    return Product(1, "Item name", 10.00)


@pytest.fixture
def app(engine, cart_config):
    app_config = Config()
    app_config.environment = "testing"
    app_config.app.secret_key = "test-secret"
    app_config.app.log_level = "WARNING"
    app_config.cart = cart_config

    app = create_app(config_override=app_config, engine=engine)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
