from typing import TypeVar, Type, Dict, Any, Callable, Optional

from flask import current_app, has_app_context
from sqlalchemy import Engine

from shoppingcart.core.config import CartConfig, config
from shoppingcart.core.events import SignalDispatcher
from shoppingcart.repositories.stored_cart_repository import StoredCartRepository
from shoppingcart.services.model_resolver import ModelResolver

T = TypeVar('T')


class DependencyContainer:
    """Simple dependency injection container"""

    def __init__(self):
        self._services: Dict[str, Any] = {}
        self._factories: Dict[str, Callable] = {}

    def register_singleton(self, service_class: Type[T], instance: T) -> None:
        """Register a singleton instance"""
        key = self._get_service_key(service_class)
        self._services[key] = instance

    def register_factory(self, service_class: Type[T], factory: Callable[[], T]) -> None:
        """Register a factory function for creating instances"""
        key = self._get_service_key(service_class)
        self._factories[key] = factory
        # A new factory replaces whatever it built before
        self._services.pop(key, None)

    def get(self, service_class: Type[T]) -> T:
        """Get service instance"""
        key = self._get_service_key(service_class)

        if key in self._services:
            return self._services[key]

        if key in self._factories:
            instance = self._factories[key]()
            self._services[key] = instance
            return instance

        raise ValueError(f"Service {service_class.__name__} not registered")

    def has(self, service_class: Type[T]) -> bool:
        key = self._get_service_key(service_class)
        return key in self._services or key in self._factories

    def _get_service_key(self, service_class: Type[T]) -> str:
        """Get unique key for service class"""
        return f"{service_class.__module__}.{service_class.__qualname__}"


# Global container instance, used outside of a Flask app
container = DependencyContainer()

CONTAINER_EXTENSION = "shoppingcart.container"


def configure_container(
    engine: Engine,
    cart_config: Optional[CartConfig] = None,
    target: Optional[DependencyContainer] = None
) -> DependencyContainer:
    """Register the collaborators every request-scoped Cart is built from"""
    target = target or container
    cart_config = cart_config or config.cart

    target.register_singleton(CartConfig, cart_config)
    target.register_factory(
        StoredCartRepository,
        lambda: StoredCartRepository(engine, cart_config.database.table)
    )
    if not target.has(SignalDispatcher):
        target.register_factory(SignalDispatcher, SignalDispatcher)
    if not target.has(ModelResolver):
        target.register_factory(ModelResolver, ModelResolver)
    return target


def get_container() -> DependencyContainer:
    """The current app's container, else the global one"""
    if has_app_context():
        return current_app.extensions.get(CONTAINER_EXTENSION, container)
    return container
