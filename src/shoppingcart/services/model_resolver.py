import importlib
import logging
from typing import Any, Callable, Dict, Optional, Type, Union

from shoppingcart.core.exceptions import UnknownModelError

logger = logging.getLogger(__name__)

Loader = Callable[[Any], Any]


class ModelResolver:
    """
    Resolves the type tags stored on cart items and fetches the entities
    they point at.

    Types can be registered under a short alias; the alias is then what
    gets written into snapshots. Unregistered types are tagged with their
    dotted import path.
    """

    def __init__(self):
        self._types: Dict[str, Type] = {}
        self._loaders: Dict[str, Loader] = {}

    def register(self, alias: str, model_class: Type, loader: Optional[Loader] = None) -> None:
        """Register a model type, optionally with a loader(id) -> entity"""
        self._types[alias] = model_class
        if loader is not None:
            self._loaders[alias] = loader

    def _path_for(self, model_class: Type) -> str:
        return f"{model_class.__module__}.{model_class.__qualname__}"

    def resolve_type(self, name: str) -> Type:
        """Alias first, then dotted import path"""
        if name in self._types:
            return self._types[name]

        # Longest importable module prefix, then attributes (nested classes)
        parts = name.split(".")
        for split in range(len(parts) - 1, 0, -1):
            try:
                target = importlib.import_module(".".join(parts[:split]))
            except ImportError:
                continue
            for attribute in parts[split:]:
                target = getattr(target, attribute, None)
            if isinstance(target, type):
                return target
            break

        raise UnknownModelError(name)

    def alias_for(self, model: Union[str, Type, Any]) -> str:
        """The tag to store for a type name, a class or an instance"""
        if isinstance(model, str):
            model = self.resolve_type(model)
        model_class = model if isinstance(model, type) else type(model)
        for alias, registered in self._types.items():
            if registered is model_class:
                return alias
        return self._path_for(model_class)

    def find(self, type_tag: str, identifier: Any) -> Optional[Any]:
        """
        Fetch the entity for a tag and id

        Uses the registered loader, else a `find(id)` classmethod on the
        type. Returns None when neither exists or nothing is found.
        """
        loader = self._loaders.get(type_tag)
        if loader is None:
            model_class = self.resolve_type(type_tag)
            loader = getattr(model_class, "find", None)
        if loader is None:
            logger.debug(f"No loader for model {type_tag}")
            return None
        return loader(identifier)
