from .model_resolver import ModelResolver
from .cart import Cart

__all__ = ["Cart", "ModelResolver"]
