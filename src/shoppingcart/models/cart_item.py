import copy
import hashlib
import json
from typing import Any, Dict, Mapping, Optional, Union

from shoppingcart.core.exceptions import InvalidArgumentError
from shoppingcart.models.buyable import Buyable
from shoppingcart.models.options import CartItemOptions
from shoppingcart.utils.validators import ValidationUtils


DEFAULT_TAX_RATE = 21.0


class CartItem:
    """
    A priced, quantified line in the cart

    The rowId is a content hash of (id, options, price, tax_rate). Those
    four fields are read-only: changing any of them goes through the
    `with_*` methods, which return a new item, so an item filed under a
    rowId keeps that rowId. Two items with the same four inputs always
    share a rowId. Money values
    (tax, subtotal, total, ...) are derived on read and never stored.
    """

    def __init__(
        self,
        id: Union[str, int],
        name: str,
        price: float,
        options: Optional[Mapping[str, Any]] = None,
        tax_rate: Optional[float] = None,
        qty: Union[int, float] = 1
    ):
        self._id = ValidationUtils.require_identifier(id)
        self.name = ValidationUtils.require_name(name)
        self._price = ValidationUtils.require_price(price)
        self._options = CartItemOptions(options)
        self._tax_rate = DEFAULT_TAX_RATE if tax_rate is None else ValidationUtils.require_tax_rate(tax_rate)
        self.qty = ValidationUtils.require_quantity(qty)
        self.associated_model: Optional[str] = None
        self.model_resolver = None
        self._model: Any = None

    def __repr__(self) -> str:
        return f"<CartItem row_id={self.row_id} id={self.id!r} qty={self.qty}>"

    @property
    def id(self) -> Union[str, int]:
        return self._id

    @property
    def price(self) -> float:
        return self._price

    @property
    def options(self) -> CartItemOptions:
        return self._options

    @property
    def tax_rate(self) -> float:
        return self._tax_rate

    @property
    def row_id(self) -> str:
        return self.generate_row_id(self.id, self.options, self.price, self.tax_rate)

    @staticmethod
    def generate_row_id(
        id: Union[str, int],
        options: Mapping[str, Any],
        price: float,
        tax_rate: float
    ) -> str:
        """Deterministic identity hash; MD5 is used as a checksum, not for security"""
        if not isinstance(options, CartItemOptions):
            options = CartItemOptions(options)
        payload = f"{id}{options.canonical()}|{float(price)!r}|{float(tax_rate)!r}"
        return hashlib.md5(payload.encode("utf-8"), usedforsecurity=False).hexdigest()

    # Derived money values

    @property
    def tax(self) -> float:
        """Tax for a single unit"""
        return self.price * (self.tax_rate / 100)

    @property
    def price_tax(self) -> float:
        """Unit price including tax"""
        return self.price + self.tax

    @property
    def subtotal(self) -> float:
        """Whole line without tax"""
        return self.qty * self.price

    @property
    def total(self) -> float:
        """Whole line with tax"""
        return self.qty * self.price_tax

    @property
    def tax_total(self) -> float:
        return self.tax * self.qty

    # Mutation

    def set_quantity(self, qty: Union[int, float]) -> None:
        self.qty = ValidationUtils.require_quantity(qty)

    def _copy(self, **identity: Any) -> "CartItem":
        clone = copy.copy(self)
        for field, value in identity.items():
            setattr(clone, f"_{field}", value)
        if clone._id != self._id:
            clone._model = None
        return clone

    def with_tax_rate(self, tax_rate: float) -> "CartItem":
        """A copy with another tax rate (and so another rowId)"""
        return self._copy(tax_rate=ValidationUtils.require_tax_rate(tax_rate))

    def with_buyable(self, item: Buyable) -> "CartItem":
        """A copy with id, name and price refreshed from an external description"""
        options = self.options.to_dict()
        id = ValidationUtils.require_identifier(item.get_buyable_identifier(options))
        name = ValidationUtils.require_name(item.get_buyable_description(options))
        price = ValidationUtils.require_price(item.get_buyable_price(options))

        clone = self._copy(id=id, price=price)
        clone.name = name
        return clone

    def with_attributes(self, attributes: Mapping[str, Any]) -> "CartItem":
        """
        A copy with a partial attribute patch applied

        Recognized keys: id, name, qty, price, taxRate, options, class.
        All values are validated first; nothing is built if any of them
        is invalid.
        """
        if not isinstance(attributes, Mapping):
            raise InvalidArgumentError("Attributes must be a mapping.")

        id = ValidationUtils.require_identifier(attributes["id"]) if "id" in attributes else self.id
        name = ValidationUtils.require_name(attributes["name"]) if "name" in attributes else self.name
        qty = ValidationUtils.require_quantity(attributes["qty"]) if "qty" in attributes else self.qty
        price = ValidationUtils.require_price(attributes["price"]) if "price" in attributes else self.price
        tax_rate = (
            ValidationUtils.require_tax_rate(attributes["taxRate"])
            if attributes.get("taxRate") is not None else self.tax_rate
        )
        options = self.options
        if "options" in attributes:
            try:
                options = CartItemOptions(attributes["options"])
            except TypeError as e:
                raise InvalidArgumentError(str(e), "options") from e

        clone = self._copy(id=id, price=price, tax_rate=tax_rate, options=options)
        clone.name, clone.qty = name, qty
        if attributes.get("class"):
            clone.associated_model = attributes["class"]
        return clone

    # Associated model

    def associate(self, model: Any, type_tag: Optional[str] = None) -> "CartItem":
        """
        Link the item to an external entity

        A string is taken as the type tag itself. A live object is kept so
        that `model` returns it without a lookup.
        """
        if isinstance(model, str):
            self.associated_model = type_tag or model
            self._model = None
        else:
            cls = model if isinstance(model, type) else type(model)
            self.associated_model = type_tag or f"{cls.__module__}.{cls.__qualname__}"
            self._model = None if isinstance(model, type) else model
        return self

    @property
    def model(self) -> Any:
        """The associated entity, fetched through the model resolver once"""
        if self._model is not None:
            return self._model
        if self.associated_model is None or self.model_resolver is None:
            return None
        self._model = self.model_resolver.find(self.associated_model, self.id)
        return self._model

    # Construction and serialization

    @classmethod
    def from_buyable(
        cls,
        item: Buyable,
        options: Optional[Mapping[str, Any]] = None,
        tax_rate: Optional[float] = None
    ) -> "CartItem":
        options = dict(options or {})
        return cls(
            item.get_buyable_identifier(options),
            item.get_buyable_description(options),
            item.get_buyable_price(options),
            options,
            tax_rate=tax_rate
        )

    @classmethod
    def from_dict(cls, attributes: Mapping[str, Any], tax_rate: Optional[float] = None) -> "CartItem":
        """Build an item from a flat record or a stored snapshot"""
        if not isinstance(attributes, Mapping):
            raise InvalidArgumentError("Attributes must be a mapping.")
        for key in ("id", "name", "price"):
            if key not in attributes:
                raise InvalidArgumentError(f"Missing required attribute: {key}", key)

        item = cls(
            attributes["id"],
            attributes["name"],
            attributes["price"],
            attributes.get("options") or {},
            tax_rate=tax_rate
        )
        return item.with_attributes(attributes)

    @classmethod
    def from_attributes(
        cls,
        id: Union[str, int],
        name: str,
        price: float,
        options: Optional[Mapping[str, Any]] = None,
        tax_rate: Optional[float] = None
    ) -> "CartItem":
        return cls(id, name, price, options, tax_rate=tax_rate)

    def to_dict(self, minimal: bool = False) -> Dict[str, Any]:
        """Snapshot fields; minimal drops the derived rowId, tax and subtotal"""
        data = {
            "id": self.id,
            "name": self.name,
            "qty": self.qty,
            "price": self.price,
            "options": self.options.to_dict(),
            "taxRate": self.tax_rate,
            "class": self.associated_model,
        }
        if not minimal:
            data.update({
                "rowId": self.row_id,
                "tax": self.tax,
                "subtotal": self.subtotal,
            })
        return data

    def to_json(self, minimal: bool = False) -> str:
        return json.dumps(self.to_dict(minimal), default=str)
