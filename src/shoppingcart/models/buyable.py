"""
Shapes a caller can hand to Cart.add / Cart.update.

A descriptor is resolved once at the boundary into one of three variants:

- ByAttributes: explicit id, name, price, options
- ByRecord: a flat attribute mapping ({"id": 1, "name": ..., "price": ...})
- ByBuyable: an external object implementing the Buyable protocol
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Union, runtime_checkable

from shoppingcart.core.exceptions import InvalidArgumentError


@runtime_checkable
class Buyable(Protocol):
    """An external entity that can describe itself as a cart item"""

    def get_buyable_identifier(self, options: Optional[Mapping[str, Any]] = None) -> Union[str, int]:
        ...

    def get_buyable_description(self, options: Optional[Mapping[str, Any]] = None) -> str:
        ...

    def get_buyable_price(self, options: Optional[Mapping[str, Any]] = None) -> float:
        ...


@runtime_checkable
class InstanceIdentifier(Protocol):
    """An owner (user, session, ...) that knows its stored-cart identifier"""

    def get_instance_identifier(self) -> Union[str, int]:
        ...


@dataclass
class ByAttributes:
    id: Union[str, int]
    name: str
    price: float
    qty: Union[int, float] = 1
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ByRecord:
    attributes: Mapping[str, Any]

    @property
    def qty(self) -> Union[int, float]:
        return self.attributes.get("qty", 1)


@dataclass
class ByBuyable:
    buyable: Buyable
    qty: Union[int, float] = 1
    options: Dict[str, Any] = field(default_factory=dict)


ItemDescriptor = Union[ByAttributes, ByRecord, ByBuyable]


def resolve_descriptor(
    item: Any,
    name: Any = None,
    qty: Any = None,
    price: Any = None,
    options: Optional[Mapping[str, Any]] = None
) -> ItemDescriptor:
    """
    Turn the arguments of Cart.add into a single descriptor

    Buyables accept the quantity and options positionally, so both
    add(product, 2, {"size": "XL"}) and add(product, qty=2, options=...)
    work.
    """
    if isinstance(item, (ByAttributes, ByRecord, ByBuyable)):
        return item

    if isinstance(item, Buyable):
        # add(product, qty, options): the name slot carries the quantity
        if options is None and qty is None and isinstance(name, Mapping):
            name, options = None, name
        if options is None and isinstance(qty, Mapping):
            qty, options = None, qty
        if qty is None:
            qty = name
        return ByBuyable(item, 1 if qty is None else qty, dict(options or {}))

    if isinstance(item, Mapping):
        return ByRecord(item)

    if isinstance(item, (str, int)) and not isinstance(item, bool) or item is None:
        return ByAttributes(
            id=item,
            name=name,
            price=price,
            qty=1 if qty is None else qty,
            options=dict(options or {}),
        )

    raise InvalidArgumentError(f"Cannot add {type(item).__name__} to the cart.", "id")


def is_multi(item: Any) -> bool:
    """True for a sequence of records or buyables (batch add)"""
    if isinstance(item, (str, bytes, Mapping)) or not isinstance(item, Sequence):
        return False
    if not item:
        return False
    head = item[0]
    return isinstance(head, (Mapping, Buyable, ByAttributes, ByRecord, ByBuyable))


def resolve_identifier(identifier: Union[str, int, InstanceIdentifier]) -> str:
    """Stored-cart identifiers are always persisted as strings"""
    if isinstance(identifier, InstanceIdentifier):
        identifier = identifier.get_instance_identifier()
    if identifier is None or isinstance(identifier, bool) or str(identifier) == "":
        raise InvalidArgumentError("Please supply a valid cart identifier.", "identifier")
    return str(identifier)


__all__: List[str] = [
    "Buyable",
    "InstanceIdentifier",
    "ByAttributes",
    "ByRecord",
    "ByBuyable",
    "ItemDescriptor",
    "resolve_descriptor",
    "is_multi",
    "resolve_identifier",
]
