import copy
import json
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar, Union

from pydantic import ValidationError as SchemaValidationError

from shoppingcart.core.config import CartConfig, config
from shoppingcart.core.events import (
    CART_ADDED, CART_ADDING, CART_MERGED, CART_REMOVED, CART_RESTORED, CART_STORED, CART_UPDATED,
    EventDispatcher, SignalDispatcher,
)
from shoppingcart.core.exceptions import CartError, CorruptedCartError, InvalidRowIdError
from shoppingcart.models.buyable import (
    Buyable, ByBuyable, ByRecord, InstanceIdentifier, ItemDescriptor,
    is_multi, resolve_descriptor, resolve_identifier,
)
from shoppingcart.models.cart_item import CartItem
from shoppingcart.models.stored_cart import StoredCart
from shoppingcart.repositories.session_store import CartContent, SessionStore
from shoppingcart.repositories.stored_cart_repository import StoredCartRepository
from shoppingcart.schemas.cart_schemas import CartItemSnapshot, CartTotals
from shoppingcart.services.model_resolver import ModelResolver
from shoppingcart.utils.formatting_utils import FormattingUtils
from shoppingcart.utils.validators import ValidationUtils

logger = logging.getLogger(__name__)

T = TypeVar("T")

Identifier = Union[str, int, InstanceIdentifier]


class Cart:
    """
    Shopping cart bound to one named instance

    Responsibilities:
    - Keep rowId -> CartItem content in the session store, per instance
    - Merge items with the same identity instead of duplicating them
    - Compute subtotal, tax and total, plus named extra costs
    - Store, restore and merge snapshots through the stored-cart repository

    Extra costs live on this object only and are never stored.
    """

    DEFAULT_INSTANCE = "default"
    SESSION_PREFIX = "cart."

    COST_SHIPPING = "shipping"
    COST_TRANSACTION = "transaction"

    def __init__(
        self,
        session: SessionStore,
        events: Optional[EventDispatcher] = None,
        repository: Optional[StoredCartRepository] = None,
        cart_config: Optional[CartConfig] = None,
        model_resolver: Optional[ModelResolver] = None,
        instance: Optional[str] = None
    ):
        self.session = session
        self.events = events or SignalDispatcher(sender=self)
        self.repository = repository
        self.config = cart_config or config.cart
        self.model_resolver = model_resolver or ModelResolver()
        self.extra_costs: Dict[str, float] = {}
        self.created_at: Optional[datetime] = None
        self.updated_at: Optional[datetime] = None
        self._instance = ""

        self.instance(instance)

    @property
    def tax_rate(self) -> float:
        """Default tax rate (percent) for new items"""
        return self.config.tax_rate

    # Instances

    def instance(self, instance: Optional[str] = None) -> "Cart":
        """Switch the current instance"""
        instance = instance or self.DEFAULT_INSTANCE
        self._instance = f"{self.SESSION_PREFIX}{instance}"
        return self

    def get_instance(self, instance: Optional[str] = None) -> "Cart":
        """A copy bound to another instance, with its own extra costs"""
        clone = copy.copy(self)
        clone.extra_costs = {}
        return clone.instance(instance)

    def current_instance(self) -> str:
        return self._instance[len(self.SESSION_PREFIX):]

    def using_instance(self, instance: Optional[str], callback: Callable[[str], T]) -> T:
        """Run callback(instance_name) with a temporary current instance"""
        previous = self._instance
        if instance:
            self.instance(instance)
        try:
            return callback(self.current_instance())
        finally:
            self._instance = previous

    # Content

    def _get_content(self, instance: Optional[str] = None) -> CartContent:
        key = f"{self.SESSION_PREFIX}{instance}" if instance else self._instance
        stored = self.session.get(key) if self.session.has(key) else None
        content = dict(stored) if stored else {}
        for item in content.values():
            item.model_resolver = self.model_resolver
        return content

    def _put_content(self, content: CartContent) -> None:
        self.session.put(self._instance, content)

    def content(self) -> CartContent:
        """rowId -> CartItem for the current instance"""
        return self._get_content()

    def get(self, row_id: str) -> CartItem:
        content = self._get_content()
        if row_id not in content:
            raise InvalidRowIdError(row_id)
        return content[row_id]

    def search(self, predicate: Callable[[CartItem, str], bool]) -> CartContent:
        """Items for which predicate(item, row_id) is true"""
        return {
            row_id: item
            for row_id, item in self._get_content().items()
            if predicate(item, row_id)
        }

    def destroy(self) -> None:
        """Forget the session content of the current instance"""
        self.session.remove(self._instance)

    # Mutation

    def add(
        self,
        item: Any,
        name: Any = None,
        qty: Any = None,
        price: Any = None,
        options: Optional[Mapping[str, Any]] = None
    ) -> Union[CartItem, List[CartItem]]:
        """
        Add one item, or a list of records/buyables

        Accepted shapes:
            add(1, "Shirt", 2, 9.99, {"size": "XL"})
            add({"id": 1, "name": "Shirt", "qty": 2, "price": 9.99})
            add(product, 2, {"size": "XL"})          # product is a Buyable
            add([product_a, product_b])              # batch, one result per entry

        An item with the same rowId as an existing one is merged into it by
        adding the quantities. Only `cart.added` is dispatched here;
        `cart.adding` belongs to add_cart_item.
        """
        if is_multi(item):
            # Build everything first so a bad entry adds nothing
            cart_items = [self._create_cart_item(resolve_descriptor(entry)) for entry in item]
            return [self._file_item(cart_item) for cart_item in cart_items]

        cart_item = self._create_cart_item(resolve_descriptor(item, name, qty, price, options))
        return self._file_item(cart_item)

    def add_cart_item(self, item: CartItem, keep_tax: bool = False, dispatch: bool = True) -> CartItem:
        """Add a built item through merge-by-identity, announcing it first"""
        if not keep_tax:
            item = item.with_tax_rate(self.tax_rate)

        if dispatch:
            self.events.dispatch(CART_ADDING, item)

        return self._file_item(item, dispatch=dispatch)

    def _file_item(self, item: CartItem, dispatch: bool = True) -> CartItem:
        content = self._get_content()

        row_id = item.row_id
        if row_id in content:
            item.set_quantity(item.qty + content[row_id].qty)

        item.model_resolver = self.model_resolver
        content[row_id] = item

        self._put_content(content)
        logger.debug(f"Added {row_id} (qty={item.qty}) to {self.current_instance()}")

        if dispatch:
            self.events.dispatch(CART_ADDED, item)

        return item

    def _create_cart_item(self, descriptor: ItemDescriptor) -> CartItem:
        if isinstance(descriptor, ByBuyable):
            cart_item = CartItem.from_buyable(descriptor.buyable, descriptor.options, tax_rate=self.tax_rate)
            cart_item.set_quantity(descriptor.qty)
            cart_item.associate(
                descriptor.buyable,
                type_tag=self.model_resolver.alias_for(descriptor.buyable)
            )
        elif isinstance(descriptor, ByRecord):
            cart_item = CartItem.from_dict(descriptor.attributes, tax_rate=self.tax_rate)
            cart_item.set_quantity(descriptor.qty)
        else:
            cart_item = CartItem.from_attributes(
                descriptor.id,
                descriptor.name,
                descriptor.price,
                descriptor.options,
                tax_rate=self.tax_rate
            )
            cart_item.set_quantity(descriptor.qty)

        return cart_item

    def update(self, row_id: str, qty: Union[int, float, Mapping[str, Any], Buyable]) -> Optional[CartItem]:
        """
        Update the item with the given rowId

        qty may be a new quantity, an attribute patch (id, name, qty, price,
        taxRate, options, class) or a Buyable to refresh id/name/price from.
        Returns None when the item ends up with a quantity of zero or less
        and was removed.
        """
        content = self._get_content()
        if row_id not in content:
            raise InvalidRowIdError(row_id)

        cart_item = content[row_id]

        if isinstance(qty, Buyable):
            cart_item = cart_item.with_buyable(qty)
        elif isinstance(qty, Mapping):
            cart_item = cart_item.with_attributes(qty)
        else:
            cart_item.set_quantity(qty)

        return self._rekey(content, row_id, cart_item)

    def _rekey(self, content: CartContent, row_id: str, cart_item: CartItem) -> Optional[CartItem]:
        """Re-file an item after a change that may have moved its rowId"""
        new_row_id = cart_item.row_id

        if new_row_id != row_id:
            del content[row_id]
            if new_row_id in content:
                cart_item.set_quantity(content[new_row_id].qty + cart_item.qty)

        if cart_item.qty <= 0:
            content.pop(new_row_id, None)
            self._put_content(content)
            logger.debug(f"Removed {new_row_id} from {self.current_instance()} (qty={cart_item.qty})")
            self.events.dispatch(CART_REMOVED, cart_item)
            return None

        content[new_row_id] = cart_item
        self._put_content(content)
        logger.debug(f"Updated {row_id} -> {new_row_id} in {self.current_instance()}")
        self.events.dispatch(CART_UPDATED, cart_item)
        return cart_item

    def remove(self, row_id: str) -> None:
        content = self._get_content()
        if row_id not in content:
            raise InvalidRowIdError(row_id)

        cart_item = content.pop(row_id)
        self._put_content(content)
        logger.debug(f"Removed {row_id} from {self.current_instance()}")
        self.events.dispatch(CART_REMOVED, cart_item)

    def associate(self, row_id: str, model: Any) -> None:
        """Link an item to a model type (name or class) or a live object"""
        type_tag = self.model_resolver.alias_for(model)

        content = self._get_content()
        if row_id not in content:
            raise InvalidRowIdError(row_id)

        cart_item = content[row_id]
        cart_item.associate(model, type_tag=type_tag)
        content[row_id] = cart_item
        self._put_content(content)

    def set_tax(self, row_id: str, tax_rate: float) -> Optional[CartItem]:
        """
        Change one item's tax rate

        The tax rate is part of the item's identity, so the item may move
        to a new rowId and merge with an existing item there.
        """
        ValidationUtils.require_tax_rate(tax_rate)

        content = self._get_content()
        if row_id not in content:
            raise InvalidRowIdError(row_id)

        return self._rekey(content, row_id, content[row_id].with_tax_rate(tax_rate))

    # Extra costs

    def add_cost(self, name: str, price: float) -> None:
        """Add to a named extra cost; repeated calls accumulate"""
        amount = ValidationUtils.require_amount(price, "price")
        self.extra_costs[name] = self.extra_costs.get(name, 0) + amount

    def get_cost(self, name: str) -> float:
        return self.extra_costs.get(name, 0)

    # Totals

    def count(self) -> Union[int, float]:
        """Sum of all quantities"""
        return sum(item.qty for item in self._get_content().values())

    def subtotal(self) -> float:
        return sum((item.qty * item.price for item in self._get_content().values()), 0.0)

    def tax(self) -> float:
        return sum((item.qty * item.tax for item in self._get_content().values()), 0.0)

    def total(self) -> float:
        """Items with tax, plus every extra cost"""
        items_total = sum((item.qty * item.price_tax for item in self._get_content().values()), 0.0)
        return items_total + sum(self.extra_costs.values(), 0.0)

    def totals(self) -> CartTotals:
        return CartTotals(
            count=self.count(),
            subtotal=self.subtotal(),
            tax=self.tax(),
            extra_costs=dict(self.extra_costs),
            total=self.total(),
        )

    def number_format(
        self,
        value: float,
        decimals: Optional[int] = None,
        decimal_point: Optional[str] = None,
        thousands_separator: Optional[str] = None
    ) -> str:
        """Render a value with the configured (or given) format"""
        format_config = self.config.format
        return FormattingUtils.number_format(
            value,
            format_config.decimals if decimals is None else decimals,
            format_config.decimal_point if decimal_point is None else decimal_point,
            format_config.thousands_separator if thousands_separator is None else thousands_separator,
        )

    # Persistence

    def _require_repository(self) -> StoredCartRepository:
        if self.repository is None:
            raise CartError("No stored cart repository is configured.", 500, "STORAGE_NOT_CONFIGURED")
        return self.repository

    def _serialize(self, content: CartContent) -> str:
        return FormattingUtils.format_json_compact([item.to_dict(minimal=True) for item in content.values()])

    def _deserialize(self, stored: StoredCart) -> List[CartItem]:
        try:
            snapshots = json.loads(stored.content)
            if not isinstance(snapshots, list):
                raise ValueError("content is not a list of items")
            items = [
                CartItem.from_dict(
                    CartItemSnapshot.model_validate(snapshot).model_dump(by_alias=True),
                    tax_rate=self.tax_rate
                )
                for snapshot in snapshots
            ]
        except (ValueError, TypeError, SchemaValidationError) as e:
            logger.warning(f"Corrupted stored cart {stored.identifier}/{stored.instance}: {e}")
            raise CorruptedCartError(stored.identifier, stored.instance, str(e))

        for item in items:
            item.model_resolver = self.model_resolver
        return items

    def exists(self, identifier: Identifier, instance: Optional[str] = None) -> bool:
        """Whether a stored cart exists for the identifier and instance"""
        return self._require_repository().exists(
            resolve_identifier(identifier),
            instance or self.current_instance()
        )

    def store(self, identifier: Identifier) -> None:
        """
        Upsert the current content under (identifier, instance)

        An empty cart is never stored; any existing row is deleted instead.
        """
        repository = self._require_repository()
        content = self._get_content()
        if not content:
            self.delete(identifier)
            return

        identifier = resolve_identifier(identifier)
        instance = self.current_instance()

        repository.upsert(identifier, instance, self._serialize(content), created_at=self.created_at)
        logger.info(f"Stored {len(content)} items for {identifier}/{instance}")

        self.events.dispatch(CART_STORED)

    def restore(self, identifier: Identifier) -> None:
        """
        Load a stored cart into the current instance and delete the row

        Stored items overwrite session items with the same rowId; other
        session items are kept. Nothing happens if no row exists.
        """
        repository = self._require_repository()
        identifier = resolve_identifier(identifier)
        instance = self.current_instance()

        stored = repository.find(identifier, instance)
        if stored is None:
            return

        content = self._get_content()
        for item in self._deserialize(stored):
            content[item.row_id] = item

        self.events.dispatch(CART_RESTORED)

        self._put_content(content)

        self.created_at = stored.created_at
        self.updated_at = stored.updated_at

        repository.delete(identifier, instance)
        logger.info(f"Restored {len(content)} items for {identifier}/{instance}")

    def merge(
        self,
        identifier: Identifier,
        keep_tax: bool = False,
        dispatch: bool = True,
        instance: Optional[str] = None
    ) -> bool:
        """
        Add a stored cart's items into the same instance of this cart

        Items go through add_cart_item, so quantities combine with items of
        the same identity. Unless keep_tax is set, merged items get the
        configured tax rate. The stored row is left in place. `instance`
        switches both the stored row read and the instance written to for
        the duration of the call; the current instance is unchanged after.
        Returns False when no stored cart was found.
        """
        repository = self._require_repository()
        identifier = resolve_identifier(identifier)

        def merge_into(instance_name: str) -> bool:
            stored = repository.find(identifier, instance_name)
            if stored is None:
                return False

            for item in self._deserialize(stored):
                self.add_cart_item(item, keep_tax=keep_tax, dispatch=dispatch)

            self.events.dispatch(CART_MERGED)
            logger.info(f"Merged {identifier}/{instance_name} into {instance_name}")
            return True

        return self.using_instance(instance, merge_into)

    def delete(self, identifier: Identifier) -> bool:
        """Delete the stored cart for the current instance"""
        repository = self._require_repository()
        return repository.delete(resolve_identifier(identifier), self.current_instance()) > 0
