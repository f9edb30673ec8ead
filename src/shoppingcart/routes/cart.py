import logging
from typing import Any, Dict

from flask import Blueprint, session

from shoppingcart.core.config import CartConfig
from shoppingcart.core.dependencies import get_container
from shoppingcart.core.events import SignalDispatcher
from shoppingcart.models.cart_item import CartItem
from shoppingcart.repositories.session_store import FlaskSessionStore
from shoppingcart.repositories.stored_cart_repository import StoredCartRepository
from shoppingcart.routes.schemas import (
    AddCartItemSchema, AddCostSchema, MergeCartSchema, SetTaxSchema, UpdateCartItemSchema,
)
from shoppingcart.routes.utils import get_cart_identifier, load_json, success_response
from shoppingcart.schemas.cart_schemas import CartItemResponse, CartResponse
from shoppingcart.services.cart import Cart
from shoppingcart.services.model_resolver import ModelResolver
from shoppingcart.utils.formatting_utils import FormattingUtils

logger = logging.getLogger(__name__)

cart_bp = Blueprint("cart", __name__)

_add_schema = AddCartItemSchema()
_update_schema = UpdateCartItemSchema()
_tax_schema = SetTaxSchema()
_cost_schema = AddCostSchema()
_merge_schema = MergeCartSchema()

COSTS_SESSION_PREFIX = "cart_costs."


def _get_cart(instance: str) -> Cart:
    """Build a request-scoped cart over the Flask session."""
    container = get_container()
    cart = Cart(
        FlaskSessionStore(),
        container.get(SignalDispatcher),
        container.get(StoredCartRepository),
        container.get(CartConfig),
        container.get(ModelResolver),
        instance=instance,
    )
    # Extra costs belong to the cart object; across requests they ride in the session
    cart.extra_costs = dict(session.get(COSTS_SESSION_PREFIX + instance, {}))
    return cart


def _save_costs(cart: Cart) -> None:
    session[COSTS_SESSION_PREFIX + cart.current_instance()] = cart.extra_costs


def _item_payload(item: CartItem) -> Dict[str, Any]:
    data = item.to_dict()
    data.update({
        "priceTax": item.price_tax,
        "total": item.total,
        "taxTotal": item.tax_total,
    })
    return CartItemResponse.model_validate(data).model_dump(by_alias=True)


def _cart_payload(cart: Cart) -> Dict[str, Any]:
    content = cart.content()
    totals = cart.totals()
    payload = CartResponse(
        instance=cart.current_instance(),
        items=[_item_payload(item) for item in content.values()],
        totals=totals,
        is_empty=not content,
    ).model_dump(by_alias=True)
    payload["formatted"] = {
        "subtotal": cart.number_format(totals.subtotal),
        "tax": cart.number_format(totals.tax),
        "total": cart.number_format(totals.total),
        "tax_rate": FormattingUtils.format_percentage(cart.tax_rate),
    }
    return payload


@cart_bp.route("/<instance>", methods=["GET"])
def get_cart(instance: str):
    """Return the content and totals of a cart instance."""
    return success_response(_cart_payload(_get_cart(instance)))


@cart_bp.route("/<instance>", methods=["DELETE"])
def destroy_cart(instance: str):
    """Empty a cart instance; extra costs are kept."""
    cart = _get_cart(instance)
    cart.destroy()
    return success_response(_cart_payload(cart), "Cart emptied.")


@cart_bp.route("/<instance>/items", methods=["POST"])
def add_items(instance: str):
    """Add one item or a list of items; identical items are merged."""
    records = load_json(_add_schema, many=None)

    cart = _get_cart(instance)
    added = cart.add(records)

    if isinstance(added, list):
        data = [_item_payload(item) for item in added]
    else:
        data = _item_payload(added)

    return success_response(
        {"items": data, "totals": cart.totals().model_dump()},
        "Item added to cart.",
        201,
    )


@cart_bp.route("/<instance>/items/<row_id>", methods=["PATCH"])
def update_item(instance: str, row_id: str):
    """Change an item's quantity or attributes; qty <= 0 removes it."""
    patch = load_json(_update_schema)

    cart = _get_cart(instance)
    if set(patch) == {"qty"}:
        item = cart.update(row_id, patch["qty"])
    else:
        item = cart.update(row_id, patch)

    if item is None:
        return success_response({"item": None, "totals": cart.totals().model_dump()}, "Item removed from cart.")

    return success_response({"item": _item_payload(item), "totals": cart.totals().model_dump()})


@cart_bp.route("/<instance>/items/<row_id>", methods=["DELETE"])
def remove_item(instance: str, row_id: str):
    cart = _get_cart(instance)
    cart.remove(row_id)
    return success_response({"totals": cart.totals().model_dump()}, "Item removed from cart.")


@cart_bp.route("/<instance>/items/<row_id>/tax", methods=["PUT"])
def set_item_tax(instance: str, row_id: str):
    """Change one item's tax rate; the item may get a new rowId."""
    data = load_json(_tax_schema)

    cart = _get_cart(instance)
    item = cart.set_tax(row_id, data["tax_rate"])

    if item is None:
        return success_response({"item": None, "totals": cart.totals().model_dump()}, "Item removed from cart.")

    return success_response({"item": _item_payload(item), "totals": cart.totals().model_dump()})


@cart_bp.route("/<instance>/costs", methods=["POST"])
def add_cost(instance: str):
    """Add to a named extra cost (shipping, transaction, ...)."""
    data = load_json(_cost_schema)

    cart = _get_cart(instance)
    cart.add_cost(data["name"], data["price"])
    _save_costs(cart)

    return success_response(
        {"extra_costs": cart.extra_costs, "totals": cart.totals().model_dump()},
        status=201,
    )


@cart_bp.route("/<instance>/store", methods=["POST"])
def store_cart(instance: str):
    """Persist the cart under the caller's identifier."""
    identifier = get_cart_identifier()
    cart = _get_cart(instance)
    cart.store(identifier)
    logger.info(f"Cart {instance} stored for {identifier}")
    return success_response({"identifier": identifier, "instance": instance}, "Cart stored.")


@cart_bp.route("/<instance>/restore", methods=["POST"])
def restore_cart(instance: str):
    """Load and consume the stored cart into the session."""
    identifier = get_cart_identifier()
    cart = _get_cart(instance)
    cart.restore(identifier)
    return success_response(_cart_payload(cart), "Cart restored.")


@cart_bp.route("/<instance>/merge", methods=["POST"])
def merge_cart(instance: str):
    """Add a stored cart's items without deleting the stored cart."""
    options = load_json(_merge_schema, required=False)
    identifier = get_cart_identifier()

    cart = _get_cart(instance)
    merged = cart.merge(
        identifier,
        keep_tax=options["keep_tax"],
        dispatch=options["dispatch"],
        instance=options["instance"],
    )

    payload = _cart_payload(cart)
    payload["merged"] = merged
    return success_response(payload, "Cart merged." if merged else "No stored cart found.")


@cart_bp.route("/<instance>/stored", methods=["DELETE"])
def delete_stored_cart(instance: str):
    identifier = get_cart_identifier()
    cart = _get_cart(instance)
    deleted = cart.delete(identifier)
    return success_response({"deleted": deleted})
