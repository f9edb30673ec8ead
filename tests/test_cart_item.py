import json

import pytest

from shoppingcart.core.exceptions import InvalidArgumentError
from shoppingcart.models.cart_item import DEFAULT_TAX_RATE, CartItem
from shoppingcart.services.model_resolver import ModelResolver

from conftest import Product


def test_money_values():
    item = CartItem(1, "Some item", 10.00, tax_rate=21, qty=2)

    assert item.tax == pytest.approx(2.10)
    assert item.price_tax == pytest.approx(12.10)
    assert item.subtotal == pytest.approx(20.00)
    assert item.total == pytest.approx(24.20)
    assert item.tax_total == pytest.approx(4.20)


def test_default_tax_rate_and_quantity():
    item = CartItem(1, "Some item", 10.00)

    assert item.tax_rate == DEFAULT_TAX_RATE
    assert item.qty == 1


def test_row_id_is_deterministic():
    first = CartItem(1, "Some item", 10.00, {"size": "XL", "color": "red"})
    second = CartItem(1, "Another name", 10.00, {"color": "red", "size": "XL"})

    assert first.row_id == second.row_id
    assert len(first.row_id) == 32


@pytest.mark.parametrize("changes", [
    {"id": 2},
    {"price": 11.00},
    {"options": {"size": "S"}},
    {"taxRate": 19},
])
def test_row_id_changes_with_identity_fields(changes):
    item = CartItem(1, "Some item", 10.00, {"size": "XL"})
    before = item.row_id

    changed = item.with_attributes(changes)

    assert changed.row_id != before
    assert item.row_id == before


def test_row_id_ignores_name_and_quantity():
    item = CartItem(1, "Some item", 10.00)
    before = item.row_id

    changed = item.with_attributes({"name": "Renamed", "qty": 5})

    assert changed.row_id == before
    assert (changed.name, changed.qty) == ("Renamed", 5)


@pytest.mark.parametrize("field", ["id", "price", "options", "tax_rate"])
def test_identity_fields_are_read_only(field):
    item = CartItem(1, "Some item", 10.00)

    with pytest.raises(AttributeError):
        setattr(item, field, 5)


def test_with_tax_rate_leaves_original_untouched():
    item = CartItem(1, "Some item", 10.00, tax_rate=21, qty=3)

    changed = item.with_tax_rate(5)

    assert changed is not item
    assert (changed.tax_rate, changed.qty) == (5.0, 3)
    assert item.tax_rate == 21


def test_integer_and_float_prices_share_identity():
    assert CartItem(1, "Some item", 10).row_id == CartItem(1, "Some item", 10.0).row_id


@pytest.mark.parametrize("kwargs, field", [
    ({"id": "", "name": "Some item", "price": 10}, "id"),
    ({"id": None, "name": "Some item", "price": 10}, "id"),
    ({"id": 1, "name": "", "price": 10}, "name"),
    ({"id": 1, "name": "Some item", "price": "ten"}, "price"),
    ({"id": 1, "name": "Some item", "price": 10, "qty": "two"}, "qty"),
    ({"id": 1, "name": "Some item", "price": 10, "tax_rate": "high"}, "taxRate"),
])
def test_invalid_values_are_rejected(kwargs, field):
    with pytest.raises(InvalidArgumentError) as exc_info:
        CartItem(**kwargs)

    assert exc_info.value.details == {"field": field}
    assert exc_info.value.status_code == 400


def test_invalid_patch_changes_nothing():
    item = CartItem(1, "Some item", 10.00, qty=2)

    with pytest.raises(InvalidArgumentError):
        item.with_attributes({"name": "Renamed", "price": "free"})

    assert item.name == "Some item"
    assert item.price == 10.00


def test_patch_with_null_tax_rate_keeps_rate():
    item = CartItem(1, "Some item", 10.00, tax_rate=19)

    assert item.with_attributes({"taxRate": None}).tax_rate == 19


def test_with_buyable():
    item = CartItem(1, "Old name", 5.00)

    changed = item.with_buyable(Product(2, "New name", 7.50))

    assert (changed.id, changed.name, changed.price) == (2, "New name", 7.50)
    assert (item.id, item.name, item.price) == (1, "Old name", 5.00)


def test_from_buyable():
    item = CartItem.from_buyable(Product(3, "Buyable", 12.00), {"size": "M"}, tax_rate=9)

    assert item.id == 3
    assert item.name == "Buyable"
    assert item.options.size == "M"
    assert item.tax_rate == 9


def test_from_dict_requires_core_attributes():
    with pytest.raises(InvalidArgumentError):
        CartItem.from_dict({"id": 1, "name": "No price"})


def test_from_dict_honours_tax_rate_and_class():
    item = CartItem.from_dict(
        {"id": 1, "name": "Some item", "price": 10.00, "qty": 3, "taxRate": 6, "class": "product"},
        tax_rate=21
    )

    assert item.qty == 3
    assert item.tax_rate == 6
    assert item.associated_model == "product"


def test_to_dict():
    item = CartItem(1, "Some item", 10.00, {"size": "XL"}, qty=2)

    data = item.to_dict()

    assert data["id"] == 1
    assert data["name"] == "Some item"
    assert data["qty"] == 2
    assert data["options"] == {"size": "XL"}
    assert data["taxRate"] == DEFAULT_TAX_RATE
    assert data["class"] is None
    assert data["rowId"] == item.row_id
    assert data["subtotal"] == pytest.approx(20.00)

    minimal = item.to_dict(minimal=True)
    assert "rowId" not in minimal
    assert "tax" not in minimal


def test_snapshot_rebuilds_same_identity():
    item = CartItem("sku-1", "Some item", 9.99, {"size": "XL"}, tax_rate=19, qty=4)

    rebuilt = CartItem.from_dict(json.loads(item.to_json(minimal=True)))

    assert rebuilt.row_id == item.row_id
    assert rebuilt.qty == 4


def test_associate_live_object_is_returned_without_lookup():
    product = Product(5, "Live", 1.00)
    item = CartItem(5, "Live", 1.00)

    item.associate(product)

    assert item.associated_model.endswith("Product")
    assert item.model is product


def test_model_is_loaded_through_resolver():
    resolver = ModelResolver()
    product = Product(6, "Stored", 2.00)
    resolver.register("product", Product)

    item = CartItem(6, "Stored", 2.00)
    item.associate("product")
    item.model_resolver = resolver

    assert item.model is product


def test_model_is_none_without_association():
    assert CartItem(1, "Some item", 1.00).model is None
