import copy

import pytest

from shoppingcart.models.options import CartItemOptions


def test_unknown_option_reads_as_none():
    options = CartItemOptions({"size": "XL"})

    assert options.size == "XL"
    assert options.color is None
    assert options["size"] == "XL"


def test_options_are_immutable():
    options = CartItemOptions({"size": "XL"})

    with pytest.raises(AttributeError):
        options.size = "M"

    assert not hasattr(options, "__setitem__")


def test_equality_ignores_insertion_order():
    first = CartItemOptions({"size": "XL", "color": "red"})
    second = CartItemOptions({"color": "red", "size": "XL"})

    assert first == second
    assert hash(first) == hash(second)
    assert first.canonical() == second.canonical()
    assert first == {"color": "red", "size": "XL"}


def test_sorted_orders_by_key():
    options = CartItemOptions({"size": "XL", "color": "red"})

    assert list(options.sorted()) == ["color", "size"]
    assert list(options.to_dict()) == ["size", "color"]


def test_canonical_form():
    options = CartItemOptions({"size": "XL", "color": "red"})

    assert options.canonical() == '{"color":"red","size":"XL"}'
    assert CartItemOptions().canonical() == "{}"


def test_copies_share_the_instance():
    options = CartItemOptions({"size": "XL"})

    assert copy.copy(options) is options
    assert copy.deepcopy(options) is options


def test_rejects_non_mapping():
    with pytest.raises(TypeError):
        CartItemOptions(["size", "XL"])
