import pytest

from shoppingcart.routes.utils import IDENTIFIER_HEADER

BASE = "/api/v1/cart"

ITEM = {"id": 1, "name": "Some item", "qty": 2, "price": 10.00, "options": {"size": "XL"}}


def _add(client, payload=None, instance="default"):
    return client.post(f"{BASE}/{instance}/items", json=payload or ITEM)


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.get_json()["status"] == "ok"


def test_empty_cart(client):
    response = client.get(f"{BASE}/default")

    body = response.get_json()
    assert response.status_code == 200
    assert body["success"] is True
    assert body["data"]["is_empty"] is True
    assert body["data"]["totals"]["total"] == 0
    assert body["data"]["formatted"]["total"] == "0.00"
    assert "timestamp" in body


def test_add_item(client):
    response = _add(client)

    body = response.get_json()
    assert response.status_code == 201
    assert body["data"]["items"]["qty"] == 2
    assert body["data"]["totals"]["total"] == pytest.approx(24.20)

    cart = client.get(f"{BASE}/default").get_json()["data"]
    assert len(cart["items"]) == 1
    item = cart["items"][0]
    assert item["priceTax"] == pytest.approx(12.10)
    assert item["taxTotal"] == pytest.approx(4.20)
    assert cart["formatted"]["tax_rate"] == "21.0%"


def test_adding_same_item_merges(client):
    _add(client)
    _add(client)

    cart = client.get(f"{BASE}/default").get_json()["data"]
    assert len(cart["items"]) == 1
    assert cart["totals"]["count"] == 4


def test_add_batch(client):
    response = _add(client, [ITEM, {"id": 2, "name": "Other", "price": 5.00}])

    assert response.status_code == 201
    assert len(response.get_json()["data"]["items"]) == 2


def test_add_rejects_invalid_body(client):
    response = _add(client, {"id": "", "name": "Some item", "price": 10.00})

    assert response.status_code == 400
    assert response.get_json()["success"] is False


def test_add_requires_json(client):
    response = client.post(f"{BASE}/default/items", data="not json")

    assert response.status_code == 400


def test_update_quantity(client):
    row_id = _add(client).get_json()["data"]["items"]["rowId"]

    response = client.patch(f"{BASE}/default/items/{row_id}", json={"qty": 5})

    assert response.status_code == 200
    assert response.get_json()["data"]["item"]["qty"] == 5


def test_update_to_zero_removes(client):
    row_id = _add(client).get_json()["data"]["items"]["rowId"]

    response = client.patch(f"{BASE}/default/items/{row_id}", json={"qty": 0})

    assert response.get_json()["data"]["item"] is None
    assert client.get(f"{BASE}/default").get_json()["data"]["is_empty"] is True


def test_update_unknown_row(client):
    response = client.patch(f"{BASE}/default/items/nope", json={"qty": 1})

    body = response.get_json()
    assert response.status_code == 404
    assert body["error"]["code"] == "INVALID_ROW_ID"


def test_update_requires_attributes(client):
    row_id = _add(client).get_json()["data"]["items"]["rowId"]

    response = client.patch(f"{BASE}/default/items/{row_id}", json={})

    assert response.status_code == 400


def test_remove_item(client):
    row_id = _add(client).get_json()["data"]["items"]["rowId"]

    response = client.delete(f"{BASE}/default/items/{row_id}")

    assert response.status_code == 200
    assert client.get(f"{BASE}/default").get_json()["data"]["is_empty"] is True


def test_set_tax(client):
    row_id = _add(client).get_json()["data"]["items"]["rowId"]

    response = client.put(f"{BASE}/default/items/{row_id}/tax", json={"taxRate": 9})

    item = response.get_json()["data"]["item"]
    assert item["taxRate"] == 9
    assert item["rowId"] != row_id


def test_set_tax_on_empty_line_removes_it(client):
    row_id = _add(client, dict(ITEM, qty=0)).get_json()["data"]["items"]["rowId"]

    response = client.put(f"{BASE}/default/items/{row_id}/tax", json={"taxRate": 5})

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["item"] is None
    assert client.get(f"{BASE}/default").get_json()["data"]["is_empty"] is True


def test_costs_persist_across_requests(client):
    _add(client)

    client.post(f"{BASE}/default/costs", json={"name": "shipping", "price": 5})
    response = client.post(f"{BASE}/default/costs", json={"name": "shipping", "price": 2.5})

    assert response.get_json()["data"]["extra_costs"] == {"shipping": 7.5}
    totals = client.get(f"{BASE}/default").get_json()["data"]["totals"]
    assert totals["total"] == pytest.approx(24.20 + 7.5)


def test_destroy(client):
    _add(client)

    client.delete(f"{BASE}/default")

    assert client.get(f"{BASE}/default").get_json()["data"]["is_empty"] is True


def test_instances_are_separate(client):
    _add(client, instance="wishlist")

    assert client.get(f"{BASE}/default").get_json()["data"]["is_empty"] is True
    assert client.get(f"{BASE}/wishlist").get_json()["data"]["instance"] == "wishlist"


def test_store_requires_identifier(client):
    _add(client)

    response = client.post(f"{BASE}/default/store")

    assert response.status_code == 400


def test_store_restore_and_merge(client):
    headers = {IDENTIFIER_HEADER: "user-1"}
    _add(client)

    assert client.post(f"{BASE}/default/store", headers=headers).status_code == 200
    client.delete(f"{BASE}/default")

    merged = client.post(f"{BASE}/default/merge", headers=headers, json={"keep_tax": True}).get_json()["data"]
    assert merged["merged"] is True
    assert merged["totals"]["count"] == 2

    client.delete(f"{BASE}/default")
    restored = client.post(f"{BASE}/default/restore", headers=headers).get_json()["data"]
    assert restored["totals"]["count"] == 2

    deleted = client.delete(f"{BASE}/default/stored", headers=headers).get_json()["data"]
    assert deleted["deleted"] is False


def test_merge_without_stored_cart(client):
    response = client.post(f"{BASE}/default/merge", headers={IDENTIFIER_HEADER: "nobody"})

    assert response.get_json()["data"]["merged"] is False
