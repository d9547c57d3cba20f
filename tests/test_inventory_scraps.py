"""报废：默认值补全、完成扣减库存、已完成报废单的限制"""

from decimal import Decimal

import pytest

from conftest import API, acting_as, create_company, create_location, create_product, create_quant, create_uom

from erp.models import Location, ProductQuantity, UOMCategory, Warehouse

PERMISSIONS = (
    "view_any_inventory_scrap", "view_inventory_scrap", "create_inventory_scrap",
    "update_inventory_scrap", "delete_inventory_scrap", "view_any_inventory_move",
)


@pytest.fixture
def headers(db):
    return acting_as(db, *PERMISSIONS)


@pytest.fixture
def stock(db):
    return create_location(db, "Stock")


def _create(client, headers, **payload):
    return client.post(f"{API}/inventories/scraps", headers=headers, json=payload)


def test_create_fills_defaults(client, db, headers, stock):
    product = create_product(db)

    response = _create(client, headers, product_id=product.id, qty=2, source_location_id=stock.id)

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Scrap created successfully."
    data = body["data"]
    assert data["name"] == "SP/00001"
    assert data["state"] == "draft"
    assert data["uom_id"] == product.uom_id
    scrap_location = db.get(Location, data["destination_location_id"])
    assert scrap_location.is_scrap is True
    assert scrap_location.name == "Scrap"

    second = _create(client, headers, product_id=product.id, qty=1, source_location_id=stock.id)
    assert second.json()["data"]["name"] == "SP/00002"
    assert second.json()["data"]["destination_location_id"] == scrap_location.id


def test_create_uses_first_warehouse_stock_location(client, db, headers, stock):
    company = create_company(db)
    db.add(Warehouse(name="Main", code="WH", company_id=company.id, lot_stock_location_id=stock.id))
    db.commit()

    response = _create(client, headers, product_id=create_product(db).id, qty=1)

    assert response.status_code == 201
    assert response.json()["data"]["source_location_id"] == stock.id


def test_unresolved_source_location_is_rejected(client, db, headers):
    response = _create(client, headers, product_id=create_product(db).id, qty=1)

    assert response.status_code == 422
    assert response.json()["errors"]["source_location_id"] == [
        "The source_location_id field could not be resolved automatically."
    ]


def test_qty_is_required(client, db, headers, stock):
    response = _create(client, headers, product_id=create_product(db).id, source_location_id=stock.id)

    assert response.status_code == 422
    assert "qty" in response.json()["errors"]


def test_uom_must_match_product_category(client, db, headers, stock):
    product = create_product(db)
    weight = UOMCategory(name="Weight")
    db.add(weight)
    db.commit()
    kg = create_uom(db, "kg", category=weight)

    response = _create(client, headers, product_id=product.id, qty=1, uom_id=kg.id, source_location_id=stock.id)

    assert response.status_code == 422
    assert "uom_id" in response.json()["errors"]


def test_validate_deducts_stock_and_records_move(client, db, headers, stock):
    product = create_product(db)
    quant = create_quant(db, product, stock, "10")
    scrap = _create(client, headers, product_id=product.id, qty=3, source_location_id=stock.id).json()["data"]

    response = client.post(f"{API}/inventories/scraps/{scrap['id']}/validate", headers=headers)

    assert response.status_code == 200
    assert response.json()["message"] == "Scrap validated successfully."
    data = response.json()["data"]
    assert data["state"] == "done"
    assert data["closed_at"] is not None

    db.expire_all()
    assert db.get(ProductQuantity, quant.id).quantity == Decimal("7")
    # 报废库位不是内部库位，不记库存
    assert db.query(ProductQuantity).filter_by(location_id=scrap["destination_location_id"]).count() == 0

    moves = client.get(f"{API}/inventories/moves", headers=headers, params={"filter[scrap_id]": scrap["id"]})
    move = moves.json()["data"][0]
    assert move["state"] == "done"
    assert move["reference"] == "SP/00001"
    assert move["quantity"] == 3
    assert move["scrap_id"] == scrap["id"]


def test_validate_requires_enough_stock(client, db, headers, stock):
    product = create_product(db)
    create_quant(db, product, stock, "1")
    scrap = _create(client, headers, product_id=product.id, qty=5, source_location_id=stock.id).json()["data"]

    response = client.post(f"{API}/inventories/scraps/{scrap['id']}/validate", headers=headers)

    assert response.status_code == 422
    assert response.json()["message"] == "Insufficient source quantity for this scrap."


def test_done_scrap_is_locked(client, db, headers, stock):
    product = create_product(db)
    create_quant(db, product, stock, "5")
    scrap = _create(client, headers, product_id=product.id, qty=1, source_location_id=stock.id).json()["data"]
    url = f"{API}/inventories/scraps/{scrap['id']}"
    client.post(f"{url}/validate", headers=headers)

    again = client.post(f"{url}/validate", headers=headers)
    update = client.patch(url, headers=headers, json={"qty": 2})
    delete = client.delete(url, headers=headers)

    assert again.status_code == 422
    assert again.json()["message"] == "Only draft scraps can be validated."
    assert update.status_code == 422
    assert update.json()["message"] == "Done scraps cannot be updated."
    assert delete.status_code == 422
    assert delete.json()["message"] == "Done scraps cannot be deleted."


def test_update_and_delete_draft_scrap(client, db, headers, stock):
    product = create_product(db)
    scrap = _create(client, headers, product_id=product.id, qty=1, source_location_id=stock.id).json()["data"]
    url = f"{API}/inventories/scraps/{scrap['id']}"

    update = client.patch(url, headers=headers, json={"qty": 4, "origin": "WH/OUT/00001"})
    assert update.status_code == 200
    assert update.json()["data"]["qty"] == 4
    assert update.json()["data"]["destination_location_id"] == scrap["destination_location_id"]

    delete = client.delete(url, headers=headers)
    assert delete.json()["message"] == "Scrap deleted successfully."
    assert client.get(url, headers=headers).status_code == 404


def test_list_filters_by_state(client, db, headers, stock):
    product = create_product(db)
    create_quant(db, product, stock, "5")
    first = _create(client, headers, product_id=product.id, qty=1, source_location_id=stock.id).json()["data"]
    _create(client, headers, product_id=product.id, qty=1, source_location_id=stock.id)
    client.post(f"{API}/inventories/scraps/{first['id']}/validate", headers=headers)

    response = client.get(f"{API}/inventories/scraps", headers=headers, params={"filter[state]": "done"})

    assert [item["id"] for item in response.json()["data"]] == [first["id"]]
