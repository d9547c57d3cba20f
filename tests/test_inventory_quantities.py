"""库存数量：盘点录入、应用与清除"""

from decimal import Decimal

import pytest

from conftest import API, acting_as, create_location, create_product, create_quant

from erp.models import AuditLog, ProductQuantity
from erp.models.enums import LocationType

PERMISSIONS = (
    "view_any_inventory_quantity", "view_inventory_quantity", "create_inventory_quantity",
    "update_inventory_quantity", "delete_inventory_quantity", "view_any_inventory_move",
)


@pytest.fixture
def headers(db):
    return acting_as(db, *PERMISSIONS)


@pytest.fixture
def stock(db):
    return create_location(db, "Stock")


def test_count_creates_quantity_with_difference(client, db, headers, stock):
    product = create_product(db)

    response = client.post(f"{API}/inventories/quantities", headers=headers, json={
        "product_id": product.id, "location_id": stock.id, "inventory_quantity": 7,
    })

    assert response.status_code == 201
    data = response.json()["data"]
    assert response.json()["message"] == "Quantity counted successfully."
    assert data["quantity"] == 0
    assert data["inventory_quantity"] == 7
    assert data["inventory_diff_quantity"] == 7
    assert data["inventory_quantity_set"] is True


def test_count_requires_internal_location(client, db, headers):
    product = create_product(db)
    customers = create_location(db, "Customers", LocationType.CUSTOMER.value)

    response = client.post(f"{API}/inventories/quantities", headers=headers, json={
        "product_id": product.id, "location_id": customers.id, "inventory_quantity": 1,
    })

    assert response.status_code == 422
    assert response.json()["errors"]["location_id"] == ["Quantities can only be counted on internal locations."]


def test_apply_moves_difference_through_adjustment_location(client, db, headers, stock):
    product = create_product(db)
    quant = create_quant(db, product, stock, "10")
    client.patch(f"{API}/inventories/quantities/{quant.id}", headers=headers, json={"inventory_quantity": 6})

    response = client.post(f"{API}/inventories/quantities/{quant.id}/apply", headers=headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["quantity"] == 6
    assert data["inventory_quantity_set"] is False

    moves = client.get(f"{API}/inventories/moves", headers=headers, params={"filter[is_inventory]": "true"})
    move = moves.json()["data"][0]
    assert move["state"] == "done"
    assert move["quantity"] == 4
    assert move["source_location_id"] == stock.id


def test_apply_requires_counted_quantity(client, db, headers, stock):
    quant = create_quant(db, create_product(db), stock, "3")

    response = client.post(f"{API}/inventories/quantities/{quant.id}/apply", headers=headers)

    assert response.status_code == 422
    assert response.json()["message"] == "Only counted quantities can be applied."


def test_clear_discards_count(client, db, headers, stock):
    quant = create_quant(db, create_product(db), stock, "3")
    client.patch(f"{API}/inventories/quantities/{quant.id}", headers=headers, json={"inventory_quantity": 1})

    response = client.post(f"{API}/inventories/quantities/{quant.id}/clear", headers=headers)

    assert response.json()["data"]["inventory_quantity_set"] is False
    db.expire_all()
    assert db.get(ProductQuantity, quant.id).quantity == Decimal("3")


def test_reserved_quantities_cannot_be_deleted(client, db, headers, stock):
    quant = create_quant(db, create_product(db), stock, "3")
    quant.reserved_quantity = Decimal("1")
    db.commit()

    response = client.delete(f"{API}/inventories/quantities/{quant.id}", headers=headers)

    assert response.status_code == 422
    assert response.json()["message"] == "Reserved quantities cannot be deleted."


def test_clear_is_audited(client, db, headers, stock):
    quant = create_quant(db, create_product(db), stock, "3")
    client.patch(f"{API}/inventories/quantities/{quant.id}", headers=headers, json={"inventory_quantity": 1})

    client.post(f"{API}/inventories/quantities/{quant.id}/clear", headers=headers)

    log = db.query(AuditLog).filter_by(action="clear").one()
    assert log.resource_type == "product_quantity"
    assert log.resource_id == quant.id
