"""库存作业：收货、发货、内部调拨、代发、预留、验证、取消、退回"""

import asyncio
from decimal import Decimal

import pytest

from conftest import API, acting_as, create_company, create_location, create_operation_type, create_product

from erp.db.session import SessionLocal
from erp.models import AuditLog, ProductQuantity, Operation
from erp.models.enums import LocationType, OperationTypeKind
from erp.api.api_v1.endpoints.inventories.operations.stock_ops import check_pending_availability

ABILITIES = ("view_any", "view", "create", "update", "delete")
PERMISSIONS = tuple(
    f"{ability}_{resource}"
    for resource in ("inventory_receipt", "inventory_delivery", "inventory_internal")
    for ability in ABILITIES
) + ("create_inventory_warehouse",)


@pytest.fixture
def headers(db):
    return acting_as(db, *PERMISSIONS)


@pytest.fixture
def warehouse(client, db, headers):
    company = create_company(db)
    response = client.post(f"{API}/inventories/warehouses", headers=headers, json={
        "name": "Main Warehouse", "code": "WH", "company_id": company.id,
    })
    assert response.status_code == 201
    return response.json()["data"]


@pytest.fixture
def product(db):
    return create_product(db, "Chair", is_storable=True)


def stock_of(db, product, location_id):
    db.expire_all()
    quant = db.query(ProductQuantity).filter_by(product_id=product.id, location_id=location_id).one_or_none()
    if quant is None:
        return Decimal("0"), Decimal("0")
    return quant.quantity, quant.reserved_quantity


def create_operation(client, headers, resource, type_id, product, qty):
    response = client.post(f"{API}/inventories/{resource}", headers=headers, json={
        "operation_type_id": type_id,
        "moves": [{"product_id": product.id, "product_uom_qty": qty}],
    })
    assert response.status_code == 201, response.json()
    return response.json()["data"]


def receive(client, headers, warehouse, product, qty):
    receipt = create_operation(client, headers, "receipts", warehouse["in_type_id"], product, qty)
    response = client.post(f"{API}/inventories/receipts/{receipt['id']}/validate", headers=headers)
    assert response.status_code == 200, response.json()
    return response.json()["data"]


def test_warehouse_creates_default_locations_and_types(warehouse):
    assert warehouse["view_location_id"] is not None
    assert warehouse["lot_stock_location_id"] is not None
    assert warehouse["in_type_id"] is not None
    assert warehouse["out_type_id"] is not None
    assert warehouse["internal_type_id"] is not None


def test_receipt_is_created_in_draft_with_sequence_name(client, headers, warehouse, product):
    receipt = create_operation(client, headers, "receipts", warehouse["in_type_id"], product, 5)

    assert receipt["name"] == "WH/IN/00001"
    assert receipt["state"] == "draft"
    assert receipt["destination_location_id"] == warehouse["lot_stock_location_id"]
    assert receipt["moves"][0]["state"] == "draft"
    assert receipt["moves"][0]["reference"] == "WH/IN/00001"


def test_receipt_rejects_operation_type_of_other_kind(client, headers, warehouse, product):
    response = client.post(f"{API}/inventories/receipts", headers=headers, json={
        "operation_type_id": warehouse["out_type_id"],
        "moves": [{"product_id": product.id, "product_uom_qty": 1}],
    })

    assert response.status_code == 422
    assert response.json()["errors"]["operation_type_id"] == [
        "The selected operation type does not match this resource."
    ]


def test_configurable_products_cannot_be_moved(client, db, headers, warehouse):
    template = create_product(db, "Shirt", is_configurable=True)

    response = client.post(f"{API}/inventories/receipts", headers=headers, json={
        "operation_type_id": warehouse["in_type_id"],
        "moves": [{"product_id": template.id, "product_uom_qty": 1}],
    })

    assert response.status_code == 422
    assert "moves.0.product_id" in response.json()["errors"]


def test_receipt_todo_is_ready_immediately(client, headers, warehouse, product):
    receipt = create_operation(client, headers, "receipts", warehouse["in_type_id"], product, 5)

    response = client.post(f"{API}/inventories/receipts/{receipt['id']}/todo", headers=headers)

    assert response.status_code == 200
    assert response.json()["data"]["state"] == "assigned"
    assert response.json()["message"] == "Receipt set to todo successfully."

    again = client.post(f"{API}/inventories/receipts/{receipt['id']}/todo", headers=headers)
    assert again.status_code == 422
    assert again.json()["message"] == "Only draft operations can be set to todo."


def test_validating_receipt_increases_stock(client, db, headers, warehouse, product):
    data = receive(client, headers, warehouse, product, 5)

    assert data["state"] == "done"
    assert data["closed_at"] is not None
    assert data["moves"][0]["quantity"] == 5.0
    assert stock_of(db, product, warehouse["lot_stock_location_id"]) == (Decimal("5"), Decimal("0"))


def test_delivery_reserves_and_consumes_stock(client, db, headers, warehouse, product):
    stock_id = warehouse["lot_stock_location_id"]
    receive(client, headers, warehouse, product, 5)
    delivery = create_operation(client, headers, "deliveries", warehouse["out_type_id"], product, 3)

    todo = client.post(f"{API}/inventories/deliveries/{delivery['id']}/todo", headers=headers)
    assert todo.json()["data"]["state"] == "confirmed"
    assert stock_of(db, product, stock_id) == (Decimal("5"), Decimal("0"))

    checked = client.post(f"{API}/inventories/deliveries/{delivery['id']}/check-availability", headers=headers)
    assert checked.json()["data"]["state"] == "assigned"
    assert stock_of(db, product, stock_id) == (Decimal("5"), Decimal("3"))

    done = client.post(f"{API}/inventories/deliveries/{delivery['id']}/validate", headers=headers)
    assert done.json()["data"]["state"] == "done"
    assert stock_of(db, product, stock_id) == (Decimal("2"), Decimal("0"))


def test_partial_reservation_then_check_availability(client, db, headers, warehouse, product):
    stock_id = warehouse["lot_stock_location_id"]
    receive(client, headers, warehouse, product, 5)
    delivery = create_operation(client, headers, "deliveries", warehouse["out_type_id"], product, 8)

    client.post(f"{API}/inventories/deliveries/{delivery['id']}/todo", headers=headers)
    first = client.post(f"{API}/inventories/deliveries/{delivery['id']}/check-availability", headers=headers)
    first = first.json()["data"]
    assert first["moves"][0]["state"] == "partially_available"
    assert first["state"] == "assigned"
    assert stock_of(db, product, stock_id) == (Decimal("5"), Decimal("5"))

    receive(client, headers, warehouse, product, 5)
    checked = client.post(f"{API}/inventories/deliveries/{delivery['id']}/check-availability", headers=headers)

    assert checked.status_code == 200
    assert checked.json()["data"]["moves"][0]["state"] == "assigned"
    assert stock_of(db, product, stock_id) == (Decimal("10"), Decimal("8"))


def test_delivery_waits_without_stock(client, headers, warehouse, product):
    delivery = create_operation(client, headers, "deliveries", warehouse["out_type_id"], product, 2)

    client.post(f"{API}/inventories/deliveries/{delivery['id']}/todo", headers=headers)

    checked = client.post(f"{API}/inventories/deliveries/{delivery['id']}/check-availability", headers=headers)

    assert checked.status_code == 200
    assert checked.json()["data"]["state"] == "confirmed"
    assert checked.json()["data"]["moves"][0]["state"] == "confirmed"


def test_cancel_releases_reservation(client, db, headers, warehouse, product):
    stock_id = warehouse["lot_stock_location_id"]
    receive(client, headers, warehouse, product, 5)
    delivery = create_operation(client, headers, "deliveries", warehouse["out_type_id"], product, 3)
    client.post(f"{API}/inventories/deliveries/{delivery['id']}/todo", headers=headers)
    client.post(f"{API}/inventories/deliveries/{delivery['id']}/check-availability", headers=headers)

    response = client.post(f"{API}/inventories/deliveries/{delivery['id']}/cancel", headers=headers)

    assert response.json()["data"]["state"] == "canceled"
    assert stock_of(db, product, stock_id) == (Decimal("5"), Decimal("0"))

    validate = client.post(f"{API}/inventories/deliveries/{delivery['id']}/validate", headers=headers)
    assert validate.status_code == 422


def test_done_operations_cannot_be_deleted(client, headers, warehouse, product):
    receipt = receive(client, headers, warehouse, product, 1)

    response = client.delete(f"{API}/inventories/receipts/{receipt['id']}", headers=headers)

    assert response.status_code == 422
    assert response.json()["message"] == "Done operations cannot be deleted."


def test_return_of_receipt_swaps_locations(client, db, headers, warehouse, product):
    receipt = receive(client, headers, warehouse, product, 4)

    response = client.post(f"{API}/inventories/receipts/{receipt['id']}/return", headers=headers)

    assert response.status_code == 200
    returned = response.json()["data"]
    assert returned["return_id"] == receipt["id"]
    assert returned["origin"] == f"Return of {receipt['name']}"
    assert returned["name"] == "WH/OUT/00001"
    assert returned["source_location_id"] == receipt["destination_location_id"]
    assert returned["destination_location_id"] == receipt["source_location_id"]
    assert returned["state"] == "confirmed"
    assert returned["moves"][0]["origin_returned_move_id"] == receipt["moves"][0]["id"]
    assert stock_of(db, product, warehouse["lot_stock_location_id"]) == (Decimal("4"), Decimal("0"))


def test_only_done_operations_can_be_returned(client, headers, warehouse, product):
    receipt = create_operation(client, headers, "receipts", warehouse["in_type_id"], product, 1)

    response = client.post(f"{API}/inventories/receipts/{receipt['id']}/return", headers=headers)

    assert response.status_code == 422
    assert response.json()["message"] == "Only done operations can be returned."


def test_operation_from_other_kind_is_not_found(client, headers, warehouse, product):
    receipt = create_operation(client, headers, "receipts", warehouse["in_type_id"], product, 1)

    response = client.get(f"{API}/inventories/deliveries/{receipt['id']}", headers=headers)

    assert response.status_code == 404
    assert response.json()["message"] == "Delivery not found."


def test_pending_operations_are_reserved_by_scheduler_job(client, db, headers, warehouse, product):
    delivery = create_operation(client, headers, "deliveries", warehouse["out_type_id"], product, 2)
    client.post(f"{API}/inventories/deliveries/{delivery['id']}/todo", headers=headers)
    receive(client, headers, warehouse, product, 5)

    async def run():
        async with SessionLocal() as session:
            return await check_pending_availability(session)

    assert asyncio.run(run()) == 1
    db.expire_all()
    assert db.get(Operation, delivery["id"]).state == "assigned"


def test_moves_of_done_operation_are_locked(client, db, headers, warehouse, product):
    receipt = receive(client, headers, warehouse, product, 4)

    response = client.patch(f"{API}/inventories/receipts/{receipt['id']}", headers=headers, json={
        "moves": [{"product_id": product.id, "product_uom_qty": 9}],
    })

    assert response.status_code == 422
    assert response.json()["message"] == "Cannot change moves of a done or canceled operation."
    detail = client.get(f"{API}/inventories/receipts/{receipt['id']}", headers=headers).json()["data"]
    assert detail["state"] == "done"
    assert detail["moves"][0]["product_uom_qty"] == 4
    assert stock_of(db, product, warehouse["lot_stock_location_id"]) == (Decimal("4"), Decimal("0"))


def test_moves_added_to_confirmed_operation_are_confirmed(client, db, headers, warehouse, product):
    desk = create_product(db, "Desk", is_storable=True)
    delivery = create_operation(client, headers, "deliveries", warehouse["out_type_id"], product, 1)
    client.post(f"{API}/inventories/deliveries/{delivery['id']}/todo", headers=headers)

    response = client.patch(f"{API}/inventories/deliveries/{delivery['id']}", headers=headers, json={
        "moves": [
            {"id": delivery["moves"][0]["id"], "product_id": product.id, "product_uom_qty": 1},
            {"product_id": desk.id, "product_uom_qty": 2},
        ],
    })

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["state"] == "confirmed"
    assert {move["state"] for move in data["moves"]} == {"confirmed"}


def test_check_availability_is_audited(client, db, headers, warehouse, product):
    delivery = create_operation(client, headers, "deliveries", warehouse["out_type_id"], product, 1)
    client.post(f"{API}/inventories/deliveries/{delivery['id']}/todo", headers=headers)

    client.post(f"{API}/inventories/deliveries/{delivery['id']}/check-availability", headers=headers)

    log = db.query(AuditLog).filter_by(action="check_availability").one()
    assert log.resource_type == "inventory_delivery"
    assert log.resource_id == delivery["id"]


def test_internal_transfer_moves_stock_between_locations(client, db, headers, warehouse, product):
    stock_id = warehouse["lot_stock_location_id"]
    shelf = create_location(db, "Shelf 1")
    receive(client, headers, warehouse, product, 5)

    response = client.post(f"{API}/inventories/internal-transfers", headers=headers, json={
        "operation_type_id": warehouse["internal_type_id"],
        "destination_location_id": shelf.id,
        "moves": [{"product_id": product.id, "product_uom_qty": 2}],
    })
    assert response.status_code == 201
    transfer = response.json()["data"]
    assert transfer["name"] == "WH/INT/00001"

    done = client.post(f"{API}/inventories/internal-transfers/{transfer['id']}/validate", headers=headers)

    assert done.json()["data"]["state"] == "done"
    assert stock_of(db, product, stock_id) == (Decimal("3"), Decimal("0"))
    assert stock_of(db, product, shelf.id) == (Decimal("2"), Decimal("0"))


def test_dropship_skips_internal_stock(client, db, product):
    headers = acting_as(db, *(f"{ability}_inventory_dropship" for ability in ABILITIES))
    vendors = create_location(db, "Vendors", LocationType.SUPPLIER.value)
    customers = create_location(db, "Customers", LocationType.CUSTOMER.value)
    dropship_type = create_operation_type(db, OperationTypeKind.DROPSHIP.value, vendors, customers, "DS")

    dropship = create_operation(client, headers, "dropships", dropship_type.id, product, 3)
    assert dropship["name"] == "DS/00001"

    todo = client.post(f"{API}/inventories/dropships/{dropship['id']}/todo", headers=headers)
    assert todo.json()["data"]["state"] == "assigned"

    done = client.post(f"{API}/inventories/dropships/{dropship['id']}/validate", headers=headers)
    assert done.json()["data"]["state"] == "done"
    assert db.query(ProductQuantity).count() == 0
