"""库存基础数据：库位、作业类型、路线与规则、批次、包裹；会计科目"""

import pytest

from conftest import API, acting_as, create_location, create_operation_type, create_product

from erp.models.enums import LocationType

ABILITIES = ("view_any", "view", "create", "update", "delete", "restore", "force_delete")
PERMISSIONS = tuple(
    f"{ability}_{resource}"
    for resource in ("inventory_location", "inventory_route", "inventory_rule")
    for ability in ABILITIES
) + ("create_inventory_lot", "create_account_account")


@pytest.fixture
def headers(db):
    return acting_as(db, *PERMISSIONS)


def test_location_full_name_includes_parent(client, headers):
    parent = client.post(f"{API}/inventories/locations", headers=headers,
                         json={"name": "WH", "type": "view"}).json()["data"]

    response = client.post(f"{API}/inventories/locations", headers=headers,
                           json={"name": "Shelf 1", "type": "internal", "parent_id": parent["id"]})

    assert response.status_code == 201
    assert response.json()["data"]["full_name"] == "WH/Shelf 1"


def test_location_cannot_be_its_own_parent(client, headers):
    location = client.post(f"{API}/inventories/locations", headers=headers,
                           json={"name": "Stock", "type": "internal"}).json()["data"]

    response = client.patch(f"{API}/inventories/locations/{location['id']}", headers=headers,
                            json={"parent_id": location["id"]})

    assert response.status_code == 422
    assert "parent_id" in response.json()["errors"]


def test_route_with_rules_cannot_be_force_deleted(client, db, headers):
    stock = create_location(db, "Stock")
    customers = create_location(db, "Customers", LocationType.CUSTOMER.value)
    operation_type = create_operation_type(db, "outgoing", stock, customers)
    route = client.post(f"{API}/inventories/routes", headers=headers, json={"name": "Ship"}).json()["data"]
    rule = client.post(f"{API}/inventories/rules", headers=headers, json={
        "name": "Stock to customers", "action": "pull", "operation_type_id": operation_type.id,
        "source_location_id": stock.id, "destination_location_id": customers.id, "route_id": route["id"],
    })
    assert rule.status_code == 201

    response = client.delete(f"{API}/inventories/routes/{route['id']}/force", headers=headers)

    assert response.status_code == 422
    assert response.json()["message"] == "Route has rules and cannot be permanently deleted."


def test_lot_requires_existing_product(client, db, headers):
    product = create_product(db)

    created = client.post(f"{API}/inventories/lots", headers=headers, json={"name": "LOT-1", "product_id": product.id})
    missing = client.post(f"{API}/inventories/lots", headers=headers, json={"name": "LOT-2", "product_id": 999})

    assert created.status_code == 201
    assert missing.status_code == 422
    assert missing.json()["errors"]["product_id"] == ["The selected product id is invalid."]


def test_account_code_is_unique_and_grouped(client, headers):
    payload = {"code": "400000", "name": "Product Sales", "account_type": "income"}

    created = client.post(f"{API}/accounts/accounts", headers=headers, json=payload)
    duplicate = client.post(f"{API}/accounts/accounts", headers=headers, json=payload)

    assert created.json()["data"]["internal_group"] == "income"
    assert duplicate.status_code == 422
    assert duplicate.json()["errors"]["code"] == ["The code has already been taken."]


def test_operation_type_soft_delete_and_restore(client, db):
    headers = acting_as(db, *(f"{ability}_inventory_operation_type" for ability in ABILITIES))
    stock = create_location(db, "Stock")

    created = client.post(f"{API}/inventories/operation-types", headers=headers, json={
        "name": "Pick", "type": "internal", "sequence_code": "PICK",
        "source_location_id": stock.id, "destination_location_id": stock.id,
    })
    assert created.status_code == 201
    type_id = created.json()["data"]["id"]

    invalid = client.post(f"{API}/inventories/operation-types", headers=headers, json={
        "name": "Broken", "type": "incoming", "sequence_code": "BR", "source_location_id": 999,
    })
    assert "source_location_id" in invalid.json()["errors"]

    client.delete(f"{API}/inventories/operation-types/{type_id}", headers=headers)
    assert client.get(f"{API}/inventories/operation-types/{type_id}", headers=headers).status_code == 404
    trashed = client.get(f"{API}/inventories/operation-types", headers=headers, params={"filter[trashed]": "only"})
    assert [item["id"] for item in trashed.json()["data"]] == [type_id]

    restored = client.post(f"{API}/inventories/operation-types/{type_id}/restore", headers=headers)
    assert restored.json()["message"] == "Operation type restored successfully."

    forced = client.delete(f"{API}/inventories/operation-types/{type_id}/force", headers=headers)
    assert forced.json()["message"] == "Operation type permanently deleted successfully."


def test_package_with_type_and_location(client, db):
    headers = acting_as(
        db,
        *(f"{ability}_inventory_package_type" for ability in ("view_any", "create", "delete")),
        *(f"{ability}_inventory_package" for ability in ("view_any", "create", "update", "delete")),
    )
    shelf = create_location(db, "Shelf")

    package_type = client.post(f"{API}/inventories/package-types", headers=headers, json={
        "name": "Pallet", "max_weight": 500,
    })
    assert package_type.status_code == 201
    package_type = package_type.json()["data"]

    package = client.post(f"{API}/inventories/packages", headers=headers, json={
        "name": "PACK0001", "package_type_id": package_type["id"], "location_id": shelf.id,
        "package_use": "reusable",
    })
    assert package.status_code == 201
    assert package.json()["data"]["package_use"] == "reusable"

    unknown = client.post(f"{API}/inventories/packages", headers=headers, json={
        "name": "PACK0002", "package_type_id": 999,
    })
    assert unknown.status_code == 422
    assert "package_type_id" in unknown.json()["errors"]

    listed = client.get(f"{API}/inventories/packages", headers=headers, params={"filter[location_id]": shelf.id})
    assert listed.json()["meta"]["total"] == 1

    deleted = client.delete(f"{API}/inventories/packages/{package.json()['data']['id']}", headers=headers)
    assert deleted.json()["message"] == "Package deleted successfully."
