"""销售订单：报价、确认生成发货、取消"""

import pytest

from conftest import API, acting_as, create_company, create_partner, create_product, create_uom

from erp.models import UOMCategory

PERMISSIONS = (
    "view_any_sale_order", "view_sale_order", "create_sale_order", "update_sale_order", "delete_sale_order",
    "create_inventory_warehouse", "update_inventory_delivery", "view_inventory_delivery",
)


@pytest.fixture
def company(db):
    return create_company(db)


@pytest.fixture
def headers(db, company):
    return acting_as(db, *PERMISSIONS, company=company)


@pytest.fixture
def warehouse(client, headers, company):
    response = client.post(f"{API}/inventories/warehouses", headers=headers, json={
        "name": "Main Warehouse", "code": "WH", "company_id": company.id,
    })
    return response.json()["data"]


def create_order(client, headers, partner, *lines):
    response = client.post(f"{API}/sales/orders", headers=headers, json={
        "partner_id": partner.id,
        "order_lines": [{"product_id": product.id, "product_uom_qty": qty} for product, qty in lines],
    })
    assert response.status_code == 201, response.json()
    return response.json()["data"]


def test_create_order_uses_company_currency_and_product_price(client, db, headers, company):
    partner = create_partner(db)
    product = create_product(db, "Desk", price="10")

    order = create_order(client, headers, partner, (product, 3))

    assert order["name"] == "S00001"
    assert order["state"] == "draft"
    assert order["currency_id"] == company.currency_id
    assert order["order_lines"][0]["price_unit"] == 10.0
    assert order["amount_total"] == 30.0


def test_products_not_for_sale_are_rejected(client, db, headers):
    partner = create_partner(db)
    product = create_product(db, "Internal part", enable_sales=False)

    response = client.post(f"{API}/sales/orders", headers=headers, json={
        "partner_id": partner.id,
        "order_lines": [{"product_id": product.id, "product_uom_qty": 1}],
    })

    assert response.status_code == 422
    assert response.json()["message"] == "The product 'Internal part' cannot be sold."


def test_confirm_creates_confirmed_delivery(client, db, headers, warehouse):
    partner = create_partner(db)
    desk = create_product(db, "Desk")
    service = create_product(db, "Installation", type="service", is_storable=False)
    order = create_order(client, headers, partner, (desk, 2), (service, 1))

    response = client.post(f"{API}/sales/orders/{order['id']}/confirm", headers=headers)

    assert response.status_code == 200
    assert response.json()["data"]["state"] == "sale"

    deliveries = client.get(f"{API}/sales/orders/{order['id']}/deliveries", headers=headers,
                            params={"include": "moves"}).json()["data"]
    assert len(deliveries) == 1
    delivery = deliveries[0]
    assert delivery["origin"] == order["name"]
    assert delivery["state"] == "confirmed"
    assert delivery["source_location_id"] == warehouse["lot_stock_location_id"]
    assert [m["product_id"] for m in delivery["moves"]] == [desk.id]


def test_validating_delivery_updates_delivered_quantity(client, db, headers, warehouse):
    partner = create_partner(db)
    desk = create_product(db, "Desk")
    order = create_order(client, headers, partner, (desk, 2))
    client.post(f"{API}/sales/orders/{order['id']}/confirm", headers=headers)
    delivery = client.get(f"{API}/sales/orders/{order['id']}/deliveries", headers=headers).json()["data"][0]

    client.post(f"{API}/inventories/deliveries/{delivery['id']}/validate", headers=headers)
    order = client.get(f"{API}/sales/orders/{order['id']}", headers=headers).json()["data"]

    assert order["order_lines"][0]["qty_delivered"] == 2.0

    cancel = client.post(f"{API}/sales/orders/{order['id']}/cancel", headers=headers)
    assert cancel.status_code == 422
    assert cancel.json()["message"] == "Cannot cancel an order with done deliveries."


def test_cancel_order_cancels_open_deliveries(client, db, headers, warehouse):
    partner = create_partner(db)
    order = create_order(client, headers, partner, (create_product(db, "Desk"), 1))
    client.post(f"{API}/sales/orders/{order['id']}/confirm", headers=headers)

    response = client.post(f"{API}/sales/orders/{order['id']}/cancel", headers=headers)

    assert response.json()["data"]["state"] == "cancel"
    deliveries = client.get(f"{API}/sales/orders/{order['id']}/deliveries", headers=headers,
                            params={"filter[state]": "canceled"})
    assert deliveries.json()["meta"]["total"] == 1

    reset = client.post(f"{API}/sales/orders/{order['id']}/reset-to-draft", headers=headers)
    assert reset.json()["data"]["state"] == "draft"


def test_confirmed_orders_cannot_be_updated_or_deleted(client, db, headers, warehouse):
    partner = create_partner(db)
    order = create_order(client, headers, partner, (create_product(db, "Desk"), 1))
    client.post(f"{API}/sales/orders/{order['id']}/confirm", headers=headers)

    update = client.patch(f"{API}/sales/orders/{order['id']}", headers=headers, json={"note": "rush"})
    delete = client.delete(f"{API}/sales/orders/{order['id']}", headers=headers)

    assert update.status_code == 422
    assert update.json()["message"] == "Only draft or sent orders can be updated."
    assert delete.status_code == 422
    assert delete.json()["message"] == "Only draft or cancelled orders can be deleted."


def test_list_orders(client, db, headers):
    partner = create_partner(db)
    create_order(client, headers, partner, (create_product(db, "Desk"), 1))

    response = client.get(f"{API}/sales/orders", headers=headers)

    assert response.status_code == 200
    assert response.json()["meta"]["total"] == 1


def test_line_uom_must_match_product_category(client, db, headers):
    partner = create_partner(db)
    product = create_product(db, "Desk")
    weight = UOMCategory(name="Weight")
    db.add(weight)
    db.commit()
    kg = create_uom(db, "kg", category=weight)

    response = client.post(f"{API}/sales/orders", headers=headers, json={
        "partner_id": partner.id,
        "order_lines": [{"product_id": product.id, "product_uom_qty": 1, "uom_id": kg.id}],
    })

    assert response.status_code == 422
    assert "order_lines.0.uom_id" in response.json()["errors"]
