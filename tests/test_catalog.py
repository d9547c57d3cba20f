"""商品、分类、标签与联系人"""

import pytest

from conftest import API, acting_as, create_uom

ABILITIES = ("view_any", "view", "create", "update", "delete", "restore", "force_delete")
PERMISSIONS = tuple(
    f"{ability}_{resource}"
    for resource in ("product_product", "product_tag", "partner_partner")
    for ability in ABILITIES
) + tuple(f"{ability}_product_category" for ability in ABILITIES[:5])


@pytest.fixture
def headers(db):
    return acting_as(db, *PERMISSIONS)


def create_category(client, headers, name, parent_id=None):
    response = client.post(f"{API}/products/categories", headers=headers, json={"name": name, "parent_id": parent_id})
    assert response.status_code == 201
    return response.json()["data"]


def test_category_full_name_is_rebuilt_when_parent_renamed(client, headers):
    root = create_category(client, headers, "All")
    saleable = create_category(client, headers, "Saleable", root["id"])
    office = create_category(client, headers, "Office", saleable["id"])

    assert office["full_name"] == "All / Saleable / Office"

    client.patch(f"{API}/products/categories/{root['id']}", headers=headers, json={"name": "Everything"})
    response = client.get(f"{API}/products/categories/{office['id']}", headers=headers)

    assert response.json()["data"]["full_name"] == "Everything / Saleable / Office"


def test_category_cannot_move_under_its_descendant(client, headers):
    root = create_category(client, headers, "All")
    child = create_category(client, headers, "Saleable", root["id"])

    response = client.patch(f"{API}/products/categories/{root['id']}", headers=headers, json={"parent_id": child["id"]})

    assert response.status_code == 422
    assert response.json()["errors"]["parent_id"] == ["The selected parent id is invalid."]


def test_category_with_children_cannot_be_deleted(client, headers):
    root = create_category(client, headers, "All")
    create_category(client, headers, "Saleable", root["id"])

    response = client.delete(f"{API}/products/categories/{root['id']}", headers=headers)

    assert response.status_code == 422
    assert response.json()["message"] == "Category has child categories and cannot be deleted."


def test_create_product_with_tags(client, db, headers):
    category = create_category(client, headers, "All")
    uom = create_uom(db)
    tag = client.post(f"{API}/products/tags", headers=headers, json={"name": "New"}).json()["data"]

    response = client.post(f"{API}/products/products", headers=headers, json={
        "type": "goods", "name": "Desk", "price": 120, "category_id": category["id"],
        "uom_id": uom.id, "tag_ids": [tag["id"]],
    })

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["name"] == "Desk"
    assert data["uom_po_id"] == uom.id


def test_create_product_validates_references(client, headers):
    response = client.post(f"{API}/products/products", headers=headers, json={
        "type": "goods", "name": "Desk", "price": 120, "category_id": 999,
    })

    assert response.status_code == 422
    assert response.json()["errors"]["category_id"] == ["The selected category id is invalid."]


def test_create_product_rejects_unknown_type(client, headers):
    response = client.post(f"{API}/products/products", headers=headers, json={
        "type": "gadget", "name": "Desk", "price": 1, "category_id": 1,
    })

    assert response.status_code == 422
    assert response.json()["errors"]["type"] == ["The selected type is invalid."]


def test_tag_lifecycle(client, headers):
    tag = client.post(f"{API}/products/tags", headers=headers, json={"name": "Sale"}).json()["data"]

    duplicate = client.post(f"{API}/products/tags", headers=headers, json={"name": "Sale"})
    assert duplicate.status_code == 422

    client.delete(f"{API}/products/tags/{tag['id']}", headers=headers)
    trashed = client.get(f"{API}/products/tags", headers=headers, params={"filter[trashed]": "with"})
    assert trashed.json()["data"][0]["deleted_at"] is not None

    restored = client.post(f"{API}/products/tags/{tag['id']}/restore", headers=headers)
    assert restored.json()["message"] == "Tag restored successfully."

    forced = client.delete(f"{API}/products/tags/{tag['id']}/force", headers=headers)
    assert forced.json() == {"message": "Tag permanently deleted successfully."}
    assert client.get(f"{API}/products/tags/{tag['id']}", headers=headers).status_code == 404


def test_partner_cannot_be_its_own_parent(client, headers):
    partner = client.post(f"{API}/partners/partners", headers=headers, json={"name": "Acme"}).json()["data"]

    response = client.patch(f"{API}/partners/partners/{partner['id']}", headers=headers,
                            json={"parent_id": partner["id"]})

    assert response.status_code == 422
    assert response.json()["errors"]["parent_id"] == ["A partner cannot be its own parent."]


def test_partner_list_filters_by_name(client, headers):
    client.post(f"{API}/partners/partners", headers=headers, json={"name": "Acme"})
    client.post(f"{API}/partners/partners", headers=headers, json={"name": "Globex"})

    response = client.get(f"{API}/partners/partners", headers=headers, params={"filter[name]": "glo"})

    assert [p["name"] for p in response.json()["data"]] == ["Globex"]
