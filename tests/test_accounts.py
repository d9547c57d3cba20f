"""财务：税、付款条件、发票/账单生命周期"""

from decimal import Decimal

import pytest

from conftest import API, acting_as, create_company, create_partner, create_product

from erp.models import Journal, Tax, TaxGroup, Move
from erp.models.enums import AmountType, ResourcePermission

INVOICE_PERMISSIONS = (
    "view_any_account_invoice", "view_account_invoice", "create_account_invoice",
    "update_account_invoice", "delete_account_invoice",
)


@pytest.fixture
def setup(db):
    company = create_company(db)
    journal = Journal(name="Customer Invoices", code="INV", type="sale")
    group = TaxGroup(name="VAT")
    db.add_all([journal, group])
    db.flush()
    tax = Tax(name="VAT 10%", type_tax_use="sale", amount_type=AmountType.PERCENT.value,
              amount=Decimal("10"), tax_group_id=group.id, sequence=1,
              price_include=False, include_base_amount=False)
    db.add(tax)
    db.commit()
    return {
        "company": company,
        "journal": journal,
        "tax": tax,
        "partner": create_partner(db),
        "product": create_product(db),
    }


def invoice_payload(setup, **overrides):
    payload = {
        "partner_id": setup["partner"].id,
        "currency_id": setup["company"].currency_id,
        "journal_id": setup["journal"].id,
        "invoice_date": "2024-05-10",
        "invoice_date_due": "2024-06-10",
        "invoice_lines": [{
            "product_id": setup["product"].id,
            "quantity": 2,
            "price_unit": 50,
            "tax_ids": [setup["tax"].id],
        }],
    }
    payload.update(overrides)
    return payload


def test_create_invoice_computes_totals(client, db, setup):
    headers = acting_as(db, *INVOICE_PERMISSIONS)

    response = client.post(f"{API}/accounts/invoices", headers=headers, json=invoice_payload(setup))

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Invoice created successfully."
    data = body["data"]
    assert data["state"] == "draft"
    assert data["move_type"] == "out_invoice"
    assert data["name"] is None
    assert data["amount_untaxed"] == 100.0
    assert data["amount_tax"] == 10.0
    assert data["amount_total"] == 110.0
    assert data["invoice_lines"][0]["tax_ids"] == [setup["tax"].id]


def test_invoice_requires_due_date_or_payment_term(client, db, setup):
    headers = acting_as(db, *INVOICE_PERMISSIONS)
    payload = invoice_payload(setup)
    del payload["invoice_date_due"]

    response = client.post(f"{API}/accounts/invoices", headers=headers, json=payload)

    assert response.status_code == 422
    assert "invoice_date_due" in response.json()["errors"]


def test_invoice_due_date_follows_payment_term(client, db, setup):
    headers = acting_as(db, *INVOICE_PERMISSIONS, "create_account_payment_term")
    term = client.post(f"{API}/accounts/payment-terms", headers=headers, json={
        "name": "30 Days", "due_terms": [{"value": "percent", "value_amount": 100, "nb_days": 30}],
    }).json()["data"]
    payload = invoice_payload(setup, invoice_payment_term_id=term["id"])
    del payload["invoice_date_due"]

    response = client.post(f"{API}/accounts/invoices", headers=headers, json=payload)

    assert response.status_code == 201
    assert response.json()["data"]["invoice_date_due"] == "2024-06-09"


def test_invoice_lines_reference_existing_products(client, db, setup):
    headers = acting_as(db, *INVOICE_PERMISSIONS)
    payload = invoice_payload(setup)
    payload["invoice_lines"][0]["product_id"] = 999

    response = client.post(f"{API}/accounts/invoices", headers=headers, json=payload)

    assert response.status_code == 422
    assert "invoice_lines.0.product_id" in response.json()["errors"]


def test_confirm_assigns_sequential_names(client, db, setup):
    headers = acting_as(db, *INVOICE_PERMISSIONS)
    ids = [
        client.post(f"{API}/accounts/invoices", headers=headers, json=invoice_payload(setup)).json()["data"]["id"]
        for _ in range(2)
    ]

    names = []
    for move_id in ids:
        response = client.post(f"{API}/accounts/invoices/{move_id}/confirm", headers=headers)
        assert response.status_code == 200
        assert response.json()["data"]["state"] == "posted"
        names.append(response.json()["data"]["name"])

    assert names == ["INV/2024/00001", "INV/2024/00002"]

    again = client.post(f"{API}/accounts/invoices/{ids[0]}/confirm", headers=headers)
    assert again.status_code == 422
    assert again.json()["message"] == "Only draft invoices can be confirmed."


def test_posted_invoice_cannot_be_updated_or_deleted(client, db, setup):
    headers = acting_as(db, *INVOICE_PERMISSIONS)
    move_id = client.post(f"{API}/accounts/invoices", headers=headers, json=invoice_payload(setup)).json()["data"]["id"]
    client.post(f"{API}/accounts/invoices/{move_id}/confirm", headers=headers)

    update = client.patch(f"{API}/accounts/invoices/{move_id}", headers=headers, json={"ref": "changed"})
    delete = client.delete(f"{API}/accounts/invoices/{move_id}", headers=headers)

    assert update.status_code == 422
    assert update.json()["message"] == "Cannot update a posted invoice."
    assert delete.status_code == 422


def test_reset_to_draft_keeps_name(client, db, setup):
    headers = acting_as(db, *INVOICE_PERMISSIONS)
    move_id = client.post(f"{API}/accounts/invoices", headers=headers, json=invoice_payload(setup)).json()["data"]["id"]
    client.post(f"{API}/accounts/invoices/{move_id}/confirm", headers=headers)

    response = client.post(f"{API}/accounts/invoices/{move_id}/reset-to-draft", headers=headers)

    assert response.status_code == 200
    assert response.json()["data"]["state"] == "draft"
    assert response.json()["data"]["name"] == "INV/2024/00001"


def test_cancel_only_applies_to_drafts(client, db, setup):
    headers = acting_as(db, *INVOICE_PERMISSIONS)
    move_id = client.post(f"{API}/accounts/invoices", headers=headers, json=invoice_payload(setup)).json()["data"]["id"]

    response = client.post(f"{API}/accounts/invoices/{move_id}/cancel", headers=headers)

    assert response.status_code == 200
    assert response.json()["data"]["state"] == "cancel"


def test_reverse_posted_invoice_creates_credit_note(client, db, setup):
    headers = acting_as(db, *INVOICE_PERMISSIONS)
    move_id = client.post(f"{API}/accounts/invoices", headers=headers, json=invoice_payload(setup)).json()["data"]["id"]
    client.post(f"{API}/accounts/invoices/{move_id}/confirm", headers=headers)

    response = client.post(f"{API}/accounts/invoices/{move_id}/reverse", headers=headers, json={"reason": "damaged"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["move_type"] == "out_refund"
    assert data["state"] == "draft"
    assert data["reversed_entry_id"] == move_id
    assert data["ref"] == "Reversal of: INV/2024/00001, damaged"
    assert data["amount_total"] == 110.0


def test_invoice_endpoints_do_not_expose_bills(client, db, setup):
    headers = acting_as(db, *INVOICE_PERMISSIONS, "create_account_bill", "view_any_account_bill")
    bill = client.post(f"{API}/accounts/bills", headers=headers, json=invoice_payload(setup)).json()["data"]

    assert client.get(f"{API}/accounts/invoices", headers=headers).json()["meta"]["total"] == 0
    assert client.get(f"{API}/accounts/bills", headers=headers).json()["meta"]["total"] == 1
    assert client.get(f"{API}/accounts/invoices/{bill['id']}", headers=headers).status_code == 404


def test_tax_in_use_cannot_be_deleted(client, db, setup):
    headers = acting_as(db, *INVOICE_PERMISSIONS, "delete_account_tax")
    client.post(f"{API}/accounts/invoices", headers=headers, json=invoice_payload(setup))

    response = client.delete(f"{API}/accounts/taxes/{setup['tax'].id}", headers=headers)

    assert response.status_code == 422
    assert db.query(Move).count() == 1


def test_invoice_keeps_explicit_accounting_date(client, db, setup):
    headers = acting_as(db, *INVOICE_PERMISSIONS)

    response = client.post(f"{API}/accounts/invoices", headers=headers,
                           json=invoice_payload(setup, date="2024-05-11"))

    assert response.status_code == 201
    assert response.json()["data"]["date"] == "2024-05-11"
    assert response.json()["data"]["invoice_date"] == "2024-05-10"


def test_update_rejects_clearing_required_fields(client, db, setup):
    headers = acting_as(db, *INVOICE_PERMISSIONS)
    move_id = client.post(f"{API}/accounts/invoices", headers=headers, json=invoice_payload(setup)).json()["data"]["id"]

    response = client.patch(f"{API}/accounts/invoices/{move_id}", headers=headers, json={"journal_id": None})

    assert response.status_code == 422
    assert response.json()["errors"]["journal_id"] == ["The journal id field is required."]
    db.expire_all()
    assert db.get(Move, move_id).journal_id == setup["journal"].id


def test_set_as_checked_requires_posted_unchecked_move(client, db, setup):
    headers = acting_as(db, *INVOICE_PERMISSIONS)
    move_id = client.post(f"{API}/accounts/invoices", headers=headers, json=invoice_payload(setup)).json()["data"]["id"]

    draft = client.post(f"{API}/accounts/invoices/{move_id}/set-as-checked", headers=headers)
    assert draft.status_code == 422
    assert draft.json()["message"] == "Only non-draft and unchecked invoices can be marked as checked."

    client.post(f"{API}/accounts/invoices/{move_id}/confirm", headers=headers)
    checked = client.post(f"{API}/accounts/invoices/{move_id}/set-as-checked", headers=headers)
    assert checked.status_code == 200
    assert checked.json()["data"]["checked"] is True

    again = client.post(f"{API}/accounts/invoices/{move_id}/set-as-checked", headers=headers)
    assert again.status_code == 422
    listed = client.get(f"{API}/accounts/invoices", headers=headers, params={"filter[checked]": "true"})
    assert listed.json()["meta"]["total"] == 1


def test_credit_notes_are_isolated_and_not_reversible(client, db, setup):
    headers = acting_as(
        db, *INVOICE_PERMISSIONS,
        *(f"{ability}_account_credit_note" for ability in ("view_any", "view", "create", "update")),
    )
    note = client.post(f"{API}/accounts/credit-notes", headers=headers, json=invoice_payload(setup))
    assert note.status_code == 201
    note = note.json()["data"]
    assert note["move_type"] == "out_refund"

    assert client.get(f"{API}/accounts/invoices/{note['id']}", headers=headers).status_code == 404
    assert client.get(f"{API}/accounts/credit-notes", headers=headers).json()["meta"]["total"] == 1

    client.post(f"{API}/accounts/credit-notes/{note['id']}/confirm", headers=headers)
    reverse = client.post(f"{API}/accounts/credit-notes/{note['id']}/reverse", headers=headers)
    assert reverse.status_code in (404, 405)


def test_refunds_are_created_as_in_refund(client, db, setup):
    headers = acting_as(db, "create_account_refund", "view_any_account_refund", "view_any_account_bill")

    response = client.post(f"{API}/accounts/refunds", headers=headers, json=invoice_payload(setup))

    assert response.status_code == 201
    assert response.json()["data"]["move_type"] == "in_refund"
    assert client.get(f"{API}/accounts/bills", headers=headers).json()["meta"]["total"] == 0


def test_individual_users_only_see_their_own_invoices(client, db, setup):
    owner = acting_as(db, *INVOICE_PERMISSIONS, email="owner@example.com")
    other = acting_as(db, *INVOICE_PERMISSIONS, email="other@example.com",
                      resource_permission=ResourcePermission.INDIVIDUAL.value)
    move_id = client.post(f"{API}/accounts/invoices", headers=owner, json=invoice_payload(setup)).json()["data"]["id"]

    assert client.get(f"{API}/accounts/invoices", headers=other).json()["meta"]["total"] == 0
    assert client.get(f"{API}/accounts/invoices/{move_id}", headers=other).status_code == 403
    assert client.get(f"{API}/accounts/invoices/{move_id}", headers=owner).status_code == 200


def test_group_users_see_invoices_of_their_company(client, db, setup):
    elsewhere = create_company(db, "Elsewhere")
    owner = acting_as(db, *INVOICE_PERMISSIONS, email="owner@example.com", company=setup["company"])
    colleague = acting_as(db, *INVOICE_PERMISSIONS, email="colleague@example.com", company=setup["company"],
                          resource_permission=ResourcePermission.GROUP.value)
    stranger = acting_as(db, *INVOICE_PERMISSIONS, email="stranger@example.com", company=elsewhere,
                         resource_permission=ResourcePermission.GROUP.value)
    move_id = client.post(f"{API}/accounts/invoices", headers=owner, json=invoice_payload(setup)).json()["data"]["id"]

    assert client.get(f"{API}/accounts/invoices", headers=colleague).json()["meta"]["total"] == 1
    assert client.get(f"{API}/accounts/invoices", headers=stranger).json()["meta"]["total"] == 0
    assert client.get(f"{API}/accounts/invoices/{move_id}", headers=stranger).status_code == 403


def test_disallowed_sort_is_rejected(client, db, setup):
    headers = acting_as(db, *INVOICE_PERMISSIONS)

    response = client.get(f"{API}/accounts/invoices", headers=headers, params={"sort": "-partner_id"})

    assert response.status_code == 400
    assert response.json()["message"].startswith("Requested sort(s) `partner_id` is not allowed.")


def test_journal_lifecycle(client, db):
    headers = acting_as(db, *(f"{ability}_account_journal" for ability in ("view_any", "create", "update", "delete")))

    created = client.post(f"{API}/accounts/journals", headers=headers, json={
        "name": "Bank", "code": "BNK1", "type": "bank",
    })
    assert created.status_code == 201
    journal = created.json()["data"]
    assert journal["type"] == "bank"

    invalid = client.post(f"{API}/accounts/journals", headers=headers, json={
        "name": "Misc", "code": "MISC", "type": "unknown",
    })
    assert invalid.status_code == 422

    listed = client.get(f"{API}/accounts/journals", headers=headers, params={"filter[type]": "bank"})
    assert listed.json()["meta"]["total"] == 1

    updated = client.patch(f"{API}/accounts/journals/{journal['id']}", headers=headers, json={"name": "Main bank"})
    assert updated.json()["data"]["name"] == "Main bank"

    deleted = client.delete(f"{API}/accounts/journals/{journal['id']}", headers=headers)
    assert deleted.json()["message"] == "Journal deleted successfully."


def test_tax_group_in_use_cannot_be_deleted(client, db, setup):
    headers = acting_as(db, "view_any_account_tax_group", "create_account_tax_group", "delete_account_tax_group")

    created = client.post(f"{API}/accounts/tax-groups", headers=headers, json={"name": "Sales tax"})
    assert created.status_code == 201

    in_use = client.delete(f"{API}/accounts/tax-groups/{setup['tax'].tax_group_id}", headers=headers)
    assert in_use.status_code == 422
    assert in_use.json()["message"] == "Tax group is used by taxes and cannot be deleted."

    unused = client.delete(f"{API}/accounts/tax-groups/{created.json()['data']['id']}", headers=headers)
    assert unused.json()["message"] == "Tax group deleted successfully."
