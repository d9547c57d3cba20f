"""模型层计算逻辑：税额、单位换算、付款条件、作业状态"""

from datetime import date
from decimal import Decimal

import pytest

from erp.models import Operation, StockMove, Tax, PaymentTerm, PaymentDueTerm, UOM
from erp.models.accounts.tax import compute_all
from erp.models.enums import AmountType, OperationState, ShippingPolicy


def make_tax(id, amount, amount_type=AmountType.PERCENT.value, price_include=False,
             include_base_amount=False, sequence=1):
    return Tax(id=id, name=f"Tax {id}", type_tax_use="sale", amount_type=amount_type,
               amount=Decimal(str(amount)), price_include=price_include,
               include_base_amount=include_base_amount, sequence=sequence)


def test_percent_tax_is_added_on_top():
    result = compute_all([make_tax(1, 10)], "100", 2)

    assert result["total_excluded"] == Decimal("200.00")
    assert result["total_included"] == Decimal("220.00")
    assert result["taxes"][0]["amount"] == Decimal("20.00")


def test_price_included_tax_is_stripped_from_base():
    result = compute_all([make_tax(1, 10, price_include=True)], "110", 1)

    assert result["total_excluded"] == Decimal("100.00")
    assert result["total_included"] == Decimal("110.00")


def test_fixed_tax_is_multiplied_by_quantity():
    result = compute_all([make_tax(1, 5, amount_type=AmountType.FIXED.value)], "10", 3)

    assert result["total_excluded"] == Decimal("30.00")
    assert result["total_included"] == Decimal("45.00")


def test_include_base_amount_affects_subsequent_taxes():
    taxes = [
        make_tax(2, 10, sequence=2),
        make_tax(1, 10, include_base_amount=True, sequence=1),
    ]
    result = compute_all(taxes, "100", 1)

    assert [t["amount"] for t in result["taxes"]] == [Decimal("10.00"), Decimal("11.00")]
    assert result["total_included"] == Decimal("121.00")


def test_uom_conversion_within_category():
    units = UOM(id=1, name="Units", factor=1.0, rounding=0.01, category_id=1)
    dozens = UOM(id=2, name="Dozens", factor=1 / 12, rounding=0.01, category_id=1)

    assert dozens.compute_quantity(2, units) == pytest.approx(24.0)
    assert units.compute_quantity(6, dozens) == pytest.approx(0.5)
    assert units.compute_quantity(3, None) == 3.0


def test_uom_conversion_across_categories_fails():
    units = UOM(id=1, name="Units", factor=1.0, rounding=0.01, category_id=1)
    kilos = UOM(id=2, name="kg", factor=1.0, rounding=0.01, category_id=2)

    with pytest.raises(ValueError):
        units.compute_quantity(1, kilos)


def test_payment_term_due_date_uses_longest_term():
    term = PaymentTerm(name="30/60", due_terms=[
        PaymentDueTerm(value="percent", value_amount=Decimal("50"), nb_days=30),
        PaymentDueTerm(value="percent", value_amount=Decimal("50"), nb_days=60),
    ])

    assert term.compute_due_date(date(2024, 1, 1)) == date(2024, 3, 1)
    assert term.compute_due_date(None) is None


@pytest.mark.parametrize("states, policy, expected", [
    (["draft", "assigned"], ShippingPolicy.DIRECT.value, OperationState.DRAFT.value),
    (["assigned", "assigned"], ShippingPolicy.DIRECT.value, OperationState.ASSIGNED.value),
    (["assigned", "confirmed"], ShippingPolicy.DIRECT.value, OperationState.ASSIGNED.value),
    (["assigned", "confirmed"], ShippingPolicy.ONE.value, OperationState.CONFIRMED.value),
    (["partially_available"], ShippingPolicy.DIRECT.value, OperationState.ASSIGNED.value),
    (["waiting", "confirmed"], ShippingPolicy.DIRECT.value, OperationState.WAITING.value),
    (["done", "canceled"], ShippingPolicy.DIRECT.value, OperationState.DONE.value),
    (["canceled", "canceled"], ShippingPolicy.DIRECT.value, OperationState.CANCELED.value),
])
def test_operation_state_follows_moves(states, policy, expected):
    operation = Operation(state=OperationState.DRAFT.value, move_type=policy)
    operation.moves = [StockMove(state=state) for state in states]

    operation.compute_state()

    assert operation.state == expected


def test_operation_without_moves_keeps_state():
    operation = Operation(state=OperationState.CONFIRMED.value, move_type=ShippingPolicy.DIRECT.value)
    operation.moves = []

    operation.compute_state()

    assert operation.state == OperationState.CONFIRMED.value
