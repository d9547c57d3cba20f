"""销售订单公共部分：响应构建、查询、校验、订单行与编号"""

from decimal import Decimal
from typing import Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from erp.core.deps import ensure_in_scope
from erp.models.accounts.payment_term import PaymentTerm
from erp.models.accounts.tax import Tax
from erp.models.enums import SaleOrderState
from erp.models.partners.partner import Partner
from erp.models.products.product import Product
from erp.models.sales.order import SaleOrder, SaleOrderLine
from erp.models.security.user import User
from erp.models.support.company import Company, Currency
from erp.models.support.uom import UOM
from erp.schemas.sales import SaleOrderResponse, OrderLineResponse
from erp.api.api_v1.common import ErrorBag

LOAD_OPTIONS = [
    selectinload(SaleOrder.lines).selectinload(SaleOrderLine.taxes),
    selectinload(SaleOrder.partner),
    selectinload(SaleOrder.currency),
]

INCLUDES = ["partner", "currency"]

SORTS = ["id", "name", "state", "date_order", "amount_total", "created_at", "updated_at"]

EDITABLE_STATES = (SaleOrderState.DRAFT.value, SaleOrderState.SENT.value)


def _brief(obj, *fields) -> Optional[Dict]:
    if obj is None:
        return None
    return {field: getattr(obj, field) for field in ("id",) + fields}


def build_line_response(line: SaleOrderLine) -> dict:
    data = OrderLineResponse.model_validate(line).model_dump(mode="json")
    data["tax_ids"] = [tax.id for tax in line.taxes]
    return data


def build_order_response(order: SaleOrder, includes: List[str] = ()) -> dict:
    data = SaleOrderResponse.model_validate(order).model_dump(mode="json")
    data["order_lines"] = [build_line_response(line) for line in order.lines]
    if "partner" in includes:
        data["partner"] = _brief(order.partner, "name", "email")
    if "currency" in includes:
        data["currency"] = _brief(order.currency, "name", "symbol")
    return data


async def load_order(db: AsyncSession, order_id: int) -> Optional[SaleOrder]:
    result = await db.execute(
        select(SaleOrder)
        .where(SaleOrder.id == order_id)
        .options(*LOAD_OPTIONS)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_order(db: AsyncSession, order_id: int, user: User) -> SaleOrder:
    order = await load_order(db, order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found.")
    await ensure_in_scope(db, order, user, SaleOrder.user_id)
    return order


async def validate_order(db: AsyncSession, data: dict):
    errors = ErrorBag()
    await errors.exists(db, Partner, data.get("partner_id"), "partner_id")
    await errors.exists(db, Currency, data.get("currency_id"), "currency_id")
    await errors.exists(db, PaymentTerm, data.get("payment_term_id"), "payment_term_id")
    await errors.exists(db, User, data.get("user_id"), "user_id")
    await errors.exists(db, Company, data.get("company_id"), "company_id")

    for index, line in enumerate(data.get("order_lines") or []):
        prefix = f"order_lines.{index}"
        product = await errors.exists(db, Product, line.get("product_id"), f"{prefix}.product_id")
        if product is not None and not product.enable_sales:
            errors.add(f"{prefix}.product_id", f"The product '{product.name}' cannot be sold.")
        uom = await errors.exists(db, UOM, line.get("uom_id"), f"{prefix}.uom_id")
        await errors.same_uom_category(db, uom, product, f"{prefix}.uom_id")
        await errors.exists_all(db, Tax, line.get("tax_ids"), f"{prefix}.tax_ids")
    errors.raise_if_any()


async def default_currency_id(db: AsyncSession, company_id: Optional[int]) -> Optional[int]:
    """订单币种默认取公司币种"""
    if company_id is None:
        return None
    company = await db.get(Company, company_id)
    return company.currency_id if company is not None else None


async def build_lines(db: AsyncSession, items: List[dict]) -> List[SaleOrderLine]:
    """由请求数据构建订单行；未给单价时取商品售价"""
    lines = []
    for index, item in enumerate(items, start=1):
        product = await db.get(Product, item["product_id"])
        taxes = []
        if item.get("tax_ids"):
            result = await db.execute(select(Tax).where(Tax.id.in_(item["tax_ids"])))
            taxes = list(result.scalars().all())
        price = item.get("price_unit")
        lines.append(SaleOrderLine(
            sequence=index * 10,
            name=item.get("name") or product.description_sale or product.name,
            product_id=product.id,
            uom_id=item.get("uom_id") or product.uom_id,
            product_uom_qty=Decimal(str(item["product_uom_qty"])),
            qty_delivered=Decimal("0"),
            price_unit=Decimal(str(product.price if price is None else price)),
            discount=Decimal(str(item.get("discount") or 0)),
            taxes=taxes,
        ))
    return lines


async def next_order_name(db: AsyncSession) -> str:
    """订单号 S + 五位序号"""
    result = await db.execute(select(SaleOrder.name).where(SaleOrder.name.like("S%")))
    numbers = [int(name[1:]) for name in result.scalars().all() if name[1:].isdigit()]
    return f"S{max(numbers, default=0) + 1:05d}"
