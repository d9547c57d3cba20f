"""
凭证接口公共部分

发票、账单、贷项通知单、退款共用一张表，按 move_type 区分。
MoveKind 描述每类单据的类型、权限与提示文案。
"""

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from erp.core.deps import ensure_in_scope
from erp.models.accounts.account import Account, Journal
from erp.models.accounts.move import Move, MoveLine
from erp.models.accounts.payment_term import PaymentTerm
from erp.models.accounts.tax import Tax
from erp.models.enums import MoveType
from erp.models.partners.partner import Partner
from erp.models.products.product import Product
from erp.models.security.user import User
from erp.models.support.company import Company, Currency
from erp.models.support.uom import UOM
from erp.schemas.accounts import MoveResponse, MoveLineResponse
from erp.api.api_v1.common import ErrorBag


class MoveKind:
    """一类单据的配置"""

    def __init__(self, move_type: str, label: str, plural: str, resource: str,
                 reversible: bool = False, requires_due_date: bool = False):
        self.move_type = move_type
        self.label = label              # Invoice
        self.plural = plural            # invoices
        self.resource = resource        # account_invoice
        self.reversible = reversible
        self.requires_due_date = requires_due_date

    @property
    def noun(self) -> str:
        """句中使用的小写名称，如 credit note"""
        return self.label.lower()

    def permission(self, ability: str) -> str:
        return f"{ability}_{self.resource}"


INVOICE = MoveKind(MoveType.OUT_INVOICE.value, "Invoice", "invoices", "account_invoice",
                   reversible=True, requires_due_date=True)
BILL = MoveKind(MoveType.IN_INVOICE.value, "Bill", "bills", "account_bill", reversible=True)
CREDIT_NOTE = MoveKind(MoveType.OUT_REFUND.value, "Credit note", "credit notes", "account_credit_note")
REFUND = MoveKind(MoveType.IN_REFUND.value, "Refund", "refunds", "account_refund")

KINDS_BY_TYPE = {kind.move_type: kind for kind in (INVOICE, BILL, CREDIT_NOTE, REFUND)}

LOAD_OPTIONS = [
    selectinload(Move.lines).selectinload(MoveLine.taxes),
    selectinload(Move.partner),
    selectinload(Move.currency),
    selectinload(Move.journal),
    selectinload(Move.invoice_payment_term).selectinload(PaymentTerm.due_terms),
]

# include 参数 → 关系属性
INCLUDES = {
    "partner": "partner",
    "currency": "currency",
    "journal": "journal",
    "invoicePaymentTerm": "invoice_payment_term",
}

SORTS = ["id", "name", "state", "invoice_date", "invoice_date_due", "date", "amount_total", "created_at"]

# 更新时可省略，不可置空
REQUIRED_FIELDS = ("partner_id", "currency_id", "journal_id", "invoice_date", "invoice_lines")


def _brief(obj, *fields) -> Optional[Dict]:
    if obj is None:
        return None
    return {field: getattr(obj, field) for field in ("id",) + fields}


def build_line_response(line: MoveLine) -> dict:
    data = MoveLineResponse.model_validate(line).model_dump(mode="json")
    data["tax_ids"] = [tax.id for tax in line.taxes]
    return data


def build_move_response(move: Move, includes: List[str] = ()) -> dict:
    data = MoveResponse.model_validate(move).model_dump(mode="json")
    data["invoice_lines"] = [build_line_response(line) for line in move.lines]
    if "partner" in includes:
        data["partner"] = _brief(move.partner, "name", "email")
    if "currency" in includes:
        data["currency"] = _brief(move.currency, "name", "symbol")
    if "journal" in includes:
        data["journal"] = _brief(move.journal, "name", "code", "type")
    if "invoicePaymentTerm" in includes:
        data["invoice_payment_term"] = _brief(move.invoice_payment_term, "name")
    return data


async def get_move(db: AsyncSession, kind: MoveKind, move_id: int, user: User) -> Move:
    """按ID加载指定类型的单据；类型不符返回 404，不在数据范围内返回 403"""
    result = await db.execute(
        select(Move)
        .where(Move.id == move_id, Move.move_type == kind.move_type)
        .options(*LOAD_OPTIONS)
        .execution_options(populate_existing=True)
    )
    move = result.scalar_one_or_none()
    if move is None:
        raise HTTPException(status_code=404, detail=f"{kind.label} not found.")
    await ensure_in_scope(db, move, user, Move.invoice_user_id)
    return move


async def validate_move(db: AsyncSession, kind: MoveKind, data: dict, creating: bool = False):
    errors = ErrorBag()
    errors.filled(data, *REQUIRED_FIELDS)
    await errors.exists(db, Partner, data.get("partner_id"), "partner_id")
    await errors.exists(db, Currency, data.get("currency_id"), "currency_id")
    await errors.exists(db, Journal, data.get("journal_id"), "journal_id")
    await errors.exists(db, PaymentTerm, data.get("invoice_payment_term_id"), "invoice_payment_term_id")
    await errors.exists(db, User, data.get("invoice_user_id"), "invoice_user_id")
    await errors.exists(db, Company, data.get("company_id"), "company_id")

    for index, line in enumerate(data.get("invoice_lines") or []):
        prefix = f"invoice_lines.{index}"
        await errors.exists(db, Product, line.get("product_id"), f"{prefix}.product_id")
        await errors.exists(db, UOM, line.get("uom_id"), f"{prefix}.uom_id")
        await errors.exists(db, Account, line.get("account_id"), f"{prefix}.account_id")
        await errors.exists_all(db, Tax, line.get("tax_ids"), f"{prefix}.tax_ids")

    if (kind.requires_due_date and creating
            and data.get("invoice_date_due") is None and data.get("invoice_payment_term_id") is None):
        errors.add(
            "invoice_date_due",
            "The invoice date due field is required when invoice payment term id is not present."
        )
    errors.raise_if_any()


def _decimal(value) -> Decimal:
    return Decimal(str(value or 0))


async def build_lines(db: AsyncSession, items: List[dict]) -> List[MoveLine]:
    """由请求数据构建发票行（税需提前加载）"""
    lines = []
    for index, item in enumerate(items, start=1):
        product = await db.get(Product, item["product_id"])
        taxes = []
        if item.get("tax_ids"):
            result = await db.execute(select(Tax).where(Tax.id.in_(item["tax_ids"])))
            taxes = list(result.scalars().all())
        lines.append(MoveLine(
            sequence=index * 10,
            name=item.get("name") or product.name,
            product_id=product.id,
            uom_id=item.get("uom_id") or product.uom_id,
            account_id=item.get("account_id"),
            quantity=_decimal(item["quantity"]),
            price_unit=_decimal(item["price_unit"]),
            discount=_decimal(item.get("discount")),
            taxes=taxes,
        ))
    return lines


def copy_lines(lines: List[MoveLine]) -> List[MoveLine]:
    """冲销时复制明细"""
    return [
        MoveLine(
            sequence=line.sequence,
            display_type=line.display_type,
            name=line.name,
            product_id=line.product_id,
            uom_id=line.uom_id,
            account_id=line.account_id,
            quantity=line.quantity,
            price_unit=line.price_unit,
            discount=line.discount,
            taxes=list(line.taxes),
        )
        for line in lines
    ]


async def apply_due_date(db: AsyncSession, move: Move, explicit_due: bool):
    """未显式给出到期日时，按付款条件计算；没有付款条件则等于发票日期"""
    if explicit_due and move.invoice_date_due is not None:
        return
    if move.invoice_payment_term_id:
        result = await db.execute(
            select(PaymentTerm)
            .where(PaymentTerm.id == move.invoice_payment_term_id)
            .options(selectinload(PaymentTerm.due_terms))
        )
        term = result.scalar_one()
        move.invoice_date_due = term.compute_due_date(move.invoice_date)
    elif move.invoice_date_due is None:
        move.invoice_date_due = move.invoice_date


async def next_sequence_name(db: AsyncSession, move: Move) -> str:
    """生成单据编号 {前缀}/{年份}/{五位序号}，按类型和年份连续递增"""
    year = (move.date or move.invoice_date or date.today()).year
    prefix = f"{move.sequence_prefix}/{year}/"
    result = await db.execute(
        select(Move.name)
        .where(Move.move_type == move.move_type, Move.name.like(f"{prefix}%"))
        .order_by(Move.name.desc())
        .limit(1)
    )
    last = result.scalar_one_or_none()
    number = int(last.rsplit("/", 1)[1]) + 1 if last else 1
    return f"{prefix}{number:05d}"
