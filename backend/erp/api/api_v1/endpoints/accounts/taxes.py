"""
税API

每个税有两组分配行（invoice / refund），每组必须恰好一条 base 行、至少一条 tax 行。
创建时未提供分配行则生成默认的 base 100% + tax 100%。
"""

from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from erp.core.deps import get_db, require_permission
from erp.core.exceptions import action_failed
from erp.models.accounts.account import Account
from erp.models.accounts.move import move_line_taxes
from erp.models.accounts.tax import Tax, TaxGroup, TaxPartitionLine
from erp.models.enums import RepartitionType
from erp.models.security.user import User
from erp.models.support.company import Company
from erp.schemas.accounts import TaxCreate, TaxUpdate, TaxResponse, RepartitionLineResponse
from erp.api.api_v1.common import (
    ListParams, ErrorBag, paginate, apply_sort, apply_exact, apply_partial, get_or_404, item_response
)
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log

router = APIRouter()

LOAD_OPTIONS = [selectinload(Tax.repartition_lines)]
DOCUMENT_TYPES = ("invoice", "refund")


def _build_response(tax: Tax) -> dict:
    data = TaxResponse.model_validate(tax).model_dump(mode="json")
    for document_type in DOCUMENT_TYPES:
        data[f"{document_type}_repartition_lines"] = [
            RepartitionLineResponse.model_validate(line).model_dump(mode="json")
            for line in tax.repartition_lines if line.document_type == document_type
        ]
    return data


def _default_lines() -> List[dict]:
    return [
        {"repartition_type": RepartitionType.BASE.value, "factor_percent": 100},
        {"repartition_type": RepartitionType.TAX.value, "factor_percent": 100},
    ]


def _build_lines(document_type: str, lines: List[dict]) -> List[TaxPartitionLine]:
    result = []
    for index, line in enumerate(lines, start=1):
        repartition_type = line["repartition_type"]
        result.append(TaxPartitionLine(
            document_type=document_type,
            repartition_type=getattr(repartition_type, "value", repartition_type),
            factor_percent=line.get("factor_percent", 100),
            account_id=line.get("account_id"),
            use_in_tax_closing=line.get("use_in_tax_closing", False),
            sequence=index,
        ))
    return result


async def _validate(db: AsyncSession, data: dict):
    errors = ErrorBag()
    await errors.exists(db, TaxGroup, data.get("tax_group_id"), "tax_group_id")
    await errors.exists(db, Company, data.get("company_id"), "company_id")
    for document_type in DOCUMENT_TYPES:
        field = f"{document_type}_repartition_lines"
        for index, line in enumerate(data.get(field) or []):
            await errors.exists(db, Account, line.get("account_id"), f"{field}.{index}.account_id")
    errors.raise_if_any()


def _enum_values(data: dict) -> dict:
    for field in ("type_tax_use", "amount_type"):
        if data.get(field) is not None:
            data[field] = data[field].value
    return data


@router.get("")
async def list_taxes(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_any_account_tax")),
    params: ListParams = Depends(),
    name: Optional[str] = Query(None, alias="filter[name]"),
    type_tax_use: Optional[str] = Query(None, alias="filter[type_tax_use]"),
    amount_type: Optional[str] = Query(None, alias="filter[amount_type]"),
    tax_group_id: Optional[str] = Query(None, alias="filter[tax_group_id]"),
    is_active: Optional[str] = Query(None, alias="filter[is_active]")) -> Any:
    query = select(Tax).options(*LOAD_OPTIONS)
    query = apply_partial(query, Tax.name, name)
    query = apply_exact(query, Tax.type_tax_use, type_tax_use)
    query = apply_exact(query, Tax.amount_type, amount_type)
    query = apply_exact(query, Tax.tax_group_id, tax_group_id)
    query = apply_exact(query, Tax.is_active, is_active, boolean=True)
    query = apply_sort(query, Tax, params.sort, ["id", "name", "amount", "sequence"], default="sequence")
    return await paginate(db, query, params, _build_response)


@router.post("", status_code=201)
async def create_tax(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("create_account_tax")),
    tax_in: TaxCreate) -> Any:
    data = tax_in.model_dump()
    await _validate(db, data)

    invoice_lines = data.pop("invoice_repartition_lines") or _default_lines()
    refund_lines = data.pop("refund_repartition_lines") or _default_lines()
    tax = Tax(**_enum_values(data), creator_id=current_user.id)
    tax.repartition_lines = _build_lines("invoice", invoice_lines) + _build_lines("refund", refund_lines)
    db.add(tax)
    await db.flush()

    await create_audit_log(db, current_user.id, "create", "tax", tax.id, tax.name)
    await db.commit()

    tax = await get_or_404(db, Tax, tax.id, "Tax", options=LOAD_OPTIONS)
    return item_response(_build_response(tax), "Tax created successfully.")


@router.get("/{id}")
async def get_tax(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_account_tax")),
    id: int) -> Any:
    tax = await get_or_404(db, Tax, id, "Tax", options=LOAD_OPTIONS)
    return item_response(_build_response(tax))


@router.api_route("/{id}", methods=["PUT", "PATCH"])
async def update_tax(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("update_account_tax")),
    id: int,
    tax_in: TaxUpdate) -> Any:
    """更新税；提供某组分配行时整组替换"""
    tax = await get_or_404(db, Tax, id, "Tax", options=LOAD_OPTIONS)
    data = tax_in.model_dump(exclude_unset=True)
    await _validate(db, data)

    lines = list(tax.repartition_lines)
    for document_type in DOCUMENT_TYPES:
        new_lines = data.pop(f"{document_type}_repartition_lines", None)
        if new_lines is not None:
            lines = [l for l in lines if l.document_type != document_type] + _build_lines(document_type, new_lines)
    tax.repartition_lines = lines

    for field, value in _enum_values(data).items():
        setattr(tax, field, value)
    await create_audit_log(db, current_user.id, "update", "tax", tax.id, tax.name)
    await db.commit()

    tax = await get_or_404(db, Tax, tax.id, "Tax", options=LOAD_OPTIONS)
    return item_response(_build_response(tax), "Tax updated successfully.")


@router.delete("/{id}")
async def delete_tax(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("delete_account_tax")),
    id: int) -> Any:
    tax = await get_or_404(db, Tax, id, "Tax", options=LOAD_OPTIONS)
    in_use = await db.execute(select(move_line_taxes.c.tax_id).where(move_line_taxes.c.tax_id == tax.id).limit(1))
    if in_use.scalar_one_or_none() is not None:
        raise action_failed("Tax is used on journal items and cannot be deleted.")

    await create_audit_log(db, current_user.id, "delete", "tax", tax.id, tax.name)
    await db.delete(tax)
    await db.commit()
    return {"message": "Tax deleted successfully."}
