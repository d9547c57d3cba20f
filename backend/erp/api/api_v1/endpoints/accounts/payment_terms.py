"""付款条件API（支持回收站）"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from erp.core.deps import get_db, require_permission
from erp.models.accounts.payment_term import PaymentTerm, PaymentDueTerm
from erp.models.security.user import User
from erp.models.support.company import Company
from erp.schemas.accounts import PaymentTermCreate, PaymentTermUpdate, PaymentTermResponse
from erp.api.api_v1.common import (
    ListParams, ErrorBag, paginate, apply_sort, apply_partial, apply_trashed, get_or_404, item_response
)
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log

router = APIRouter()

LOAD_OPTIONS = [selectinload(PaymentTerm.due_terms)]


def _build_response(term: PaymentTerm) -> dict:
    return PaymentTermResponse.model_validate(term).model_dump(mode="json")


def _build_due_terms(items) -> list:
    return [
        PaymentDueTerm(value=item["value"].value, value_amount=item["value_amount"], nb_days=item["nb_days"])
        for item in items
    ]


@router.get("")
async def list_payment_terms(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_any_account_payment_term")),
    params: ListParams = Depends(),
    name: Optional[str] = Query(None, alias="filter[name]"),
    trashed: Optional[str] = Query(None, alias="filter[trashed]")) -> Any:
    query = select(PaymentTerm).options(*LOAD_OPTIONS)
    query = apply_trashed(query, PaymentTerm, trashed)
    query = apply_partial(query, PaymentTerm.name, name)
    query = apply_sort(query, PaymentTerm, params.sort, ["id", "name", "sequence", "created_at"], default="sequence")
    return await paginate(db, query, params, _build_response)


@router.post("", status_code=201)
async def create_payment_term(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("create_account_payment_term")),
    term_in: PaymentTermCreate) -> Any:
    errors = ErrorBag()
    await errors.exists(db, Company, term_in.company_id, "company_id")
    errors.raise_if_any()

    data = term_in.model_dump()
    due_terms = data.pop("due_terms")
    term = PaymentTerm(**data, creator_id=current_user.id)
    term.due_terms = _build_due_terms(due_terms)
    db.add(term)
    await db.flush()
    await create_audit_log(db, current_user.id, "create", "payment_term", term.id, term.name)
    await db.commit()

    term = await get_or_404(db, PaymentTerm, term.id, "Payment term", options=LOAD_OPTIONS)
    return item_response(_build_response(term), "Payment term created successfully.")


@router.get("/{id}")
async def get_payment_term(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_account_payment_term")),
    id: int) -> Any:
    term = await get_or_404(db, PaymentTerm, id, "Payment term", options=LOAD_OPTIONS)
    return item_response(_build_response(term))


@router.api_route("/{id}", methods=["PUT", "PATCH"])
async def update_payment_term(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("update_account_payment_term")),
    id: int,
    term_in: PaymentTermUpdate) -> Any:
    """更新付款条件；提供 due_terms 时整体替换"""
    term = await get_or_404(db, PaymentTerm, id, "Payment term", options=LOAD_OPTIONS)
    data = term_in.model_dump(exclude_unset=True)
    errors = ErrorBag()
    await errors.exists(db, Company, data.get("company_id"), "company_id")
    errors.raise_if_any()

    due_terms = data.pop("due_terms", None)
    if due_terms is not None:
        term.due_terms = _build_due_terms(due_terms)
    for field, value in data.items():
        setattr(term, field, value)
    await create_audit_log(db, current_user.id, "update", "payment_term", term.id, term.name)
    await db.commit()

    term = await get_or_404(db, PaymentTerm, term.id, "Payment term", options=LOAD_OPTIONS)
    return item_response(_build_response(term), "Payment term updated successfully.")


@router.delete("/{id}")
async def delete_payment_term(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("delete_account_payment_term")),
    id: int) -> Any:
    term = await get_or_404(db, PaymentTerm, id, "Payment term")
    term.soft_delete()
    await create_audit_log(db, current_user.id, "delete", "payment_term", term.id, term.name)
    await db.commit()
    return {"message": "Payment term deleted successfully."}


@router.post("/{id}/restore")
async def restore_payment_term(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("restore_account_payment_term")),
    id: int) -> Any:
    term = await get_or_404(db, PaymentTerm, id, "Payment term", with_trashed=True)
    term.restore()
    await create_audit_log(db, current_user.id, "restore", "payment_term", term.id, term.name)
    await db.commit()

    term = await get_or_404(db, PaymentTerm, term.id, "Payment term", options=LOAD_OPTIONS)
    return item_response(_build_response(term), "Payment term restored successfully.")


@router.delete("/{id}/force")
async def force_delete_payment_term(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("force_delete_account_payment_term")),
    id: int) -> Any:
    term = await get_or_404(db, PaymentTerm, id, "Payment term", with_trashed=True, options=LOAD_OPTIONS)
    await create_audit_log(db, current_user.id, "force_delete", "payment_term", term.id, term.name)
    await db.delete(term)
    await db.commit()
    return {"message": "Payment term permanently deleted successfully."}
