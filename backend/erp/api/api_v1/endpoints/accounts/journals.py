"""日记账API"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.deps import get_db, require_permission
from erp.models.accounts.account import Account, Journal
from erp.models.security.user import User
from erp.models.support.company import Company, Currency
from erp.schemas.accounts import JournalCreate, JournalUpdate, JournalResponse
from erp.api.api_v1.common import (
    ListParams, ErrorBag, paginate, apply_sort, apply_exact, apply_partial, get_or_404, item_response
)
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log

router = APIRouter()


def _build_response(journal: Journal) -> dict:
    return JournalResponse.model_validate(journal).model_dump(mode="json")


async def _validate(db: AsyncSession, data: dict):
    errors = ErrorBag()
    await errors.exists(db, Account, data.get("default_account_id"), "default_account_id")
    await errors.exists(db, Currency, data.get("currency_id"), "currency_id")
    await errors.exists(db, Company, data.get("company_id"), "company_id")
    errors.raise_if_any()


@router.get("")
async def list_journals(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_any_account_journal")),
    params: ListParams = Depends(),
    name: Optional[str] = Query(None, alias="filter[name]"),
    code: Optional[str] = Query(None, alias="filter[code]"),
    type: Optional[str] = Query(None, alias="filter[type]"),
    company_id: Optional[str] = Query(None, alias="filter[company_id]")) -> Any:
    query = select(Journal)
    query = apply_partial(query, Journal.name, name)
    query = apply_exact(query, Journal.code, code)
    query = apply_exact(query, Journal.type, type)
    query = apply_exact(query, Journal.company_id, company_id)
    query = apply_sort(query, Journal, params.sort, ["id", "name", "code", "type", "sequence"], default="sequence")
    return await paginate(db, query, params, _build_response)


@router.post("", status_code=201)
async def create_journal(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("create_account_journal")),
    journal_in: JournalCreate) -> Any:
    data = journal_in.model_dump()
    await _validate(db, data)
    data["type"] = journal_in.type.value

    journal = Journal(**data, creator_id=current_user.id)
    db.add(journal)
    await db.flush()
    await create_audit_log(db, current_user.id, "create", "journal", journal.id, journal.name)
    await db.commit()

    journal = await get_or_404(db, Journal, journal.id, "Journal")
    return item_response(_build_response(journal), "Journal created successfully.")


@router.get("/{id}")
async def get_journal(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_account_journal")),
    id: int) -> Any:
    journal = await get_or_404(db, Journal, id, "Journal")
    return item_response(_build_response(journal))


@router.api_route("/{id}", methods=["PUT", "PATCH"])
async def update_journal(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("update_account_journal")),
    id: int,
    journal_in: JournalUpdate) -> Any:
    journal = await get_or_404(db, Journal, id, "Journal")
    data = journal_in.model_dump(exclude_unset=True)
    await _validate(db, data)

    if data.get("type") is not None:
        data["type"] = data["type"].value
    for field, value in data.items():
        setattr(journal, field, value)
    await create_audit_log(db, current_user.id, "update", "journal", journal.id, journal.name)
    await db.commit()

    journal = await get_or_404(db, Journal, journal.id, "Journal")
    return item_response(_build_response(journal), "Journal updated successfully.")


@router.delete("/{id}")
async def delete_journal(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("delete_account_journal")),
    id: int) -> Any:
    journal = await get_or_404(db, Journal, id, "Journal")
    await create_audit_log(db, current_user.id, "delete", "journal", journal.id, journal.name)
    await db.delete(journal)
    await db.commit()
    return {"message": "Journal deleted successfully."}
