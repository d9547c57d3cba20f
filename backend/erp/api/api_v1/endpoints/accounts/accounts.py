"""会计科目API"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.deps import get_db, require_permission
from erp.models.accounts.account import Account
from erp.models.security.user import User
from erp.models.support.company import Currency
from erp.schemas.accounts import AccountCreate, AccountUpdate, AccountResponse
from erp.api.api_v1.common import (
    ListParams, ErrorBag, paginate, apply_sort, apply_exact, apply_partial, get_or_404, item_response
)
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log

router = APIRouter()

SORTS = ["id", "code", "name", "account_type", "created_at"]


def _build_response(account: Account) -> dict:
    return AccountResponse.model_validate(account).model_dump(mode="json")


@router.get("")
async def list_accounts(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_any_account_account")),
    params: ListParams = Depends(),
    code: Optional[str] = Query(None, alias="filter[code]"),
    name: Optional[str] = Query(None, alias="filter[name]"),
    account_type: Optional[str] = Query(None, alias="filter[account_type]"),
    deprecated: Optional[str] = Query(None, alias="filter[deprecated]")) -> Any:
    """获取科目列表，默认按科目编码排序"""
    query = select(Account)
    query = apply_partial(query, Account.code, code)
    query = apply_partial(query, Account.name, name)
    query = apply_exact(query, Account.account_type, account_type)
    query = apply_exact(query, Account.deprecated, deprecated, boolean=True)
    query = apply_sort(query, Account, params.sort, SORTS, default="code")
    return await paginate(db, query, params, _build_response)


@router.post("", status_code=201)
async def create_account(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("create_account_account")),
    account_in: AccountCreate) -> Any:
    errors = ErrorBag()
    await errors.unique(db, Account.code, account_in.code, "code")
    await errors.exists(db, Currency, account_in.currency_id, "currency_id")
    errors.raise_if_any()

    data = account_in.model_dump()
    data["account_type"] = account_in.account_type.value
    account = Account(**data, creator_id=current_user.id)
    db.add(account)
    await db.flush()
    await create_audit_log(db, current_user.id, "create", "account", account.id, f"{account.code} {account.name}")
    await db.commit()

    account = await get_or_404(db, Account, account.id, "Account")
    return item_response(_build_response(account), "Account created successfully.")


@router.get("/{id}")
async def get_account(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_account_account")),
    id: int) -> Any:
    account = await get_or_404(db, Account, id, "Account")
    return item_response(_build_response(account))


@router.api_route("/{id}", methods=["PUT", "PATCH"])
async def update_account(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("update_account_account")),
    id: int,
    account_in: AccountUpdate) -> Any:
    account = await get_or_404(db, Account, id, "Account")
    data = account_in.model_dump(exclude_unset=True)

    errors = ErrorBag()
    if "code" in data:
        await errors.unique(db, Account.code, data["code"], "code", ignore_id=account.id)
    await errors.exists(db, Currency, data.get("currency_id"), "currency_id")
    errors.raise_if_any()

    if data.get("account_type") is not None:
        data["account_type"] = data["account_type"].value
    for field, value in data.items():
        setattr(account, field, value)
    await create_audit_log(db, current_user.id, "update", "account", account.id, f"{account.code} {account.name}")
    await db.commit()

    account = await get_or_404(db, Account, account.id, "Account")
    return item_response(_build_response(account), "Account updated successfully.")


@router.delete("/{id}")
async def delete_account(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("delete_account_account")),
    id: int) -> Any:
    account = await get_or_404(db, Account, id, "Account")
    await create_audit_log(db, current_user.id, "delete", "account", account.id, f"{account.code} {account.name}")
    await db.delete(account)
    await db.commit()
    return {"message": "Account deleted successfully."}
