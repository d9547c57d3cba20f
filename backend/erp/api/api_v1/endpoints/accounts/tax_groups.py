"""税组API"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.deps import get_db, require_permission
from erp.core.exceptions import action_failed
from erp.models.accounts.tax import Tax, TaxGroup
from erp.models.security.user import User
from erp.models.support.company import Company
from erp.schemas.accounts import TaxGroupCreate, TaxGroupUpdate, TaxGroupResponse
from erp.api.api_v1.common import (
    ListParams, ErrorBag, paginate, apply_sort, apply_partial, get_or_404, item_response
)
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log

router = APIRouter()


def _build_response(group: TaxGroup) -> dict:
    return TaxGroupResponse.model_validate(group).model_dump(mode="json")


@router.get("")
async def list_tax_groups(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_any_account_tax_group")),
    params: ListParams = Depends(),
    name: Optional[str] = Query(None, alias="filter[name]")) -> Any:
    query = select(TaxGroup)
    query = apply_partial(query, TaxGroup.name, name)
    query = apply_sort(query, TaxGroup, params.sort, ["id", "name", "sequence"], default="sequence")
    return await paginate(db, query, params, _build_response)


@router.post("", status_code=201)
async def create_tax_group(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("create_account_tax_group")),
    group_in: TaxGroupCreate) -> Any:
    errors = ErrorBag()
    await errors.exists(db, Company, group_in.company_id, "company_id")
    errors.raise_if_any()

    group = TaxGroup(**group_in.model_dump(), creator_id=current_user.id)
    db.add(group)
    await db.flush()
    await create_audit_log(db, current_user.id, "create", "tax_group", group.id, group.name)
    await db.commit()

    group = await get_or_404(db, TaxGroup, group.id, "Tax group")
    return item_response(_build_response(group), "Tax group created successfully.")


@router.get("/{id}")
async def get_tax_group(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_account_tax_group")),
    id: int) -> Any:
    group = await get_or_404(db, TaxGroup, id, "Tax group")
    return item_response(_build_response(group))


@router.api_route("/{id}", methods=["PUT", "PATCH"])
async def update_tax_group(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("update_account_tax_group")),
    id: int,
    group_in: TaxGroupUpdate) -> Any:
    group = await get_or_404(db, TaxGroup, id, "Tax group")
    data = group_in.model_dump(exclude_unset=True)
    errors = ErrorBag()
    await errors.exists(db, Company, data.get("company_id"), "company_id")
    errors.raise_if_any()

    for field, value in data.items():
        setattr(group, field, value)
    await create_audit_log(db, current_user.id, "update", "tax_group", group.id, group.name)
    await db.commit()

    group = await get_or_404(db, TaxGroup, group.id, "Tax group")
    return item_response(_build_response(group), "Tax group updated successfully.")


@router.delete("/{id}")
async def delete_tax_group(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("delete_account_tax_group")),
    id: int) -> Any:
    group = await get_or_404(db, TaxGroup, id, "Tax group")
    in_use = await db.execute(select(Tax.id).where(Tax.tax_group_id == group.id).limit(1))
    if in_use.scalar_one_or_none() is not None:
        raise action_failed("Tax group is used by taxes and cannot be deleted.")

    await create_audit_log(db, current_user.id, "delete", "tax_group", group.id, group.name)
    await db.delete(group)
    await db.commit()
    return {"message": "Tax group deleted successfully."}
