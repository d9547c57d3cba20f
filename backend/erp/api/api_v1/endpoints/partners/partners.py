"""联系人API（客户、供应商统一管理，支持回收站）"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.deps import get_db, require_permission
from erp.core.logging_config import get_logger
from erp.models.partners.partner import Partner
from erp.models.security.user import User
from erp.models.support.company import Company
from erp.schemas.partners import PartnerCreate, PartnerUpdate, PartnerResponse
from erp.api.api_v1.common import (
    ListParams, ErrorBag, paginate, apply_sort, apply_exact, apply_partial, apply_trashed,
    get_or_404, item_response
)
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log

router = APIRouter()
logger = get_logger(__name__)

SORTS = ["id", "name", "email", "customer_rank", "supplier_rank", "created_at", "updated_at"]


def _build_response(partner: Partner) -> dict:
    return PartnerResponse.model_validate(partner).model_dump(mode="json")


async def _validate(db: AsyncSession, data: dict, partner_id: Optional[int] = None):
    errors = ErrorBag()
    parent_id = data.get("parent_id")
    if parent_id is not None and parent_id == partner_id:
        errors.add("parent_id", "A partner cannot be its own parent.")
    else:
        await errors.exists(db, Partner, parent_id, "parent_id")
    await errors.exists(db, Company, data.get("company_id"), "company_id")
    await errors.exists(db, User, data.get("user_id"), "user_id")
    errors.raise_if_any()


@router.get("")
async def list_partners(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_any_partner_partner")),
    params: ListParams = Depends(),
    id: Optional[str] = Query(None, alias="filter[id]"),
    name: Optional[str] = Query(None, alias="filter[name]"),
    email: Optional[str] = Query(None, alias="filter[email]"),
    account_type: Optional[str] = Query(None, alias="filter[account_type]"),
    parent_id: Optional[str] = Query(None, alias="filter[parent_id]"),
    is_active: Optional[str] = Query(None, alias="filter[is_active]"),
    trashed: Optional[str] = Query(None, alias="filter[trashed]")) -> Any:
    """获取联系人列表"""
    query = select(Partner)
    query = apply_trashed(query, Partner, trashed)
    query = apply_exact(query, Partner.id, id)
    query = apply_partial(query, Partner.name, name)
    query = apply_partial(query, Partner.email, email)
    query = apply_exact(query, Partner.account_type, account_type)
    query = apply_exact(query, Partner.parent_id, parent_id)
    query = apply_exact(query, Partner.is_active, is_active, boolean=True)
    query = apply_sort(query, Partner, params.sort, SORTS)
    return await paginate(db, query, params, _build_response)


@router.post("", status_code=201)
async def create_partner(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("create_partner_partner")),
    partner_in: PartnerCreate) -> Any:
    """创建联系人"""
    data = partner_in.model_dump()
    await _validate(db, data)
    data["account_type"] = partner_in.account_type.value

    partner = Partner(**data, creator_id=current_user.id)
    db.add(partner)
    await db.flush()
    await create_audit_log(db, current_user.id, "create", "partner", partner.id, partner.name, f"创建联系人 {partner.name}")
    await db.commit()

    partner = await get_or_404(db, Partner, partner.id, "Partner")
    return item_response(_build_response(partner), "Partner created successfully.")


@router.get("/{id}")
async def get_partner(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_partner_partner")),
    id: int) -> Any:
    partner = await get_or_404(db, Partner, id, "Partner")
    return item_response(_build_response(partner))


@router.api_route("/{id}", methods=["PUT", "PATCH"])
async def update_partner(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("update_partner_partner")),
    id: int,
    partner_in: PartnerUpdate) -> Any:
    """更新联系人"""
    partner = await get_or_404(db, Partner, id, "Partner")
    data = partner_in.model_dump(exclude_unset=True)
    await _validate(db, data, partner_id=partner.id)
    if data.get("account_type") is not None:
        data["account_type"] = data["account_type"].value

    for field, value in data.items():
        setattr(partner, field, value)
    await create_audit_log(db, current_user.id, "update", "partner", partner.id, partner.name, f"更新联系人 {partner.name}")
    await db.commit()

    partner = await get_or_404(db, Partner, partner.id, "Partner")
    return item_response(_build_response(partner), "Partner updated successfully.")


@router.delete("/{id}")
async def delete_partner(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("delete_partner_partner")),
    id: int) -> Any:
    """删除联系人（移入回收站）"""
    partner = await get_or_404(db, Partner, id, "Partner")
    partner.soft_delete()
    await create_audit_log(db, current_user.id, "delete", "partner", partner.id, partner.name, f"删除联系人 {partner.name}")
    await db.commit()
    return {"message": "Partner deleted successfully."}


@router.post("/{id}/restore")
async def restore_partner(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("restore_partner_partner")),
    id: int) -> Any:
    """从回收站恢复"""
    partner = await get_or_404(db, Partner, id, "Partner", with_trashed=True)
    partner.restore()
    await create_audit_log(db, current_user.id, "restore", "partner", partner.id, partner.name, f"恢复联系人 {partner.name}")
    await db.commit()

    partner = await get_or_404(db, Partner, partner.id, "Partner")
    return item_response(_build_response(partner), "Partner restored successfully.")


@router.delete("/{id}/force")
async def force_delete_partner(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("force_delete_partner_partner")),
    id: int) -> Any:
    """彻底删除"""
    partner = await get_or_404(db, Partner, id, "Partner", with_trashed=True)
    await create_audit_log(db, current_user.id, "force_delete", "partner", partner.id, partner.name, f"彻底删除联系人 {partner.name}")
    await db.delete(partner)
    await db.commit()
    logger.info(f"🗑️ 彻底删除联系人: {partner.name}")
    return {"message": "Partner permanently deleted successfully."}
