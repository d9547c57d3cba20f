"""包裹类型API"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.deps import get_db, require_permission
from erp.models.inventories.package import PackageType
from erp.models.security.user import User
from erp.models.support.company import Company
from erp.schemas.inventories import PackageTypeCreate, PackageTypeUpdate, PackageTypeResponse
from erp.api.api_v1.common import (
    ListParams, ErrorBag, paginate, apply_sort, apply_partial, get_or_404, item_response
)
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log

router = APIRouter()


def _build_response(package_type: PackageType) -> dict:
    return PackageTypeResponse.model_validate(package_type).model_dump(mode="json")


@router.get("")
async def list_package_types(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_any_inventory_package_type")),
    params: ListParams = Depends(),
    name: Optional[str] = Query(None, alias="filter[name]"),
    barcode: Optional[str] = Query(None, alias="filter[barcode]")) -> Any:
    query = select(PackageType)
    query = apply_partial(query, PackageType.name, name)
    query = apply_partial(query, PackageType.barcode, barcode)
    query = apply_sort(query, PackageType, params.sort, ["id", "name", "sequence", "created_at"], default="sequence")
    return await paginate(db, query, params, _build_response)


@router.post("", status_code=201)
async def create_package_type(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("create_inventory_package_type")),
    package_type_in: PackageTypeCreate) -> Any:
    errors = ErrorBag()
    await errors.exists(db, Company, package_type_in.company_id, "company_id")
    errors.raise_if_any()

    package_type = PackageType(**package_type_in.model_dump(), creator_id=current_user.id)
    db.add(package_type)
    await db.flush()
    await create_audit_log(db, current_user.id, "create", "package_type", package_type.id, package_type.name)
    await db.commit()

    package_type = await get_or_404(db, PackageType, package_type.id, "Package type")
    return item_response(_build_response(package_type), "Package type created successfully.")


@router.get("/{id}")
async def get_package_type(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_inventory_package_type")),
    id: int) -> Any:
    package_type = await get_or_404(db, PackageType, id, "Package type")
    return item_response(_build_response(package_type))


@router.api_route("/{id}", methods=["PUT", "PATCH"])
async def update_package_type(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("update_inventory_package_type")),
    id: int,
    package_type_in: PackageTypeUpdate) -> Any:
    package_type = await get_or_404(db, PackageType, id, "Package type")
    data = package_type_in.model_dump(exclude_unset=True)
    errors = ErrorBag()
    await errors.exists(db, Company, data.get("company_id"), "company_id")
    errors.raise_if_any()

    for field, value in data.items():
        setattr(package_type, field, value)
    await create_audit_log(db, current_user.id, "update", "package_type", package_type.id, package_type.name)
    await db.commit()

    package_type = await get_or_404(db, PackageType, package_type.id, "Package type")
    return item_response(_build_response(package_type), "Package type updated successfully.")


@router.delete("/{id}")
async def delete_package_type(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("delete_inventory_package_type")),
    id: int) -> Any:
    package_type = await get_or_404(db, PackageType, id, "Package type")
    await create_audit_log(db, current_user.id, "delete", "package_type", package_type.id, package_type.name)
    await db.delete(package_type)
    await db.commit()
    return {"message": "Package type deleted successfully."}
