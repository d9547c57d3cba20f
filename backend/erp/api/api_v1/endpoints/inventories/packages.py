"""包裹API"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.deps import get_db, require_permission
from erp.models.inventories.location import Location
from erp.models.inventories.package import Package, PackageType
from erp.models.security.user import User
from erp.models.support.company import Company
from erp.schemas.inventories import PackageCreate, PackageUpdate, PackageResponse
from erp.api.api_v1.common import (
    ListParams, ErrorBag, paginate, apply_sort, apply_exact, apply_partial, get_or_404, item_response
)
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log

router = APIRouter()


def _build_response(package: Package) -> dict:
    return PackageResponse.model_validate(package).model_dump(mode="json")


async def _validate(db: AsyncSession, data: dict):
    errors = ErrorBag()
    await errors.exists(db, PackageType, data.get("package_type_id"), "package_type_id")
    await errors.exists(db, Location, data.get("location_id"), "location_id")
    await errors.exists(db, Company, data.get("company_id"), "company_id")
    errors.raise_if_any()
    if data.get("package_use") is not None:
        data["package_use"] = data["package_use"].value
    return data


@router.get("")
async def list_packages(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_any_inventory_package")),
    params: ListParams = Depends(),
    name: Optional[str] = Query(None, alias="filter[name]"),
    package_type_id: Optional[str] = Query(None, alias="filter[package_type_id]"),
    location_id: Optional[str] = Query(None, alias="filter[location_id]"),
    package_use: Optional[str] = Query(None, alias="filter[package_use]")) -> Any:
    query = select(Package)
    query = apply_partial(query, Package.name, name)
    query = apply_exact(query, Package.package_type_id, package_type_id)
    query = apply_exact(query, Package.location_id, location_id)
    query = apply_exact(query, Package.package_use, package_use)
    query = apply_sort(query, Package, params.sort, ["id", "name", "pack_date", "created_at"])
    return await paginate(db, query, params, _build_response)


@router.post("", status_code=201)
async def create_package(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("create_inventory_package")),
    package_in: PackageCreate) -> Any:
    data = await _validate(db, package_in.model_dump())

    package = Package(**data, creator_id=current_user.id)
    db.add(package)
    await db.flush()
    await create_audit_log(db, current_user.id, "create", "package", package.id, package.name)
    await db.commit()

    package = await get_or_404(db, Package, package.id, "Package")
    return item_response(_build_response(package), "Package created successfully.")


@router.get("/{id}")
async def get_package(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_inventory_package")),
    id: int) -> Any:
    package = await get_or_404(db, Package, id, "Package")
    return item_response(_build_response(package))


@router.api_route("/{id}", methods=["PUT", "PATCH"])
async def update_package(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("update_inventory_package")),
    id: int,
    package_in: PackageUpdate) -> Any:
    package = await get_or_404(db, Package, id, "Package")
    data = await _validate(db, package_in.model_dump(exclude_unset=True))

    for field, value in data.items():
        setattr(package, field, value)
    await create_audit_log(db, current_user.id, "update", "package", package.id, package.name)
    await db.commit()

    package = await get_or_404(db, Package, package.id, "Package")
    return item_response(_build_response(package), "Package updated successfully.")


@router.delete("/{id}")
async def delete_package(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("delete_inventory_package")),
    id: int) -> Any:
    package = await get_or_404(db, Package, id, "Package")
    await create_audit_log(db, current_user.id, "delete", "package", package.id, package.name)
    await db.delete(package)
    await db.commit()
    return {"message": "Package deleted successfully."}
