"""库位API（支持回收站）"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.deps import get_db, require_permission
from erp.models.inventories.location import Location
from erp.models.inventories.warehouse import Warehouse
from erp.models.security.user import User
from erp.models.support.company import Company
from erp.schemas.inventories import LocationCreate, LocationUpdate, LocationResponse
from erp.api.api_v1.common import (
    ListParams, ErrorBag, paginate, apply_sort, apply_exact, apply_partial, apply_trashed,
    get_or_404, item_response
)
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log

router = APIRouter()

SORTS = ["id", "name", "full_name", "type", "created_at"]


def _build_response(location: Location) -> dict:
    return LocationResponse.model_validate(location).model_dump(mode="json")


async def _validate(db: AsyncSession, data: dict, location: Location = None) -> Optional[Location]:
    """校验外键，返回父库位"""
    errors = ErrorBag()
    await errors.exists(db, Warehouse, data.get("warehouse_id"), "warehouse_id")
    await errors.exists(db, Company, data.get("company_id"), "company_id")
    parent = await errors.exists(db, Location, data.get("parent_id"), "parent_id")
    if parent is not None and location is not None:
        if parent.id == location.id or str(location.id) in (parent.parent_path or "").split("/"):
            errors.invalid("parent_id")
    errors.raise_if_any()
    return parent


async def _refresh_children(db: AsyncSession, location: Location):
    """逐层更新下级库位的完整路径"""
    result = await db.execute(select(Location).where(Location.parent_id == location.id))
    for child in result.scalars().all():
        child.compute_paths(location)
        await _refresh_children(db, child)


@router.get("")
async def list_locations(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_any_inventory_location")),
    params: ListParams = Depends(),
    name: Optional[str] = Query(None, alias="filter[name]"),
    full_name: Optional[str] = Query(None, alias="filter[full_name]"),
    type: Optional[str] = Query(None, alias="filter[type]"),
    parent_id: Optional[str] = Query(None, alias="filter[parent_id]"),
    warehouse_id: Optional[str] = Query(None, alias="filter[warehouse_id]"),
    trashed: Optional[str] = Query(None, alias="filter[trashed]")) -> Any:
    query = select(Location)
    query = apply_trashed(query, Location, trashed)
    query = apply_partial(query, Location.name, name)
    query = apply_partial(query, Location.full_name, full_name)
    query = apply_exact(query, Location.type, type)
    query = apply_exact(query, Location.parent_id, parent_id)
    query = apply_exact(query, Location.warehouse_id, warehouse_id)
    query = apply_sort(query, Location, params.sort, SORTS, default="full_name")
    return await paginate(db, query, params, _build_response)


@router.post("", status_code=201)
async def create_location(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("create_inventory_location")),
    location_in: LocationCreate) -> Any:
    data = location_in.model_dump()
    parent = await _validate(db, data)
    data["type"] = location_in.type.value

    location = Location(**data, creator_id=current_user.id)
    if parent is not None:
        location.warehouse_id = location.warehouse_id or parent.warehouse_id
        location.company_id = location.company_id or parent.company_id
    location.compute_paths(parent)
    db.add(location)
    await db.flush()

    await create_audit_log(db, current_user.id, "create", "location", location.id, location.full_name)
    await db.commit()

    location = await get_or_404(db, Location, location.id, "Location")
    return item_response(_build_response(location), "Location created successfully.")


@router.get("/{id}")
async def get_location(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_inventory_location")),
    id: int) -> Any:
    location = await get_or_404(db, Location, id, "Location")
    return item_response(_build_response(location))


@router.api_route("/{id}", methods=["PUT", "PATCH"])
async def update_location(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("update_inventory_location")),
    id: int,
    location_in: LocationUpdate) -> Any:
    location = await get_or_404(db, Location, id, "Location")
    data = location_in.model_dump(exclude_unset=True)
    parent = await _validate(db, data, location)

    if data.get("type") is not None:
        data["type"] = data["type"].value
    for field, value in data.items():
        setattr(location, field, value)

    if "name" in data or "parent_id" in data:
        if "parent_id" not in data and location.parent_id:
            parent = await db.get(Location, location.parent_id)
        location.compute_paths(parent)
        await _refresh_children(db, location)

    await create_audit_log(db, current_user.id, "update", "location", location.id, location.full_name)
    await db.commit()

    location = await get_or_404(db, Location, location.id, "Location")
    return item_response(_build_response(location), "Location updated successfully.")


@router.delete("/{id}")
async def delete_location(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("delete_inventory_location")),
    id: int) -> Any:
    location = await get_or_404(db, Location, id, "Location")
    location.soft_delete()
    await create_audit_log(db, current_user.id, "delete", "location", location.id, location.full_name)
    await db.commit()
    return {"message": "Location deleted successfully."}


@router.post("/{id}/restore")
async def restore_location(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("restore_inventory_location")),
    id: int) -> Any:
    location = await get_or_404(db, Location, id, "Location", with_trashed=True)
    location.restore()
    await create_audit_log(db, current_user.id, "restore", "location", location.id, location.full_name)
    await db.commit()

    location = await get_or_404(db, Location, location.id, "Location")
    return item_response(_build_response(location), "Location restored successfully.")


@router.delete("/{id}/force")
async def force_delete_location(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("force_delete_inventory_location")),
    id: int) -> Any:
    location = await get_or_404(db, Location, id, "Location", with_trashed=True)
    await create_audit_log(db, current_user.id, "force_delete", "location", location.id, location.full_name)
    await db.delete(location)
    await db.commit()
    return {"message": "Location permanently deleted successfully."}
