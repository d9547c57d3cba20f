"""路线API（支持回收站）"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from erp.core.deps import get_db, require_permission
from erp.core.exceptions import action_failed
from erp.models.inventories.route import Route
from erp.models.security.user import User
from erp.models.support.company import Company
from erp.schemas.inventories import RouteCreate, RouteUpdate, RouteResponse
from erp.api.api_v1.common import (
    ListParams, ErrorBag, paginate, apply_sort, apply_exact, apply_partial, apply_trashed,
    get_or_404, item_response
)
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log

router = APIRouter()


def _build_response(route: Route) -> dict:
    return RouteResponse.model_validate(route).model_dump(mode="json")


@router.get("")
async def list_routes(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_any_inventory_route")),
    params: ListParams = Depends(),
    name: Optional[str] = Query(None, alias="filter[name]"),
    product_selectable: Optional[str] = Query(None, alias="filter[product_selectable]"),
    warehouse_selectable: Optional[str] = Query(None, alias="filter[warehouse_selectable]"),
    trashed: Optional[str] = Query(None, alias="filter[trashed]")) -> Any:
    query = select(Route)
    query = apply_trashed(query, Route, trashed)
    query = apply_partial(query, Route.name, name)
    query = apply_exact(query, Route.product_selectable, product_selectable, boolean=True)
    query = apply_exact(query, Route.warehouse_selectable, warehouse_selectable, boolean=True)
    query = apply_sort(query, Route, params.sort, ["id", "name", "sequence", "created_at"], default="sequence")
    return await paginate(db, query, params, _build_response)


@router.post("", status_code=201)
async def create_route(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("create_inventory_route")),
    route_in: RouteCreate) -> Any:
    errors = ErrorBag()
    await errors.exists(db, Company, route_in.company_id, "company_id")
    errors.raise_if_any()

    route = Route(**route_in.model_dump(), creator_id=current_user.id)
    db.add(route)
    await db.flush()
    await create_audit_log(db, current_user.id, "create", "route", route.id, route.name)
    await db.commit()

    route = await get_or_404(db, Route, route.id, "Route")
    return item_response(_build_response(route), "Route created successfully.")


@router.get("/{id}")
async def get_route(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_inventory_route")),
    id: int) -> Any:
    route = await get_or_404(db, Route, id, "Route")
    return item_response(_build_response(route))


@router.api_route("/{id}", methods=["PUT", "PATCH"])
async def update_route(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("update_inventory_route")),
    id: int,
    route_in: RouteUpdate) -> Any:
    route = await get_or_404(db, Route, id, "Route")
    data = route_in.model_dump(exclude_unset=True)
    errors = ErrorBag()
    await errors.exists(db, Company, data.get("company_id"), "company_id")
    errors.raise_if_any()

    for field, value in data.items():
        setattr(route, field, value)
    await create_audit_log(db, current_user.id, "update", "route", route.id, route.name)
    await db.commit()

    route = await get_or_404(db, Route, route.id, "Route")
    return item_response(_build_response(route), "Route updated successfully.")


@router.delete("/{id}")
async def delete_route(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("delete_inventory_route")),
    id: int) -> Any:
    route = await get_or_404(db, Route, id, "Route")
    route.soft_delete()
    await create_audit_log(db, current_user.id, "delete", "route", route.id, route.name)
    await db.commit()
    return {"message": "Route deleted successfully."}


@router.post("/{id}/restore")
async def restore_route(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("restore_inventory_route")),
    id: int) -> Any:
    route = await get_or_404(db, Route, id, "Route", with_trashed=True)
    route.restore()
    await create_audit_log(db, current_user.id, "restore", "route", route.id, route.name)
    await db.commit()

    route = await get_or_404(db, Route, route.id, "Route")
    return item_response(_build_response(route), "Route restored successfully.")


@router.delete("/{id}/force")
async def force_delete_route(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("force_delete_inventory_route")),
    id: int) -> Any:
    route = await get_or_404(db, Route, id, "Route", with_trashed=True, options=[selectinload(Route.rules)])
    if route.rules:
        raise action_failed("Route has rules and cannot be permanently deleted.")

    await create_audit_log(db, current_user.id, "force_delete", "route", route.id, route.name)
    await db.delete(route)
    await db.commit()
    return {"message": "Route permanently deleted successfully."}
