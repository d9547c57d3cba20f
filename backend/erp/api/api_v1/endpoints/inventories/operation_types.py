"""作业类型API（支持回收站）"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.deps import get_db, require_permission
from erp.models.inventories.location import Location
from erp.models.inventories.operation_type import OperationType
from erp.models.inventories.warehouse import Warehouse
from erp.models.security.user import User
from erp.models.support.company import Company
from erp.schemas.inventories import OperationTypeCreate, OperationTypeUpdate, OperationTypeResponse
from erp.api.api_v1.common import (
    ListParams, ErrorBag, paginate, apply_sort, apply_exact, apply_partial, apply_trashed,
    get_or_404, item_response
)
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log

router = APIRouter()


def _build_response(operation_type: OperationType) -> dict:
    return OperationTypeResponse.model_validate(operation_type).model_dump(mode="json")


async def _validate(db: AsyncSession, data: dict):
    errors = ErrorBag()
    await errors.exists(db, Location, data.get("source_location_id"), "source_location_id")
    await errors.exists(db, Location, data.get("destination_location_id"), "destination_location_id")
    await errors.exists(db, OperationType, data.get("return_operation_type_id"), "return_operation_type_id")
    await errors.exists(db, Warehouse, data.get("warehouse_id"), "warehouse_id")
    await errors.exists(db, Company, data.get("company_id"), "company_id")
    errors.raise_if_any()


@router.get("")
async def list_operation_types(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_any_inventory_operation_type")),
    params: ListParams = Depends(),
    name: Optional[str] = Query(None, alias="filter[name]"),
    type: Optional[str] = Query(None, alias="filter[type]"),
    warehouse_id: Optional[str] = Query(None, alias="filter[warehouse_id]"),
    trashed: Optional[str] = Query(None, alias="filter[trashed]")) -> Any:
    query = select(OperationType)
    query = apply_trashed(query, OperationType, trashed)
    query = apply_partial(query, OperationType.name, name)
    query = apply_exact(query, OperationType.type, type)
    query = apply_exact(query, OperationType.warehouse_id, warehouse_id)
    query = apply_sort(query, OperationType, params.sort, ["id", "name", "type", "sequence"], default="sequence")
    return await paginate(db, query, params, _build_response)


@router.post("", status_code=201)
async def create_operation_type(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("create_inventory_operation_type")),
    operation_type_in: OperationTypeCreate) -> Any:
    data = operation_type_in.model_dump()
    await _validate(db, data)
    data["type"] = operation_type_in.type.value

    operation_type = OperationType(**data, creator_id=current_user.id)
    db.add(operation_type)
    await db.flush()
    await create_audit_log(db, current_user.id, "create", "operation_type", operation_type.id, operation_type.name)
    await db.commit()

    operation_type = await get_or_404(db, OperationType, operation_type.id, "Operation type")
    return item_response(_build_response(operation_type), "Operation type created successfully.")


@router.get("/{id}")
async def get_operation_type(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_inventory_operation_type")),
    id: int) -> Any:
    operation_type = await get_or_404(db, OperationType, id, "Operation type")
    return item_response(_build_response(operation_type))


@router.api_route("/{id}", methods=["PUT", "PATCH"])
async def update_operation_type(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("update_inventory_operation_type")),
    id: int,
    operation_type_in: OperationTypeUpdate) -> Any:
    operation_type = await get_or_404(db, OperationType, id, "Operation type")
    data = operation_type_in.model_dump(exclude_unset=True)
    await _validate(db, data)

    if data.get("type") is not None:
        data["type"] = data["type"].value
    for field, value in data.items():
        setattr(operation_type, field, value)
    await create_audit_log(db, current_user.id, "update", "operation_type", operation_type.id, operation_type.name)
    await db.commit()

    operation_type = await get_or_404(db, OperationType, operation_type.id, "Operation type")
    return item_response(_build_response(operation_type), "Operation type updated successfully.")


@router.delete("/{id}")
async def delete_operation_type(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("delete_inventory_operation_type")),
    id: int) -> Any:
    operation_type = await get_or_404(db, OperationType, id, "Operation type")
    operation_type.soft_delete()
    await create_audit_log(db, current_user.id, "delete", "operation_type", operation_type.id, operation_type.name)
    await db.commit()
    return {"message": "Operation type deleted successfully."}


@router.post("/{id}/restore")
async def restore_operation_type(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("restore_inventory_operation_type")),
    id: int) -> Any:
    operation_type = await get_or_404(db, OperationType, id, "Operation type", with_trashed=True)
    operation_type.restore()
    await create_audit_log(db, current_user.id, "restore", "operation_type", operation_type.id, operation_type.name)
    await db.commit()

    operation_type = await get_or_404(db, OperationType, operation_type.id, "Operation type")
    return item_response(_build_response(operation_type), "Operation type restored successfully.")


@router.delete("/{id}/force")
async def force_delete_operation_type(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("force_delete_inventory_operation_type")),
    id: int) -> Any:
    operation_type = await get_or_404(db, OperationType, id, "Operation type", with_trashed=True)
    await create_audit_log(db, current_user.id, "force_delete", "operation_type", operation_type.id, operation_type.name)
    await db.delete(operation_type)
    await db.commit()
    return {"message": "Operation type permanently deleted successfully."}
