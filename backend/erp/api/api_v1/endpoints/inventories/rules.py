"""库存规则API（支持回收站）"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.deps import get_db, require_permission
from erp.models.inventories.location import Location
from erp.models.inventories.operation_type import OperationType
from erp.models.inventories.route import Route, Rule
from erp.models.inventories.warehouse import Warehouse
from erp.models.security.user import User
from erp.models.support.company import Company
from erp.schemas.inventories import RuleCreate, RuleUpdate, RuleResponse
from erp.api.api_v1.common import (
    ListParams, ErrorBag, paginate, apply_sort, apply_exact, apply_partial, apply_trashed,
    get_or_404, item_response
)
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log

router = APIRouter()

ENUM_FIELDS = ("action", "procure_method", "group_propagation_option")


def _build_response(rule: Rule) -> dict:
    return RuleResponse.model_validate(rule).model_dump(mode="json")


async def _validate(db: AsyncSession, data: dict):
    errors = ErrorBag()
    await errors.exists(db, OperationType, data.get("operation_type_id"), "operation_type_id")
    await errors.exists(db, Location, data.get("source_location_id"), "source_location_id")
    await errors.exists(db, Location, data.get("destination_location_id"), "destination_location_id")
    await errors.exists(db, Route, data.get("route_id"), "route_id")
    await errors.exists(db, Warehouse, data.get("warehouse_id"), "warehouse_id")
    await errors.exists(db, Company, data.get("company_id"), "company_id")
    errors.raise_if_any()
    for field in ENUM_FIELDS:
        if data.get(field) is not None:
            data[field] = data[field].value
    return data


@router.get("")
async def list_rules(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_any_inventory_rule")),
    params: ListParams = Depends(),
    name: Optional[str] = Query(None, alias="filter[name]"),
    action: Optional[str] = Query(None, alias="filter[action]"),
    route_id: Optional[str] = Query(None, alias="filter[route_id]"),
    trashed: Optional[str] = Query(None, alias="filter[trashed]")) -> Any:
    query = select(Rule)
    query = apply_trashed(query, Rule, trashed)
    query = apply_partial(query, Rule.name, name)
    query = apply_exact(query, Rule.action, action)
    query = apply_exact(query, Rule.route_id, route_id)
    query = apply_sort(query, Rule, params.sort, ["id", "name", "action", "sequence", "created_at"], default="sequence")
    return await paginate(db, query, params, _build_response)


@router.post("", status_code=201)
async def create_rule(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("create_inventory_rule")),
    rule_in: RuleCreate) -> Any:
    data = await _validate(db, rule_in.model_dump())

    rule = Rule(**data, creator_id=current_user.id)
    db.add(rule)
    await db.flush()
    await create_audit_log(db, current_user.id, "create", "rule", rule.id, rule.name)
    await db.commit()

    rule = await get_or_404(db, Rule, rule.id, "Rule")
    return item_response(_build_response(rule), "Rule created successfully.")


@router.get("/{id}")
async def get_rule(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_inventory_rule")),
    id: int) -> Any:
    rule = await get_or_404(db, Rule, id, "Rule")
    return item_response(_build_response(rule))


@router.api_route("/{id}", methods=["PUT", "PATCH"])
async def update_rule(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("update_inventory_rule")),
    id: int,
    rule_in: RuleUpdate) -> Any:
    rule = await get_or_404(db, Rule, id, "Rule")
    data = await _validate(db, rule_in.model_dump(exclude_unset=True))

    for field, value in data.items():
        setattr(rule, field, value)
    await create_audit_log(db, current_user.id, "update", "rule", rule.id, rule.name)
    await db.commit()

    rule = await get_or_404(db, Rule, rule.id, "Rule")
    return item_response(_build_response(rule), "Rule updated successfully.")


@router.delete("/{id}")
async def delete_rule(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("delete_inventory_rule")),
    id: int) -> Any:
    rule = await get_or_404(db, Rule, id, "Rule")
    rule.soft_delete()
    await create_audit_log(db, current_user.id, "delete", "rule", rule.id, rule.name)
    await db.commit()
    return {"message": "Rule deleted successfully."}


@router.post("/{id}/restore")
async def restore_rule(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("restore_inventory_rule")),
    id: int) -> Any:
    rule = await get_or_404(db, Rule, id, "Rule", with_trashed=True)
    rule.restore()
    await create_audit_log(db, current_user.id, "restore", "rule", rule.id, rule.name)
    await db.commit()

    rule = await get_or_404(db, Rule, rule.id, "Rule")
    return item_response(_build_response(rule), "Rule restored successfully.")


@router.delete("/{id}/force")
async def force_delete_rule(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("force_delete_inventory_rule")),
    id: int) -> Any:
    rule = await get_or_404(db, Rule, id, "Rule", with_trashed=True)
    await create_audit_log(db, current_user.id, "force_delete", "rule", rule.id, rule.name)
    await db.delete(rule)
    await db.commit()
    return {"message": "Rule permanently deleted successfully."}
