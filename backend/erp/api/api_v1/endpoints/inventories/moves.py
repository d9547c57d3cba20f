"""库存移动历史API（只读）"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.deps import get_db, require_permission
from erp.models.inventories.move import StockMove
from erp.models.security.user import User
from erp.api.api_v1.common import ListParams, paginate, apply_sort, apply_exact, apply_partial
from erp.api.api_v1.endpoints.inventories.operations.core import build_move_response

router = APIRouter()


@router.get("")
async def list_moves(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_any_inventory_move")),
    params: ListParams = Depends(),
    reference: Optional[str] = Query(None, alias="filter[reference]"),
    state: Optional[str] = Query(None, alias="filter[state]"),
    product_id: Optional[str] = Query(None, alias="filter[product_id]"),
    operation_id: Optional[str] = Query(None, alias="filter[operation_id]"),
    scrap_id: Optional[str] = Query(None, alias="filter[scrap_id]"),
    source_location_id: Optional[str] = Query(None, alias="filter[source_location_id]"),
    destination_location_id: Optional[str] = Query(None, alias="filter[destination_location_id]"),
    location_id: Optional[str] = Query(None, alias="filter[location_id]"),
    is_inventory: Optional[str] = Query(None, alias="filter[is_inventory]")) -> Any:
    """location_id 匹配来源或目的库位"""
    query = select(StockMove)
    query = apply_partial(query, StockMove.reference, reference)
    query = apply_exact(query, StockMove.state, state)
    query = apply_exact(query, StockMove.product_id, product_id)
    query = apply_exact(query, StockMove.operation_id, operation_id)
    query = apply_exact(query, StockMove.scrap_id, scrap_id)
    query = apply_exact(query, StockMove.source_location_id, source_location_id)
    query = apply_exact(query, StockMove.destination_location_id, destination_location_id)
    query = apply_exact(query, StockMove.is_inventory, is_inventory, boolean=True)
    if location_id:
        query = query.where(or_(
            StockMove.source_location_id == location_id,
            StockMove.destination_location_id == location_id,
        ))
    query = apply_sort(query, StockMove, params.sort, ["id", "scheduled_at", "created_at"], default="-id")
    return await paginate(db, query, params, build_move_response)
