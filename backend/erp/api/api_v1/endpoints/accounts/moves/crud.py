"""凭证增删改查"""

from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.deps import get_db, require_permission, apply_scope
from erp.core.exceptions import action_failed
from erp.core.logging_config import get_logger
from erp.models.accounts.move import Move
from erp.models.enums import MoveState
from erp.models.security.user import User
from erp.schemas.accounts import MoveCreate, MoveUpdate
from erp.api.api_v1.common import (
    ListParams, paginate, apply_sort, apply_exact, apply_partial, parse_includes, item_response
)
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log
from .core import (
    MoveKind, LOAD_OPTIONS, INCLUDES, SORTS,
    build_move_response, get_move, validate_move, build_lines, apply_due_date
)

logger = get_logger(__name__)


def register_crud(router: APIRouter, kind: MoveKind):

    @router.get("")
    async def list_moves(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission(kind.permission("view_any"))),
        params: ListParams = Depends(),
        include: Optional[str] = Query(None),
        id: Optional[str] = Query(None, alias="filter[id]"),
        name: Optional[str] = Query(None, alias="filter[name]"),
        state: Optional[str] = Query(None, alias="filter[state]"),
        payment_state: Optional[str] = Query(None, alias="filter[payment_state]"),
        partner_id: Optional[str] = Query(None, alias="filter[partner_id]"),
        journal_id: Optional[str] = Query(None, alias="filter[journal_id]"),
        currency_id: Optional[str] = Query(None, alias="filter[currency_id]"),
        checked: Optional[str] = Query(None, alias="filter[checked]")) -> Any:
        includes = parse_includes(include, INCLUDES)
        query = select(Move).where(Move.move_type == kind.move_type).options(*LOAD_OPTIONS)
        query = apply_scope(query, Move, current_user, Move.invoice_user_id)
        query = apply_exact(query, Move.id, id)
        query = apply_partial(query, Move.name, name)
        query = apply_exact(query, Move.state, state)
        query = apply_exact(query, Move.payment_state, payment_state)
        query = apply_exact(query, Move.partner_id, partner_id)
        query = apply_exact(query, Move.journal_id, journal_id)
        query = apply_exact(query, Move.currency_id, currency_id)
        query = apply_exact(query, Move.checked, checked, boolean=True)
        query = apply_sort(query, Move, params.sort, SORTS, default="-id")
        return await paginate(db, query, params, lambda move: build_move_response(move, includes))

    @router.post("", status_code=201)
    async def create_move(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission(kind.permission("create"))),
        move_in: MoveCreate) -> Any:
        data = move_in.model_dump()
        await validate_move(db, kind, data, creating=True)

        lines = await build_lines(db, data.pop("invoice_lines"))
        move = Move(**data, move_type=kind.move_type, state=MoveState.DRAFT.value, creator_id=current_user.id)
        move.date = move.date or move.invoice_date or date.today()
        if move.company_id is None:
            move.company_id = current_user.default_company_id
        if move.invoice_user_id is None:
            move.invoice_user_id = current_user.id
        move.lines = lines
        await apply_due_date(db, move, explicit_due=move_in.invoice_date_due is not None)
        move.recalculate_totals()

        db.add(move)
        await db.flush()
        await create_audit_log(
            db, current_user.id, "create", kind.resource, move.id, kind.label,
            f"创建{kind.noun}，金额 {move.amount_total}"
        )
        await db.commit()
        logger.info(f"🧾 创建{kind.noun} #{move.id}，金额 {move.amount_total}")

        move = await get_move(db, kind, move.id, current_user)
        return item_response(build_move_response(move), f"{kind.label} created successfully.")

    @router.get("/{id}")
    async def get_move_detail(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission(kind.permission("view"))),
        id: int,
        include: Optional[str] = Query(None)) -> Any:
        includes = parse_includes(include, INCLUDES)
        move = await get_move(db, kind, id, current_user)
        return item_response(build_move_response(move, includes))

    @router.api_route("/{id}", methods=["PUT", "PATCH"])
    async def update_move(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission(kind.permission("update"))),
        id: int,
        move_in: MoveUpdate) -> Any:
        """只有草稿可以修改；提供 invoice_lines 时整体替换明细"""
        move = await get_move(db, kind, id, current_user)
        if move.is_posted:
            raise action_failed(f"Cannot update a posted {kind.noun}.")
        if move.is_cancelled:
            raise action_failed(f"Cannot update a cancelled {kind.noun}.")

        data = move_in.model_dump(exclude_unset=True)
        await validate_move(db, kind, data)

        items = data.pop("invoice_lines", None)
        if items is not None:
            move.lines = await build_lines(db, items)
        for field, value in data.items():
            setattr(move, field, value)
        if "invoice_date_due" in data or "invoice_payment_term_id" in data or "invoice_date" in data:
            await apply_due_date(db, move, explicit_due="invoice_date_due" in data)
        move.recalculate_totals()

        await create_audit_log(db, current_user.id, "update", kind.resource, move.id, move.name or kind.label)
        await db.commit()

        move = await get_move(db, kind, move.id, current_user)
        return item_response(build_move_response(move), f"{kind.label} updated successfully.")

    @router.delete("/{id}")
    async def delete_move(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission(kind.permission("delete"))),
        id: int) -> Any:
        move = await get_move(db, kind, id, current_user)
        if not move.is_draft:
            raise action_failed(f"Cannot delete a posted or cancelled {kind.noun}.")

        await create_audit_log(db, current_user.id, "delete", kind.resource, move.id, move.name or kind.label)
        await db.delete(move)
        await db.commit()
        return {"message": f"{kind.label} deleted successfully."}
