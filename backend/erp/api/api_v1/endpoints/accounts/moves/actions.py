"""凭证状态流转：确认、取消、重置草稿、复核、冲销"""

from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.deps import get_db, require_permission
from erp.core.exceptions import action_failed
from erp.core.logging_config import get_logger
from erp.models.accounts.account import Journal
from erp.models.accounts.move import Move, REVERSAL_TYPES
from erp.models.enums import MoveState
from erp.models.security.user import User
from erp.schemas.accounts import MoveReverse
from erp.api.api_v1.common import ErrorBag, item_response
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log
from .core import (
    MoveKind, KINDS_BY_TYPE, build_move_response, get_move, next_sequence_name, copy_lines
)

logger = get_logger(__name__)


def register_actions(router: APIRouter, kind: MoveKind):

    @router.post("/{id}/confirm")
    async def confirm_move(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission(kind.permission("update"))),
        id: int) -> Any:
        """过账：draft → posted，首次过账时生成编号"""
        move = await get_move(db, kind, id, current_user)
        if not move.is_draft:
            raise action_failed(f"Only draft {kind.plural} can be confirmed.")
        if not move.lines:
            raise action_failed(f"Cannot confirm a {kind.noun} without lines.")

        move.date = move.date or move.invoice_date or date.today()
        if not move.name:
            move.name = await next_sequence_name(db, move)
        move.state = MoveState.POSTED.value
        move.posted_before = True

        await create_audit_log(db, current_user.id, "confirm", kind.resource, move.id, move.name,
                               f"过账{kind.noun} {move.name}")
        await db.commit()
        logger.info(f"✅ {kind.noun} {move.name} 已过账")

        move = await get_move(db, kind, move.id, current_user)
        return item_response(build_move_response(move), f"{kind.label} confirmed successfully.")

    @router.post("/{id}/cancel")
    async def cancel_move(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission(kind.permission("update"))),
        id: int) -> Any:
        move = await get_move(db, kind, id, current_user)
        if not move.is_draft:
            raise action_failed(f"Only draft {kind.plural} can be cancelled.")

        move.state = MoveState.CANCEL.value
        await create_audit_log(db, current_user.id, "cancel", kind.resource, move.id, move.name or kind.label)
        await db.commit()

        move = await get_move(db, kind, move.id, current_user)
        return item_response(build_move_response(move), f"{kind.label} cancelled successfully.")

    @router.post("/{id}/reset-to-draft")
    async def reset_move_to_draft(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission(kind.permission("update"))),
        id: int) -> Any:
        """重置为草稿，已生成的编号保留"""
        move = await get_move(db, kind, id, current_user)
        if not (move.is_posted or move.is_cancelled):
            raise action_failed(f"Only posted or cancelled {kind.plural} can be reset to draft.")

        move.state = MoveState.DRAFT.value
        move.checked = False
        await create_audit_log(db, current_user.id, "reset_to_draft", kind.resource, move.id, move.name or kind.label)
        await db.commit()

        move = await get_move(db, kind, move.id, current_user)
        return item_response(build_move_response(move), f"{kind.label} reset to draft successfully.")

    @router.post("/{id}/set-as-checked")
    async def set_move_as_checked(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission(kind.permission("update"))),
        id: int) -> Any:
        move = await get_move(db, kind, id, current_user)
        if move.is_draft or move.checked:
            raise action_failed(f"Only non-draft and unchecked {kind.plural} can be marked as checked.")

        move.checked = True
        await create_audit_log(db, current_user.id, "check", kind.resource, move.id, move.name or kind.label)
        await db.commit()

        move = await get_move(db, kind, move.id, current_user)
        return item_response(build_move_response(move), f"{kind.label} marked as checked successfully.")

    if not kind.reversible:
        return

    @router.post("/{id}/reverse")
    async def reverse_move(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission(kind.permission("update"))),
        id: int,
        reverse_in: Optional[MoveReverse] = None) -> Any:
        """冲销已过账单据，生成草稿状态的贷项通知单/退款"""
        move = await get_move(db, kind, id, current_user)
        reverse_in = reverse_in or MoveReverse()
        if not move.is_posted:
            raise action_failed(f"Only posted {kind.plural} can be reversed.")

        errors = ErrorBag()
        await errors.exists(db, Journal, reverse_in.journal_id, "journal_id")
        errors.raise_if_any()

        reversal_date = reverse_in.date or date.today()
        ref = f"Reversal of: {move.name}"
        if reverse_in.reason:
            ref = f"{ref}, {reverse_in.reason}"

        reversal = Move(
            move_type=REVERSAL_TYPES[move.move_type],
            state=MoveState.DRAFT.value,
            ref=ref,
            date=reversal_date,
            invoice_date=reversal_date,
            invoice_date_due=reversal_date,
            invoice_origin=move.name,
            partner_id=move.partner_id,
            currency_id=move.currency_id,
            journal_id=reverse_in.journal_id or move.journal_id,
            company_id=move.company_id,
            invoice_payment_term_id=move.invoice_payment_term_id,
            invoice_user_id=move.invoice_user_id,
            reversed_entry_id=move.id,
            creator_id=current_user.id,
        )
        reversal.lines = copy_lines(move.lines)
        reversal.recalculate_totals()
        db.add(reversal)
        await db.flush()

        await create_audit_log(db, current_user.id, "reverse", kind.resource, move.id, move.name, ref)
        await db.commit()
        logger.info(f"↩️ {kind.noun} {move.name} 已冲销，生成单据 #{reversal.id}")

        reversal_kind = KINDS_BY_TYPE[reversal.move_type]
        reversal = await get_move(db, reversal_kind, reversal.id, current_user)
        return item_response(build_move_response(reversal), f"{kind.label} reversed successfully.")
