"""
会计凭证API模块（发票、账单、贷项通知单、退款）

按功能拆分为多个子模块：
- core: 单据类型配置、响应构建、通用查询
- crud: 创建、读取、更新、删除操作
- actions: 状态变更操作（过账、取消、重置、复核、冲销）
"""

from fastapi import APIRouter

from .core import MoveKind, INVOICE, BILL, CREDIT_NOTE, REFUND
from .crud import register_crud
from .actions import register_actions


def build_router(kind: MoveKind) -> APIRouter:
    router = APIRouter()
    register_crud(router, kind)
    register_actions(router, kind)
    return router


invoices_router = build_router(INVOICE)
bills_router = build_router(BILL)
credit_notes_router = build_router(CREDIT_NOTE)
refunds_router = build_router(REFUND)
