"""
库存作业API模块（收货、发货、内部调拨、代发）

按功能拆分为多个子模块：
- core: 作业类型配置、响应构建、通用查询、编号生成
- crud: 创建、读取、更新、删除操作
- actions: 状态变更操作（待办、检查可用性、验证、取消、退回）
- stock_ops: 库存数量的预留、出入库与释放
"""

from fastapi import APIRouter

from .core import OperationKind, RECEIPT, DELIVERY, INTERNAL, DROPSHIP
from .crud import register_crud
from .actions import register_actions


def build_router(kind: OperationKind) -> APIRouter:
    router = APIRouter()
    register_crud(router, kind)
    register_actions(router, kind)
    return router


receipts_router = build_router(RECEIPT)
deliveries_router = build_router(DELIVERY)
internal_transfers_router = build_router(INTERNAL)
dropships_router = build_router(DROPSHIP)
