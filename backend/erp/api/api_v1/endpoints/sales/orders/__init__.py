"""
销售订单API模块

按功能拆分为多个子模块：
- core: 响应构建、通用查询、订单行与编号
- crud: 创建、读取、更新、删除操作
- actions: 状态变更操作（确认、取消、重置草稿）与订单发货查询
"""

from fastapi import APIRouter

from .crud import register_crud
from .actions import register_actions


def build_router() -> APIRouter:
    router = APIRouter()
    register_crud(router)
    register_actions(router)
    return router


router = build_router()
