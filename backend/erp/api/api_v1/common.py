"""
接口通用工具
- 分页信封（data / meta / links）
- 排序、筛选、回收站筛选、关联加载（include）
- 记录查找与存在性校验
"""

import math
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from fastapi import HTTPException, Query, Request
from sqlalchemy import select, func, true, false
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.config import settings
from erp.core.exceptions import ValidationFailed
from erp.models.support.uom import UOM


class ListParams:
    """列表通用参数：page / per_page / sort"""

    def __init__(
        self,
        request: Request,
        page: int = Query(1, ge=1),
        per_page: int = Query(None, ge=1),
        sort: Optional[str] = Query(None),
    ):
        self.request = request
        self.page = page
        self.per_page = min(per_page or settings.DEFAULT_PER_PAGE, settings.MAX_PER_PAGE)
        self.sort = sort


def _url(path: str, page: int) -> str:
    return f"{path}?page={page}"


async def paginate(
    db: AsyncSession,
    query,
    params: ListParams,
    serializer: Callable[[Any], Dict],
) -> Dict:
    """执行分页查询并构建列表响应"""
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar() or 0

    page, per_page = params.page, params.per_page
    result = await db.execute(query.offset((page - 1) * per_page).limit(per_page))
    items = result.scalars().unique().all()

    last_page = max(math.ceil(total / per_page), 1)
    path = str(params.request.url.replace(query=""))
    start = (page - 1) * per_page + 1 if items else None
    end = start + len(items) - 1 if items else None

    return {
        "data": [serializer(item) for item in items],
        "meta": {
            "current_page": page,
            "from": start,
            "last_page": last_page,
            "path": path,
            "per_page": per_page,
            "to": end,
            "total": total,
        },
        "links": {
            "first": _url(path, 1),
            "last": _url(path, last_page),
            "prev": _url(path, page - 1) if page > 1 else None,
            "next": _url(path, page + 1) if page < last_page else None,
        },
    }


def apply_sort(query, model, sort: Optional[str], allowed: Sequence[str], default: str = "id"):
    """sort=name,-created_at；不在白名单内的字段返回 400"""
    fields = [f.strip() for f in (sort or "").split(",") if f.strip()]
    if not fields:
        return query.order_by(getattr(model, default.lstrip("-")).desc() if default.startswith("-")
                              else getattr(model, default))
    for field in fields:
        name = field.lstrip("-")
        if name not in allowed:
            raise HTTPException(
                status_code=400,
                detail=f"Requested sort(s) `{name}` is not allowed. Allowed sort(s) are `{', '.join(allowed)}`."
            )
        column = getattr(model, name)
        query = query.order_by(column.desc() if field.startswith("-") else column.asc())
    return query


def _coerce(value: str):
    lowered = value.lower()
    if lowered in ("true", "1"):
        return True
    if lowered in ("false", "0"):
        return False
    return value


def apply_exact(query, column, value: Optional[str], boolean: bool = False):
    """精确筛选，支持逗号分隔的多个值"""
    if value is None or value == "":
        return query
    if boolean:
        flag = _coerce(value)
        if isinstance(flag, bool):
            return query.where(column.is_(true()) if flag else column.is_(false()))
        return query
    values = [v.strip() for v in value.split(",") if v.strip()]
    if len(values) == 1:
        return query.where(column == values[0])
    return query.where(column.in_(values))


def apply_partial(query, column, value: Optional[str]):
    """模糊筛选"""
    if not value:
        return query
    return query.where(column.ilike(f"%{value}%"))


def apply_trashed(query, model, trashed: Optional[str]):
    """回收站筛选：默认排除已删除；with 包含；only 仅已删除"""
    if trashed == "with":
        return query
    if trashed == "only":
        return query.where(model.deleted_at.is_not(None))
    return query.where(model.deleted_at.is_(None))


def parse_includes(include: Optional[str], allowed: Iterable[str]) -> List[str]:
    allowed = list(allowed)
    requested = [i.strip() for i in (include or "").split(",") if i.strip()]
    invalid = [i for i in requested if i not in allowed]
    if invalid:
        raise HTTPException(
            status_code=400,
            detail=f"Requested include(s) `{', '.join(invalid)}` are not allowed. "
                   f"Allowed include(s) are `{', '.join(allowed)}`."
        )
    return requested


async def get_or_404(
    db: AsyncSession,
    model,
    record_id: int,
    label: str,
    options: Sequence = (),
    with_trashed: bool = False,
    only_trashed: bool = False,
):
    """按ID查找记录，不存在（或已软删除）返回 404"""
    query = select(model).where(model.id == record_id)
    if options:
        query = query.options(*options)
    if hasattr(model, "deleted_at"):
        if only_trashed:
            query = query.where(model.deleted_at.is_not(None))
        elif not with_trashed:
            query = query.where(model.deleted_at.is_(None))
    result = await db.execute(query.execution_options(populate_existing=True))
    obj = result.scalar_one_or_none()
    if obj is None:
        raise HTTPException(status_code=404, detail=f"{label} not found.")
    return obj


class ErrorBag:
    """收集业务校验错误，最后统一抛出 422"""

    def __init__(self):
        self.errors: Dict[str, List[str]] = {}

    def add(self, field: str, message: str):
        self.errors.setdefault(field, []).append(message)

    def invalid(self, field: str):
        self.add(field, f"The selected {field.replace('_', ' ')} is invalid.")

    def taken(self, field: str):
        self.add(field, f"The {field.replace('_', ' ')} has already been taken.")

    def required(self, field: str):
        self.add(field, f"The {field.replace('_', ' ')} field is required.")

    def filled(self, data: dict, *fields: str):
        """字段可省略，但提交时不能为 null"""
        for field in fields:
            if field in data and data[field] is None:
                self.required(field)

    async def exists(self, db: AsyncSession, model, value, field: str, include_trashed: bool = False):
        """外键存在性校验；value 为空时跳过"""
        if value is None:
            return None
        query = select(model).where(model.id == value)
        if hasattr(model, "deleted_at") and not include_trashed:
            query = query.where(model.deleted_at.is_(None))
        obj = (await db.execute(query)).scalar_one_or_none()
        if obj is None:
            self.invalid(field)
        return obj

    async def same_uom_category(self, db: AsyncSession, uom, product, field: str):
        """所选单位须与商品单位同一类别"""
        if uom is None or product is None or not product.uom_id:
            return
        product_uom = await db.get(UOM, product.uom_id)
        if product_uom is not None and product_uom.category_id != uom.category_id:
            self.add(
                field,
                f"The unit of measure {uom.name} doesn't belong to the same category "
                f"as the unit of measure {product_uom.name} defined on the product."
            )

    async def exists_all(self, db: AsyncSession, model, values: Optional[List[int]], field: str):
        for index, value in enumerate(values or []):
            await self.exists(db, model, value, f"{field}.{index}")

    async def unique(self, db: AsyncSession, column, value, field: str, ignore_id: Optional[int] = None):
        if value is None:
            return
        model = column.class_
        query = select(model.id).where(column == value)
        if ignore_id is not None:
            query = query.where(model.id != ignore_id)
        if (await db.execute(query.limit(1))).scalar_one_or_none() is not None:
            self.taken(field)

    def raise_if_any(self):
        if self.errors:
            raise ValidationFailed(self.errors)


def item_response(data: Dict, message: Optional[str] = None) -> Dict:
    body = {"data": data}
    if message:
        body["message"] = message
    return body
