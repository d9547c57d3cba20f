"""商品分类API"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.deps import get_db, require_permission
from erp.core.exceptions import action_failed
from erp.models.products.category import Category
from erp.models.products.product import Product
from erp.models.security.user import User
from erp.schemas.products import CategoryCreate, CategoryUpdate, CategoryResponse
from erp.api.api_v1.common import (
    ListParams, ErrorBag, paginate, apply_sort, apply_exact, apply_partial, get_or_404, item_response
)
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log

router = APIRouter()


def _build_response(cat: Category) -> dict:
    return CategoryResponse.model_validate(cat).model_dump(mode="json")


async def _resolve_parent(db: AsyncSession, parent_id: Optional[int], category: Category = None) -> Optional[Category]:
    """校验父分类：必须存在，且不能是自己或自己的下级"""
    if parent_id is None:
        return None
    errors = ErrorBag()
    parent = await errors.exists(db, Category, parent_id, "parent_id")
    if parent is not None and category is not None:
        ancestors = (parent.parent_path or "").split("/")
        if parent.id == category.id or str(category.id) in ancestors:
            errors.invalid("parent_id")
    errors.raise_if_any()
    return parent


async def _refresh_descendants(db: AsyncSession, category: Category):
    """分类改名或移动后，更新所有下级的完整路径"""
    segment = f"{category.id}/"
    result = await db.execute(
        select(Category).where(
            Category.parent_path.like(f"{segment}%") | Category.parent_path.like(f"%/{segment}%")
        )
    )
    # 按层级从浅到深处理，保证父级先更新
    descendants = sorted(result.scalars().all(), key=lambda c: len((c.parent_path or "").split("/")))
    by_id = {category.id: category}
    for child in descendants:
        parent = by_id.get(child.parent_id)
        if parent is None:
            parent = await db.get(Category, child.parent_id)
        child.compute_paths(parent)
        by_id[child.id] = child


@router.get("")
async def list_categories(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_any_product_category")),
    params: ListParams = Depends(),
    id: Optional[str] = Query(None, alias="filter[id]"),
    name: Optional[str] = Query(None, alias="filter[name]"),
    full_name: Optional[str] = Query(None, alias="filter[full_name]"),
    parent_id: Optional[str] = Query(None, alias="filter[parent_id]")) -> Any:
    """获取分类列表"""
    query = select(Category)
    query = apply_exact(query, Category.id, id)
    query = apply_partial(query, Category.name, name)
    query = apply_partial(query, Category.full_name, full_name)
    query = apply_exact(query, Category.parent_id, parent_id)
    query = apply_sort(query, Category, params.sort, ["id", "name", "full_name", "created_at", "updated_at"])
    return await paginate(db, query, params, _build_response)


@router.post("", status_code=201)
async def create_category(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("create_product_category")),
    category_in: CategoryCreate) -> Any:
    """创建分类"""
    parent = await _resolve_parent(db, category_in.parent_id)
    cat = Category(name=category_in.name, parent_id=category_in.parent_id, creator_id=current_user.id)
    cat.compute_paths(parent)
    db.add(cat)
    await db.flush()

    await create_audit_log(db, current_user.id, "create", "product_category", cat.id, cat.full_name, f"创建分类 {cat.full_name}")
    await db.commit()

    cat = await get_or_404(db, Category, cat.id, "Category")
    return item_response(_build_response(cat), "Category created successfully.")


@router.get("/{id}")
async def get_category(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_product_category")),
    id: int) -> Any:
    cat = await get_or_404(db, Category, id, "Category")
    return item_response(_build_response(cat))


@router.api_route("/{id}", methods=["PUT", "PATCH"])
async def update_category(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("update_product_category")),
    id: int,
    category_in: CategoryUpdate) -> Any:
    """更新分类"""
    cat = await get_or_404(db, Category, id, "Category")
    data = category_in.model_dump(exclude_unset=True)

    if "parent_id" in data:
        parent = await _resolve_parent(db, data["parent_id"], cat)
    else:
        parent = await db.get(Category, cat.parent_id) if cat.parent_id else None

    for field, value in data.items():
        setattr(cat, field, value)
    cat.compute_paths(parent)
    await _refresh_descendants(db, cat)

    await create_audit_log(db, current_user.id, "update", "product_category", cat.id, cat.full_name, f"更新分类 {cat.full_name}")
    await db.commit()

    cat = await get_or_404(db, Category, cat.id, "Category")
    return item_response(_build_response(cat), "Category updated successfully.")


@router.delete("/{id}")
async def delete_category(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("delete_product_category")),
    id: int) -> Any:
    """删除分类（有下级分类或商品时不可删除）"""
    cat = await get_or_404(db, Category, id, "Category")

    children = (await db.execute(select(func.count(Category.id)).where(Category.parent_id == cat.id))).scalar() or 0
    if children:
        raise action_failed("Category has child categories and cannot be deleted.")
    products = (await db.execute(select(func.count(Product.id)).where(Product.category_id == cat.id))).scalar() or 0
    if products:
        raise action_failed("Category has products and cannot be deleted.")

    await create_audit_log(db, current_user.id, "delete", "product_category", cat.id, cat.full_name, f"删除分类 {cat.full_name}")
    await db.delete(cat)
    await db.commit()
    return {"message": "Category deleted successfully."}
