"""商品API"""

from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from erp.core.deps import get_db, require_permission
from erp.core.logging_config import get_logger
from erp.models.products.category import Category
from erp.models.products.product import Product
from erp.models.products.tag import Tag
from erp.models.security.user import User
from erp.models.support.company import Company
from erp.models.support.uom import UOM
from erp.schemas.products import ProductCreate, ProductUpdate, ProductResponse
from erp.api.api_v1.common import (
    ListParams, ErrorBag, paginate, apply_sort, apply_exact, apply_partial, apply_trashed,
    get_or_404, item_response
)
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log

router = APIRouter()
logger = get_logger(__name__)

LOAD_OPTIONS = [selectinload(Product.tags)]
SORTS = ["id", "name", "type", "price", "cost", "reference", "created_at", "updated_at"]


def _build_response(product: Product) -> dict:
    return ProductResponse.model_validate(product).model_dump(mode="json")


async def _validate(db: AsyncSession, data: dict, product_id: Optional[int] = None):
    errors = ErrorBag()
    await errors.exists(db, Category, data.get("category_id"), "category_id")
    await errors.exists(db, UOM, data.get("uom_id"), "uom_id")
    await errors.exists(db, UOM, data.get("uom_po_id"), "uom_po_id")
    await errors.exists(db, Company, data.get("company_id"), "company_id")
    await errors.exists_all(db, Tag, data.get("tag_ids"), "tag_ids")
    parent_id = data.get("parent_id")
    if parent_id is not None and parent_id == product_id:
        errors.invalid("parent_id")
    else:
        await errors.exists(db, Product, parent_id, "parent_id")
    errors.raise_if_any()


async def _load_tags(db: AsyncSession, tag_ids: List[int]) -> List[Tag]:
    if not tag_ids:
        return []
    result = await db.execute(select(Tag).where(Tag.id.in_(tag_ids)))
    return list(result.scalars().all())


def _enum_values(data: dict) -> dict:
    for field in ("type", "tracking"):
        if data.get(field) is not None:
            data[field] = data[field].value
    return data


@router.get("")
async def list_products(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_any_product_product")),
    params: ListParams = Depends(),
    id: Optional[str] = Query(None, alias="filter[id]"),
    name: Optional[str] = Query(None, alias="filter[name]"),
    reference: Optional[str] = Query(None, alias="filter[reference]"),
    type: Optional[str] = Query(None, alias="filter[type]"),
    category_id: Optional[str] = Query(None, alias="filter[category_id]"),
    parent_id: Optional[str] = Query(None, alias="filter[parent_id]"),
    enable_sales: Optional[str] = Query(None, alias="filter[enable_sales]"),
    enable_purchase: Optional[str] = Query(None, alias="filter[enable_purchase]"),
    trashed: Optional[str] = Query(None, alias="filter[trashed]")) -> Any:
    """获取商品列表"""
    query = select(Product).options(*LOAD_OPTIONS)
    query = apply_trashed(query, Product, trashed)
    query = apply_exact(query, Product.id, id)
    query = apply_partial(query, Product.name, name)
    query = apply_partial(query, Product.reference, reference)
    query = apply_exact(query, Product.type, type)
    query = apply_exact(query, Product.category_id, category_id)
    query = apply_exact(query, Product.parent_id, parent_id)
    query = apply_exact(query, Product.enable_sales, enable_sales, boolean=True)
    query = apply_exact(query, Product.enable_purchase, enable_purchase, boolean=True)
    query = apply_sort(query, Product, params.sort, SORTS)
    return await paginate(db, query, params, _build_response)


@router.post("", status_code=201)
async def create_product(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("create_product_product")),
    product_in: ProductCreate) -> Any:
    """创建商品"""
    data = product_in.model_dump()
    await _validate(db, data)

    tag_ids = data.pop("tag_ids")
    product = Product(**_enum_values(data), creator_id=current_user.id)
    if product.uom_po_id is None:
        product.uom_po_id = product.uom_id
    product.tags = await _load_tags(db, tag_ids)
    db.add(product)
    await db.flush()

    await create_audit_log(db, current_user.id, "create", "product", product.id, product.name, f"创建商品 {product.name}")
    await db.commit()
    logger.info(f"📦 创建商品: {product.name} ({product.type})")

    product = await get_or_404(db, Product, product.id, "Product", options=LOAD_OPTIONS)
    return item_response(_build_response(product), "Product created successfully.")


@router.get("/{id}")
async def get_product(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_product_product")),
    id: int) -> Any:
    product = await get_or_404(db, Product, id, "Product", options=LOAD_OPTIONS)
    return item_response(_build_response(product))


@router.api_route("/{id}", methods=["PUT", "PATCH"])
async def update_product(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("update_product_product")),
    id: int,
    product_in: ProductUpdate) -> Any:
    """更新商品，tag_ids 会同步（覆盖）标签"""
    product = await get_or_404(db, Product, id, "Product", options=LOAD_OPTIONS)
    data = product_in.model_dump(exclude_unset=True)
    await _validate(db, data, product_id=product.id)

    if "tag_ids" in data:
        product.tags = await _load_tags(db, data.pop("tag_ids") or [])
    for field, value in _enum_values(data).items():
        setattr(product, field, value)

    await create_audit_log(db, current_user.id, "update", "product", product.id, product.name, f"更新商品 {product.name}")
    await db.commit()

    product = await get_or_404(db, Product, product.id, "Product", options=LOAD_OPTIONS)
    return item_response(_build_response(product), "Product updated successfully.")


@router.delete("/{id}")
async def delete_product(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("delete_product_product")),
    id: int) -> Any:
    product = await get_or_404(db, Product, id, "Product")
    product.soft_delete()
    await create_audit_log(db, current_user.id, "delete", "product", product.id, product.name, f"删除商品 {product.name}")
    await db.commit()
    return {"message": "Product deleted successfully."}


@router.post("/{id}/restore")
async def restore_product(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("restore_product_product")),
    id: int) -> Any:
    product = await get_or_404(db, Product, id, "Product", with_trashed=True)
    product.restore()
    await create_audit_log(db, current_user.id, "restore", "product", product.id, product.name, f"恢复商品 {product.name}")
    await db.commit()

    product = await get_or_404(db, Product, product.id, "Product", options=LOAD_OPTIONS)
    return item_response(_build_response(product), "Product restored successfully.")


@router.delete("/{id}/force")
async def force_delete_product(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("force_delete_product_product")),
    id: int) -> Any:
    product = await get_or_404(db, Product, id, "Product", with_trashed=True, options=LOAD_OPTIONS)
    await create_audit_log(db, current_user.id, "force_delete", "product", product.id, product.name, f"彻底删除商品 {product.name}")
    await db.delete(product)
    await db.commit()
    return {"message": "Product permanently deleted successfully."}
