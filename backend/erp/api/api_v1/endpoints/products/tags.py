"""商品标签API"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.deps import get_db, require_permission
from erp.models.products.tag import Tag
from erp.models.security.user import User
from erp.schemas.products import TagCreate, TagUpdate, TagResponse
from erp.api.api_v1.common import (
    ListParams, ErrorBag, paginate, apply_sort, apply_partial, apply_trashed, get_or_404, item_response
)
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log

router = APIRouter()


def _build_response(tag: Tag) -> dict:
    return TagResponse.model_validate(tag).model_dump(mode="json")


@router.get("")
async def list_tags(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_any_product_tag")),
    params: ListParams = Depends(),
    name: Optional[str] = Query(None, alias="filter[name]"),
    trashed: Optional[str] = Query(None, alias="filter[trashed]")) -> Any:
    query = select(Tag)
    query = apply_trashed(query, Tag, trashed)
    query = apply_partial(query, Tag.name, name)
    query = apply_sort(query, Tag, params.sort, ["id", "name", "created_at"])
    return await paginate(db, query, params, _build_response)


@router.post("", status_code=201)
async def create_tag(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("create_product_tag")),
    tag_in: TagCreate) -> Any:
    errors = ErrorBag()
    await errors.unique(db, Tag.name, tag_in.name, "name")
    errors.raise_if_any()

    tag = Tag(**tag_in.model_dump(), creator_id=current_user.id)
    db.add(tag)
    await db.flush()
    await create_audit_log(db, current_user.id, "create", "product_tag", tag.id, tag.name)
    await db.commit()

    tag = await get_or_404(db, Tag, tag.id, "Tag")
    return item_response(_build_response(tag), "Tag created successfully.")


@router.get("/{id}")
async def get_tag(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_product_tag")),
    id: int) -> Any:
    tag = await get_or_404(db, Tag, id, "Tag")
    return item_response(_build_response(tag))


@router.api_route("/{id}", methods=["PUT", "PATCH"])
async def update_tag(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("update_product_tag")),
    id: int,
    tag_in: TagUpdate) -> Any:
    tag = await get_or_404(db, Tag, id, "Tag")
    data = tag_in.model_dump(exclude_unset=True)
    errors = ErrorBag()
    if "name" in data:
        await errors.unique(db, Tag.name, data["name"], "name", ignore_id=tag.id)
    errors.raise_if_any()

    for field, value in data.items():
        setattr(tag, field, value)
    await create_audit_log(db, current_user.id, "update", "product_tag", tag.id, tag.name)
    await db.commit()

    tag = await get_or_404(db, Tag, tag.id, "Tag")
    return item_response(_build_response(tag), "Tag updated successfully.")


@router.delete("/{id}")
async def delete_tag(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("delete_product_tag")),
    id: int) -> Any:
    tag = await get_or_404(db, Tag, id, "Tag")
    tag.soft_delete()
    await create_audit_log(db, current_user.id, "delete", "product_tag", tag.id, tag.name)
    await db.commit()
    return {"message": "Tag deleted successfully."}


@router.post("/{id}/restore")
async def restore_tag(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("restore_product_tag")),
    id: int) -> Any:
    tag = await get_or_404(db, Tag, id, "Tag", with_trashed=True)
    tag.restore()
    await create_audit_log(db, current_user.id, "restore", "product_tag", tag.id, tag.name)
    await db.commit()

    tag = await get_or_404(db, Tag, tag.id, "Tag")
    return item_response(_build_response(tag), "Tag restored successfully.")


@router.delete("/{id}/force")
async def force_delete_tag(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("force_delete_product_tag")),
    id: int) -> Any:
    tag = await get_or_404(db, Tag, id, "Tag", with_trashed=True)
    await create_audit_log(db, current_user.id, "force_delete", "product_tag", tag.id, tag.name)
    await db.delete(tag)
    await db.commit()
    return {"message": "Tag permanently deleted successfully."}
