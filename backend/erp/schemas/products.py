"""商品、分类、标签 Schema"""

from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from erp.models.enums import ProductType, ProductTracking


# ===== 分类 =====
class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    parent_id: Optional[int] = None


class CategoryUpdate(BaseModel):
    name: str = Field(None, min_length=1, max_length=100)
    parent_id: Optional[int] = None


class CategoryResponse(BaseModel):
    id: int
    name: str
    full_name: Optional[str] = None
    parent_path: Optional[str] = None
    parent_id: Optional[int] = None
    creator_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ===== 标签 =====
class TagCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: Optional[str] = Field(None, max_length=20)


class TagUpdate(BaseModel):
    name: str = Field(None, min_length=1, max_length=100)
    color: Optional[str] = Field(None, max_length=20)


class TagResponse(BaseModel):
    id: int
    name: str
    color: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ===== 商品 =====
class ProductCreate(BaseModel):
    type: ProductType
    name: str = Field(..., min_length=1, max_length=200)
    price: float = Field(..., ge=0)
    category_id: int
    cost: Optional[float] = Field(None, ge=0)
    reference: Optional[str] = Field(None, max_length=100)
    barcode: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    description_sale: Optional[str] = None
    description_purchase: Optional[str] = None
    weight: Optional[float] = Field(None, ge=0)
    volume: Optional[float] = Field(None, ge=0)
    uom_id: Optional[int] = None
    uom_po_id: Optional[int] = None
    enable_sales: bool = True
    enable_purchase: bool = True
    is_storable: bool = True
    is_configurable: bool = False
    tracking: ProductTracking = ProductTracking.QTY
    parent_id: Optional[int] = None
    company_id: Optional[int] = None
    tag_ids: List[int] = []


class ProductUpdate(BaseModel):
    type: ProductType = None
    name: str = Field(None, min_length=1, max_length=200)
    price: float = Field(None, ge=0)
    category_id: int = None
    cost: Optional[float] = Field(None, ge=0)
    reference: Optional[str] = Field(None, max_length=100)
    barcode: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    description_sale: Optional[str] = None
    description_purchase: Optional[str] = None
    weight: Optional[float] = Field(None, ge=0)
    volume: Optional[float] = Field(None, ge=0)
    uom_id: Optional[int] = None
    uom_po_id: Optional[int] = None
    enable_sales: bool = None
    enable_purchase: bool = None
    is_storable: bool = None
    is_configurable: bool = None
    tracking: ProductTracking = None
    parent_id: Optional[int] = None
    company_id: Optional[int] = None
    tag_ids: List[int] = None


class ProductResponse(BaseModel):
    id: int
    type: str
    name: str
    reference: Optional[str] = None
    barcode: Optional[str] = None
    description: Optional[str] = None
    description_sale: Optional[str] = None
    description_purchase: Optional[str] = None
    price: float
    cost: Optional[float] = None
    weight: Optional[float] = None
    volume: Optional[float] = None
    enable_sales: bool
    enable_purchase: bool
    is_storable: bool
    is_configurable: bool
    tracking: Optional[str] = None
    category_id: int
    uom_id: Optional[int] = None
    uom_po_id: Optional[int] = None
    parent_id: Optional[int] = None
    company_id: Optional[int] = None
    tags: List[TagResponse] = []
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True
