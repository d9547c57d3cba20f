"""库存 Schema：仓库、库位、作业类型、路线规则、批次、包裹、作业、库存数量、报废"""

from typing import List, Optional
from datetime import date, datetime
from pydantic import BaseModel, Field

from erp.models.enums import (
    LocationType, OperationTypeKind, RuleAction, ProcureMethod, GroupPropagation,
    PackageUse, ShippingPolicy, ScrapState
)


# ===== 仓库 =====
class WarehouseCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=10)
    company_id: int
    partner_id: Optional[int] = None
    sequence: int = 10


class WarehouseUpdate(BaseModel):
    name: str = Field(None, min_length=1, max_length=100)
    code: str = Field(None, min_length=1, max_length=10)
    company_id: int = None
    partner_id: Optional[int] = None
    sequence: int = None


class WarehouseResponse(BaseModel):
    id: int
    name: str
    code: str
    sequence: Optional[int] = None
    company_id: int
    partner_id: Optional[int] = None
    view_location_id: Optional[int] = None
    lot_stock_location_id: Optional[int] = None
    in_type_id: Optional[int] = None
    out_type_id: Optional[int] = None
    internal_type_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ===== 库位 =====
class LocationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: LocationType
    parent_id: Optional[int] = None
    warehouse_id: Optional[int] = None
    company_id: Optional[int] = None
    barcode: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    is_scrap: bool = False
    is_replenish: bool = False


class LocationUpdate(BaseModel):
    name: str = Field(None, min_length=1, max_length=100)
    type: LocationType = None
    parent_id: Optional[int] = None
    warehouse_id: Optional[int] = None
    company_id: Optional[int] = None
    barcode: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    is_scrap: bool = None
    is_replenish: bool = None


class LocationResponse(BaseModel):
    id: int
    name: str
    full_name: Optional[str] = None
    type: str
    parent_id: Optional[int] = None
    warehouse_id: Optional[int] = None
    company_id: Optional[int] = None
    barcode: Optional[str] = None
    description: Optional[str] = None
    is_scrap: bool
    is_replenish: bool
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ===== 作业类型 =====
class OperationTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: OperationTypeKind
    sequence_code: str = Field(..., min_length=1, max_length=10)
    sequence: int = 10
    source_location_id: Optional[int] = None
    destination_location_id: Optional[int] = None
    return_operation_type_id: Optional[int] = None
    warehouse_id: Optional[int] = None
    company_id: Optional[int] = None
    use_create_lots: bool = False
    use_existing_lots: bool = True


class OperationTypeUpdate(BaseModel):
    name: str = Field(None, min_length=1, max_length=100)
    type: OperationTypeKind = None
    sequence_code: str = Field(None, min_length=1, max_length=10)
    sequence: int = None
    source_location_id: Optional[int] = None
    destination_location_id: Optional[int] = None
    return_operation_type_id: Optional[int] = None
    warehouse_id: Optional[int] = None
    company_id: Optional[int] = None
    use_create_lots: bool = None
    use_existing_lots: bool = None


class OperationTypeResponse(BaseModel):
    id: int
    name: str
    type: str
    sequence_code: str
    sequence: Optional[int] = None
    source_location_id: Optional[int] = None
    destination_location_id: Optional[int] = None
    return_operation_type_id: Optional[int] = None
    warehouse_id: Optional[int] = None
    company_id: Optional[int] = None
    use_create_lots: Optional[bool] = None
    use_existing_lots: Optional[bool] = None
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ===== 路线 =====
class RouteCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    sequence: int = 10
    product_selectable: bool = True
    product_category_selectable: bool = False
    warehouse_selectable: bool = False
    packaging_selectable: bool = False
    company_id: Optional[int] = None


class RouteUpdate(BaseModel):
    name: str = Field(None, min_length=1, max_length=100)
    sequence: int = None
    product_selectable: bool = None
    product_category_selectable: bool = None
    warehouse_selectable: bool = None
    packaging_selectable: bool = None
    company_id: Optional[int] = None


class RouteResponse(BaseModel):
    id: int
    name: str
    sequence: Optional[int] = None
    product_selectable: bool
    product_category_selectable: bool
    warehouse_selectable: bool
    packaging_selectable: bool
    company_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ===== 规则 =====
class RuleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    action: RuleAction
    operation_type_id: int
    source_location_id: int
    destination_location_id: int
    route_id: int
    procure_method: ProcureMethod = ProcureMethod.MAKE_TO_STOCK
    group_propagation_option: GroupPropagation = GroupPropagation.PROPAGATE
    propagate_cancel: bool = False
    delay: int = Field(0, ge=0)
    sequence: int = 20
    warehouse_id: Optional[int] = None
    company_id: Optional[int] = None


class RuleUpdate(BaseModel):
    name: str = Field(None, min_length=1, max_length=100)
    action: RuleAction = None
    operation_type_id: int = None
    source_location_id: int = None
    destination_location_id: int = None
    route_id: int = None
    procure_method: ProcureMethod = None
    group_propagation_option: GroupPropagation = None
    propagate_cancel: bool = None
    delay: int = Field(None, ge=0)
    sequence: int = None
    warehouse_id: Optional[int] = None
    company_id: Optional[int] = None


class RuleResponse(BaseModel):
    id: int
    name: str
    action: str
    procure_method: Optional[str] = None
    group_propagation_option: Optional[str] = None
    propagate_cancel: Optional[bool] = None
    delay: Optional[int] = None
    sequence: Optional[int] = None
    operation_type_id: int
    source_location_id: int
    destination_location_id: int
    route_id: int
    warehouse_id: Optional[int] = None
    company_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ===== 批次 =====
class LotCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    product_id: int
    reference: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    company_id: Optional[int] = None


class LotUpdate(BaseModel):
    name: str = Field(None, min_length=1, max_length=100)
    product_id: int = None
    reference: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    company_id: Optional[int] = None


class LotResponse(BaseModel):
    id: int
    name: str
    product_id: int
    reference: Optional[str] = None
    description: Optional[str] = None
    company_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ===== 包裹类型 / 包裹 =====
class PackageTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    barcode: Optional[str] = Field(None, max_length=100)
    sequence: int = 1
    length: float = Field(0, ge=0)
    width: float = Field(0, ge=0)
    height: float = Field(0, ge=0)
    base_weight: float = Field(0, ge=0)
    max_weight: float = Field(0, ge=0)
    company_id: Optional[int] = None


class PackageTypeUpdate(BaseModel):
    name: str = Field(None, min_length=1, max_length=100)
    barcode: Optional[str] = Field(None, max_length=100)
    sequence: int = None
    length: float = Field(None, ge=0)
    width: float = Field(None, ge=0)
    height: float = Field(None, ge=0)
    base_weight: float = Field(None, ge=0)
    max_weight: float = Field(None, ge=0)
    company_id: Optional[int] = None


class PackageTypeResponse(BaseModel):
    id: int
    name: str
    barcode: Optional[str] = None
    sequence: Optional[int] = None
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    base_weight: Optional[float] = None
    max_weight: Optional[float] = None
    company_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PackageCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    package_type_id: Optional[int] = None
    location_id: Optional[int] = None
    package_use: PackageUse = PackageUse.DISPOSABLE
    pack_date: Optional[date] = None
    company_id: Optional[int] = None


class PackageUpdate(BaseModel):
    name: str = Field(None, min_length=1, max_length=100)
    package_type_id: Optional[int] = None
    location_id: Optional[int] = None
    package_use: PackageUse = None
    pack_date: Optional[date] = None
    company_id: Optional[int] = None


class PackageResponse(BaseModel):
    id: int
    name: str
    package_use: Optional[str] = None
    pack_date: Optional[date] = None
    package_type_id: Optional[int] = None
    location_id: Optional[int] = None
    company_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ===== 作业 =====
class OperationMoveIn(BaseModel):
    id: Optional[int] = None
    product_id: int
    product_uom_qty: float = Field(..., gt=0)
    uom_id: Optional[int] = None
    final_location_id: Optional[int] = None
    description_picking: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    deadline: Optional[datetime] = None
    quantity: Optional[float] = Field(None, ge=0)
    is_picked: bool = False


class OperationCreate(BaseModel):
    partner_id: Optional[int] = None
    operation_type_id: Optional[int] = None
    source_location_id: Optional[int] = None
    destination_location_id: Optional[int] = None
    user_id: Optional[int] = None
    move_type: ShippingPolicy = ShippingPolicy.DIRECT
    scheduled_at: Optional[datetime] = None
    deadline: Optional[datetime] = None
    origin: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    company_id: Optional[int] = None
    moves: Optional[List[OperationMoveIn]] = None


class OperationUpdate(BaseModel):
    partner_id: Optional[int] = None
    operation_type_id: int = None
    source_location_id: int = None
    destination_location_id: int = None
    user_id: Optional[int] = None
    move_type: ShippingPolicy = None
    scheduled_at: Optional[datetime] = None
    deadline: Optional[datetime] = None
    origin: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    company_id: Optional[int] = None
    moves: Optional[List[OperationMoveIn]] = None


class StockMoveResponse(BaseModel):
    id: int
    name: str
    reference: Optional[str] = None
    origin: Optional[str] = None
    description_picking: Optional[str] = None
    state: str
    procure_method: Optional[str] = None
    is_picked: Optional[bool] = None
    is_inventory: Optional[bool] = None
    product_id: int
    uom_id: Optional[int] = None
    product_uom_qty: float
    product_qty: Optional[float] = None
    quantity: Optional[float] = None
    source_location_id: int
    destination_location_id: int
    final_location_id: Optional[int] = None
    operation_id: Optional[int] = None
    operation_type_id: Optional[int] = None
    origin_returned_move_id: Optional[int] = None
    scrap_id: Optional[int] = None
    scheduled_at: Optional[datetime] = None
    deadline: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OperationResponse(BaseModel):
    id: int
    name: Optional[str] = None
    origin: Optional[str] = None
    description: Optional[str] = None
    move_type: str
    state: str
    scheduled_at: Optional[datetime] = None
    deadline: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    partner_id: Optional[int] = None
    operation_type_id: int
    source_location_id: int
    destination_location_id: int
    return_id: Optional[int] = None
    sale_order_id: Optional[int] = None
    user_id: Optional[int] = None
    company_id: Optional[int] = None
    creator_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ===== 库存数量 =====
class QuantityCreate(BaseModel):
    product_id: int
    location_id: int
    inventory_quantity: float = Field(..., ge=0)
    lot_id: Optional[int] = None
    package_id: Optional[int] = None
    inventory_date: Optional[date] = None


class QuantityUpdate(BaseModel):
    inventory_quantity: float = Field(..., ge=0)
    inventory_date: Optional[date] = None


class QuantityResponse(BaseModel):
    id: int
    product_id: int
    location_id: int
    lot_id: Optional[int] = None
    package_id: Optional[int] = None
    quantity: float
    reserved_quantity: float
    available_quantity: float
    inventory_quantity: Optional[float] = None
    inventory_diff_quantity: Optional[float] = None
    inventory_quantity_set: Optional[bool] = None
    inventory_date: Optional[date] = None
    user_id: Optional[int] = None
    company_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ===== 报废 =====
class ScrapCreate(BaseModel):
    product_id: int
    qty: float = Field(..., gt=0)
    uom_id: Optional[int] = None
    lot_id: Optional[int] = None
    package_id: Optional[int] = None
    partner_id: Optional[int] = None
    operation_id: Optional[int] = None
    source_location_id: Optional[int] = None
    destination_location_id: Optional[int] = None
    company_id: Optional[int] = None
    origin: Optional[str] = Field(None, max_length=255)
    should_replenish: bool = False


class ScrapUpdate(BaseModel):
    product_id: int = None
    qty: float = Field(None, gt=0)
    uom_id: int = None
    lot_id: Optional[int] = None
    package_id: Optional[int] = None
    partner_id: Optional[int] = None
    operation_id: Optional[int] = None
    source_location_id: int = None
    destination_location_id: int = None
    company_id: Optional[int] = None
    origin: Optional[str] = Field(None, max_length=255)
    should_replenish: bool = None


class ScrapResponse(BaseModel):
    id: int
    name: str
    origin: Optional[str] = None
    state: ScrapState
    qty: float
    should_replenish: Optional[bool] = None
    product_id: int
    uom_id: int
    lot_id: Optional[int] = None
    package_id: Optional[int] = None
    partner_id: Optional[int] = None
    operation_id: Optional[int] = None
    source_location_id: int
    destination_location_id: int
    company_id: Optional[int] = None
    closed_at: Optional[datetime] = None
    creator_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
