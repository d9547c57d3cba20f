"""销售订单 Schema"""

from typing import List, Optional
from datetime import date, datetime
from pydantic import BaseModel, Field


class OrderLineIn(BaseModel):
    product_id: int
    product_uom_qty: float = Field(..., gt=0)
    price_unit: Optional[float] = Field(None, ge=0)
    uom_id: Optional[int] = None
    discount: float = Field(0, ge=0, le=100)
    tax_ids: List[int] = []
    name: Optional[str] = Field(None, max_length=255)


class SaleOrderCreate(BaseModel):
    partner_id: int
    currency_id: Optional[int] = None
    date_order: Optional[datetime] = None
    validity_date: Optional[date] = None
    commitment_date: Optional[datetime] = None
    client_order_ref: Optional[str] = Field(None, max_length=100)
    origin: Optional[str] = Field(None, max_length=255)
    payment_term_id: Optional[int] = None
    user_id: Optional[int] = None
    company_id: Optional[int] = None
    note: Optional[str] = None
    order_lines: List[OrderLineIn] = Field(..., min_length=1)


class SaleOrderUpdate(BaseModel):
    partner_id: int = None
    currency_id: int = None
    date_order: datetime = None
    validity_date: Optional[date] = None
    commitment_date: Optional[datetime] = None
    client_order_ref: Optional[str] = Field(None, max_length=100)
    origin: Optional[str] = Field(None, max_length=255)
    payment_term_id: Optional[int] = None
    user_id: Optional[int] = None
    company_id: Optional[int] = None
    note: Optional[str] = None
    order_lines: List[OrderLineIn] = Field(None, min_length=1)


class OrderLineResponse(BaseModel):
    id: int
    sequence: Optional[int] = None
    name: Optional[str] = None
    product_id: int
    uom_id: Optional[int] = None
    product_uom_qty: float
    qty_delivered: Optional[float] = None
    price_unit: float
    discount: Optional[float] = None
    price_subtotal: float
    price_total: float
    tax_ids: List[int] = []

    class Config:
        from_attributes = True


class SaleOrderResponse(BaseModel):
    id: int
    name: str
    state: str
    origin: Optional[str] = None
    client_order_ref: Optional[str] = None
    date_order: datetime
    validity_date: Optional[date] = None
    commitment_date: Optional[datetime] = None
    note: Optional[str] = None
    partner_id: int
    currency_id: int
    payment_term_id: Optional[int] = None
    user_id: Optional[int] = None
    company_id: Optional[int] = None
    amount_untaxed: float
    amount_tax: float
    amount_total: float
    creator_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
