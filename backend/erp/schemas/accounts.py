"""财务 Schema：科目、日记账、税、付款条件、凭证"""

from typing import List, Optional
from datetime import date as Date, datetime
from pydantic import BaseModel, Field, field_validator

from erp.models.enums import (
    AccountType, JournalType, TypeTaxUse, AmountType, RepartitionType, DueTermValue
)


# ===== 科目 =====
class AccountCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=150)
    account_type: AccountType
    currency_id: Optional[int] = None
    reconcile: bool = False
    deprecated: bool = False
    non_trade: bool = False
    note: Optional[str] = None


class AccountUpdate(BaseModel):
    code: str = Field(None, min_length=1, max_length=64)
    name: str = Field(None, min_length=1, max_length=150)
    account_type: AccountType = None
    currency_id: Optional[int] = None
    reconcile: bool = None
    deprecated: bool = None
    non_trade: bool = None
    note: Optional[str] = None


class AccountResponse(BaseModel):
    id: int
    code: str
    name: str
    account_type: str
    internal_group: str
    currency_id: Optional[int] = None
    reconcile: bool
    deprecated: bool
    non_trade: bool
    note: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ===== 日记账 =====
class JournalCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=5)
    type: JournalType
    sequence: int = 10
    color: Optional[int] = None
    show_on_dashboard: bool = True
    refund_order: bool = False
    default_account_id: Optional[int] = None
    currency_id: Optional[int] = None
    company_id: Optional[int] = None


class JournalUpdate(BaseModel):
    name: str = Field(None, min_length=1, max_length=100)
    code: str = Field(None, min_length=1, max_length=5)
    type: JournalType = None
    sequence: int = None
    color: Optional[int] = None
    show_on_dashboard: bool = None
    refund_order: bool = None
    default_account_id: Optional[int] = None
    currency_id: Optional[int] = None
    company_id: Optional[int] = None


class JournalResponse(BaseModel):
    id: int
    name: str
    code: str
    type: str
    sequence: Optional[int] = None
    color: Optional[int] = None
    show_on_dashboard: Optional[bool] = None
    refund_order: Optional[bool] = None
    default_account_id: Optional[int] = None
    currency_id: Optional[int] = None
    company_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ===== 税组 =====
class TaxGroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    sequence: int = 10
    company_id: Optional[int] = None


class TaxGroupUpdate(BaseModel):
    name: str = Field(None, min_length=1, max_length=100)
    sequence: int = None
    company_id: Optional[int] = None


class TaxGroupResponse(BaseModel):
    id: int
    name: str
    sequence: Optional[int] = None
    company_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ===== 税 =====
class RepartitionLineIn(BaseModel):
    repartition_type: RepartitionType
    factor_percent: float = 100
    account_id: Optional[int] = None
    use_in_tax_closing: bool = False


def _check_repartition(lines: Optional[List[RepartitionLineIn]]):
    if lines is None:
        return lines
    base = sum(1 for l in lines if l.repartition_type == RepartitionType.BASE)
    tax = sum(1 for l in lines if l.repartition_type == RepartitionType.TAX)
    if base != 1:
        raise ValueError("Exactly one base repartition line is required.")
    if tax < 1:
        raise ValueError("At least one tax repartition line is required.")
    return lines


class TaxBase(BaseModel):
    invoice_repartition_lines: Optional[List[RepartitionLineIn]] = None
    refund_repartition_lines: Optional[List[RepartitionLineIn]] = None

    @field_validator("invoice_repartition_lines", "refund_repartition_lines")
    @classmethod
    def validate_repartition(cls, v):
        return _check_repartition(v)


class TaxCreate(TaxBase):
    name: str = Field(..., min_length=1, max_length=100)
    type_tax_use: TypeTaxUse
    amount_type: AmountType
    amount: float
    tax_group_id: int
    price_include: bool = False
    include_base_amount: bool = False
    description: Optional[str] = None
    invoice_label: Optional[str] = Field(None, max_length=100)
    sequence: int = 1
    is_active: bool = True
    company_id: Optional[int] = None


class TaxUpdate(TaxBase):
    name: str = Field(None, min_length=1, max_length=100)
    type_tax_use: TypeTaxUse = None
    amount_type: AmountType = None
    amount: float = None
    tax_group_id: int = None
    price_include: bool = None
    include_base_amount: bool = None
    description: Optional[str] = None
    invoice_label: Optional[str] = Field(None, max_length=100)
    sequence: int = None
    is_active: bool = None
    company_id: Optional[int] = None


class RepartitionLineResponse(BaseModel):
    id: int
    document_type: str
    repartition_type: str
    factor_percent: float
    account_id: Optional[int] = None
    use_in_tax_closing: Optional[bool] = None
    sequence: Optional[int] = None

    class Config:
        from_attributes = True


class TaxResponse(BaseModel):
    id: int
    name: str
    type_tax_use: str
    amount_type: str
    amount: float
    price_include: bool
    include_base_amount: bool
    description: Optional[str] = None
    invoice_label: Optional[str] = None
    sequence: Optional[int] = None
    is_active: bool
    tax_group_id: int
    company_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ===== 付款条件 =====
class DueTermIn(BaseModel):
    value: DueTermValue = DueTermValue.PERCENT
    value_amount: float = Field(100, ge=0)
    nb_days: int = Field(0, ge=0)


class PaymentTermCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    note: Optional[str] = None
    early_discount: bool = False
    discount_percentage: Optional[float] = Field(None, ge=0, le=100)
    discount_days: Optional[int] = Field(None, ge=0)
    sequence: int = 10
    company_id: Optional[int] = None
    due_terms: List[DueTermIn] = []


class PaymentTermUpdate(BaseModel):
    name: str = Field(None, min_length=1, max_length=100)
    note: Optional[str] = None
    early_discount: bool = None
    discount_percentage: Optional[float] = Field(None, ge=0, le=100)
    discount_days: Optional[int] = Field(None, ge=0)
    sequence: int = None
    company_id: Optional[int] = None
    due_terms: List[DueTermIn] = None


class DueTermResponse(BaseModel):
    id: int
    value: str
    value_amount: float
    nb_days: int

    class Config:
        from_attributes = True


class PaymentTermResponse(BaseModel):
    id: int
    name: str
    note: Optional[str] = None
    early_discount: Optional[bool] = None
    discount_percentage: Optional[float] = None
    discount_days: Optional[int] = None
    sequence: Optional[int] = None
    company_id: Optional[int] = None
    due_terms: List[DueTermResponse] = []
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ===== 凭证（发票/账单/贷项/退款） =====
class MoveLineIn(BaseModel):
    product_id: int
    quantity: float = Field(..., gt=0)
    price_unit: float = Field(..., ge=0)
    uom_id: Optional[int] = None
    discount: float = Field(0, ge=0, le=100)
    tax_ids: List[int] = []
    name: Optional[str] = Field(None, max_length=255)
    account_id: Optional[int] = None


class MoveCreate(BaseModel):
    partner_id: int
    currency_id: int
    journal_id: int
    invoice_date: Date
    invoice_lines: List[MoveLineIn] = Field(..., min_length=1)
    invoice_date_due: Optional[Date] = None
    invoice_payment_term_id: Optional[int] = None
    date: Optional[Date] = None
    ref: Optional[str] = Field(None, max_length=255)
    invoice_origin: Optional[str] = Field(None, max_length=255)
    narration: Optional[str] = None
    invoice_user_id: Optional[int] = None
    company_id: Optional[int] = None


class MoveUpdate(BaseModel):
    partner_id: Optional[int] = None
    currency_id: Optional[int] = None
    journal_id: Optional[int] = None
    invoice_date: Optional[Date] = None
    invoice_lines: Optional[List[MoveLineIn]] = Field(None, min_length=1)
    invoice_date_due: Optional[Date] = None
    invoice_payment_term_id: Optional[int] = None
    date: Optional[Date] = None
    ref: Optional[str] = Field(None, max_length=255)
    invoice_origin: Optional[str] = Field(None, max_length=255)
    narration: Optional[str] = None
    invoice_user_id: Optional[int] = None
    company_id: Optional[int] = None


class MoveReverse(BaseModel):
    reason: Optional[str] = Field(None, max_length=255)
    journal_id: Optional[int] = None
    date: Optional[Date] = None


class MoveLineResponse(BaseModel):
    id: int
    sequence: Optional[int] = None
    name: Optional[str] = None
    product_id: Optional[int] = None
    uom_id: Optional[int] = None
    account_id: Optional[int] = None
    quantity: float
    price_unit: float
    discount: Optional[float] = 0
    price_subtotal: float
    price_total: float
    tax_ids: List[int] = []

    class Config:
        from_attributes = True


class MoveResponse(BaseModel):
    id: int
    name: Optional[str] = None
    ref: Optional[str] = None
    move_type: str
    state: str
    payment_state: Optional[str] = None
    checked: bool
    invoice_date: Optional[Date] = None
    invoice_date_due: Optional[Date] = None
    invoice_origin: Optional[str] = None
    narration: Optional[str] = None
    partner_id: Optional[int] = None
    currency_id: int
    journal_id: int
    company_id: Optional[int] = None
    invoice_payment_term_id: Optional[int] = None
    invoice_user_id: Optional[int] = None
    reversed_entry_id: Optional[int] = None
    date: Optional[Date] = None
    amount_untaxed: float
    amount_tax: float
    amount_total: float
    amount_residual: float
    creator_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
