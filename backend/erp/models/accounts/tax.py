"""
税模型与税额计算

计算顺序：
1. 先从单价中剥离含税（price_include）的税
2. 再逐个计算税额；include_base_amount 的税会影响后续税的计税基数
"""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from erp.db.base import Base
from erp.models.enums import AmountType, RepartitionType

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENT, rounding=ROUND_HALF_UP)


class TaxGroup(Base):
    """税组（用于在单据上汇总显示）"""
    __tablename__ = "accounts_tax_groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    sequence = Column(Integer, default=10)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<TaxGroup {self.name}>"


class Tax(Base):
    __tablename__ = "accounts_taxes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    type_tax_use = Column(String(20), nullable=False, comment="sale/purchase/none")
    amount_type = Column(String(20), nullable=False, default=AmountType.PERCENT.value, comment="percent/fixed/division")
    amount = Column(DECIMAL(16, 4), nullable=False, default=Decimal("0"))
    price_include = Column(Boolean, default=False, comment="单价含税")
    include_base_amount = Column(Boolean, default=False, comment="影响后续税的基数")
    description = Column(Text)
    invoice_label = Column(String(100))
    sequence = Column(Integer, default=1)
    is_active = Column(Boolean, default=True)

    tax_group_id = Column(Integer, ForeignKey("accounts_tax_groups.id"), nullable=False)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    tax_group = relationship("TaxGroup", foreign_keys=[tax_group_id])
    repartition_lines = relationship(
        "TaxPartitionLine", back_populates="tax",
        cascade="all, delete-orphan", order_by="TaxPartitionLine.sequence"
    )

    def __repr__(self):
        return f"<Tax {self.name} {self.amount}{'%' if self.amount_type == 'percent' else ''}>"

    def compute_amount(self, base: Decimal, quantity: Decimal) -> Decimal:
        """计算单个税额（不含舍入）"""
        rate = Decimal(str(self.amount or 0))
        if self.amount_type == AmountType.FIXED.value:
            return rate * quantity
        if self.amount_type == AmountType.DIVISION.value:
            if rate >= HUNDRED:
                return Decimal("0")
            return base / (1 - rate / HUNDRED) - base
        return base * rate / HUNDRED


def strip_included_taxes(taxes: List[Tax], total: Decimal, quantity: Decimal) -> Decimal:
    """从含税金额中剥离 price_include 的税，得到不含税基数"""
    base = total
    included = [t for t in taxes if t.price_include]
    for tax in included:
        if tax.amount_type == AmountType.FIXED.value:
            base -= Decimal(str(tax.amount or 0)) * quantity
    percent = sum(
        (Decimal(str(t.amount or 0)) for t in included if t.amount_type == AmountType.PERCENT.value),
        Decimal("0")
    )
    if percent:
        base = base / (1 + percent / HUNDRED)
    for tax in included:
        if tax.amount_type == AmountType.DIVISION.value:
            base = base * (1 - Decimal(str(tax.amount or 0)) / HUNDRED)
    return base


def compute_all(taxes: List[Tax], price_unit, quantity) -> Dict:
    """计算一行的不含税金额、税额和含税金额

    Returns:
        {"total_excluded", "total_included", "taxes": [{"id", "name", "amount"}]}
    """
    quantity = Decimal(str(quantity or 0))
    total = Decimal(str(price_unit or 0)) * quantity
    taxes = sorted(taxes, key=lambda t: (t.sequence or 0, t.id or 0))

    base = strip_included_taxes(taxes, total, quantity)
    total_excluded = money(base)

    details = []
    running_base = base
    for tax in taxes:
        amount = money(tax.compute_amount(running_base, quantity))
        details.append({"id": tax.id, "name": tax.name, "amount": amount})
        if tax.include_base_amount:
            running_base += amount

    total_tax = sum((d["amount"] for d in details), Decimal("0"))
    return {
        "total_excluded": total_excluded,
        "total_included": total_excluded + total_tax,
        "taxes": details,
    }


class TaxPartitionLine(Base):
    """税分配行：base 行表示计税基数，tax 行表示税额落到哪个科目"""
    __tablename__ = "accounts_tax_partition_lines"

    id = Column(Integer, primary_key=True, index=True)
    tax_id = Column(Integer, ForeignKey("accounts_taxes.id", ondelete="CASCADE"), nullable=False, index=True)
    document_type = Column(String(20), nullable=False, comment="invoice/refund")
    repartition_type = Column(String(20), nullable=False, default=RepartitionType.TAX.value, comment="base/tax")
    factor_percent = Column(DECIMAL(8, 4), default=Decimal("100"))
    account_id = Column(Integer, ForeignKey("accounts_accounts.id"), nullable=True)
    use_in_tax_closing = Column(Boolean, default=False)
    sequence = Column(Integer, default=1)

    tax = relationship("Tax", back_populates="repartition_lines")
