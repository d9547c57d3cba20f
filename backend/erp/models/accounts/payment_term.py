"""付款条件"""

from datetime import datetime, date, timedelta
from decimal import Decimal
from typing import Optional
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from erp.db.base import Base, SoftDeleteMixin
from erp.models.enums import DueTermValue


class PaymentTerm(SoftDeleteMixin, Base):
    """付款条件，如"30天内付清"、"预付30%，余款60天" """
    __tablename__ = "accounts_payment_terms"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, comment="名称")
    note = Column(Text, comment="发票上显示的说明")
    early_discount = Column(Boolean, default=False, comment="提前付款折扣")
    discount_percentage = Column(DECIMAL(8, 4), default=Decimal("0"))
    discount_days = Column(Integer, default=0)
    sequence = Column(Integer, default=10)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)

    creator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    due_terms = relationship(
        "PaymentDueTerm", back_populates="payment_term",
        cascade="all, delete-orphan", order_by="PaymentDueTerm.nb_days"
    )

    def __repr__(self):
        return f"<PaymentTerm {self.name}>"

    def compute_due_date(self, invoice_date: Optional[date]) -> Optional[date]:
        """到期日 = 发票日期 + 最长的账期天数"""
        if invoice_date is None:
            return None
        days = max((t.nb_days or 0 for t in self.due_terms), default=0)
        return invoice_date + timedelta(days=days)


class PaymentDueTerm(Base):
    """付款条件的分期明细"""
    __tablename__ = "accounts_payment_due_terms"

    id = Column(Integer, primary_key=True, index=True)
    payment_id = Column(Integer, ForeignKey("accounts_payment_terms.id", ondelete="CASCADE"), nullable=False, index=True)
    value = Column(String(20), nullable=False, default=DueTermValue.PERCENT.value, comment="percent/fixed")
    value_amount = Column(DECIMAL(15, 4), nullable=False, default=Decimal("100"))
    nb_days = Column(Integer, nullable=False, default=0, comment="账期天数")

    payment_term = relationship("PaymentTerm", back_populates="due_terms")
