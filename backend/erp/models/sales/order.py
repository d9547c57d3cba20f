"""
销售订单模型

状态：draft（报价）→ sent（已发送）→ sale（已确认）；任意未完成状态可取消
确认时为可库存商品生成出库作业（sale_order_id 关联）
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, DECIMAL, Table
from sqlalchemy.orm import relationship
from erp.db.base import Base
from erp.models.enums import SaleOrderState
from erp.models.accounts.tax import compute_all, money


sale_order_line_taxes = Table(
    "sales_order_line_taxes",
    Base.metadata,
    Column("order_line_id", Integer, ForeignKey("sales_order_lines.id", ondelete="CASCADE"), primary_key=True),
    Column("tax_id", Integer, ForeignKey("accounts_taxes.id", ondelete="CASCADE"), primary_key=True),
)


class SaleOrder(Base):
    __tablename__ = "sales_orders"

    id = Column(Integer, primary_key=True, index=True)
    # 订单号：S + 五位序号，如 S00001
    name = Column(String(50), unique=True, nullable=False, index=True, comment="订单号")
    state = Column(String(20), nullable=False, default=SaleOrderState.DRAFT.value, index=True)
    origin = Column(String(255), comment="来源")
    client_order_ref = Column(String(100), comment="客户参考")
    date_order = Column(DateTime, nullable=False, default=datetime.utcnow, comment="下单时间")
    validity_date = Column(Date, comment="报价有效期")
    commitment_date = Column(DateTime, comment="承诺交货日期")
    note = Column(Text)

    partner_id = Column(Integer, ForeignKey("partners_partners.id"), nullable=False, index=True)
    currency_id = Column(Integer, ForeignKey("currencies.id"), nullable=False)
    payment_term_id = Column(Integer, ForeignKey("accounts_payment_terms.id"), nullable=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, comment="销售员")
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)

    amount_untaxed = Column(DECIMAL(15, 2), default=Decimal("0.00"))
    amount_tax = Column(DECIMAL(15, 2), default=Decimal("0.00"))
    amount_total = Column(DECIMAL(15, 2), default=Decimal("0.00"))

    creator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    partner = relationship("Partner", foreign_keys=[partner_id])
    currency = relationship("Currency", foreign_keys=[currency_id])
    user = relationship("User", foreign_keys=[user_id])
    creator = relationship("User", foreign_keys=[creator_id])
    lines = relationship(
        "SaleOrderLine", back_populates="order",
        cascade="all, delete-orphan", order_by="SaleOrderLine.sequence"
    )
    deliveries = relationship("Operation", foreign_keys="Operation.sale_order_id", order_by="Operation.id")

    def __repr__(self):
        return f"<SaleOrder {self.name} ({self.state})>"

    def recalculate_totals(self):
        """重新计算汇总金额"""
        for line in self.lines:
            line.recalculate()
        self.amount_untaxed = sum((money(l.price_subtotal) for l in self.lines), Decimal("0.00"))
        self.amount_total = sum((money(l.price_total) for l in self.lines), Decimal("0.00"))
        self.amount_tax = self.amount_total - self.amount_untaxed


class SaleOrderLine(Base):
    __tablename__ = "sales_order_lines"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("sales_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    sequence = Column(Integer, default=10)
    name = Column(String(255))

    product_id = Column(Integer, ForeignKey("products_products.id"), nullable=False)
    uom_id = Column(Integer, ForeignKey("unit_of_measures.id"), nullable=True)
    product_uom_qty = Column(DECIMAL(15, 4), nullable=False, default=Decimal("1"), comment="订购数量")
    qty_delivered = Column(DECIMAL(15, 4), default=Decimal("0"), comment="已交货数量")
    price_unit = Column(DECIMAL(15, 4), nullable=False, default=Decimal("0"))
    discount = Column(DECIMAL(8, 4), default=Decimal("0"))
    price_subtotal = Column(DECIMAL(15, 2), default=Decimal("0.00"))
    price_total = Column(DECIMAL(15, 2), default=Decimal("0.00"))

    created_at = Column(DateTime, default=datetime.utcnow)

    order = relationship("SaleOrder", back_populates="lines")
    product = relationship("Product", foreign_keys=[product_id])
    uom = relationship("UOM", foreign_keys=[uom_id])
    taxes = relationship("Tax", secondary=sale_order_line_taxes)

    def recalculate(self):
        discount = Decimal(str(self.discount or 0))
        price = Decimal(str(self.price_unit or 0)) * (1 - discount / Decimal("100"))
        result = compute_all(list(self.taxes), price, self.product_uom_qty)
        self.price_subtotal = result["total_excluded"]
        self.price_total = result["total_included"]
