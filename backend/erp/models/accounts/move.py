"""
会计凭证模型

一张表承载四类单据，由 move_type 区分：
- out_invoice: 客户发票（INV）
- in_invoice: 供应商账单（BILL）
- out_refund: 客户贷项通知单（RINV）
- in_refund: 供应商退款（RBILL）

状态流转：draft → posted → (reset) draft，draft → cancel
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, Date, DateTime, ForeignKey, DECIMAL, Table
)
from sqlalchemy.orm import relationship
from erp.db.base import Base
from erp.models.enums import MoveType, MoveState, PaymentState
from erp.models.accounts.tax import compute_all, money


# 单据类型 → 编号前缀
MOVE_PREFIXES = {
    MoveType.OUT_INVOICE.value: "INV",
    MoveType.IN_INVOICE.value: "BILL",
    MoveType.OUT_REFUND.value: "RINV",
    MoveType.IN_REFUND.value: "RBILL",
    MoveType.ENTRY.value: "MISC",
}

# 冲销时生成的单据类型
REVERSAL_TYPES = {
    MoveType.OUT_INVOICE.value: MoveType.OUT_REFUND.value,
    MoveType.IN_INVOICE.value: MoveType.IN_REFUND.value,
}


move_line_taxes = Table(
    "accounts_move_line_taxes",
    Base.metadata,
    Column("move_line_id", Integer, ForeignKey("accounts_move_lines.id", ondelete="CASCADE"), primary_key=True),
    Column("tax_id", Integer, ForeignKey("accounts_taxes.id", ondelete="CASCADE"), primary_key=True),
)


class Move(Base):
    __tablename__ = "accounts_moves"

    id = Column(Integer, primary_key=True, index=True)

    # 编号在过账时生成，草稿为空
    # 格式：{前缀}/{年份}/{五位序号}，如 BILL/2024/00001
    name = Column(String(64), index=True, comment="单据编号")
    ref = Column(String(255), comment="参考")
    move_type = Column(String(20), nullable=False, index=True, comment="单据类型")
    state = Column(String(20), nullable=False, default=MoveState.DRAFT.value, index=True, comment="状态")
    payment_state = Column(String(20), default=PaymentState.NOT_PAID.value, comment="付款状态")
    checked = Column(Boolean, default=False, comment="已复核")
    posted_before = Column(Boolean, default=False, comment="曾经过账")

    date = Column(Date, comment="会计日期")
    invoice_date = Column(Date, comment="发票日期")
    invoice_date_due = Column(Date, comment="到期日")
    invoice_origin = Column(String(255), comment="来源单据")
    narration = Column(Text, comment="条款与说明")

    partner_id = Column(Integer, ForeignKey("partners_partners.id"), nullable=True, index=True)
    currency_id = Column(Integer, ForeignKey("currencies.id"), nullable=False)
    journal_id = Column(Integer, ForeignKey("accounts_journals.id"), nullable=False)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)
    invoice_payment_term_id = Column(Integer, ForeignKey("accounts_payment_terms.id"), nullable=True)
    invoice_user_id = Column(Integer, ForeignKey("users.id"), nullable=True, comment="销售员/采购员")
    reversed_entry_id = Column(Integer, ForeignKey("accounts_moves.id"), nullable=True, comment="被冲销的单据")

    # 金额汇总（由明细计算）
    amount_untaxed = Column(DECIMAL(15, 2), default=Decimal("0.00"))
    amount_tax = Column(DECIMAL(15, 2), default=Decimal("0.00"))
    amount_total = Column(DECIMAL(15, 2), default=Decimal("0.00"))
    amount_residual = Column(DECIMAL(15, 2), default=Decimal("0.00"))

    creator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 关系
    partner = relationship("Partner", foreign_keys=[partner_id])
    currency = relationship("Currency", foreign_keys=[currency_id])
    journal = relationship("Journal", foreign_keys=[journal_id])
    invoice_payment_term = relationship("PaymentTerm", foreign_keys=[invoice_payment_term_id])
    invoice_user = relationship("User", foreign_keys=[invoice_user_id])
    creator = relationship("User", foreign_keys=[creator_id])
    reversed_entry = relationship("Move", remote_side=[id], foreign_keys=[reversed_entry_id])
    lines = relationship(
        "MoveLine", back_populates="move",
        cascade="all, delete-orphan", order_by="MoveLine.sequence"
    )

    def __repr__(self):
        return f"<Move {self.name or self.id} ({self.move_type}, {self.state})>"

    @property
    def is_draft(self) -> bool:
        return self.state == MoveState.DRAFT.value

    @property
    def is_posted(self) -> bool:
        return self.state == MoveState.POSTED.value

    @property
    def is_cancelled(self) -> bool:
        return self.state == MoveState.CANCEL.value

    @property
    def sequence_prefix(self) -> str:
        return MOVE_PREFIXES.get(self.move_type, "MISC")

    def recalculate_totals(self):
        """重新计算明细小计与单据汇总金额"""
        for line in self.lines:
            line.recalculate()
        self.amount_untaxed = sum((money(l.price_subtotal) for l in self.lines), Decimal("0.00"))
        self.amount_total = sum((money(l.price_total) for l in self.lines), Decimal("0.00"))
        self.amount_tax = self.amount_total - self.amount_untaxed
        # 不处理付款核销，未付金额等于总额
        self.amount_residual = self.amount_total


class MoveLine(Base):
    """凭证明细（发票行）"""
    __tablename__ = "accounts_move_lines"

    id = Column(Integer, primary_key=True, index=True)
    move_id = Column(Integer, ForeignKey("accounts_moves.id", ondelete="CASCADE"), nullable=False, index=True)
    sequence = Column(Integer, default=10)
    display_type = Column(String(20), default="product")
    name = Column(String(255), comment="描述")

    product_id = Column(Integer, ForeignKey("products_products.id"), nullable=True)
    uom_id = Column(Integer, ForeignKey("unit_of_measures.id"), nullable=True)
    account_id = Column(Integer, ForeignKey("accounts_accounts.id"), nullable=True)

    quantity = Column(DECIMAL(15, 4), nullable=False, default=Decimal("1"))
    price_unit = Column(DECIMAL(15, 4), nullable=False, default=Decimal("0"))
    discount = Column(DECIMAL(8, 4), default=Decimal("0"), comment="折扣%")
    price_subtotal = Column(DECIMAL(15, 2), default=Decimal("0.00"), comment="不含税小计")
    price_total = Column(DECIMAL(15, 2), default=Decimal("0.00"), comment="含税合计")

    created_at = Column(DateTime, default=datetime.utcnow)

    move = relationship("Move", back_populates="lines")
    product = relationship("Product", foreign_keys=[product_id])
    uom = relationship("UOM", foreign_keys=[uom_id])
    taxes = relationship("Tax", secondary=move_line_taxes)

    def recalculate(self):
        discount = Decimal(str(self.discount or 0))
        price = Decimal(str(self.price_unit or 0)) * (1 - discount / Decimal("100"))
        result = compute_all(list(self.taxes), price, self.quantity)
        self.price_subtotal = result["total_excluded"]
        self.price_total = result["total_included"]
