"""会计科目与日记账"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from erp.db.base import Base
from erp.models.enums import AccountType


class Account(Base):
    """会计科目"""
    __tablename__ = "accounts_accounts"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(64), unique=True, nullable=False, index=True, comment="科目编码")
    name = Column(String(150), nullable=False, comment="科目名称")
    account_type = Column(String(40), nullable=False, index=True, comment="科目类型")
    currency_id = Column(Integer, ForeignKey("currencies.id"), nullable=True, comment="外币科目")
    reconcile = Column(Boolean, default=False, comment="允许核销")
    deprecated = Column(Boolean, default=False, comment="已停用")
    non_trade = Column(Boolean, default=False)
    note = Column(Text)

    creator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Account {self.code} {self.name}>"

    @property
    def internal_group(self) -> str:
        """科目大类：asset / liability / equity / income / expense / off"""
        if self.account_type == AccountType.OFF_BALANCE.value:
            return "off"
        return self.account_type.split("_")[0]


class Journal(Base):
    """日记账（销售、采购、银行、现金、杂项）"""
    __tablename__ = "accounts_journals"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, comment="名称")
    code = Column(String(5), nullable=False, comment="简码（最多5位）")
    type = Column(String(20), nullable=False, index=True, comment="sale/purchase/cash/bank/credit_card/general")
    sequence = Column(Integer, default=10)
    color = Column(Integer)
    show_on_dashboard = Column(Boolean, default=True)
    refund_order = Column(Boolean, default=False, comment="退款单独编号")

    default_account_id = Column(Integer, ForeignKey("accounts_accounts.id"), nullable=True)
    currency_id = Column(Integer, ForeignKey("currencies.id"), nullable=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)

    creator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    default_account = relationship("Account", foreign_keys=[default_account_id])

    def __repr__(self):
        return f"<Journal {self.code} ({self.type})>"
