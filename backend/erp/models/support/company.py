"""公司与币种"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from erp.db.base import Base


class Currency(Base):
    __tablename__ = "currencies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(10), unique=True, nullable=False, comment="ISO 代码，如 USD")
    full_name = Column(String(100), comment="全称")
    symbol = Column(String(10), comment="符号")
    rounding = Column(DECIMAL(12, 6), default=0.01, comment="舍入精度")
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Currency {self.name}>"


class Company(Base):
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150), nullable=False)
    email = Column(String(150))
    phone = Column(String(50))
    currency_id = Column(Integer, ForeignKey("currencies.id"), nullable=True)
    parent_id = Column(Integer, ForeignKey("companies.id"), nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    currency = relationship("Currency", foreign_keys=[currency_id])

    def __repr__(self):
        return f"<Company {self.id}: {self.name}>"
