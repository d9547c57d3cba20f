"""批次/序列号"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from erp.db.base import Base


class Lot(Base):
    __tablename__ = "inventories_lots"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True, comment="批次号")
    reference = Column(String(100), comment="内部参考")
    description = Column(Text)
    product_id = Column(Integer, ForeignKey("products_products.id"), nullable=False, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)

    creator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    product = relationship("Product", foreign_keys=[product_id])

    def __repr__(self):
        return f"<Lot {self.name}>"
