"""报废单"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from erp.db.base import Base
from erp.models.enums import ScrapState


class Scrap(Base):
    """报废单：草稿 → 完成，完成时从来源库位扣减库存并生成一条已完成的移动

    qty 按 uom_id 计量，扣减库存时换算为商品库存单位
    """
    __tablename__ = "inventories_scraps"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True, comment="报废单号")
    origin = Column(String(255), comment="来源单据")
    state = Column(String(20), nullable=False, default=ScrapState.DRAFT.value, index=True)
    qty = Column(DECIMAL(15, 4), nullable=False, default=Decimal("0"))
    should_replenish = Column(Boolean, default=False)
    closed_at = Column(DateTime)

    product_id = Column(Integer, ForeignKey("products_products.id"), nullable=False, index=True)
    uom_id = Column(Integer, ForeignKey("unit_of_measures.id"), nullable=False)
    lot_id = Column(Integer, ForeignKey("inventories_lots.id"), nullable=True)
    package_id = Column(Integer, ForeignKey("inventories_packages.id"), nullable=True)
    partner_id = Column(Integer, ForeignKey("partners_partners.id"), nullable=True, comment="货主")
    operation_id = Column(Integer, ForeignKey("inventories_operations.id", ondelete="SET NULL"), nullable=True)
    source_location_id = Column(Integer, ForeignKey("inventories_locations.id"), nullable=False)
    destination_location_id = Column(Integer, ForeignKey("inventories_locations.id"), nullable=False)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)

    creator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    product = relationship("Product", foreign_keys=[product_id])
    uom = relationship("UOM", foreign_keys=[uom_id])
    source_location = relationship("Location", foreign_keys=[source_location_id])
    destination_location = relationship("Location", foreign_keys=[destination_location_id])

    def __repr__(self):
        return f"<Scrap {self.name} {self.qty} ({self.state})>"
