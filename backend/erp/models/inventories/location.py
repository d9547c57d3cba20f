"""库位模型"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from erp.db.base import Base, SoftDeleteMixin
from erp.models.enums import LocationType


class Location(SoftDeleteMixin, Base):
    """库位

    只有 internal 类型的库位持有库存（quant）；
    supplier / customer / inventory 等是虚拟库位，只作为移动的来源或去向。
    """
    __tablename__ = "inventories_locations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, comment="库位名称")
    full_name = Column(String(500), index=True, comment="完整路径，如 WH/Stock")
    type = Column(String(20), nullable=False, default=LocationType.INTERNAL.value, index=True)
    description = Column(Text)
    barcode = Column(String(100))
    parent_path = Column(String(255))
    is_scrap = Column(Boolean, default=False)
    is_replenish = Column(Boolean, default=False)

    parent_id = Column(Integer, ForeignKey("inventories_locations.id"), nullable=True)
    warehouse_id = Column(Integer, ForeignKey("inventories_warehouses.id"), nullable=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)

    creator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    parent = relationship("Location", remote_side=[id], foreign_keys=[parent_id])
    warehouse = relationship("Warehouse", foreign_keys=[warehouse_id])

    def __repr__(self):
        return f"<Location {self.full_name or self.name} ({self.type})>"

    @property
    def is_internal(self) -> bool:
        return self.type == LocationType.INTERNAL.value

    def compute_paths(self, parent: "Location" = None):
        if parent is not None:
            self.full_name = f"{parent.full_name or parent.name}/{self.name}"
            self.parent_path = f"{parent.parent_path or ''}{parent.id}/"
        else:
            self.full_name = self.name
            self.parent_path = ""
