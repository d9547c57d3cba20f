"""作业类型"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from erp.db.base import Base, SoftDeleteMixin


class OperationType(SoftDeleteMixin, Base):
    """作业类型（收货 / 发货 / 内部调拨 / 直运）

    sequence_code 用于作业编号：{仓库简码}/{sequence_code}/{五位序号}
    """
    __tablename__ = "inventories_operation_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, comment="名称")
    type = Column(String(20), nullable=False, index=True, comment="incoming/outgoing/internal/dropship")
    sequence_code = Column(String(10), nullable=False, comment="编号前缀")
    sequence = Column(Integer, default=10)
    reservation_method = Column(String(20), default="at_confirm")
    use_create_lots = Column(Boolean, default=False)
    use_existing_lots = Column(Boolean, default=True)
    create_backorder = Column(String(20), default="ask")

    source_location_id = Column(Integer, ForeignKey("inventories_locations.id"), nullable=True)
    destination_location_id = Column(Integer, ForeignKey("inventories_locations.id"), nullable=True)
    return_operation_type_id = Column(Integer, ForeignKey("inventories_operation_types.id"), nullable=True)
    warehouse_id = Column(Integer, ForeignKey("inventories_warehouses.id"), nullable=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)

    creator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    source_location = relationship("Location", foreign_keys=[source_location_id])
    destination_location = relationship("Location", foreign_keys=[destination_location_id])
    return_operation_type = relationship("OperationType", remote_side=[id], foreign_keys=[return_operation_type_id])
    warehouse = relationship("Warehouse", foreign_keys=[warehouse_id])

    def __repr__(self):
        return f"<OperationType {self.sequence_code} ({self.type})>"
