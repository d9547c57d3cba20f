"""仓库模型"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from erp.db.base import Base, SoftDeleteMixin


class Warehouse(SoftDeleteMixin, Base):
    """仓库

    创建仓库时会同时创建：
    - 视图库位（code）
    - 库存库位（code/Stock）
    - 入库 / 出库 / 内部调拨 三种作业类型
    """
    __tablename__ = "inventories_warehouses"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True, comment="仓库名称")
    code = Column(String(10), nullable=False, unique=True, comment="仓库简码")
    sequence = Column(Integer, default=10)

    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    partner_id = Column(Integer, ForeignKey("partners_partners.id"), nullable=True, comment="地址")

    # 与库位、作业类型互相引用，外键延迟创建
    view_location_id = Column(Integer, ForeignKey("inventories_locations.id", use_alter=True), nullable=True)
    lot_stock_location_id = Column(Integer, ForeignKey("inventories_locations.id", use_alter=True), nullable=True)
    in_type_id = Column(Integer, ForeignKey("inventories_operation_types.id", use_alter=True), nullable=True)
    out_type_id = Column(Integer, ForeignKey("inventories_operation_types.id", use_alter=True), nullable=True)
    internal_type_id = Column(Integer, ForeignKey("inventories_operation_types.id", use_alter=True), nullable=True)

    creator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    company = relationship("Company", foreign_keys=[company_id])
    partner = relationship("Partner", foreign_keys=[partner_id])
    view_location = relationship("Location", foreign_keys=[view_location_id], post_update=True)
    lot_stock_location = relationship("Location", foreign_keys=[lot_stock_location_id], post_update=True)

    def __repr__(self):
        return f"<Warehouse {self.code}: {self.name}>"
