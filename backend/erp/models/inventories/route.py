"""补货路线与规则"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from erp.db.base import Base, SoftDeleteMixin
from erp.models.enums import ProcureMethod, GroupPropagation


class Route(SoftDeleteMixin, Base):
    __tablename__ = "inventories_routes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    sequence = Column(Integer, default=10)
    product_selectable = Column(Boolean, default=True, comment="可在商品上选择")
    product_category_selectable = Column(Boolean, default=False)
    warehouse_selectable = Column(Boolean, default=False)
    packaging_selectable = Column(Boolean, default=False)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)

    creator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    rules = relationship("Rule", back_populates="route")

    def __repr__(self):
        return f"<Route {self.name}>"


class Rule(SoftDeleteMixin, Base):
    """库存规则：定义从哪个库位拉取 / 推送到哪个库位"""
    __tablename__ = "inventories_rules"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    action = Column(String(20), nullable=False, comment="pull/push/pull_push/buy")
    procure_method = Column(String(20), default=ProcureMethod.MAKE_TO_STOCK.value)
    group_propagation_option = Column(String(20), default=GroupPropagation.PROPAGATE.value)
    propagate_cancel = Column(Boolean, default=False)
    auto = Column(String(20), default="manual")
    delay = Column(Integer, default=0, comment="提前期（天）")
    sequence = Column(Integer, default=20)

    operation_type_id = Column(Integer, ForeignKey("inventories_operation_types.id"), nullable=False)
    source_location_id = Column(Integer, ForeignKey("inventories_locations.id"), nullable=False)
    destination_location_id = Column(Integer, ForeignKey("inventories_locations.id"), nullable=False)
    route_id = Column(Integer, ForeignKey("inventories_routes.id"), nullable=False, index=True)
    warehouse_id = Column(Integer, ForeignKey("inventories_warehouses.id"), nullable=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)

    creator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    route = relationship("Route", back_populates="rules")
    operation_type = relationship("OperationType", foreign_keys=[operation_type_id])
    source_location = relationship("Location", foreign_keys=[source_location_id])
    destination_location = relationship("Location", foreign_keys=[destination_location_id])

    def __repr__(self):
        return f"<Rule {self.name} ({self.action})>"
