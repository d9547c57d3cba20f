"""库存移动"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from erp.db.base import Base
from erp.models.enums import StockMoveState, ProcureMethod


class StockMove(Base):
    """库存移动

    - product_uom_qty: 需求数量（按移动单位）
    - product_qty: 需求数量换算为商品库存单位
    - quantity: 已预留 / 已处理数量（按移动单位）
    - reserved_qty: 实际在库存上占用的数量（商品库存单位），取消或完成时释放
    """
    __tablename__ = "inventories_moves"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    reference = Column(String(100), index=True, comment="作业编号")
    origin = Column(String(255))
    description_picking = Column(Text)
    state = Column(String(30), nullable=False, default=StockMoveState.DRAFT.value, index=True)
    procure_method = Column(String(20), default=ProcureMethod.MAKE_TO_STOCK.value)
    is_picked = Column(Boolean, default=False)
    is_inventory = Column(Boolean, default=False, comment="盘点调整")

    product_uom_qty = Column(DECIMAL(15, 4), nullable=False, default=Decimal("0"))
    product_qty = Column(DECIMAL(15, 4), default=Decimal("0"))
    quantity = Column(DECIMAL(15, 4), nullable=True)
    reserved_qty = Column(DECIMAL(15, 4), default=Decimal("0"))

    scheduled_at = Column(DateTime)
    deadline = Column(DateTime)

    product_id = Column(Integer, ForeignKey("products_products.id"), nullable=False, index=True)
    uom_id = Column(Integer, ForeignKey("unit_of_measures.id"), nullable=True)
    source_location_id = Column(Integer, ForeignKey("inventories_locations.id"), nullable=False)
    destination_location_id = Column(Integer, ForeignKey("inventories_locations.id"), nullable=False)
    final_location_id = Column(Integer, ForeignKey("inventories_locations.id"), nullable=True)
    operation_id = Column(Integer, ForeignKey("inventories_operations.id", ondelete="CASCADE"), nullable=True, index=True)
    operation_type_id = Column(Integer, ForeignKey("inventories_operation_types.id"), nullable=True)
    origin_returned_move_id = Column(Integer, ForeignKey("inventories_moves.id"), nullable=True)
    scrap_id = Column(Integer, ForeignKey("inventories_scraps.id", ondelete="SET NULL"), nullable=True, index=True)
    warehouse_id = Column(Integer, ForeignKey("inventories_warehouses.id"), nullable=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)

    creator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    operation = relationship("Operation", back_populates="moves")
    product = relationship("Product", foreign_keys=[product_id])
    uom = relationship("UOM", foreign_keys=[uom_id])
    source_location = relationship("Location", foreign_keys=[source_location_id])
    destination_location = relationship("Location", foreign_keys=[destination_location_id])
    final_location = relationship("Location", foreign_keys=[final_location_id])

    def __repr__(self):
        return f"<StockMove {self.id} {self.name} {self.product_uom_qty} ({self.state})>"
