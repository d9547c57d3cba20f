"""
库存作业模型

作业（收货、发货、内部调拨、直运）由若干库存移动组成，
作业状态由其移动的状态推导，见 compute_state。
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from erp.db.base import Base
from erp.models.enums import OperationState, StockMoveState, ShippingPolicy


class Operation(Base):
    __tablename__ = "inventories_operations"

    id = Column(Integer, primary_key=True, index=True)

    # 编号：{仓库简码}/{作业类型编号前缀}/{五位序号}，如 WH/IN/00001
    name = Column(String(100), index=True, comment="作业编号")
    origin = Column(String(255), comment="来源单据")
    description = Column(Text)
    move_type = Column(String(20), nullable=False, default=ShippingPolicy.DIRECT.value, comment="direct/one")
    state = Column(String(20), nullable=False, default=OperationState.DRAFT.value, index=True)
    is_locked = Column(Boolean, default=True)

    scheduled_at = Column(DateTime, comment="计划日期")
    deadline = Column(DateTime)
    closed_at = Column(DateTime, comment="完成时间")

    partner_id = Column(Integer, ForeignKey("partners_partners.id"), nullable=True)
    operation_type_id = Column(Integer, ForeignKey("inventories_operation_types.id"), nullable=False, index=True)
    source_location_id = Column(Integer, ForeignKey("inventories_locations.id"), nullable=False)
    destination_location_id = Column(Integer, ForeignKey("inventories_locations.id"), nullable=False)
    return_id = Column(Integer, ForeignKey("inventories_operations.id"), nullable=True, comment="退回自")
    sale_order_id = Column(Integer, ForeignKey("sales_orders.id"), nullable=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, comment="负责人")
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)

    creator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 关系
    partner = relationship("Partner", foreign_keys=[partner_id])
    operation_type = relationship("OperationType", foreign_keys=[operation_type_id])
    source_location = relationship("Location", foreign_keys=[source_location_id])
    destination_location = relationship("Location", foreign_keys=[destination_location_id])
    return_of = relationship("Operation", remote_side=[id], foreign_keys=[return_id])
    user = relationship("User", foreign_keys=[user_id])
    creator = relationship("User", foreign_keys=[creator_id])
    moves = relationship(
        "StockMove", back_populates="operation",
        cascade="all, delete-orphan", order_by="StockMove.id"
    )

    def __repr__(self):
        return f"<Operation {self.name or self.id} ({self.state})>"

    @property
    def is_closed(self) -> bool:
        return self.state in (OperationState.DONE.value, OperationState.CANCELED.value)

    def compute_state(self):
        """根据移动状态推导作业状态"""
        moves = list(self.moves)
        if not moves:
            return
        states = {m.state for m in moves}
        if states == {StockMoveState.CANCELED.value}:
            self.state = OperationState.CANCELED.value
        elif states <= {StockMoveState.DONE.value, StockMoveState.CANCELED.value}:
            self.state = OperationState.DONE.value
        elif StockMoveState.DRAFT.value in states:
            self.state = OperationState.DRAFT.value
        else:
            active = {
                m.state for m in moves
                if m.state not in (StockMoveState.DONE.value, StockMoveState.CANCELED.value)
            }
            reserved = {StockMoveState.ASSIGNED.value, StockMoveState.PARTIALLY_ASSIGNED.value}
            if active == {StockMoveState.ASSIGNED.value}:
                self.state = OperationState.ASSIGNED.value
            elif active & reserved:
                # 尽快发货：部分就绪即可处理；全部就绪后发货：仍需等待
                if self.move_type == ShippingPolicy.DIRECT.value:
                    self.state = OperationState.ASSIGNED.value
                else:
                    self.state = OperationState.CONFIRMED.value
            elif StockMoveState.WAITING.value in active:
                self.state = OperationState.WAITING.value
            else:
                self.state = OperationState.CONFIRMED.value
