"""库存数量（quant）"""

from datetime import datetime, date
from decimal import Decimal
from sqlalchemy import Column, Integer, Boolean, Date, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from erp.db.base import Base


class ProductQuantity(Base):
    """某商品在某库位（批次、包裹）上的在库数量

    - quantity: 在库数量（商品库存单位）
    - reserved_quantity: 已被作业预留的数量
    - inventory_quantity: 盘点录入的实盘数量，apply 后生效
    """
    __tablename__ = "inventories_product_quantities"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products_products.id"), nullable=False, index=True)
    location_id = Column(Integer, ForeignKey("inventories_locations.id"), nullable=False, index=True)
    lot_id = Column(Integer, ForeignKey("inventories_lots.id"), nullable=True)
    package_id = Column(Integer, ForeignKey("inventories_packages.id"), nullable=True)

    quantity = Column(DECIMAL(15, 4), nullable=False, default=Decimal("0"), comment="在库数量")
    reserved_quantity = Column(DECIMAL(15, 4), nullable=False, default=Decimal("0"), comment="预留数量")
    inventory_quantity = Column(DECIMAL(15, 4), default=Decimal("0"), comment="实盘数量")
    inventory_diff_quantity = Column(DECIMAL(15, 4), default=Decimal("0"), comment="盘点差异")
    inventory_quantity_set = Column(Boolean, default=False, comment="是否已录入实盘")
    inventory_date = Column(Date, comment="计划盘点日期")
    incoming_at = Column(DateTime, comment="最早入库时间")

    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, comment="盘点人")
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    product = relationship("Product", foreign_keys=[product_id])
    location = relationship("Location", foreign_keys=[location_id])
    lot = relationship("Lot", foreign_keys=[lot_id])
    package = relationship("Package", foreign_keys=[package_id])

    def __repr__(self):
        return f"<ProductQuantity p={self.product_id} loc={self.location_id} qty={self.quantity}>"

    @property
    def available_quantity(self) -> Decimal:
        return Decimal(str(self.quantity or 0)) - Decimal(str(self.reserved_quantity or 0))

    def set_inventory_quantity(self, counted, user_id: int = None):
        self.inventory_quantity = Decimal(str(counted))
        self.inventory_diff_quantity = self.inventory_quantity - Decimal(str(self.quantity or 0))
        self.inventory_quantity_set = True
        self.user_id = user_id
        if self.inventory_date is None:
            self.inventory_date = date.today()

    def clear_inventory_quantity(self):
        self.inventory_quantity = Decimal("0")
        self.inventory_diff_quantity = Decimal("0")
        self.inventory_quantity_set = False
        self.user_id = None
