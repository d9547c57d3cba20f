"""商品模型"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from erp.db.base import Base, SoftDeleteMixin
from erp.models.enums import ProductType, ProductTracking


class Product(SoftDeleteMixin, Base):
    """商品

    - type: goods（实物）/ service（服务）/ combo（组合）
    - is_configurable: 可配置商品只是变体模板，不能直接用于库存作业
    - parent_id: 变体指向其模板商品
    """
    __tablename__ = "products_products"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String(20), nullable=False, default=ProductType.GOODS.value, comment="商品类型")
    name = Column(String(200), nullable=False, index=True, comment="商品名称")
    reference = Column(String(100), index=True, comment="内部参考编码")
    barcode = Column(String(100), comment="条码")
    description = Column(Text, comment="描述")
    description_sale = Column(Text, comment="销售描述")
    description_purchase = Column(Text, comment="采购描述")

    price = Column(DECIMAL(15, 4), nullable=False, default=Decimal("0"), comment="销售价")
    cost = Column(DECIMAL(15, 4), default=Decimal("0"), comment="成本价")
    weight = Column(DECIMAL(15, 4), comment="重量")
    volume = Column(DECIMAL(15, 4), comment="体积")

    enable_sales = Column(Boolean, default=True, comment="可销售")
    enable_purchase = Column(Boolean, default=True, comment="可采购")
    is_storable = Column(Boolean, default=True, comment="是否记库存")
    is_configurable = Column(Boolean, default=False, comment="是否可配置（变体模板）")
    tracking = Column(String(20), default=ProductTracking.QTY.value, comment="追踪方式 qty/lot/serial")

    category_id = Column(Integer, ForeignKey("products_categories.id"), nullable=False, index=True)
    uom_id = Column(Integer, ForeignKey("unit_of_measures.id"), nullable=True, comment="库存单位")
    uom_po_id = Column(Integer, ForeignKey("unit_of_measures.id"), nullable=True, comment="采购单位")
    parent_id = Column(Integer, ForeignKey("products_products.id"), nullable=True, comment="变体模板")
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)

    creator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 关系
    category = relationship("Category", foreign_keys=[category_id])
    uom = relationship("UOM", foreign_keys=[uom_id])
    uom_po = relationship("UOM", foreign_keys=[uom_po_id])
    parent = relationship("Product", remote_side=[id], foreign_keys=[parent_id])
    tags = relationship("Tag", secondary="products_product_tag")

    def __repr__(self):
        return f"<Product {self.id}: {self.name}>"
