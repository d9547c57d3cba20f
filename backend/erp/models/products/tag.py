"""商品标签"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Table
from erp.db.base import Base, SoftDeleteMixin


# 商品-标签关联表
product_tags = Table(
    "products_product_tag",
    Base.metadata,
    Column("product_id", Integer, ForeignKey("products_products.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("products_tags.id", ondelete="CASCADE"), primary_key=True),
)


class Tag(SoftDeleteMixin, Base):
    __tablename__ = "products_tags"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True, comment="标签名称")
    color = Column(String(20), comment="颜色")

    creator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Tag {self.name}>"
