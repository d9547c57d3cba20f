"""商品分类模型 - 支持多层级树形结构"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from erp.db.base import Base


class Category(Base):
    """商品分类

    支持多层级树形结构，full_name 保存完整路径，如：
    - All
    - All / Saleable
    - All / Saleable / Office Furniture
    """
    __tablename__ = "products_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, comment="分类名称")
    full_name = Column(String(500), comment="完整路径")
    parent_path = Column(String(255), comment="祖先ID路径，如 1/4/")
    parent_id = Column(Integer, ForeignKey("products_categories.id"), nullable=True, comment="父分类ID")

    creator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 关系
    parent = relationship("Category", remote_side=[id], foreign_keys=[parent_id])

    def __repr__(self):
        return f"<Category {self.full_name or self.name}>"

    def compute_paths(self, parent: "Category" = None):
        """根据父分类计算完整路径（调用方负责传入已加载的父分类）"""
        if parent is not None:
            self.full_name = f"{parent.full_name or parent.name} / {self.name}"
            self.parent_path = f"{parent.parent_path or ''}{parent.id}/"
        else:
            self.full_name = self.name
            self.parent_path = ""
