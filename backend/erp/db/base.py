"""ORM 基类与通用字段"""

from datetime import datetime

from sqlalchemy import Column, DateTime
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class SoftDeleteMixin:
    """软删除：deleted_at 非空即视为已删除（回收站）"""

    deleted_at = Column(DateTime, nullable=True, index=True, comment="删除时间")

    def soft_delete(self):
        self.deleted_at = datetime.utcnow()

    def restore(self):
        self.deleted_at = None
