from datetime import datetime
from typing import Set
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from erp.db.base import Base
from erp.models.enums import ResourcePermission


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(150), unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)
    # 数据权限范围：global / group / individual
    resource_permission = Column(String(20), nullable=False, default=ResourcePermission.GLOBAL.value)
    default_company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 角色总是随用户一起加载（权限判断每个请求都要用）
    roles = relationship("Role", secondary="security_user_roles", back_populates="users", lazy="selectin")
    default_company = relationship("Company", foreign_keys=[default_company_id])

    def __repr__(self):
        return f"<User {self.id}: {self.email}>"

    @property
    def is_admin(self) -> bool:
        """检查是否是超级管理员"""
        return any(r.is_super_admin and r.is_active for r in (self.roles or []))

    def get_all_permissions(self) -> Set[str]:
        """获取用户的所有权限（来自所有角色）"""
        if self.is_admin:
            from erp.core.permissions import PERMISSIONS
            return set(PERMISSIONS.keys())
        permissions = set()
        for role in (self.roles or []):
            if role.is_active:
                permissions.update(role.permissions or [])
        return permissions

    def has_permission(self, permission: str) -> bool:
        """检查用户是否有某个权限"""
        return permission in self.get_all_permissions()
