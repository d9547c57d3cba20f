"""部门"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from erp.db.base import Base, SoftDeleteMixin


class Department(SoftDeleteMixin, Base):
    __tablename__ = "employees_departments"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, comment="部门名称")
    complete_name = Column(String(500), comment="完整路径，如 Sales / Export")
    color = Column(String(20))

    parent_id = Column(Integer, ForeignKey("employees_departments.id"), nullable=True)
    # 部门与员工互相引用，外键延迟创建
    manager_id = Column(Integer, ForeignKey("employees_employees.id", use_alter=True), nullable=True, comment="部门经理")
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)

    creator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    parent = relationship("Department", remote_side=[id], foreign_keys=[parent_id])
    manager = relationship("Employee", foreign_keys=[manager_id], post_update=True)

    def __repr__(self):
        return f"<Department {self.complete_name or self.name}>"

    def compute_complete_name(self, parent: "Department" = None):
        if parent is not None:
            self.complete_name = f"{parent.complete_name or parent.name} / {self.name}"
        else:
            self.complete_name = self.name
