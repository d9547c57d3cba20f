"""员工"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from erp.db.base import Base, SoftDeleteMixin
from erp.models.enums import EmployeeType


class Employee(SoftDeleteMixin, Base):
    """员工

    parent_id 为直属上级，coach_id 为导师，二者都不能是本人
    """
    __tablename__ = "employees_employees"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150), nullable=False, index=True, comment="姓名")
    job_title = Column(String(100), comment="职位")
    work_email = Column(String(150), index=True, comment="工作邮箱")
    work_phone = Column(String(50))
    mobile_phone = Column(String(50))
    employee_type = Column(String(20), nullable=False, default=EmployeeType.EMPLOYEE.value)
    gender = Column(String(10))
    marital = Column(String(20), default="single")
    birthday = Column(Date)
    departure_date = Column(Date, comment="离职日期")
    departure_description = Column(Text, comment="离职说明")
    is_active = Column(Boolean, default=True)

    department_id = Column(Integer, ForeignKey("employees_departments.id"), nullable=True, index=True)
    parent_id = Column(Integer, ForeignKey("employees_employees.id"), nullable=True, comment="直属上级")
    coach_id = Column(Integer, ForeignKey("employees_employees.id"), nullable=True, comment="导师")
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, comment="关联用户")
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)

    creator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    department = relationship("Department", foreign_keys=[department_id])
    parent = relationship("Employee", remote_side=[id], foreign_keys=[parent_id])
    coach = relationship("Employee", remote_side=[id], foreign_keys=[coach_id])
    user = relationship("User", foreign_keys=[user_id])
    creator = relationship("User", foreign_keys=[creator_id])

    def __repr__(self):
        return f"<Employee {self.id}: {self.name}>"
