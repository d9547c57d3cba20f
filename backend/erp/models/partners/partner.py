"""
联系人模型 - 统一的业务伙伴
客户、供应商本质上都是联系人，只是角色不同（customer_rank / supplier_rank）
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from erp.db.base import Base, SoftDeleteMixin
from erp.models.enums import PartnerAccountType


class Partner(SoftDeleteMixin, Base):
    """联系人（个人或公司）"""
    __tablename__ = "partners_partners"

    id = Column(Integer, primary_key=True, index=True)

    # 基本信息
    name = Column(String(150), nullable=False, index=True, comment="名称")
    account_type = Column(String(20), nullable=False, default=PartnerAccountType.INDIVIDUAL.value, comment="individual/company")
    email = Column(String(150), comment="邮箱")
    phone = Column(String(50), comment="电话")
    mobile = Column(String(50), comment="手机")
    website = Column(String(200), comment="网站")
    tax_id = Column(String(50), comment="税号")
    reference = Column(String(100), comment="内部参考")
    job_title = Column(String(100), comment="职位")
    street1 = Column(String(200))
    street2 = Column(String(200))
    city = Column(String(100))
    zip = Column(String(20))
    comment = Column(Text, comment="备注")

    # 角色计数：>0 表示是客户/供应商
    customer_rank = Column(Integer, default=0, comment="客户等级")
    supplier_rank = Column(Integer, default=0, comment="供应商等级")

    # 所属公司联系人（个人挂在公司下）
    parent_id = Column(Integer, ForeignKey("partners_partners.id"), nullable=True, comment="上级联系人")
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, comment="负责人")

    is_active = Column(Boolean, default=True, comment="是否启用")

    # 审计字段
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 关系
    parent = relationship("Partner", remote_side=[id], foreign_keys=[parent_id])

    def __repr__(self):
        return f"<Partner {self.id}: {self.name} ({self.account_type})>"
