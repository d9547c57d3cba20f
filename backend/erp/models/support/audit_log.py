"""
操作日志模型 - 记录系统中的所有重要操作
用于审计追踪和问题排查
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import relationship
from erp.db.base import Base


class AuditLog(Base):
    """操作日志 - 审计追踪

    记录以下类型的操作：
    - 主数据的增删改、恢复、彻底删除
    - 单据的状态变更（确认、取消、冲销、验证、退回等）
    - 库存盘点的应用
    - 用户登录
    """
    __tablename__ = "support_audit_logs"

    id = Column(Integer, primary_key=True, index=True)

    # 操作人
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    # 操作类型
    # create / update / delete / restore / force_delete / login
    # confirm / cancel / reset_to_draft / check / reverse
    # todo / check_availability / validate / return / apply / clear
    action = Column(String(30), nullable=False, index=True, comment="操作类型")

    # 资源类型，如 bill、receipt、warehouse
    resource_type = Column(String(50), nullable=False, index=True, comment="资源类型")

    # 资源ID
    resource_id = Column(Integer, index=True, comment="资源ID")

    # 资源名称/编号（便于查看）
    resource_name = Column(String(150), comment="资源名称")

    # 操作描述
    description = Column(String(500), comment="操作描述")

    # 修改前的值（JSON格式）
    old_value = Column(JSON, comment="修改前")

    # 修改后的值（JSON格式）
    new_value = Column(JSON, comment="修改后")

    # IP地址（可选）
    ip_address = Column(String(50), comment="IP地址")

    # 操作时间
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    # 关系
    user = relationship("User", foreign_keys=[user_id])

    def __repr__(self):
        return f"<AuditLog {self.action} {self.resource_type}:{self.resource_id}>"
