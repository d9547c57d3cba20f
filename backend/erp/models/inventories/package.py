"""包裹与包裹类型"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from erp.db.base import Base
from erp.models.enums import PackageUse


class PackageType(Base):
    __tablename__ = "inventories_package_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    barcode = Column(String(100))
    sequence = Column(Integer, default=1)
    length = Column(DECIMAL(12, 4), default=Decimal("0"))
    width = Column(DECIMAL(12, 4), default=Decimal("0"))
    height = Column(DECIMAL(12, 4), default=Decimal("0"))
    base_weight = Column(DECIMAL(12, 4), default=Decimal("0"), comment="空包重量")
    max_weight = Column(DECIMAL(12, 4), default=Decimal("0"), comment="最大承重")
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)

    creator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<PackageType {self.name}>"


class Package(Base):
    __tablename__ = "inventories_packages"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    package_use = Column(String(20), default=PackageUse.DISPOSABLE.value, comment="disposable/reusable")
    pack_date = Column(Date)
    package_type_id = Column(Integer, ForeignKey("inventories_package_types.id"), nullable=True)
    location_id = Column(Integer, ForeignKey("inventories_locations.id"), nullable=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)

    creator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    package_type = relationship("PackageType", foreign_keys=[package_type_id])
    location = relationship("Location", foreign_keys=[location_id])

    def __repr__(self):
        return f"<Package {self.name}>"
