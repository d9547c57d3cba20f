"""
计量单位模型

同一类别内的单位可以相互换算：
- 基准单位 factor = 1
- 较大单位（如"打"）factor < 1，即 1 基准单位 = factor 个该单位
- 较小单位（如"克"相对"千克"）factor > 1
换算公式：qty / 源单位.factor * 目标单位.factor
"""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP, ROUND_UP, ROUND_DOWN
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Float
from sqlalchemy.orm import relationship
from erp.db.base import Base
from erp.models.enums import UOMType


ROUNDING_METHODS = {
    "HALF-UP": ROUND_HALF_UP,
    "UP": ROUND_UP,
    "DOWN": ROUND_DOWN,
}


def float_round(value: float, precision_rounding: float, rounding_method: str = "HALF-UP") -> float:
    """按精度舍入（精度如 0.01、0.001）"""
    if not precision_rounding:
        return value
    step = Decimal(str(precision_rounding))
    steps = (Decimal(str(value)) / step).quantize(Decimal("1"), rounding=ROUNDING_METHODS[rounding_method])
    return float(steps * step)


class UOMCategory(Base):
    __tablename__ = "unit_of_measure_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    uoms = relationship("UOM", back_populates="category")


class UOM(Base):
    __tablename__ = "unit_of_measures"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    type = Column(String(20), nullable=False, default=UOMType.REFERENCE.value, comment="reference/bigger/smaller")
    factor = Column(Float, nullable=False, default=1.0, comment="相对基准单位的比率")
    rounding = Column(Float, nullable=False, default=0.01, comment="舍入精度")
    category_id = Column(Integer, ForeignKey("unit_of_measure_categories.id"), nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = relationship("UOMCategory", back_populates="uoms")

    def __repr__(self):
        return f"<UOM {self.name} x{self.factor}>"

    def compute_quantity(self, qty: float, to_uom: "UOM", round: bool = True,
                         rounding_method: str = "UP") -> float:
        """把本单位下的数量换算为目标单位数量"""
        if to_uom is None or to_uom.id == self.id:
            return float(qty)
        if self.category_id != to_uom.category_id:
            raise ValueError(
                f"The unit of measure {self.name} defined on the order line doesn't belong to "
                f"the same category as the unit of measure {to_uom.name} defined on the product."
            )
        amount = float(qty) / self.factor * to_uom.factor
        if round:
            amount = float_round(amount, to_uom.rounding, rounding_method)
        return amount
