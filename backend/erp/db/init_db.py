"""
数据库初始化
- 创建所有表
- 写入基础数据：币种、公司、计量单位、供应商/客户库位、超级管理员
"""

import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.config import settings
from erp.core.security import get_password_hash
from erp.db.base import Base
from erp.db.session import SessionLocal, engine
from erp.models.enums import LocationType, UOMType
from erp.models.inventories.location import Location
from erp.models.security.role import Role, SUPER_ADMIN_CODE
from erp.models.security.user import User
from erp.models.support.company import Company, Currency
from erp.models.support.uom import UOM, UOMCategory

# 导入所有模型，确保表能被创建
import erp.models  # noqa: F401

logger = logging.getLogger(__name__)

BASE_LOCATIONS = {
    LocationType.SUPPLIER.value: "Vendors",
    LocationType.CUSTOMER.value: "Customers",
}


async def ensure_tables_exist() -> None:
    """
    确保数据库表存在（应用启动时调用）
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_base_data(db: AsyncSession) -> None:
    """写入基础数据，已存在的跳过"""
    currency = (await db.execute(
        select(Currency).where(Currency.name == settings.DEFAULT_CURRENCY)
    )).scalar_one_or_none()
    if currency is None:
        currency = Currency(name=settings.DEFAULT_CURRENCY, symbol="$", full_name=settings.DEFAULT_CURRENCY)
        db.add(currency)
        await db.flush()

    company = (await db.execute(select(Company).order_by(Company.id).limit(1))).scalar_one_or_none()
    if company is None:
        company = Company(name=settings.DEFAULT_COMPANY_NAME, currency_id=currency.id)
        db.add(company)
        await db.flush()
        logger.info(f"🏢 创建默认公司 {company.name}")

    category = (await db.execute(select(UOMCategory).where(UOMCategory.name == "Unit"))).scalar_one_or_none()
    if category is None:
        category = UOMCategory(name="Unit")
        db.add(category)
        await db.flush()
        db.add(UOM(name="Units", type=UOMType.REFERENCE.value, factor=1.0, rounding=0.01, category_id=category.id))

    for location_type, name in BASE_LOCATIONS.items():
        exists = (await db.execute(
            select(Location.id).where(Location.type == location_type).limit(1)
        )).scalar_one_or_none()
        if exists is None:
            location = Location(name=name, type=location_type)
            location.compute_paths(None)
            db.add(location)

    role = (await db.execute(select(Role).where(Role.code == SUPER_ADMIN_CODE))).scalar_one_or_none()
    if role is None:
        role = Role(name="Super Admin", code=SUPER_ADMIN_CODE, permissions=[], is_system=True)
        db.add(role)
        await db.flush()

    admin = (await db.execute(
        select(User).where(User.email == settings.FIRST_SUPERUSER_EMAIL)
    )).scalar_one_or_none()
    if admin is None:
        admin = User(
            name=settings.FIRST_SUPERUSER_NAME,
            email=settings.FIRST_SUPERUSER_EMAIL,
            password=get_password_hash(settings.FIRST_SUPERUSER_PASSWORD),
            default_company_id=company.id,
        )
        admin.roles = [role]
        db.add(admin)
        logger.info(f"👤 创建超级管理员 {admin.email}")

    await db.commit()


async def init_db() -> None:
    """
    初始化数据库 - 创建所有表并写入基础数据
    """
    await ensure_tables_exist()
    async with SessionLocal() as db:
        await seed_base_data(db)
    logger.info("数据库初始化完成")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(init_db())
