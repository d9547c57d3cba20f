"""
测试公共夹具

- 使用临时 SQLite 文件库，导入应用前通过环境变量切换
- 每个测试结束后清空所有表
- 工厂函数用同步会话直接写库，接口调用走 TestClient
"""

import os
import tempfile
from decimal import Decimal
from typing import Iterable, Optional

import pytest

_TMP_DIR = tempfile.mkdtemp(prefix="erp-tests-")
os.environ["SQLITE_DATABASE_URI"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["LOG_DIR"] = os.path.join(_TMP_DIR, "logs")
os.environ["STOCK_SCHEDULER_ENABLED"] = "false"

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from erp.core.config import settings  # noqa: E402
from erp.core.security import create_access_token, get_password_hash  # noqa: E402
from erp.db.base import Base  # noqa: E402
from erp.main import app  # noqa: E402
from erp.models import (  # noqa: E402
    Role, User, Currency, Company, UOMCategory, UOM, Partner, Category, Product,
    Location, OperationType, ProductQuantity,
)
from erp.models.enums import LocationType, ResourcePermission  # noqa: E402

API = settings.API_V1_STR

sync_engine = create_engine(settings.SQLITE_DATABASE_URI)
Base.metadata.create_all(sync_engine)


@pytest.fixture(autouse=True)
def _clean_tables():
    yield
    with sync_engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def db() -> Session:
    session = Session(sync_engine, expire_on_commit=False)
    yield session
    session.close()


# ===== 工厂 =====

def create_company(db: Session, name: str = "Acme") -> Company:
    currency = db.query(Currency).filter_by(name="USD").first()
    if currency is None:
        currency = Currency(name="USD", symbol="$", full_name="US Dollar")
        db.add(currency)
        db.flush()
    company = Company(name=name, currency_id=currency.id)
    db.add(company)
    db.commit()
    return company


def create_user(
    db: Session,
    permissions: Iterable[str] = (),
    email: str = "user@example.com",
    resource_permission: str = ResourcePermission.GLOBAL.value,
    company: Optional[Company] = None,
) -> User:
    user = User(
        name=email.split("@")[0],
        email=email,
        password=get_password_hash("password123"),
        resource_permission=resource_permission,
        default_company_id=company.id if company else None,
    )
    role = Role(name=f"Role for {email}", code=f"role_{email}", permissions=list(permissions))
    user.roles = [role]
    db.add(user)
    db.commit()
    return user


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


def acting_as(db: Session, *permissions: str, **kwargs) -> dict:
    """创建拥有指定权限的用户并返回认证头"""
    return auth_headers(create_user(db, permissions, **kwargs))


def create_uom(db: Session, name: str = "Units", factor: float = 1.0, category: UOMCategory = None) -> UOM:
    if category is None:
        category = db.query(UOMCategory).filter_by(name="Unit").first()
        if category is None:
            category = UOMCategory(name="Unit")
            db.add(category)
            db.flush()
    uom = UOM(name=name, factor=factor, rounding=0.01, category_id=category.id)
    db.add(uom)
    db.commit()
    return uom


def create_partner(db: Session, name: str = "Customer A") -> Partner:
    partner = Partner(name=name)
    db.add(partner)
    db.commit()
    return partner


def create_product(db: Session, name: str = "Widget", price: str = "10", **kwargs) -> Product:
    category = db.query(Category).first()
    if category is None:
        category = Category(name="All")
        category.full_name = "All"
        db.add(category)
        db.flush()
    if "uom_id" not in kwargs:
        kwargs["uom_id"] = create_uom(db).id
    product = Product(name=name, price=Decimal(price), category_id=category.id, **kwargs)
    db.add(product)
    db.commit()
    return product


def create_location(db: Session, name: str, type: str = LocationType.INTERNAL.value, **kwargs) -> Location:
    location = Location(name=name, type=type, **kwargs)
    location.compute_paths(None)
    db.add(location)
    db.commit()
    return location


def create_operation_type(db: Session, type: str, source: Location, destination: Location,
                          sequence_code: str = None, **kwargs) -> OperationType:
    operation_type = OperationType(
        name=f"{type} type", type=type, sequence_code=sequence_code or type[:3].upper(),
        source_location_id=source.id, destination_location_id=destination.id, **kwargs
    )
    db.add(operation_type)
    db.commit()
    return operation_type


def create_quant(db: Session, product: Product, location: Location, quantity: str) -> ProductQuantity:
    quant = ProductQuantity(
        product_id=product.id, location_id=location.id,
        quantity=Decimal(quantity), reserved_quantity=Decimal("0")
    )
    db.add(quant)
    db.commit()
    return quant
