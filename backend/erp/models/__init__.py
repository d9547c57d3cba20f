# 数据模型
# 按插件划分：security / support / partners / products / accounts / inventories / employees / sales

from erp.models.security.role import Role, user_roles
from erp.models.security.user import User
from erp.models.support.company import Currency, Company
from erp.models.support.uom import UOMCategory, UOM
from erp.models.support.audit_log import AuditLog
from erp.models.partners.partner import Partner
from erp.models.products.category import Category
from erp.models.products.tag import Tag, product_tags
from erp.models.products.product import Product
from erp.models.accounts.account import Account, Journal
from erp.models.accounts.tax import TaxGroup, Tax, TaxPartitionLine
from erp.models.accounts.payment_term import PaymentTerm, PaymentDueTerm
from erp.models.accounts.move import Move, MoveLine
from erp.models.inventories.warehouse import Warehouse
from erp.models.inventories.location import Location
from erp.models.inventories.operation_type import OperationType
from erp.models.inventories.route import Route, Rule
from erp.models.inventories.lot import Lot
from erp.models.inventories.package import PackageType, Package
from erp.models.inventories.operation import Operation
from erp.models.inventories.move import StockMove
from erp.models.inventories.product_quantity import ProductQuantity
from erp.models.inventories.scrap import Scrap
from erp.models.employees.department import Department
from erp.models.employees.employee import Employee
from erp.models.sales.order import SaleOrder, SaleOrderLine

__all__ = [
    "Role",
    "User",
    "Currency",
    "Company",
    "UOMCategory",
    "UOM",
    "AuditLog",
    "Partner",
    "Category",
    "Tag",
    "Product",
    "Account",
    "Journal",
    "TaxGroup",
    "Tax",
    "TaxPartitionLine",
    "PaymentTerm",
    "PaymentDueTerm",
    "Move",
    "MoveLine",
    "Warehouse",
    "Location",
    "OperationType",
    "Route",
    "Rule",
    "Lot",
    "PackageType",
    "Package",
    "Operation",
    "StockMove",
    "ProductQuantity",
    "Scrap",
    "Department",
    "Employee",
    "SaleOrder",
    "SaleOrderLine",
]
