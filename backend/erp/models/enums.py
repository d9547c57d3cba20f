"""
业务枚举
数据库中以字符串存储，Schema 层用于校验
"""

from enum import Enum


class ResourcePermission(str, Enum):
    """数据权限范围"""
    GLOBAL = "global"          # 全部记录
    GROUP = "group"            # 同公司用户创建/负责的记录
    INDIVIDUAL = "individual"  # 仅本人创建/负责的记录


# ===== 联系人 =====
class PartnerAccountType(str, Enum):
    INDIVIDUAL = "individual"
    COMPANY = "company"


# ===== 商品 =====
class ProductType(str, Enum):
    GOODS = "goods"
    SERVICE = "service"
    COMBO = "combo"


class ProductTracking(str, Enum):
    QTY = "qty"
    LOT = "lot"
    SERIAL = "serial"


class UOMType(str, Enum):
    REFERENCE = "reference"
    BIGGER = "bigger"
    SMALLER = "smaller"


# ===== 财务 =====
class AccountType(str, Enum):
    ASSET_RECEIVABLE = "asset_receivable"
    ASSET_CASH = "asset_cash"
    ASSET_CURRENT = "asset_current"
    ASSET_NON_CURRENT = "asset_non_current"
    ASSET_PREPAYMENTS = "asset_prepayments"
    ASSET_FIXED = "asset_fixed"
    LIABILITY_PAYABLE = "liability_payable"
    LIABILITY_CREDIT_CARD = "liability_credit_card"
    LIABILITY_CURRENT = "liability_current"
    LIABILITY_NON_CURRENT = "liability_non_current"
    EQUITY = "equity"
    EQUITY_UNAFFECTED = "equity_unaffected"
    INCOME = "income"
    INCOME_OTHER = "income_other"
    EXPENSE = "expense"
    EXPENSE_DEPRECIATION = "expense_depreciation"
    EXPENSE_DIRECT_COST = "expense_direct_cost"
    OFF_BALANCE = "off_balance"


class JournalType(str, Enum):
    SALE = "sale"
    PURCHASE = "purchase"
    CASH = "cash"
    BANK = "bank"
    CREDIT_CARD = "credit_card"
    GENERAL = "general"


class TypeTaxUse(str, Enum):
    SALE = "sale"
    PURCHASE = "purchase"
    NONE = "none"


class AmountType(str, Enum):
    PERCENT = "percent"
    FIXED = "fixed"
    DIVISION = "division"


class RepartitionType(str, Enum):
    BASE = "base"
    TAX = "tax"


class DueTermValue(str, Enum):
    PERCENT = "percent"
    FIXED = "fixed"


class MoveType(str, Enum):
    ENTRY = "entry"
    OUT_INVOICE = "out_invoice"
    OUT_REFUND = "out_refund"
    IN_INVOICE = "in_invoice"
    IN_REFUND = "in_refund"


class MoveState(str, Enum):
    DRAFT = "draft"
    POSTED = "posted"
    CANCEL = "cancel"


class PaymentState(str, Enum):
    NOT_PAID = "not_paid"
    IN_PAYMENT = "in_payment"
    PAID = "paid"
    PARTIAL = "partial"
    REVERSED = "reversed"


# ===== 库存 =====
class LocationType(str, Enum):
    SUPPLIER = "supplier"
    VIEW = "view"
    INTERNAL = "internal"
    CUSTOMER = "customer"
    INVENTORY = "inventory"
    PRODUCTION = "production"
    TRANSIT = "transit"


class OperationTypeKind(str, Enum):
    INCOMING = "incoming"
    OUTGOING = "outgoing"
    INTERNAL = "internal"
    DROPSHIP = "dropship"


class OperationState(str, Enum):
    DRAFT = "draft"
    WAITING = "waiting"
    CONFIRMED = "confirmed"
    ASSIGNED = "assigned"
    DONE = "done"
    CANCELED = "canceled"


class StockMoveState(str, Enum):
    DRAFT = "draft"
    WAITING = "waiting"
    CONFIRMED = "confirmed"
    PARTIALLY_ASSIGNED = "partially_available"
    ASSIGNED = "assigned"
    DONE = "done"
    CANCELED = "canceled"


class ShippingPolicy(str, Enum):
    """作业的出货策略（尽快 / 全部就绪后）"""
    DIRECT = "direct"
    ONE = "one"


class ProcureMethod(str, Enum):
    MAKE_TO_STOCK = "make_to_stock"
    MAKE_TO_ORDER = "make_to_order"
    MTS_ELSE_MTO = "mts_else_mto"


class RuleAction(str, Enum):
    PULL = "pull"
    PUSH = "push"
    PULL_PUSH = "pull_push"
    BUY = "buy"


class GroupPropagation(str, Enum):
    NONE = "none"
    PROPAGATE = "propagate"
    FIXED = "fixed"


class PackageUse(str, Enum):
    DISPOSABLE = "disposable"
    REUSABLE = "reusable"


class ScrapState(str, Enum):
    DRAFT = "draft"
    DONE = "done"


# ===== 人事 =====
class EmployeeType(str, Enum):
    EMPLOYEE = "employee"
    WORKER = "worker"
    STUDENT = "student"
    TRAINEE = "trainee"
    CONTRACTOR = "contractor"
    FREELANCER = "freelancer"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class MaritalStatus(str, Enum):
    SINGLE = "single"
    MARRIED = "married"
    COHABITANT = "cohabitant"
    WIDOWER = "widower"
    DIVORCED = "divorced"


# ===== 销售 =====
class SaleOrderState(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    SALE = "sale"
    CANCEL = "cancel"
