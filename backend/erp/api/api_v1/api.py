"""V1 API 路由聚合（按插件分组）"""
from fastapi import APIRouter

from erp.api.api_v1.endpoints.security import auth, users, roles
from erp.api.api_v1.endpoints.support import audit_logs
from erp.api.api_v1.endpoints.partners import partners
from erp.api.api_v1.endpoints.products import categories, tags, products
from erp.api.api_v1.endpoints.accounts import accounts, journals, tax_groups, taxes, payment_terms
from erp.api.api_v1.endpoints.inventories import (
    warehouses, locations, operation_types, routes, rules, lots, package_types, packages,
    moves, quantities, scraps
)
from erp.api.api_v1.endpoints.employees import departments, employees
# 按单据类型生成的路由
from erp.api.api_v1.endpoints.accounts.moves import (
    invoices_router, bills_router, credit_notes_router, refunds_router
)
from erp.api.api_v1.endpoints.inventories.operations import (
    receipts_router, deliveries_router, internal_transfers_router, dropships_router
)
from erp.api.api_v1.endpoints.sales.orders import router as orders_router

api_router = APIRouter()

# 认证与安全
api_router.include_router(auth.router, prefix="/auth", tags=["认证"])
api_router.include_router(users.router, prefix="/security/users", tags=["用户管理"])
api_router.include_router(roles.router, prefix="/security/roles", tags=["角色管理"])
api_router.include_router(audit_logs.router, prefix="/support/audit-logs", tags=["操作日志"])

# 联系人与商品
api_router.include_router(partners.router, prefix="/partners/partners", tags=["联系人"])
api_router.include_router(categories.router, prefix="/products/categories", tags=["商品分类"])
api_router.include_router(tags.router, prefix="/products/tags", tags=["商品标签"])
api_router.include_router(products.router, prefix="/products/products", tags=["商品管理"])

# 财务
api_router.include_router(accounts.router, prefix="/accounts/accounts", tags=["会计科目"])
api_router.include_router(journals.router, prefix="/accounts/journals", tags=["日记账"])
api_router.include_router(tax_groups.router, prefix="/accounts/tax-groups", tags=["税组"])
api_router.include_router(taxes.router, prefix="/accounts/taxes", tags=["税"])
api_router.include_router(payment_terms.router, prefix="/accounts/payment-terms", tags=["付款条件"])
api_router.include_router(invoices_router, prefix="/accounts/invoices", tags=["客户发票"])
api_router.include_router(bills_router, prefix="/accounts/bills", tags=["供应商账单"])
api_router.include_router(credit_notes_router, prefix="/accounts/credit-notes", tags=["贷项通知单"])
api_router.include_router(refunds_router, prefix="/accounts/refunds", tags=["供应商退款"])

# 库存
api_router.include_router(warehouses.router, prefix="/inventories/warehouses", tags=["仓库"])
api_router.include_router(locations.router, prefix="/inventories/locations", tags=["库位"])
api_router.include_router(operation_types.router, prefix="/inventories/operation-types", tags=["作业类型"])
api_router.include_router(routes.router, prefix="/inventories/routes", tags=["路线"])
api_router.include_router(rules.router, prefix="/inventories/rules", tags=["规则"])
api_router.include_router(lots.router, prefix="/inventories/lots", tags=["批次"])
api_router.include_router(package_types.router, prefix="/inventories/package-types", tags=["包裹类型"])
api_router.include_router(packages.router, prefix="/inventories/packages", tags=["包裹"])
api_router.include_router(receipts_router, prefix="/inventories/receipts", tags=["收货"])
api_router.include_router(deliveries_router, prefix="/inventories/deliveries", tags=["发货"])
api_router.include_router(internal_transfers_router, prefix="/inventories/internal-transfers", tags=["内部调拨"])
api_router.include_router(dropships_router, prefix="/inventories/dropships", tags=["代发"])
api_router.include_router(moves.router, prefix="/inventories/moves", tags=["库存移动"])
api_router.include_router(quantities.router, prefix="/inventories/quantities", tags=["库存数量"])
api_router.include_router(scraps.router, prefix="/inventories/scraps", tags=["报废"])

# 人事
api_router.include_router(departments.router, prefix="/employees/departments", tags=["部门"])
api_router.include_router(employees.router, prefix="/employees/employees", tags=["员工"])

# 销售
api_router.include_router(orders_router, prefix="/sales/orders", tags=["销售订单"])
