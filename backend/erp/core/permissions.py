"""
权限注册表

权限编码格式：{ability}_{plugin}_{resource}
如 view_any_account_bill、force_delete_inventory_warehouse

super_admin 角色自动拥有这里登记的全部权限。
"""

from typing import Dict, Tuple

BASIC_ABILITIES: Tuple[str, ...] = ("view_any", "view", "create", "update", "delete")
SOFT_DELETE_ABILITIES: Tuple[str, ...] = BASIC_ABILITIES + ("restore", "force_delete")

ABILITY_LABELS = {
    "view_any": "List",
    "view": "View",
    "create": "Create",
    "update": "Update",
    "delete": "Delete",
    "restore": "Restore",
    "force_delete": "Force delete",
}

# 资源 → 支持的操作
RESOURCES: Dict[str, Tuple[str, ...]] = {
    # 安全
    "security_user": BASIC_ABILITIES,
    "security_role": BASIC_ABILITIES,
    # 支持
    "support_audit_log": ("view_any",),
    # 联系人
    "partner_partner": SOFT_DELETE_ABILITIES,
    # 商品
    "product_category": BASIC_ABILITIES,
    "product_tag": SOFT_DELETE_ABILITIES,
    "product_product": SOFT_DELETE_ABILITIES,
    # 财务
    "account_account": BASIC_ABILITIES,
    "account_journal": BASIC_ABILITIES,
    "account_tax_group": BASIC_ABILITIES,
    "account_tax": BASIC_ABILITIES,
    "account_payment_term": SOFT_DELETE_ABILITIES,
    "account_invoice": BASIC_ABILITIES,
    "account_bill": BASIC_ABILITIES,
    "account_credit_note": BASIC_ABILITIES,
    "account_refund": BASIC_ABILITIES,
    # 库存
    "inventory_warehouse": SOFT_DELETE_ABILITIES,
    "inventory_location": SOFT_DELETE_ABILITIES,
    "inventory_operation_type": SOFT_DELETE_ABILITIES,
    "inventory_route": SOFT_DELETE_ABILITIES,
    "inventory_rule": SOFT_DELETE_ABILITIES,
    "inventory_lot": BASIC_ABILITIES,
    "inventory_package_type": BASIC_ABILITIES,
    "inventory_package": BASIC_ABILITIES,
    "inventory_receipt": BASIC_ABILITIES,
    "inventory_delivery": BASIC_ABILITIES,
    "inventory_internal": BASIC_ABILITIES,
    "inventory_dropship": BASIC_ABILITIES,
    "inventory_move": ("view_any",),
    "inventory_quantity": BASIC_ABILITIES,
    "inventory_scrap": BASIC_ABILITIES,
    # 人事
    "employee_department": SOFT_DELETE_ABILITIES,
    "employee_employee": SOFT_DELETE_ABILITIES,
    # 销售
    "sale_order": BASIC_ABILITIES,
}


def permission_code(ability: str, resource: str) -> str:
    return f"{ability}_{resource}"


def _build_registry() -> Dict[str, str]:
    registry = {}
    for resource, abilities in RESOURCES.items():
        label = resource.replace("_", " ")
        for ability in abilities:
            registry[permission_code(ability, resource)] = f"{ABILITY_LABELS[ability]} {label}"
    return registry


# 编码 → 描述
PERMISSIONS: Dict[str, str] = _build_registry()
