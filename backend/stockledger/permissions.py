"""
Roles and permission codes

Each acting user carries one role. A role grants a fixed set of permission
codes; there are no per-user overrides. Users are also limited to their
assigned brands, except ADMIN, which sees every configured brand.
"""

ROLE_ADMIN = "ADMIN"
ROLE_MANAGER = "MANAGER"
ROLE_EMPLOYEE = "EMPLOYEE"

ROLES = (ROLE_ADMIN, ROLE_MANAGER, ROLE_EMPLOYEE)


# Each permission is defined as: (code, description)
PERMISSION_DEFINITIONS = [
    ("CREATE_ORDER", "Place client orders for an assigned brand"),
    ("APPROVE_ORDER", "Confirm, reject and advance orders"),
    ("MANAGE_INVENTORY", "Restock, transfer and edit catalog products"),
    ("MANAGE_PRICES", "Change product prices"),
]

PERMISSION_CODES = {code for code, _ in PERMISSION_DEFINITIONS}


DEFAULT_ROLE_PERMISSIONS = {
    ROLE_ADMIN: sorted(PERMISSION_CODES),
    ROLE_MANAGER: [
        "CREATE_ORDER",
        "APPROVE_ORDER",
        "MANAGE_INVENTORY",
        "MANAGE_PRICES",
    ],
    ROLE_EMPLOYEE: [
        "CREATE_ORDER",
    ],
}
