# Overview: Capability codes and default role grants consumed by permission_service.can().

"""
Capabilities

The engine does not manage roles or credentials; it only asks whether an
operator can perform a capability. Destructive operations (sale reversal)
are withheld from cashiers by default.
"""

CREATE_SALE = "CREATE_SALE"
DELETE_SALE = "DELETE_SALE"
MANAGE_SHIFT = "MANAGE_SHIFT"
VIEW_SHIFTS = "VIEW_SHIFTS"
VIEW_PRODUCTS = "VIEW_PRODUCTS"

PERMISSION_DEFINITIONS = {
    CREATE_SALE: "Commit sales against the operator's open shift",
    DELETE_SALE: "Reverse (delete) a committed sale and undo its effects",
    MANAGE_SHIFT: "Start and close shifts",
    VIEW_SHIFTS: "Read shift history and summaries",
    VIEW_PRODUCTS: "Read product stock and low-stock lists",
}

ROLES = ("admin", "manager", "cashier")

DEFAULT_ROLE_PERMISSIONS = {
    "admin": set(PERMISSION_DEFINITIONS),
    "manager": set(PERMISSION_DEFINITIONS),
    "cashier": {CREATE_SALE, MANAGE_SHIFT, VIEW_SHIFTS, VIEW_PRODUCTS},
}
