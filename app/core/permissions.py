"""
Role-based permissions for back-office modules
"""
from app.models.user import User

ROLE_PERMISSIONS = {
    "Admin": {
        "inventory": ["view", "create", "edit", "delete"],
        "purchasing": ["view", "create", "edit", "delete", "receive"],
        "suppliers": ["view", "create", "edit", "delete"],
        "sales": ["view", "create", "edit"],
        "reports": ["view", "create"],
        "ai": ["use"],
    },
    "Manager": {
        "inventory": ["view", "create", "edit"],
        "purchasing": ["view", "create", "edit", "receive"],
        "suppliers": ["view", "create", "edit"],
        "sales": ["view", "create", "edit"],
        "reports": ["view", "create"],
        "ai": ["use"],
    },
    "Staff": {
        "inventory": ["view"],
        "purchasing": ["view", "receive"],
        "suppliers": ["view"],
        "sales": ["view", "create"],
        "reports": [],
        "ai": [],
    },
}

def has_permission(user: User, module: str, action: str) -> bool:
    """
    Check if user has permission for a specific action in a module

    Args:
        user: User object
        module: Module name (inventory, purchasing, suppliers, sales, reports, ai)
        action: Action type (view, create, edit, delete, receive, use)
    """
    if not user.is_active:
        return False

    role_name = user.role.name if user.role else "Staff"
    return action in ROLE_PERMISSIONS.get(role_name, {}).get(module, [])

def get_user_permissions(user: User) -> dict:
    """Dictionary of module -> allowed actions for the user"""
    if not user.is_active:
        return {}

    role_name = user.role.name if user.role else "Staff"
    return {module: list(actions) for module, actions in ROLE_PERMISSIONS.get(role_name, {}).items()}
