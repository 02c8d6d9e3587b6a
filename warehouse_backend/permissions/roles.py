# permissions/roles.py

from __future__ import annotations

from typing import Optional

from rest_framework.permissions import BasePermission


# =========================================================
# ROLE CONSTANTS (STAFF JOB ROLES)
# =========================================================
# These are the seeded Role.name slugs.
# super_admin bypasses every capability check.
ROLE_SUPER_ADMIN = "super_admin"
ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_OPERATOR = "operator"
ROLE_WAREHOUSE_STAFF = "warehouse_staff"
ROLE_VIEWER = "viewer"

SYSTEM_ROLES = {
    ROLE_SUPER_ADMIN: "Super Admin",
    ROLE_ADMIN: "Admin",
    ROLE_MANAGER: "Manager",
    ROLE_OPERATOR: "Operator",
    ROLE_WAREHOUSE_STAFF: "Warehouse Staff",
    ROLE_VIEWER: "Viewer",
}


# =========================================================
# CAPABILITIES (THE REAL PERMISSION LANGUAGE)
# =========================================================
# Views protect capabilities, not raw roles.
CAP_INVENTORY_VIEW = "inventory.view"
CAP_INVENTORY_EDIT = "inventory.edit"          # products, stock entry, bulk upload
CAP_INVENTORY_ADJUST = "inventory.adjust"      # damage / recovery

CAP_WAREHOUSES_MANAGE = "warehouses.manage"

CAP_DISPATCH_VIEW = "dispatch.view"
CAP_DISPATCH_CREATE = "dispatch.create"
CAP_DISPATCH_EDIT = "dispatch.edit"
CAP_DISPATCH_DELETE = "dispatch.delete"        # reverses stock

CAP_RETURNS_VIEW = "returns.view"
CAP_RETURNS_CREATE = "returns.create"
CAP_RETURNS_EDIT = "returns.edit"

CAP_TRANSFERS_VIEW = "transfers.view"
CAP_TRANSFERS_CREATE = "transfers.create"

CAP_ORDERS_VIEW = "orders.view"
CAP_ORDERS_CREATE = "orders.create"
CAP_ORDERS_EDIT = "orders.edit"
CAP_ORDERS_DELETE = "orders.delete"

CAP_MESSAGES_SEND = "messages.send"
CAP_MESSAGES_MANAGE = "messages.manage"        # channels, moderate others' messages

CAP_NOTIFICATIONS_SEND = "notifications.send"

CAP_REPORTS_VIEW = "reports.view"

CAP_SYSTEM_USER_MANAGEMENT = "system.user_management"
CAP_SYSTEM_ROLE_MANAGEMENT = "system.role_management"
CAP_SYSTEM_PERMISSION_MANAGEMENT = "system.permission_management"
CAP_SYSTEM_AUDIT_LOG = "system.audit_log"
CAP_SYSTEM_MONITORING = "system.monitoring"

CAPABILITY_DESCRIPTIONS: dict[str, str] = {
    CAP_INVENTORY_VIEW: "View products, stock, batches, ledger and timelines",
    CAP_INVENTORY_EDIT: "Manage products, add stock, bulk upload",
    CAP_INVENTORY_ADJUST: "Report damage and recover stock",
    CAP_WAREHOUSES_MANAGE: "Manage warehouses, logistics partners and executives",
    CAP_DISPATCH_VIEW: "View dispatches",
    CAP_DISPATCH_CREATE: "Create dispatches",
    CAP_DISPATCH_EDIT: "Update dispatch status and report dispatch damage",
    CAP_DISPATCH_DELETE: "Delete dispatches (restores stock)",
    CAP_RETURNS_VIEW: "View returns",
    CAP_RETURNS_CREATE: "Process returns",
    CAP_RETURNS_EDIT: "Update return status",
    CAP_TRANSFERS_VIEW: "View self transfers",
    CAP_TRANSFERS_CREATE: "Create self transfers",
    CAP_ORDERS_VIEW: "View and search orders",
    CAP_ORDERS_CREATE: "Create orders",
    CAP_ORDERS_EDIT: "Update order remarks",
    CAP_ORDERS_DELETE: "Delete orders",
    CAP_MESSAGES_SEND: "Send channel and direct messages",
    CAP_MESSAGES_MANAGE: "Create channels and moderate messages",
    CAP_NOTIFICATIONS_SEND: "Send notifications to users and roles",
    CAP_REPORTS_VIEW: "View dashboards and reports",
    CAP_SYSTEM_USER_MANAGEMENT: "Manage users",
    CAP_SYSTEM_ROLE_MANAGEMENT: "Manage roles and role capabilities",
    CAP_SYSTEM_PERMISSION_MANAGEMENT: "View and manage capabilities",
    CAP_SYSTEM_AUDIT_LOG: "View audit logs",
    CAP_SYSTEM_MONITORING: "View system statistics",
}

ALL_CAPABILITIES = set(CAPABILITY_DESCRIPTIONS)


# =========================================================
# ROLE → CAPABILITY MAP (DEFAULT, SEEDED)
# =========================================================
# The database is the source of truth at runtime; this map only feeds
# `manage.py seed_roles`.
_OPERATIONS = {
    CAP_INVENTORY_VIEW,
    CAP_DISPATCH_VIEW,
    CAP_DISPATCH_CREATE,
    CAP_RETURNS_VIEW,
    CAP_RETURNS_CREATE,
    CAP_TRANSFERS_VIEW,
    CAP_ORDERS_VIEW,
    CAP_ORDERS_CREATE,
    CAP_MESSAGES_SEND,
}

ROLE_CAPABILITIES: dict[str, set[str]] = {
    ROLE_SUPER_ADMIN: set(ALL_CAPABILITIES),
    ROLE_ADMIN: set(ALL_CAPABILITIES),
    ROLE_MANAGER: {
        *_OPERATIONS,
        CAP_INVENTORY_EDIT,
        CAP_INVENTORY_ADJUST,
        CAP_WAREHOUSES_MANAGE,
        CAP_DISPATCH_EDIT,
        CAP_DISPATCH_DELETE,
        CAP_RETURNS_EDIT,
        CAP_TRANSFERS_CREATE,
        CAP_ORDERS_EDIT,
        CAP_ORDERS_DELETE,
        CAP_MESSAGES_MANAGE,
        CAP_NOTIFICATIONS_SEND,
        CAP_REPORTS_VIEW,
        CAP_SYSTEM_AUDIT_LOG,
    },
    ROLE_OPERATOR: {
        *_OPERATIONS,
        CAP_DISPATCH_EDIT,
        CAP_ORDERS_EDIT,
        CAP_REPORTS_VIEW,
    },
    ROLE_WAREHOUSE_STAFF: {
        *_OPERATIONS,
        CAP_INVENTORY_EDIT,
        CAP_INVENTORY_ADJUST,
        CAP_TRANSFERS_CREATE,
    },
    ROLE_VIEWER: {
        CAP_INVENTORY_VIEW,
        CAP_DISPATCH_VIEW,
        CAP_RETURNS_VIEW,
        CAP_TRANSFERS_VIEW,
        CAP_ORDERS_VIEW,
        CAP_REPORTS_VIEW,
    },
}


# =========================================================
# Helpers
# =========================================================
_CACHE_ATTR = "_effective_capabilities_cache"


def get_user_role(user) -> Optional[str]:
    role = getattr(user, "role", None)
    if role is None:
        return None
    if not getattr(role, "is_active", True):
        return None
    return getattr(role, "name", None)


def is_super_admin(user) -> bool:
    if not user or not getattr(user, "is_authenticated", False):
        return False
    if getattr(user, "is_superuser", False):
        return True
    return get_user_role(user) == ROLE_SUPER_ADMIN


def effective_capabilities_for(user) -> set[str]:
    """
    Resolve a user's capabilities from the role table.

    - super_admin / Django superuser -> every known capability
    - inactive role -> nothing
    - result is memoised on the user instance (one query per request)
    """
    if not user or not getattr(user, "is_authenticated", False):
        return set()

    cached = getattr(user, _CACHE_ATTR, None)
    if cached is not None:
        return cached

    if is_super_admin(user):
        caps = set(ALL_CAPABILITIES)
    else:
        role = getattr(user, "role", None)
        if role is None or not role.is_active:
            caps = set()
        else:
            caps = role.capability_codes()

    setattr(user, _CACHE_ATTR, caps)
    return caps


def user_has_capability(user, capability: str) -> bool:
    if is_super_admin(user):
        return True
    return capability in effective_capabilities_for(user)


# =========================================================
# Capability Permissions
# =========================================================
class HasCapability(BasePermission):
    """
    Require a specific capability.

    Usage:
        permission_classes = [IsAuthenticated, HasCapability]
        view.required_capability = CAP_DISPATCH_CREATE
    """

    message = "You do not have permission to perform this action."

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_capability", None)
        if not required:
            # If not set, deny-by-default to avoid accidental open endpoints
            return False

        return user_has_capability(user, required)


class HasAnyCapability(BasePermission):
    """
    Require ANY capability from a list.

    Usage:
        view.required_any_capabilities = {CAP_REPORTS_VIEW, CAP_INVENTORY_VIEW}
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_any_capabilities", None)
        if not required:
            return False

        caps = effective_capabilities_for(user)
        return any(cap in caps for cap in set(required))


class HasAllCapabilities(BasePermission):
    """
    Require ALL capabilities in a list.

    Usage:
        view.required_all_capabilities = {CAP_SYSTEM_MONITORING, CAP_SYSTEM_PERMISSION_MANAGEMENT}
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_all_capabilities", None)
        if not required:
            return False

        caps = effective_capabilities_for(user)
        return set(required).issubset(caps)


class CapabilityViewMixin:
    """
    Map viewset actions to capabilities.

    Subclasses declare:
        capability_map = {
            "list": CAP_DISPATCH_VIEW,
            "create": CAP_DISPATCH_CREATE,
            ...
        }

    Plain APIViews key the map by lowercase HTTP method instead.
    Actions missing from the map fall back to `default_capability`;
    when that is also None the action is IsAuthenticated-only.
    """

    capability_map: dict[str, str] = {}
    default_capability: Optional[str] = None

    required_capability = None

    def get_permissions(self):
        from rest_framework.permissions import IsAuthenticated

        # IMPORTANT: reset per request to avoid state leaking between actions
        self.required_capability = None

        # ViewSets key by action; plain APIViews key by HTTP method ("get", "post", ...)
        action = getattr(self, "action", None) or (self.request.method or "").lower()
        cap = self.capability_map.get(action, self.default_capability)
        if cap is None:
            return [IsAuthenticated()]

        self.required_capability = cap
        return [IsAuthenticated(), HasCapability()]
