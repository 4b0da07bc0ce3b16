# Role and permission checks - pure functions of (identity, action, resource)
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from models import Clinic

SUPER_ADMIN = "super_admin"
ADMIN = "admin"
MODERATOR = "moderator"
CLINIC_OWNER = "clinic_owner"

ROLES = (SUPER_ADMIN, ADMIN, MODERATOR, CLINIC_OWNER)

# Default resource -> actions grants per role
ROLE_PERMISSIONS: Dict[str, Dict[str, List[str]]] = {
    SUPER_ADMIN: {"clinics": ["read", "write", "create", "delete"]},
    ADMIN: {"clinics": ["read", "write", "create", "delete"]},
    MODERATOR: {"clinics": ["read"]},
    CLINIC_OWNER: {"clinics": ["read", "write"]},
}


@dataclass(frozen=True)
class Identity:
    """Who is acting, passed explicitly to every check"""
    user_id: str
    role: str
    permissions: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def for_role(cls, user_id: str, role: str) -> "Identity":
        grants = ROLE_PERMISSIONS.get(role, {})
        return cls(user_id=user_id, role=role, permissions={k: list(v) for k, v in grants.items()})


def check_permission(identity: Optional[Identity], resource: str, action: str) -> bool:
    if identity is None:
        return False
    return action in identity.permissions.get(resource, [])


def has_role(identity: Optional[Identity], role: str) -> bool:
    return identity is not None and identity.role == role


def is_super_admin(identity: Optional[Identity]) -> bool:
    return has_role(identity, SUPER_ADMIN)


def can_view_clinics(identity: Optional[Identity]) -> bool:
    return (
        check_permission(identity, "clinics", "read")
        or check_permission(identity, "clinics", "write")
        or is_super_admin(identity)
    )


def can_manage_clinics(identity: Optional[Identity]) -> bool:
    return check_permission(identity, "clinics", "write") or is_super_admin(identity)


def can_create_clinics(identity: Optional[Identity]) -> bool:
    return (
        check_permission(identity, "clinics", "create")
        or check_permission(identity, "clinics", "write")
        or is_super_admin(identity)
    )


def can_delete_clinics(identity: Optional[Identity]) -> bool:
    return check_permission(identity, "clinics", "delete") or is_super_admin(identity)


def _owns(identity: Identity, clinic: Clinic) -> bool:
    return clinic.owner_id is not None and clinic.owner_id == identity.user_id


def can_perform_action(identity: Optional[Identity], action: str, clinic: Clinic) -> bool:
    """Whether identity may perform action on this particular clinic"""
    if identity is None:
        return False
    if is_super_admin(identity):
        return True

    role = identity.role
    if action == "view":
        return role in (ADMIN, MODERATOR, CLINIC_OWNER)
    if action == "edit":
        if role == ADMIN:
            return True
        return role == CLINIC_OWNER and _owns(identity, clinic)
    if action in ("delete", "archive", "feature"):
        return role == ADMIN
    if action == "verify":
        return role in (ADMIN, MODERATOR)
    return False


def get_accessible_clinics(identity: Optional[Identity], clinics: List[Clinic]) -> List[Clinic]:
    """Clinics visible to identity in the admin list"""
    if identity is None:
        return []
    if identity.role in (SUPER_ADMIN, ADMIN):
        return list(clinics)
    if identity.role == MODERATOR:
        return [c for c in clinics if c.verification_status in ("pending", "verified")]
    if identity.role == CLINIC_OWNER:
        return [c for c in clinics if _owns(identity, c)]
    return []
