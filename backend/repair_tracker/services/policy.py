from __future__ import annotations
from typing import Optional
from flask_jwt_extended import get_jwt
from repair_tracker.constants.permissions import Role, Capability, RolePermissions, ROLE_PERMISSIONS, PAGE_CAPABILITIES


def permissions_for(role) -> Optional[RolePermissions]:
    parsed = Role.parse(role)
    if parsed is None:
        return None
    return ROLE_PERMISSIONS[parsed]


def has_capability(role, capability: Capability) -> bool:
    """Pure function of role; unknown roles have no capabilities."""
    perms = permissions_for(role)
    return perms is not None and perms.allows(capability)


def current_role() -> Optional[Role]:
    claims = get_jwt()
    return Role.parse(claims.get('role'))


def current_has_capability(capability: Capability) -> bool:
    return has_capability(current_role(), capability)


def check_page_access(role, page: Optional[str]) -> dict:
    perms = permissions_for(role)
    if perms is None:
        return {'hasAccess': False, 'defaultPage': None}
    required = PAGE_CAPABILITIES.get(page or '')
    return {
        'hasAccess': required is not None and perms.allows(required),
        'defaultPage': perms.default_page,
    }
