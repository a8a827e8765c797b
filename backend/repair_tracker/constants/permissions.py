"""Role -> capability table. Single source of truth for authorization.

The browser client mirrors ``ROLE_PERMISSIONS`` (served by the login and
validate endpoints) for navigation only; enforcement always happens here.
Extend cautiously: adding a role or capability means adding a row/field and
every role must define every capability.
"""
from __future__ import annotations
import enum
from dataclasses import dataclass, asdict, fields
from typing import Dict, Optional


class Role(enum.Enum):
    ADMIN = 'ADMIN'
    TECH = 'TECH'
    USER = 'USER'
    VIEWER = 'VIEWER'

    @classmethod
    def parse(cls, value) -> Optional['Role']:
        if isinstance(value, cls):
            return value
        if not value:
            return None
        return cls.__members__.get(str(value).strip().upper())


class Capability(enum.Enum):
    VIEW_DASHBOARD = 'can_view_dashboard'
    ADD_REPAIR = 'can_add_repair'
    EDIT_REPAIR = 'can_edit_repair'
    DELETE_REPAIR = 'can_delete_repair'
    VIEW_REPORTS = 'can_view_reports'
    SCAN_QR = 'can_scan_qr'
    ACCESS_REPAIR_CENTER = 'can_access_repair_center'
    MANAGE_USERS = 'can_manage_users'


@dataclass(frozen=True)
class RolePermissions:
    can_view_dashboard: bool
    can_add_repair: bool
    can_edit_repair: bool
    can_delete_repair: bool
    can_view_reports: bool
    can_scan_qr: bool
    can_access_repair_center: bool
    can_manage_users: bool
    default_page: str

    def allows(self, capability: Capability) -> bool:
        return bool(getattr(self, capability.value))

    def to_json(self) -> Dict[str, object]:
        """camelCase record consumed by the browser client."""
        raw = asdict(self)
        return {_CLIENT_KEYS[k]: v for k, v in raw.items()}


_CLIENT_KEYS = {
    'can_view_dashboard': 'canViewDashboard',
    'can_add_repair': 'canAddRepair',
    'can_edit_repair': 'canEditRepair',
    'can_delete_repair': 'canDeleteRepair',
    'can_view_reports': 'canViewReports',
    'can_scan_qr': 'canScanQR',
    'can_access_repair_center': 'canAccessRepairCenter',
    'can_manage_users': 'canManageUsers',
    'default_page': 'defaultPage',
}

ROLE_PERMISSIONS: Dict[Role, RolePermissions] = {
    Role.ADMIN: RolePermissions(
        can_view_dashboard=True,
        can_add_repair=True,
        can_edit_repair=True,
        can_delete_repair=True,
        can_view_reports=True,
        can_scan_qr=True,
        can_access_repair_center=True,
        can_manage_users=True,
        default_page='dashboard',
    ),
    Role.TECH: RolePermissions(
        can_view_dashboard=True,
        can_add_repair=False,
        can_edit_repair=True,
        can_delete_repair=False,
        can_view_reports=False,
        can_scan_qr=True,
        can_access_repair_center=True,
        can_manage_users=False,
        default_page='repaircenter',
    ),
    Role.USER: RolePermissions(
        can_view_dashboard=True,
        can_add_repair=True,
        can_edit_repair=False,
        can_delete_repair=False,
        can_view_reports=False,
        can_scan_qr=True,
        can_access_repair_center=False,
        can_manage_users=False,
        default_page='form',
    ),
    Role.VIEWER: RolePermissions(
        can_view_dashboard=True,
        can_add_repair=False,
        can_edit_repair=False,
        can_delete_repair=False,
        can_view_reports=True,
        can_scan_qr=False,
        can_access_repair_center=False,
        can_manage_users=False,
        default_page='reports',
    ),
}

# Front-end pages -> capability needed to open them
PAGE_CAPABILITIES: Dict[str, Capability] = {
    'dashboard': Capability.VIEW_DASHBOARD,
    'form': Capability.ADD_REPAIR,
    'scanner': Capability.SCAN_QR,
    'reports': Capability.VIEW_REPORTS,
    'repaircenter': Capability.ACCESS_REPAIR_CENTER,
}


def _assert_exhaustive():
    missing_roles = [r.name for r in Role if r not in ROLE_PERMISSIONS]
    if missing_roles:
        raise RuntimeError(f'ROLE_PERMISSIONS missing roles: {missing_roles}')
    field_names = {f.name for f in fields(RolePermissions)}
    missing_caps = [c.name for c in Capability if c.value not in field_names]
    if missing_caps:
        raise RuntimeError(f'RolePermissions missing capabilities: {missing_caps}')


_assert_exhaustive()
