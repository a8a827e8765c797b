import pytest
from repair_tracker.constants.permissions import Role, Capability, ROLE_PERMISSIONS, PAGE_CAPABILITIES
from repair_tracker.constants.statuses import (
    Branch, RepairStatus, STATUS_LABELS, initial_status_for, DEFAULT_BRANCH, CostCenter,
)
from repair_tracker.services.policy import has_capability, permissions_for, check_page_access

# role -> (dashboard, add, edit, delete, reports, scan, repair center, manage users, default page)
EXPECTED = {
    Role.ADMIN: (True, True, True, True, True, True, True, True, 'dashboard'),
    Role.TECH: (True, False, True, False, False, True, True, False, 'repaircenter'),
    Role.USER: (True, True, False, False, False, True, False, False, 'form'),
    Role.VIEWER: (True, False, False, False, True, False, False, False, 'reports'),
}
CAP_ORDER = [
    Capability.VIEW_DASHBOARD, Capability.ADD_REPAIR, Capability.EDIT_REPAIR, Capability.DELETE_REPAIR,
    Capability.VIEW_REPORTS, Capability.SCAN_QR, Capability.ACCESS_REPAIR_CENTER, Capability.MANAGE_USERS,
]

CELLS = [(role, cap, EXPECTED[role][i]) for role in Role for i, cap in enumerate(CAP_ORDER)]


@pytest.mark.parametrize('role,cap,allowed', CELLS, ids=[f'{r.name}-{c.name}' for r, c, _ in CELLS])
def test_permission_table_cell(role, cap, allowed):
    assert has_capability(role, cap) is allowed
    # role names from token claims resolve the same way
    assert has_capability(role.name, cap) is allowed


def test_default_pages():
    for role, row in EXPECTED.items():
        assert ROLE_PERMISSIONS[role].default_page == row[-1]


def test_spot_checks():
    assert has_capability(Role.ADMIN, Capability.MANAGE_USERS)
    assert not has_capability(Role.VIEWER, Capability.ADD_REPAIR)
    assert not has_capability(Role.TECH, Capability.DELETE_REPAIR)


def test_unknown_role_has_nothing():
    assert permissions_for('GHOST') is None
    assert permissions_for(None) is None
    assert not any(has_capability('GHOST', cap) for cap in Capability)


def test_client_permission_record_is_camel_case():
    body = ROLE_PERMISSIONS[Role.TECH].to_json()
    assert body == {
        'canViewDashboard': True,
        'canAddRepair': False,
        'canEditRepair': True,
        'canDeleteRepair': False,
        'canViewReports': False,
        'canScanQR': True,
        'canAccessRepairCenter': True,
        'canManageUsers': False,
        'defaultPage': 'repaircenter',
    }


def test_page_access():
    assert check_page_access(Role.VIEWER, 'reports') == {'hasAccess': True, 'defaultPage': 'reports'}
    assert check_page_access(Role.VIEWER, 'form') == {'hasAccess': False, 'defaultPage': 'reports'}
    assert check_page_access('USER', 'scanner')['hasAccess'] is True
    assert check_page_access(Role.ADMIN, 'no-such-page')['hasAccess'] is False
    assert check_page_access('GHOST', 'dashboard') == {'hasAccess': False, 'defaultPage': None}
    assert set(PAGE_CAPABILITIES) == {'dashboard', 'form', 'scanner', 'reports', 'repaircenter'}


@pytest.mark.parametrize('branch,status', [
    (Branch.AQD, RepairStatus.RECEIVED_AQD),
    (Branch.BABYLON, RepairStatus.RECEIVED_BABYLON),
    (Branch.CAMP, RepairStatus.RECEIVED_CAMP),
])
def test_branch_initial_status(branch, status):
    assert initial_status_for(branch) is status
    assert initial_status_for(branch.value) is status
    assert initial_status_for(branch.name) is status


def test_unknown_branch_falls_back_to_first_branch():
    assert DEFAULT_BRANCH is Branch.AQD
    assert initial_status_for('Narnia') is RepairStatus.RECEIVED_AQD
    assert initial_status_for(None) is RepairStatus.RECEIVED_AQD


def test_status_label_mapping_is_bidirectional():
    for status in RepairStatus:
        assert RepairStatus.from_label(status.label) is status
        assert RepairStatus.parse(status.label) is status
        assert RepairStatus.parse(status.name) is status
    assert len(set(STATUS_LABELS.values())) == len(RepairStatus)
    assert RepairStatus.parse('Fixed-ish') is None
    assert RepairStatus.from_label('') is None


def test_cost_center_parse():
    assert CostCenter.parse('Company') is CostCenter.COMPANY
    assert CostCenter.parse('CUSTOMER') is CostCenter.CUSTOMER
    assert CostCenter.parse('') is None
    assert CostCenter.parse('Bank') is None
