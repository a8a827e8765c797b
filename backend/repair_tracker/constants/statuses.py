"""Closed sets for the repair lifecycle: branches, statuses, cost centers.

Display labels are in the operating language of the shop (Arabic) and are
what the front desk, the technicians and the customer tracking page see.
Stored values are the enum names. Every mapping below is keyed by every
member; ``_assert_exhaustive`` fails the import if one is missing.
"""
from __future__ import annotations
import enum
from typing import Dict, Optional


class Branch(enum.Enum):
    AQD = 'عكد النصارى'
    BABYLON = 'بابلون مول'
    CAMP = 'كمب سارة'

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value) -> Optional['Branch']:
        if isinstance(value, cls):
            return value
        if not value:
            return None
        value = str(value).strip()
        for branch in cls:
            if value in (branch.value, branch.name):
                return branch
        return None


DEFAULT_BRANCH = Branch.AQD


class RepairStatus(enum.Enum):
    RECEIVED_AQD = 'RECEIVED_AQD'
    RECEIVED_BABYLON = 'RECEIVED_BABYLON'
    RECEIVED_CAMP = 'RECEIVED_CAMP'
    RECEIVED_CENTER = 'RECEIVED_CENTER'
    IN_REPAIR = 'IN_REPAIR'
    REPAIR_COMPLETE = 'REPAIR_COMPLETE'
    UNREPAIRABLE = 'UNREPAIRABLE'
    READY_FOR_PICKUP = 'READY_FOR_PICKUP'
    DELIVERED_TO_CUSTOMER = 'DELIVERED_TO_CUSTOMER'

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]

    @classmethod
    def from_label(cls, label) -> Optional['RepairStatus']:
        if not label:
            return None
        return _LABEL_TO_STATUS.get(str(label).strip())

    @classmethod
    def parse(cls, value) -> Optional['RepairStatus']:
        """Accept either the stored key or the display label."""
        if isinstance(value, cls):
            return value
        if not value:
            return None
        value = str(value).strip()
        if value in cls.__members__:
            return cls[value]
        return cls.from_label(value)


STATUS_LABELS: Dict[RepairStatus, str] = {
    RepairStatus.RECEIVED_AQD: 'تم استلام في عكد النصارى',
    RepairStatus.RECEIVED_BABYLON: 'تم استلام في بابلون مول',
    RepairStatus.RECEIVED_CAMP: 'تم استلام في كمب سارة',
    RepairStatus.RECEIVED_CENTER: 'تم استلام في مركز الصيانة',
    RepairStatus.IN_REPAIR: 'قيد الصيانة حاليا',
    RepairStatus.REPAIR_COMPLETE: 'مكتمل الصيانة',
    RepairStatus.UNREPAIRABLE: 'غير قابل للصيانة',
    RepairStatus.READY_FOR_PICKUP: 'جاهز للاستلام',
    RepairStatus.DELIVERED_TO_CUSTOMER: 'تم استلام من قبل الزبون',
}

_LABEL_TO_STATUS: Dict[str, RepairStatus] = {label: status for status, label in STATUS_LABELS.items()}

TERMINAL_STATUS = RepairStatus.DELIVERED_TO_CUSTOMER

# Branch intake -> initial status
BRANCH_INITIAL_STATUS: Dict[Branch, RepairStatus] = {
    Branch.AQD: RepairStatus.RECEIVED_AQD,
    Branch.BABYLON: RepairStatus.RECEIVED_BABYLON,
    Branch.CAMP: RepairStatus.RECEIVED_CAMP,
}


def initial_status_for(branch) -> RepairStatus:
    """Initial status for an intake branch; unknown branches map like the first branch."""
    parsed = Branch.parse(branch)
    return BRANCH_INITIAL_STATUS[parsed or DEFAULT_BRANCH]


class CostCenter(enum.Enum):
    COMPANY = 'Company'
    CUSTOMER = 'Customer'

    @property
    def label(self) -> str:
        return COST_CENTER_LABELS[self]

    @classmethod
    def parse(cls, value) -> Optional['CostCenter']:
        if isinstance(value, cls):
            return value
        if not value:
            return None
        value = str(value).strip()
        for center in cls:
            if value in (center.value, center.name):
                return center
        return None


COST_CENTER_LABELS: Dict[CostCenter, str] = {
    CostCenter.COMPANY: 'الشركة',
    CostCenter.CUSTOMER: 'الزبون',
}

# History / notification copy
NOTE_CASE_CREATED = 'تم إنشاء الطلب'
NOTE_COST_UPDATED = 'تم تحديث التكلفة: {cost}'
NOTE_BRANCH_MOVED = 'تم النقل إلى: {branch}'
NOTE_COST_CENTER_SET = 'تم تعيين مركز التكلفة: {label}'
NOTE_COST_CENTER_CLEARED = 'تم مسح مركز التكلفة'
NOTE_SEPARATOR = ' | '

DEFAULT_RECEPTION_NAME = 'موظف الاستقبال'
DEFAULT_STAFF_NAME = 'موظف'

WARRANTY_LABELS = {True: 'Yes', False: 'No'}
WARRANTY_LABELS_LOCAL = {True: 'نعم', False: 'لا'}
COST_NOT_SET_LABEL = 'غير محدد بعد'


def _assert_exhaustive():
    missing = [s.name for s in RepairStatus if s not in STATUS_LABELS]
    missing += [b.name for b in Branch if b not in BRANCH_INITIAL_STATUS]
    missing += [c.name for c in CostCenter if c not in COST_CENTER_LABELS]
    if missing:
        raise RuntimeError(f'Lifecycle tables missing entries for: {missing}')
    if len(_LABEL_TO_STATUS) != len(STATUS_LABELS):
        raise RuntimeError('Status labels must be unique')


_assert_exhaustive()
