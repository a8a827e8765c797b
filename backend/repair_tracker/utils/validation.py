from __future__ import annotations
"""Request validation for the repair and auth endpoints.

Each validator collects every field error before raising a single
``ValidationError`` so clients can highlight all offending fields at once.
Validators return plain, already-coerced values for the service layer.
"""
import re
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional
from repair_tracker.constants.statuses import Branch, CostCenter
from repair_tracker.errors import ValidationError
from repair_tracker.services.lifecycle import MISSING, CreateRepairInput, StatusUpdate

PHONE_RE = re.compile(r'^[0-9+\-\s()]+$')
REPAIR_ID_MAX = 64
# Numeric(12, 2) column ceiling
MAX_AMOUNT = Decimal('1e10')
_TRUE = ('true', 'yes', '1', 'on')
_FALSE = ('false', 'no', '0', 'off')


class _Errors:
    def __init__(self):
        self.items: List[Dict[str, str]] = []

    def add(self, field: str, message: str):
        self.items.append({'field': field, 'message': message})

    def raise_if_any(self):
        if self.items:
            raise ValidationError(self.items)


def _text(data: Mapping, *keys) -> str:
    """First non-empty value among ``keys``, stripped."""
    for key in keys:
        value = data.get(key)
        if value is not None and str(value).strip() != '':
            return str(value).strip()
    return ''


def _length(errors: _Errors, field: str, value: str, label: str, lo: int, hi: int):
    if not value:
        errors.add(field, f'{label} is required')
    elif not lo <= len(value) <= hi:
        errors.add(field, f'{label} must be {lo}-{hi} characters')


def parse_bool(value) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if value is None:
        return None
    lowered = str(value).strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    return None


def parse_amount(value) -> Optional[Decimal]:
    """Non-negative decimal, or None when absent/blank. Raises ValueError otherwise."""
    if value is None or (isinstance(value, str) and value.strip() == ''):
        return None
    if isinstance(value, bool):
        raise ValueError('not a number')
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError('not a number') from exc
    if not amount.is_finite() or amount < 0:
        raise ValueError('must be non-negative')
    if amount >= MAX_AMOUNT:
        raise ValueError('too large')
    return amount


def parse_date(value: str):
    """ISO-8601 date or datetime; None when unparseable."""
    if not value:
        return None
    for fmt in ('%Y-%m-%d', '%Y-%m-%dT%H:%M:%S', '%Y-%m-%dT%H:%M:%S.%f', '%Y-%m-%dT%H:%M'):
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        # stored timestamps are naive UTC
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def validate_create_repair(data: Mapping, image_bytes: Optional[bytes] = None) -> CreateRepairInput:
    errors = _Errors()
    customer = _text(data, 'customerName', 'customer')
    _length(errors, 'customerName', customer, 'Customer name', 2, 100)

    phone = _text(data, 'phone')
    if not phone:
        errors.add('phone', 'Phone number is required')
    elif not PHONE_RE.match(phone):
        errors.add('phone', 'Invalid phone number format')

    device = _text(data, 'device')
    _length(errors, 'device', device, 'Device name', 2, 100)

    branch_raw = _text(data, 'branch')
    branch = Branch.parse(branch_raw)
    if not branch_raw:
        errors.add('branch', 'Branch is required')
    elif branch is None:
        errors.add('branch', 'Invalid branch')

    issue = _text(data, 'issue')
    _length(errors, 'issue', issue, 'Issue description', 4, 1000)

    warranty = False
    if data.get('warranty') not in (None, ''):
        warranty = parse_bool(data.get('warranty'))
        if warranty is None:
            errors.add('warranty', 'Warranty must be true or false')

    cost = None
    try:
        cost = parse_amount(data.get('estimatedCost') if data.get('estimatedCost') not in (None, '') else data.get('cost'))
    except ValueError:
        errors.add('estimatedCost', 'Estimated cost must be a positive number')

    received = None
    received_raw = _text(data, 'date', 'receivedDate')
    if received_raw:
        received = parse_date(received_raw)
        if received is None:
            errors.add('date', 'Invalid date format')

    repair_id = _text(data, 'repairId') or None
    if repair_id and len(repair_id) > REPAIR_ID_MAX:
        errors.add('repairId', f'Repair ID must not exceed {REPAIR_ID_MAX} characters')

    image_data = data.get('imageData') or None
    if image_data is not None and not isinstance(image_data, str):
        errors.add('imageData', 'Image data must be a base64 string')

    errors.raise_if_any()
    return CreateRepairInput(
        customer_name=customer,
        phone=phone,
        device=device,
        branch=branch,
        issue=issue,
        warranty=bool(warranty),
        estimated_cost=cost,
        received_date=received,
        repair_id=repair_id,
        image_bytes=image_bytes,
        image_data=image_data,
    )


def validate_status_update(data: Mapping) -> StatusUpdate:
    errors = _Errors()
    status = _text(data, 'newStatus', 'status')
    if not status:
        errors.add('status', 'Status is required')

    cost = None
    try:
        cost = parse_amount(data.get('cost'))
    except ValueError:
        errors.add('cost', 'Cost must be a positive number')

    branch = None
    branch_raw = _text(data, 'branch')
    if branch_raw:
        branch = Branch.parse(branch_raw)
        if branch is None:
            errors.add('branch', 'Invalid branch')

    cost_center: Any = MISSING
    if 'costCenter' in data:
        raw = data.get('costCenter')
        raw = '' if raw is None else str(raw).strip()
        if raw == '':
            cost_center = None
        else:
            cost_center = CostCenter.parse(raw)
            if cost_center is None:
                errors.add('costCenter', 'Invalid cost center value')

    notes = _text(data, 'notes')
    if len(notes) > 1000:
        errors.add('notes', 'Notes must not exceed 1000 characters')

    errors.raise_if_any()
    return StatusUpdate(status=status, cost=cost, branch=branch, cost_center=cost_center, notes=notes or None)


def validate_note(data: Mapping) -> str:
    errors = _Errors()
    text = _text(data, 'noteText')
    _length(errors, 'noteText', text, 'Note', 1, 2000)
    errors.raise_if_any()
    return text


def validate_login(data: Mapping):
    errors = _Errors()
    username = _text(data, 'username')
    _length(errors, 'username', username, 'Username', 3, 50)
    password = data.get('password')
    password = password if isinstance(password, str) else ''
    if not password:
        errors.add('password', 'Password is required')
    elif len(password) < 6:
        errors.add('password', 'Password must be at least 6 characters')
    errors.raise_if_any()
    return username, password


def validate_report_filters(args: Mapping):
    """-> (start: date|None, end: date|None, branch: Branch|None)"""
    errors = _Errors()
    bounds: Dict[str, Optional[date]] = {}
    for key, label in (('startDate', 'start'), ('endDate', 'end')):
        raw = _text(args, key)
        bounds[key] = None
        if raw:
            parsed = parse_date(raw)
            if parsed is None:
                errors.add(key, f'Invalid {label} date format')
            else:
                bounds[key] = parsed.date()
    branch = None
    branch_raw = _text(args, 'branch')
    if branch_raw:
        branch = Branch.parse(branch_raw)
        if branch is None:
            errors.add('branch', 'Invalid branch')
    errors.raise_if_any()
    return bounds['startDate'], bounds['endDate'], branch


def validate_upload(file_storage, allowed_types, max_size: int) -> Optional[bytes]:
    """Read an uploaded image after checking its MIME type and size."""
    if file_storage is None or not file_storage.filename:
        return None
    errors = _Errors()
    mimetype = (file_storage.mimetype or '').lower()
    if mimetype not in allowed_types:
        errors.add('image', 'Invalid file type. Only JPEG and PNG images are allowed.')
        errors.raise_if_any()
    data = file_storage.read(max_size + 1)
    if len(data) > max_size:
        errors.add('image', f'File too large. Maximum size is {max_size // (1024 * 1024)}MB.')
    errors.raise_if_any()
    return data
