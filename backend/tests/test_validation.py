from datetime import date, datetime
from decimal import Decimal
import pytest
from repair_tracker.constants.statuses import Branch, CostCenter
from repair_tracker.errors import ValidationError
from repair_tracker.services.lifecycle import MISSING
from repair_tracker.utils.validation import (
    validate_create_repair, validate_status_update, validate_note, validate_login, validate_report_filters,
    parse_date, parse_amount,
)


def _fields(exc_info):
    return {e['field'] for e in exc_info.value.errors}


def test_create_aliases_and_coercion():
    data = validate_create_repair({
        'customer': '  Zainab  ',
        'phone': '(0770) 111-2233',
        'device': 'Laptop',
        'branch': 'BABYLON',
        'issue': 'Fan noise',
        'warranty': 'Yes',
        'cost': '45.5',
        'date': '2025-04-02',
        'repairId': 'RPR250402-010',
    })
    assert data.customer_name == 'Zainab'
    assert data.branch is Branch.BABYLON
    assert data.warranty is True
    assert data.estimated_cost == Decimal('45.5')
    assert data.received_date == datetime(2025, 4, 2)
    assert data.repair_id == 'RPR250402-010'


def test_create_length_bounds():
    with pytest.raises(ValidationError) as exc:
        validate_create_repair({
            'customerName': 'A', 'phone': '0770', 'device': 'X' * 101, 'branch': Branch.AQD.value,
            'issue': 'abc', 'warranty': 'maybe', 'date': 'yesterday', 'repairId': 'R' * 65,
        })
    assert _fields(exc) == {'customerName', 'device', 'issue', 'warranty', 'date', 'repairId'}


def test_status_update_cost_center_states():
    assert validate_status_update({'status': 'IN_REPAIR'}).cost_center is MISSING
    assert validate_status_update({'status': 'IN_REPAIR', 'costCenter': ''}).cost_center is None
    assert validate_status_update({'status': 'IN_REPAIR', 'costCenter': None}).cost_center is None
    assert validate_status_update({'status': 'IN_REPAIR', 'costCenter': 'Company'}).cost_center is CostCenter.COMPANY


def test_status_update_errors():
    with pytest.raises(ValidationError) as exc:
        validate_status_update({'cost': 'free', 'branch': 'Mars', 'costCenter': 'Bank', 'notes': 'n' * 1001})
    assert _fields(exc) == {'status', 'cost', 'branch', 'costCenter', 'notes'}
    ok = validate_status_update({'newStatus': 'جاهز للاستلام', 'branch': '', 'cost': 0})
    assert ok.status == 'جاهز للاستلام'
    assert ok.branch is None
    assert ok.cost == Decimal('0')


@pytest.mark.parametrize('raw', ['1e30', 10_000_000_000, '99999999999.5'])
def test_amounts_beyond_column_precision_are_rejected(raw):
    with pytest.raises(ValueError):
        parse_amount(raw)
    assert parse_amount('9999999999.99') == Decimal('9999999999.99')
    with pytest.raises(ValidationError) as exc:
        validate_status_update({'status': 'IN_REPAIR', 'cost': raw})
    assert _fields(exc) == {'cost'}


def test_note_and_login():
    assert validate_note({'noteText': ' hi '}) == 'hi'
    with pytest.raises(ValidationError):
        validate_note({'noteText': 'x' * 2001})
    assert validate_login({'username': ' admin ', 'password': 'Admin@123'}) == ('admin', 'Admin@123')
    with pytest.raises(ValidationError) as exc:
        validate_login({'username': 'admin'})
    assert _fields(exc) == {'password'}


def test_report_filters():
    assert validate_report_filters({}) == (None, None, None)
    start, end, branch = validate_report_filters({'startDate': '2025-01-01', 'endDate': '2025-01-31T23:00:00Z', 'branch': ''})
    assert start == date(2025, 1, 1)
    assert end == date(2025, 1, 31)
    assert branch is None
    with pytest.raises(ValidationError) as exc:
        validate_report_filters({'endDate': '31/01/2025'})
    assert _fields(exc) == {'endDate'}


def test_parse_date_normalizes_offsets_to_utc():
    assert parse_date('2025-01-01T02:00:00+03:00') == datetime(2024, 12, 31, 23, 0)
    assert parse_date('garbage') is None
