"""JSON projections of repair cases with the derived display fields."""
from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Optional, Dict, Any
from repair_tracker.constants.statuses import WARRANTY_LABELS
from repair_tracker.models.repair import RepairCase, HistoryEntry, Note


def display_cost(cost: Optional[Decimal]) -> str:
    """'' for no cost, otherwise the plain number without trailing zeros (150.50 -> '150.5')."""
    if cost is None:
        return ''
    value = Decimal(cost)
    if value == value.to_integral_value():
        return str(value.quantize(Decimal(1)))
    return format(value.normalize(), 'f')


def date_only(value: Optional[datetime]) -> Optional[str]:
    return value.date().isoformat() if value else None


def iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _newest_first(items, attr):
    return sorted(items, key=lambda i: (getattr(i, attr), i.id or 0), reverse=True)


def history_json(entry: HistoryEntry) -> Dict[str, Any]:
    return {
        'id': entry.id,
        'action': entry.action,
        'userId': entry.account_id,
        'userName': entry.user_name,
        'notes': entry.notes,
        'timestamp': iso(entry.timestamp),
    }


def note_json(note: Note) -> Dict[str, Any]:
    return {
        'id': note.id,
        'noteText': note.note_text,
        'userId': note.account_id,
        'userName': note.user_name,
        'createdAt': iso(note.created_at),
    }


def case_json(case: RepairCase) -> Dict[str, Any]:
    return {
        'id': case.id,
        'repairId': case.repair_id,
        'customerName': case.customer_name,
        'phone': case.phone,
        'device': case.device,
        'issue': case.issue,
        'branch': case.branch.label,
        'warranty': WARRANTY_LABELS[bool(case.warranty)],
        'estimatedCost': display_cost(case.estimated_cost),
        'status': case.status.name,
        'repairStatus': case.status.label,
        'costCenter': case.cost_center.value if case.cost_center else None,
        'receivedDate': iso(case.received_date),
        'date': date_only(case.received_date),
        'returnDate': date_only(case.return_date),
        'imageUrl': case.image_url,
        'qrCodeUrl': case.qr_code_url,
        'createdById': case.created_by_id,
        'history': [history_json(h) for h in _newest_first(case.history, 'timestamp')],
        'notes': [note_json(n) for n in _newest_first(case.notes, 'created_at')],
    }


def report_row(case: RepairCase) -> Dict[str, Any]:
    """Flat row for detailed report export."""
    return {
        'repairId': case.repair_id,
        'customer': case.customer_name,
        'phone': case.phone,
        'device': case.device,
        'branch': case.branch.label,
        'issue': case.issue,
        'date': date_only(case.received_date),
        'warranty': WARRANTY_LABELS[bool(case.warranty)],
        'estimatedCost': float(case.estimated_cost) if case.estimated_cost is not None else 0,
        'status': case.status.label,
        'returnDate': date_only(case.return_date) or '',
        'costCenter': case.cost_center.value if case.cost_center else '',
    }
