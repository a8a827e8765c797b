from __future__ import annotations
import functools
from datetime import date, datetime, time
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Dict, Any, List
from pyuca import Collator
from sqlalchemy import select, func
from repair_tracker.constants.statuses import Branch, CostCenter, WARRANTY_LABELS
from repair_tracker.models.repair import RepairCase
from repair_tracker.services.serializers import report_row
from repair_tracker.store import Store

CENT = Decimal('0.01')


@functools.lru_cache(maxsize=1)
def _collator() -> Collator:
    # loads the DUCET table once per process
    return Collator()


def label_sort_key(label: str):
    return _collator().sort_key(label)


def _money(value: Decimal) -> float:
    return float(value.quantize(CENT, rounding=ROUND_HALF_UP))


def compute_stats(cases) -> Dict[str, Any]:
    """Aggregate counts and cost sums.

    The average divides the cost total by *all* cases, including those
    without a cost ("average per job"); null costs add nothing to the sum.
    """
    total_cost = Decimal(0)
    by_status: Dict[str, int] = {}
    by_branch: Dict[str, int] = {}
    by_warranty = {WARRANTY_LABELS[True]: 0, WARRANTY_LABELS[False]: 0}
    centers = {c: {'count': 0, 'totalCost': Decimal(0)} for c in CostCenter}
    count = 0
    for case in cases:
        count += 1
        label = case.status.label
        by_status[label] = by_status.get(label, 0) + 1
        by_branch[case.branch.label] = by_branch.get(case.branch.label, 0) + 1
        by_warranty[WARRANTY_LABELS[bool(case.warranty)]] += 1
        cost = Decimal(case.estimated_cost) if case.estimated_cost is not None else None
        if cost is not None:
            total_cost += cost
        if case.cost_center is not None:
            bucket = centers[case.cost_center]
            bucket['count'] += 1
            if cost is not None:
                bucket['totalCost'] += cost
    avg = total_cost / count if count else Decimal(0)
    return {
        'total': count,
        'byStatus': by_status,
        'byBranch': by_branch,
        'byWarranty': by_warranty,
        'costCenter': {
            c.value: {'count': b['count'], 'totalCost': _money(b['totalCost'])} for c, b in centers.items()
        },
        'totalCost': _money(total_cost),
        'avgCost': _money(avg),
    }


class ReportEngine:
    def __init__(self, store: Store):
        self.store = store

    def generate(self, start: Optional[date] = None, end: Optional[date] = None,
                 branch: Optional[Branch] = None) -> Dict[str, Any]:
        session = self.store.session()
        q = select(RepairCase)
        if start:
            q = q.where(RepairCase.received_date >= datetime.combine(start, time.min))
        if end:
            # inclusive through end of day
            q = q.where(RepairCase.received_date <= datetime.combine(end, time.max))
        branch = Branch.parse(branch)
        if branch:
            q = q.where(RepairCase.branch == branch)
        cases = session.execute(q.order_by(RepairCase.received_date.desc())).scalars().all()
        rows = [report_row(c) for c in cases]
        return {'data': rows, 'stats': compute_stats(cases), 'recordCount': len(rows)}

    def status_counts(self) -> List[Dict[str, Any]]:
        """One row per status present; count desc, then label in collation order."""
        session = self.store.session()
        grouped = session.execute(
            select(RepairCase.status, func.count(RepairCase.id)).group_by(RepairCase.status)
        ).all()
        rows = [
            {'status': status.name, 'label': status.label, 'count': int(count)}
            for status, count in grouped
        ]
        rows.sort(key=lambda r: (-r['count'], label_sort_key(r['label'])))
        return rows