"""Outbound webhook notifications (WhatsApp messaging workflow).

Fire-and-forget: ``dispatch`` hands the POST to a background thread and
returns immediately. Nothing here raises into the request path; every
failure is logged and reported as ``False``.
"""
from __future__ import annotations
import logging
from concurrent.futures import ThreadPoolExecutor, Future
from typing import Any, Dict, Optional
import requests
from repair_tracker.constants.statuses import (
    RepairStatus, WARRANTY_LABELS_LOCAL, COST_NOT_SET_LABEL,
)
from repair_tracker.models.repair import RepairCase
from repair_tracker.services.serializers import display_cost, date_only

logger = logging.getLogger(__name__)

ACTION_NEW_REPAIR = 'new_repair'
ACTION_STATUS_UPDATE = 'status_update'

# Statuses with a dedicated customer message
STATUS_ACTIONS = {
    RepairStatus.REPAIR_COMPLETE: 'repair_completed',
    RepairStatus.UNREPAIRABLE: 'repair_unrepairable',
    RepairStatus.READY_FOR_PICKUP: 'ready_for_pickup',
}


def action_for_status(status: RepairStatus) -> str:
    return STATUS_ACTIONS.get(status, ACTION_STATUS_UPDATE)


def new_repair_payload(case: RepairCase, tracking_url: str) -> Dict[str, Any]:
    return {
        'action': ACTION_NEW_REPAIR,
        'repairId': case.repair_id,
        'customer': case.customer_name,
        'phone': case.phone,
        'device': case.device,
        'issue': case.issue,
        'branch': case.branch.label,
        'warranty': WARRANTY_LABELS_LOCAL[bool(case.warranty)],
        'cost': display_cost(case.estimated_cost) or COST_NOT_SET_LABEL,
        'date': date_only(case.received_date),
        'qrCodeUrl': case.qr_code_url,
        'imageUrl': case.image_url or '',
        'status': case.status.name,
        'trackingUrl': tracking_url,
    }


def status_update_payload(case: RepairCase, status_label: str, notes: str, tracking_url: str) -> Dict[str, Any]:
    return {
        'action': action_for_status(case.status),
        'repairId': case.repair_id,
        'status': status_label,
        'customer': case.customer_name,
        'phone': case.phone,
        'device': case.device,
        'branch': case.branch.label,
        'cost': display_cost(case.estimated_cost) or COST_NOT_SET_LABEL,
        'notes': notes,
        'trackingUrl': tracking_url,
    }


class Notifier:
    def __init__(self, url: Optional[str], enabled: bool = False, timeout: float = 10,
                 session: Optional[requests.Session] = None, max_workers: int = 2):
        self.url = url
        self.enabled = enabled
        self.timeout = timeout
        self.session = session or requests.Session()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='notify')

    @property
    def active(self) -> bool:
        return bool(self.enabled and self.url)

    def send(self, payload: Dict[str, Any]) -> bool:
        if not self.active:
            logger.info('Webhook disabled or URL not configured; skipping %s', payload.get('action'))
            return False
        try:
            resp = self.session.post(self.url, json=payload, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            logger.warning('Webhook %s for %s failed: %s', payload.get('action'), payload.get('repairId'), exc)
            return False
        logger.info('Webhook %s for %s -> %s', payload.get('action'), payload.get('repairId'), resp.status_code)
        return True

    def dispatch(self, payload: Dict[str, Any]) -> Optional[Future]:
        """Submit ``send`` in the background; never raises."""
        if not self.active:
            return None
        try:
            return self._executor.submit(self.send, payload)
        except RuntimeError as exc:
            # executor already shut down
            logger.warning('Could not queue webhook %s: %s', payload.get('action'), exc)
            return None

    def shutdown(self, wait: bool = False):
        self._executor.shutdown(wait=wait)
