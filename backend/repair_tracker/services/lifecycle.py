"""Repair lifecycle: intake, status transitions, notes, lookups.

Every mutation of a case and its audit entry is committed in one
transaction. Notifications go out after the commit and can never undo or
fail the operation.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, Callable, List, Dict, Any
from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
from repair_tracker.constants.statuses import (
    Branch, DEFAULT_BRANCH, RepairStatus, CostCenter, TERMINAL_STATUS, initial_status_for,
    NOTE_CASE_CREATED, NOTE_COST_UPDATED, NOTE_BRANCH_MOVED, NOTE_COST_CENTER_SET,
    NOTE_COST_CENTER_CLEARED, NOTE_SEPARATOR, DEFAULT_RECEPTION_NAME, DEFAULT_STAFF_NAME,
)
from repair_tracker.errors import RepairNotFound, InvalidStatus, DuplicateIdentifier, ValidationError
from repair_tracker.models.base import utcnow
from repair_tracker.models.repair import RepairCase, HistoryEntry, Note
from repair_tracker.services.media import ImageProcessor, CodeLinks
from repair_tracker.services.notifications import Notifier, new_repair_payload, status_update_payload
from repair_tracker.services.repair_ids import RepairIdGenerator, repair_id_exists
from repair_tracker.services.serializers import case_json, display_cost
from repair_tracker.store import Store

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


class _Missing:
    def __repr__(self):
        return 'MISSING'

    def __bool__(self):
        return False


# Distinguishes "cost center not supplied" from "explicitly cleared" (None)
MISSING = _Missing()


@dataclass
class Actor:
    id: Optional[int] = None
    username: Optional[str] = None


@dataclass
class CreateRepairInput:
    customer_name: str
    phone: str
    device: str
    branch: Branch
    issue: str
    warranty: bool = False
    estimated_cost: Optional[Decimal] = None
    received_date: Optional[datetime] = None
    repair_id: Optional[str] = None
    image_bytes: Optional[bytes] = None
    image_data: Optional[str] = None


@dataclass
class StatusUpdate:
    status: str
    cost: Optional[Decimal] = None
    branch: Optional[Branch] = None
    cost_center: Any = MISSING
    notes: Optional[str] = None


def _to_cents(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT)


class RepairLifecycleManager:
    def __init__(self, store: Store, id_generator: RepairIdGenerator, images: ImageProcessor,
                 links: CodeLinks, notifier: Notifier, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.id_generator = id_generator
        self.images = images
        self.links = links
        self.notifier = notifier
        self.clock = clock

    def _notify(self, build_payload):
        try:
            self.notifier.dispatch(build_payload())
        except Exception:
            logger.exception('Notification dispatch failed')

    # --- lookups ---

    def _find(self, session: Session, identifier: str, eager: bool = False) -> Optional[RepairCase]:
        # internal key and public id are both unique, so at most one row matches
        if not identifier:
            return None
        q = select(RepairCase).where(or_(RepairCase.id == identifier, RepairCase.repair_id == identifier))
        if eager:
            q = q.options(selectinload(RepairCase.history), selectinload(RepairCase.notes))
        return session.execute(q.limit(1)).scalars().first()

    def get_case(self, identifier: str) -> Optional[Dict[str, Any]]:
        """Case with history and notes, or None when no case matches."""
        case = self._find(self.store.session(), identifier, eager=True)
        return case_json(case) if case else None

    def list_cases(self, status=None, branch=None, search: Optional[str] = None) -> List[Dict[str, Any]]:
        session = self.store.session()
        q = select(RepairCase).options(selectinload(RepairCase.history), selectinload(RepairCase.notes))
        errors = []
        if status:
            parsed_status = RepairStatus.parse(status)
            if parsed_status is None:
                errors.append({'field': 'status', 'message': 'Invalid status'})
            else:
                q = q.where(RepairCase.status == parsed_status)
        if branch:
            parsed_branch = Branch.parse(branch)
            if parsed_branch is None:
                errors.append({'field': 'branch', 'message': 'Invalid branch'})
            else:
                q = q.where(RepairCase.branch == parsed_branch)
        if errors:
            raise ValidationError(errors)
        search = (search or '').strip()
        if search:
            q = q.where(or_(
                RepairCase.repair_id.icontains(search, autoescape=True),
                RepairCase.customer_name.icontains(search, autoescape=True),
                RepairCase.phone.icontains(search, autoescape=True),
                RepairCase.device.icontains(search, autoescape=True),
            ))
        q = q.order_by(RepairCase.received_date.desc())
        return [case_json(c) for c in session.execute(q).scalars().all()]

    # --- mutations ---

    def create_repair(self, data: CreateRepairInput, actor: Actor) -> Dict[str, Any]:
        session = self.store.session()
        stored_image = None
        try:
            if data.repair_id:
                repair_id = data.repair_id.strip()
                if repair_id_exists(session, repair_id):
                    raise DuplicateIdentifier()
            else:
                repair_id = self.id_generator.generate(session)

            # file upload wins over embedded base64
            if data.image_bytes:
                stored_image = self.images.process(data.image_bytes, repair_id)
            elif data.image_data:
                stored_image = self.images.process_base64(data.image_data, repair_id)

            now = self.clock()
            status = initial_status_for(data.branch)
            case = RepairCase(
                repair_id=repair_id,
                customer_name=data.customer_name,
                phone=data.phone,
                device=data.device,
                branch=Branch.parse(data.branch) or DEFAULT_BRANCH,
                issue=data.issue,
                warranty=bool(data.warranty),
                estimated_cost=_to_cents(data.estimated_cost) if data.estimated_cost is not None else None,
                status=status,
                received_date=data.received_date or now,
                image_url=stored_image,
                qr_code_url=self.links.qr_code_url(repair_id),
                created_by_id=actor.id,
            )
            case.history.append(HistoryEntry(
                action=status.label,
                account_id=actor.id,
                user_name=actor.username or DEFAULT_RECEPTION_NAME,
                notes=NOTE_CASE_CREATED,
                timestamp=now,
            ))
            session.add(case)
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            self.images.delete(stored_image)
            logger.warning('Repair id uniqueness violation on insert: %s', exc.orig)
            raise DuplicateIdentifier() from exc
        except Exception:
            session.rollback()
            self.images.delete(stored_image)
            raise

        logger.info('Repair %s created at %s by %s', case.repair_id, case.branch.name, actor.username)
        self._notify(lambda: new_repair_payload(case, self.links.tracking_url(case.repair_id)))
        return {
            'repairId': case.repair_id,
            'qrCodeUrl': case.qr_code_url,
            'imageUrl': case.image_url,
            'status': status.label,
        }

    def update_status(self, identifier: str, update: StatusUpdate, actor: Actor) -> RepairCase:
        session = self.store.session()
        try:
            case = self._find(session, identifier)
            if case is None:
                raise RepairNotFound()
            new_status = RepairStatus.parse(update.status)
            if new_status is None:
                raise InvalidStatus(update.status)

            fragments = []
            if update.cost is not None:
                new_cost = _to_cents(update.cost)
                if case.estimated_cost is None or _to_cents(case.estimated_cost) != new_cost:
                    case.estimated_cost = new_cost
                    fragments.append(NOTE_COST_UPDATED.format(cost=display_cost(new_cost)))

            if update.branch:
                new_branch = Branch.parse(update.branch)
                if new_branch is None:
                    raise ValidationError([{'field': 'branch', 'message': 'Invalid branch'}])
                if new_branch != case.branch:
                    case.branch = new_branch
                    fragments.append(NOTE_BRANCH_MOVED.format(branch=new_branch.label))

            if update.cost_center is not MISSING:
                new_center = CostCenter.parse(update.cost_center)
                if new_center != case.cost_center:
                    case.cost_center = new_center
                    if new_center is not None:
                        fragments.append(NOTE_COST_CENTER_SET.format(label=new_center.label))
                    else:
                        fragments.append(NOTE_COST_CENTER_CLEARED)

            now = self.clock()
            case.status = new_status
            if new_status is TERMINAL_STATUS and case.return_date is None:
                case.return_date = now

            caller_notes = (update.notes or '').strip()
            activity_notes = NOTE_SEPARATOR.join([p for p in [caller_notes, *fragments] if p])
            case.history.append(HistoryEntry(
                action=new_status.label,
                account_id=actor.id,
                user_name=actor.username or DEFAULT_STAFF_NAME,
                notes=activity_notes,
                timestamp=now,
            ))
            session.commit()
        except Exception:
            session.rollback()
            raise

        logger.info('Repair %s -> %s by %s', case.repair_id, new_status.name, actor.username)
        self._notify(lambda: status_update_payload(
            case, new_status.label, activity_notes, self.links.tracking_url(case.repair_id)))
        return case

    def add_note(self, identifier: str, text: str, actor: Actor) -> Note:
        session = self.store.session()
        try:
            case = self._find(session, identifier)
            if case is None:
                raise RepairNotFound()
            note = Note(
                note_text=text,
                account_id=actor.id,
                user_name=actor.username or 'User',
                created_at=self.clock(),
            )
            case.notes.append(note)
            session.commit()
        except Exception:
            session.rollback()
            raise
        return note
