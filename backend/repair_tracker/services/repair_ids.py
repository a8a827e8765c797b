"""Human-readable repair identifiers: ``RPR{YYMMDD}-{NNN}``.

Only 1000 suffixes exist per day, so collisions are expected under load. The
pre-insert existence check is a latency optimization; the unique constraint
on ``repairs.repair_id`` is what actually guarantees uniqueness.
"""
from __future__ import annotations
import logging
import random
from datetime import datetime
from typing import Callable, Optional
from sqlalchemy import select
from sqlalchemy.orm import Session
from repair_tracker.errors import GenerationExhausted
from repair_tracker.models.base import utcnow
from repair_tracker.models.repair import RepairCase

logger = logging.getLogger(__name__)

ID_PREFIX = 'RPR'
MAX_ATTEMPTS = 10


def format_repair_id(day: datetime, suffix: int) -> str:
    return f"{ID_PREFIX}{day:%y%m%d}-{suffix:03d}"


def repair_id_exists(session: Session, repair_id: str) -> bool:
    return session.execute(select(RepairCase.id).where(RepairCase.repair_id == repair_id)).first() is not None


class RepairIdGenerator:
    def __init__(self, max_attempts: int = MAX_ATTEMPTS, clock: Callable[[], datetime] = utcnow,
                 rng: Optional[random.Random] = None):
        self.max_attempts = max_attempts
        self.clock = clock
        self.rng = rng or random.Random()

    def generate(self, session: Session) -> str:
        today = self.clock()
        for attempt in range(1, self.max_attempts + 1):
            candidate = format_repair_id(today, self.rng.randint(0, 999))
            if not repair_id_exists(session, candidate):
                return candidate
            logger.debug('Repair id collision on %s (attempt %d)', candidate, attempt)
        logger.error('Repair id generation exhausted after %d attempts', self.max_attempts)
        raise GenerationExhausted()
