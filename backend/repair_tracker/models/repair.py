from __future__ import annotations
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Text, Boolean, DateTime, Numeric, Enum, ForeignKey
from repair_tracker.models.base import Base, utcnow
from repair_tracker.constants.statuses import Branch, RepairStatus, CostCenter


def _new_key() -> str:
    return uuid.uuid4().hex


class RepairCase(Base):
    __tablename__ = 'repairs'
    # Internal key; the public, human-readable code is repair_id
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_key)
    repair_id: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    customer_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)
    device: Mapped[str] = mapped_column(String(100), nullable=False)
    issue: Mapped[str] = mapped_column(Text, nullable=False)
    branch: Mapped[Branch] = mapped_column(Enum(Branch, native_enum=False, length=16), nullable=False, index=True)
    warranty: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    estimated_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    status: Mapped[RepairStatus] = mapped_column(Enum(RepairStatus, native_enum=False, length=32), nullable=False, index=True)
    cost_center: Mapped[Optional[CostCenter]] = mapped_column(Enum(CostCenter, native_enum=False, length=16), nullable=True)
    received_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)
    return_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    qr_code_url: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_by_id: Mapped[Optional[int]] = mapped_column(ForeignKey('accounts.id', ondelete='SET NULL'), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    history: Mapped[List['HistoryEntry']] = relationship(
        'HistoryEntry', back_populates='repair', cascade='all, delete-orphan',
        order_by=lambda: [HistoryEntry.timestamp.desc(), HistoryEntry.id.desc()],
    )
    notes: Mapped[List['Note']] = relationship(
        'Note', back_populates='repair', cascade='all, delete-orphan',
        order_by=lambda: [Note.created_at.desc(), Note.id.desc()],
    )

# Status flow: intake at a branch -> RECEIVED_CENTER -> IN_REPAIR -> REPAIR_COMPLETE | UNREPAIRABLE
#   -> READY_FOR_PICKUP -> DELIVERED_TO_CUSTOMER (terminal; return_date set once).
# Technicians may move a case to any status; legality is "label maps to a known status".


class HistoryEntry(Base):
    __tablename__ = 'repair_history'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    repair_pk: Mapped[str] = mapped_column(ForeignKey('repairs.id', ondelete='CASCADE'), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(128), nullable=False)
    account_id: Mapped[Optional[int]] = mapped_column(ForeignKey('accounts.id', ondelete='SET NULL'), nullable=True)
    user_name: Mapped[str] = mapped_column(String(50), nullable=False)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default='')
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    repair = relationship('RepairCase', back_populates='history')


class Note(Base):
    __tablename__ = 'repair_notes'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    repair_pk: Mapped[str] = mapped_column(ForeignKey('repairs.id', ondelete='CASCADE'), nullable=False, index=True)
    note_text: Mapped[str] = mapped_column(Text, nullable=False)
    account_id: Mapped[Optional[int]] = mapped_column(ForeignKey('accounts.id', ondelete='SET NULL'), nullable=True)
    user_name: Mapped[str] = mapped_column(String(50), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    repair = relationship('RepairCase', back_populates='notes')
