"""SQLAlchemy models for the budgetbook backend."""
from __future__ import annotations

import enum
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from .database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Currency(str, enum.Enum):
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    JPY = "JPY"
    CAD = "CAD"
    AUD = "AUD"
    INR = "INR"


class Theme(str, enum.Enum):
    LIGHT = "light"
    DARK = "dark"


class User(Base):
    __tablename__ = "users"

    id: int = Column(Integer, primary_key=True, index=True)
    email: str = Column(String(255), unique=True, nullable=False, index=True)
    username: str = Column(String(100), unique=True, nullable=False, index=True)
    password: str = Column(String(255), nullable=False)
    verification_code: Optional[str] = Column(String(16), nullable=True)
    email_verified: bool = Column(Boolean, nullable=False, default=False)
    mobile_number: Optional[str] = Column(String(32), nullable=True)
    currency: Currency = Column(Enum(Currency), nullable=False, default=Currency.USD)
    theme: Theme = Column(Enum(Theme), nullable=False, default=Theme.LIGHT)
    created_at: datetime = Column(DateTime, nullable=False, default=_utcnow)

    overviews = relationship("Overview", back_populates="user", cascade="all, delete-orphan")
    logbooks = relationship("Logbook", back_populates="user", cascade="all, delete-orphan")
    bug_reports = relationship("BugReport", back_populates="user", cascade="all, delete-orphan")


class Overview(Base):
    __tablename__ = "overviews"

    id: int = Column(Integer, primary_key=True, index=True)
    description: Optional[str] = Column(Text, nullable=True)
    total_budget: Optional[Decimal] = Column(Numeric(12, 2), nullable=True)
    user_id: int = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    user = relationship("User", back_populates="overviews")
    entries = relationship("Entry", back_populates="overview", cascade="all, delete-orphan", order_by="Entry.id")


class Logbook(Base):
    __tablename__ = "logbooks"

    id: int = Column(Integer, primary_key=True, index=True)
    name: str = Column(String(100), nullable=False)
    user_id: int = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    user = relationship("User", back_populates="logbooks")
    entries = relationship("Entry", back_populates="logbook", cascade="all, delete-orphan", order_by="Entry.id")


class Entry(Base):
    __tablename__ = "entries"

    id: int = Column(Integer, primary_key=True, index=True)
    name: str = Column(String(100), nullable=False)
    total_spent: Optional[Decimal] = Column(Numeric(12, 2), nullable=True)
    budget: Optional[Decimal] = Column(Numeric(12, 2), nullable=True)
    # An entry hangs off either an overview or a logbook, never both.
    overview_id: Optional[int] = Column(Integer, ForeignKey("overviews.id", ondelete="CASCADE"), nullable=True, index=True)
    logbook_id: Optional[int] = Column(Integer, ForeignKey("logbooks.id", ondelete="CASCADE"), nullable=True, index=True)

    overview = relationship("Overview", back_populates="entries")
    logbook = relationship("Logbook", back_populates="entries")
    purchases = relationship(
        "Purchase",
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by=lambda: [Purchase.placement, Purchase.id],
    )


class Purchase(Base):
    __tablename__ = "purchases"

    id: int = Column(Integer, primary_key=True, index=True)
    placement: int = Column(Integer, nullable=False, default=1)
    category: Optional[str] = Column(String(100), nullable=True)
    description: Optional[str] = Column(String(255), nullable=True)
    cost: Optional[Decimal] = Column(Numeric(12, 2), nullable=True)
    entry_id: int = Column(Integer, ForeignKey("entries.id", ondelete="CASCADE"), nullable=False, index=True)

    entry = relationship("Entry", back_populates="purchases")


class BugReport(Base):
    __tablename__ = "bug_reports"

    id: int = Column(Integer, primary_key=True, index=True)
    title: str = Column(String(255), nullable=False)
    description: str = Column(Text, nullable=False)
    created_at: datetime = Column(DateTime, nullable=False, default=_utcnow)
    user_id: int = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    user = relationship("User", back_populates="bug_reports")
