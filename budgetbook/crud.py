"""CRUD helper functions for the budgetbook backend.

Helpers only talk to the session: they raise :class:`EntityNotFoundError`
for missing rows and let :class:`~sqlalchemy.exc.SQLAlchemyError` propagate,
leaving status codes to the routers.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar, Union

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from . import models, schemas, security

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT")


class EntityNotFoundError(RuntimeError):
    """Raised when an entity cannot be located in the database."""


class StorageError(RuntimeError):
    """Raised when a lookup that guards a write fails at the storage layer."""


@dataclass(frozen=True)
class Created(Generic[RecordT]):
    record: RecordT


@dataclass(frozen=True)
class Updated(Generic[RecordT]):
    record: RecordT


@dataclass(frozen=True)
class DuplicateName:
    name: str


EntryCreateOutcome = Union[Created[models.Entry], DuplicateName]
EntryUpdateOutcome = Union[Updated[models.Entry], DuplicateName]


def _get_or_raise(session: Session, model: Type[RecordT], record_id: int) -> RecordT:
    record = session.get(model, record_id)
    if record is None:
        raise EntityNotFoundError(f"{model.__name__} {record_id} not found")
    return record


def _apply_update(record: Any, changes: Dict[str, Any]) -> None:
    for field, value in changes.items():
        setattr(record, field, value)


# --------------------------------------------------------------------- users


def list_users(session: Session) -> List[models.User]:
    stmt = select(models.User).order_by(models.User.id)
    return list(session.scalars(stmt))


def get_user(session: Session, user_id: int) -> models.User:
    return _get_or_raise(session, models.User, user_id)


def find_user_by_email(session: Session, email: str) -> Optional[models.User]:
    stmt = select(models.User).where(models.User.email == email)
    return session.scalars(stmt).first()


def account_exists(session: Session, email: str, username: str) -> bool:
    stmt = select(models.User.id).where((models.User.email == email) | (models.User.username == username))
    return session.scalars(stmt).first() is not None


def create_user(session: Session, registration: schemas.RegistrationCreate) -> models.User:
    user = models.User(
        email=registration.email,
        username=registration.username,
        password=security.encrypt_password(registration.password),
        verification_code=security.generate_verification_code(),
        email_verified=False,
    )
    session.add(user)
    session.flush()
    session.refresh(user)
    return user


def update_user(session: Session, user_id: int, update_in: schemas.UserUpdate) -> models.User:
    user = get_user(session, user_id)
    _apply_update(user, update_in.model_dump(exclude_unset=True))
    session.flush()
    session.refresh(user)
    return user


def update_user_password(session: Session, user_id: int, new_password: str) -> None:
    user = get_user(session, user_id)
    user.password = security.encrypt_password(new_password)
    session.flush()


def issue_verification_code(session: Session, user: models.User) -> str:
    code = security.generate_verification_code()
    user.verification_code = code
    session.flush()
    logger.info("Issued a verification code for user %s", user.id)
    return code


def mark_email_verified(session: Session, user: models.User) -> models.User:
    user.email_verified = True
    session.flush()
    session.refresh(user)
    return user


def delete_user(session: Session, user_id: int) -> int:
    user = get_user(session, user_id)
    session.delete(user)
    session.flush()
    return user_id


# ----------------------------------------------------------------- overviews


def list_overviews(session: Session, user_id: Optional[int] = None) -> List[models.Overview]:
    stmt = select(models.Overview).order_by(models.Overview.id)
    if user_id is not None:
        stmt = stmt.where(models.Overview.user_id == user_id)
    return list(session.scalars(stmt))


def get_overview(session: Session, overview_id: int) -> models.Overview:
    return _get_or_raise(session, models.Overview, overview_id)


def create_overview(session: Session, overview_in: schemas.OverviewCreate) -> models.Overview:
    overview = models.Overview(**overview_in.model_dump())
    session.add(overview)
    session.flush()
    session.refresh(overview)
    return overview


def update_overview(session: Session, overview_id: int, update_in: schemas.OverviewUpdate) -> models.Overview:
    overview = get_overview(session, overview_id)
    _apply_update(overview, update_in.model_dump(exclude_unset=True))
    session.flush()
    session.refresh(overview)
    return overview


def delete_overview(session: Session, overview_id: int) -> int:
    session.delete(get_overview(session, overview_id))
    session.flush()
    return overview_id


# ------------------------------------------------------------------ logbooks


def list_logbooks(session: Session, user_id: Optional[int] = None) -> List[models.Logbook]:
    stmt = select(models.Logbook).order_by(models.Logbook.id)
    if user_id is not None:
        stmt = stmt.where(models.Logbook.user_id == user_id)
    return list(session.scalars(stmt))


def get_logbook(session: Session, logbook_id: int) -> models.Logbook:
    return _get_or_raise(session, models.Logbook, logbook_id)


def create_logbook(session: Session, logbook_in: schemas.LogbookCreate) -> models.Logbook:
    logbook = models.Logbook(**logbook_in.model_dump())
    session.add(logbook)
    session.flush()
    session.refresh(logbook)
    return logbook


def update_logbook(session: Session, logbook_id: int, update_in: schemas.LogbookUpdate) -> models.Logbook:
    logbook = get_logbook(session, logbook_id)
    _apply_update(logbook, update_in.model_dump(exclude_unset=True))
    session.flush()
    session.refresh(logbook)
    return logbook


def delete_logbook(session: Session, logbook_id: int) -> int:
    session.delete(get_logbook(session, logbook_id))
    session.flush()
    return logbook_id


# ------------------------------------------------------------------- entries


def _entries_with_purchases():
    return select(models.Entry).options(selectinload(models.Entry.purchases)).order_by(models.Entry.id)


def list_entries(session: Session) -> List[models.Entry]:
    return list(session.scalars(_entries_with_purchases()))


def list_overview_entries(session: Session, overview_id: int) -> List[models.Entry]:
    stmt = _entries_with_purchases().where(models.Entry.overview_id == overview_id)
    return list(session.scalars(stmt))


def list_logbook_entries(session: Session, logbook_id: int) -> List[models.Entry]:
    stmt = _entries_with_purchases().where(models.Entry.logbook_id == logbook_id)
    return list(session.scalars(stmt))


def get_entry(session: Session, entry_id: int) -> models.Entry:
    return _get_or_raise(session, models.Entry, entry_id)


def entry_name_taken(
    session: Session,
    name: str,
    overview_id: Optional[int] = None,
    logbook_id: Optional[int] = None,
    exclude_id: Optional[int] = None,
) -> bool:
    """Return whether ``name`` is already used under the given overview or logbook.

    The overview id wins when both are given. Without either id there is no
    scope to compare against and the name counts as free.
    """
    if overview_id:
        scope = models.Entry.overview_id == overview_id
    elif logbook_id:
        scope = models.Entry.logbook_id == logbook_id
    else:
        return False
    stmt = select(models.Entry.id).where(models.Entry.name == name, scope)
    if exclude_id is not None:
        stmt = stmt.where(models.Entry.id != exclude_id)
    try:
        return session.scalars(stmt.limit(1)).first() is not None
    except SQLAlchemyError as exc:
        raise StorageError("Failed to check for an existing entry") from exc


def create_entry(session: Session, entry_in: schemas.EntryCreate) -> EntryCreateOutcome:
    """Insert an entry together with its first, empty purchase."""
    if entry_name_taken(session, entry_in.name, entry_in.overview_id, entry_in.logbook_id):
        return DuplicateName(entry_in.name)
    entry = models.Entry(**entry_in.model_dump())
    # Both rows go out in the same flush, inside the caller's transaction.
    entry.purchases.append(models.Purchase(placement=1))
    session.add(entry)
    session.flush()
    session.refresh(entry)
    return Created(entry)


def update_entry(session: Session, entry_id: int, update_in: schemas.EntryUpdate) -> EntryUpdateOutcome:
    entry = get_entry(session, entry_id)
    changes = update_in.model_dump(exclude_unset=True)
    # Moving an entry under a new parent detaches it from the other kind.
    if changes.get("overview_id") is not None:
        changes.setdefault("logbook_id", None)
    elif changes.get("logbook_id") is not None:
        changes.setdefault("overview_id", None)
    name = changes.get("name")
    if name:
        overview_id = changes["overview_id"] if "overview_id" in changes else entry.overview_id
        logbook_id = changes["logbook_id"] if "logbook_id" in changes else entry.logbook_id
        if entry_name_taken(session, name, overview_id, logbook_id, exclude_id=entry.id):
            return DuplicateName(name)
    _apply_update(entry, changes)
    session.flush()
    session.refresh(entry)
    return Updated(entry)


def delete_entry(session: Session, entry_id: int) -> int:
    session.delete(get_entry(session, entry_id))
    session.flush()
    return entry_id


# ----------------------------------------------------------------- purchases


def list_purchases(session: Session, entry_id: Optional[int] = None) -> List[models.Purchase]:
    stmt = select(models.Purchase)
    if entry_id is not None:
        stmt = stmt.where(models.Purchase.entry_id == entry_id).order_by(models.Purchase.placement, models.Purchase.id)
    else:
        stmt = stmt.order_by(models.Purchase.id)
    return list(session.scalars(stmt))


def get_purchase(session: Session, purchase_id: int) -> models.Purchase:
    return _get_or_raise(session, models.Purchase, purchase_id)


def next_placement(session: Session, entry_id: int) -> int:
    stmt = select(func.coalesce(func.max(models.Purchase.placement), 0)).where(models.Purchase.entry_id == entry_id)
    return int(session.scalar(stmt) or 0) + 1


def create_purchase(session: Session, purchase_in: schemas.PurchaseCreate) -> models.Purchase:
    get_entry(session, purchase_in.entry_id)
    data = purchase_in.model_dump()
    if data.get("placement") is None:
        data["placement"] = next_placement(session, purchase_in.entry_id)
    purchase = models.Purchase(**data)
    session.add(purchase)
    session.flush()
    session.refresh(purchase)
    return purchase


def update_purchase(session: Session, purchase_id: int, update_in: schemas.PurchaseUpdate) -> models.Purchase:
    purchase = get_purchase(session, purchase_id)
    _apply_update(purchase, update_in.model_dump(exclude_unset=True))
    session.flush()
    session.refresh(purchase)
    return purchase


def delete_purchase(session: Session, purchase_id: int) -> int:
    session.delete(get_purchase(session, purchase_id))
    session.flush()
    return purchase_id


def delete_purchases(session: Session, purchase_ids: Sequence[int]) -> List[int]:
    """Delete every listed purchase, failing as a whole if one is missing."""
    purchases = [get_purchase(session, purchase_id) for purchase_id in purchase_ids]
    for purchase in purchases:
        session.delete(purchase)
    session.flush()
    return [purchase.id for purchase in purchases]


# --------------------------------------------------------------- bug reports


def list_bug_reports(session: Session) -> List[models.BugReport]:
    stmt = select(models.BugReport).order_by(models.BugReport.id)
    return list(session.scalars(stmt))


def get_bug_report(session: Session, bug_report_id: int) -> models.BugReport:
    return _get_or_raise(session, models.BugReport, bug_report_id)


def create_bug_report(session: Session, report_in: schemas.BugReportCreate) -> models.BugReport:
    get_user(session, report_in.user_id)
    report = models.BugReport(**report_in.model_dump())
    session.add(report)
    session.flush()
    session.refresh(report)
    return report


def delete_bug_report(session: Session, bug_report_id: int) -> int:
    session.delete(get_bug_report(session, bug_report_id))
    session.flush()
    return bug_report_id
