from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from budgetbook import crud, models, schemas, security


@pytest.fixture()
def user(db_session):
    return crud.create_user(
        db_session,
        schemas.RegistrationCreate(email="grace@example.com", username="grace", password="s3cret"),
    )


@pytest.fixture()
def overview(db_session, user):
    return crud.create_overview(db_session, schemas.OverviewCreate(user_id=user.id, description="March"))


@pytest.fixture()
def logbook(db_session, user):
    return crud.create_logbook(db_session, schemas.LogbookCreate(user_id=user.id, name="Japan trip"))


def _entry_count(db_session, name):
    return db_session.scalar(select(func.count()).select_from(models.Entry).where(models.Entry.name == name))


def test_create_user_hashes_password_and_issues_code(user):
    assert user.password != "s3cret"
    assert security.verify_password("s3cret", user.password)
    assert len(user.verification_code) == security.VERIFICATION_CODE_LENGTH
    assert user.email_verified is False


def test_safe_user_never_exposes_credentials(db_session, user):
    other = crud.create_user(
        db_session,
        schemas.RegistrationCreate(email="linus@example.com", username="linus", password="pw"),
    )
    for record in (user, other):
        payload = schemas.UserRead.model_validate(record).to_payload()
        assert "password" not in payload
        assert "verificationCode" not in payload
        assert "verification_code" not in payload
        assert payload["email"] == record.email
    # The ORM row itself is left untouched.
    assert user.password and user.verification_code


def test_create_entry_adds_one_companion_purchase(db_session, overview):
    outcome = crud.create_entry(db_session, schemas.EntryCreate(name="Groceries", overview_id=overview.id))

    assert isinstance(outcome, crud.Created)
    entry = outcome.record
    assert entry.overview_id == overview.id
    assert entry.logbook_id is None
    assert len(entry.purchases) == 1
    assert entry.purchases[0].placement == 1
    assert entry.purchases[0].description is None


def test_duplicate_entry_name_under_same_parent_is_rejected(db_session, overview):
    crud.create_entry(db_session, schemas.EntryCreate(name="Rent", overview_id=overview.id))
    outcome = crud.create_entry(db_session, schemas.EntryCreate(name="Rent", overview_id=overview.id))

    assert outcome == crud.DuplicateName("Rent")
    assert _entry_count(db_session, "Rent") == 1


def test_same_name_under_different_parents_is_allowed(db_session, overview, logbook):
    first = crud.create_entry(db_session, schemas.EntryCreate(name="Food", overview_id=overview.id))
    second = crud.create_entry(db_session, schemas.EntryCreate(name="Food", logbook_id=logbook.id))

    assert isinstance(first, crud.Created)
    assert isinstance(second, crud.Created)


def test_entries_without_parent_skip_the_uniqueness_check(db_session):
    assert crud.entry_name_taken(db_session, "Loose") is False
    crud.create_entry(db_session, schemas.EntryCreate(name="Loose"))
    outcome = crud.create_entry(db_session, schemas.EntryCreate(name="Loose"))

    assert isinstance(outcome, crud.Created)
    assert _entry_count(db_session, "Loose") == 2


def test_rename_entry_checks_current_parent(db_session, overview):
    crud.create_entry(db_session, schemas.EntryCreate(name="Gas", overview_id=overview.id))
    fuel = crud.create_entry(db_session, schemas.EntryCreate(name="Fuel", overview_id=overview.id)).record

    outcome = crud.update_entry(db_session, fuel.id, schemas.EntryUpdate(name="Gas"))
    assert outcome == crud.DuplicateName("Gas")

    renamed = crud.update_entry(db_session, fuel.id, schemas.EntryUpdate(name="Fuel", budget=Decimal("120.00")))
    assert isinstance(renamed, crud.Updated)
    assert renamed.record.budget == Decimal("120.00")


def test_moving_entry_to_logbook_detaches_it_from_overview(db_session, overview, logbook):
    entry = crud.create_entry(db_session, schemas.EntryCreate(name="Hotel", overview_id=overview.id)).record

    outcome = crud.update_entry(db_session, entry.id, schemas.EntryUpdate(logbook_id=logbook.id))

    assert outcome.record.logbook_id == logbook.id
    assert outcome.record.overview_id is None


def test_update_missing_entry_raises(db_session):
    with pytest.raises(crud.EntityNotFoundError):
        crud.update_entry(db_session, 999, schemas.EntryUpdate(name="Nope"))


def test_purchase_placement_defaults_to_next_slot(db_session, overview):
    entry = crud.create_entry(db_session, schemas.EntryCreate(name="Coffee", overview_id=overview.id)).record

    second = crud.create_purchase(db_session, schemas.PurchaseCreate(entry_id=entry.id, description="Latte"))
    first = crud.create_purchase(db_session, schemas.PurchaseCreate(entry_id=entry.id, placement=1, description="Mocha"))

    assert second.placement == 2
    purchases = crud.list_purchases(db_session, entry.id)
    assert [purchase.id for purchase in purchases] == [entry.purchases[0].id, first.id, second.id]


def test_delete_purchases_removes_every_listed_row(db_session, overview):
    entry = crud.create_entry(db_session, schemas.EntryCreate(name="Books", overview_id=overview.id)).record
    extra = crud.create_purchase(db_session, schemas.PurchaseCreate(entry_id=entry.id))

    deleted = crud.delete_purchases(db_session, [entry.purchases[0].id, extra.id])

    assert sorted(deleted) == sorted([entry.purchases[0].id, extra.id])
    assert crud.list_purchases(db_session, entry.id) == []


def test_delete_user_cascades_to_owned_records(db_session, user, overview):
    entry = crud.create_entry(db_session, schemas.EntryCreate(name="Utilities", overview_id=overview.id)).record
    purchase_id = entry.purchases[0].id

    assert crud.delete_user(db_session, user.id) == user.id

    with pytest.raises(crud.EntityNotFoundError):
        crud.get_overview(db_session, overview.id)
    with pytest.raises(crud.EntityNotFoundError):
        crud.get_purchase(db_session, purchase_id)


def test_delete_missing_user_raises(db_session):
    with pytest.raises(crud.EntityNotFoundError):
        crud.delete_user(db_session, 42)
