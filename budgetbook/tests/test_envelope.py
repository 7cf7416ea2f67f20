from __future__ import annotations

import logging

import pytest
from sqlalchemy.exc import IntegrityError, NoResultFound, OperationalError, ProgrammingError

from budgetbook import envelope, models


def test_success_envelope_only_carries_given_fields():
    assert envelope.generate_response(body="Fetched entry!") == {"body": "Fetched entry!"}
    assert envelope.generate_response(response=[1, 2]) == {"response": [1, 2]}
    assert envelope.generate_response(body="Deleted!", caption="bye", response=None) == {
        "body": "Deleted!",
        "caption": "bye",
        "response": None,
    }


def test_custom_message_wins_over_orm_mapping():
    error = NoResultFound()
    result = envelope.generate_error_response(error, "An entry with that id does not exist.")
    assert result["error"] == "An entry with that id does not exist."
    assert result["caption"] == envelope.support_caption()


def test_unique_violation_names_the_column(db_session):
    db_session.add(models.User(email="a@example.com", username="a", password="x"))
    db_session.add(models.User(email="a@example.com", username="b", password="x"))
    with pytest.raises(IntegrityError) as excinfo:
        db_session.flush()

    assert envelope.generate_error_response(excinfo.value)["error"] == "Provided email not available."


def test_unique_violation_without_field_falls_back_to_generic_message():
    error = IntegrityError("INSERT ...", {}, Exception("duplicate key value violates unique constraint"))
    assert envelope.describe_orm_error(error) == "The input you provided already exists."


def test_known_orm_errors_are_mapped():
    auth = OperationalError("connect", {}, Exception('password authentication failed for user "app"'))
    assert envelope.describe_orm_error(auth) == "Authentication failed. Please provide credentials to access."
    assert envelope.describe_orm_error(NoResultFound()) == "Record not found"


def test_unmapped_orm_error_embeds_its_code():
    error = ProgrammingError("SELECT", {}, Exception("syntax error"))
    message = envelope.describe_orm_error(error)
    assert "ORM Error Code: f405" in message


def test_unknown_error_gets_fixed_message_and_is_logged(caplog):
    with caplog.at_level(logging.ERROR, logger="budgetbook.envelope"):
        result = envelope.generate_error_response(ValueError("boom"))
    assert result == {"error": envelope.UNKNOWN_ERROR, "caption": envelope.support_caption()}
    assert "boom" in caplog.text


def test_caption_names_the_given_support_address():
    assert envelope.generate_error_response(custom_message="nope", caption=envelope.support_caption("help@example.com")) == {
        "error": "nope",
        "caption": "If the issue persists, please contact help@example.com",
    }
    assert envelope.generate_error_response(custom_message="nope")["caption"] == (
        f"If the issue persists, please contact {envelope.DEFAULT_SUPPORT_EMAIL}"
    )
