"""Uniform success and error JSON envelopes.

Every endpoint answers with one of two shapes::

    {"body": str?, "caption": str?, "response": Any?}
    {"error": str, "caption": str}

Failure envelopes always carry the support-contact caption, built from the
serving application's ``settings.support_email``.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, NoResultFound, OperationalError, SQLAlchemyError

logger = logging.getLogger(__name__)

DEFAULT_SUPPORT_EMAIL = "support@budgetbook.app"
UNKNOWN_ERROR = "There was an unknown error."

_UNSET: Any = object()

# SQLite: "UNIQUE constraint failed: users.email"
_SQLITE_UNIQUE = re.compile(r"UNIQUE constraint failed: ([\w.]+)")
# PostgreSQL: "Key (email)=(a@b.c) already exists."
_POSTGRES_UNIQUE = re.compile(r"Key \((\w+)\)=")
# MySQL: "Duplicate entry 'a@b.c' for key 'users.email'"
_MYSQL_UNIQUE = re.compile(r"Duplicate entry .* for key '([\w.]+)'")


class Errors:
    ACCOUNT_DOES_NOT_EXIST = "An account with that id does not exist."
    ACCOUNT_EMAIL_DOES_NOT_EXIST = "An account with that email does not exist."
    OVERVIEW_DOES_NOT_EXIST = "An overview with that id does not exist."
    LOGBOOK_DOES_NOT_EXIST = "A logbook with that id does not exist."
    ENTRY_DOES_NOT_EXIST = "An entry with that id does not exist."
    PURCHASE_DOES_NOT_EXIST = "A purchase with that id does not exist."
    BUG_REPORT_DOES_NOT_EXIST = "A bug report with that id does not exist."


def support_caption(email: str = DEFAULT_SUPPORT_EMAIL) -> str:
    return f"If the issue persists, please contact {email}"


def request_caption(request: Request) -> str:
    """Caption for the application serving ``request``."""
    settings = getattr(request.app.state, "settings", None)
    return support_caption(settings.support_email if settings is not None else DEFAULT_SUPPORT_EMAIL)


def _unique_field(exc: IntegrityError) -> Optional[str]:
    message = str(exc.orig) if exc.orig is not None else str(exc)
    for pattern in (_SQLITE_UNIQUE, _POSTGRES_UNIQUE, _MYSQL_UNIQUE):
        match = pattern.search(message)
        if match:
            return match.group(1).split(".")[-1]
    return None


def _is_unique_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig if exc.orig is not None else exc).lower()
    return "unique" in message or "duplicate" in message or "already exists" in message


def describe_orm_error(exc: SQLAlchemyError) -> str:
    """Map a recognised ORM error to a human readable message."""
    if isinstance(exc, OperationalError) and "authentication failed" in str(exc.orig or exc).lower():
        return "Authentication failed. Please provide credentials to access."
    if isinstance(exc, IntegrityError) and _is_unique_violation(exc):
        field = _unique_field(exc)
        if field:
            return f"Provided {field} not available."
        return "The input you provided already exists."
    if isinstance(exc, NoResultFound):
        return "Record not found"
    code = exc.code or type(exc).__name__
    return (
        f"The specific cause of the error is unknown. ORM Error Code: {code}. "
        "Try logging the error output to further triage the possible cause."
    )


def generate_response(
    body: Optional[str] = None,
    caption: Optional[str] = None,
    response: Any = _UNSET,
) -> Dict[str, Any]:
    envelope: Dict[str, Any] = {}
    if body is not None:
        envelope["body"] = body
    if caption is not None:
        envelope["caption"] = caption
    if response is not _UNSET:
        envelope["response"] = response
    return envelope


def generate_error_response(
    error: Optional[BaseException] = None,
    custom_message: Optional[str] = None,
    caption: Optional[str] = None,
) -> Dict[str, str]:
    if custom_message:
        message = custom_message
    elif isinstance(error, SQLAlchemyError):
        message = describe_orm_error(error)
    else:
        message = UNKNOWN_ERROR
        if error is not None:
            logger.error("Unrecognised error: %r", error)
    return {"error": message, "caption": caption or support_caption()}


def respond(status_code: int, body: Optional[str] = None, response: Any = _UNSET, caption: Optional[str] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=generate_response(body, caption, response))


def respond_error(
    status_code: int,
    error: Optional[BaseException] = None,
    message: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
    caption: Optional[str] = None,
) -> JSONResponse:
    content = generate_error_response(error, message, caption)
    return JSONResponse(status_code=status_code, content=content, headers=headers)
