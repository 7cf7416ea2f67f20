"""Registration and email/verification-code login under ``/api/v1/auth``.

Delivering codes by email is outside this service: a fresh code is stored on
the account and its issuance is logged.
"""
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import crud, models, schemas, security
from ..database import get_db
from ..envelope import Errors, respond
from ..errors import ApiError
from ..validation import parse_payload, verify_client_payload
from .users import safe_user

router = APIRouter()

REGISTRATION_DATA = ["email", "username", "password"]
LOGIN_DATA = ["email", "password"]
VERIFICATION_CODE_DATA = ["email", "verificationCode"]


def _require_account(db: Session, email: str) -> models.User:
    user = crud.find_user_by_email(db, email)
    if user is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, Errors.ACCOUNT_EMAIL_DOES_NOT_EXIST)
    return user


def _require_matching_code(user: models.User, submitted: str) -> None:
    if not security.verification_code_matches(user.verification_code, submitted):
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Incorrect verification code.")


def _storage_failure(exc: SQLAlchemyError) -> ApiError:
    return ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, cause=exc)


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    payload: Dict[str, Any] = Depends(verify_client_payload(required_data=REGISTRATION_DATA)),
    db: Session = Depends(get_db),
) -> JSONResponse:
    registration = parse_payload(schemas.RegistrationCreate, payload)
    try:
        taken = crud.account_exists(db, registration.email, registration.username)
    except SQLAlchemyError as exc:
        raise _storage_failure(exc) from exc
    if taken:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "An account with that email or username already exists.")
    try:
        user = crud.create_user(db, registration)
        db.commit()
    except SQLAlchemyError as exc:
        raise ApiError(status.HTTP_400_BAD_REQUEST, cause=exc) from exc
    return respond(
        status.HTTP_201_CREATED,
        body="Account created! Check your email for a verification code.",
        response=safe_user(user),
    )


@router.post("/login")
def login(
    payload: Dict[str, Any] = Depends(verify_client_payload(required_data=LOGIN_DATA)),
    db: Session = Depends(get_db),
) -> JSONResponse:
    credentials = parse_payload(schemas.LoginCreate, payload)
    try:
        user = _require_account(db, credentials.email)
        if not security.verify_password(credentials.password, user.password):
            raise ApiError(status.HTTP_400_BAD_REQUEST, "Incorrect password.")
        crud.issue_verification_code(db, user)
        db.commit()
    except SQLAlchemyError as exc:
        raise _storage_failure(exc) from exc
    return respond(status.HTTP_200_OK, body="Check your email for a verification code.")


@router.post("/verify-registration")
def verify_registration(
    payload: Dict[str, Any] = Depends(verify_client_payload(required_data=VERIFICATION_CODE_DATA)),
    db: Session = Depends(get_db),
) -> JSONResponse:
    verification = parse_payload(schemas.VerificationCodeCreate, payload)
    try:
        user = _require_account(db, verification.email)
        if user.email_verified:
            raise ApiError(status.HTTP_400_BAD_REQUEST, "Email already verified.")
        _require_matching_code(user, verification.verification_code)
        user = crud.mark_email_verified(db, user)
        db.commit()
    except SQLAlchemyError as exc:
        raise _storage_failure(exc) from exc
    return respond(status.HTTP_200_OK, body="Email verified!", response=safe_user(user))


@router.post("/verify-login")
def verify_login(
    payload: Dict[str, Any] = Depends(
        verify_client_payload(required_data=VERIFICATION_CODE_DATA, optional_data=["thirtyDays"])
    ),
    db: Session = Depends(get_db),
) -> JSONResponse:
    verification = parse_payload(schemas.VerificationCodeCreate, payload)
    try:
        user = _require_account(db, verification.email)
    except SQLAlchemyError as exc:
        raise _storage_failure(exc) from exc
    _require_matching_code(user, verification.verification_code)
    return respond(status.HTTP_200_OK, body="Logged in!", response=safe_user(user))


@router.post("/send-new-verification-code")
def send_new_verification_code(
    payload: Dict[str, Any] = Depends(verify_client_payload(required_data=["email"])),
    db: Session = Depends(get_db),
) -> JSONResponse:
    email_in = parse_payload(schemas.EmailCreate, payload)
    try:
        user = _require_account(db, email_in.email)
        crud.issue_verification_code(db, user)
        db.commit()
    except SQLAlchemyError as exc:
        raise _storage_failure(exc) from exc
    return respond(status.HTTP_200_OK, body="A new verification code has been sent to your email.")
