"""Account endpoints mounted under ``/api/v1/users``.

Users always leave through :class:`~budgetbook.schemas.UserRead`, which has no
password or verification code field.
"""
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..database import get_db
from ..envelope import Errors, respond
from ..errors import ApiError
from ..validation import parse_payload, verify_client_payload

router = APIRouter()


def safe_user(user: models.User) -> Dict[str, Any]:
    return schemas.UserRead.model_validate(user).to_payload()


@router.get("")
def list_users(db: Session = Depends(get_db)) -> JSONResponse:
    try:
        users = [safe_user(user) for user in crud.list_users(db)]
    except SQLAlchemyError as exc:
        raise ApiError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "There was an error fetching accounts. Please refresh the page.",
            exc,
        ) from exc
    return respond(status.HTTP_200_OK, response=users)


@router.get("/{user_id}")
def get_user(user_id: int, db: Session = Depends(get_db)) -> JSONResponse:
    try:
        user = crud.get_user(db, user_id)
    except (crud.EntityNotFoundError, SQLAlchemyError) as exc:
        raise ApiError(status.HTTP_404_NOT_FOUND, Errors.ACCOUNT_DOES_NOT_EXIST, exc) from exc
    return respond(status.HTTP_200_OK, response=safe_user(user))


@router.patch("/{user_id}")
def update_user(
    user_id: int,
    payload: Dict[str, Any] = Depends(verify_client_payload()),
    db: Session = Depends(get_db),
) -> JSONResponse:
    update_in = parse_payload(schemas.UserUpdate, payload)
    try:
        user = crud.update_user(db, user_id, update_in)
        db.commit()
    except crud.EntityNotFoundError as exc:
        raise ApiError(status.HTTP_404_NOT_FOUND, Errors.ACCOUNT_DOES_NOT_EXIST, exc) from exc
    except SQLAlchemyError as exc:
        # e.g. "Provided email not available."
        raise ApiError(status.HTTP_404_NOT_FOUND, cause=exc) from exc
    return respond(status.HTTP_200_OK, body="Account updated!", response=safe_user(user))


@router.patch("/{user_id}/password")
def update_user_password(
    user_id: int,
    payload: Dict[str, Any] = Depends(verify_client_payload(required_data=["newPassword"])),
    db: Session = Depends(get_db),
) -> JSONResponse:
    password_in = parse_payload(schemas.PasswordUpdate, payload)
    try:
        crud.update_user_password(db, user_id, password_in.new_password)
        db.commit()
    except (crud.EntityNotFoundError, SQLAlchemyError) as exc:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Failed to update password. Please try again.", exc) from exc
    return respond(status.HTTP_200_OK, body="Password updated!")


@router.delete("/{user_id}")
def delete_user(user_id: int, db: Session = Depends(get_db)) -> JSONResponse:
    try:
        deleted_id = crud.delete_user(db, user_id)
        db.commit()
    except (crud.EntityNotFoundError, SQLAlchemyError) as exc:
        raise ApiError(status.HTTP_404_NOT_FOUND, Errors.ACCOUNT_DOES_NOT_EXIST, exc) from exc
    return respond(status.HTTP_200_OK, body="Account deleted!", response=deleted_id)
