"""Logbook endpoints mounted under ``/api/v1/logbooks``."""
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..database import get_db
from ..envelope import Errors, respond
from ..errors import ApiError
from ..validation import parse_payload, verify_client_payload

router = APIRouter()


@router.get("")
def list_logbooks(user_id: Optional[int] = Query(None, alias="userId"), db: Session = Depends(get_db)) -> JSONResponse:
    try:
        logbooks = [schemas.LogbookRead.model_validate(item).to_payload() for item in crud.list_logbooks(db, user_id)]
    except SQLAlchemyError as exc:
        raise ApiError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "There was an error fetching logbooks. Please refresh the page.",
            exc,
        ) from exc
    return respond(status.HTTP_200_OK, body="Fetched logbooks!", response=logbooks)


@router.get("/{logbook_id}")
def get_logbook(logbook_id: int, db: Session = Depends(get_db)) -> JSONResponse:
    try:
        logbook = crud.get_logbook(db, logbook_id)
    except (crud.EntityNotFoundError, SQLAlchemyError) as exc:
        raise ApiError(status.HTTP_404_NOT_FOUND, Errors.LOGBOOK_DOES_NOT_EXIST, exc) from exc
    return respond(status.HTTP_200_OK, body="Fetched logbook!", response=schemas.LogbookRead.model_validate(logbook).to_payload())


@router.post("", status_code=status.HTTP_201_CREATED)
def create_logbook(
    payload: Dict[str, Any] = Depends(verify_client_payload(required_data=["name", "userId"])),
    db: Session = Depends(get_db),
) -> JSONResponse:
    logbook_in = parse_payload(schemas.LogbookCreate, payload)
    try:
        logbook = crud.create_logbook(db, logbook_in)
        db.commit()
    except SQLAlchemyError as exc:
        raise ApiError(status.HTTP_400_BAD_REQUEST, cause=exc) from exc
    return respond(status.HTTP_201_CREATED, body="Created logbook!", response=schemas.LogbookRead.model_validate(logbook).to_payload())


@router.patch("/{logbook_id}")
def update_logbook(
    logbook_id: int,
    payload: Dict[str, Any] = Depends(verify_client_payload()),
    db: Session = Depends(get_db),
) -> JSONResponse:
    update_in = parse_payload(schemas.LogbookUpdate, payload)
    try:
        logbook = crud.update_logbook(db, logbook_id, update_in)
        db.commit()
    except (crud.EntityNotFoundError, SQLAlchemyError) as exc:
        raise ApiError(status.HTTP_404_NOT_FOUND, Errors.LOGBOOK_DOES_NOT_EXIST, exc) from exc
    return respond(status.HTTP_200_OK, body="Updated logbook!", response=schemas.LogbookRead.model_validate(logbook).to_payload())


@router.delete("/{logbook_id}")
def delete_logbook(logbook_id: int, db: Session = Depends(get_db)) -> JSONResponse:
    try:
        deleted_id = crud.delete_logbook(db, logbook_id)
        db.commit()
    except (crud.EntityNotFoundError, SQLAlchemyError) as exc:
        raise ApiError(status.HTTP_404_NOT_FOUND, Errors.LOGBOOK_DOES_NOT_EXIST, exc) from exc
    return respond(status.HTTP_200_OK, body="Deleted logbook!", response=deleted_id)
