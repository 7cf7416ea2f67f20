"""Entry endpoints mounted under ``/api/v1/entries``."""
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..database import get_db
from ..envelope import Errors, respond
from ..errors import ApiError
from ..validation import parse_payload, verify_client_payload

router = APIRouter()

FETCH_ERROR = "There was an error fetching entries. Please refresh the page."
CHECK_ERROR = "Failed to check for an existing entry during entry creation."


def _duplicate_message(name: str) -> str:
    return f'An entry with name "{name}" already exists!'


def _entries_response(entries, body: str) -> JSONResponse:
    payload = [schemas.EntryRead.model_validate(entry).to_payload() for entry in entries]
    return respond(status.HTTP_200_OK, body=body, response=payload)


@router.get("")
def list_entries(db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return _entries_response(crud.list_entries(db), "Fetched entries!")
    except SQLAlchemyError as exc:
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, FETCH_ERROR, exc) from exc


@router.get("/overview/{overview_id}")
def list_overview_entries(overview_id: int, db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return _entries_response(crud.list_overview_entries(db, overview_id), "Fetched overview entries!")
    except SQLAlchemyError as exc:
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, FETCH_ERROR, exc) from exc


@router.get("/logbook/{logbook_id}")
def list_logbook_entries(logbook_id: int, db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return _entries_response(crud.list_logbook_entries(db, logbook_id), "Fetched logbook entries!")
    except SQLAlchemyError as exc:
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, FETCH_ERROR, exc) from exc


@router.get("/{entry_id}")
def get_entry(entry_id: int, db: Session = Depends(get_db)) -> JSONResponse:
    try:
        entry = crud.get_entry(db, entry_id)
        return respond(status.HTTP_200_OK, body="Fetched entry!", response=schemas.EntryRead.model_validate(entry).to_payload())
    except (crud.EntityNotFoundError, SQLAlchemyError) as exc:
        raise ApiError(status.HTTP_404_NOT_FOUND, Errors.ENTRY_DOES_NOT_EXIST, exc) from exc


@router.post("", status_code=status.HTTP_201_CREATED)
def create_entry(
    payload: Dict[str, Any] = Depends(verify_client_payload(required_data=["name"])),
    db: Session = Depends(get_db),
) -> JSONResponse:
    entry_in = parse_payload(schemas.EntryCreate, payload)
    try:
        outcome = crud.create_entry(db, entry_in)
        db.commit()
    except crud.StorageError as exc:
        raise ApiError(status.HTTP_400_BAD_REQUEST, CHECK_ERROR, exc) from exc
    except SQLAlchemyError as exc:
        raise ApiError(status.HTTP_400_BAD_REQUEST, cause=exc) from exc

    if isinstance(outcome, crud.DuplicateName):
        raise ApiError(status.HTTP_400_BAD_REQUEST, _duplicate_message(outcome.name))
    entry = schemas.EntryRead.model_validate(outcome.record).to_payload()
    return respond(status.HTTP_201_CREATED, body="Created entry!", response=entry)


@router.patch("/{entry_id}")
def update_entry(
    entry_id: int,
    payload: Dict[str, Any] = Depends(verify_client_payload()),
    db: Session = Depends(get_db),
) -> JSONResponse:
    update_in = parse_payload(schemas.EntryUpdate, payload)
    try:
        outcome = crud.update_entry(db, entry_id, update_in)
        db.commit()
    except crud.EntityNotFoundError as exc:
        raise ApiError(status.HTTP_404_NOT_FOUND, Errors.ENTRY_DOES_NOT_EXIST, exc) from exc
    except crud.StorageError as exc:
        raise ApiError(status.HTTP_400_BAD_REQUEST, CHECK_ERROR, exc) from exc
    except SQLAlchemyError as exc:
        raise ApiError(status.HTTP_404_NOT_FOUND, cause=exc) from exc

    if isinstance(outcome, crud.DuplicateName):
        raise ApiError(status.HTTP_404_NOT_FOUND, _duplicate_message(outcome.name))
    entry = schemas.EntryRead.model_validate(outcome.record).to_payload()
    return respond(status.HTTP_200_OK, body="Updated entry!", response=entry)


@router.delete("/{entry_id}")
def delete_entry(entry_id: int, db: Session = Depends(get_db)) -> JSONResponse:
    try:
        deleted_id = crud.delete_entry(db, entry_id)
        db.commit()
    except (crud.EntityNotFoundError, SQLAlchemyError) as exc:
        raise ApiError(status.HTTP_404_NOT_FOUND, Errors.ENTRY_DOES_NOT_EXIST, exc) from exc
    return respond(status.HTTP_200_OK, body="Deleted entry!", response=deleted_id)
