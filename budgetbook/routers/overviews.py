"""Overview endpoints mounted under ``/api/v1/overviews``."""
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
def list_overviews(user_id: Optional[int] = Query(None, alias="userId"), db: Session = Depends(get_db)) -> JSONResponse:
    try:
        overviews = [schemas.OverviewRead.model_validate(item).to_payload() for item in crud.list_overviews(db, user_id)]
    except SQLAlchemyError as exc:
        raise ApiError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "There was an error fetching overviews. Please refresh the page.",
            exc,
        ) from exc
    return respond(status.HTTP_200_OK, body="Fetched overviews!", response=overviews)


@router.get("/{overview_id}")
def get_overview(overview_id: int, db: Session = Depends(get_db)) -> JSONResponse:
    try:
        overview = crud.get_overview(db, overview_id)
    except (crud.EntityNotFoundError, SQLAlchemyError) as exc:
        raise ApiError(status.HTTP_404_NOT_FOUND, Errors.OVERVIEW_DOES_NOT_EXIST, exc) from exc
    return respond(status.HTTP_200_OK, body="Fetched overview!", response=schemas.OverviewRead.model_validate(overview).to_payload())


@router.post("", status_code=status.HTTP_201_CREATED)
def create_overview(
    payload: Dict[str, Any] = Depends(verify_client_payload(required_data=["userId"])),
    db: Session = Depends(get_db),
) -> JSONResponse:
    overview_in = parse_payload(schemas.OverviewCreate, payload)
    try:
        overview = crud.create_overview(db, overview_in)
        db.commit()
    except SQLAlchemyError as exc:
        raise ApiError(status.HTTP_400_BAD_REQUEST, cause=exc) from exc
    return respond(status.HTTP_201_CREATED, body="Created overview!", response=schemas.OverviewRead.model_validate(overview).to_payload())


@router.patch("/{overview_id}")
def update_overview(
    overview_id: int,
    payload: Dict[str, Any] = Depends(verify_client_payload()),
    db: Session = Depends(get_db),
) -> JSONResponse:
    update_in = parse_payload(schemas.OverviewUpdate, payload)
    try:
        overview = crud.update_overview(db, overview_id, update_in)
        db.commit()
    except (crud.EntityNotFoundError, SQLAlchemyError) as exc:
        raise ApiError(status.HTTP_404_NOT_FOUND, Errors.OVERVIEW_DOES_NOT_EXIST, exc) from exc
    return respond(status.HTTP_200_OK, body="Updated overview!", response=schemas.OverviewRead.model_validate(overview).to_payload())


@router.delete("/{overview_id}")
def delete_overview(overview_id: int, db: Session = Depends(get_db)) -> JSONResponse:
    try:
        deleted_id = crud.delete_overview(db, overview_id)
        db.commit()
    except (crud.EntityNotFoundError, SQLAlchemyError) as exc:
        raise ApiError(status.HTTP_404_NOT_FOUND, Errors.OVERVIEW_DOES_NOT_EXIST, exc) from exc
    return respond(status.HTTP_200_OK, body="Deleted overview!", response=deleted_id)
