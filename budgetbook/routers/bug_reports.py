"""Bug report endpoints mounted under ``/api/v1/bug-reports``."""
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

REQUIRED_BUG_REPORT_DATA = ["userId", "title", "description"]


@router.get("")
def list_bug_reports(db: Session = Depends(get_db)) -> JSONResponse:
    try:
        reports = [schemas.BugReportRead.model_validate(item).to_payload() for item in crud.list_bug_reports(db)]
    except SQLAlchemyError as exc:
        raise ApiError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "There was an error fetching bug reports. Please refresh the page.",
            exc,
        ) from exc
    return respond(status.HTTP_200_OK, body="Fetched bug reports!", response=reports)


@router.get("/{bug_report_id}")
def get_bug_report(bug_report_id: int, db: Session = Depends(get_db)) -> JSONResponse:
    try:
        report = crud.get_bug_report(db, bug_report_id)
    except (crud.EntityNotFoundError, SQLAlchemyError) as exc:
        raise ApiError(status.HTTP_404_NOT_FOUND, Errors.BUG_REPORT_DOES_NOT_EXIST, exc) from exc
    return respond(status.HTTP_200_OK, body="Fetched bug report!", response=schemas.BugReportRead.model_validate(report).to_payload())


@router.post("", status_code=status.HTTP_201_CREATED)
def create_bug_report(
    payload: Dict[str, Any] = Depends(verify_client_payload(required_data=REQUIRED_BUG_REPORT_DATA)),
    db: Session = Depends(get_db),
) -> JSONResponse:
    report_in = parse_payload(schemas.BugReportCreate, payload)
    try:
        report = crud.create_bug_report(db, report_in)
        db.commit()
    except crud.EntityNotFoundError as exc:
        raise ApiError(status.HTTP_404_NOT_FOUND, Errors.ACCOUNT_DOES_NOT_EXIST, exc) from exc
    except SQLAlchemyError as exc:
        raise ApiError(status.HTTP_400_BAD_REQUEST, cause=exc) from exc
    return respond(status.HTTP_201_CREATED, body="Bug report sent!", response=schemas.BugReportRead.model_validate(report).to_payload())


@router.delete("/{bug_report_id}")
def delete_bug_report(bug_report_id: int, db: Session = Depends(get_db)) -> JSONResponse:
    try:
        deleted_id = crud.delete_bug_report(db, bug_report_id)
        db.commit()
    except (crud.EntityNotFoundError, SQLAlchemyError) as exc:
        raise ApiError(status.HTTP_404_NOT_FOUND, Errors.BUG_REPORT_DOES_NOT_EXIST, exc) from exc
    return respond(status.HTTP_200_OK, body="Deleted bug report!", response=deleted_id)
