"""Purchase endpoints mounted under ``/api/v1/purchases``."""
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


def _purchase(purchase) -> Dict[str, Any]:
    return schemas.PurchaseRead.model_validate(purchase).to_payload()


@router.get("")
def list_purchases(entry_id: Optional[int] = Query(None, alias="entryId"), db: Session = Depends(get_db)) -> JSONResponse:
    try:
        purchases = [_purchase(item) for item in crud.list_purchases(db, entry_id)]
    except SQLAlchemyError as exc:
        raise ApiError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "There was an error fetching purchases. Please refresh the page.",
            exc,
        ) from exc
    return respond(status.HTTP_200_OK, body="Fetched purchases!", response=purchases)


@router.get("/{purchase_id}")
def get_purchase(purchase_id: int, db: Session = Depends(get_db)) -> JSONResponse:
    try:
        purchase = crud.get_purchase(db, purchase_id)
    except (crud.EntityNotFoundError, SQLAlchemyError) as exc:
        raise ApiError(status.HTTP_404_NOT_FOUND, Errors.PURCHASE_DOES_NOT_EXIST, exc) from exc
    return respond(status.HTTP_200_OK, body="Fetched purchase!", response=_purchase(purchase))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_purchase(
    payload: Dict[str, Any] = Depends(verify_client_payload(required_data=["entryId"])),
    db: Session = Depends(get_db),
) -> JSONResponse:
    purchase_in = parse_payload(schemas.PurchaseCreate, payload)
    try:
        purchase = crud.create_purchase(db, purchase_in)
        db.commit()
    except crud.EntityNotFoundError as exc:
        raise ApiError(status.HTTP_404_NOT_FOUND, Errors.ENTRY_DOES_NOT_EXIST, exc) from exc
    except SQLAlchemyError as exc:
        raise ApiError(status.HTTP_400_BAD_REQUEST, cause=exc) from exc
    return respond(status.HTTP_201_CREATED, body="Created purchase!", response=_purchase(purchase))


@router.post("/delete")
def delete_purchases(
    payload: Dict[str, Any] = Depends(verify_client_payload(required_data=["purchaseIds"])),
    db: Session = Depends(get_db),
) -> JSONResponse:
    bulk_in = parse_payload(schemas.PurchaseBulkDelete, payload)
    try:
        deleted_ids = crud.delete_purchases(db, bulk_in.purchase_ids)
        db.commit()
    except (crud.EntityNotFoundError, SQLAlchemyError) as exc:
        raise ApiError(status.HTTP_404_NOT_FOUND, Errors.PURCHASE_DOES_NOT_EXIST, exc) from exc
    return respond(status.HTTP_200_OK, body="Deleted purchases!", response=deleted_ids)


@router.patch("/{purchase_id}")
def update_purchase(
    purchase_id: int,
    payload: Dict[str, Any] = Depends(verify_client_payload()),
    db: Session = Depends(get_db),
) -> JSONResponse:
    update_in = parse_payload(schemas.PurchaseUpdate, payload)
    try:
        purchase = crud.update_purchase(db, purchase_id, update_in)
        db.commit()
    except (crud.EntityNotFoundError, SQLAlchemyError) as exc:
        raise ApiError(status.HTTP_404_NOT_FOUND, Errors.PURCHASE_DOES_NOT_EXIST, exc) from exc
    return respond(status.HTTP_200_OK, body="Updated purchase!", response=_purchase(purchase))


@router.delete("/{purchase_id}")
def delete_purchase(purchase_id: int, db: Session = Depends(get_db)) -> JSONResponse:
    try:
        deleted_id = crud.delete_purchase(db, purchase_id)
        db.commit()
    except (crud.EntityNotFoundError, SQLAlchemyError) as exc:
        raise ApiError(status.HTTP_404_NOT_FOUND, Errors.PURCHASE_DOES_NOT_EXIST, exc) from exc
    return respond(status.HTTP_200_OK, body="Deleted purchase!", response=deleted_id)
