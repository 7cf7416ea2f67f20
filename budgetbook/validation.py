"""Request payload checks shared by every route.

:func:`verify_client_payload` builds a FastAPI dependency that only checks key
presence; type and format checks happen when the returned payload is parsed
into a schema with :func:`parse_payload`.
"""
from __future__ import annotations

import json
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Type, TypeVar

from fastapi import Request, status
from pydantic import BaseModel, ValidationError

from .errors import ApiError, MissingPayloadData, describe_validation_error

ModelT = TypeVar("ModelT", bound=BaseModel)


def missing_client_data(client_data: Iterable[str], expected_data: Sequence[str]) -> List[str]:
    """Return the expected keys absent from ``client_data``, in declaration order."""
    present = set(client_data)
    return [name for name in expected_data if name not in present]


async def read_json_object(request: Request) -> Dict[str, Any]:
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        payload = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Request body must be valid JSON.") from exc
    if not isinstance(payload, dict):
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Request body must be a JSON object.")
    return payload


def verify_client_payload(
    required_data: Optional[Sequence[str]] = None,
    optional_data: Optional[Sequence[str]] = None,
) -> Callable[[Request], Awaitable[Dict[str, Any]]]:
    """Build a dependency that rejects bodies missing any declared key.

    Missing required keys are reported first. Declared optional keys are
    checked the same way afterwards, so a route that declares an optional key
    still answers 400 when the client leaves it out.
    """

    required = tuple(required_data or ())
    optional = tuple(optional_data or ())

    async def dependency(request: Request) -> Dict[str, Any]:
        payload = await read_json_object(request)
        missing_required = missing_client_data(payload.keys(), required)
        if missing_required:
            raise MissingPayloadData(missing_required)
        missing_optional = missing_client_data(payload.keys(), optional)
        if missing_optional:
            raise MissingPayloadData(missing_optional)
        return payload

    return dependency


def parse_payload(model: Type[ModelT], payload: Dict[str, Any]) -> ModelT:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ApiError(status.HTTP_400_BAD_REQUEST, describe_validation_error(exc)) from exc
