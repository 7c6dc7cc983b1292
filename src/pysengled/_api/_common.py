"""Shared helpers for Sengled REST endpoint modules.

It is internal to pysengled and may change at any time.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from pysengled.exceptions import SengledSerializationError

TModel = TypeVar("TModel", bound=BaseModel)


def validate_response(model: type[TModel], response: dict[str, Any], *, endpoint: str) -> TModel:
    """Validate a decoded JSON response against *model*.

    Schema mismatches are reported as :class:`SengledSerializationError`
    so callers see one error type for "the body was not what we expected".
    """
    try:
        return model.model_validate(response)
    except ValidationError as exc:
        raise SengledSerializationError(
            f"Unexpected response shape from {endpoint}: {exc.error_count()} error(s)",
            endpoint=endpoint,
        ) from exc
