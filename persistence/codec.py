from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel

from errors import DecodeError


def to_json_data(document: Any) -> Any:
    """Plain JSON data for a model, a list of models, or data that already is."""
    if isinstance(document, BaseModel):
        return document.model_dump(mode="json", exclude_none=True)
    if isinstance(document, list):
        return [to_json_data(d) for d in document]
    return document


def encode(document: Any) -> str:
    return json.dumps(to_json_data(document))


def decode(raw: str) -> dict[str, Any] | list[Any]:
    """
    Decode a stored value into a JSON object or array.

    Values written by the historical double-encoding path decode to a JSON
    string first; that inner string is decoded once more.
    """
    try:
        value = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Stored value is not JSON: {e}") from e

    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError as e:
            raise DecodeError(f"Stored string value is not JSON: {e}") from e

    if not isinstance(value, (dict, list)):
        raise DecodeError(f"Stored value decoded to {type(value).__name__}, expected object or array")
    return value
