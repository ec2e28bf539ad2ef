"""Reconciliation between a library element's JSON model and its columns."""

import json
from typing import Any, Dict, Protocol

from ..common.exceptions import MalformedModelError
from .models import LibraryElementKind
from .schemas import ElementModel


class SyncableElement(Protocol):
    kind: int
    name: str
    type: str
    description: str
    model: str


def serialize_model(model: ElementModel) -> str:
    """Serialize a model given either as an object or as raw JSON text."""
    if isinstance(model, str):
        return model
    return json.dumps(model)


def parse_model(raw: str) -> Dict[str, Any]:
    try:
        model = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise MalformedModelError(f"library element model is not valid JSON: {e}") from e

    if not isinstance(model, dict):
        raise MalformedModelError("library element model must be a JSON object")
    return model


def _sync_text_field(model: Dict[str, Any], key: str, column_value: str) -> str:
    value = model.get(key)
    if value is None:
        model[key] = column_value
        return column_value
    if not isinstance(value, str):
        raise MalformedModelError(f"library element model field '{key}' must be a string")
    return value


def sync_fields_with_model(element: SyncableElement) -> None:
    """Make the model and the relational columns agree, in place.

    The element's name wins over the model: panels get it as ``title``,
    variables as ``name``. For ``type`` and ``description`` the model wins
    when it carries a value, otherwise the column value is written into the
    model.

    Raises:
        MalformedModelError: If the model is not a JSON object, or carries a
            non-string ``type`` or ``description``.
    """
    model = parse_model(element.model)

    if element.kind == LibraryElementKind.PANEL:
        model["title"] = element.name
    elif element.kind == LibraryElementKind.VARIABLE:
        model["name"] = element.name

    element.type = _sync_text_field(model, "type", element.type or "")
    element.description = _sync_text_field(model, "description", element.description or "")
    element.model = json.dumps(model)
