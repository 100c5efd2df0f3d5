from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from core.errors import FieldError, ValidationError


SchemaT = TypeVar("SchemaT", bound=BaseModel)

# FastAPI prefixes request errors with where the value came from
_LOCATION_PREFIXES = {"body", "query", "path"}


def field_errors(raw_errors: Iterable[Mapping[str, Any]]) -> List[FieldError]:
    errors: List[FieldError] = []
    for err in raw_errors:
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] in _LOCATION_PREFIXES:
            loc = loc[1:]
        errors.append(FieldError(field=".".join(loc) or "__root__", message=str(err.get("msg", "Invalid value"))))
    return errors


def collect_field_errors(schema: Type[BaseModel], payload: Dict[str, Any]) -> List[FieldError]:
    """Validate ``payload`` against ``schema`` and return the field errors, if any."""
    try:
        schema.model_validate(payload)
    except PydanticValidationError as exc:
        return field_errors(exc.errors())
    return []


def parse_or_raise(schema: Type[SchemaT], payload: Any) -> SchemaT:
    if not isinstance(payload, dict):
        raise ValidationError([FieldError("__root__", "Expected a JSON object")])
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(field_errors(exc.errors())) from exc
