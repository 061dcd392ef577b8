"""
JSON codec for backend payloads.

Every request body is produced from a contract model and every successful
response body is read back into one, so the wire format lives in
src/integrations/contracts/* only.

Decoding fails in two distinct ways:
- DeserializeError: the text is not JSON at all
- SchemaMismatchError: the JSON does not fit the target model
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

DESERIALIZE_FAILED = "Can't deserialize server response"
SCHEMA_MISMATCH = "Can't convert server response to struct"

ModelT = TypeVar("ModelT", bound=BaseModel)


class IntegrationResponseError(ValueError):
    def __init__(self, message: str, *, payload: Optional[Any] = None) -> None:
        super().__init__(message)
        self.payload = payload


class DeserializeError(IntegrationResponseError):
    pass


class SchemaMismatchError(IntegrationResponseError):
    pass


def parse_json(text: Union[str, bytes]) -> Any:
    try:
        return json.loads(text)
    except (TypeError, ValueError) as exc:
        raise DeserializeError(DESERIALIZE_FAILED, payload=text) from exc


def parse_json_object(text: Union[str, bytes]) -> Dict[str, Any]:
    data = parse_json(text)
    if not isinstance(data, dict):
        raise DeserializeError(DESERIALIZE_FAILED, payload=text)
    return data


def decode_model(text: Union[str, bytes], model_type: Type[ModelT]) -> ModelT:
    data = parse_json_object(text)
    return build_model(model_type, data)


def build_model(model_type: Type[ModelT], data: Dict[str, Any]) -> ModelT:
    try:
        return model_type.model_validate(data)
    except ValidationError as exc:
        raise SchemaMismatchError(f"{SCHEMA_MISMATCH}: {exc.error_count()} error(s)", payload=data) from exc


def encode_model(model: BaseModel, *, exclude_none: bool = True) -> str:
    """Serialize a request model.

    ``exclude_none=True`` drops unset optional fields (payment token bodies);
    ``exclude_none=False`` keeps them as explicit JSON nulls (consume body).
    """
    return json.dumps(model.model_dump(mode="json", exclude_none=exclude_none), separators=(",", ":"))
