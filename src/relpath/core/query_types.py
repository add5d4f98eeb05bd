"""
Pydantic models for the require filter and the internal find protocol.

A require filter, as sent by a client:
{
    "where": {"name": "John"},
    "require": {"city.country": {"name": "NZ"}},
    "order": "id"
}
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .errors import MalformedFilter


class RequireFilter(BaseModel):
    """
    Incoming filter. Unknown keys (order, limit, fields, ...) pass through.
    """
    model_config = ConfigDict(extra="allow")

    where: Optional[Dict[str, Any]] = None
    require: Optional[Dict[str, Optional[Dict[str, Any]]]] = None


class FindRequest(BaseModel):
    """
    Request format for internal find calls.

    POST /internal/find
    """
    entity: str
    where: Optional[Dict[str, Any]] = None
    include: Optional[Union[Dict[str, Any], List[Any], str]] = None


class FindResponse(BaseModel):
    """Response format from internal find calls."""
    items: List[Dict[str, Any]] = Field(default_factory=list)


def parse_filter(raw: Union[str, bytes, Mapping[str, Any], RequireFilter]) -> dict[str, Any]:
    """
    Parse and validate a serialized filter.

    Args:
        raw: JSON string/bytes, a mapping or a RequireFilter

    Returns:
        A new dict with the filter contents

    Raises:
        MalformedFilter: If the input is not valid JSON or not a valid filter
    """
    if isinstance(raw, RequireFilter):
        return raw.model_dump(exclude_unset=True)

    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedFilter(str(e)) from e
    else:
        data = raw

    if not isinstance(data, Mapping):
        raise MalformedFilter(f"expected an object, got {type(data).__name__}")

    try:
        RequireFilter.model_validate(dict(data))
    except PydanticValidationError as e:
        raise MalformedFilter(str(e)) from e

    return dict(data)
