"""Validated shapes for what the cache reads back from storage."""

import json
from typing import Any, Optional, Union

from pydantic import JsonValue, StrictFloat, StrictInt, StrictStr, TypeAdapter

PartitionEntries = dict[str, JsonValue]

PARTITION_ADAPTER: TypeAdapter[PartitionEntries] = TypeAdapter(PartitionEntries)

ValidatorToken = Optional[Union[StrictStr, StrictInt, StrictFloat]]

VALIDATOR_ADAPTER: TypeAdapter[ValidatorToken] = TypeAdapter(ValidatorToken)


def decode_partition(raw: str) -> dict[str, Any]:
    """Parse a persisted partition blob.

    Raises:
        pydantic.ValidationError: If ``raw`` is not JSON or not a JSON object.

    """
    return PARTITION_ADAPTER.validate_json(raw)


def encode_partition(entries: dict[str, Any]) -> str:
    """Serialize partition entries; raises TypeError/ValueError for non-JSON values."""
    return json.dumps(entries, separators=(",", ":"), allow_nan=False)


def token_to_str(token: ValidatorToken) -> Optional[str]:
    """Return the string form a validator token is persisted and compared as."""
    token = VALIDATOR_ADAPTER.validate_python(token)
    if token is None:
        return None
    return str(token)
