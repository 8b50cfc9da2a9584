"""Versioned envelopes for values stored in the cache.

Every cached value is a JSON object ``{"version", "kind", "payload"}``.
Decoding checks both version and kind before validating the payload
against its model, so values written by an older deploy (or for another
query kind) read back as a miss instead of a malformed result.
"""

import json
from typing import TypeVar

from pydantic import BaseModel, ValidationError

CACHE_FORMAT_VERSION = 1

ModelT = TypeVar("ModelT", bound=BaseModel)


def encode_envelope(kind: str, model: BaseModel) -> str:
    """Encode a model into a versioned cache envelope.

    Args:
        kind: Name of the record kind (e.g., "api_metrics").
        model: The typed record to store.

    Returns:
        JSON string.
    """
    return json.dumps(
        {
            "version": CACHE_FORMAT_VERSION,
            "kind": kind,
            "payload": model.model_dump(mode="json", by_alias=True),
        }
    )


def decode_envelope(raw: str | None, kind: str, model: type[ModelT]) -> ModelT | None:
    """Decode a cache envelope, returning None for anything unusable.

    Args:
        raw: The cached string, or None on a cache miss.
        kind: Expected record kind.
        model: Model class to validate the payload against.

    Returns:
        The decoded model, or None if the value is missing, not JSON,
        from another format version, of another kind, or fails validation.
    """
    if raw is None:
        return None
    try:
        envelope = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(envelope, dict):
        return None
    if envelope.get("version") != CACHE_FORMAT_VERSION or envelope.get("kind") != kind:
        return None
    try:
        return model.model_validate(envelope.get("payload"))
    except ValidationError:
        return None


def decode_many(raws: list[str], kind: str, model: type[ModelT]) -> list[ModelT]:
    """Decode a list of envelopes, dropping unusable entries."""
    decoded = (decode_envelope(raw, kind, model) for raw in raws)
    return [item for item in decoded if item is not None]
