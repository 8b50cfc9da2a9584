"""Encoders for cached and fed records."""

from tailorpulse.core.encoding.cache import (
    CACHE_FORMAT_VERSION,
    decode_envelope,
    decode_many,
    encode_envelope,
)

__all__ = [
    "CACHE_FORMAT_VERSION",
    "decode_envelope",
    "decode_many",
    "encode_envelope",
]
