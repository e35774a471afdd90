"""Signing profile serialization.

An envelope is encoded as compact UTF-8 JSON with sorted keys, so equal
envelopes always produce identical bytes.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from workload_signer.errors import SerializationError


def serialize_profile(envelope: Mapping[str, Any]) -> bytes:
    """Encode an envelope mapping as signing profile bytes.

    Args:
        envelope: The envelope mapping, forwarded with all of its fields.

    Returns:
        UTF-8 encoded JSON document.

    Raises:
        SerializationError: If the envelope holds a cyclic structure, a value
            JSON cannot represent, a non-finite float, or text that is not
            encodable as UTF-8 (lone surrogates).
    """
    try:
        document = json.dumps(
            envelope,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        ).encode("utf-8")
    except (TypeError, ValueError, RecursionError) as e:
        raise SerializationError(e) from e
    return document


__all__ = ["serialize_profile"]
