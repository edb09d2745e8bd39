"""
Encrypted-value codec — encode, decode and transform opaque scalars.

Architecture:
  - EncryptedScalarCodec (protocol) defines the interface
  - ReferenceCodec performs a reversible ``FHE-<base64>`` encoding in-process
  - RemoteCodec delegates every step to an external secure computation service
  - CODEC_BACKEND=reference (default) selects the reference codec

Callers outside the decryption boundary must treat tokens as opaque: the
state machine only ever calls ``transform``, never ``decode``.  The reference
scheme is a placeholder that satisfies the contract, not a secure cipher.
"""

from __future__ import annotations

import base64
import enum
import logging
import math
from typing import Protocol

import httpx

from aura.config import settings
from aura.core.errors import DecodeError

logger = logging.getLogger(__name__)

EncryptedScalar = str

ENCRYPTED_PREFIX = "FHE-"


# ---------------------------------------------------------------------------
# Operation algebra
# ---------------------------------------------------------------------------


class OperationTag(str, enum.Enum):
    INCREASE_10PCT = "increase10pct"
    DECREASE_10PCT = "decrease10pct"
    DOUBLE = "double"
    IDENTITY = "identity"


OPERATION_FACTORS: dict[OperationTag, float] = {
    OperationTag.INCREASE_10PCT: 1.1,
    OperationTag.DECREASE_10PCT: 0.9,
    OperationTag.DOUBLE: 2.0,
    OperationTag.IDENTITY: 1.0,
}

# Tags written by older clients
_TAG_ALIASES: dict[str, OperationTag] = {
    "increase10%": OperationTag.INCREASE_10PCT,
    "decrease10%": OperationTag.DECREASE_10PCT,
}


def resolve_operation(op: OperationTag | str) -> OperationTag:
    """Map a tag (or alias) to an ``OperationTag``; unknown tags become IDENTITY."""
    if isinstance(op, OperationTag):
        return op
    if op in _TAG_ALIASES:
        return _TAG_ALIASES[op]
    try:
        return OperationTag(op)
    except ValueError:
        logger.debug("Unknown operation tag %r, treating as identity", op)
        return OperationTag.IDENTITY


# ---------------------------------------------------------------------------
# Reference encoding (pure functions)
# ---------------------------------------------------------------------------


def _format_number(value: float) -> str:
    """Shortest decimal text for *value*; integral values carry no fraction."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _parse_number(text: str) -> float:
    try:
        value = float(text)
    except ValueError:
        raise DecodeError(f"Not a number: {text[:32]!r}")
    if not math.isfinite(value):
        raise DecodeError(f"Non-finite value: {text[:32]!r}")
    return value


def encode_scalar(value: float) -> EncryptedScalar:
    """Encode a finite number as an ``FHE-<base64>`` token."""
    if isinstance(value, bool) or not math.isfinite(value):
        raise ValueError(f"Cannot encode non-finite value: {value!r}")
    text = _format_number(value)
    return ENCRYPTED_PREFIX + base64.b64encode(text.encode("ascii")).decode("ascii")


def decode_scalar(token: EncryptedScalar) -> float:
    """
    Inverse of ``encode_scalar``.

    Bare decimal strings are accepted for records written before values were
    wrapped.  Anything else raises DecodeError.
    """
    if not isinstance(token, str) or not token.strip():
        raise DecodeError("Empty or non-string token")

    if not token.startswith(ENCRYPTED_PREFIX):
        return _parse_number(token)

    payload = token[len(ENCRYPTED_PREFIX):]
    try:
        text = base64.b64decode(payload, validate=True).decode("ascii")
    except ValueError:
        raise DecodeError(f"Malformed token payload: {payload[:32]!r}")
    return _parse_number(text)


def apply_operation(token: EncryptedScalar, op: OperationTag | str) -> EncryptedScalar:
    """Decode, scale by the factor selected by *op*, and re-encode."""
    factor = OPERATION_FACTORS[resolve_operation(op)]
    return encode_scalar(decode_scalar(token) * factor)


# ---------------------------------------------------------------------------
# Codec protocol
# ---------------------------------------------------------------------------


class EncryptedScalarCodec(Protocol):
    async def encode(self, value: float) -> EncryptedScalar: ...

    async def decode(self, token: EncryptedScalar) -> float: ...

    async def transform(
        self, token: EncryptedScalar, op: OperationTag | str,
    ) -> EncryptedScalar: ...


class ReferenceCodec:
    """In-process reversible codec (placeholder for real homomorphic encryption)."""

    async def encode(self, value: float) -> EncryptedScalar:
        return encode_scalar(value)

    async def decode(self, token: EncryptedScalar) -> float:
        return decode_scalar(token)

    async def transform(
        self, token: EncryptedScalar, op: OperationTag | str,
    ) -> EncryptedScalar:
        return apply_operation(token, op)


# ---------------------------------------------------------------------------
# Remote codec (external secure computation service)
# ---------------------------------------------------------------------------


class RemoteCodec:
    """
    Calls an external computation service that holds the real key material.

    Endpoints (JSON):
      POST /encode     {"value": float}             -> {"token": str}
      POST /decode     {"token": str}               -> {"value": float}
      POST /transform  {"token": str, "op": str}    -> {"token": str}

    ``transform`` never materialises plaintext on this side of the wire.
    Transport failures propagate as ``httpx.HTTPError``.
    """

    def __init__(self, base_url: str, api_key: str = "", timeout: float = 10.0):
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout

    async def _post(self, path: str, payload: dict) -> dict:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            resp = await client.post(f"{self._base_url}{path}", json=payload, headers=headers)
            resp.raise_for_status()
            return resp.json()

    async def encode(self, value: float) -> EncryptedScalar:
        if not math.isfinite(value):
            raise ValueError(f"Cannot encode non-finite value: {value!r}")
        data = await self._post("/encode", {"value": value})
        return data["token"]

    async def decode(self, token: EncryptedScalar) -> float:
        try:
            data = await self._post("/decode", {"token": token})
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code in (400, 422):
                raise DecodeError(f"Computation service rejected token: {exc.response.text[:64]}")
            raise
        return float(data["value"])

    async def transform(
        self, token: EncryptedScalar, op: OperationTag | str,
    ) -> EncryptedScalar:
        tag = resolve_operation(op)
        data = await self._post("/transform", {"token": token, "op": tag.value})
        return data["token"]


# ---------------------------------------------------------------------------
# Factory — selects codec based on config
# ---------------------------------------------------------------------------

_codec: EncryptedScalarCodec | None = None


def get_codec() -> EncryptedScalarCodec:
    """Return the configured codec (cached after first call)."""
    global _codec
    if _codec is not None:
        return _codec

    if settings.CODEC_BACKEND == "remote":
        logger.info("Using RemoteCodec at %s", settings.CODEC_SERVICE_URL)
        _codec = RemoteCodec(
            base_url=settings.CODEC_SERVICE_URL,
            api_key=settings.CODEC_SERVICE_API_KEY,
            timeout=settings.CODEC_SERVICE_TIMEOUT_SECONDS,
        )
    else:
        logger.info("Using ReferenceCodec for encrypted values")
        _codec = ReferenceCodec()
    return _codec


def set_codec(codec: EncryptedScalarCodec | None) -> None:
    """Override the codec (used in tests)."""
    global _codec
    _codec = codec
