"""
Message signing — the identity collaborator behind the decryption flow.

A signer exposes the identity bound to the current session and signs
challenge messages on request.  Identities are address-like strings derived
from a secp256k1 public key (``0x`` + last 20 bytes of its SHA3-256 digest).
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Protocol

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec

from aura.core.errors import SignatureRejectedError, UnauthenticatedError

logger = logging.getLogger(__name__)

_CURVE = ec.SECP256K1()
_SIGNATURE_ALGORITHM = ec.ECDSA(hashes.SHA256())


# ---------------------------------------------------------------------------
# Signature container
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MessageSignature:
    """A DER signature plus the uncompressed public key that produced it (hex)."""
    public_key: str
    signature: str


# ---------------------------------------------------------------------------
# Signer protocol
# ---------------------------------------------------------------------------


class Signer(Protocol):
    @property
    def current_identity(self) -> str | None: ...

    async def sign_message(self, message: str) -> MessageSignature: ...


# ---------------------------------------------------------------------------
# Address helpers
# ---------------------------------------------------------------------------


def _strip_hex(value: str) -> str:
    return value[2:] if value.lower().startswith("0x") else value


def address_from_public_key(public_key: bytes | str) -> str:
    """Derive the address-like identity for an uncompressed public key."""
    if isinstance(public_key, str):
        public_key = bytes.fromhex(_strip_hex(public_key))
    digest = hashlib.sha3_256(public_key[1:]).hexdigest()
    return "0x" + digest[-40:]


def same_identity(a: str | None, b: str | None) -> bool:
    """Case-insensitive identity comparison; ``None`` never matches."""
    if not a or not b:
        return False
    return a.lower() == b.lower()


def verify_message_signature(
    identity: str,
    message: str,
    signed: MessageSignature,
) -> bool:
    """
    Check that *signed* was produced over *message* by the key behind *identity*.

    Returns False (never raises) for malformed keys or signatures.
    """
    try:
        public_bytes = bytes.fromhex(_strip_hex(signed.public_key))
        signature = bytes.fromhex(_strip_hex(signed.signature))
        public_key = ec.EllipticCurvePublicKey.from_encoded_point(_CURVE, public_bytes)
    except ValueError:
        logger.warning("Malformed public key or signature presented for %s", identity)
        return False

    if not same_identity(address_from_public_key(public_bytes), identity):
        logger.warning("Public key does not belong to identity %s", identity)
        return False

    try:
        public_key.verify(signature, message.encode("utf-8"), _SIGNATURE_ALGORITHM)
    except InvalidSignature:
        return False
    return True


# ---------------------------------------------------------------------------
# Local key signer (development / testing / scripts)
# ---------------------------------------------------------------------------


class LocalKeySigner:
    """Signs with an in-process secp256k1 key. ``disconnect()`` unbinds the identity."""

    def __init__(self, private_key: ec.EllipticCurvePrivateKey):
        self._private_key = private_key
        self._public_bytes = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.X962,
            format=serialization.PublicFormat.UncompressedPoint,
        )
        self._address = address_from_public_key(self._public_bytes)
        self._connected = True

    @classmethod
    def generate(cls) -> "LocalKeySigner":
        return cls(ec.generate_private_key(_CURVE))

    @classmethod
    def from_pem(cls, pem: bytes, password: bytes | None = None) -> "LocalKeySigner":
        key = serialization.load_pem_private_key(pem, password=password)
        if not isinstance(key, ec.EllipticCurvePrivateKey):
            raise ValueError("Expected an EC private key")
        return cls(key)

    @property
    def address(self) -> str:
        return self._address

    @property
    def public_key_hex(self) -> str:
        return "0x" + self._public_bytes.hex()

    @property
    def current_identity(self) -> str | None:
        return self._address if self._connected else None

    def connect(self) -> None:
        self._connected = True

    def disconnect(self) -> None:
        self._connected = False

    async def sign_message(self, message: str) -> MessageSignature:
        if not self._connected:
            raise UnauthenticatedError()
        signature = self._private_key.sign(message.encode("utf-8"), _SIGNATURE_ALGORITHM)
        return MessageSignature(public_key=self.public_key_hex, signature="0x" + signature.hex())


# ---------------------------------------------------------------------------
# Out-of-band signature (HTTP API)
# ---------------------------------------------------------------------------


class PresentedSignatureSigner:
    """
    Wraps a signature a wallet already produced client-side.

    ``sign_message`` hands back the presented signature when it verifies
    over the requested message, and raises SignatureRejectedError otherwise.
    """

    def __init__(self, identity: str | None, signed: MessageSignature):
        self._identity = identity
        self._signed = signed

    @property
    def current_identity(self) -> str | None:
        return self._identity

    async def sign_message(self, message: str) -> MessageSignature:
        if self._identity is None:
            raise UnauthenticatedError()
        if not verify_message_signature(self._identity, message, self._signed):
            raise SignatureRejectedError("Presented signature does not match the challenge")
        return self._signed
