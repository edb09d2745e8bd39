"""
Generate a secp256k1 wallet key for local signing.

Creates keys/wallet.pem and prints the derived address.
Run once during project setup: python scripts/generate_wallet_key.py
"""

import sys
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from aura.core.signing import address_from_public_key


def generate_wallet_key(output_dir: str = "keys") -> Path:
    """Generate a secp256k1 private key and write it as PKCS8 PEM."""
    keys_dir = Path(output_dir)
    keys_dir.mkdir(parents=True, exist_ok=True)

    private_key = ec.generate_private_key(ec.SECP256K1())
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    key_path = keys_dir / "wallet.pem"
    key_path.write_bytes(private_pem)

    public_bytes = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.UncompressedPoint,
    )
    print("Wallet key generated:")
    print(f"  Private key: {key_path.resolve()}")
    print(f"  Address:     {address_from_public_key(public_bytes)}")
    print()
    print("Keep wallet.pem out of version control.")
    return key_path


if __name__ == "__main__":
    generate_wallet_key(sys.argv[1] if len(sys.argv) > 1 else "keys")
