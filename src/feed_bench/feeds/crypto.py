"""
Cryptographic primitives for Swarm feeds.

Swarm reuses Ethereum's conventions:

- Hashing is keccak256 (not SHA3-256; the padding differs).
- Owners are 20-byte addresses: keccak256(uncompressed_pubkey[1:])[12:].
- Signatures are 65-byte recoverable secp256k1 signatures (r || s || v) over
  the "Ethereum Signed Message" digest, with v in {27, 28}.

The `cryptography` library produces plain ECDSA (r, s) pairs. The recovery
byte is found by recovering the public key for each candidate parity and
comparing it with the signer's key.
"""

from __future__ import annotations

from typing import Final

from Crypto.Hash import keccak
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed, decode_dss_signature

from feed_bench.types import Bytes20, Bytes32, Bytes33, Bytes65

ETH_MESSAGE_PREFIX: Final = b"\x19Ethereum Signed Message:\n32"
"""Prefix prepended to 32-byte digests before signing (EIP-191 personal message)."""

RECOVERY_OFFSET: Final = 27
"""Offset added to the recovery id in the trailing signature byte."""

_P: Final = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEFFFFFC2F
"""secp256k1 field prime."""

_N: Final = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
"""secp256k1 curve order."""

_Gx: Final = 0x79BE667EF9DCBBAC55A06295CE870B07029BFCDB2DCE28D959F2815B16F81798
"""secp256k1 generator x-coordinate."""

_Gy: Final = 0x483ADA7726A3C4655DA4FBFC0E1108A8FD17B448A68554199C47D08FFB10D4B8
"""secp256k1 generator y-coordinate."""


def keccak256(*parts: bytes) -> Bytes32:
    """Hash the concatenation of `parts` with keccak256."""
    k = keccak.new(digest_bits=256)
    for part in parts:
        k.update(part)
    return Bytes32(k.digest())


def _modinv(a: int, m: int) -> int:
    """Compute modular inverse using Fermat's little theorem (m must be prime)."""
    return pow(a, m - 2, m)


def _point_add(p1: tuple[int, int] | None, p2: tuple[int, int] | None) -> tuple[int, int] | None:
    """Add two secp256k1 curve points."""
    if p1 is None:
        return p2
    if p2 is None:
        return p1

    x1, y1 = p1
    x2, y2 = p2

    if x1 == x2 and y1 != y2:
        return None

    if x1 == x2:
        # Point doubling.
        lam = (3 * x1 * x1 * _modinv(2 * y1, _P)) % _P
    else:
        lam = ((y2 - y1) * _modinv(x2 - x1, _P)) % _P

    x3 = (lam * lam - x1 - x2) % _P
    y3 = (lam * (x1 - x3) - y1) % _P
    return (x3, y3)


def _point_mul(k: int, point: tuple[int, int] | None) -> tuple[int, int] | None:
    """Scalar multiplication using double-and-add."""
    result = None
    addend = point
    while k:
        if k & 1:
            result = _point_add(result, addend)
        addend = _point_add(addend, addend)
        k >>= 1
    return result


def _lift_x(x: int, parity: int) -> tuple[int, int] | None:
    """Return the curve point with the given x and y parity, or None if x is off-curve."""
    y_sq = (pow(x, 3, _P) + 7) % _P
    y = pow(y_sq, (_P + 1) // 4, _P)
    if (y * y) % _P != y_sq:
        return None
    if (y & 1) != parity:
        y = _P - y
    return (x, y)


def _public_point(public_key: ec.EllipticCurvePublicKey) -> tuple[int, int]:
    numbers = public_key.public_numbers()
    return (numbers.x, numbers.y)


def load_private_key(data: bytes) -> ec.EllipticCurvePrivateKey:
    """
    Load a secp256k1 private key from its raw 32-byte scalar.

    Raises:
        ValueError: If data is not a valid secp256k1 private key.
    """
    if len(data) != 32:
        raise ValueError(f"Private key must be 32 bytes, got {len(data)}")
    scalar = int.from_bytes(data, "big")
    if not 0 < scalar < _N:
        raise ValueError("Private key is outside the secp256k1 scalar range")
    return ec.derive_private_key(scalar, ec.SECP256K1())


def compressed_public_key(public_key: ec.EllipticCurvePublicKey) -> Bytes33:
    """Encode a public key as 33-byte compressed SEC1."""
    return Bytes33(
        public_key.public_bytes(
            encoding=serialization.Encoding.X962,
            format=serialization.PublicFormat.CompressedPoint,
        )
    )


def public_key_to_address(public_key: ec.EllipticCurvePublicKey) -> Bytes20:
    """
    Derive the Ethereum address of a public key.

    The address is the last 20 bytes of keccak256 over the 64-byte x || y
    coordinates (the uncompressed encoding without its 0x04 prefix).
    """
    uncompressed = public_key.public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.UncompressedPoint,
    )
    return Bytes20(keccak256(uncompressed[1:])[12:])


def eth_message_digest(digest: bytes) -> Bytes32:
    """Wrap a 32-byte digest in the Ethereum signed-message envelope."""
    if len(digest) != 32:
        raise ValueError(f"Digest must be 32 bytes, got {len(digest)}")
    return keccak256(ETH_MESSAGE_PREFIX, digest)


def recover_public_point(digest: bytes, r: int, s: int, recovery_id: int) -> tuple[int, int] | None:
    """
    Recover the signer's public key point from a signature.

    Computes Q = r^-1 * (s * R - e * G) where R is the point with x = r and the
    y parity given by `recovery_id`.

    Returns:
        The public key point, or None if the signature does not describe one.
    """
    if not (0 < r < _N and 0 < s < _N):
        return None

    big_r = _lift_x(r, recovery_id & 1)
    if big_r is None:
        return None

    e = int.from_bytes(digest, "big") % _N
    r_inv = _modinv(r, _N)
    return _point_add(
        _point_mul((s * r_inv) % _N, big_r),
        _point_mul((-e * r_inv) % _N, (_Gx, _Gy)),
    )


def sign_recoverable(private_key: ec.EllipticCurvePrivateKey, digest: bytes) -> Bytes65:
    """
    Produce a 65-byte Ethereum-style recoverable signature over `digest`.

    The digest is signed as-is; callers apply `eth_message_digest` first when
    the verifier expects the signed-message envelope.

    Args:
        private_key: secp256k1 signing key.
        digest: 32-byte message digest.

    Returns:
        r (32 bytes) || s (32 bytes, low-s normalized) || v (27 or 28).
    """
    der_signature = private_key.sign(
        digest, ec.ECDSA(Prehashed(hashes.SHA256()), deterministic_signing=True)
    )
    r, s = decode_dss_signature(der_signature)

    # Ethereum rejects high-s signatures (EIP-2).
    if s > _N // 2:
        s = _N - s

    expected = _public_point(private_key.public_key())
    for recovery_id in (0, 1):
        if recover_public_point(digest, r, s, recovery_id) == expected:
            return Bytes65(
                r.to_bytes(32, "big") + s.to_bytes(32, "big") + bytes([recovery_id + RECOVERY_OFFSET])
            )

    raise ValueError("Could not determine signature recovery id")


def recover_address(digest: bytes, signature: bytes) -> Bytes20:
    """
    Recover the Ethereum address that produced `signature` over `digest`.

    Raises:
        ValueError: If the signature is malformed or unrecoverable.
    """
    if len(signature) != 65:
        raise ValueError(f"Signature must be 65 bytes, got {len(signature)}")

    recovery_id = signature[64] - RECOVERY_OFFSET
    if recovery_id not in (0, 1):
        raise ValueError(f"Invalid recovery byte {signature[64]}")

    r = int.from_bytes(signature[:32], "big")
    s = int.from_bytes(signature[32:64], "big")
    point = recover_public_point(digest, r, s, recovery_id)
    if point is None:
        raise ValueError("Signature does not recover to a public key")

    x, y = point
    return Bytes20(keccak256(x.to_bytes(32, "big"), y.to_bytes(32, "big"))[12:])
