"""
Property Indexer - Content Identifier Codec

Derives CIDv1 strings for raw-binary content from 32-byte sha2-256 digests:

    multihash = 0x12 (sha2-256) | 0x20 (32 bytes) | digest
    cid       = 0x01 (version 1) | 0x55 (raw codec) | multihash
    text      = "b" + base32(cid), lowercase, unpadded

Every valid input yields a 59 character identifier.
"""

from __future__ import annotations

import base64

from core.errors import IndexerCodecError

HASH_LENGTH = 32
SUBMITTER_LENGTH = 20

MULTIHASH_SHA2_256 = 0x12
CID_VERSION_1 = 0x01
CODEC_RAW = 0x55
MULTIBASE_BASE32 = "b"

BASE32_ALPHABET = "abcdefghijklmnopqrstuvwxyz234567"
CID_LENGTH = 59


def encode_base32(data: bytes) -> str:
    """RFC4648 base32, lowercase, with padding stripped."""
    return base64.b32encode(data).decode("ascii").rstrip("=").lower()


def derive_content_id(digest: bytes) -> str:
    """Build the CIDv1 text form for a 32-byte digest."""
    if len(digest) != HASH_LENGTH:
        raise IndexerCodecError(
            f"content hash must be {HASH_LENGTH} bytes, got {len(digest)}",
            field_name="hash",
            expected_format=f"{HASH_LENGTH} bytes",
            actual_value=len(digest),
        )

    multihash = bytes([MULTIHASH_SHA2_256, HASH_LENGTH]) + bytes(digest)
    cid = bytes([CID_VERSION_1, CODEC_RAW]) + multihash
    return MULTIBASE_BASE32 + encode_base32(cid)


def to_hex(value: bytes) -> str:
    """Lowercase 0x-prefixed hex, the form used in entity keys."""
    return "0x" + bytes(value).hex()


def from_hex(value: str) -> bytes:
    text = value[2:] if value[:2].lower() == "0x" else value
    return bytes.fromhex(text)
