# Copyright © Smart Account SDK Contributors
# SPDX-License-Identifier: Apache-2.0

"""
StrKey encoding for Stellar keys and addresses.

A StrKey is the human readable form of a key or address: one version byte
identifying the kind of payload, the payload itself, and a CRC16-XModem
checksum (little-endian), all encoded with RFC 4648 base32 without padding.
The version byte fixes the first character, which is why account ids start
with ``G``, secret seeds with ``S`` and contract ids with ``C``.

Examples:
    Round trip an account id::

        from smart_account_sdk import strkey

        text = strkey.encode(strkey.VersionByte.ED25519_PUBLIC_KEY, raw_key)
        assert text.startswith("G")
        assert strkey.decode(strkey.VersionByte.ED25519_PUBLIC_KEY, text) == raw_key

    Detect what a string holds::

        strkey.version_of("CA3D5KRYM6CB7OWQ6TWYRR3Z4T7GNZLKERYNZGGA5SOAOPIFY6YQGAXE")
        # VersionByte.CONTRACT
"""

from __future__ import annotations

import base64
import binascii
import unittest
from enum import IntEnum


class StrKeyError(ValueError):
    """Raised when text is not a valid StrKey of the expected kind."""


class VersionByte(IntEnum):
    """Version bytes of the StrKey kinds this SDK reads and writes."""

    ED25519_PUBLIC_KEY = 6 << 3  # G
    ED25519_SECRET_SEED = 18 << 3  # S
    MED25519_PUBLIC_KEY = 12 << 3  # M
    CONTRACT = 2 << 3  # C
    LIQUIDITY_POOL = 11 << 3  # L
    CLAIMABLE_BALANCE = 1 << 3  # B


PAYLOAD_LENGTHS = {
    VersionByte.ED25519_PUBLIC_KEY: 32,
    VersionByte.ED25519_SECRET_SEED: 32,
    VersionByte.MED25519_PUBLIC_KEY: 40,
    VersionByte.CONTRACT: 32,
    VersionByte.LIQUIDITY_POOL: 32,
    VersionByte.CLAIMABLE_BALANCE: 33,
}


def checksum(data: bytes) -> bytes:
    """CRC16-XModem of `data`, little-endian."""
    return binascii.crc_hqx(data, 0).to_bytes(2, "little")


def encode(version: VersionByte, payload: bytes) -> str:
    """Encode a raw payload as a StrKey of the given kind.

    Raises:
        StrKeyError: If the payload length does not match the kind.
    """
    if len(payload) != PAYLOAD_LENGTHS[version]:
        raise StrKeyError(
            f"Invalid payload length for {version.name}: {len(payload)}"
        )
    data = bytes([version]) + payload
    return base64.b32encode(data + checksum(data)).decode().rstrip("=")


def decode(version: VersionByte, value: str) -> bytes:
    """Decode a StrKey, checking its kind, checksum and canonical form.

    Args:
        version: The kind the caller expects.
        value: The StrKey text.

    Returns:
        The raw payload.

    Raises:
        StrKeyError: If the text is malformed, of another kind, or the
            checksum does not match.
    """
    actual, payload = _decode_any(value)
    if actual != version:
        raise StrKeyError(f"Expected a {version.name} StrKey, got {actual.name}")
    return payload


def version_of(value: str) -> VersionByte:
    """Return the kind of a valid StrKey."""
    return _decode_any(value)[0]


def is_valid(version: VersionByte, value: str) -> bool:
    try:
        decode(version, value)
    except StrKeyError:
        return False
    return True


def _decode_any(value: str) -> tuple:
    if not isinstance(value, str) or not value:
        raise StrKeyError("StrKey must be a non-empty string")
    padded = value + "=" * (-len(value) % 8)
    try:
        data = base64.b32decode(padded)
    except (binascii.Error, ValueError) as e:
        raise StrKeyError(f"Invalid base32 in StrKey: {value}") from e
    if len(data) < 3:
        raise StrKeyError(f"StrKey too short: {value}")

    body, expected_checksum = data[:-2], data[-2:]
    if checksum(body) != expected_checksum:
        raise StrKeyError(f"Invalid StrKey checksum: {value}")

    try:
        version = VersionByte(body[0])
    except ValueError as e:
        raise StrKeyError(f"Unsupported StrKey version byte: {body[0]}") from e

    payload = body[1:]
    if len(payload) != PAYLOAD_LENGTHS[version]:
        raise StrKeyError(f"Invalid payload length for {version.name}: {value}")
    # Base32 admits several spellings of the trailing bits; only one is valid.
    if encode(version, payload) != value:
        raise StrKeyError(f"Non-canonical StrKey: {value}")
    return version, payload


class Test(unittest.TestCase):
    ACCOUNT = "GBRPYHIL2CI3FNQ4BXLFMNDLFJUNPU2HY3ZMFSHONUCEOASW7QC7OX2H"
    SECRET = "SBU2RRGLXH3E5CQHTD3ODLDF2BWDCYUSSBLLZ5GNW7JXHDIYKXZWHOKR"
    CONTRACT = "CA3D5KRYM6CB7OWQ6TWYRR3Z4T7GNZLKERYNZGGA5SOAOPIFY6YQGAXE"

    def test_round_trip(self):
        for version, text in (
            (VersionByte.ED25519_PUBLIC_KEY, self.ACCOUNT),
            (VersionByte.ED25519_SECRET_SEED, self.SECRET),
            (VersionByte.CONTRACT, self.CONTRACT),
        ):
            payload = decode(version, text)
            self.assertEqual(len(payload), 32)
            self.assertEqual(encode(version, payload), text)

    def test_prefix_characters(self):
        payload = bytes(range(32))
        self.assertTrue(encode(VersionByte.ED25519_PUBLIC_KEY, payload).startswith("G"))
        self.assertTrue(encode(VersionByte.ED25519_SECRET_SEED, payload).startswith("S"))
        self.assertTrue(encode(VersionByte.CONTRACT, payload).startswith("C"))
        self.assertTrue(encode(VersionByte.LIQUIDITY_POOL, payload).startswith("L"))
        muxed = encode(VersionByte.MED25519_PUBLIC_KEY, payload + bytes(8))
        self.assertTrue(muxed.startswith("M"))
        self.assertEqual(len(muxed), 69)
        balance = encode(VersionByte.CLAIMABLE_BALANCE, bytes(33))
        self.assertTrue(balance.startswith("B"))

    def test_version_of(self):
        self.assertEqual(version_of(self.CONTRACT), VersionByte.CONTRACT)
        self.assertEqual(version_of(self.ACCOUNT), VersionByte.ED25519_PUBLIC_KEY)

    def test_wrong_kind(self):
        with self.assertRaises(StrKeyError):
            decode(VersionByte.CONTRACT, self.ACCOUNT)
        self.assertFalse(is_valid(VersionByte.ED25519_PUBLIC_KEY, self.CONTRACT))

    def test_bad_checksum(self):
        tampered = self.ACCOUNT[:-1] + ("A" if self.ACCOUNT[-1] != "A" else "B")
        with self.assertRaises(StrKeyError):
            decode(VersionByte.ED25519_PUBLIC_KEY, tampered)

    def test_garbage(self):
        for value in ("", "G", "not a key", self.ACCOUNT.lower(), self.ACCOUNT + "A"):
            self.assertFalse(is_valid(VersionByte.ED25519_PUBLIC_KEY, value))

    def test_payload_length(self):
        with self.assertRaises(StrKeyError):
            encode(VersionByte.CONTRACT, bytes(31))


if __name__ == "__main__":
    unittest.main()
