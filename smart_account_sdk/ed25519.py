# Copyright © Smart Account SDK Contributors
# SPDX-License-Identifier: Apache-2.0

"""
Ed25519 cryptographic primitives for the Smart Account SDK.

Stellar accounts are controlled by Ed25519 keys. This module wraps the NaCl
implementation with the string forms used on Stellar networks: secret seeds
are ``S...`` StrKeys and public keys are ``G...`` StrKeys.

The module includes:
- PrivateKey: Ed25519 private keys (32 byte seeds) for signing
- PublicKey: Ed25519 public keys, XDR encoded as the ``PublicKey`` union
- Signature: 64 byte detached Ed25519 signatures

Examples:
    Basic key generation and signing::

        private_key = PrivateKey.random()
        public_key = private_key.public_key()

        signature = private_key.sign(b"payload")
        assert public_key.verify(b"payload", signature)

    Moving between string forms::

        private_key = PrivateKey.from_secret("SBU2...")
        print(private_key.public_key())  # "GA3D..."
"""

from __future__ import annotations

import unittest

from nacl.signing import SigningKey, VerifyKey

from . import strkey
from .xdr import Deserializable, Deserializer, Serializable, Serializer, XdrError


class PrivateKey:
    """Ed25519 private key.

    The key is stored as the 32 byte seed from which NaCl derives the
    expanded signing key. Its canonical text form is an ``S...`` StrKey.

    Attributes:
        LENGTH: The byte length of Ed25519 seeds (32)
        key: The underlying NaCl SigningKey instance
    """

    LENGTH: int = 32

    key: SigningKey

    def __init__(self, key: SigningKey):
        self.key = key

    def __eq__(self, other: object):
        if not isinstance(other, PrivateKey):
            return NotImplemented
        return self.key == other.key

    def __repr__(self):
        # Never render the seed.
        return f"PrivateKey({self.public_key()})"

    @staticmethod
    def from_secret(value: str) -> PrivateKey:
        """Parse an ``S...`` secret seed.

        Raises:
            StrKeyError: If the value is not a valid secret seed.
        """
        seed = strkey.decode(strkey.VersionByte.ED25519_SECRET_SEED, value)
        return PrivateKey(SigningKey(seed))

    @staticmethod
    def from_bytes(seed: bytes) -> PrivateKey:
        if len(seed) != PrivateKey.LENGTH:
            raise ValueError(f"Expected a {PrivateKey.LENGTH} byte seed")
        return PrivateKey(SigningKey(seed))

    def secret(self) -> str:
        """Get the ``S...`` StrKey of this key's seed."""
        return strkey.encode(
            strkey.VersionByte.ED25519_SECRET_SEED, self.key.encode()
        )

    def public_key(self) -> PublicKey:
        return PublicKey(self.key.verify_key)

    @staticmethod
    def random() -> PrivateKey:
        """Generate a private key from the operating system's secure RNG."""
        return PrivateKey(SigningKey.generate())

    def sign(self, data: bytes) -> Signature:
        return Signature(self.key.sign(data).signature)


class PublicKey(Serializable, Deserializable):
    """Ed25519 public key.

    In XDR a public key (and therefore an ``AccountID``) is the union
    ``PublicKey`` with the single arm ``PUBLIC_KEY_TYPE_ED25519 = 0`` holding
    the 32 raw key bytes.
    """

    LENGTH: int = 32
    PUBLIC_KEY_TYPE_ED25519: int = 0

    key: VerifyKey

    def __init__(self, key: VerifyKey):
        self.key = key

    def __eq__(self, other: object):
        if not isinstance(other, PublicKey):
            return NotImplemented
        return self.key == other.key

    def __hash__(self):
        return hash(self.key.encode())

    def __str__(self) -> str:
        """Get the ``G...`` StrKey form of the key."""
        return strkey.encode(strkey.VersionByte.ED25519_PUBLIC_KEY, self.key.encode())

    def __repr__(self) -> str:
        return f"PublicKey({self})"

    @staticmethod
    def from_str(value: str) -> PublicKey:
        """Parse a ``G...`` account id.

        Raises:
            StrKeyError: If the value is not a valid account id.
        """
        raw = strkey.decode(strkey.VersionByte.ED25519_PUBLIC_KEY, value)
        return PublicKey(VerifyKey(raw))

    @staticmethod
    def from_raw(raw: bytes) -> PublicKey:
        if len(raw) != PublicKey.LENGTH:
            raise ValueError(f"Expected a {PublicKey.LENGTH} byte public key")
        return PublicKey(VerifyKey(raw))

    def verify(self, data: bytes, signature: Signature) -> bool:
        """Verify a detached signature. Any verification failure is False."""
        try:
            self.key.verify(data, signature.data())
        except Exception:
            return False
        return True

    def to_raw(self) -> bytes:
        """The 32 raw key bytes."""
        return self.key.encode()

    @staticmethod
    def deserialize(deserializer: Deserializer) -> PublicKey:
        key_type = deserializer.enum()
        if key_type != PublicKey.PUBLIC_KEY_TYPE_ED25519:
            raise XdrError(f"Invalid public key type: {key_type}")
        return PublicKey(VerifyKey(deserializer.fixed_bytes(PublicKey.LENGTH)))

    def serialize(self, serializer: Serializer):
        serializer.enum(PublicKey.PUBLIC_KEY_TYPE_ED25519)
        serializer.fixed_bytes(self.key.encode(), PublicKey.LENGTH)


class Signature:
    """A 64 byte detached Ed25519 signature."""

    LENGTH: int = 64

    signature: bytes

    def __init__(self, signature: bytes):
        self.signature = signature

    def __eq__(self, other: object):
        if not isinstance(other, Signature):
            return NotImplemented
        return self.signature == other.signature

    def __str__(self) -> str:
        return f"0x{self.signature.hex()}"

    def data(self) -> bytes:
        return self.signature


class Test(unittest.TestCase):
    SECRET = "SBU2RRGLXH3E5CQHTD3ODLDF2BWDCYUSSBLLZ5GNW7JXHDIYKXZWHOKR"
    ACCOUNT = "GA3D5KRYM6CB7OWQ6TWYRR3Z4T7GNZLKERYNZGGA5SOAOPIFY6YQHES5"

    def test_secret_to_account(self):
        private_key = PrivateKey.from_secret(self.SECRET)
        self.assertEqual(str(private_key.public_key()), self.ACCOUNT)
        self.assertEqual(private_key.secret(), self.SECRET)

    def test_sign_and_verify(self):
        in_value = b"test_message"

        private_key = PrivateKey.random()
        public_key = private_key.public_key()

        signature = private_key.sign(in_value)
        self.assertEqual(len(signature.data()), Signature.LENGTH)
        self.assertTrue(public_key.verify(in_value, signature))
        self.assertFalse(public_key.verify(b"other_message", signature))

    def test_public_key_xdr(self):
        public_key = PublicKey.from_str(self.ACCOUNT)
        data = public_key.to_bytes()
        self.assertEqual(data[:4], b"\x00\x00\x00\x00")
        self.assertEqual(data[4:], public_key.to_raw())
        self.assertEqual(PublicKey.from_bytes(data), public_key)

    def test_invalid_public_key_type(self):
        with self.assertRaises(XdrError):
            PublicKey.from_bytes(b"\x00\x00\x00\x01" + bytes(32))

    def test_repr_hides_secret(self):
        private_key = PrivateKey.from_secret(self.SECRET)
        self.assertNotIn(self.SECRET, repr(private_key))


if __name__ == "__main__":
    unittest.main()
