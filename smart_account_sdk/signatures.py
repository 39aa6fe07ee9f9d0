# Copyright © Smart Account SDK Contributors
# SPDX-License-Identifier: Apache-2.0

"""
Signature values understood by OpenZeppelin style smart accounts.

A smart account's ``__check_auth`` receives a ``Signatures`` value: a
one-element vector holding a map from signer descriptor to signature bytes.
Signer descriptors are contract enum values encoded as vectors whose first
element is the variant name::

    Signer::Delegated(address)          -> [Symbol("Delegated"), Address]
    Signer::External(verifier, key)     -> [Symbol("External"), Address, Bytes]

A delegated signer proves itself with a separate authorization entry, so its
map value is left empty.
"""

from __future__ import annotations

import typing
import unittest

from . import scval
from .address import Address
from .ed25519 import PublicKey
from .scval import ScVal

DELEGATED = "Delegated"
EXTERNAL = "External"


def build_delegated_signer_key(public_key: typing.Union[PublicKey, str]) -> ScVal:
    """The descriptor of a delegated signer backed by a ``G...`` account."""
    if isinstance(public_key, str):
        public_key = PublicKey.from_str(public_key)
    return scval.to_vec(
        [scval.to_symbol(DELEGATED), scval.to_address(Address.from_public_key(public_key))]
    )


def build_external_signer_key(verifier_id: str, key_data: bytes) -> ScVal:
    """The descriptor of a signer whose signatures a verifier contract checks."""
    verifier = Address.from_str(verifier_id)
    if not verifier.is_contract():
        raise ValueError(f"Verifier must be a contract address: {verifier_id}")
    return scval.to_vec(
        [scval.to_symbol(EXTERNAL), scval.to_address(verifier), scval.to_bytes(key_data)]
    )


def build_signatures_value(signer_key: ScVal, signature: bytes = b"") -> ScVal:
    """Wrap a signer descriptor into the ``Signatures`` shape.

    The signature defaults to empty bytes, which is what delegated signers
    carry on the smart account's own entry.
    """
    return scval.to_vec([scval.to_map([(signer_key, scval.to_bytes(signature))])])


class Test(unittest.TestCase):
    ACCOUNT = "GA3D5KRYM6CB7OWQ6TWYRR3Z4T7GNZLKERYNZGGA5SOAOPIFY6YQHES5"
    CONTRACT = "CA3D5KRYM6CB7OWQ6TWYRR3Z4T7GNZLKERYNZGGA5SOAOPIFY6YQGAXE"

    def test_delegated_signer_key(self):
        key = build_delegated_signer_key(self.ACCOUNT)
        self.assertEqual(key.variant, ScVal.VEC)
        symbol, address = key.value
        self.assertEqual(symbol, scval.to_symbol("Delegated"))
        self.assertEqual(str(address.value), self.ACCOUNT)
        self.assertEqual(key, build_delegated_signer_key(PublicKey.from_str(self.ACCOUNT)))

    def test_signatures_value(self):
        key = build_delegated_signer_key(self.ACCOUNT)
        value = build_signatures_value(key)
        [signer_map] = value.value
        self.assertEqual(signer_map.variant, ScVal.MAP)
        self.assertEqual(signer_map.value, [(key, scval.to_bytes(b""))])
        self.assertEqual(ScVal.from_bytes(value.to_bytes()), value)

    def test_external_signer_key(self):
        key = build_external_signer_key(self.CONTRACT, b"\x01\x02")
        symbol, verifier, data = key.value
        self.assertEqual(symbol, scval.to_symbol("External"))
        self.assertTrue(verifier.value.is_contract())
        self.assertEqual(data, scval.to_bytes(b"\x01\x02"))
        with self.assertRaises(ValueError):
            build_external_signer_key(self.ACCOUNT, b"")


if __name__ == "__main__":
    unittest.main()
