# Copyright © Smart Account SDK Contributors
# SPDX-License-Identifier: Apache-2.0

"""
Soroban addresses (``SCAddress``).

Contracts identify callers, signers and storage owners by address. An address
is either a classic account (``G...``), a contract (``C...``), or one of the
less common kinds a contract can still receive as a value: a muxed account
(``M...``), a claimable balance (``B...``) or a liquidity pool (``L...``).

The XDR form is the union::

    union SCAddress switch (SCAddressType type) {
    case SC_ADDRESS_TYPE_ACCOUNT:           AccountID accountId;
    case SC_ADDRESS_TYPE_CONTRACT:          ContractID contractId;
    case SC_ADDRESS_TYPE_MUXED_ACCOUNT:     MuxedEd25519Account muxedAccount;
    case SC_ADDRESS_TYPE_CLAIMABLE_BALANCE: ClaimableBalanceID claimableBalanceId;
    case SC_ADDRESS_TYPE_LIQUIDITY_POOL:    PoolID liquidityPoolId;
    };

Examples:
    Parsing and formatting::

        address = Address.from_str("CA3D5KRYM6CB7OWQ6TWYRR3Z4T7GNZLKERYNZGGA5SOAOPIFY6YQGAXE")
        address.variant == Address.CONTRACT  # True
        str(address)  # the same C... text

    From a public key::

        address = Address.from_public_key(account.public_key())
"""

from __future__ import annotations

import unittest

from . import strkey
from .ed25519 import PublicKey
from .xdr import Deserializable, Deserializer, Serializable, Serializer, XdrError


class Address(Serializable, Deserializable):
    """An account, contract or other addressable ledger object.

    The payload is kept in its StrKey layout so the text form is a direct
    encoding; `serialize` rearranges it into the XDR layout where the two
    differ (muxed accounts put the id first, claimable balances carry their
    id type as a discriminant).

    Attributes:
        variant: One of the ``SCAddressType`` constants below.
        payload: The StrKey payload bytes for the variant.
    """

    ACCOUNT: int = 0
    CONTRACT: int = 1
    MUXED_ACCOUNT: int = 2
    CLAIMABLE_BALANCE: int = 3
    LIQUIDITY_POOL: int = 4

    HASH_LENGTH: int = 32
    CLAIMABLE_BALANCE_ID_TYPE_V0: int = 0

    _VERSIONS = {
        ACCOUNT: strkey.VersionByte.ED25519_PUBLIC_KEY,
        CONTRACT: strkey.VersionByte.CONTRACT,
        MUXED_ACCOUNT: strkey.VersionByte.MED25519_PUBLIC_KEY,
        CLAIMABLE_BALANCE: strkey.VersionByte.CLAIMABLE_BALANCE,
        LIQUIDITY_POOL: strkey.VersionByte.LIQUIDITY_POOL,
    }

    variant: int
    payload: bytes

    def __init__(self, variant: int, payload: bytes):
        if variant not in Address._VERSIONS:
            raise XdrError(f"Invalid address type: {variant}")
        expected = strkey.PAYLOAD_LENGTHS[Address._VERSIONS[variant]]
        if len(payload) != expected:
            raise ValueError(f"Expected {expected} payload bytes, got {len(payload)}")
        self.variant = variant
        self.payload = payload

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Address):
            return NotImplemented
        return self.variant == other.variant and self.payload == other.payload

    def __hash__(self):
        return hash((self.variant, self.payload))

    def __str__(self) -> str:
        return strkey.encode(Address._VERSIONS[self.variant], self.payload)

    def __repr__(self) -> str:
        return f"Address({self})"

    @staticmethod
    def from_str(value: str) -> Address:
        """Parse any supported StrKey address.

        Raises:
            StrKeyError: If the text is not a StrKey address. Secret seeds are
                rejected.
        """
        version = strkey.version_of(value)
        for variant, expected in Address._VERSIONS.items():
            if expected == version:
                return Address(variant, strkey.decode(version, value))
        raise strkey.StrKeyError(f"Not an address: {version.name}")

    @staticmethod
    def from_public_key(public_key: PublicKey) -> Address:
        return Address(Address.ACCOUNT, public_key.to_raw())

    @staticmethod
    def from_contract_id(contract_id: bytes) -> Address:
        return Address(Address.CONTRACT, contract_id)

    def is_contract(self) -> bool:
        return self.variant == Address.CONTRACT

    def public_key(self) -> PublicKey:
        """The Ed25519 key behind an account or muxed account address."""
        if self.variant not in (Address.ACCOUNT, Address.MUXED_ACCOUNT):
            raise ValueError(f"Address {self} is not backed by a public key")
        return PublicKey.from_raw(self.payload[: PublicKey.LENGTH])

    @staticmethod
    def deserialize(deserializer: Deserializer) -> Address:
        variant = deserializer.enum()

        if variant == Address.ACCOUNT:
            payload = PublicKey.deserialize(deserializer).to_raw()
        elif variant in (Address.CONTRACT, Address.LIQUIDITY_POOL):
            payload = deserializer.fixed_bytes(Address.HASH_LENGTH)
        elif variant == Address.MUXED_ACCOUNT:
            muxed_id = deserializer.u64()
            key = deserializer.fixed_bytes(PublicKey.LENGTH)
            payload = key + muxed_id.to_bytes(8, "big")
        elif variant == Address.CLAIMABLE_BALANCE:
            id_type = deserializer.enum()
            if id_type != Address.CLAIMABLE_BALANCE_ID_TYPE_V0:
                raise XdrError(f"Invalid claimable balance id type: {id_type}")
            payload = bytes([id_type]) + deserializer.fixed_bytes(Address.HASH_LENGTH)
        else:
            raise XdrError(f"Invalid address type: {variant}")

        return Address(variant, payload)

    def serialize(self, serializer: Serializer):
        serializer.enum(self.variant)

        if self.variant == Address.ACCOUNT:
            serializer.struct(PublicKey.from_raw(self.payload))
        elif self.variant in (Address.CONTRACT, Address.LIQUIDITY_POOL):
            serializer.fixed_bytes(self.payload, Address.HASH_LENGTH)
        elif self.variant == Address.MUXED_ACCOUNT:
            serializer.u64(int.from_bytes(self.payload[32:], "big"))
            serializer.fixed_bytes(self.payload[:32], PublicKey.LENGTH)
        else:
            serializer.enum(self.payload[0])
            serializer.fixed_bytes(self.payload[1:], Address.HASH_LENGTH)


class Test(unittest.TestCase):
    ACCOUNT = "GA3D5KRYM6CB7OWQ6TWYRR3Z4T7GNZLKERYNZGGA5SOAOPIFY6YQHES5"
    CONTRACT = "CA3D5KRYM6CB7OWQ6TWYRR3Z4T7GNZLKERYNZGGA5SOAOPIFY6YQGAXE"
    RAW = bytes.fromhex(
        "363eaa3867841fbad0f4ed88c779e4fe66e56a2470dc98c0ec9c073d05c7b103"
    )

    def test_from_str(self):
        account = Address.from_str(self.ACCOUNT)
        contract = Address.from_str(self.CONTRACT)
        self.assertEqual(account.variant, Address.ACCOUNT)
        self.assertEqual(contract.variant, Address.CONTRACT)
        self.assertEqual(account.payload, self.RAW)
        self.assertEqual(contract.payload, self.RAW)
        self.assertEqual(str(account), self.ACCOUNT)
        self.assertEqual(str(contract), self.CONTRACT)
        self.assertNotEqual(account, contract)

    def test_account_xdr(self):
        data = Address.from_str(self.ACCOUNT).to_bytes()
        self.assertEqual(data, b"\x00\x00\x00\x00" + b"\x00\x00\x00\x00" + self.RAW)
        self.assertEqual(Address.from_bytes(data), Address.from_str(self.ACCOUNT))

    def test_contract_xdr(self):
        data = Address.from_str(self.CONTRACT).to_bytes()
        self.assertEqual(data, b"\x00\x00\x00\x01" + self.RAW)
        self.assertEqual(Address.from_bytes(data), Address.from_str(self.CONTRACT))

    def test_muxed_xdr_puts_id_first(self):
        muxed = Address(Address.MUXED_ACCOUNT, self.RAW + (7).to_bytes(8, "big"))
        data = muxed.to_bytes()
        self.assertEqual(data[:4], b"\x00\x00\x00\x02")
        self.assertEqual(data[4:12], (7).to_bytes(8, "big"))
        self.assertEqual(data[12:], self.RAW)
        self.assertEqual(Address.from_bytes(data), muxed)
        self.assertEqual(Address.from_str(str(muxed)), muxed)
        self.assertEqual(muxed.public_key(), Address.from_str(self.ACCOUNT).public_key())

    def test_claimable_balance_xdr(self):
        balance = Address(Address.CLAIMABLE_BALANCE, b"\x00" + self.RAW)
        data = balance.to_bytes()
        self.assertEqual(data, b"\x00\x00\x00\x03" + b"\x00\x00\x00\x00" + self.RAW)
        self.assertEqual(Address.from_bytes(data), balance)

    def test_rejects_secret_seed(self):
        with self.assertRaises(strkey.StrKeyError):
            Address.from_str("SBU2RRGLXH3E5CQHTD3ODLDF2BWDCYUSSBLLZ5GNW7JXHDIYKXZWHOKR")

    def test_invalid_variant(self):
        with self.assertRaises(XdrError):
            Address.from_bytes(b"\x00\x00\x00\x09" + self.RAW)

    def test_hashable(self):
        self.assertEqual(
            len({Address.from_str(self.CONTRACT), Address.from_str(self.CONTRACT)}), 1
        )


if __name__ == "__main__":
    unittest.main()
