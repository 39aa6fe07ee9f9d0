# Copyright © Smart Account SDK Contributors
# SPDX-License-Identifier: Apache-2.0

"""
Ledger keys name the storage locations a transaction reads or writes.

A Soroban transaction must declare every key it touches in its footprint; a
key missing from the footprint makes the transaction fail at apply time. The
delegated signer flow only adds account and contract data keys, but a
footprint returned by simulation may contain any arm, so all ten are modelled
here and survive a decode/encode cycle unchanged.

Keys compare and hash by their canonical XDR so that footprints can treat
them as set members.
"""

from __future__ import annotations

import unittest
from typing import Optional, Tuple

from .address import Address
from .ed25519 import PublicKey
from .scval import ScVal, to_ledger_key_nonce, to_symbol
from .xdr import Deserializable, Deserializer, Serializable, Serializer, XdrError

HASH_LENGTH = 32
DATA_NAME_LIMIT = 64


class Asset(Serializable, Deserializable):
    """A classic Stellar asset: the native lumen or an issued credit asset."""

    NATIVE: int = 0
    CREDIT_ALPHANUM4: int = 1
    CREDIT_ALPHANUM12: int = 2

    CODE_LENGTHS = {CREDIT_ALPHANUM4: 4, CREDIT_ALPHANUM12: 12}

    variant: int
    code: Optional[bytes]
    issuer: Optional[PublicKey]

    def __init__(
        self,
        variant: int,
        code: Optional[bytes] = None,
        issuer: Optional[PublicKey] = None,
    ):
        if variant == Asset.NATIVE:
            code, issuer = None, None
        elif variant in Asset.CODE_LENGTHS:
            if code is None or issuer is None:
                raise ValueError("Credit assets need a code and an issuer")
            code = code.ljust(Asset.CODE_LENGTHS[variant], b"\x00")
            if len(code) != Asset.CODE_LENGTHS[variant]:
                raise ValueError(f"Asset code too long: {code!r}")
        else:
            raise XdrError(f"Invalid asset type: {variant}")
        self.variant = variant
        self.code = code
        self.issuer = issuer

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Asset):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    def __hash__(self):
        return hash(self.to_bytes())

    def __repr__(self) -> str:
        if self.variant == Asset.NATIVE:
            return "Asset(native)"
        code = self.code.rstrip(b"\x00").decode(errors="replace")
        return f"Asset({code}:{self.issuer})"

    @staticmethod
    def native() -> Asset:
        return Asset(Asset.NATIVE)

    @staticmethod
    def credit(code: str, issuer: PublicKey) -> Asset:
        """Build a credit asset, picking the 4 or 12 byte arm from the code length."""
        raw = code.encode()
        if not 1 <= len(raw) <= 12:
            raise ValueError(f"Invalid asset code: {code}")
        variant = Asset.CREDIT_ALPHANUM4 if len(raw) <= 4 else Asset.CREDIT_ALPHANUM12
        return Asset(variant, raw, issuer)

    @staticmethod
    def deserialize(deserializer: Deserializer) -> Asset:
        variant = deserializer.enum()
        if variant == Asset.NATIVE:
            return Asset(variant)
        if variant in Asset.CODE_LENGTHS:
            code = deserializer.fixed_bytes(Asset.CODE_LENGTHS[variant])
            return Asset(variant, code, PublicKey.deserialize(deserializer))
        raise XdrError(f"Invalid asset type: {variant}")

    def serialize(self, serializer: Serializer):
        serializer.enum(self.variant)
        if self.variant != Asset.NATIVE:
            serializer.fixed_bytes(self.code, Asset.CODE_LENGTHS[self.variant])
            serializer.struct(self.issuer)


class TrustLineAsset(Asset):
    """The asset of a trustline, which may also be a liquidity pool share."""

    POOL_SHARE: int = 3

    pool_id: Optional[bytes] = None

    def __init__(
        self,
        variant: int,
        code: Optional[bytes] = None,
        issuer: Optional[PublicKey] = None,
        pool_id: Optional[bytes] = None,
    ):
        if variant == TrustLineAsset.POOL_SHARE:
            if pool_id is None or len(pool_id) != HASH_LENGTH:
                raise ValueError("Pool share trustlines need a 32 byte pool id")
            self.variant = variant
            self.code, self.issuer, self.pool_id = None, None, pool_id
            return
        super().__init__(variant, code, issuer)

    def __repr__(self) -> str:
        if self.variant == TrustLineAsset.POOL_SHARE:
            return f"TrustLineAsset(pool {self.pool_id.hex()})"
        return super().__repr__()

    @staticmethod
    def deserialize(deserializer: Deserializer) -> TrustLineAsset:
        variant = deserializer.enum()
        if variant == TrustLineAsset.POOL_SHARE:
            return TrustLineAsset(
                variant, pool_id=deserializer.fixed_bytes(HASH_LENGTH)
            )
        if variant == Asset.NATIVE:
            return TrustLineAsset(variant)
        if variant in Asset.CODE_LENGTHS:
            code = deserializer.fixed_bytes(Asset.CODE_LENGTHS[variant])
            return TrustLineAsset(variant, code, PublicKey.deserialize(deserializer))
        raise XdrError(f"Invalid trustline asset type: {variant}")

    def serialize(self, serializer: Serializer):
        if self.variant == TrustLineAsset.POOL_SHARE:
            serializer.enum(self.variant)
            serializer.fixed_bytes(self.pool_id, HASH_LENGTH)
        else:
            super().serialize(serializer)


class LedgerKey(Serializable, Deserializable):
    """A key into the ledger.

    Attributes:
        variant: The ``LedgerEntryType`` discriminant.
        fields: The arm's fields in XDR order. For example a contract data
            key holds ``(Address, ScVal, durability)``.
    """

    ACCOUNT: int = 0
    TRUSTLINE: int = 1
    OFFER: int = 2
    DATA: int = 3
    CLAIMABLE_BALANCE: int = 4
    LIQUIDITY_POOL: int = 5
    CONTRACT_DATA: int = 6
    CONTRACT_CODE: int = 7
    CONFIG_SETTING: int = 8
    TTL: int = 9

    # ContractDataDurability
    TEMPORARY: int = 0
    PERSISTENT: int = 1

    variant: int
    fields: Tuple

    def __init__(self, variant: int, *fields):
        if not LedgerKey.ACCOUNT <= variant <= LedgerKey.TTL:
            raise XdrError(f"Invalid ledger key type: {variant}")
        self.variant = variant
        self.fields = tuple(fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LedgerKey):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    def __hash__(self):
        return hash(self.to_bytes())

    def __repr__(self) -> str:
        fields = ", ".join(repr(field) for field in self.fields)
        return f"LedgerKey({self.variant}, {fields})"

    @staticmethod
    def account(account_id: PublicKey) -> LedgerKey:
        return LedgerKey(LedgerKey.ACCOUNT, account_id)

    @staticmethod
    def trustline(account_id: PublicKey, asset: TrustLineAsset) -> LedgerKey:
        return LedgerKey(LedgerKey.TRUSTLINE, account_id, asset)

    @staticmethod
    def contract_data(contract: Address, key: ScVal, durability: int) -> LedgerKey:
        if durability not in (LedgerKey.TEMPORARY, LedgerKey.PERSISTENT):
            raise XdrError(f"Invalid contract data durability: {durability}")
        return LedgerKey(LedgerKey.CONTRACT_DATA, contract, key, durability)

    @staticmethod
    def contract_code(wasm_hash: bytes) -> LedgerKey:
        return LedgerKey(LedgerKey.CONTRACT_CODE, wasm_hash)

    @staticmethod
    def ttl(key_hash: bytes) -> LedgerKey:
        return LedgerKey(LedgerKey.TTL, key_hash)

    @staticmethod
    def deserialize(deserializer: Deserializer) -> LedgerKey:
        variant = deserializer.enum()

        if variant == LedgerKey.ACCOUNT:
            fields: tuple = (PublicKey.deserialize(deserializer),)
        elif variant == LedgerKey.TRUSTLINE:
            fields = (
                PublicKey.deserialize(deserializer),
                TrustLineAsset.deserialize(deserializer),
            )
        elif variant == LedgerKey.OFFER:
            fields = (PublicKey.deserialize(deserializer), deserializer.i64())
        elif variant == LedgerKey.DATA:
            fields = (
                PublicKey.deserialize(deserializer),
                deserializer.str(DATA_NAME_LIMIT),
            )
        elif variant == LedgerKey.CLAIMABLE_BALANCE:
            id_type = deserializer.enum()
            if id_type != 0:
                raise XdrError(f"Invalid claimable balance id type: {id_type}")
            fields = (deserializer.fixed_bytes(HASH_LENGTH),)
        elif variant in (LedgerKey.LIQUIDITY_POOL, LedgerKey.CONTRACT_CODE, LedgerKey.TTL):
            fields = (deserializer.fixed_bytes(HASH_LENGTH),)
        elif variant == LedgerKey.CONTRACT_DATA:
            contract = Address.deserialize(deserializer)
            key = ScVal.deserialize(deserializer)
            durability = deserializer.enum()
            if durability not in (LedgerKey.TEMPORARY, LedgerKey.PERSISTENT):
                raise XdrError(f"Invalid contract data durability: {durability}")
            fields = (contract, key, durability)
        elif variant == LedgerKey.CONFIG_SETTING:
            fields = (deserializer.enum(),)
        else:
            raise XdrError(f"Invalid ledger key type: {variant}")

        return LedgerKey(variant, *fields)

    def serialize(self, serializer: Serializer):
        serializer.enum(self.variant)
        variant = self.variant

        if variant == LedgerKey.ACCOUNT:
            serializer.struct(self.fields[0])
        elif variant == LedgerKey.TRUSTLINE:
            serializer.struct(self.fields[0])
            serializer.struct(self.fields[1])
        elif variant == LedgerKey.OFFER:
            serializer.struct(self.fields[0])
            serializer.i64(self.fields[1])
        elif variant == LedgerKey.DATA:
            serializer.struct(self.fields[0])
            serializer.str(self.fields[1], DATA_NAME_LIMIT)
        elif variant == LedgerKey.CLAIMABLE_BALANCE:
            serializer.enum(0)
            serializer.fixed_bytes(self.fields[0], HASH_LENGTH)
        elif variant in (LedgerKey.LIQUIDITY_POOL, LedgerKey.CONTRACT_CODE, LedgerKey.TTL):
            serializer.fixed_bytes(self.fields[0], HASH_LENGTH)
        elif variant == LedgerKey.CONTRACT_DATA:
            serializer.struct(self.fields[0])
            serializer.struct(self.fields[1])
            serializer.enum(self.fields[2])
        else:
            serializer.enum(self.fields[0])


class Test(unittest.TestCase):
    ACCOUNT = "GA3D5KRYM6CB7OWQ6TWYRR3Z4T7GNZLKERYNZGGA5SOAOPIFY6YQHES5"
    CONTRACT = "CA3D5KRYM6CB7OWQ6TWYRR3Z4T7GNZLKERYNZGGA5SOAOPIFY6YQGAXE"

    def test_account_key(self):
        public_key = PublicKey.from_str(self.ACCOUNT)
        data = LedgerKey.account(public_key).to_bytes()
        self.assertEqual(data, b"\x00" * 8 + public_key.to_raw())
        self.assertEqual(LedgerKey.from_bytes(data), LedgerKey.account(public_key))

    def test_contract_data_key(self):
        key = LedgerKey.contract_data(
            Address.from_str(self.CONTRACT), to_symbol("Ids"), LedgerKey.PERSISTENT
        )
        data = key.to_bytes()
        self.assertEqual(data[:8], b"\x00\x00\x00\x06\x00\x00\x00\x01")
        self.assertEqual(data[-4:], b"\x00\x00\x00\x01")
        self.assertEqual(LedgerKey.from_bytes(data), key)

    def test_equality_and_hash(self):
        nonce_a = LedgerKey.contract_data(
            Address.from_str(self.ACCOUNT), to_ledger_key_nonce(5), LedgerKey.TEMPORARY
        )
        nonce_b = LedgerKey.contract_data(
            Address.from_str(self.ACCOUNT), to_ledger_key_nonce(5), LedgerKey.TEMPORARY
        )
        nonce_c = LedgerKey.contract_data(
            Address.from_str(self.ACCOUNT), to_ledger_key_nonce(6), LedgerKey.TEMPORARY
        )
        self.assertEqual(nonce_a, nonce_b)
        self.assertNotEqual(nonce_a, nonce_c)
        self.assertEqual(len({nonce_a, nonce_b, nonce_c}), 2)

    def test_other_arms(self):
        issuer = PublicKey.from_str(self.ACCOUNT)
        for key in (
            LedgerKey.trustline(issuer, TrustLineAsset(Asset.NATIVE)),
            LedgerKey.trustline(
                issuer, TrustLineAsset(Asset.CREDIT_ALPHANUM4, b"USDC", issuer)
            ),
            LedgerKey.trustline(
                issuer, TrustLineAsset(Asset.CREDIT_ALPHANUM12, b"LONGCODE", issuer)
            ),
            LedgerKey.trustline(
                issuer, TrustLineAsset(TrustLineAsset.POOL_SHARE, pool_id=bytes(32))
            ),
            LedgerKey(LedgerKey.OFFER, issuer, 42),
            LedgerKey(LedgerKey.DATA, issuer, "config"),
            LedgerKey(LedgerKey.CLAIMABLE_BALANCE, bytes(32)),
            LedgerKey(LedgerKey.LIQUIDITY_POOL, bytes(32)),
            LedgerKey.contract_code(b"\x01" * 32),
            LedgerKey(LedgerKey.CONFIG_SETTING, 3),
            LedgerKey.ttl(b"\x02" * 32),
        ):
            self.assertEqual(LedgerKey.from_bytes(key.to_bytes()), key)

    def test_credit_asset_arm(self):
        issuer = PublicKey.from_str(self.ACCOUNT)
        self.assertEqual(Asset.credit("USDC", issuer).variant, Asset.CREDIT_ALPHANUM4)
        self.assertEqual(
            Asset.credit("LONGCODE", issuer).variant, Asset.CREDIT_ALPHANUM12
        )
        self.assertEqual(Asset.credit("XLM", issuer).code, b"XLM\x00")

    def test_invalid_type(self):
        with self.assertRaises(XdrError):
            LedgerKey.from_bytes(b"\x00\x00\x00\x0a")
        with self.assertRaises(XdrError):
            LedgerKey.contract_data(Address.from_str(self.CONTRACT), to_symbol("a"), 2)


if __name__ == "__main__":
    unittest.main()
