# Copyright © Smart Account SDK Contributors
# SPDX-License-Identifier: Apache-2.0

"""
Ledger keys read when a smart account checks a delegated signer.

``__check_auth`` on an OpenZeppelin style smart account looks up the context
rules that apply to the call, then each rule's metadata, signers and
policies. The rule index is kept per context kind::

    ["Ids", ["CallContract", <contract>]]
    ["Ids", ["Default"]]
    ["Meta", <rule id>]
    ["Signers", <rule id>]
    ["Policies", <rule id>]

All of them are persistent contract data of the smart account. Verifying the
delegated signer's own entry additionally reads the signer's account and
writes its nonce, a temporary entry keyed by the nonce value.
"""

from __future__ import annotations

import typing
import unittest
from typing import List, Optional

from . import scval
from .address import Address
from .ed25519 import PublicKey
from .ledger_key import LedgerKey
from .scval import ScVal
from .xdr import MAX_U32


class ContextRuleType:
    """The kind of call a context rule applies to."""

    DEFAULT: int = 0
    CALL_CONTRACT: int = 1
    CREATE_CONTRACT: int = 2

    NAMES = {DEFAULT: "Default", CALL_CONTRACT: "CallContract", CREATE_CONTRACT: "CreateContract"}

    variant: int
    contract: Optional[Address]
    wasm_hash: Optional[bytes]

    def __init__(
        self,
        variant: int,
        contract: Optional[Address] = None,
        wasm_hash: Optional[bytes] = None,
    ):
        if variant == ContextRuleType.DEFAULT:
            contract, wasm_hash = None, None
        elif variant == ContextRuleType.CALL_CONTRACT:
            if contract is None:
                raise ValueError("CallContract rules need a contract address")
            wasm_hash = None
        elif variant == ContextRuleType.CREATE_CONTRACT:
            if wasm_hash is None or len(wasm_hash) != 32:
                raise ValueError("CreateContract rules need a 32 byte wasm hash")
            contract = None
        else:
            raise ValueError(f"Invalid context rule type: {variant}")
        self.variant = variant
        self.contract = contract
        self.wasm_hash = wasm_hash

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ContextRuleType):
            return NotImplemented
        return (
            self.variant == other.variant
            and self.contract == other.contract
            and self.wasm_hash == other.wasm_hash
        )

    def __repr__(self) -> str:
        return f"ContextRuleType({ContextRuleType.NAMES[self.variant]})"

    @staticmethod
    def default() -> ContextRuleType:
        return ContextRuleType(ContextRuleType.DEFAULT)

    @staticmethod
    def call_contract(contract: typing.Union[Address, str]) -> ContextRuleType:
        if isinstance(contract, str):
            contract = Address.from_str(contract)
        return ContextRuleType(ContextRuleType.CALL_CONTRACT, contract=contract)

    @staticmethod
    def create_contract(wasm_hash: bytes) -> ContextRuleType:
        return ContextRuleType(ContextRuleType.CREATE_CONTRACT, wasm_hash=wasm_hash)

    def to_scval(self) -> ScVal:
        values = [scval.to_symbol(ContextRuleType.NAMES[self.variant])]
        if self.variant == ContextRuleType.CALL_CONTRACT:
            values.append(scval.to_address(self.contract))
        elif self.variant == ContextRuleType.CREATE_CONTRACT:
            values.append(scval.to_bytes(self.wasm_hash))
        return scval.to_vec(values)


def create_account_key(public_key: PublicKey) -> LedgerKey:
    return LedgerKey.account(public_key)


def create_nonce_key(signer: typing.Union[Address, str], nonce: int) -> LedgerKey:
    """The temporary entry recording that `signer` consumed `nonce`."""
    if isinstance(signer, str):
        signer = Address.from_str(signer)
    return LedgerKey.contract_data(
        signer, scval.to_ledger_key_nonce(nonce), LedgerKey.TEMPORARY
    )


def create_persistent_data_key(contract: Address, key: ScVal) -> LedgerKey:
    return LedgerKey.contract_data(contract, key, LedgerKey.PERSISTENT)


def _smart_account(smart_account_id: str) -> Address:
    address = Address.from_str(smart_account_id)
    if not address.is_contract():
        raise ValueError(f"Smart account must be a contract address: {smart_account_id}")
    return address


def _rule_key(smart_account_id: str, name: str, rule_id: int) -> LedgerKey:
    if not 0 <= rule_id <= MAX_U32:
        raise ValueError(f"Invalid context rule id: {rule_id}")
    return create_persistent_data_key(
        _smart_account(smart_account_id),
        scval.to_vec([scval.to_symbol(name), scval.to_u32(rule_id)]),
    )


def create_ids_key(smart_account_id: str, context_type: ContextRuleType) -> LedgerKey:
    """The index of rule ids registered for a context kind."""
    return create_persistent_data_key(
        _smart_account(smart_account_id),
        scval.to_vec([scval.to_symbol("Ids"), context_type.to_scval()]),
    )


def create_ids_call_contract_key(smart_account_id: str) -> LedgerKey:
    """Rule ids for calls into the smart account itself."""
    return create_ids_key(
        smart_account_id, ContextRuleType.call_contract(smart_account_id)
    )


def create_ids_default_key(smart_account_id: str) -> LedgerKey:
    return create_ids_key(smart_account_id, ContextRuleType.default())


def create_meta_key(smart_account_id: str, rule_id: int = 0) -> LedgerKey:
    return _rule_key(smart_account_id, "Meta", rule_id)


def create_signers_key(smart_account_id: str, rule_id: int = 0) -> LedgerKey:
    return _rule_key(smart_account_id, "Signers", rule_id)


def create_policies_key(smart_account_id: str, rule_id: int = 0) -> LedgerKey:
    return _rule_key(smart_account_id, "Policies", rule_id)


def create_smart_account_storage_keys(
    smart_account_id: str, rule_id: int = 0
) -> List[LedgerKey]:
    """The five keys ``__check_auth`` reads for a rule, in lookup order."""
    return [
        create_ids_call_contract_key(smart_account_id),
        create_ids_default_key(smart_account_id),
        create_meta_key(smart_account_id, rule_id),
        create_signers_key(smart_account_id, rule_id),
        create_policies_key(smart_account_id, rule_id),
    ]


class Test(unittest.TestCase):
    ACCOUNT = "GA3D5KRYM6CB7OWQ6TWYRR3Z4T7GNZLKERYNZGGA5SOAOPIFY6YQHES5"
    CONTRACT = "CA3D5KRYM6CB7OWQ6TWYRR3Z4T7GNZLKERYNZGGA5SOAOPIFY6YQGAXE"

    def test_nonce_key(self):
        key = create_nonce_key(self.ACCOUNT, 99)
        contract, value, durability = key.fields
        self.assertEqual(key.variant, LedgerKey.CONTRACT_DATA)
        self.assertEqual(str(contract), self.ACCOUNT)
        self.assertEqual(value, scval.to_ledger_key_nonce(99))
        self.assertEqual(durability, LedgerKey.TEMPORARY)

    def test_ids_keys(self):
        call_contract = create_ids_call_contract_key(self.CONTRACT)
        _, value, durability = call_contract.fields
        self.assertEqual(durability, LedgerKey.PERSISTENT)
        self.assertEqual(
            value,
            scval.to_vec(
                [
                    scval.to_symbol("Ids"),
                    scval.to_vec(
                        [scval.to_symbol("CallContract"), scval.to_address(self.CONTRACT)]
                    ),
                ]
            ),
        )
        default = create_ids_default_key(self.CONTRACT)
        self.assertEqual(
            default.fields[1],
            scval.to_vec(
                [scval.to_symbol("Ids"), scval.to_vec([scval.to_symbol("Default")])]
            ),
        )

    def test_rule_keys(self):
        meta = create_meta_key(self.CONTRACT, 3)
        self.assertEqual(str(meta.fields[0]), self.CONTRACT)
        self.assertEqual(
            meta.fields[1], scval.to_vec([scval.to_symbol("Meta"), scval.to_u32(3)])
        )
        with self.assertRaises(ValueError):
            create_signers_key(self.CONTRACT, -1)

    def test_storage_keys(self):
        keys = create_smart_account_storage_keys(self.CONTRACT)
        self.assertEqual(len(keys), 5)
        self.assertEqual(len(set(keys)), 5)
        self.assertEqual(keys[4], create_policies_key(self.CONTRACT, 0))

    def test_rejects_account_as_smart_account(self):
        with self.assertRaises(ValueError):
            create_meta_key(self.ACCOUNT)

    def test_create_contract_context(self):
        context = ContextRuleType.create_contract(b"\x07" * 32)
        self.assertEqual(
            context.to_scval(),
            scval.to_vec([scval.to_symbol("CreateContract"), scval.to_bytes(b"\x07" * 32)]),
        )
        with self.assertRaises(ValueError):
            ContextRuleType.create_contract(b"")


if __name__ == "__main__":
    unittest.main()
