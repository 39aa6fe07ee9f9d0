# Copyright © Smart Account SDK Contributors
# SPDX-License-Identifier: Apache-2.0

"""
Delegated signer support for smart account transactions.

A smart account that lists a ``G...`` account as a *delegated* signer does not
accept that account's signature inside its own authorization entry. Instead
its entry carries a placeholder naming the signer, and ``__check_auth`` calls
``require_auth_for_args(payload_hash)`` on the signer. The signer therefore
needs a second authorization entry of its own, for a ``__check_auth`` call
whose only argument is the smart account's payload hash.

Simulation cannot produce that second entry, since the signature value that
triggers it does not exist yet. `DelegatedSignerPlugin` rewrites a simulation
result after the fact:

1. find the smart account's entry
2. stamp it with the delegated signer placeholder and an expiration ledger
3. hash the smart account's payload
4. build and sign the signer's ``__check_auth`` entry
5. add the keys the verification reads and writes to the footprint
6. raise the resource limits and scale the resource fee

Examples:
    Augment a simulation before submitting::

        config = DelegatedSignerConfig(
            smart_account_id="CA3D...",
            signer=Account.from_secret("SBU2..."),
            network_passphrase=TESTNET_NETWORK_PASSPHRASE,
        )
        plugin = DelegatedSignerPlugin(config)
        output = await plugin.process_output(await client.simulate_transaction(tx))

    Sign with something other than a local key, such as a remote signer::

        async def remote_signer(entry, signer, expiration_ledger, passphrase):
            return await signing_service.authorize(entry, expiration_ledger)

        plugin = DelegatedSignerPlugin(config, auth_entry_signer=remote_signer)
"""

from __future__ import annotations

import asyncio
import logging
import unittest
from dataclasses import dataclass
from unittest import mock

from . import network, signatures, storage_keys
from .account import Account
from .address import Address
from .auth import (
    AuthEntrySigner,
    MalformedCredentials,
    SorobanAuthorizationEntry,
    SorobanAuthorizedFunction,
    SorobanAuthorizedInvocation,
    InvokeContractArgs,
    authorize_entry,
    build_check_auth_invocation,
    build_unsigned_auth_entry,
    compute_auth_payload_hash,
    find_contract_auth_entry_index,
)
from .ed25519 import Signature
from .resources import (
    LedgerFootprint,
    ResourceBudget,
    ResourceOverflow,
    SorobanResources,
    SorobanTransactionData,
    expand_footprint,
    recompute_budget,
)
from .scval import to_u32, to_void
from .simulation import SimulateTransactionOutput
from .xdr import MAX_U32


class SigningFailure(Exception):
    """The signing oracle failed or returned an unusable entry."""


@dataclass
class DelegatedSignerConfig:
    """Settings of a `DelegatedSignerPlugin`.

    Attributes:
        smart_account_id: The ``C...`` id of the smart account contract.
        signer: The delegated signer.
        network_passphrase: Passphrase of the network the transaction targets.
        extra_instructions: Instructions added for ``__check_auth``.
        extra_read_bytes: Disk read bytes added for the extra ledger reads.
        extra_write_bytes: Write bytes added for the signer's nonce entry.
        fee_multiplier: Factor applied to the simulated resource fee.
        expiration_ledger_offset: Ledgers after the latest ledger at which
            both authorizations expire.
        context_rule_id: Context rule whose storage ``__check_auth`` reads.
    """

    smart_account_id: str
    signer: Account
    network_passphrase: str
    extra_instructions: int = 1_500_000
    extra_read_bytes: int = 5_000
    extra_write_bytes: int = 100
    fee_multiplier: int = 3
    expiration_ledger_offset: int = 100
    context_rule_id: int = 0

    def __post_init__(self):
        if not Address.from_str(self.smart_account_id).is_contract():
            raise ValueError(
                f"Smart account must be a contract address: {self.smart_account_id}"
            )
        if min(self.extra_instructions, self.extra_read_bytes, self.extra_write_bytes) < 0:
            raise ValueError("Resource bumps must not be negative")
        if self.fee_multiplier < 1:
            raise ValueError(f"Fee multiplier must be at least 1: {self.fee_multiplier}")
        if self.expiration_ledger_offset < 1:
            raise ValueError(
                f"Expiration offset must be positive: {self.expiration_ledger_offset}"
            )
        if not 0 <= self.context_rule_id <= MAX_U32:
            raise ValueError(f"Invalid context rule id: {self.context_rule_id}")


class DelegatedSignerPlugin:
    """Rewrites simulation output so a delegated signer can authorize a call.

    The plugin keeps no state between calls. Inputs are never modified: the
    result is a new output, or the input itself when there is nothing to do.
    """

    NAME = "DelegatedSignerPlugin"
    TARGET = "simulateTransaction"

    config: DelegatedSignerConfig
    auth_entry_signer: AuthEntrySigner
    network_id: bytes

    def __init__(
        self,
        config: DelegatedSignerConfig,
        auth_entry_signer: AuthEntrySigner = authorize_entry,
    ):
        self.config = config
        self.auth_entry_signer = auth_entry_signer
        self.network_id = network.network_id(config.network_passphrase)

    async def process_output(
        self, output: SimulateTransactionOutput
    ) -> SimulateTransactionOutput:
        """Add the delegated signer's authorization to a simulation result.

        Returns:
            A new output with the smart account's entry stamped in place and
            the signer's entry appended, or `output` itself when it has no
            entry for the smart account. The signer and smart account keys
            join the read-only footprint unless already writable.

        Raises:
            SigningFailure: If the signing oracle fails.
            ResourceOverflow: If the expiration ledger, the new limits or the
                fee do not fit.
        """
        config = self.config
        if not output.auth:
            logging.debug("No auth entries in simulation output")
            return output

        index = find_contract_auth_entry_index(output.auth, config.smart_account_id)
        if index == -1:
            logging.debug("No auth entry for smart account %s", config.smart_account_id)
            return output

        expiration_ledger = output.latest_ledger + config.expiration_ledger_offset
        if expiration_ledger > MAX_U32:
            raise ResourceOverflow(f"Expiration ledger exceeds uint32: {expiration_ledger}")
        primary = output.auth[index]
        nonce = primary.credentials.address_credentials().nonce

        signer = config.signer
        signer_key = signatures.build_delegated_signer_key(signer.public_key())
        stamped = primary.with_address_credentials(
            expiration_ledger, signatures.build_signatures_value(signer_key)
        )

        payload_hash = compute_auth_payload_hash(
            self.network_id, nonce, expiration_ledger, primary.root_invocation
        )
        unsigned = build_unsigned_auth_entry(
            signer.address(),
            expiration_ledger,
            build_check_auth_invocation(config.smart_account_id, payload_hash),
        )

        signed = await self._sign(unsigned, expiration_ledger)
        signed_nonce = signed.credentials.address_credentials().nonce

        read_only = [storage_keys.create_account_key(signer.public_key())]
        read_only.extend(
            storage_keys.create_smart_account_storage_keys(
                config.smart_account_id, config.context_rule_id
            )
        )
        read_write = [storage_keys.create_nonce_key(signer.address(), signed_nonce)]
        footprint = expand_footprint(
            output.transaction_data.footprint, read_only, read_write
        )
        budget = recompute_budget(
            output.transaction_data.budget(),
            config.extra_instructions,
            config.extra_read_bytes,
            config.extra_write_bytes,
            config.fee_multiplier,
        )

        auth = list(output.auth)
        auth[index] = stamped
        auth.append(signed)
        logging.info(
            "Added delegated signer %s for smart account %s, resource fee %d",
            signer.address(),
            config.smart_account_id,
            budget.resource_fee,
        )
        return output.replace(
            auth=auth,
            transaction_data=output.transaction_data.rebuild(footprint, budget),
            min_resource_fee=budget.resource_fee,
        )

    async def _sign(
        self, unsigned: SorobanAuthorizationEntry, expiration_ledger: int
    ) -> SorobanAuthorizationEntry:
        try:
            signed = await self.auth_entry_signer(
                unsigned,
                self.config.signer,
                expiration_ledger,
                self.config.network_passphrase,
            )
        except Exception as e:
            logging.error("Signing the delegated signer entry failed", exc_info=True)
            raise SigningFailure(f"Signing oracle failed: {e}") from e

        try:
            credentials = signed.credentials.address_credentials()
        except MalformedCredentials as e:
            raise SigningFailure("Signing oracle returned source account credentials") from e
        if credentials.signature_expiration_ledger != expiration_ledger:
            raise SigningFailure(
                f"Signed entry expires at {credentials.signature_expiration_ledger}, "
                f"expected {expiration_ledger}"
            )
        return signed


class Test(unittest.IsolatedAsyncioTestCase):
    SMART_ACCOUNT = "CA3D5KRYM6CB7OWQ6TWYRR3Z4T7GNZLKERYNZGGA5SOAOPIFY6YQGAXE"
    OTHER_CONTRACT = "CDLZFC3SYJYDZT7K67VZ75HPJVIEUVNIXF47ZG2FB2RMQQVU2HHGCYSC"
    SECRET = "SBU2RRGLXH3E5CQHTD3ODLDF2BWDCYUSSBLLZ5GNW7JXHDIYKXZWHOKR"

    def setUp(self):
        self.signer = Account.from_secret(self.SECRET)
        self.config = DelegatedSignerConfig(
            smart_account_id=self.SMART_ACCOUNT,
            signer=self.signer,
            network_passphrase=network.TESTNET_NETWORK_PASSPHRASE,
        )

    def _entry(self, contract_id: str, nonce: int = 77) -> SorobanAuthorizationEntry:
        invocation = SorobanAuthorizedInvocation(
            SorobanAuthorizedFunction(
                SorobanAuthorizedFunction.CONTRACT_FN,
                InvokeContractArgs(
                    Address.from_str(self.OTHER_CONTRACT), "execute", [to_u32(5)]
                ),
            )
        )
        return build_unsigned_auth_entry(
            Address.from_str(contract_id), 0, invocation, nonce
        )

    def _output(self, entries, latest_ledger: int = 1000) -> SimulateTransactionOutput:
        existing = storage_keys.create_meta_key(self.OTHER_CONTRACT)
        data = SorobanTransactionData(
            SorobanResources(LedgerFootprint([existing], []), 1_000_000, 2_000, 300),
            10_000,
        )
        return SimulateTransactionOutput(entries, data, 10_000, latest_ledger)

    async def test_adds_companion_entry(self):
        output = self._output([self._entry(self.SMART_ACCOUNT)])
        result = await DelegatedSignerPlugin(self.config).process_output(output)

        self.assertEqual(len(result.auth), 2)
        primary = result.auth[0].credentials.address_credentials()
        companion = result.auth[1].credentials.address_credentials()
        self.assertEqual(str(primary.address), self.SMART_ACCOUNT)
        self.assertEqual(primary.signature_expiration_ledger, 1100)
        self.assertEqual(companion.signature_expiration_ledger, 1100)
        self.assertEqual(companion.address, self.signer.address())
        self.assertEqual(
            primary.signature,
            signatures.build_signatures_value(
                signatures.build_delegated_signer_key(self.signer.public_key())
            ),
        )

    async def test_check_auth_carries_payload_hash(self):
        entry = self._entry(self.SMART_ACCOUNT)
        result = await DelegatedSignerPlugin(self.config).process_output(
            self._output([entry])
        )
        expected = compute_auth_payload_hash(
            network.network_id(network.TESTNET_NETWORK_PASSPHRASE),
            77,
            1100,
            entry.root_invocation,
        )
        companion = result.auth[1]
        self.assertEqual(
            companion.root_invocation,
            build_check_auth_invocation(self.SMART_ACCOUNT, expected),
        )

        # The companion is signed over its own payload by the signer.
        credentials = companion.credentials.address_credentials()
        companion_hash = compute_auth_payload_hash(
            network.network_id(network.TESTNET_NETWORK_PASSPHRASE),
            credentials.nonce,
            1100,
            companion.root_invocation,
        )
        [signature_map] = credentials.signature.value
        signature = signature_map.value[1][1].value
        self.assertTrue(
            self.signer.public_key().verify(companion_hash, Signature(signature))
        )

    async def test_budget_and_fee(self):
        result = await DelegatedSignerPlugin(self.config).process_output(
            self._output([self._entry(self.SMART_ACCOUNT)])
        )
        self.assertEqual(
            result.transaction_data.budget(),
            ResourceBudget(2_500_000, 7_000, 400, 30_000),
        )
        self.assertEqual(result.min_resource_fee, 30_000)

    async def test_footprint(self):
        output = self._output([self._entry(self.SMART_ACCOUNT)])
        result = await DelegatedSignerPlugin(self.config).process_output(output)

        footprint = result.transaction_data.footprint
        nonce = result.auth[1].credentials.address_credentials().nonce
        expected_read_only = set(output.transaction_data.footprint.read_only)
        expected_read_only.add(storage_keys.create_account_key(self.signer.public_key()))
        expected_read_only.update(
            storage_keys.create_smart_account_storage_keys(self.SMART_ACCOUNT)
        )
        self.assertTrue(expected_read_only.issubset(set(footprint.read_only)))
        self.assertEqual(len(footprint.read_only), 7)
        self.assertEqual(
            footprint.read_write,
            [storage_keys.create_nonce_key(self.signer.address(), nonce)],
        )

    async def test_input_is_untouched(self):
        entry = self._entry(self.SMART_ACCOUNT)
        output = self._output([entry])
        before = SimulateTransactionOutput.from_rpc_response(output.to_rpc_dict())
        result = await DelegatedSignerPlugin(self.config).process_output(output)

        self.assertEqual(output, before)
        self.assertIsNot(result.auth[0], entry)
        self.assertEqual(entry.credentials.address_credentials().signature, to_void())

    async def test_position_preserved(self):
        entries = [
            self._entry(self.OTHER_CONTRACT),
            self._entry(self.SMART_ACCOUNT),
            self._entry(self.OTHER_CONTRACT, 3),
        ]
        result = await DelegatedSignerPlugin(self.config).process_output(
            self._output(entries)
        )
        self.assertEqual(len(result.auth), 4)
        self.assertEqual(result.auth[0], entries[0])
        self.assertEqual(result.auth[2], entries[2])
        self.assertEqual(
            str(result.auth[1].credentials.address_credentials().address),
            self.SMART_ACCOUNT,
        )
        # The appended entry is not mistaken for the smart account's.
        self.assertEqual(
            find_contract_auth_entry_index(result.auth, self.SMART_ACCOUNT), 1
        )

    async def test_no_entries(self):
        output = self._output([])
        result = await DelegatedSignerPlugin(self.config).process_output(output)
        self.assertIs(result, output)

    async def test_no_matching_entry(self):
        output = self._output([self._entry(self.OTHER_CONTRACT)])
        result = await DelegatedSignerPlugin(self.config).process_output(output)
        self.assertIs(result, output)
        self.assertEqual(len(result.auth), 1)

    async def test_signing_failure(self):
        signer = mock.AsyncMock(side_effect=ConnectionError("unreachable"))
        entry = self._entry(self.SMART_ACCOUNT)
        output = self._output([entry])
        before = SimulateTransactionOutput.from_rpc_response(output.to_rpc_dict())

        with self.assertRaises(SigningFailure) as cm:
            await DelegatedSignerPlugin(self.config, signer).process_output(output)
        self.assertIsInstance(cm.exception.__cause__, ConnectionError)
        self.assertEqual(output, before)
        signer.assert_awaited_once()

    async def test_signing_cancelled(self):
        signer = mock.AsyncMock(side_effect=asyncio.CancelledError())
        with self.assertRaises(asyncio.CancelledError):
            await DelegatedSignerPlugin(self.config, signer).process_output(
                self._output([self._entry(self.SMART_ACCOUNT)])
            )

    async def test_signer_arguments(self):
        signer = mock.AsyncMock(side_effect=authorize_entry)
        await DelegatedSignerPlugin(self.config, signer).process_output(
            self._output([self._entry(self.SMART_ACCOUNT)], latest_ledger=500)
        )
        unsigned, account, expiration, passphrase = signer.await_args.args
        self.assertEqual(account, self.signer)
        self.assertEqual(expiration, 600)
        self.assertEqual(passphrase, network.TESTNET_NETWORK_PASSPHRASE)
        self.assertEqual(unsigned.credentials.address_credentials().signature, to_void())

    async def test_signer_returning_wrong_expiration(self):
        async def signer(entry, account, expiration, passphrase):
            return await authorize_entry(entry, account, expiration + 1, passphrase)

        with self.assertRaises(SigningFailure):
            await DelegatedSignerPlugin(self.config, signer).process_output(
                self._output([self._entry(self.SMART_ACCOUNT)])
            )

    async def test_fee_overflow(self):
        output = self._output([self._entry(self.SMART_ACCOUNT)])
        output = output.replace(
            transaction_data=output.transaction_data.rebuild(
                output.transaction_data.footprint, ResourceBudget(0, 0, 0, 2**62)
            )
        )
        with self.assertRaises(ResourceOverflow):
            await DelegatedSignerPlugin(self.config).process_output(output)

    async def test_expiration_overflow(self):
        signer = mock.AsyncMock(side_effect=authorize_entry)
        output = self._output([self._entry(self.SMART_ACCOUNT)], latest_ledger=MAX_U32 - 50)
        with self.assertRaises(ResourceOverflow):
            await DelegatedSignerPlugin(self.config, signer).process_output(output)
        signer.assert_not_awaited()

    async def test_writable_signer_account_stays_writable(self):
        account_key = storage_keys.create_account_key(self.signer.public_key())
        output = self._output([self._entry(self.SMART_ACCOUNT)])
        data = output.transaction_data
        output = output.replace(
            transaction_data=data.rebuild(
                LedgerFootprint(data.footprint.read_only, [account_key]), data.budget()
            )
        )
        result = await DelegatedSignerPlugin(self.config).process_output(output)

        footprint = result.transaction_data.footprint
        self.assertNotIn(account_key, footprint.read_only)
        self.assertEqual(footprint.read_write[0], account_key)
        self.assertEqual(len(footprint.read_write), 2)
        for key in storage_keys.create_smart_account_storage_keys(self.SMART_ACCOUNT):
            self.assertIn(key, footprint.read_only)

    async def test_custom_config(self):
        config = DelegatedSignerConfig(
            smart_account_id=self.SMART_ACCOUNT,
            signer=self.signer,
            network_passphrase=network.TESTNET_NETWORK_PASSPHRASE,
            extra_instructions=0,
            fee_multiplier=1,
            expiration_ledger_offset=10,
            context_rule_id=2,
        )
        result = await DelegatedSignerPlugin(config).process_output(
            self._output([self._entry(self.SMART_ACCOUNT)])
        )
        self.assertEqual(result.min_resource_fee, 10_000)
        self.assertEqual(result.transaction_data.budget().instructions, 1_000_000)
        self.assertEqual(
            result.auth[1].credentials.address_credentials().signature_expiration_ledger,
            1010,
        )
        self.assertIn(
            storage_keys.create_signers_key(self.SMART_ACCOUNT, 2),
            result.transaction_data.footprint.read_only,
        )

    def test_config_validation(self):
        for changes in (
            {"smart_account_id": str(self.signer.address())},
            {"fee_multiplier": 0},
            {"extra_read_bytes": -1},
            {"expiration_ledger_offset": 0},
        ):
            values = {
                "smart_account_id": self.SMART_ACCOUNT,
                "signer": self.signer,
                "network_passphrase": network.TESTNET_NETWORK_PASSPHRASE,
            }
            values.update(changes)
            with self.assertRaises(ValueError):
                DelegatedSignerConfig(**values)


if __name__ == "__main__":
    unittest.main()
