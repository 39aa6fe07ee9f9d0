# Copyright © Smart Account SDK Contributors
# SPDX-License-Identifier: Apache-2.0

import asyncio
import typing

from behave import given, then, use_step_matcher, when

from smart_account_sdk import network, storage_keys
from smart_account_sdk.account import Account
from smart_account_sdk.address import Address
from smart_account_sdk.auth import (
    CHECK_AUTH_FUNCTION,
    SorobanAuthorizedFunction,
    SorobanAuthorizedInvocation,
    InvokeContractArgs,
    build_unsigned_auth_entry,
)
from smart_account_sdk.plugin import (
    DelegatedSignerConfig,
    DelegatedSignerPlugin,
    SigningFailure,
)
from smart_account_sdk.resources import (
    LedgerFootprint,
    SorobanResources,
    SorobanTransactionData,
)
from smart_account_sdk.scval import to_u32
from smart_account_sdk.simulation import SimulateTransactionOutput

# Use regular expressions
use_step_matcher("re")

TARGET_CONTRACT = "CDLZFC3SYJYDZT7K67VZ75HPJVIEUVNIXF47ZG2FB2RMQQVU2HHGCYSC"


@given(r"a delegated signer with seed (?P<seed>S\w+)")
def given_signer(context: typing.Any, seed: str):
    context.signer = Account.from_secret(seed)
    context.auth_entry_signer = None


@given(r"the smart account (?P<contract_id>C\w+) on testnet")
def given_smart_account(context: typing.Any, contract_id: str):
    context.smart_account_id = contract_id
    context.network_passphrase = network.TESTNET_NETWORK_PASSPHRASE


@given(r"a simulation at ledger (?P<ledger>\d+) with no auth entries")
def given_empty_simulation(context: typing.Any, ledger: str):
    context.input = simulation([], int(ledger))
    context.snapshot = context.input.to_rpc_dict()


@given(
    r"a simulation at ledger (?P<ledger>\d+) with an auth entry for "
    r"(?:the smart account|contract (?P<contract_id>C\w+))"
)
def given_simulation(context: typing.Any, ledger: str, contract_id: typing.Optional[str]):
    entry = auth_entry(contract_id or context.smart_account_id)
    context.input = simulation([entry], int(ledger))
    context.snapshot = context.input.to_rpc_dict()


@given(r"a signing oracle that fails")
def given_failing_signer(context: typing.Any):
    async def fail(entry, signer, expiration_ledger, network_passphrase):
        raise ConnectionError("signing service unavailable")

    context.auth_entry_signer = fail


@when(r"I augment the simulation")
def when_augment(context: typing.Any):
    config = DelegatedSignerConfig(
        smart_account_id=context.smart_account_id,
        signer=context.signer,
        network_passphrase=context.network_passphrase,
    )
    if context.auth_entry_signer is None:
        plugin = DelegatedSignerPlugin(config)
    else:
        plugin = DelegatedSignerPlugin(config, context.auth_entry_signer)

    try:
        context.output = asyncio.run(plugin.process_output(context.input))
    except SigningFailure as e:
        context.output = e


@then(r"the simulation should have (?P<count>\d+) auth entries")
def then_entry_count(context: typing.Any, count: str):
    assert len(context.output.auth) == int(count), context.output.auth


@then(
    r"auth entry (?P<index>\d+) should be for the "
    r"(?P<who>smart account|delegated signer) and expire at ledger (?P<ledger>\d+)"
)
def then_entry(context: typing.Any, index: str, who: str, ledger: str):
    credentials = context.output.auth[int(index)].credentials.address_credentials()
    if who == "smart account":
        expected = Address.from_str(context.smart_account_id)
    else:
        expected = context.signer.address()
    assert credentials.address == expected, credentials.address
    assert credentials.signature_expiration_ledger == int(ledger)


@then(r"auth entry (?P<index>\d+) should call __check_auth on the smart account")
def then_check_auth(context: typing.Any, index: str):
    function = context.output.auth[int(index)].root_invocation.function
    assert function.variant == SorobanAuthorizedFunction.CONTRACT_FN
    assert str(function.value.contract_address) == context.smart_account_id
    assert function.value.function_name == CHECK_AUTH_FUNCTION


@then(r"the resource fee should be (?P<fee>\d+)")
def then_fee(context: typing.Any, fee: str):
    assert context.output.min_resource_fee == int(fee)
    assert context.output.transaction_data.resource_fee == int(fee)


@then(r"the footprint should cover the delegated signer")
def then_footprint(context: typing.Any):
    footprint = context.output.transaction_data.footprint
    assert storage_keys.create_account_key(context.signer.public_key()) in footprint.read_only
    for key in storage_keys.create_smart_account_storage_keys(context.smart_account_id):
        assert key in footprint.read_only
    nonce = context.output.auth[-1].credentials.address_credentials().nonce
    nonce_key = storage_keys.create_nonce_key(context.signer.address(), nonce)
    assert footprint.read_write == [nonce_key]


@then(r"the simulation should be returned unchanged")
def then_unchanged(context: typing.Any):
    assert context.output is context.input
    assert context.input.to_rpc_dict() == context.snapshot


@then(r"the augmentation should fail with a signing failure")
def then_signing_failure(context: typing.Any):
    assert isinstance(context.output, SigningFailure), context.output


@then(r"the original simulation should be untouched")
def then_untouched(context: typing.Any):
    assert context.input.to_rpc_dict() == context.snapshot


def auth_entry(contract_id: str):
    invocation = SorobanAuthorizedInvocation(
        SorobanAuthorizedFunction(
            SorobanAuthorizedFunction.CONTRACT_FN,
            InvokeContractArgs(Address.from_str(TARGET_CONTRACT), "transfer", [to_u32(5)]),
        )
    )
    return build_unsigned_auth_entry(Address.from_str(contract_id), 0, invocation)


def simulation(entries, latest_ledger: int) -> SimulateTransactionOutput:
    data = SorobanTransactionData(
        SorobanResources(LedgerFootprint([], []), 1_000_000, 2_000, 300), 10_000
    )
    return SimulateTransactionOutput(entries, data, 10_000, latest_ledger)
