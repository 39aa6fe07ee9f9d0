# Copyright © Smart Account SDK Contributors
# SPDX-License-Identifier: Apache-2.0

from behave import *

from smart_account_sdk import strkey
from smart_account_sdk.account import Account
from smart_account_sdk.address import Address

# Use regular expressions
use_step_matcher("re")

KINDS = {
    "account": strkey.VersionByte.ED25519_PUBLIC_KEY,
    "seed": strkey.VersionByte.ED25519_SECRET_SEED,
    "muxed account": strkey.VersionByte.MED25519_PUBLIC_KEY,
    "contract": strkey.VersionByte.CONTRACT,
    "liquidity pool": strkey.VersionByte.LIQUIDITY_POOL,
    "claimable balance": strkey.VersionByte.CLAIMABLE_BALANCE,
}


@given(r"strkey (?P<value>\S*)")
def given_strkey(context, value):
    context.input = value


@when(r"I decode the strkey as an? (?P<kind>[a-z ]+)")
def when_decode_strkey(context, kind):
    try:
        context.output = strkey.decode(KINDS[kind], context.input)
    except strkey.StrKeyError as e:
        context.output = e


@when(r"I encode the bytes as an? (?P<kind>[a-z ]+) strkey")
def when_encode_strkey(context, kind):
    try:
        context.output = strkey.encode(KINDS[kind], context.input)
    except strkey.StrKeyError as e:
        context.output = e


@when("I parse the address")
def when_parse_address(context):
    try:
        context.output = Address.from_str(context.input)
    except strkey.StrKeyError as e:
        context.output = e


@when("I derive the account from the seed")
def when_derive_account(context):
    context.output = str(Account.from_secret(context.input).address())


@then(r"the strkey should be (?P<value>\S+)")
def then_strkey(context, value):
    assert context.output == value, f"Expected {value} but got {context.output}"


@then(r"the address should be an? (?P<kind>account|contract)")
def then_address_kind(context, kind):
    assert context.output.is_contract() == (kind == "contract")


@then("I should fail to decode the strkey")
def then_fail_strkey(context):
    assert isinstance(context.output, strkey.StrKeyError)
