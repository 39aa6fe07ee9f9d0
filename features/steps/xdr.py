# Copyright © Smart Account SDK Contributors
# SPDX-License-Identifier: Apache-2.0

import typing

from behave import then, use_step_matcher, when

from smart_account_sdk.address import Address
from smart_account_sdk.xdr import Deserializer, Serializer

# Use regular expressions
use_step_matcher("re")

ENCODERS = {
    "bool": Serializer.bool,
    "u32": Serializer.u32,
    "i32": Serializer.i32,
    "u64": Serializer.u64,
    "i64": Serializer.i64,
    "address": Serializer.struct,
    "bytes": Serializer.to_bytes,
    "string": Serializer.str,
}

DECODERS = {
    "bool": Deserializer.bool,
    "u32": Deserializer.u32,
    "i32": Deserializer.i32,
    "u64": Deserializer.u64,
    "i64": Deserializer.i64,
    "address": Address.deserialize,
    "bytes": Deserializer.to_bytes,
    "string": Deserializer.str,
}


@when(r"I serialize as (?P<input_type>bool|u32|i32|u64|i64|address|bytes|string)")
def when_serialize(context: typing.Any, input_type: str):
    ser = Serializer()
    try:
        ENCODERS[input_type](ser, context.input)
        context.output = ser.output()
    except Exception as e:
        context.output = e


@when(r"I deserialize as (?P<input_type>bool|u32|i32|u64|i64|address|bytes|string)")
def when_deserialize(context: typing.Any, input_type: str):
    try:
        context.output = DECODERS[input_type](Deserializer(context.input))
    except Exception as e:
        context.output = e


@when(r"I serialize as sequence of (?P<input_type>[a-zA-Z0-9]+)")
def when_serialize_sequence(context: typing.Any, input_type: str):
    ser = Serializer()
    seq_ser = Serializer.sequence_serializer(ENCODERS[input_type])
    seq_ser(ser, context.input)
    context.output = ser.output()


@when(r"I deserialize as sequence of (?P<input_type>[a-zA-Z0-9]+)")
def when_deserialize_sequence(context: typing.Any, input_type: str):
    try:
        des = Deserializer(context.input)
        context.output = des.sequence(DECODERS[input_type])
    except Exception as e:
        context.output = e


@when(r"I serialize as fixed bytes with length (?P<length>[0-9]+)")
def when_serialize_fixed_bytes(context: typing.Any, length: str):
    ser = Serializer()
    try:
        ser.fixed_bytes(context.input, int(length))
        context.output = ser.output()
    except Exception as e:
        context.output = e


@when(r"I deserialize as fixed bytes with length (?P<length>[0-9]+)")
def when_deserialize_fixed_bytes(context: typing.Any, length: str):
    try:
        des = Deserializer(context.input)
        context.output = des.fixed_bytes(int(length))
    except Exception as e:
        context.output = e


@then(r"the serialization should fail")
def then_fail_serialization(context: typing.Any):
    assert isinstance(context.output, Exception)


@then(r"the deserialization should fail")
def then_fail_deserialization(context: typing.Any):
    assert isinstance(context.output, Exception)
