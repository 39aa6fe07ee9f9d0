# Copyright © Smart Account SDK Contributors
# SPDX-License-Identifier: Apache-2.0

"""
Soroban contract values (``SCVal``).

Everything a contract receives or stores is an ``SCVal``: function arguments,
storage keys, the signature value attached to an authorization entry. The
type is a closed union of 22 arms; this module models all of them so that any
value found in a simulation result can be decoded and re-encoded unchanged.

Construction goes through the module level helpers, which mirror the arm
names::

    from smart_account_sdk import scval

    key = scval.to_vec([scval.to_symbol("Meta"), scval.to_u32(0)])
    sig = scval.to_map([(signer_key, scval.to_bytes(b""))])

Integer arms hold Python ints; 128 and 256 bit integers are split into their
XDR parts on the wire only.
"""

from __future__ import annotations

import typing
import unittest
from typing import List, Optional, Tuple

from .address import Address
from .xdr import (
    MAX_I32,
    MAX_I64,
    MAX_U32,
    MAX_U64,
    MIN_I32,
    MIN_I64,
    Deserializable,
    Deserializer,
    Serializable,
    Serializer,
    XdrError,
)

SCSYMBOL_LIMIT = 32
HASH_LENGTH = 32
_MASK64 = 2**64 - 1


class ScError:
    """A contract or host error value.

    ``SCE_CONTRACT`` errors carry a contract defined uint32 code, every other
    error type carries an ``SCErrorCode`` enum value.
    """

    SCE_CONTRACT: int = 0
    SCE_AUTH: int = 9

    error_type: int
    code: int

    def __init__(self, error_type: int, code: int):
        if not ScError.SCE_CONTRACT <= error_type <= ScError.SCE_AUTH:
            raise XdrError(f"Invalid error type: {error_type}")
        self.error_type = error_type
        self.code = code

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ScError):
            return NotImplemented
        return self.error_type == other.error_type and self.code == other.code

    def __repr__(self) -> str:
        return f"ScError({self.error_type}, {self.code})"

    @staticmethod
    def deserialize(deserializer: Deserializer) -> ScError:
        error_type = deserializer.enum()
        if error_type == ScError.SCE_CONTRACT:
            return ScError(error_type, deserializer.u32())
        return ScError(error_type, deserializer.enum())

    def serialize(self, serializer: Serializer):
        serializer.enum(self.error_type)
        if self.error_type == ScError.SCE_CONTRACT:
            serializer.u32(self.code)
        else:
            serializer.enum(self.code)


class ContractExecutable:
    """What a contract instance runs: uploaded Wasm or the built-in asset contract."""

    WASM: int = 0
    STELLAR_ASSET: int = 1

    variant: int
    wasm_hash: Optional[bytes]

    def __init__(self, variant: int, wasm_hash: Optional[bytes] = None):
        if variant == ContractExecutable.WASM:
            if wasm_hash is None or len(wasm_hash) != HASH_LENGTH:
                raise ValueError("Wasm executables need a 32 byte hash")
        elif variant == ContractExecutable.STELLAR_ASSET:
            wasm_hash = None
        else:
            raise XdrError(f"Invalid contract executable type: {variant}")
        self.variant = variant
        self.wasm_hash = wasm_hash

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ContractExecutable):
            return NotImplemented
        return self.variant == other.variant and self.wasm_hash == other.wasm_hash

    def __repr__(self) -> str:
        if self.wasm_hash is None:
            return "ContractExecutable(STELLAR_ASSET)"
        return f"ContractExecutable(WASM, {self.wasm_hash.hex()})"

    @staticmethod
    def deserialize(deserializer: Deserializer) -> ContractExecutable:
        variant = deserializer.enum()
        if variant == ContractExecutable.WASM:
            return ContractExecutable(variant, deserializer.fixed_bytes(HASH_LENGTH))
        return ContractExecutable(variant)

    def serialize(self, serializer: Serializer):
        serializer.enum(self.variant)
        if self.variant == ContractExecutable.WASM:
            serializer.fixed_bytes(self.wasm_hash, HASH_LENGTH)


class ScContractInstance:
    """The executable and instance storage of a deployed contract."""

    executable: ContractExecutable
    storage: Optional[List[Tuple[ScVal, ScVal]]]

    def __init__(
        self,
        executable: ContractExecutable,
        storage: Optional[List[Tuple[ScVal, ScVal]]] = None,
    ):
        self.executable = executable
        self.storage = storage

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ScContractInstance):
            return NotImplemented
        return self.executable == other.executable and self.storage == other.storage

    def __repr__(self) -> str:
        return f"ScContractInstance({self.executable}, {self.storage})"

    @staticmethod
    def deserialize(deserializer: Deserializer) -> ScContractInstance:
        executable = ContractExecutable.deserialize(deserializer)
        storage = deserializer.optional(_deserialize_map)
        return ScContractInstance(executable, storage)

    def serialize(self, serializer: Serializer):
        serializer.struct(self.executable)
        serializer.optional(self.storage, _serialize_map)


class ScVal(Serializable, Deserializable):
    """A Soroban contract value.

    Attributes:
        variant: The ``SCValType`` discriminant.
        value: The arm payload; ``None`` for void arms, an ``int`` for integer
            arms, ``bytes`` for bytes and strings, ``str`` for symbols, a list
            of ``ScVal`` for vectors, a list of ``(key, value)`` tuples for
            maps, an ``Address`` for addresses.
    """

    BOOL: int = 0
    VOID: int = 1
    ERROR: int = 2
    U32: int = 3
    I32: int = 4
    U64: int = 5
    I64: int = 6
    TIMEPOINT: int = 7
    DURATION: int = 8
    U128: int = 9
    I128: int = 10
    U256: int = 11
    I256: int = 12
    BYTES: int = 13
    STRING: int = 14
    SYMBOL: int = 15
    VEC: int = 16
    MAP: int = 17
    ADDRESS: int = 18
    CONTRACT_INSTANCE: int = 19
    LEDGER_KEY_CONTRACT_INSTANCE: int = 20
    LEDGER_KEY_NONCE: int = 21

    _INTEGER_RANGES = {
        U32: (0, MAX_U32),
        I32: (MIN_I32, MAX_I32),
        U64: (0, MAX_U64),
        I64: (MIN_I64, MAX_I64),
        TIMEPOINT: (0, MAX_U64),
        DURATION: (0, MAX_U64),
        U128: (0, 2**128 - 1),
        I128: (-(2**127), 2**127 - 1),
        U256: (0, 2**256 - 1),
        I256: (-(2**255), 2**255 - 1),
        LEDGER_KEY_NONCE: (MIN_I64, MAX_I64),
    }

    variant: int
    value: typing.Any

    def __init__(self, variant: int, value: typing.Any = None):
        if not ScVal.BOOL <= variant <= ScVal.LEDGER_KEY_NONCE:
            raise XdrError(f"Invalid SCVal type: {variant}")
        if variant in ScVal._INTEGER_RANGES:
            low, high = ScVal._INTEGER_RANGES[variant]
            if not low <= value <= high:
                raise XdrError(f"Value {value} out of range for SCVal type {variant}")
        self.variant = variant
        self.value = value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ScVal):
            return NotImplemented
        return self.variant == other.variant and self.value == other.value

    def __hash__(self):
        return hash(self.to_bytes())

    def __repr__(self) -> str:
        return f"ScVal({self.variant}, {self.value!r})"

    @staticmethod
    def deserialize(deserializer: Deserializer) -> ScVal:
        variant = deserializer.enum()

        if variant == ScVal.BOOL:
            value: typing.Any = deserializer.bool()
        elif variant in (ScVal.VOID, ScVal.LEDGER_KEY_CONTRACT_INSTANCE):
            value = None
        elif variant == ScVal.ERROR:
            value = ScError.deserialize(deserializer)
        elif variant == ScVal.U32:
            value = deserializer.u32()
        elif variant == ScVal.I32:
            value = deserializer.i32()
        elif variant in (ScVal.U64, ScVal.TIMEPOINT, ScVal.DURATION):
            value = deserializer.u64()
        elif variant in (ScVal.I64, ScVal.LEDGER_KEY_NONCE):
            value = deserializer.i64()
        elif variant == ScVal.U128:
            value = (deserializer.u64() << 64) | deserializer.u64()
        elif variant == ScVal.I128:
            value = (deserializer.i64() << 64) | deserializer.u64()
        elif variant in (ScVal.U256, ScVal.I256):
            hi_hi = deserializer.u64() if variant == ScVal.U256 else deserializer.i64()
            value = hi_hi
            for _ in range(3):
                value = (value << 64) | deserializer.u64()
        elif variant in (ScVal.BYTES, ScVal.STRING):
            value = deserializer.to_bytes()
        elif variant == ScVal.SYMBOL:
            value = deserializer.str(SCSYMBOL_LIMIT)
        elif variant == ScVal.VEC:
            value = deserializer.optional(
                lambda der: der.sequence(ScVal.deserialize)
            )
        elif variant == ScVal.MAP:
            value = deserializer.optional(_deserialize_map)
        elif variant == ScVal.ADDRESS:
            value = Address.deserialize(deserializer)
        elif variant == ScVal.CONTRACT_INSTANCE:
            value = ScContractInstance.deserialize(deserializer)
        else:
            raise XdrError(f"Invalid SCVal type: {variant}")

        return ScVal(variant, value)

    def serialize(self, serializer: Serializer):
        serializer.enum(self.variant)
        variant = self.variant

        if variant == ScVal.BOOL:
            serializer.bool(self.value)
        elif variant in (ScVal.VOID, ScVal.LEDGER_KEY_CONTRACT_INSTANCE):
            pass
        elif variant == ScVal.U32:
            serializer.u32(self.value)
        elif variant == ScVal.I32:
            serializer.i32(self.value)
        elif variant in (ScVal.U64, ScVal.TIMEPOINT, ScVal.DURATION):
            serializer.u64(self.value)
        elif variant in (ScVal.I64, ScVal.LEDGER_KEY_NONCE):
            serializer.i64(self.value)
        elif variant in (ScVal.U128, ScVal.I128):
            hi = self.value >> 64
            serializer.u64(hi) if variant == ScVal.U128 else serializer.i64(hi)
            serializer.u64(self.value & _MASK64)
        elif variant in (ScVal.U256, ScVal.I256):
            hi_hi = self.value >> 192
            serializer.u64(hi_hi) if variant == ScVal.U256 else serializer.i64(hi_hi)
            for shift in (128, 64, 0):
                serializer.u64((self.value >> shift) & _MASK64)
        elif variant in (ScVal.BYTES, ScVal.STRING):
            serializer.to_bytes(self.value)
        elif variant == ScVal.SYMBOL:
            serializer.str(self.value, SCSYMBOL_LIMIT)
        elif variant == ScVal.VEC:
            serializer.optional(
                self.value, lambda ser, values: ser.sequence(values, Serializer.struct)
            )
        elif variant == ScVal.MAP:
            serializer.optional(self.value, _serialize_map)
        else:
            # ERROR, ADDRESS and CONTRACT_INSTANCE carry their own codecs.
            serializer.struct(self.value)


def _deserialize_map(deserializer: Deserializer) -> List[Tuple[ScVal, ScVal]]:
    return deserializer.sequence(
        lambda der: (ScVal.deserialize(der), ScVal.deserialize(der))
    )


def _serialize_map(serializer: Serializer, entries: List[Tuple[ScVal, ScVal]]):
    def encode_entry(ser: Serializer, entry: Tuple[ScVal, ScVal]):
        ser.struct(entry[0])
        ser.struct(entry[1])

    serializer.sequence(entries, encode_entry)


def to_void() -> ScVal:
    return ScVal(ScVal.VOID)


def to_bool(value: bool) -> ScVal:
    return ScVal(ScVal.BOOL, value)


def to_u32(value: int) -> ScVal:
    return ScVal(ScVal.U32, value)


def to_i32(value: int) -> ScVal:
    return ScVal(ScVal.I32, value)


def to_u64(value: int) -> ScVal:
    return ScVal(ScVal.U64, value)


def to_i64(value: int) -> ScVal:
    return ScVal(ScVal.I64, value)


def to_u128(value: int) -> ScVal:
    return ScVal(ScVal.U128, value)


def to_i128(value: int) -> ScVal:
    return ScVal(ScVal.I128, value)


def to_bytes(value: bytes) -> ScVal:
    return ScVal(ScVal.BYTES, bytes(value))


def to_string(value: typing.Union[str, bytes]) -> ScVal:
    if isinstance(value, str):
        value = value.encode()
    return ScVal(ScVal.STRING, value)


def to_symbol(value: str) -> ScVal:
    if len(value.encode()) > SCSYMBOL_LIMIT:
        raise XdrError(f"Symbol longer than {SCSYMBOL_LIMIT} bytes: {value}")
    return ScVal(ScVal.SYMBOL, value)


def to_vec(values: typing.Sequence[ScVal]) -> ScVal:
    return ScVal(ScVal.VEC, list(values))


def to_map(entries: typing.Sequence[Tuple[ScVal, ScVal]]) -> ScVal:
    """Build a map value. Entries are kept in the given order; the host
    requires them sorted by key, which is the caller's responsibility."""
    return ScVal(ScVal.MAP, list(entries))


def to_address(address: typing.Union[Address, str]) -> ScVal:
    if isinstance(address, str):
        address = Address.from_str(address)
    return ScVal(ScVal.ADDRESS, address)


def to_ledger_key_nonce(nonce: int) -> ScVal:
    return ScVal(ScVal.LEDGER_KEY_NONCE, nonce)


class Test(unittest.TestCase):
    CONTRACT = "CA3D5KRYM6CB7OWQ6TWYRR3Z4T7GNZLKERYNZGGA5SOAOPIFY6YQGAXE"

    def test_symbol(self):
        data = to_symbol("Ids").to_bytes()
        self.assertEqual(data, b"\x00\x00\x00\x0f" + b"\x00\x00\x00\x03Ids\x00")
        self.assertEqual(ScVal.from_bytes(data), to_symbol("Ids"))

    def test_symbol_limit(self):
        with self.assertRaises(XdrError):
            to_symbol("x" * 33)

    def test_u32(self):
        self.assertEqual(to_u32(5).to_bytes(), b"\x00\x00\x00\x03\x00\x00\x00\x05")

    def test_empty_bytes(self):
        self.assertEqual(to_bytes(b"").to_bytes(), b"\x00\x00\x00\x0d\x00\x00\x00\x00")

    def test_vec(self):
        value = to_vec([to_symbol("Default")])
        data = value.to_bytes()
        self.assertEqual(data[:8], b"\x00\x00\x00\x10\x00\x00\x00\x01")
        self.assertEqual(data[8:12], b"\x00\x00\x00\x01")
        self.assertEqual(ScVal.from_bytes(data), value)

    def test_map(self):
        value = to_map([(to_symbol("a"), to_bytes(b"\x01"))])
        self.assertEqual(ScVal.from_bytes(value.to_bytes()), value)

    def test_address(self):
        value = to_address(self.CONTRACT)
        data = value.to_bytes()
        self.assertEqual(data[:8], b"\x00\x00\x00\x12\x00\x00\x00\x01")
        self.assertEqual(ScVal.from_bytes(data).value, Address.from_str(self.CONTRACT))

    def test_ledger_key_nonce(self):
        data = to_ledger_key_nonce(-2).to_bytes()
        self.assertEqual(data, b"\x00\x00\x00\x15" + b"\xff" * 7 + b"\xfe")

    def test_wide_integers(self):
        for value in (
            ScVal(ScVal.U128, 2**100 + 5),
            ScVal(ScVal.I128, -(2**100) - 5),
            ScVal(ScVal.U256, 2**200 + 3),
            ScVal(ScVal.I256, -1),
        ):
            self.assertEqual(ScVal.from_bytes(value.to_bytes()), value)
        self.assertEqual(
            ScVal(ScVal.I128, -1).to_bytes(), b"\x00\x00\x00\x0a" + b"\xff" * 16
        )

    def test_integer_range(self):
        with self.assertRaises(XdrError):
            to_u32(-1)
        with self.assertRaises(XdrError):
            ScVal(ScVal.I128, 2**127)

    def test_error_and_instance(self):
        for value in (
            ScVal(ScVal.ERROR, ScError(ScError.SCE_CONTRACT, 12)),
            ScVal(ScVal.ERROR, ScError(ScError.SCE_AUTH, 3)),
            ScVal(
                ScVal.CONTRACT_INSTANCE,
                ScContractInstance(
                    ContractExecutable(ContractExecutable.WASM, bytes(32)),
                    [(to_symbol("k"), to_u32(1))],
                ),
            ),
            ScVal(
                ScVal.CONTRACT_INSTANCE,
                ScContractInstance(
                    ContractExecutable(ContractExecutable.STELLAR_ASSET)
                ),
            ),
            ScVal(ScVal.LEDGER_KEY_CONTRACT_INSTANCE),
            ScVal(ScVal.VEC, None),
            to_string("hi"),
            to_bool(True),
        ):
            self.assertEqual(ScVal.from_bytes(value.to_bytes()), value)

    def test_invalid_type(self):
        with self.assertRaises(XdrError):
            ScVal.from_bytes(b"\x00\x00\x00\x16")

    def test_hashable(self):
        self.assertEqual(len({to_symbol("a"), to_symbol("a"), to_symbol("b")}), 2)


if __name__ == "__main__":
    unittest.main()
