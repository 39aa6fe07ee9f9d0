# Copyright © Smart Account SDK Contributors
# SPDX-License-Identifier: Apache-2.0

"""
External Data Representation (XDR) implementation for the Smart Account SDK.

Every value exchanged with a Stellar network, from authorization entries to
transaction footprints, is encoded with XDR (RFC 4506). XDR is canonical: the
same value always produces the same bytes, which is what lets a client and a
contract independently hash an authorization payload and agree on the result.

Encoding rules implemented here:
- Integers are big-endian, 4 bytes (int32/uint32) or 8 bytes (int64/uint64)
- Booleans and enum discriminants are encoded as int32
- Opaque data and strings are zero padded to a multiple of 4 bytes
- Variable-length data and arrays carry a uint32 length prefix
- Optional values are a bool flag followed by the value when present

Examples:
    Basic serialization::

        from smart_account_sdk.xdr import Serializer, Deserializer

        ser = Serializer()
        ser.str("hello")
        data = ser.output()  # b"\\x00\\x00\\x00\\x05hello\\x00\\x00\\x00"

        der = Deserializer(data)
        result = der.str()  # "hello"

    Working with custom structures::

        class MyStruct(Serializable, Deserializable):
            def serialize(self, serializer):
                serializer.str(self.name)
                serializer.u32(self.value)

            @staticmethod
            def deserialize(deserializer):
                return MyStruct(deserializer.str(), deserializer.u32())

        encoded = MyStruct("a", 1).to_xdr()  # base64 text
        decoded = MyStruct.from_xdr(encoded)
"""

from __future__ import annotations

import base64
import io
import typing
import unittest
from typing import List

from typing_extensions import Protocol

MAX_U32 = 2**32 - 1
MAX_U64 = 2**64 - 1
MIN_I32 = -(2**31)
MAX_I32 = 2**31 - 1
MIN_I64 = -(2**63)
MAX_I64 = 2**63 - 1


class XdrError(Exception):
    """Raised when a value cannot be encoded or a byte stream is not valid XDR."""


class Deserializable(Protocol):
    """Protocol for objects that can be decoded from an XDR byte stream."""

    @classmethod
    def from_bytes(cls, indata: bytes) -> Deserializable:
        """Decode an instance from raw XDR bytes.

        Args:
            indata: The XDR bytes. The whole buffer must be consumed.

        Raises:
            XdrError: If the data is malformed or has trailing bytes.
        """
        der = Deserializer(indata)
        value = der.struct(cls)
        if der.remaining() != 0:
            raise XdrError(f"Unexpected trailing data: {der.remaining()} bytes")
        return value

    @classmethod
    def from_xdr(cls, indata: str) -> Deserializable:
        """Decode an instance from base64 encoded XDR, the form used by RPC."""
        return cls.from_bytes(base64.b64decode(indata))

    @staticmethod
    def deserialize(deserializer: Deserializer) -> Deserializable:
        ...


class Serializable(Protocol):
    """Protocol for objects that can be encoded into an XDR byte stream."""

    def to_bytes(self) -> bytes:
        """Encode this object into raw XDR bytes."""
        ser = Serializer()
        ser.struct(self)
        return ser.output()

    def to_xdr(self) -> str:
        """Encode this object into base64 XDR."""
        return base64.b64encode(self.to_bytes()).decode()

    def serialize(self, serializer: Serializer):
        ...


class Deserializer:
    """An XDR deserializer for reading data from a byte stream.

    The Deserializer keeps a position in the input and offers one method per
    XDR primitive. Composite types are read with `struct`, `sequence` and
    `optional`, delegating to the element decoders.

    Examples:
        Reading primitives::

            der = Deserializer(data)
            flag = der.bool()
            count = der.u32()
            name = der.str()

        Reading collections::

            values = der.sequence(Deserializer.u32)
            maybe = der.optional(Deserializer.str)
    """

    _input: io.BytesIO
    _length: int

    def __init__(self, data: bytes):
        self._length = len(data)
        self._input = io.BytesIO(data)

    def remaining(self) -> int:
        """Get the number of bytes remaining in the input stream."""
        return self._length - self._input.tell()

    def bool(self) -> bool:
        """Read a boolean, encoded as an int32 that must be 0 or 1."""
        value = self.i32()
        if value == 0:
            return False
        elif value == 1:
            return True
        else:
            raise XdrError(f"Unexpected boolean value: {value}")

    def enum(self) -> int:
        """Read an enum or union discriminant."""
        return self.i32()

    def to_bytes(self, max_length: int = MAX_U32) -> bytes:
        """Read variable-length opaque data (uint32 length, bytes, padding)."""
        length = self.u32()
        if length > max_length:
            raise XdrError(f"Opaque length {length} exceeds maximum {max_length}")
        return self.fixed_bytes(length)

    def fixed_bytes(self, length: int) -> bytes:
        """Read fixed-length opaque data followed by its padding."""
        value = self._read(length)
        self._read_padding(length)
        return value

    def str(self, max_length: int = MAX_U32) -> str:
        """Read a string. XDR strings are ASCII but Soroban symbols and
        strings may carry arbitrary bytes, so decoding is UTF-8."""
        value = self.to_bytes(max_length)
        try:
            return value.decode()
        except UnicodeDecodeError as e:
            raise XdrError(f"Invalid UTF-8 in string: {value!r}") from e

    def sequence(
        self,
        value_decoder: typing.Callable[[Deserializer], typing.Any],
        max_length: int = MAX_U32,
    ) -> List[typing.Any]:
        """Read a variable-length array (uint32 count followed by elements)."""
        length = self.u32()
        if length > max_length:
            raise XdrError(f"Array length {length} exceeds maximum {max_length}")
        values: List = []
        while len(values) < length:
            values.append(value_decoder(self))
        return values

    def optional(
        self, value_decoder: typing.Callable[[Deserializer], typing.Any]
    ) -> typing.Optional[typing.Any]:
        """Read an optional value (bool presence flag, then the value)."""
        if self.bool():
            return value_decoder(self)
        return None

    def struct(self, struct: typing.Any) -> typing.Any:
        """Delegate to the `deserialize` method of a struct type."""
        return struct.deserialize(self)

    def i32(self) -> int:
        return self._read_int(4, signed=True)

    def u32(self) -> int:
        return self._read_int(4, signed=False)

    def i64(self) -> int:
        return self._read_int(8, signed=True)

    def u64(self) -> int:
        return self._read_int(8, signed=False)

    def _read(self, length: int) -> bytes:
        value = self._input.read(length)
        if value is None or len(value) < length:
            actual_length = 0 if value is None else len(value)
            error = (
                f"Unexpected end of input. Requested: {length}, found: {actual_length}"
            )
            raise XdrError(error)
        return value

    def _read_padding(self, length: int):
        padding = self._read(padding_length(length))
        if any(padding):
            raise XdrError("Non-zero padding bytes")

    def _read_int(self, length: int, signed: bool) -> int:
        return int.from_bytes(self._read(length), byteorder="big", signed=signed)


class Serializer:
    """An XDR serializer for writing data to a byte stream.

    Examples:
        Basic usage::

            ser = Serializer()
            ser.bool(True)
            ser.i64(-1)
            ser.str("hello")
            data = ser.output()

        Serializing collections::

            ser.sequence([1, 2, 3], Serializer.u32)
            ser.optional(None, Serializer.str)
    """

    _output: io.BytesIO

    def __init__(self):
        self._output = io.BytesIO()

    def output(self) -> bytes:
        """Get the accumulated serialized data as bytes."""
        return self._output.getvalue()

    def bool(self, value: bool):
        self.i32(int(value))

    def enum(self, value: int):
        """Write an enum or union discriminant."""
        self.i32(value)

    def to_bytes(self, value: bytes, max_length: int = MAX_U32):
        """Write variable-length opaque data (uint32 length, bytes, padding)."""
        if len(value) > max_length:
            raise XdrError(f"Opaque length {len(value)} exceeds maximum {max_length}")
        self.u32(len(value))
        self.fixed_bytes(value)

    def fixed_bytes(self, value: bytes, length: typing.Optional[int] = None):
        """Write fixed-length opaque data followed by zero padding.

        Args:
            value: The bytes to write.
            length: When given, the exact length `value` must have.
        """
        if length is not None and len(value) != length:
            raise XdrError(f"Expected {length} bytes, got {len(value)}")
        self._output.write(value)
        self._output.write(b"\x00" * padding_length(len(value)))

    def str(self, value: str, max_length: int = MAX_U32):
        self.to_bytes(value.encode(), max_length)

    @staticmethod
    def sequence_serializer(
        value_encoder: typing.Callable[[Serializer, typing.Any], None],
    ):
        """Create a reusable sequence serializer for a given element encoder."""
        return lambda self, values: self.sequence(values, value_encoder)

    def sequence(
        self,
        values: typing.Sequence[typing.Any],
        value_encoder: typing.Callable[[Serializer, typing.Any], None],
        max_length: int = MAX_U32,
    ):
        """Write a variable-length array (uint32 count followed by elements)."""
        if len(values) > max_length:
            raise XdrError(f"Array length {len(values)} exceeds maximum {max_length}")
        self.u32(len(values))
        for value in values:
            value_encoder(self, value)

    def optional(
        self,
        value: typing.Optional[typing.Any],
        value_encoder: typing.Callable[[Serializer, typing.Any], None],
    ):
        """Write an optional value (bool presence flag, then the value)."""
        self.bool(value is not None)
        if value is not None:
            value_encoder(self, value)

    def struct(self, value: typing.Any):
        value.serialize(self)

    def i32(self, value: int):
        if not MIN_I32 <= value <= MAX_I32:
            raise XdrError(f"Cannot encode {value} into int32")
        self._write_int(value, 4, signed=True)

    def u32(self, value: int):
        if not 0 <= value <= MAX_U32:
            raise XdrError(f"Cannot encode {value} into uint32")
        self._write_int(value, 4, signed=False)

    def i64(self, value: int):
        if not MIN_I64 <= value <= MAX_I64:
            raise XdrError(f"Cannot encode {value} into int64")
        self._write_int(value, 8, signed=True)

    def u64(self, value: int):
        if not 0 <= value <= MAX_U64:
            raise XdrError(f"Cannot encode {value} into uint64")
        self._write_int(value, 8, signed=False)

    def _write_int(self, value: int, length: int, signed: bool):
        self._output.write(value.to_bytes(length, "big", signed=signed))


def padding_length(length: int) -> int:
    """Number of zero bytes needed to align `length` to 4 bytes."""
    return (4 - length % 4) % 4


def encoder(
    value: typing.Any, encoder: typing.Callable[[Serializer, typing.Any], typing.Any]
) -> bytes:
    """Encode a single value with the given encoder function.

    Examples:
        Encoding a string::

            data = encoder("hello", Serializer.str)
    """
    ser = Serializer()
    encoder(ser, value)
    return ser.output()


class Test(unittest.TestCase):
    def test_bool(self):
        self.assertEqual(encoder(True, Serializer.bool), b"\x00\x00\x00\x01")
        self.assertEqual(Deserializer(b"\x00\x00\x00\x00").bool(), False)

    def test_bool_error(self):
        der = Deserializer(encoder(2, Serializer.u32))
        with self.assertRaises(XdrError):
            der.bool()

    def test_integers_are_big_endian(self):
        self.assertEqual(encoder(1, Serializer.u32), b"\x00\x00\x00\x01")
        self.assertEqual(encoder(-1, Serializer.i32), b"\xff\xff\xff\xff")
        self.assertEqual(encoder(258, Serializer.u64), b"\x00" * 6 + b"\x01\x02")
        self.assertEqual(encoder(-2, Serializer.i64), b"\xff" * 7 + b"\xfe")

    def test_signed_round_trip(self):
        der = Deserializer(encoder(MIN_I64, Serializer.i64))
        self.assertEqual(der.i64(), MIN_I64)

    def test_integer_range(self):
        with self.assertRaises(XdrError):
            encoder(MAX_U32 + 1, Serializer.u32)
        with self.assertRaises(XdrError):
            encoder(-1, Serializer.u64)
        with self.assertRaises(XdrError):
            encoder(MAX_I64 + 1, Serializer.i64)

    def test_opaque_padding(self):
        self.assertEqual(
            encoder(b"abcde", Serializer.to_bytes),
            b"\x00\x00\x00\x05abcde\x00\x00\x00",
        )
        self.assertEqual(encoder(b"", Serializer.to_bytes), b"\x00\x00\x00\x00")
        self.assertEqual(encoder(b"abcd", Serializer.fixed_bytes), b"abcd")

    def test_non_zero_padding_rejected(self):
        der = Deserializer(b"\x00\x00\x00\x01a\x00\x01\x00")
        with self.assertRaises(XdrError):
            der.to_bytes()

    def test_fixed_bytes_length(self):
        ser = Serializer()
        with self.assertRaises(XdrError):
            ser.fixed_bytes(b"abc", 4)

    def test_str(self):
        data = encoder("hello", Serializer.str)
        self.assertEqual(data, b"\x00\x00\x00\x05hello\x00\x00\x00")
        self.assertEqual(Deserializer(data).str(), "hello")

    def test_str_max_length(self):
        with self.assertRaises(XdrError):
            Serializer().str("toolong", max_length=3)
        der = Deserializer(encoder("toolong", Serializer.str))
        with self.assertRaises(XdrError):
            der.str(max_length=3)

    def test_str_invalid_utf8(self):
        der = Deserializer(b"\x00\x00\x00\x02\xff\xfe\x00\x00")
        with self.assertRaises(XdrError):
            der.str()

    def test_sequence(self):
        in_value = [1, 2, 3]
        ser = Serializer()
        seq_ser = Serializer.sequence_serializer(Serializer.u32)
        seq_ser(ser, in_value)
        self.assertEqual(ser.output()[:4], b"\x00\x00\x00\x03")
        der = Deserializer(ser.output())
        self.assertEqual(der.sequence(Deserializer.u32), in_value)
        self.assertEqual(der.remaining(), 0)

    def test_optional(self):
        encode_optional = lambda s, v: s.optional(v, Serializer.u32)  # noqa: E731
        self.assertEqual(encoder(None, encode_optional), b"\x00\x00\x00\x00")
        data = encoder(7, encode_optional)
        self.assertEqual(Deserializer(data).optional(Deserializer.u32), 7)

    def test_truncated_input(self):
        with self.assertRaises(XdrError):
            Deserializer(b"\x00\x00").u32()


if __name__ == "__main__":
    unittest.main()
