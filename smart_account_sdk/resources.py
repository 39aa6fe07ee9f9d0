# Copyright © Smart Account SDK Contributors
# SPDX-License-Identifier: Apache-2.0

"""
Soroban transaction resources: footprint, budget and resource fee.

Simulation returns a ``SorobanTransactionData`` describing exactly what the
simulated execution needed. Adding an authorization entry adds work the
simulation did not see, so the data has to be widened before submission:

- `expand_footprint` adds the ledger keys the extra work reads and writes
- `recompute_budget` raises the instruction and byte limits and scales the fee
- `SorobanTransactionData.rebuild` assembles the new data, passing the
  extension through unchanged

Footprint and limits only ever grow. Limits must still fit their wire types;
`ResourceOverflow` is raised instead of wrapping.
"""

from __future__ import annotations

import typing
import unittest
from dataclasses import dataclass
from typing import List, Optional

from .ledger_key import LedgerKey
from .xdr import (
    MAX_I64,
    MAX_U32,
    Deserializable,
    Deserializer,
    Serializable,
    Serializer,
    XdrError,
)


class ResourceOverflow(Exception):
    """Raised when a recomputed limit or fee does not fit its wire type."""


class LedgerFootprint(Serializable, Deserializable):
    """The ledger keys a transaction may read, and those it may also write.

    Keys keep their insertion order, which is the order they are encoded in.
    """

    read_only: List[LedgerKey]
    read_write: List[LedgerKey]

    def __init__(self, read_only: List[LedgerKey], read_write: List[LedgerKey]):
        self.read_only = list(read_only)
        self.read_write = list(read_write)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LedgerFootprint):
            return NotImplemented
        return self.read_only == other.read_only and self.read_write == other.read_write

    def __repr__(self) -> str:
        return f"LedgerFootprint(read_only={self.read_only}, read_write={self.read_write})"

    @staticmethod
    def deserialize(deserializer: Deserializer) -> LedgerFootprint:
        read_only = deserializer.sequence(LedgerKey.deserialize)
        read_write = deserializer.sequence(LedgerKey.deserialize)
        return LedgerFootprint(read_only, read_write)

    def serialize(self, serializer: Serializer):
        serializer.sequence(self.read_only, Serializer.struct)
        serializer.sequence(self.read_write, Serializer.struct)


class SorobanResources(Serializable, Deserializable):
    footprint: LedgerFootprint
    instructions: int
    disk_read_bytes: int
    write_bytes: int

    def __init__(
        self,
        footprint: LedgerFootprint,
        instructions: int,
        disk_read_bytes: int,
        write_bytes: int,
    ):
        self.footprint = footprint
        self.instructions = instructions
        self.disk_read_bytes = disk_read_bytes
        self.write_bytes = write_bytes

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SorobanResources):
            return NotImplemented
        return (
            self.footprint == other.footprint
            and self.instructions == other.instructions
            and self.disk_read_bytes == other.disk_read_bytes
            and self.write_bytes == other.write_bytes
        )

    @staticmethod
    def deserialize(deserializer: Deserializer) -> SorobanResources:
        return SorobanResources(
            LedgerFootprint.deserialize(deserializer),
            deserializer.u32(),
            deserializer.u32(),
            deserializer.u32(),
        )

    def serialize(self, serializer: Serializer):
        serializer.struct(self.footprint)
        serializer.u32(self.instructions)
        serializer.u32(self.disk_read_bytes)
        serializer.u32(self.write_bytes)


@dataclass(frozen=True)
class ResourceBudget:
    """The limits and fee of a Soroban transaction."""

    instructions: int
    disk_read_bytes: int
    write_bytes: int
    resource_fee: int


class SorobanTransactionData(Serializable, Deserializable):
    """Resources and resource fee attached to a Soroban transaction.

    The extension is either empty (v0) or lists the indices of archived
    entries the transaction restores (v1). It is kept as read and written
    back untouched.
    """

    archived_soroban_entries: Optional[List[int]]
    resources: SorobanResources
    resource_fee: int

    def __init__(
        self,
        resources: SorobanResources,
        resource_fee: int,
        archived_soroban_entries: Optional[List[int]] = None,
    ):
        self.resources = resources
        self.resource_fee = resource_fee
        self.archived_soroban_entries = archived_soroban_entries

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SorobanTransactionData):
            return NotImplemented
        return (
            self.archived_soroban_entries == other.archived_soroban_entries
            and self.resources == other.resources
            and self.resource_fee == other.resource_fee
        )

    def __repr__(self) -> str:
        return f"SorobanTransactionData({self.budget()}, {self.resources.footprint})"

    @property
    def footprint(self) -> LedgerFootprint:
        return self.resources.footprint

    def budget(self) -> ResourceBudget:
        return ResourceBudget(
            self.resources.instructions,
            self.resources.disk_read_bytes,
            self.resources.write_bytes,
            self.resource_fee,
        )

    def rebuild(
        self, footprint: LedgerFootprint, budget: ResourceBudget
    ) -> SorobanTransactionData:
        """New transaction data with this data's extension and the given
        footprint and budget."""
        archived = self.archived_soroban_entries
        return SorobanTransactionData(
            SorobanResources(
                footprint,
                budget.instructions,
                budget.disk_read_bytes,
                budget.write_bytes,
            ),
            budget.resource_fee,
            None if archived is None else list(archived),
        )

    @staticmethod
    def deserialize(deserializer: Deserializer) -> SorobanTransactionData:
        ext = deserializer.enum()
        if ext == 0:
            archived = None
        elif ext == 1:
            archived = deserializer.sequence(Deserializer.u32)
        else:
            raise XdrError(f"Invalid transaction data extension: {ext}")
        resources = SorobanResources.deserialize(deserializer)
        return SorobanTransactionData(resources, deserializer.i64(), archived)

    def serialize(self, serializer: Serializer):
        if self.archived_soroban_entries is None:
            serializer.enum(0)
        else:
            serializer.enum(1)
            serializer.sequence(self.archived_soroban_entries, Serializer.u32)
        serializer.struct(self.resources)
        serializer.i64(self.resource_fee)


def _union(current: List[LedgerKey], extra: typing.Iterable[LedgerKey], exclude=()):
    merged = list(current)
    seen = set(merged)
    for key in extra:
        if key not in seen and key not in exclude:
            seen.add(key)
            merged.append(key)
    return merged


def expand_footprint(
    current: LedgerFootprint,
    extra_read_only: typing.Iterable[LedgerKey],
    extra_read_write: typing.Iterable[LedgerKey],
) -> LedgerFootprint:
    """Add keys to a footprint without removing or reordering existing ones.

    Duplicates collapse by key equality. A read-only key that is already
    writable is not added to the read-only set, since a key may appear in
    only one of the two.
    """
    read_write = _union(current.read_write, extra_read_write)
    read_only = _union(current.read_only, extra_read_only, exclude=set(read_write))
    return LedgerFootprint(read_only, read_write)


def recompute_budget(
    current: ResourceBudget,
    extra_instructions: int,
    extra_read_bytes: int,
    extra_write_bytes: int,
    fee_multiplier: int,
) -> ResourceBudget:
    """Bump the limits by fixed amounts and scale the resource fee.

    Raises:
        ValueError: If a bump is negative or `fee_multiplier` is below 1.
        ResourceOverflow: If a limit exceeds uint32 or the fee exceeds int64.
    """
    if min(extra_instructions, extra_read_bytes, extra_write_bytes) < 0:
        raise ValueError("Resource bumps must not be negative")
    if fee_multiplier < 1:
        raise ValueError(f"Fee multiplier must be at least 1: {fee_multiplier}")

    budget = ResourceBudget(
        current.instructions + extra_instructions,
        current.disk_read_bytes + extra_read_bytes,
        current.write_bytes + extra_write_bytes,
        current.resource_fee * fee_multiplier,
    )
    for name in ("instructions", "disk_read_bytes", "write_bytes"):
        if getattr(budget, name) > MAX_U32:
            raise ResourceOverflow(f"{name} exceeds uint32: {getattr(budget, name)}")
    if budget.resource_fee > MAX_I64:
        raise ResourceOverflow(f"resource fee exceeds int64: {budget.resource_fee}")
    return budget


class Test(unittest.TestCase):
    ACCOUNT = "GA3D5KRYM6CB7OWQ6TWYRR3Z4T7GNZLKERYNZGGA5SOAOPIFY6YQHES5"

    def _keys(self, count: int) -> List[LedgerKey]:
        return [LedgerKey.contract_code(bytes([i]) * 32) for i in range(count)]

    def test_recompute_budget(self):
        budget = recompute_budget(ResourceBudget(10, 20, 30, 40), 1_500_000, 5_000, 100, 3)
        self.assertEqual(budget, ResourceBudget(1_500_010, 5_020, 130, 120))

    def test_recompute_budget_identity(self):
        current = ResourceBudget(10, 20, 30, 40)
        self.assertEqual(recompute_budget(current, 0, 0, 0, 1), current)

    def test_recompute_budget_overflow(self):
        with self.assertRaises(ResourceOverflow):
            recompute_budget(ResourceBudget(MAX_U32, 0, 0, 0), 1, 0, 0, 1)
        with self.assertRaises(ResourceOverflow):
            recompute_budget(ResourceBudget(0, 0, MAX_U32 - 99, 0), 0, 0, 100, 1)
        with self.assertRaises(ResourceOverflow):
            recompute_budget(ResourceBudget(0, 0, 0, MAX_I64 // 2 + 1), 0, 0, 0, 2)

    def test_recompute_budget_rejects_shrinking(self):
        with self.assertRaises(ValueError):
            recompute_budget(ResourceBudget(0, 0, 0, 1), 0, 0, 0, 0)
        with self.assertRaises(ValueError):
            recompute_budget(ResourceBudget(5, 0, 0, 1), -1, 0, 0, 1)

    def test_expand_footprint(self):
        a, b, c, d = self._keys(4)
        current = LedgerFootprint([a, b], [c])
        expanded = expand_footprint(current, [b, d, d], [c, a])
        self.assertEqual(expanded.read_only, [a, b, d])
        self.assertEqual(expanded.read_write, [c, a])
        # The input footprint is not modified.
        self.assertEqual(current, LedgerFootprint([a, b], [c]))

    def test_expand_footprint_skips_writable_keys(self):
        a, b = self._keys(2)
        expanded = expand_footprint(LedgerFootprint([], [a]), [a, b], [])
        self.assertEqual(expanded.read_only, [b])
        self.assertEqual(expanded.read_write, [a])

    def test_transaction_data_xdr(self):
        a, b = self._keys(2)
        data = SorobanTransactionData(
            SorobanResources(LedgerFootprint([a], [b]), 100, 200, 300), 400
        )
        encoded = data.to_bytes()
        self.assertEqual(encoded[:4], b"\x00\x00\x00\x00")
        self.assertEqual(encoded[-8:], (400).to_bytes(8, "big"))
        self.assertEqual(SorobanTransactionData.from_bytes(encoded), data)

        restoring = SorobanTransactionData(data.resources, 400, [0, 2])
        self.assertEqual(
            SorobanTransactionData.from_xdr(restoring.to_xdr()), restoring
        )

    def test_rebuild_keeps_extension(self):
        a, b = self._keys(2)
        data = SorobanTransactionData(
            SorobanResources(LedgerFootprint([a], []), 1, 2, 3), 4, [1]
        )
        rebuilt = data.rebuild(LedgerFootprint([a, b], []), ResourceBudget(5, 6, 7, 8))
        self.assertEqual(rebuilt.archived_soroban_entries, [1])
        self.assertEqual(rebuilt.budget(), ResourceBudget(5, 6, 7, 8))
        self.assertEqual(rebuilt.footprint.read_only, [a, b])
        self.assertEqual(data.budget(), ResourceBudget(1, 2, 3, 4))


if __name__ == "__main__":
    unittest.main()
