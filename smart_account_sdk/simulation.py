# Copyright © Smart Account SDK Contributors
# SPDX-License-Identifier: Apache-2.0

"""
The output of a ``simulateTransaction`` call, decoded into wire types.

Soroban RPC reports a simulation as JSON with base64 XDR fields::

    {
        "transactionData": "AAAAAAAAAAI...",
        "minResourceFee": "58181",
        "results": [{"auth": ["AAAAAQAAAAE..."], "xdr": "AAAAAQ=="}],
        "latestLedger": 14245,
        ...
    }

`SimulateTransactionOutput` holds the parts the delegated signer flow reads
and rewrites. Fields it does not model, such as events, are carried in
``extra`` and written back unchanged by `to_rpc_dict`.
"""

from __future__ import annotations

import base64
import dataclasses
import typing
import unittest
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from . import scval
from .auth import SorobanAuthorizationEntry
from .resources import LedgerFootprint, SorobanResources, SorobanTransactionData
from .scval import ScVal
from .xdr import XdrError

_MODELLED_FIELDS = ("transactionData", "minResourceFee", "results", "latestLedger")


@dataclass(frozen=True)
class SimulateTransactionOutput:
    """A successful simulation of a single host function invocation.

    Attributes:
        auth: Authorization entries the invocation requires, in order.
        transaction_data: Footprint, limits and resource fee.
        min_resource_fee: The resource fee the transaction must pay.
        latest_ledger: The ledger the simulation ran against.
        result_value: The invocation's return value, when reported.
        extra: Response fields not modelled here.
    """

    auth: List[SorobanAuthorizationEntry]
    transaction_data: SorobanTransactionData
    min_resource_fee: int
    latest_ledger: int
    result_value: Optional[ScVal] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def replace(self, **changes) -> SimulateTransactionOutput:
        return dataclasses.replace(self, **changes)

    @staticmethod
    def from_rpc_response(result: Dict[str, Any]) -> SimulateTransactionOutput:
        """Decode the ``result`` object of a ``simulateTransaction`` response.

        Raises:
            KeyError: If a required field is missing.
            XdrError: If a field is not valid XDR.
        """
        results = result.get("results") or []
        auth: typing.List[SorobanAuthorizationEntry] = []
        result_value = None
        if results:
            auth = [
                SorobanAuthorizationEntry.from_xdr(entry)
                for entry in results[0].get("auth") or []
            ]
            if results[0].get("xdr"):
                result_value = ScVal.from_xdr(results[0]["xdr"])

        return SimulateTransactionOutput(
            auth=auth,
            transaction_data=SorobanTransactionData.from_xdr(result["transactionData"]),
            min_resource_fee=int(result["minResourceFee"]),
            latest_ledger=int(result["latestLedger"]),
            result_value=result_value,
            extra={k: v for k, v in result.items() if k not in _MODELLED_FIELDS},
        )

    def to_rpc_dict(self) -> Dict[str, Any]:
        entry = {"auth": [item.to_xdr() for item in self.auth]}
        if self.result_value is not None:
            entry["xdr"] = self.result_value.to_xdr()
        data = dict(self.extra)
        data.update(
            {
                "transactionData": self.transaction_data.to_xdr(),
                "minResourceFee": str(self.min_resource_fee),
                "results": [entry],
                "latestLedger": self.latest_ledger,
            }
        )
        return data


class Test(unittest.TestCase):
    def _data(self) -> SorobanTransactionData:
        return SorobanTransactionData(
            SorobanResources(LedgerFootprint([], []), 1000, 200, 30), 5000
        )

    def test_from_rpc_response(self):
        response = {
            "transactionData": self._data().to_xdr(),
            "minResourceFee": "5000",
            "results": [{"auth": [], "xdr": scval.to_u32(3).to_xdr()}],
            "latestLedger": 1000,
            "events": ["AAAA"],
        }
        output = SimulateTransactionOutput.from_rpc_response(response)
        self.assertEqual(output.auth, [])
        self.assertEqual(output.transaction_data, self._data())
        self.assertEqual(output.min_resource_fee, 5000)
        self.assertEqual(output.latest_ledger, 1000)
        self.assertEqual(output.result_value, scval.to_u32(3))
        self.assertEqual(output.extra, {"events": ["AAAA"]})
        self.assertEqual(output.to_rpc_dict(), response)

    def test_missing_results(self):
        output = SimulateTransactionOutput.from_rpc_response(
            {
                "transactionData": self._data().to_xdr(),
                "minResourceFee": "1",
                "latestLedger": 7,
            }
        )
        self.assertEqual(output.auth, [])
        self.assertIsNone(output.result_value)

    def test_missing_required_field(self):
        with self.assertRaises(KeyError):
            SimulateTransactionOutput.from_rpc_response({"latestLedger": 1})

    def test_malformed_symbol(self):
        symbol = b"\x00\x00\x00\x0f\x00\x00\x00\x02\xff\xfe\x00\x00"
        response = {
            "transactionData": self._data().to_xdr(),
            "minResourceFee": "1",
            "results": [{"auth": [], "xdr": base64.b64encode(symbol).decode()}],
            "latestLedger": 7,
        }
        with self.assertRaises(XdrError):
            SimulateTransactionOutput.from_rpc_response(response)

    def test_replace(self):
        output = SimulateTransactionOutput([], self._data(), 5000, 1000)
        changed = output.replace(min_resource_fee=1)
        self.assertEqual(changed.min_resource_fee, 1)
        self.assertEqual(output.min_resource_fee, 5000)
        self.assertEqual(changed.latest_ledger, 1000)


if __name__ == "__main__":
    unittest.main()
