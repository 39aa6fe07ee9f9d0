# Copyright © Smart Account SDK Contributors
# SPDX-License-Identifier: Apache-2.0

"""
Asynchronous client for Soroban RPC.

Soroban RPC is a JSON-RPC 2.0 service: every call is a POST of
``{"jsonrpc": "2.0", "id": ..., "method": ..., "params": ...}`` to a single
endpoint. `RpcClient` wraps the calls this SDK needs on top of
``httpx.AsyncClient``:

- `RpcClient.get_health`: server status
- `RpcClient.get_network`: network passphrase and protocol version
- `RpcClient.get_latest_ledger`: the current ledger sequence
- `RpcClient.simulate_transaction`: simulate a transaction envelope

Examples:
    Simulate a transaction and augment it for a delegated signer::

        client = RpcClient("https://soroban-testnet.stellar.org")
        try:
            output = await client.simulate_transaction(envelope_xdr)
            output = await plugin.process_output(output)
        finally:
            await client.close()

Errors:
    HTTP failures and JSON-RPC errors raise `ApiError`. A simulation that ran
    but failed (for instance because the contract panicked) raises
    `SimulationError` carrying the server's diagnostic.
"""

from __future__ import annotations

import itertools
import json
import logging
import unittest
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

from .metadata import Metadata
from .resources import LedgerFootprint, SorobanResources, SorobanTransactionData
from .simulation import SimulateTransactionOutput


@dataclass
class ClientConfig:
    """Configuration for `RpcClient`.

    Attributes:
        timeout: Seconds to wait for a response. There is no pool timeout.
        http2: Negotiate HTTP/2. Needs the ``h2`` package installed.
        headers: Extra headers sent with every request, for example an
            ``Authorization`` header for a hosted RPC provider.
    """

    timeout: float = 60.0
    http2: bool = False
    headers: Dict[str, str] = field(default_factory=dict)


class ApiError(Exception):
    """The RPC server returned an HTTP error or a JSON-RPC error object."""

    status_code: int

    def __init__(self, message: str, status_code: int):
        # Call the base class constructor with the parameters it needs
        super().__init__(message)
        self.status_code = status_code


class SimulationError(Exception):
    """The transaction was simulated and the simulation failed."""

    latest_ledger: Optional[int]

    def __init__(self, message: str, latest_ledger: Optional[int] = None):
        super().__init__(message)
        self.latest_ledger = latest_ledger


class RpcClient:
    """A Soroban RPC client over ``httpx.AsyncClient``."""

    client: httpx.AsyncClient
    client_config: ClientConfig
    base_url: str

    def __init__(
        self,
        base_url: str,
        client_config: Optional[ClientConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        client_config = client_config or ClientConfig()
        self.base_url = base_url
        self._ids = itertools.count(1)
        # Do not set a pool timeout, callers wait as long as progress is made.
        timeout = httpx.Timeout(client_config.timeout, pool=None)
        headers = Metadata.get_headers()
        headers.update(client_config.headers)
        self.client = httpx.AsyncClient(
            http2=client_config.http2,
            limits=httpx.Limits(),
            timeout=timeout,
            headers=headers,
            transport=transport,
        )
        self.client_config = client_config

    async def close(self):
        await self.client.aclose()

    async def _call(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        request: Dict[str, Any] = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
        }
        if params is not None:
            request["params"] = params

        response = await self.client.post(self.base_url, json=request)
        if response.status_code >= 400:
            raise ApiError(f"{method}: {response.text}", response.status_code)
        try:
            body = response.json()
        except json.JSONDecodeError as e:
            raise ApiError(f"{method}: invalid JSON response", response.status_code) from e
        if "error" in body:
            error = body["error"]
            raise ApiError(
                f"{method}: {error.get('message', error)}", response.status_code
            )
        return body["result"]

    async def get_health(self) -> Dict[str, Any]:
        return await self._call("getHealth")

    async def get_network(self) -> Dict[str, Any]:
        """The network's passphrase, protocol version and friendbot URL."""
        return await self._call("getNetwork")

    async def get_latest_ledger(self) -> int:
        result = await self._call("getLatestLedger")
        return int(result["sequence"])

    async def simulate_transaction(
        self, transaction_envelope_xdr: str
    ) -> SimulateTransactionOutput:
        """Simulate a base64 ``TransactionEnvelope`` invoking a host function.

        Raises:
            ApiError: If the request itself fails.
            SimulationError: If the simulation reports an error.
        """
        result = await self._call(
            "simulateTransaction", {"transaction": transaction_envelope_xdr}
        )
        if "error" in result:
            logging.info("Simulation failed at ledger %s", result.get("latestLedger"))
            raise SimulationError(result["error"], result.get("latestLedger"))
        return SimulateTransactionOutput.from_rpc_response(result)


class Test(unittest.IsolatedAsyncioTestCase):
    def _client(self, handler) -> RpcClient:
        return RpcClient(
            "https://rpc.test",
            ClientConfig(headers={"Authorization": "Bearer key"}),
            transport=httpx.MockTransport(handler),
        )

    async def test_get_latest_ledger(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            body = json.loads(request.content)
            return httpx.Response(
                200,
                json={"jsonrpc": "2.0", "id": body["id"], "result": {"sequence": 1234}},
            )

        client = self._client(handler)
        self.assertEqual(await client.get_latest_ledger(), 1234)
        await client.close()

        body = json.loads(requests[0].content)
        self.assertEqual(body["method"], "getLatestLedger")
        self.assertEqual(body["jsonrpc"], "2.0")
        self.assertEqual(requests[0].headers["X-Client-Name"], Metadata.CLIENT_NAME)
        self.assertEqual(requests[0].headers["Authorization"], "Bearer key")

    async def test_simulate_transaction(self):
        data = SorobanTransactionData(
            SorobanResources(LedgerFootprint([], []), 1, 2, 3), 100
        )

        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            self.assertEqual(body["params"], {"transaction": "AAAA"})
            result = {
                "transactionData": data.to_xdr(),
                "minResourceFee": "100",
                "results": [{"auth": []}],
                "latestLedger": 55,
            }
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": result})

        client = self._client(handler)
        output = await client.simulate_transaction("AAAA")
        await client.close()
        self.assertEqual(output.transaction_data, data)
        self.assertEqual(output.latest_ledger, 55)

    async def test_simulation_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            result = {"error": "HostError: Error(Contract, #1)", "latestLedger": 9}
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": result})

        client = self._client(handler)
        with self.assertRaises(SimulationError) as cm:
            await client.simulate_transaction("AAAA")
        await client.close()
        self.assertEqual(cm.exception.latest_ledger, 9)

    async def test_http_error(self):
        client = self._client(lambda request: httpx.Response(503, text="unavailable"))
        with self.assertRaises(ApiError) as cm:
            await client.get_health()
        await client.close()
        self.assertEqual(cm.exception.status_code, 503)

    async def test_json_rpc_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            error = {"code": -32602, "message": "invalid parameters"}
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": error})

        client = self._client(handler)
        with self.assertRaises(ApiError) as cm:
            await client.get_network()
        await client.close()
        self.assertIn("invalid parameters", str(cm.exception))


if __name__ == "__main__":
    unittest.main()
