# Copyright © Smart Account SDK Contributors
# SPDX-License-Identifier: Apache-2.0

"""
Command-line interface for the Smart Account SDK.

Supported Commands:
- augment: add a delegated signer's authorization to a simulation result

The simulation comes either from a file holding the ``result`` object of a
``simulateTransaction`` response, or from an RPC server that simulates the
given transaction envelope. The augmented result is printed as JSON in the
same shape, ready for assembling and submitting the transaction.

Examples:
    From a saved simulation::

        python -m smart_account_sdk.cli augment \\
            --smart-account CA3D... \\
            --secret-key-path ./signer.txt \\
            --network-passphrase "Test SDF Network ; September 2015" \\
            --simulation ./simulation.json

    Simulating through an RPC server, which also supplies the passphrase::

        python -m smart_account_sdk.cli augment \\
            --smart-account CA3D... \\
            --secret-key-path ./signer.txt \\
            --rpc-url https://soroban-testnet.stellar.org \\
            --transaction AAAAAgAAAAA...

File Format Requirements:
    Secret Key File: a single line holding the signer's ``S...`` seed.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import io
import json
import os
import sys
import tempfile
import unittest
from typing import Any, Dict, List, Optional

from . import network
from .account import Account
from .address import Address
from .async_client import RpcClient
from .auth import build_check_auth_invocation, build_unsigned_auth_entry
from .plugin import DelegatedSignerConfig, DelegatedSignerPlugin
from .resources import LedgerFootprint, SorobanResources, SorobanTransactionData
from .simulation import SimulateTransactionOutput


async def augment(
    simulation: SimulateTransactionOutput,
    signer: Account,
    smart_account_id: str,
    network_passphrase: str,
) -> Dict[str, Any]:
    """Run the delegated signer plugin over a simulation and render it as JSON data."""
    config = DelegatedSignerConfig(
        smart_account_id=smart_account_id,
        signer=signer,
        network_passphrase=network_passphrase,
    )
    output = await DelegatedSignerPlugin(config).process_output(simulation)
    return output.to_rpc_dict()


async def simulate(
    rpc_url: str, transaction: str, network_passphrase: Optional[str]
) -> tuple:
    """Simulate through an RPC server. Returns the output and the passphrase,
    asking the server for the passphrase when none is given."""
    client = RpcClient(rpc_url)
    try:
        if network_passphrase is None:
            network_passphrase = (await client.get_network())["passphrase"]
        return await client.simulate_transaction(transaction), network_passphrase
    finally:
        await client.close()


async def main(args: List[str]):
    parser = argparse.ArgumentParser(description="Smart Account Python CLI")
    parser.add_argument(
        "command", type=str, help="The command to execute", choices=["augment"]
    )
    parser.add_argument(
        "--smart-account", help="The C... id of the smart account contract", type=str
    )
    parser.add_argument(
        "--secret-key-path",
        help="Path to file containing the delegated signer's secret seed",
        type=str,
    )
    parser.add_argument(
        "--network-passphrase",
        help="Network passphrase (defaults to the RPC server's when --rpc-url is used)",
        type=str,
    )
    parser.add_argument(
        "--simulation",
        help="Path to a JSON file with a simulateTransaction result",
        type=str,
    )
    parser.add_argument("--rpc-url", help="Soroban RPC endpoint URL", type=str)
    parser.add_argument(
        "--transaction", help="Base64 transaction envelope to simulate", type=str
    )
    parsed_args = parser.parse_args(args)

    if parsed_args.command == "augment":
        if parsed_args.smart_account is None:
            parser.error("Missing required argument '--smart-account'")
        if parsed_args.secret_key_path is None:
            parser.error("Missing required argument '--secret-key-path'")
        if (parsed_args.simulation is None) == (parsed_args.rpc_url is None):
            parser.error("Pass exactly one of '--simulation' and '--rpc-url'")
        if parsed_args.rpc_url is not None and parsed_args.transaction is None:
            parser.error("Missing required argument '--transaction'")
        if parsed_args.simulation is not None and parsed_args.network_passphrase is None:
            parser.error("Missing required argument '--network-passphrase'")

        try:
            signer = Account.load_secret(parsed_args.secret_key_path)
        except FileNotFoundError:
            parser.error(f"Secret key file not found: {parsed_args.secret_key_path}")
        except ValueError as e:
            parser.error(f"Failed to load secret key: {e}")

        if parsed_args.simulation is not None:
            with open(parsed_args.simulation) as f:
                simulation = SimulateTransactionOutput.from_rpc_response(json.load(f))
            passphrase = parsed_args.network_passphrase
        else:
            simulation, passphrase = await simulate(
                parsed_args.rpc_url,
                parsed_args.transaction,
                parsed_args.network_passphrase,
            )

        result = await augment(simulation, signer, parsed_args.smart_account, passphrase)
        print(json.dumps(result, indent=2))


class Test(unittest.IsolatedAsyncioTestCase):
    SMART_ACCOUNT = "CA3D5KRYM6CB7OWQ6TWYRR3Z4T7GNZLKERYNZGGA5SOAOPIFY6YQGAXE"
    SECRET = "SBU2RRGLXH3E5CQHTD3ODLDF2BWDCYUSSBLLZ5GNW7JXHDIYKXZWHOKR"

    def setUp(self):
        self.directory = tempfile.TemporaryDirectory()
        self.secret_path = os.path.join(self.directory.name, "signer.txt")
        with open(self.secret_path, "w") as f:
            f.write(self.SECRET)

    def tearDown(self):
        self.directory.cleanup()

    def _simulation_file(self, entries) -> str:
        auth = [
            build_unsigned_auth_entry(
                Address.from_str(contract_id),
                0,
                build_check_auth_invocation(contract_id, bytes(32)),
                1,
            )
            for contract_id in entries
        ]
        data = SorobanTransactionData(
            SorobanResources(LedgerFootprint([], []), 100, 10, 1), 50
        )
        path = os.path.join(self.directory.name, "simulation.json")
        with open(path, "w") as f:
            json.dump(SimulateTransactionOutput(auth, data, 50, 1000).to_rpc_dict(), f)
        return path

    async def _run(self, args: List[str]) -> Dict[str, Any]:
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            await main(args)
        return json.loads(out.getvalue())

    async def test_augment_simulation_file(self):
        result = await self._run(
            [
                "augment",
                "--smart-account",
                self.SMART_ACCOUNT,
                "--secret-key-path",
                self.secret_path,
                "--network-passphrase",
                network.TESTNET_NETWORK_PASSPHRASE,
                "--simulation",
                self._simulation_file([self.SMART_ACCOUNT]),
            ]
        )
        self.assertEqual(len(result["results"][0]["auth"]), 2)
        self.assertEqual(result["minResourceFee"], "150")
        self.assertEqual(result["latestLedger"], 1000)

    async def test_requires_one_source(self):
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                await main(
                    [
                        "augment",
                        "--smart-account",
                        self.SMART_ACCOUNT,
                        "--secret-key-path",
                        self.secret_path,
                    ]
                )


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1:]))
