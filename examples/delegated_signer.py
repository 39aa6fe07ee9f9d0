# Copyright © Smart Account SDK Contributors
# SPDX-License-Identifier: Apache-2.0

"""
Delegated Signer Example - authorize a smart account call with a G... signer.

The smart account must already list the signer as a delegated signer in the
context rule the call matches. The example simulates the given transaction,
adds the signer's ``__check_auth`` authorization and prints the augmented
simulation, ready to be assembled into the transaction and submitted.

Workflow:
    1. **Network Check**: Confirm the RPC server serves the configured network
    2. **Simulation**: Simulate the transaction envelope
    3. **Augmentation**: Stamp the smart account's entry and sign the signer's
    4. **Output**: Print the augmented simulation as JSON

Examples:
    Run against testnet::

        export SMART_ACCOUNT_ID=CA3D...
        export DELEGATED_SIGNER_SECRET=SBU2...
        python -m examples.delegated_signer AAAAAgAAAAA...

Note:
    The transaction envelope must invoke a function that calls
    ``require_auth`` on the smart account, otherwise simulation returns no
    authorization entry for it and the output is unchanged.
"""

import asyncio
import json
import sys

from smart_account_sdk.account import Account
from smart_account_sdk.async_client import RpcClient
from smart_account_sdk.plugin import DelegatedSignerConfig, DelegatedSignerPlugin

from .common import (
    DELEGATED_SIGNER_SECRET,
    NETWORK_PASSPHRASE,
    RPC_URL,
    SMART_ACCOUNT_ID,
)


async def main(transaction_envelope_xdr: str):
    if SMART_ACCOUNT_ID is None or DELEGATED_SIGNER_SECRET is None:
        raise ValueError("Set SMART_ACCOUNT_ID and DELEGATED_SIGNER_SECRET")

    # :!:>section_1
    rpc_client = RpcClient(RPC_URL)
    signer = Account.from_secret(DELEGATED_SIGNER_SECRET)
    plugin = DelegatedSignerPlugin(
        DelegatedSignerConfig(
            smart_account_id=SMART_ACCOUNT_ID,
            signer=signer,
            network_passphrase=NETWORK_PASSPHRASE,
        )
    )
    # <:!:section_1

    print("\n=== Network ===")
    passphrase = (await rpc_client.get_network())["passphrase"]
    print(f"Passphrase: {passphrase}")
    if passphrase != NETWORK_PASSPHRASE:
        await rpc_client.close()
        raise ValueError(f"RPC server serves {passphrase!r}, not {NETWORK_PASSPHRASE!r}")

    print("\n=== Addresses ===")
    print(f"Smart account: {SMART_ACCOUNT_ID}")
    print(f"Delegated signer: {signer.address()}")

    # :!:>section_2
    simulation = await rpc_client.simulate_transaction(transaction_envelope_xdr)
    augmented = await plugin.process_output(simulation)
    # <:!:section_2

    print("\n=== Authorization entries ===")
    print(f"Simulated: {len(simulation.auth)}")
    print(f"Augmented: {len(augmented.auth)}")
    print(f"Resource fee: {simulation.min_resource_fee} -> {augmented.min_resource_fee}")

    print("\n=== Augmented simulation ===")
    print(json.dumps(augmented.to_rpc_dict(), indent=2))

    await rpc_client.close()


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1]))
