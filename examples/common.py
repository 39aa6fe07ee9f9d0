# Copyright © Smart Account SDK Contributors
# SPDX-License-Identifier: Apache-2.0

"""
Common configuration for the Smart Account SDK examples.

Environment Variables:
    SOROBAN_RPC_URL: Soroban RPC endpoint
    NETWORK_PASSPHRASE: Passphrase of the network the RPC server serves
    SMART_ACCOUNT_ID: ``C...`` id of the smart account contract
    DELEGATED_SIGNER_SECRET: ``S...`` seed of the delegated signer

Network Configurations:
    Testnet (Default):
    - RPC: https://soroban-testnet.stellar.org
    - Passphrase: Test SDF Network ; September 2015

    Futurenet:
    - RPC: https://rpc-futurenet.stellar.org
    - Passphrase: Test SDF Future Network ; October 2022

Usage Examples:
    Switching to futurenet::

        import os
        os.environ["SOROBAN_RPC_URL"] = "https://rpc-futurenet.stellar.org"
        os.environ["NETWORK_PASSPHRASE"] = "Test SDF Future Network ; October 2022"

        from examples.common import RPC_URL, NETWORK_PASSPHRASE
"""

import os

from smart_account_sdk import network

# :!:>section_1
# Soroban RPC endpoint used to simulate transactions
RPC_URL = os.getenv("SOROBAN_RPC_URL", "https://soroban-testnet.stellar.org")

# Must match the network the RPC server serves, signatures commit to it
NETWORK_PASSPHRASE = os.getenv(
    "NETWORK_PASSPHRASE", network.TESTNET_NETWORK_PASSPHRASE
)

# The smart account contract whose authorization is delegated
SMART_ACCOUNT_ID = os.getenv("SMART_ACCOUNT_ID")

# Seed of the G... account registered as a delegated signer
DELEGATED_SIGNER_SECRET = os.getenv("DELEGATED_SIGNER_SECRET")
# <:!:section_1
