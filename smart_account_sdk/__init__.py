# Copyright © Smart Account SDK Contributors
# SPDX-License-Identifier: Apache-2.0

"""
Smart Account SDK - delegated signer authorization for Soroban smart accounts.

Smart account contracts on Stellar authorize calls through ``__check_auth``.
When a smart account lists a classic ``G...`` account as a delegated signer,
the account signs a separate authorization entry for the smart account's
``__check_auth`` call instead of signing inside the smart account's entry.
Transaction simulation cannot see that second entry, so this SDK adds it to
a simulation result, together with the ledger keys and resources its
verification needs.

Core Features:
- **Delegated Signing**: Augment ``simulateTransaction`` output for a delegated signer
- **Authorization Entries**: Build, hash and sign Soroban authorization entries
- **Wire Types**: XDR codecs for ``SCVal``, ``SCAddress``, ``LedgerKey`` and resources
- **StrKey**: ``G...``/``C...``/``S...`` address encoding with checksums
- **RPC Client**: Async Soroban RPC client over httpx
- **CLI**: Augment a saved or live simulation from the command line

Quick Start:
    Augment a simulation before assembling the transaction::

        import asyncio
        from smart_account_sdk.account import Account
        from smart_account_sdk.async_client import RpcClient
        from smart_account_sdk.network import TESTNET_NETWORK_PASSPHRASE
        from smart_account_sdk.plugin import DelegatedSignerConfig, DelegatedSignerPlugin

        async def main(envelope_xdr: str):
            client = RpcClient("https://soroban-testnet.stellar.org")
            plugin = DelegatedSignerPlugin(
                DelegatedSignerConfig(
                    smart_account_id="CA3D...",
                    signer=Account.from_secret("SBU2..."),
                    network_passphrase=TESTNET_NETWORK_PASSPHRASE,
                )
            )
            try:
                output = await client.simulate_transaction(envelope_xdr)
                output = await plugin.process_output(output)
            finally:
                await client.close()
            return output.to_rpc_dict()

Module Organization:
    Wire Formats:
    - **xdr**: XDR serializer and deserializer
    - **strkey**: StrKey encoding of keys and addresses
    - **scval**: Contract values and their constructors
    - **address**: Soroban addresses
    - **ledger_key**: Ledger entry keys
    - **resources**: Footprints, resource limits and transaction data

    Authorization:
    - **ed25519**: Ed25519 keys and signatures
    - **account**: Classic accounts used as signers
    - **network**: Network passphrases and ids
    - **auth**: Authorization entries, payload hashing and signing
    - **signatures**: Smart account signature values
    - **storage_keys**: Ledger keys read while verifying a delegated signer

    Clients:
    - **simulation**: Decoded ``simulateTransaction`` results
    - **plugin**: The delegated signer plugin
    - **async_client**: Soroban RPC client
    - **metadata**: SDK version and HTTP headers
    - **cli**: Command-line interface

Requirements:
    - Python 3.10 or higher
    - httpx for HTTP requests
    - pynacl for Ed25519 signatures

Security Considerations:
    - **Secret Seeds**: Never log or expose ``S...`` seeds
    - **Expiration**: Signed entries stay valid until their expiration ledger
"""
