# Copyright © Smart Account SDK Contributors
# SPDX-License-Identifier: Apache-2.0

"""
Storage Keys Example - list what a delegated signer's verification touches.

Prints the ledger keys the delegated signer plugin adds to a transaction's
footprint, as base64 XDR, so they can be compared with a simulation or looked
up with ``getLedgerEntries``. A fresh signer is generated when
DELEGATED_SIGNER_SECRET is not set.

Examples:
    Run offline::

        SMART_ACCOUNT_ID=CA3D... python -m examples.storage_keys
"""

from smart_account_sdk import storage_keys
from smart_account_sdk.account import Account
from smart_account_sdk.auth import generate_nonce

from .common import DELEGATED_SIGNER_SECRET, SMART_ACCOUNT_ID


def main():
    if SMART_ACCOUNT_ID is None:
        raise ValueError("Set SMART_ACCOUNT_ID")
    if DELEGATED_SIGNER_SECRET is None:
        signer = Account.generate()
    else:
        signer = Account.from_secret(DELEGATED_SIGNER_SECRET)

    print("\n=== Read only ===")
    print(f"Signer account: {storage_keys.create_account_key(signer.public_key()).to_xdr()}")
    names = ("Ids/CallContract", "Ids/Default", "Meta", "Signers", "Policies")
    keys = storage_keys.create_smart_account_storage_keys(SMART_ACCOUNT_ID)
    for name, key in zip(names, keys):
        print(f"{name}: {key.to_xdr()}")

    print("\n=== Read write ===")
    nonce = generate_nonce()
    nonce_key = storage_keys.create_nonce_key(signer.address(), nonce)
    print(f"Signer nonce {nonce}: {nonce_key.to_xdr()}")


if __name__ == "__main__":
    main()
