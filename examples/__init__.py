"""
Smart Account SDK Examples - runnable scripts for the delegated signer flow.

Example Categories:

    **Delegated Signing**:
    - delegated_signer.py: Simulate a smart account call and add the delegated
      signer's authorization to the result

    **Inspection**:
    - storage_keys.py: Print the ledger keys a delegated signer's verification
      reads, as base64 XDR
    - common.py: Shared configuration read from the environment

Quick Start:
    Examples run as modules from the repository root::

        export SMART_ACCOUNT_ID=CA3D...
        export DELEGATED_SIGNER_SECRET=SBU2...
        python -m examples.delegated_signer AAAAAgAAAAA...

        python -m examples.storage_keys

Configuration:
    All examples use environment variables for network configuration.
    See examples.common for the variables and their defaults.

Safety:
    - All examples default to testnet
    - Secret seeds are read from the environment and never printed
"""
