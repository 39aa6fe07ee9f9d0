# Copyright © Smart Account SDK Contributors
# SPDX-License-Identifier: Apache-2.0

"""
Network passphrases and identifiers.

Each Stellar network is identified by a passphrase. Signatures commit to the
SHA-256 of that passphrase, the network id, so an authorization signed for
testnet can never be replayed on mainnet.
"""

from __future__ import annotations

import hashlib
import unittest

PUBLIC_NETWORK_PASSPHRASE = "Public Global Stellar Network ; September 2015"
TESTNET_NETWORK_PASSPHRASE = "Test SDF Network ; September 2015"
FUTURENET_NETWORK_PASSPHRASE = "Test SDF Future Network ; October 2022"
STANDALONE_NETWORK_PASSPHRASE = "Standalone Network ; February 2017"


def network_id(passphrase: str) -> bytes:
    """The 32 byte network id for a passphrase."""
    return hashlib.sha256(passphrase.encode()).digest()


class Test(unittest.TestCase):
    def test_network_id(self):
        self.assertEqual(
            network_id(TESTNET_NETWORK_PASSPHRASE).hex(),
            "cee0302d59844d32bdca915c8203dd44b33fbb7edc19051ea37abedf28ecd472",
        )
        self.assertEqual(len(network_id(PUBLIC_NETWORK_PASSPHRASE)), 32)
        self.assertNotEqual(
            network_id(PUBLIC_NETWORK_PASSPHRASE), network_id(TESTNET_NETWORK_PASSPHRASE)
        )


if __name__ == "__main__":
    unittest.main()
