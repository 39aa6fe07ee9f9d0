# Copyright © Smart Account SDK Contributors
# SPDX-License-Identifier: Apache-2.0

"""
Client identification for requests to Soroban RPC servers.

Requests carry the SDK name and version so RPC operators can tell SDK traffic
apart when debugging::

    X-Client-Name: smart-account-python-sdk
    X-Client-Version: 0.1.0
"""

import importlib.metadata as metadata
import unittest

# Package name constant for metadata lookup
PACKAGE_NAME = "smart-account-sdk"


class Metadata:
    CLIENT_NAME_HEADER = "X-Client-Name"
    CLIENT_VERSION_HEADER = "X-Client-Version"
    CLIENT_NAME = "smart-account-python-sdk"

    @staticmethod
    def get_version() -> str:
        """The installed package version, or ``0.0.0`` for a source checkout."""
        try:
            return metadata.version(PACKAGE_NAME)
        except metadata.PackageNotFoundError:
            return "0.0.0"

    @staticmethod
    def get_headers() -> dict:
        return {
            Metadata.CLIENT_NAME_HEADER: Metadata.CLIENT_NAME,
            Metadata.CLIENT_VERSION_HEADER: Metadata.get_version(),
        }


class Test(unittest.TestCase):
    def test_headers(self):
        headers = Metadata.get_headers()
        self.assertEqual(headers["X-Client-Name"], "smart-account-python-sdk")
        self.assertTrue(headers["X-Client-Version"])


if __name__ == "__main__":
    unittest.main()
