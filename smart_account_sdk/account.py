# Copyright © Smart Account SDK Contributors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import json
import os
import tempfile
import unittest

from . import ed25519
from .address import Address


class Account:
    """A Stellar keypair able to sign on behalf of a ``G...`` account.

    The delegated signer of a smart account is an ordinary Stellar account:
    it holds an Ed25519 key, and its address is the StrKey of the public key.
    The same key signs the companion authorization entry.

    Examples:
        Create and persist a signer::

            signer = Account.generate()
            print(signer.address())  # G...
            signer.store("./signer.json")

        Load a signer from its secret seed::

            signer = Account.from_secret("SBU2...")

        Sign arbitrary data::

            signature = signer.sign(b"payload")
            assert signer.public_key().verify(b"payload", signature)

    Note:
        The secret seed is written to disk in clear text by `store`. Restrict
        the file's permissions or keep the seed in a secret manager instead.
    """

    private_key: ed25519.PrivateKey

    def __init__(self, private_key: ed25519.PrivateKey):
        self.private_key = private_key

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Account):
            return NotImplemented
        return self.private_key == other.private_key

    def __repr__(self) -> str:
        return f"Account({self.address()})"

    @staticmethod
    def generate() -> Account:
        """Generate an account from a cryptographically secure random seed."""
        return Account(ed25519.PrivateKey.random())

    @staticmethod
    def from_secret(secret: str) -> Account:
        """Create an account from an ``S...`` secret seed.

        Raises:
            StrKeyError: If the seed is malformed.
        """
        return Account(ed25519.PrivateKey.from_secret(secret))

    @staticmethod
    def load(path: str) -> Account:
        """Load an account stored with `store`.

        The file is JSON with the fields ``account_id`` and ``secret_seed``;
        the account id is checked against the seed.

        Raises:
            FileNotFoundError: If the file does not exist.
            json.JSONDecodeError: If the file is not JSON.
            KeyError: If a field is missing.
            ValueError: If the account id does not belong to the seed.
        """
        with open(path) as file:
            data = json.load(file)
        account = Account.from_secret(data["secret_seed"])
        if str(account.address()) != data["account_id"]:
            raise ValueError(
                f"Stored account id {data['account_id']} does not match its seed"
            )
        return account

    @staticmethod
    def load_secret(path: str) -> Account:
        """Load an account from a text file holding just the secret seed."""
        with open(path) as file:
            return Account.from_secret(file.read().strip())

    def store(self, path: str):
        data = {
            "account_id": str(self.address()),
            "secret_seed": self.private_key.secret(),
        }
        with open(path, "w") as file:
            json.dump(data, file)

    def address(self) -> Address:
        """The account's ``G...`` address."""
        return Address.from_public_key(self.public_key())

    def public_key(self) -> ed25519.PublicKey:
        return self.private_key.public_key()

    def sign(self, data: bytes) -> ed25519.Signature:
        return self.private_key.sign(data)


class Test(unittest.TestCase):
    SECRET = "SBU2RRGLXH3E5CQHTD3ODLDF2BWDCYUSSBLLZ5GNW7JXHDIYKXZWHOKR"
    ACCOUNT = "GA3D5KRYM6CB7OWQ6TWYRR3Z4T7GNZLKERYNZGGA5SOAOPIFY6YQHES5"

    def test_load_and_store(self):
        (file, path) = tempfile.mkstemp()
        os.close(file)
        start = Account.generate()
        start.store(path)
        load = Account.load(path)
        os.remove(path)

        self.assertEqual(start, load)

    def test_load_rejects_mismatched_id(self):
        (file, path) = tempfile.mkstemp()
        with os.fdopen(file, "w") as out:
            json.dump(
                {"account_id": str(Account.generate().address()), "secret_seed": self.SECRET},
                out,
            )
        with self.assertRaises(ValueError):
            Account.load(path)
        os.remove(path)

    def test_load_secret(self):
        (file, path) = tempfile.mkstemp()
        with os.fdopen(file, "w") as out:
            out.write(self.SECRET + "\n")
        self.assertEqual(str(Account.load_secret(path).address()), self.ACCOUNT)
        os.remove(path)

    def test_address(self):
        account = Account.from_secret(self.SECRET)
        self.assertEqual(str(account.address()), self.ACCOUNT)
        self.assertEqual(account.address().variant, Address.ACCOUNT)

    def test_key(self):
        message = b"test message"
        account = Account.generate()
        signature = account.sign(message)
        self.assertTrue(account.public_key().verify(message, signature))


if __name__ == "__main__":
    unittest.main()
