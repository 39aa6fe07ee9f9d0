# Copyright © Smart Account SDK Contributors
# SPDX-License-Identifier: Apache-2.0

"""
Soroban authorization entries and the operations the delegated signer flow
performs on them.

When a transaction calls ``require_auth`` on an address other than the
transaction source, simulation returns a ``SorobanAuthorizationEntry`` for that
address. The entry names the address, a replay nonce, the ledger after which
the authorization expires, the signature, and the tree of contract calls being
authorized. The address signs the SHA-256 of a ``HashIdPreimage`` built from
the network id, nonce, expiration and invocation tree; a contract address
checks that hash in its ``__check_auth`` entry point.

Besides the wire types this module provides:

- `find_contract_auth_entry_index`: locate the entry addressed to a contract
- `compute_auth_payload_hash`: the digest an address signs
- `build_check_auth_invocation`: a ``__check_auth(payload_hash)`` call tree
- `build_unsigned_auth_entry`: an address entry with a fresh secure nonce
- `authorize_entry`: the default Ed25519 signing oracle

Examples:
    Find and inspect an entry::

        index = find_contract_auth_entry_index(entries, "CA3D...")
        if index >= 0:
            credentials = entries[index].credentials.address_credentials()
            print(credentials.nonce, credentials.signature_expiration_ledger)

    Sign an entry for an account::

        signed = await authorize_entry(entry, signer, 1100, TESTNET_NETWORK_PASSPHRASE)
"""

from __future__ import annotations

import hashlib
import logging
import secrets
import typing
import unittest
from typing import List, Optional

from . import network, scval
from .account import Account
from .address import Address
from .ed25519 import PublicKey, Signature
from .ledger_key import Asset
from .scval import SCSYMBOL_LIMIT, ContractExecutable, ScVal
from .strkey import StrKeyError
from .xdr import (
    MAX_I64,
    Deserializable,
    Deserializer,
    Serializable,
    Serializer,
    XdrError,
)

CHECK_AUTH_FUNCTION = "__check_auth"
ENVELOPE_TYPE_SOROBAN_AUTHORIZATION = 9
HASH_LENGTH = 32


class MalformedCredentials(Exception):
    """Raised when credentials are not of the variant an operation needs."""


class InvokeContractArgs:
    """A contract call: target contract, function name and arguments."""

    contract_address: Address
    function_name: str
    args: List[ScVal]

    def __init__(self, contract_address: Address, function_name: str, args: List[ScVal]):
        self.contract_address = contract_address
        self.function_name = function_name
        self.args = list(args)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InvokeContractArgs):
            return NotImplemented
        return (
            self.contract_address == other.contract_address
            and self.function_name == other.function_name
            and self.args == other.args
        )

    def __repr__(self) -> str:
        return f"{self.contract_address}::{self.function_name}({self.args})"

    @staticmethod
    def deserialize(deserializer: Deserializer) -> InvokeContractArgs:
        contract_address = Address.deserialize(deserializer)
        function_name = deserializer.str(SCSYMBOL_LIMIT)
        args = deserializer.sequence(ScVal.deserialize)
        return InvokeContractArgs(contract_address, function_name, args)

    def serialize(self, serializer: Serializer):
        serializer.struct(self.contract_address)
        serializer.str(self.function_name, SCSYMBOL_LIMIT)
        serializer.sequence(self.args, Serializer.struct)


class ContractIdPreimage:
    """How the id of a contract being created is derived."""

    FROM_ADDRESS: int = 0
    FROM_ASSET: int = 1

    variant: int
    address: Optional[Address]
    salt: Optional[bytes]
    asset: Optional[Asset]

    def __init__(
        self,
        variant: int,
        address: Optional[Address] = None,
        salt: Optional[bytes] = None,
        asset: Optional[Asset] = None,
    ):
        if variant == ContractIdPreimage.FROM_ADDRESS:
            if address is None or salt is None or len(salt) != HASH_LENGTH:
                raise ValueError("Address preimages need an address and a 32 byte salt")
        elif variant == ContractIdPreimage.FROM_ASSET:
            if asset is None:
                raise ValueError("Asset preimages need an asset")
        else:
            raise XdrError(f"Invalid contract id preimage type: {variant}")
        self.variant = variant
        self.address = address
        self.salt = salt
        self.asset = asset

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ContractIdPreimage):
            return NotImplemented
        return (
            self.variant == other.variant
            and self.address == other.address
            and self.salt == other.salt
            and self.asset == other.asset
        )

    @staticmethod
    def deserialize(deserializer: Deserializer) -> ContractIdPreimage:
        variant = deserializer.enum()
        if variant == ContractIdPreimage.FROM_ADDRESS:
            address = Address.deserialize(deserializer)
            salt = deserializer.fixed_bytes(HASH_LENGTH)
            return ContractIdPreimage(variant, address=address, salt=salt)
        if variant == ContractIdPreimage.FROM_ASSET:
            return ContractIdPreimage(variant, asset=Asset.deserialize(deserializer))
        raise XdrError(f"Invalid contract id preimage type: {variant}")

    def serialize(self, serializer: Serializer):
        serializer.enum(self.variant)
        if self.variant == ContractIdPreimage.FROM_ADDRESS:
            serializer.struct(self.address)
            serializer.fixed_bytes(self.salt, HASH_LENGTH)
        else:
            serializer.struct(self.asset)


class CreateContractArgs:
    """Contract creation, optionally with constructor arguments (the V2 arm)."""

    preimage: ContractIdPreimage
    executable: ContractExecutable
    constructor_args: Optional[List[ScVal]]

    def __init__(
        self,
        preimage: ContractIdPreimage,
        executable: ContractExecutable,
        constructor_args: Optional[List[ScVal]] = None,
    ):
        self.preimage = preimage
        self.executable = executable
        self.constructor_args = constructor_args

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CreateContractArgs):
            return NotImplemented
        return (
            self.preimage == other.preimage
            and self.executable == other.executable
            and self.constructor_args == other.constructor_args
        )

    @staticmethod
    def deserialize(deserializer: Deserializer) -> CreateContractArgs:
        return CreateContractArgs(
            ContractIdPreimage.deserialize(deserializer),
            ContractExecutable.deserialize(deserializer),
        )

    @staticmethod
    def deserialize_v2(deserializer: Deserializer) -> CreateContractArgs:
        args = CreateContractArgs.deserialize(deserializer)
        args.constructor_args = deserializer.sequence(ScVal.deserialize)
        return args

    def serialize(self, serializer: Serializer):
        serializer.struct(self.preimage)
        serializer.struct(self.executable)
        if self.constructor_args is not None:
            serializer.sequence(self.constructor_args, Serializer.struct)


class SorobanAuthorizedFunction:
    """The function being authorized at one node of an invocation tree."""

    CONTRACT_FN: int = 0
    CREATE_CONTRACT_HOST_FN: int = 1
    CREATE_CONTRACT_V2_HOST_FN: int = 2

    variant: int
    value: typing.Union[InvokeContractArgs, CreateContractArgs]

    def __init__(
        self, variant: int, value: typing.Union[InvokeContractArgs, CreateContractArgs]
    ):
        if variant == SorobanAuthorizedFunction.CONTRACT_FN:
            expected: type = InvokeContractArgs
        elif variant in (
            SorobanAuthorizedFunction.CREATE_CONTRACT_HOST_FN,
            SorobanAuthorizedFunction.CREATE_CONTRACT_V2_HOST_FN,
        ):
            expected = CreateContractArgs
        else:
            raise XdrError(f"Invalid authorized function type: {variant}")
        if not isinstance(value, expected):
            raise TypeError(f"Expected {expected.__name__} for function type {variant}")
        is_v2 = variant == SorobanAuthorizedFunction.CREATE_CONTRACT_V2_HOST_FN
        if expected is CreateContractArgs and is_v2 != (value.constructor_args is not None):
            raise ValueError("Only V2 contract creation carries constructor arguments")
        self.variant = variant
        self.value = value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SorobanAuthorizedFunction):
            return NotImplemented
        return self.variant == other.variant and self.value == other.value

    def __repr__(self) -> str:
        return f"SorobanAuthorizedFunction({self.variant}, {self.value})"

    @staticmethod
    def deserialize(deserializer: Deserializer) -> SorobanAuthorizedFunction:
        variant = deserializer.enum()
        if variant == SorobanAuthorizedFunction.CONTRACT_FN:
            value: typing.Any = InvokeContractArgs.deserialize(deserializer)
        elif variant == SorobanAuthorizedFunction.CREATE_CONTRACT_HOST_FN:
            value = CreateContractArgs.deserialize(deserializer)
        elif variant == SorobanAuthorizedFunction.CREATE_CONTRACT_V2_HOST_FN:
            value = CreateContractArgs.deserialize_v2(deserializer)
        else:
            raise XdrError(f"Invalid authorized function type: {variant}")
        return SorobanAuthorizedFunction(variant, value)

    def serialize(self, serializer: Serializer):
        serializer.enum(self.variant)
        serializer.struct(self.value)


class SorobanAuthorizedInvocation(Serializable, Deserializable):
    """A node of the tree of calls an entry authorizes."""

    function: SorobanAuthorizedFunction
    sub_invocations: List[SorobanAuthorizedInvocation]

    def __init__(
        self,
        function: SorobanAuthorizedFunction,
        sub_invocations: Optional[List[SorobanAuthorizedInvocation]] = None,
    ):
        self.function = function
        self.sub_invocations = list(sub_invocations or [])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SorobanAuthorizedInvocation):
            return NotImplemented
        return (
            self.function == other.function
            and self.sub_invocations == other.sub_invocations
        )

    def __repr__(self) -> str:
        return f"SorobanAuthorizedInvocation({self.function}, {self.sub_invocations})"

    @staticmethod
    def deserialize(deserializer: Deserializer) -> SorobanAuthorizedInvocation:
        function = SorobanAuthorizedFunction.deserialize(deserializer)
        sub_invocations = deserializer.sequence(SorobanAuthorizedInvocation.deserialize)
        return SorobanAuthorizedInvocation(function, sub_invocations)

    def serialize(self, serializer: Serializer):
        serializer.struct(self.function)
        serializer.sequence(self.sub_invocations, Serializer.struct)


class SorobanAddressCredentials:
    """Credentials of an address authorizing with its own signature."""

    address: Address
    nonce: int
    signature_expiration_ledger: int
    signature: ScVal

    def __init__(
        self,
        address: Address,
        nonce: int,
        signature_expiration_ledger: int,
        signature: ScVal,
    ):
        self.address = address
        self.nonce = nonce
        self.signature_expiration_ledger = signature_expiration_ledger
        self.signature = signature

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SorobanAddressCredentials):
            return NotImplemented
        return (
            self.address == other.address
            and self.nonce == other.nonce
            and self.signature_expiration_ledger == other.signature_expiration_ledger
            and self.signature == other.signature
        )

    def __repr__(self) -> str:
        return (
            f"SorobanAddressCredentials({self.address}, nonce={self.nonce}, "
            f"expiration={self.signature_expiration_ledger})"
        )

    @staticmethod
    def deserialize(deserializer: Deserializer) -> SorobanAddressCredentials:
        return SorobanAddressCredentials(
            Address.deserialize(deserializer),
            deserializer.i64(),
            deserializer.u32(),
            ScVal.deserialize(deserializer),
        )

    def serialize(self, serializer: Serializer):
        serializer.struct(self.address)
        serializer.i64(self.nonce)
        serializer.u32(self.signature_expiration_ledger)
        serializer.struct(self.signature)


class SorobanCredentials:
    """Either the transaction source account or an explicit address."""

    SOURCE_ACCOUNT: int = 0
    ADDRESS: int = 1

    variant: int
    address: Optional[SorobanAddressCredentials]

    def __init__(self, variant: int, address: Optional[SorobanAddressCredentials] = None):
        if variant == SorobanCredentials.SOURCE_ACCOUNT:
            address = None
        elif variant == SorobanCredentials.ADDRESS:
            if address is None:
                raise ValueError("Address credentials are required")
        else:
            raise XdrError(f"Invalid credentials type: {variant}")
        self.variant = variant
        self.address = address

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SorobanCredentials):
            return NotImplemented
        return self.variant == other.variant and self.address == other.address

    @staticmethod
    def source_account() -> SorobanCredentials:
        return SorobanCredentials(SorobanCredentials.SOURCE_ACCOUNT)

    @staticmethod
    def from_address(address: SorobanAddressCredentials) -> SorobanCredentials:
        return SorobanCredentials(SorobanCredentials.ADDRESS, address)

    def address_credentials(self) -> SorobanAddressCredentials:
        """The address credentials.

        Raises:
            MalformedCredentials: If these are source account credentials.
        """
        if self.variant != SorobanCredentials.ADDRESS or self.address is None:
            raise MalformedCredentials(
                f"Expected address credentials, found type {self.variant}"
            )
        return self.address

    @staticmethod
    def deserialize(deserializer: Deserializer) -> SorobanCredentials:
        variant = deserializer.enum()
        if variant == SorobanCredentials.SOURCE_ACCOUNT:
            return SorobanCredentials(variant)
        if variant == SorobanCredentials.ADDRESS:
            return SorobanCredentials(
                variant, SorobanAddressCredentials.deserialize(deserializer)
            )
        raise XdrError(f"Invalid credentials type: {variant}")

    def serialize(self, serializer: Serializer):
        serializer.enum(self.variant)
        if self.variant == SorobanCredentials.ADDRESS:
            serializer.struct(self.address)


class SorobanAuthorizationEntry(Serializable, Deserializable):
    """One party's permission for a tree of contract calls.

    Entries are not modified once built. `with_address_credentials` returns a
    copy with new credentials, which is how an entry is stamped with its
    expiration and signature.
    """

    credentials: SorobanCredentials
    root_invocation: SorobanAuthorizedInvocation

    def __init__(
        self,
        credentials: SorobanCredentials,
        root_invocation: SorobanAuthorizedInvocation,
    ):
        self.credentials = credentials
        self.root_invocation = root_invocation

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SorobanAuthorizationEntry):
            return NotImplemented
        return (
            self.credentials == other.credentials
            and self.root_invocation == other.root_invocation
        )

    def __repr__(self) -> str:
        return f"SorobanAuthorizationEntry({self.credentials.variant}, {self.root_invocation})"

    def copy(self) -> SorobanAuthorizationEntry:
        """A deep copy sharing no objects with this entry."""
        return SorobanAuthorizationEntry.from_bytes(self.to_bytes())

    def with_address_credentials(
        self,
        signature_expiration_ledger: int,
        signature: ScVal,
    ) -> SorobanAuthorizationEntry:
        """Copy the entry, replacing the expiration and signature.

        Raises:
            MalformedCredentials: If the entry has source account credentials.
        """
        clone = self.copy()
        credentials = clone.credentials.address_credentials()
        credentials.signature_expiration_ledger = signature_expiration_ledger
        credentials.signature = signature
        return clone

    @staticmethod
    def deserialize(deserializer: Deserializer) -> SorobanAuthorizationEntry:
        credentials = SorobanCredentials.deserialize(deserializer)
        root_invocation = SorobanAuthorizedInvocation.deserialize(deserializer)
        return SorobanAuthorizationEntry(credentials, root_invocation)

    def serialize(self, serializer: Serializer):
        serializer.struct(self.credentials)
        serializer.struct(self.root_invocation)


class HashIdPreimageSorobanAuthorization(Serializable):
    """The preimage whose SHA-256 an address signs to authorize an invocation."""

    network_id: bytes
    nonce: int
    signature_expiration_ledger: int
    invocation: SorobanAuthorizedInvocation

    def __init__(
        self,
        network_id: bytes,
        nonce: int,
        signature_expiration_ledger: int,
        invocation: SorobanAuthorizedInvocation,
    ):
        self.network_id = network_id
        self.nonce = nonce
        self.signature_expiration_ledger = signature_expiration_ledger
        self.invocation = invocation

    def serialize(self, serializer: Serializer):
        serializer.enum(ENVELOPE_TYPE_SOROBAN_AUTHORIZATION)
        serializer.fixed_bytes(self.network_id, HASH_LENGTH)
        serializer.i64(self.nonce)
        serializer.u32(self.signature_expiration_ledger)
        serializer.struct(self.invocation)


def find_contract_auth_entry_index(
    entries: typing.Sequence[SorobanAuthorizationEntry], contract_id: str
) -> int:
    """Index of the first entry with address credentials for `contract_id`.

    Entries with other credentials, or whose address cannot be rendered, are
    skipped; other parties' entries may appear in the same list.

    Returns:
        The index, or -1 when no entry matches.
    """
    for index, entry in enumerate(entries):
        try:
            address = entry.credentials.address_credentials().address
            if str(address) == contract_id:
                return index
        except (MalformedCredentials, StrKeyError) as e:
            logging.debug("Skipping auth entry %d: %s", index, e)
    return -1


def compute_auth_payload_hash(
    network_id: bytes,
    nonce: int,
    expiration_ledger: int,
    invocation: SorobanAuthorizedInvocation,
) -> bytes:
    """SHA-256 of the Soroban authorization preimage. Always 32 bytes."""
    preimage = HashIdPreimageSorobanAuthorization(
        network_id, nonce, expiration_ledger, invocation
    )
    return hashlib.sha256(preimage.to_bytes()).digest()


def build_check_auth_invocation(
    smart_account_id: typing.Union[str, Address], payload_hash: bytes
) -> SorobanAuthorizedInvocation:
    """A single call to ``__check_auth(payload_hash)`` on the smart account."""
    if isinstance(smart_account_id, str):
        smart_account_id = Address.from_str(smart_account_id)
    args = InvokeContractArgs(
        smart_account_id, CHECK_AUTH_FUNCTION, [scval.to_bytes(payload_hash)]
    )
    return SorobanAuthorizedInvocation(
        SorobanAuthorizedFunction(SorobanAuthorizedFunction.CONTRACT_FN, args)
    )


def generate_nonce() -> int:
    """A random non-negative int64 drawn from the OS CSPRNG."""
    return secrets.randbits(63)


def build_unsigned_auth_entry(
    address: Address,
    expiration_ledger: int,
    invocation: SorobanAuthorizedInvocation,
    nonce: Optional[int] = None,
) -> SorobanAuthorizationEntry:
    """An address entry with a void signature, ready for a signing oracle."""
    if nonce is None:
        nonce = generate_nonce()
    if not 0 <= nonce <= MAX_I64:
        raise ValueError(f"Nonce out of range: {nonce}")
    credentials = SorobanAddressCredentials(
        address, nonce, expiration_ledger, scval.to_void()
    )
    return SorobanAuthorizationEntry(
        SorobanCredentials.from_address(credentials), invocation
    )


AuthEntrySigner = typing.Callable[
    [SorobanAuthorizationEntry, Account, int, str],
    typing.Awaitable[SorobanAuthorizationEntry],
]


def build_account_signature_value(public_key: PublicKey, signature: Signature) -> ScVal:
    """The signature value a classic account attaches to its entries."""
    return scval.to_vec(
        [
            scval.to_map(
                [
                    (scval.to_symbol("public_key"), scval.to_bytes(public_key.to_raw())),
                    (scval.to_symbol("signature"), scval.to_bytes(signature.data())),
                ]
            )
        ]
    )


async def authorize_entry(
    entry: SorobanAuthorizationEntry,
    signer: Account,
    expiration_ledger: int,
    network_passphrase: str,
) -> SorobanAuthorizationEntry:
    """Sign an authorization entry with an account's Ed25519 key.

    Source account entries need no signature and are returned unchanged.
    Otherwise a copy of the entry is returned with the given expiration and
    the account's signature over the payload hash.

    Raises:
        ValueError: If the produced signature does not verify.
    """
    if entry.credentials.variant == SorobanCredentials.SOURCE_ACCOUNT:
        return entry

    credentials = entry.credentials.address_credentials()
    payload = compute_auth_payload_hash(
        network.network_id(network_passphrase),
        credentials.nonce,
        expiration_ledger,
        entry.root_invocation,
    )
    signature = signer.sign(payload)
    public_key = signer.public_key()
    if not public_key.verify(payload, signature):
        raise ValueError("Signature does not verify against the payload hash")

    return entry.with_address_credentials(
        expiration_ledger, build_account_signature_value(public_key, signature)
    )


class Test(unittest.IsolatedAsyncioTestCase):
    CONTRACT = "CA3D5KRYM6CB7OWQ6TWYRR3Z4T7GNZLKERYNZGGA5SOAOPIFY6YQGAXE"
    OTHER_CONTRACT = "CDLZFC3SYJYDZT7K67VZ75HPJVIEUVNIXF47ZG2FB2RMQQVU2HHGCYSC"
    SECRET = "SBU2RRGLXH3E5CQHTD3ODLDF2BWDCYUSSBLLZ5GNW7JXHDIYKXZWHOKR"

    def _entry(self, contract_id: str, nonce: int = 7) -> SorobanAuthorizationEntry:
        invocation = SorobanAuthorizedInvocation(
            SorobanAuthorizedFunction(
                SorobanAuthorizedFunction.CONTRACT_FN,
                InvokeContractArgs(
                    Address.from_str(self.OTHER_CONTRACT),
                    "transfer",
                    [scval.to_u32(1)],
                ),
            )
        )
        return build_unsigned_auth_entry(
            Address.from_str(contract_id), 0, invocation, nonce
        )

    def test_entry_xdr(self):
        entry = self._entry(self.CONTRACT)
        self.assertEqual(SorobanAuthorizationEntry.from_xdr(entry.to_xdr()), entry)
        self.assertEqual(entry.to_bytes()[:8], b"\x00\x00\x00\x01\x00\x00\x00\x01")

    def test_source_account_entry_xdr(self):
        entry = SorobanAuthorizationEntry(
            SorobanCredentials.source_account(), self._entry(self.CONTRACT).root_invocation
        )
        self.assertEqual(SorobanAuthorizationEntry.from_bytes(entry.to_bytes()), entry)
        with self.assertRaises(MalformedCredentials):
            entry.credentials.address_credentials()

    def test_create_contract_functions(self):
        preimage = ContractIdPreimage(
            ContractIdPreimage.FROM_ADDRESS,
            address=Address.from_str(self.CONTRACT),
            salt=b"\x05" * 32,
        )
        wasm = ContractExecutable(ContractExecutable.WASM, b"\x06" * 32)
        for function in (
            SorobanAuthorizedFunction(
                SorobanAuthorizedFunction.CREATE_CONTRACT_HOST_FN,
                CreateContractArgs(preimage, wasm),
            ),
            SorobanAuthorizedFunction(
                SorobanAuthorizedFunction.CREATE_CONTRACT_V2_HOST_FN,
                CreateContractArgs(preimage, wasm, [scval.to_symbol("init")]),
            ),
            SorobanAuthorizedFunction(
                SorobanAuthorizedFunction.CREATE_CONTRACT_HOST_FN,
                CreateContractArgs(
                    ContractIdPreimage(ContractIdPreimage.FROM_ASSET, asset=Asset.native()),
                    ContractExecutable(ContractExecutable.STELLAR_ASSET),
                ),
            ),
        ):
            invocation = SorobanAuthorizedInvocation(function)
            self.assertEqual(
                SorobanAuthorizedInvocation.from_bytes(invocation.to_bytes()), invocation
            )

    def test_find_entry(self):
        source = SorobanAuthorizationEntry(
            SorobanCredentials.source_account(), self._entry(self.CONTRACT).root_invocation
        )
        entries = [source, self._entry(self.OTHER_CONTRACT), self._entry(self.CONTRACT)]
        self.assertEqual(find_contract_auth_entry_index(entries, self.CONTRACT), 2)
        self.assertEqual(find_contract_auth_entry_index(entries[:2], self.CONTRACT), -1)
        self.assertEqual(find_contract_auth_entry_index([], self.CONTRACT), -1)

    def test_find_first_match(self):
        entries = [self._entry(self.CONTRACT, 1), self._entry(self.CONTRACT, 2)]
        self.assertEqual(find_contract_auth_entry_index(entries, self.CONTRACT), 0)

    def test_payload_hash(self):
        invocation = build_check_auth_invocation(self.CONTRACT, bytes(32))
        self.assertEqual(
            invocation.to_bytes().hex(),
            "0000000000000001363eaa3867841fbad0f4ed88c779e4fe66e56a2470dc98c0"
            "ec9c073d05c7b1030000000c5f5f636865636b5f61757468000000010000000d"
            "0000002000000000000000000000000000000000000000000000000000000000"
            "0000000000000000",
        )
        network_id = network.network_id(network.TESTNET_NETWORK_PASSPHRASE)
        payload = compute_auth_payload_hash(network_id, 42, 1100, invocation)
        self.assertEqual(
            payload.hex(),
            "9434c29adb57c64df1c3e48264a8a5c11b23fe1776fd3b59780685fdf29c32f1",
        )

    def test_payload_hash_inputs(self):
        invocation = build_check_auth_invocation(self.CONTRACT, bytes(32))
        network_id = network.network_id(network.TESTNET_NETWORK_PASSPHRASE)
        base = compute_auth_payload_hash(network_id, 42, 1100, invocation)
        self.assertEqual(base, compute_auth_payload_hash(network_id, 42, 1100, invocation))
        for changed in (
            compute_auth_payload_hash(
                network.network_id(network.PUBLIC_NETWORK_PASSPHRASE), 42, 1100, invocation
            ),
            compute_auth_payload_hash(network_id, 43, 1100, invocation),
            compute_auth_payload_hash(network_id, 42, 1101, invocation),
            compute_auth_payload_hash(
                network_id, 42, 1100, build_check_auth_invocation(self.CONTRACT, b"\x01" * 32)
            ),
        ):
            self.assertNotEqual(base, changed)

    def test_check_auth_invocation(self):
        invocation = build_check_auth_invocation(self.CONTRACT, b"\x09" * 32)
        self.assertEqual(invocation.sub_invocations, [])
        args = invocation.function.value
        self.assertEqual(str(args.contract_address), self.CONTRACT)
        self.assertEqual(args.function_name, "__check_auth")
        self.assertEqual(args.args, [scval.to_bytes(b"\x09" * 32)])

    def test_nonce(self):
        nonces = {generate_nonce() for _ in range(16)}
        self.assertGreater(len(nonces), 1)
        for nonce in nonces:
            self.assertTrue(0 <= nonce <= MAX_I64)

    def test_with_address_credentials_copies(self):
        entry = self._entry(self.CONTRACT)
        stamped = entry.with_address_credentials(1100, scval.to_symbol("sig"))
        self.assertEqual(entry.credentials.address_credentials().signature_expiration_ledger, 0)
        self.assertEqual(entry.credentials.address_credentials().signature, scval.to_void())
        stamped_credentials = stamped.credentials.address_credentials()
        self.assertEqual(stamped_credentials.signature_expiration_ledger, 1100)
        self.assertEqual(stamped.root_invocation, entry.root_invocation)

    async def test_authorize_entry(self):
        signer = Account.from_secret(self.SECRET)
        entry = build_unsigned_auth_entry(
            signer.address(), 0, build_check_auth_invocation(self.CONTRACT, bytes(32)), 42
        )
        signed = await authorize_entry(
            entry, signer, 1100, network.TESTNET_NETWORK_PASSPHRASE
        )

        credentials = signed.credentials.address_credentials()
        self.assertEqual(credentials.signature_expiration_ledger, 1100)
        self.assertEqual(credentials.nonce, 42)
        [signature_map] = credentials.signature.value
        (pk_key, pk_value), (sig_key, sig_value) = signature_map.value
        self.assertEqual(pk_key, scval.to_symbol("public_key"))
        self.assertEqual(pk_value.value, signer.public_key().to_raw())
        self.assertEqual(sig_key, scval.to_symbol("signature"))
        payload = bytes.fromhex(
            "9434c29adb57c64df1c3e48264a8a5c11b23fe1776fd3b59780685fdf29c32f1"
        )
        self.assertTrue(signer.public_key().verify(payload, Signature(sig_value.value)))
        # The input entry is left untouched.
        self.assertEqual(entry.credentials.address_credentials().signature, scval.to_void())

    async def test_authorize_source_account_entry(self):
        entry = SorobanAuthorizationEntry(
            SorobanCredentials.source_account(), self._entry(self.CONTRACT).root_invocation
        )
        signed = await authorize_entry(
            entry, Account.generate(), 1100, network.TESTNET_NETWORK_PASSPHRASE
        )
        self.assertIs(signed, entry)


if __name__ == "__main__":
    unittest.main()
