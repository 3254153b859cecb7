"""
Encoding helpers for ledger arguments and addresses.
"""

from __future__ import annotations
import hashlib
import re
from pathlib import Path
from typing import Any, List, Union


_HEX_RE = re.compile(r"^[0-9a-fA-F]*$")
ADDRESS_LENGTH = 64


def string_to_bytes(value: str) -> bytes:
    """UTF-8 encode a free-text field."""
    return value.encode("utf-8")


def bytes_to_string(value: Union[bytes, bytearray, List[int], str]) -> str:
    """
    Decode a byte-array field back into text.

    Accepts raw bytes, a list of byte values, or a ``0x``-prefixed hex string
    as returned by the node's JSON API for ``vector<u8>`` values.
    """
    if isinstance(value, str):
        if value.startswith("0x") and _HEX_RE.match(value[2:]) and len(value) % 2 == 0:
            return bytes.fromhex(value[2:]).decode("utf-8", errors="replace")
        return value
    return bytes(value).decode("utf-8", errors="replace")


def is_valid_address(address: str) -> bool:
    """Check whether a string is a well-formed account address."""
    if not isinstance(address, str):
        return False
    body = address[2:] if address.lower().startswith("0x") else address
    return 0 < len(body) <= ADDRESS_LENGTH and bool(_HEX_RE.match(body))


def normalize_address(address: str) -> str:
    """
    Normalize an account address to its long ``0x``-prefixed lowercase form.

    Raises:
        ValueError: If the address is not hex or is too long
    """
    if not is_valid_address(address):
        raise ValueError(f"Invalid account address: {address!r}")
    body = address[2:] if address.lower().startswith("0x") else address
    return "0x" + body.lower().rjust(ADDRESS_LENGTH, "0")


def function_id(module_address: str, module_name: str, function_name: str) -> str:
    """Fully-qualified call target ``<addr>::<module>::<function>``."""
    return f"{module_address}::{module_name}::{function_name}"


def resource_type(module_address: str, module_name: str, struct_name: str) -> str:
    """Fully-qualified resource type ``<addr>::<module>::<struct>``."""
    return f"{module_address}::{module_name}::{struct_name}"


def encode_signer_argument(value: Any) -> Any:
    """Argument as handed to the wallet signer (byte strings become byte lists)."""
    if isinstance(value, (bytes, bytearray)):
        return list(value)
    if isinstance(value, (list, tuple)):
        return [encode_signer_argument(v) for v in value]
    return value


def encode_json_argument(value: Any) -> Any:
    """Argument as accepted by the node's JSON API (simulate, view)."""
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [encode_json_argument(v) for v in value]
    return value


def compute_data_hash(data: Union[bytes, str]) -> str:
    """SHA-256 digest of experiment data as a ``0x``-prefixed hex string."""
    if isinstance(data, str):
        data = string_to_bytes(data)
    return "0x" + hashlib.sha256(data).hexdigest()


def hash_file(path: Union[str, Path], chunk_size: int = 65536) -> str:
    """SHA-256 digest of a file's contents as a ``0x``-prefixed hex string."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            digest.update(chunk)
    return "0x" + digest.hexdigest()
