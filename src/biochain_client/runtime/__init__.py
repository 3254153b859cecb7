"""
Runtime helpers: error classification and argument/address encoding.
"""

from .errors import (
    ErrorKind, ClassifiedError, LedgerError, LedgerApiError, classify, RETRYABLE_KINDS, HINTS
)
from .encoding import (
    string_to_bytes, bytes_to_string, normalize_address, is_valid_address,
    function_id, resource_type, encode_signer_argument, encode_json_argument,
    compute_data_hash, hash_file,
)

__all__ = [
    "ErrorKind",
    "ClassifiedError",
    "LedgerError",
    "LedgerApiError",
    "classify",
    "RETRYABLE_KINDS",
    "HINTS",
    "string_to_bytes",
    "bytes_to_string",
    "normalize_address",
    "is_valid_address",
    "function_id",
    "resource_type",
    "encode_signer_argument",
    "encode_json_argument",
    "compute_data_hash",
    "hash_file",
]
