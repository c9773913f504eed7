"""
BlockGraph - Cryptographic Core Layer
=======================================
Primitive di hashing usate per derivare gli identificatori.

Last Updated: 2026-10-17
Version: 1.0.0

Algorithms:
- Hash: SHA-256, double SHA-256 (dbl-sha2-256)

Dependencies:
- hashlib (stdlib)
"""

import hashlib
from typing import Dict, Protocol, runtime_checkable

from block_graph.constants import HASH_ALG, HASH_ALG_CODE, HASH_DIGEST_SIZE
from block_graph.errors import CodecTypeError, ConfigError
from block_graph.logging_setup import get_logger


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("crypto")


# ============================================================================
# HASH FUNCTIONS
# ============================================================================

def compute_sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash.

    Args:
        data: Input data da hashare

    Returns:
        bytes: 32-byte hash digest

    Examples:
        >>> compute_sha256(b"").hex()
        'e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855'
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise CodecTypeError(
            f"compute_sha256 requires bytes, got {type(data).__name__}",
            code="INVALID_INPUT_TYPE"
        )

    return hashlib.sha256(data).digest()


def compute_double_sha256(data: bytes) -> bytes:
    """
    Compute double SHA-256 (SHA256(SHA256(data))).

    Usato per:
    - Block hash (header di 80 byte)
    - txid / wtxid
    - Nodi interni del merkle tree
    - Witness commitment

    Args:
        data: Input data

    Returns:
        bytes: 32-byte double hash (ordine interno, non invertito)

    Examples:
        >>> compute_double_sha256(b"").hex()
        '5df6e0e2761359d30a8275058e299fcc0381534545f55cf43e41983f5d4c9456'
    """
    return compute_sha256(compute_sha256(data))


# ============================================================================
# HASH PROVIDER INTERFACE
# ============================================================================

@runtime_checkable
class HashProvider(Protocol):
    """
    Interface per provider di hash iniettati nei codec.

    Il provider deve essere deterministico: gli identificatori derivati
    dipendono unicamente dai byte in input.
    """

    name: str
    code: int
    digest_size: int

    def digest(self, data: bytes) -> bytes:
        """Hash di un buffer"""
        ...


class DoubleSha256Provider:
    """
    Provider dbl-sha2-256 (multihash 0x56).

    Examples:
        >>> provider = DoubleSha256Provider()
        >>> len(provider.digest(b"abc"))
        32
    """

    name = HASH_ALG
    code = HASH_ALG_CODE
    digest_size = HASH_DIGEST_SIZE

    def digest(self, data: bytes) -> bytes:
        return compute_double_sha256(data)

    def __repr__(self) -> str:
        return f"DoubleSha256Provider(code=0x{self.code:02x})"


# ============================================================================
# PROVIDER FACTORY
# ============================================================================

_PROVIDERS: Dict[str, type] = {
    HASH_ALG: DoubleSha256Provider,
}


def get_hash_provider(name: str = HASH_ALG) -> HashProvider:
    """
    Factory per ottenere hash provider.

    Args:
        name: Nome algoritmo multihash ("dbl-sha2-256")

    Returns:
        HashProvider: Istanza provider

    Raises:
        ConfigError: Se algoritmo non supportato
    """
    provider_cls = _PROVIDERS.get(name.lower())
    if provider_cls is None:
        logger.error("Unsupported hash algorithm", extra_data={"name": name})
        raise ConfigError(
            f"Unsupported hash algorithm: {name}",
            code="UNSUPPORTED_HASH_ALGORITHM",
            details={"supported": sorted(_PROVIDERS)}
        )
    return provider_cls()


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "compute_sha256",
    "compute_double_sha256",
    "HashProvider",
    "DoubleSha256Provider",
    "get_hash_provider",
]
