"""
BlockGraph - Core Constants
=============================
Costanti immutabili del formato binario e dei content identifier.

Last Updated: 2026-10-17
Version: 1.0.0

IMPORTANTE: i valori di questo file riproducono il formato di serializzazione
consensus-critical. Qualsiasi modifica rompe la compatibilità byte-per-byte.
"""

from typing import Final


# ============================================================================
# IDENTIFICAZIONE PROGETTO
# ============================================================================

PROJECT_NAME: Final[str] = "BlockGraph"
COIN_TICKER: Final[str] = "BTC"

# Unità base: 1 coin = 100 milioni di satoshi
SATOSHI_PER_COIN: Final[int] = 100_000_000
COIN_DECIMALS: Final[int] = 8


def coin_to_satoshi(amount_coin: float) -> int:
    """
    Converte coin in satoshi (unità base).

    Args:
        amount_coin: Quantità in coin (es. 12.5)

    Returns:
        int: Quantità in satoshi

    Examples:
        >>> coin_to_satoshi(12.5)
        1250000000
        >>> coin_to_satoshi(0.0005)
        50000
    """
    return int(round(amount_coin * SATOSHI_PER_COIN))


def satoshi_to_coin(amount_satoshi: int) -> float:
    """
    Converte satoshi in coin.

    Examples:
        >>> satoshi_to_coin(5000000000)
        50.0
    """
    return amount_satoshi / SATOSHI_PER_COIN


# ============================================================================
# CONTENT IDENTIFIERS (multicodec / multihash tags)
# ============================================================================

CID_VERSION: Final[int] = 1

# Codec tags
CODEC_BLOCK: Final[str] = "bitcoin-block"
CODEC_BLOCK_CODE: Final[int] = 0xB0
CODEC_TX: Final[str] = "bitcoin-tx"
CODEC_TX_CODE: Final[int] = 0xB1
CODEC_WITNESS_COMMITMENT: Final[str] = "bitcoin-witness-commitment"
CODEC_WITNESS_COMMITMENT_CODE: Final[int] = 0xB2

# Hash algorithm tag (double SHA-256)
HASH_ALG: Final[str] = "dbl-sha2-256"
HASH_ALG_CODE: Final[int] = 0x56
HASH_DIGEST_SIZE: Final[int] = 32

# Multibase for lower-case, unpadded base32 (prefix "b")
MULTIBASE_BASE32: Final[str] = "base32"
MULTIBASE_BASE32_PREFIX: Final[str] = "b"


# ============================================================================
# BLOCK HEADER LAYOUT
# ============================================================================

HEADER_SIZE: Final[int] = 80
HASH_SIZE: Final[int] = 32
NULL_HASH: Final[bytes] = b"\x00" * HASH_SIZE

# Compact target del genesis block (difficulty 1.0)
MAX_TARGET_BITS: Final[int] = 0x1D00FFFF


# ============================================================================
# TRANSACTION LAYOUT
# ============================================================================

# Segregated witness marker/flag pair (subito dopo il campo version)
SEGWIT_MARKER: Final[int] = 0x00
SEGWIT_FLAG: Final[int] = 0x01

# Outpoint del coinbase: hash nullo + index massimo
COINBASE_PREV_INDEX: Final[int] = 0xFFFFFFFF

# Dimensioni minime su wire (usate per validare i count prima di allocare)
MIN_INPUT_SIZE: Final[int] = 32 + 4 + 1 + 4  # outpoint + script len + sequence
MIN_OUTPUT_SIZE: Final[int] = 8 + 1  # value + script len
MIN_WITNESS_ITEM_SIZE: Final[int] = 1

# version + input count + output count + lock time
MIN_TRANSACTION_SIZE: Final[int] = 4 + 1 + 1 + 4

# Fattore peso segwit (weight = base * 3 + total)
WITNESS_SCALE_FACTOR: Final[int] = 4

# Range dei campi interi
INT32_MIN: Final[int] = -(2 ** 31)
INT32_MAX: Final[int] = 2 ** 31 - 1
UINT32_MAX: Final[int] = 2 ** 32 - 1
INT64_MIN: Final[int] = -(2 ** 63)
INT64_MAX: Final[int] = 2 ** 63 - 1
UINT64_MAX: Final[int] = 2 ** 64 - 1

# Compact size markers
COMPACT_SIZE_UINT16: Final[int] = 0xFD
COMPACT_SIZE_UINT32: Final[int] = 0xFE
COMPACT_SIZE_UINT64: Final[int] = 0xFF


# ============================================================================
# WITNESS COMMITMENT
# ============================================================================

# OP_RETURN, push 36 bytes, header aa21a9ed
WITNESS_COMMITMENT_HEADER: Final[bytes] = bytes.fromhex("6a24aa21a9ed")
WITNESS_COMMITMENT_SCRIPT_SIZE: Final[int] = 38
WITNESS_COMMITMENT_SIZE: Final[int] = 64
WITNESS_RESERVED_VALUE_SIZE: Final[int] = 32


# ============================================================================
# CHAIN CONTEXT (campi RPC non derivabili dai byte del blocco)
# ============================================================================

CHAIN_CONTEXT_KEYS: Final[tuple] = (
    "height",
    "confirmations",
    "chainwork",
    "mediantime",
    "nextblockhash",
)

# Campi RPC che richiedono le transazioni (ignorati dal codec header)
BLOCK_BODY_KEYS: Final[tuple] = (
    "tx",
    "nTx",
    "size",
    "strippedsize",
    "weight",
)


__all__ = [
    "PROJECT_NAME",
    "COIN_TICKER",
    "SATOSHI_PER_COIN",
    "COIN_DECIMALS",
    "coin_to_satoshi",
    "satoshi_to_coin",
    "CID_VERSION",
    "CODEC_BLOCK",
    "CODEC_BLOCK_CODE",
    "CODEC_TX",
    "CODEC_TX_CODE",
    "CODEC_WITNESS_COMMITMENT",
    "CODEC_WITNESS_COMMITMENT_CODE",
    "HASH_ALG",
    "HASH_ALG_CODE",
    "HASH_DIGEST_SIZE",
    "MULTIBASE_BASE32",
    "MULTIBASE_BASE32_PREFIX",
    "HEADER_SIZE",
    "HASH_SIZE",
    "NULL_HASH",
    "MAX_TARGET_BITS",
    "SEGWIT_MARKER",
    "SEGWIT_FLAG",
    "COINBASE_PREV_INDEX",
    "MIN_INPUT_SIZE",
    "MIN_OUTPUT_SIZE",
    "MIN_WITNESS_ITEM_SIZE",
    "MIN_TRANSACTION_SIZE",
    "WITNESS_SCALE_FACTOR",
    "INT32_MIN",
    "INT32_MAX",
    "UINT32_MAX",
    "INT64_MIN",
    "INT64_MAX",
    "UINT64_MAX",
    "COMPACT_SIZE_UINT16",
    "COMPACT_SIZE_UINT32",
    "COMPACT_SIZE_UINT64",
    "WITNESS_COMMITMENT_HEADER",
    "WITNESS_COMMITMENT_SCRIPT_SIZE",
    "WITNESS_COMMITMENT_SIZE",
    "WITNESS_RESERVED_VALUE_SIZE",
    "CHAIN_CONTEXT_KEYS",
    "BLOCK_BODY_KEYS",
]
