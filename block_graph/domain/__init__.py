"""
BlockGraph - Domain Package
=============================
Record tipizzati, hashing e content identifier.
"""

# Content identifiers
from block_graph.domain.content_id import (
    ContentIdentifier,
    IdentifierFactory,
    create_identifier,
)

# Crypto
from block_graph.domain.crypto_core import (
    HashProvider,
    DoubleSha256Provider,
    compute_double_sha256,
    get_hash_provider,
)

# Models
from block_graph.domain.models import (
    HeaderFields,
    ChainContext,
    BlockHeaderRecord,
    TxInput,
    TxOutput,
    Transaction,
    BlockRecord,
    WitnessCommitmentFields,
    WitnessCommitment,
)

__all__ = [
    "ContentIdentifier",
    "IdentifierFactory",
    "create_identifier",
    "HashProvider",
    "DoubleSha256Provider",
    "compute_double_sha256",
    "get_hash_provider",
    "HeaderFields",
    "ChainContext",
    "BlockHeaderRecord",
    "TxInput",
    "TxOutput",
    "Transaction",
    "BlockRecord",
    "WitnessCommitmentFields",
    "WitnessCommitment",
]
