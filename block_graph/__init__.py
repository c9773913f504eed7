"""
BlockGraph - Content-Addressed Block Codecs
=============================================
Codec round-trip-exact per header, transazioni legacy/segwit, merkle tree
e witness commitment, con content identifier dbl-sha2-256.

Version: 1.0.0
License: MIT
"""

from block_graph.version import __version__

# Domain
from block_graph.domain.content_id import ContentIdentifier, create_identifier
from block_graph.domain.crypto_core import DoubleSha256Provider, get_hash_provider
from block_graph.domain.models import (
    HeaderFields,
    ChainContext,
    BlockHeaderRecord,
    TxInput,
    TxOutput,
    Transaction,
    BlockRecord,
    WitnessCommitment,
    WitnessCommitmentFields,
)

# Codecs
from block_graph.codecs import (
    BlockHeaderCodec,
    TransactionCodec,
    WitnessCommitmentCodec,
    CodecRegistry,
    create_default_registry,
)
from block_graph.utils.merkle import MerkleTreeBuilder, count_merkle_nodes

# Services
from block_graph.services.block_service import BlockService, BlockVerification

# Config
from block_graph.config import BlockGraphSettings, get_settings

__all__ = [
    # Version
    "__version__",

    # Domain
    "ContentIdentifier",
    "create_identifier",
    "DoubleSha256Provider",
    "get_hash_provider",
    "HeaderFields",
    "ChainContext",
    "BlockHeaderRecord",
    "TxInput",
    "TxOutput",
    "Transaction",
    "BlockRecord",
    "WitnessCommitment",
    "WitnessCommitmentFields",

    # Codecs
    "BlockHeaderCodec",
    "TransactionCodec",
    "WitnessCommitmentCodec",
    "CodecRegistry",
    "create_default_registry",
    "MerkleTreeBuilder",
    "count_merkle_nodes",

    # Services
    "BlockService",
    "BlockVerification",

    # Config
    "BlockGraphSettings",
    "get_settings",
]
